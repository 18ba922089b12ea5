"""Shared fixtures for the tape modem tests."""

from __future__ import annotations

import io

import pytest

from ATME.config import TapeConfig
from ATME.SMM.tape_block import TapeRecord


class ClosingBuffer(io.BytesIO):
    """BytesIO that keeps its contents after close() and counts closes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.closed_count = 0
        self.data = b''

    def close(self):
        self.closed_count += 1
        if not self.closed:
            self.data = self.getvalue()
        super().close()


def build_record(name: str = 'test', payload: bytes = b'hello ace!', address: int = 0x3C51,
                 file_type: int = 0x20) -> TapeRecord:
    """Header/data block pair laid out the way the Ace ROM saves a file."""
    header = bytearray(27)
    header[0] = 0x00
    header[1] = file_type
    header[2:12] = name.encode('latin-1').ljust(10)[:10]
    header[12] = len(payload) & 0xFF
    header[13] = len(payload) >> 8
    header[14] = address & 0xFF
    header[15] = address >> 8
    crc = 0
    for b in header[1:26]:
        crc ^= b
    header[26] = crc

    data = bytearray([0xFF]) + payload
    crc = 0
    for b in payload:
        crc ^= b
    data.append(crc)
    return TapeRecord(bytes(header), bytes(data))


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def closing_buffer():
    return ClosingBuffer


@pytest.fixture
def short_config():
    """Config factory with short pilots and silence so tapes stay small."""
    def factory(**overrides) -> TapeConfig:
        base = TapeConfig(
            header_pilot_cycles=64,
            data_pilot_cycles=16,
            silence_seconds=0.05,
        )
        return base._replace(**overrides)
    return factory
