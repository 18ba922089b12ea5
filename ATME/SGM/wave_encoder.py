# =============================================================================
# wave_encoder.py — Jupiter Ace tape waveform encoder
# =============================================================================
#
# Turns tape records into raw PCM bytes that the Ace LOAD routine accepts.
#
# Every symbol is one full square-wave cycle: a high semicycle followed by a
# low semicycle, widths taken from SMM/timing.py. Each cycle is rendered ONCE
# per session into a wave table and then replayed:
#
#   silence   [mid x N]
#   pilot     [hi x 27, lo x 27]       (44.1 kHz)
#   sync      [hi x 8,  lo x 11]
#   bit 0     [hi x 11, lo x 11]
#   bit 1     [hi x 22, lo x 22]
#   end mark  [hi x 12, lo x 57]
#
# Session layout:
#
#   silence
#   ┌ per record ─────────────────────────────────────────────────────────┐
#   │ pilot x 4096 · sync · header bits · end mark                        │
#   │ pilot x 512  · sync · data bits   · end mark                        │
#   └─────────────────────────────────────────────────────────────────────┘
#   silence
#
# Bits go out MSB first. Output is a pure function of config + input bytes.
# =============================================================================

from __future__ import annotations
from typing import Iterable, Iterator, NamedTuple

from ATME.config import TapeConfig
from ATME.SMM.constants import FULL_SCALE, UNSIGNED_OFFSET_8BIT, Z80_CLOCK
from ATME.SMM.tape_block import TapeRecord
from ATME.SMM.timing import TimingModel


class WaveTables(NamedTuple):
    silence:  bytes
    pilot:    bytes
    sync:     bytes
    bit0:     bytes
    bit1:     bytes
    end_mark: bytes


def pcm_levels(bits_per_sample: int, volume_percent: int) -> tuple[int, int, int]:
    """
    Return (hi, lo, mid) PCM sample values for a volume.

    8-bit PCM is unsigned around 128. Signed depths use lo = -hi + 1 so the
    negative swing never reaches the most negative code.
    """
    swing = round(FULL_SCALE[bits_per_sample] * volume_percent / 100)
    if bits_per_sample == 8:
        mid = UNSIGNED_OFFSET_8BIT
        return mid + swing, mid - swing, mid
    return swing, -swing + 1, 0


def sample_bytes(value: int, bits_per_sample: int) -> bytes:
    """One PCM sample value as little-endian bytes."""
    if bits_per_sample == 8:
        return bytes((value,))
    return value.to_bytes(bits_per_sample // 8, "little", signed=True)


class WaveEncoder:
    """
    Session encoder. Builds its wave tables from the config on construction;
    the tables are never changed afterwards.

    Usage:
        enc = WaveEncoder(TapeConfig(sample_rate=44_100))
        pcm = enc.encode([TapeRecord(header, data)])
    """

    def __init__(self, config: TapeConfig) -> None:
        self.config = config.validate()
        self.timing_model = TimingModel(config.sample_rate)
        self.timing = self.timing_model.timing

        hi, lo, mid = pcm_levels(config.bits_per_sample, config.volume_percent)
        self.levels = (hi, lo, mid)
        self._hi_frame  = sample_bytes(hi,  config.bits_per_sample) * config.channels
        self._lo_frame  = sample_bytes(lo,  config.bits_per_sample) * config.channels
        self._mid_frame = sample_bytes(mid, config.bits_per_sample) * config.channels

        t = self.timing
        half_silence = round(config.silence_seconds * Z80_CLOCK / 2)
        silence_samples = self.timing_model.cycles_to_samples(half_silence)
        self.tables = WaveTables(
            silence=self._mid_frame * (2 * silence_samples),
            pilot=self.wave_table(*t.pilot),
            sync=self.wave_table(*t.sync),
            bit0=self.wave_table(*t.bit0),
            bit1=self.wave_table(*t.bit1),
            end_mark=self.wave_table(*t.end_mark),
        )
        self._byte_cache: dict[int, bytes] = {}

    # ── Wave tables ─────────────────────────────────────────────────────────

    def wave_table(self, hi_samples: int, lo_samples: int) -> bytes:
        """One cycle: hi_samples high frames then lo_samples low frames."""
        return self._hi_frame * hi_samples + self._lo_frame * lo_samples

    # ── Core encoder ────────────────────────────────────────────────────────

    def encode_byte(self, byte: int) -> bytes:
        """Eight bit cycles, bit 7 first."""
        wave = self._byte_cache.get(byte)
        if wave is None:
            bit0, bit1 = self.tables.bit0, self.tables.bit1
            wave = b"".join(
                bit1 if (byte >> i) & 1 else bit0 for i in range(7, -1, -1)
            )
            self._byte_cache[byte] = wave
        return wave

    def iter_block(self, block: bytes, pilot_cycles: int) -> Iterator[bytes]:
        """Pilot tone, sync, block bytes, end mark."""
        yield self.tables.pilot * pilot_cycles
        yield self.tables.sync
        for b in block:
            yield self.encode_byte(b)
        yield self.tables.end_mark

    def iter_record(self, record: TapeRecord) -> Iterator[bytes]:
        yield from self.iter_block(record.header, self.config.header_pilot_cycles)
        yield from self.iter_block(record.data,   self.config.data_pilot_cycles)

    def iter_session(self, records: Iterable[TapeRecord]) -> Iterator[bytes]:
        yield self.tables.silence
        for record in records:
            yield from self.iter_record(record)
        yield self.tables.silence

    def encode(self, records: Iterable[TapeRecord]) -> bytes:
        """Whole session as one bytes object."""
        return b"".join(self.iter_session(records))

    # ── Size bookkeeping ────────────────────────────────────────────────────

    def block_size(self, block: bytes, pilot_cycles: int) -> int:
        tb = self.tables
        ones = sum(bin(b).count("1") for b in block)
        zeros = 8 * len(block) - ones
        return (
            len(tb.pilot) * pilot_cycles + len(tb.sync) + len(tb.end_mark)
            + ones * len(tb.bit1) + zeros * len(tb.bit0)
        )

    def session_size(self, records: Iterable[TapeRecord]) -> int:
        """Byte count encode(records) will produce, without rendering it."""
        total = 2 * len(self.tables.silence)
        for r in records:
            total += self.block_size(r.header, self.config.header_pilot_cycles)
            total += self.block_size(r.data,   self.config.data_pilot_cycles)
        return total
