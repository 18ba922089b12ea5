#!/usr/bin/env python3
# =============================================================================
# record_recovery.py — Tape record recovery (header + data block pairs)
# =============================================================================
#
# Takes the block-level WaveDecoder and pulls whole tape records out of a
# sample stream:
#
#   loop:
#     1. decode into a 27-byte header buffer
#          0 bytes            → end of tape, stop
#          1..26 bytes        → reject this attempt, keep going
#     2. size = header LENGTH (LE word @12) + 2
#          size <= 2          → reject, keep going
#     3. decode into a `size`-byte data buffer
#          deliver (header, data) whatever the fill; checksums are the
#          tape-file layer's problem, not ours
#
# LoadSession wraps the whole pipeline (source → SampleStream → EdgeDetector
# → WaveDecoder → RecordRecovery) around one owned input stream.
# =============================================================================

from __future__ import annotations
import logging
from typing import BinaryIO, Iterator, Optional

from ATME.config import TapeConfig
from ATME.results import Ok, EndOfStream, IoFailure, Result
from ATME.SMM.constants import HEADER_LENGTH, DATA_BLOCK_OVERHEAD
from ATME.SMM.tape_block import TapeRecord, expected_data_size
from ATME.SMM.timing import TimingModel
from ATME.SVM.edge_detector import EdgeDetector
from ATME.SVM.sample_stream import RawPcmSource, SampleStream
from ATME.SVM.wave_decoder import WaveDecoder

log = logging.getLogger(__name__)


class RecordRecovery:
    """
    Repeatedly drives a WaveDecoder to recover TapeRecords.

    Counters after iteration:
        headers_rejected : header attempts shorter than 27 bytes
        sizes_rejected   : headers announcing no data (LENGTH + 2 <= 2)
        short_blocks     : data blocks delivered with fewer bytes than announced
        failure          : IoFailure if the stream broke, else None
    """

    def __init__(self, decoder: WaveDecoder) -> None:
        self.decoder = decoder
        self.headers_rejected = 0
        self.sizes_rejected   = 0
        self.short_blocks     = 0
        self.failure: Optional[IoFailure] = None

    def next_record(self) -> Result | TapeRecord:
        """
        Recover the next record.

        Returns a TapeRecord, or the Result that ended the search
        (EndOfStream / Ok(0) at end of tape, IoFailure on stream error).
        """
        while True:
            header = bytearray(HEADER_LENGTH)
            res = self.decoder.load_block(header)
            if isinstance(res, IoFailure):
                self.failure = res
                return res
            if res.byte_count == 0:
                return res
            if res.byte_count < HEADER_LENGTH:
                self.headers_rejected += 1
                log.info("header rejected: %d/%d bytes", res.byte_count, HEADER_LENGTH)
                continue

            size = expected_data_size(header)
            if size <= DATA_BLOCK_OVERHEAD:
                self.sizes_rejected += 1
                log.info("header rejected: data size %d", size)
                continue

            data = bytearray(size)
            res = self.decoder.load_block(data)
            if isinstance(res, IoFailure):
                self.failure = res
                return res
            if res.byte_count < size:
                self.short_blocks += 1
                log.info("short data block: %d/%d bytes", res.byte_count, size)

            record = TapeRecord(bytes(header), bytes(data), res.byte_count)
            log.info(
                "recovered %s %r: %d/%d data bytes",
                record.file_type, record.filename, res.byte_count, size,
            )
            return record

    def __iter__(self) -> Iterator[TapeRecord]:
        while True:
            item = self.next_record()
            if not isinstance(item, TapeRecord):
                return
            yield item


class LoadSession:
    """
    Owns one input stream for the whole recovery.

    Usage:
        with LoadSession.from_pcm(open("tape.pcm", "rb"), cfg) as session:
            records = session.records()
        session.result   # Ok(n_records) / EndOfStream / IoFailure
    """

    def __init__(self, source, config: TapeConfig) -> None:
        self.config   = config.validate()
        self.timing   = TimingModel(config.sample_rate)
        self._source  = source
        self.stream   = SampleStream(source, config)
        self.detector = EdgeDetector(self.stream, config)
        self.decoder  = WaveDecoder(self.detector, self.timing.timing)
        self.recovery = RecordRecovery(self.decoder)
        self.recovered: list[TapeRecord] = []
        self._closed  = False

    @classmethod
    def from_pcm(cls, stream: BinaryIO, config: TapeConfig) -> "LoadSession":
        """Session over a headerless PCM stream in the config's format."""
        config.validate()
        return cls(RawPcmSource(stream, config), config)

    def __enter__(self) -> "LoadSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def records(self) -> list[TapeRecord]:
        """Recover every record until the input is exhausted."""
        for record in self.recovery:
            self.recovered.append(record)
        return self.recovered

    @property
    def result(self) -> Result:
        if self.recovery.failure is not None:
            return self.recovery.failure
        if not self.recovered:
            return EndOfStream()
        return Ok(len(self.recovered))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.stream.close()
        except OSError as exc:
            log.warning("load session close failed: %s", exc)
