# =============================================================================
# save_session.py — Write tape records to a PCM sink
# =============================================================================
#
# A SaveSession owns one writable binary sink for its whole life:
#
#   open()    validate config, build wave tables, write leading silence
#   save(r)   write one record (header + data blocks)
#   close()   write trailing silence, flush and close the sink, exactly once
#
# It counts every PCM byte written so the container layer (e.g. a WAV writer
# that must patch its chunk sizes) can ask for `bytes_written`.
#
# An OSError from the sink aborts the session: the error is returned as an
# IoFailure, later calls return the same failure, and whatever was already
# written stays written.
# =============================================================================

from __future__ import annotations
import logging
from typing import BinaryIO, Iterable, Optional

from ATME.config import TapeConfig
from ATME.results import Ok, IoFailure, Result
from ATME.SMM.tape_block import TapeRecord
from ATME.SGM.wave_encoder import WaveEncoder

log = logging.getLogger(__name__)


class SaveSession:
    """
    Usage:
        with SaveSession(open("tape.pcm", "wb"), cfg) as session:
            session.save(record)
        session.result   # Ok(total_bytes) or IoFailure
    """

    def __init__(self, sink: BinaryIO, config: TapeConfig) -> None:
        # ConfigurationError surfaces here, before the sink is touched
        self.encoder = WaveEncoder(config)
        self.config  = self.encoder.config
        self._sink   = sink
        self.bytes_written = 0
        self.records_saved = 0
        self.failure: Optional[IoFailure] = None
        self._opened = False
        self._closed = False

    # ── Context manager ─────────────────────────────────────────────────────

    def __enter__(self) -> "SaveSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── Session ─────────────────────────────────────────────────────────────

    @property
    def result(self) -> Result:
        return self.failure if self.failure is not None else Ok(self.bytes_written)

    def _write(self, chunks: Iterable[bytes]) -> bool:
        if self.failure is not None:
            return False
        try:
            for chunk in chunks:
                self._sink.write(chunk)
                self.bytes_written += len(chunk)
        except OSError as exc:
            self.failure = IoFailure(f"write failed after {self.bytes_written} bytes: {exc}")
            log.warning("save session aborted: %s", self.failure.reason)
            return False
        return True

    def open(self) -> Result:
        if not self._opened:
            self._opened = True
            log.debug(
                "save session: %d Hz, %d-bit, %d ch, volume %d%%",
                self.config.sample_rate, self.config.bits_per_sample,
                self.config.channels, self.config.volume_percent,
            )
            self._write([self.encoder.tables.silence])
        return self.result

    def save(self, record: TapeRecord) -> Result:
        if self._closed:
            raise ValueError("save() on a closed SaveSession")
        if not self._opened:
            self.open()
        record.check_layout()
        if self._write(self.encoder.iter_record(record)):
            self.records_saved += 1
            log.info("saved %s %r (%d data bytes)", record.file_type, record.filename, len(record.data))
        return self.result

    def save_all(self, records: Iterable[TapeRecord]) -> Result:
        for record in records:
            if not self.save(record).ok:
                break
        return self.result

    def close(self) -> Result:
        if self._closed:
            return self.result
        self._closed = True
        if self._opened:
            self._write([self.encoder.tables.silence])
        for step in (self._sink.flush, self._sink.close):
            try:
                step()
            except OSError as exc:
                if self.failure is None:
                    self.failure = IoFailure(f"close failed: {exc}")
                    log.warning("save session close failed: %s", exc)
        return self.result
