# =============================================================================
# wav_source.py — WAV file frame source (soundfile / libsndfile)
# =============================================================================
#
# Container parsing is NOT part of the modem core. This adapter lets
# libsndfile deal with RIFF chunks and hands SampleStream the same thing
# RawPcmSource does: blocks of float frames, shape (n, channels), in [-1, 1].
#
# Frames are read as left-justified int32 and scaled the same way as raw PCM
# (divided by the depth's positive full scale, 127 for 8-bit), not by
# libsndfile's own 2^(n-1) float scaling, so both sources see equal levels.
#
# Only integer PCM subtypes are accepted; the Ace tools never wrote float
# or compressed audio.
# =============================================================================

from __future__ import annotations
from typing import Optional

import numpy as np
import soundfile as sf

from ATME.config import TapeConfig
from ATME.errors import ConfigurationError, StreamError
from ATME.SMM.constants import FULL_SCALE
from ATME.SVM.sample_stream import BLOCK_FRAMES

SUBTYPE_BITS = {
    "PCM_U8": 8,
    "PCM_S8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
}


class SoundFileSource:
    """Frame source over a WAV (or any libsndfile-readable PCM) file."""

    def __init__(self, path: str, block_frames: int = BLOCK_FRAMES) -> None:
        try:
            self._file = sf.SoundFile(path)
        except (RuntimeError, OSError) as exc:
            raise StreamError(f"cannot open {path!r}: {exc}") from exc

        self.path         = path
        self.sample_rate  = self._file.samplerate
        self.channels     = self._file.channels
        self.subtype      = self._file.subtype
        self.frames       = self._file.frames
        self._block_frames = block_frames

        if self.subtype not in SUBTYPE_BITS:
            self._file.close()
            raise ConfigurationError(
                f"{path!r}: unsupported sample format {self.subtype!r} "
                f"(need one of {sorted(SUBTYPE_BITS)})"
            )
        self.bits = SUBTYPE_BITS[self.subtype]

    def session_config(self, base: TapeConfig = TapeConfig()) -> TapeConfig:
        """`base` with the file's own rate, depth and channel count."""
        return base._replace(
            sample_rate=self.sample_rate,
            bits_per_sample=self.bits,
            channels=self.channels,
        )

    def read_block(self) -> Optional[np.ndarray]:
        try:
            block = self._file.read(self._block_frames, dtype="int32", always_2d=True)
        except (RuntimeError, OSError) as exc:
            raise StreamError(f"read failed: {exc}") from exc
        if not len(block):
            return None
        ints = block >> (32 - self.bits)
        return ints.astype(np.float64) / FULL_SCALE[self.bits]

    def close(self) -> None:
        self._file.close()
