# =============================================================================
# sample_stream.py — Pull-based PCM sample source for the decoder
# =============================================================================
#
# The decoder consumes ONE normalized float per call, in order, with no
# look-ahead. Underneath, PCM is read in blocks and converted with numpy so
# the per-sample path is just a list index.
#
#   frame source (raw PCM bytes | WAV file)
#        │   block of frames, shape (n, channels), floats in [-1, 1]
#        ▼
#   channel select  (mix | left | right; mono duplicates its channel)
#        ▼
#   NoiseFilter     (only if filter_enabled)
#        ▼
#   next_sample() → float   |  None at end of stream
#
# Normalization matches the Ace tape tools: 8-bit is unsigned around 128 and
# divided by 127; signed depths are divided by their positive full scale.
# =============================================================================

from __future__ import annotations
import logging
from typing import BinaryIO, Optional

import numpy as np

from ATME.config import TapeConfig
from ATME.errors import StreamError
from ATME.SMM.constants import FULL_SCALE, UNSIGNED_OFFSET_8BIT
from ATME.SVM.noise_filter import NoiseFilter, default_order

log = logging.getLogger(__name__)

BLOCK_FRAMES = 4096


def pcm_to_float(raw: bytes, bits_per_sample: int, channels: int) -> np.ndarray:
    """
    Convert little-endian PCM bytes to a float64 array of shape (frames, channels).

    Trailing bytes that do not fill a whole frame are ignored.
    """
    bps        = bits_per_sample // 8
    frame_size = bps * channels
    n_frames   = len(raw) // frame_size
    raw        = raw[: n_frames * frame_size]

    if bits_per_sample == 8:
        ints = np.frombuffer(raw, dtype=np.uint8).astype(np.float64) - UNSIGNED_OFFSET_8BIT
    elif bits_per_sample == 16:
        ints = np.frombuffer(raw, dtype="<i2").astype(np.float64)
    elif bits_per_sample == 24:
        b = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        v = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
        v = np.where(v >= 0x800000, v - 0x1000000, v)
        ints = v.astype(np.float64)
    elif bits_per_sample == 32:
        ints = np.frombuffer(raw, dtype="<i4").astype(np.float64)
    else:
        raise ValueError(f"Unsupported bit depth: {bits_per_sample}")

    return (ints / FULL_SCALE[bits_per_sample]).reshape(n_frames, channels)


class RawPcmSource:
    """
    Frame source over a binary stream of headerless PCM.

    The stream format is taken from the session config.
    """

    def __init__(self, stream: BinaryIO, config: TapeConfig, block_frames: int = BLOCK_FRAMES) -> None:
        self._stream      = stream
        self.sample_rate  = config.sample_rate
        self.bits         = config.bits_per_sample
        self.channels     = config.channels
        self._frame_bytes = config.frame_bytes
        self._block_bytes = block_frames * config.frame_bytes
        self._pending     = b""    # partial frame left over from a short read

    def read_block(self) -> Optional[np.ndarray]:
        while True:
            try:
                raw = self._stream.read(self._block_bytes)
            except OSError as exc:
                raise StreamError(f"read failed: {exc}") from exc
            if not raw:
                return None
            raw  = self._pending + raw
            keep = len(raw) - len(raw) % self._frame_bytes
            self._pending = raw[keep:]
            if keep:
                return pcm_to_float(raw[:keep], self.bits, self.channels)

    def close(self) -> None:
        self._stream.close()


class SampleStream:
    """
    Yields one normalized, channel-selected (and optionally filtered) sample
    per call to next_sample(). Returns None once the source is exhausted and
    keeps returning None afterwards.
    """

    def __init__(self, source, config: TapeConfig) -> None:
        self._source  = source
        self._select  = config.channel_select
        self._samples: list[float] = []
        self._pos     = 0
        self.eof      = False
        self.position = 0          # samples delivered so far

        self._filter: Optional[NoiseFilter] = None
        if config.filter_enabled:
            order = config.filter_order or default_order(config.sample_rate)
            self._filter = NoiseFilter(order)
            log.debug("noise filter enabled, order %d", self._filter.order)

    def _select_channel(self, block: np.ndarray) -> np.ndarray:
        if block.shape[1] == 1:
            return block[:, 0]
        if self._select == "left":
            return block[:, 0]
        if self._select == "right":
            return block[:, 1]
        return (block[:, 0] + block[:, 1]) / 2.0

    def _refill(self) -> bool:
        block = self._source.read_block()
        if block is None:
            self.eof = True
            return False
        self._samples = self._select_channel(block).tolist()
        self._pos     = 0
        return True

    def next_sample(self) -> Optional[float]:
        if self.eof:
            return None
        if self._pos >= len(self._samples) and not self._refill():
            return None
        x = self._samples[self._pos]
        self._pos     += 1
        self.position += 1
        if self._filter is not None:
            x = self._filter.filter(x)
        return x

    def close(self) -> None:
        self._source.close()
