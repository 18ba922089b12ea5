# =============================================================================
# config.py — Per-session tape configuration
# =============================================================================
#
# One TapeConfig is handed to each encode or decode session when it opens and
# is never mutated afterwards. Two sessions never share settings: build a new
# config with `cfg._replace(...)` instead of editing one in place.
#
#   Format     : sample_rate, bits_per_sample, channels
#   Encoder    : volume_percent, header/data pilot cycles, silence_seconds
#   Decoder    : channel_select, detection_level_percent, hysteresis_percent,
#                invert, filter_enabled, filter_order
# =============================================================================

from __future__ import annotations
from typing import NamedTuple, Optional

from ATME.errors import ConfigurationError
from ATME.SMM.constants import (
    SUPPORTED_BITS, SUPPORTED_CHANNELS,
    HEADER_PILOT_CYCLES, DATA_PILOT_CYCLES,
    DEFAULT_SILENCE_SECONDS,
)
from ATME.SMM.timing import TimingModel

CHANNEL_SELECTS = ("mix", "left", "right")


class TapeConfig(NamedTuple):
    sample_rate:             int   = 44_100
    bits_per_sample:         int   = 16
    channels:                int   = 1
    volume_percent:          int   = 90
    channel_select:          str   = "mix"
    detection_level_percent: float = 5.0
    hysteresis_percent:      float = 1.0
    invert:                  bool  = False
    filter_enabled:          bool  = False
    filter_order:            Optional[int] = None   # None = pick from sample rate
    header_pilot_cycles:     int   = HEADER_PILOT_CYCLES
    data_pilot_cycles:       int   = DATA_PILOT_CYCLES
    silence_seconds:         float = DEFAULT_SILENCE_SECONDS

    # ── Derived format values ───────────────────────────────────────────────

    @property
    def bytes_per_sample(self) -> int:
        return self.bits_per_sample // 8

    @property
    def frame_bytes(self) -> int:
        """Bytes in one PCM frame (all channels of one sample instant)."""
        return self.channels * self.bytes_per_sample

    @property
    def detection_level(self) -> float:
        return self.detection_level_percent / 100.0

    @property
    def hysteresis(self) -> float:
        return self.hysteresis_percent / 100.0

    # ── Validation ──────────────────────────────────────────────────────────

    def validate(self) -> "TapeConfig":
        """
        Check every field and return self.

        Raises ConfigurationError naming the first bad field, or when the
        sample rate is too low for the pulse windows to stay apart. Sessions
        call this when they open, before touching any stream.
        """
        if not isinstance(self.sample_rate, int) or self.sample_rate <= 0:
            raise ConfigurationError(
                f"sample_rate must be a positive integer, got {self.sample_rate!r}"
            )
        if self.bits_per_sample not in SUPPORTED_BITS:
            raise ConfigurationError(
                f"bits_per_sample must be one of {SUPPORTED_BITS}, got {self.bits_per_sample!r}"
            )
        if self.channels not in SUPPORTED_CHANNELS:
            raise ConfigurationError(
                f"channels must be one of {SUPPORTED_CHANNELS}, got {self.channels!r}"
            )
        if not 0 <= self.volume_percent <= 100:
            raise ConfigurationError(
                f"volume_percent must be in [0, 100], got {self.volume_percent!r}"
            )
        if self.channel_select not in CHANNEL_SELECTS:
            raise ConfigurationError(
                f"channel_select must be one of {CHANNEL_SELECTS}, got {self.channel_select!r}"
            )
        if not -100 <= self.detection_level_percent <= 100:
            raise ConfigurationError(
                f"detection_level_percent must be in [-100, 100], "
                f"got {self.detection_level_percent!r}"
            )
        if not 0 <= self.hysteresis_percent <= 100:
            raise ConfigurationError(
                f"hysteresis_percent must be in [0, 100], got {self.hysteresis_percent!r}"
            )
        if self.header_pilot_cycles < 1 or self.data_pilot_cycles < 1:
            raise ConfigurationError(
                f"pilot tones need at least one cycle, got header={self.header_pilot_cycles} "
                f"data={self.data_pilot_cycles}"
            )
        if self.silence_seconds < 0:
            raise ConfigurationError(
                f"silence_seconds must be >= 0, got {self.silence_seconds!r}"
            )
        # pulse windows must stay apart at this rate
        TimingModel(self.sample_rate)
        return self
