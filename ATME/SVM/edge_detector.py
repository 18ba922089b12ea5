# =============================================================================
# edge_detector.py — Hysteresis level classifier and pulse-width meter
# =============================================================================
#
# Level regions (before `invert`):
#
#     HIGH      sample >  level + hysteresis
#   ........................................  level + hysteresis
#     DEAD      upper dead band
#   ----------------------------------------  level
#     DEAD      lower dead band
#   ........................................  level - hysteresis
#     LOW       sample <  level - hysteresis
#
# A DEAD sample never triggers an edge; it continues whatever phase the
# meter is in, so noise near the threshold cannot split one pulse into
# several.
#
# Pulse width:
#        ______________               _
#       |              |             |
#   ____|              |_____________|
#       |<---width---->|
#
#   1. skip samples until the first HIGH one (rising edge); it counts as 1
#   2. count every following sample that is not LOW
#   3. stop at the first LOW sample (falling edge); return the count
#
# End of stream in either phase returns END_OF_STREAM (0). The LOW sample
# that closed the pulse is consumed, so the next call starts inside the low
# semicycle.
# =============================================================================

from __future__ import annotations
import enum

from ATME.config import TapeConfig

END_OF_STREAM = 0


class Level(enum.IntEnum):
    LOW  = -1
    DEAD = 0
    HIGH = 1


class EdgeDetector:
    """
    Classifies samples from a SampleStream and measures pulse widths.

    Parameters
    ----------
    stream : object with next_sample() -> float | None
    config : TapeConfig (detection_level_percent, hysteresis_percent, invert)
    """

    def __init__(self, stream, config: TapeConfig) -> None:
        self._stream = stream
        self._high   = config.detection_level + config.hysteresis
        self._low    = config.detection_level - config.hysteresis
        self.invert  = config.invert

    def classify(self, sample: float) -> Level:
        if sample > self._high:
            region = Level.HIGH
        elif sample < self._low:
            region = Level.LOW
        else:
            return Level.DEAD
        if self.invert:
            region = Level(-region)
        return region

    @property
    def eof(self) -> bool:
        return self._stream.eof

    def pulse_width(self) -> int:
        """Width in samples of the next high pulse, or END_OF_STREAM."""
        next_sample = self._stream.next_sample
        classify    = self.classify

        # Seek rising edge
        while True:
            x = next_sample()
            if x is None:
                return END_OF_STREAM
            if classify(x) is Level.HIGH:
                break

        width = 1
        # Count until falling edge
        while True:
            x = next_sample()
            if x is None:
                return END_OF_STREAM
            if classify(x) is Level.LOW:
                return width
            width += 1
