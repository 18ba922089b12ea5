# =============================================================================
# noise_filter.py — Moving-average input smoother
# =============================================================================
#
# A plain FIR moving average over the last `order` samples, kept in a
# circular buffer. Applied to the normalized decoder input only when the
# session enables filtering. It knocks down single-sample spikes that would
# otherwise cut a pulse in two.
#
# Latency: on a constant input v the output reaches v after `order` samples
# (order - 1 samples of warm-up from a cleared buffer). "Reaches" is up to
# float rounding: the buffer is re-summed and divided by the order, so the
# settled output may differ from v by a few ulps (relative error at most
# order x machine epsilon). The decoder only compares it against thresholds.
# =============================================================================

from __future__ import annotations

from ATME.SMM.constants import FILTER_MIN_ORDER, FILTER_MAX_ORDER


def default_order(sample_rate: int) -> int:
    """Filter order used when the session does not pick one."""
    if sample_rate > 40_000:
        return 7
    if sample_rate > 20_000:
        return 5
    return 3


class NoiseFilter:
    """
    Moving-average filter over a circular buffer.

    Usage:
        flt = NoiseFilter(5)
        y = flt.filter(x)
    """

    def __init__(self, order: int) -> None:
        self.order   = max(FILTER_MIN_ORDER, min(FILTER_MAX_ORDER, int(order)))
        self._buffer = [0.0] * self.order
        self._index  = 0

    def clear(self) -> None:
        """Zero the buffer and rewind the write index."""
        self._buffer = [0.0] * self.order
        self._index  = 0

    def filter(self, x: float) -> float:
        """Push x and return the mean of the last `order` inputs, up to float rounding."""
        self._buffer[self._index] = x
        self._index = (self._index + 1) % self.order
        return sum(self._buffer) / self.order
