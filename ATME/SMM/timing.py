# =============================================================================
# timing.py — Z80 cycle → audio sample conversion
# =============================================================================
#
# Both sides of the modem work from the same table of Z80 pulse widths
# (constants.py). TimingModel converts them once per session into sample
# counts at the session sample rate:
#
#   samples   = round(cycles * sample_rate / Z80_CLOCK)
#   tolerance = round((SYNC_HIGH // 2) * sample_rate / Z80_CLOCK)
#
# Rounding is half-up on exact integers. There is no float accumulation, so the same
# cycle count always maps to the same sample count.
#
# Encoder uses the (high, low) semicycle pairs to build wave tables.
# Decoder uses one reference width per symbol: the mean of the two
# semicycles, converted to samples, classified within ± tolerance.
#
# At 44 100 Hz:
#   pilot 27  sync 9  bit0 11  bit1 22  tolerance 4   (all in samples)
# =============================================================================

from __future__ import annotations
from typing import NamedTuple

from ATME.errors import ConfigurationError
from ATME.SMM.constants import (
    Z80_CLOCK,
    PILOT_PULSE, SYNC_PULSE, BIT0_PULSE, BIT1_PULSE, END_MARK_PULSE,
    ERROR_BUDGET_T,
)


class PulseTiming(NamedTuple):
    """Reference (high, low) semicycle widths in Z80 cycles."""
    pilot:     tuple[int, int] = PILOT_PULSE
    sync:      tuple[int, int] = SYNC_PULSE
    bit0:      tuple[int, int] = BIT0_PULSE
    bit1:      tuple[int, int] = BIT1_PULSE
    end_mark:  tuple[int, int] = END_MARK_PULSE
    tolerance: int             = ERROR_BUDGET_T


class SampleTiming(NamedTuple):
    """PulseTiming after conversion to sample counts at one sample rate."""
    sample_rate: int
    pilot:       tuple[int, int]   # (hi_samples, lo_samples)
    sync:        tuple[int, int]
    bit0:        tuple[int, int]
    bit1:        tuple[int, int]
    end_mark:    tuple[int, int]
    pilot_ref:   int               # decoder reference widths
    sync_ref:    int
    bit0_ref:    int
    bit1_ref:    int
    tolerance:   int

    def matches(self, width: int, ref: int) -> bool:
        """True if `width` lies within ref ± tolerance (inclusive)."""
        if width == 0:
            return False
        return ref - self.tolerance <= width <= ref + self.tolerance

    def window(self, ref: int) -> tuple[int, int]:
        return ref - self.tolerance, ref + self.tolerance


def _round_div(num: int, den: int) -> int:
    """Integer num / den rounded half-up (num, den >= 0)."""
    return (2 * num + den) // (2 * den)


class TimingModel:
    """
    Converts Z80 cycle widths to sample counts for one sample rate.

    Raises ConfigurationError if the sample rate is not positive, or if the
    rate is too low for the tolerance windows of competing symbols to stay
    apart (pilot vs sync, bit-0 vs bit-1).
    """

    def __init__(
        self,
        sample_rate: int,
        pulses: PulseTiming = PulseTiming(),
        clock: int = Z80_CLOCK,
    ) -> None:
        if not isinstance(sample_rate, int) or sample_rate <= 0:
            raise ConfigurationError(
                f"sample_rate must be a positive integer, got {sample_rate!r}"
            )
        self.sample_rate = sample_rate
        self.clock       = clock
        self.pulses      = pulses
        self.timing      = self._build()
        self._check_separation()

    # ── Conversions ─────────────────────────────────────────────────────────

    def cycles_to_samples(self, cycles: int) -> int:
        return _round_div(cycles * self.sample_rate, self.clock)

    def samples_to_cycles(self, samples: int) -> int:
        return _round_div(samples * self.clock, self.sample_rate)

    def seconds_to_samples(self, seconds: float) -> int:
        return int(round(seconds * self.sample_rate))

    # ── Internal ────────────────────────────────────────────────────────────

    def _pair(self, pulse: tuple[int, int]) -> tuple[int, int]:
        return self.cycles_to_samples(pulse[0]), self.cycles_to_samples(pulse[1])

    def _ref(self, pulse: tuple[int, int]) -> int:
        return self.cycles_to_samples((pulse[0] + pulse[1]) // 2)

    def _build(self) -> SampleTiming:
        p = self.pulses
        return SampleTiming(
            sample_rate=self.sample_rate,
            pilot=self._pair(p.pilot),
            sync=self._pair(p.sync),
            bit0=self._pair(p.bit0),
            bit1=self._pair(p.bit1),
            end_mark=self._pair(p.end_mark),
            pilot_ref=self._ref(p.pilot),
            sync_ref=self._ref(p.sync),
            bit0_ref=self._ref(p.bit0),
            bit1_ref=self._ref(p.bit1),
            tolerance=self.cycles_to_samples(p.tolerance),
        )

    def _check_separation(self) -> None:
        t = self.timing
        # Only symbols tested in the same decoder state can collide
        for name, a, b in (
            ("pilot/sync", t.pilot_ref, t.sync_ref),
            ("bit0/bit1",  t.bit0_ref,  t.bit1_ref),
        ):
            if 2 * t.tolerance >= abs(a - b):
                raise ConfigurationError(
                    f"sample_rate {self.sample_rate} Hz too low: {name} references "
                    f"{a} and {b} samples overlap at tolerance ±{t.tolerance}"
                )

    # ── Report ──────────────────────────────────────────────────────────────

    def summary(self) -> str:
        t = self.timing
        lines = [f"  Sample rate        : {self.sample_rate} Hz  (Z80 clock {self.clock} Hz)"]
        for label, ref in (
            ("Pilot", t.pilot_ref), ("Sync", t.sync_ref),
            ("Bit 0", t.bit0_ref), ("Bit 1", t.bit1_ref),
        ):
            lo, hi = t.window(ref)
            lines.append(f"  {label:<6} window      : {lo} – {hi} samp  (ref {ref})")
        lines.append(f"  Tolerance          : ±{t.tolerance} samp")
        return "\n".join(lines)
