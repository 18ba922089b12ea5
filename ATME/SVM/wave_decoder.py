#!/usr/bin/env python3
# =============================================================================
# wave_decoder.py — Tape block decoder (pulse-width state machine)
# =============================================================================
#
# Inverse of WaveEncoder. Consumes pulse widths from an EdgeDetector and
# recovers the bytes of ONE tape block into a caller-supplied buffer.
#
# State machine:
#
#   SEARCHING ──pilot──▶ PILOTING ──sync──▶ LOADING ──other──▶ DONE
#       ▲                 │  ▲  │             │  ▲
#       └────other────────┘  └──┘pilot        └──┘ bit0 / bit1
#
#   end of input in any state ──▶ DONE
#
# Classification order when windows could overlap:
#   SEARCHING / PILOTING : pilot, then sync
#   LOADING              : bit0, then bit1
#
# Bytes are assembled MSB first. A completed byte is stored only while the
# buffer has room; a completed byte with the buffer already full ends the
# load (DONE). The decoder never writes past the buffer.
#
# The transition table is a pure function (transition()) so each row can be
# tested on its own; WaveDecoder just drives it.
# =============================================================================

from __future__ import annotations
import enum
import logging
from typing import NamedTuple

from ATME.errors import StreamError
from ATME.results import Ok, EndOfStream, IoFailure, Result
from ATME.SMM.timing import SampleTiming
from ATME.SVM.edge_detector import END_OF_STREAM

log = logging.getLogger(__name__)


class DecoderState(enum.Enum):
    SEARCHING = "searching"
    PILOTING  = "piloting"
    LOADING   = "loading"
    DONE      = "done"


class Pulse(enum.Enum):
    PILOT = "pilot"
    SYNC  = "sync"
    BIT0  = "bit0"
    BIT1  = "bit1"
    OTHER = "other"
    END   = "end"        # input exhausted


class Action(enum.Enum):
    NONE     = "none"
    RESET    = "reset"       # sync seen: start a fresh bit buffer
    DISCARD  = "discard"     # pilot lock lost: drop partial progress
    APPEND_0 = "append_0"
    APPEND_1 = "append_1"
    STOP     = "stop"


class Transition(NamedTuple):
    state:  DecoderState
    action: Action


def classify_pulse(width: int, state: DecoderState, timing: SampleTiming) -> Pulse:
    """Name a pulse width using only the symbols valid in `state`."""
    if width == END_OF_STREAM:
        return Pulse.END
    if state is DecoderState.LOADING:
        if timing.matches(width, timing.bit0_ref):
            return Pulse.BIT0
        if timing.matches(width, timing.bit1_ref):
            return Pulse.BIT1
        return Pulse.OTHER
    if timing.matches(width, timing.pilot_ref):
        return Pulse.PILOT
    if timing.matches(width, timing.sync_ref):
        return Pulse.SYNC
    return Pulse.OTHER


def transition(state: DecoderState, pulse: Pulse) -> Transition:
    """Pure transition function of the block-load state machine."""
    if pulse is Pulse.END or state is DecoderState.DONE:
        return Transition(DecoderState.DONE, Action.STOP)

    if state is DecoderState.SEARCHING:
        if pulse is Pulse.PILOT:
            return Transition(DecoderState.PILOTING, Action.NONE)
        return Transition(DecoderState.SEARCHING, Action.NONE)

    if state is DecoderState.PILOTING:
        if pulse is Pulse.PILOT:
            return Transition(DecoderState.PILOTING, Action.NONE)
        if pulse is Pulse.SYNC:
            return Transition(DecoderState.LOADING, Action.RESET)
        return Transition(DecoderState.SEARCHING, Action.DISCARD)

    # LOADING
    if pulse is Pulse.BIT0:
        return Transition(DecoderState.LOADING, Action.APPEND_0)
    if pulse is Pulse.BIT1:
        return Transition(DecoderState.LOADING, Action.APPEND_1)
    return Transition(DecoderState.DONE, Action.STOP)


class WaveDecoder:
    """
    Recovers tape blocks from a pulse source.

    Parameters
    ----------
    pulses : EdgeDetector (or anything with pulse_width() -> int)
    timing : SampleTiming from the session TimingModel
    """

    def __init__(self, pulses, timing: SampleTiming) -> None:
        self._pulses = pulses
        self.timing  = timing
        self.state   = DecoderState.SEARCHING
        self.history: list[DecoderState] = []

    def _enter(self, state: DecoderState) -> None:
        if state is not self.state or not self.history:
            self.history.append(state)
        self.state = state

    def load_block(self, buffer: bytearray) -> Result:
        """
        Decode one block into `buffer`.

        Returns
        -------
        Ok(n)        — n bytes stored (may be fewer than len(buffer))
        EndOfStream  — input ran out before any byte was stored
        IoFailure    — the underlying stream raised
        """
        self.history = []
        self.state   = DecoderState.SEARCHING
        self._enter(DecoderState.SEARCHING)

        try:
            count, hit_end = self._run(buffer)
        except StreamError as exc:
            log.warning("block load aborted: %s", exc)
            self._enter(DecoderState.DONE)
            return IoFailure(str(exc))

        if count == 0 and hit_end:
            return EndOfStream()
        return Ok(count)

    def _run(self, buffer: bytearray) -> tuple[int, bool]:
        capacity  = len(buffer)
        count     = 0
        data      = 0
        bit_count = 0
        hit_end   = False

        while self.state is not DecoderState.DONE:
            width = self._pulses.pulse_width()
            pulse = classify_pulse(width, self.state, self.timing)
            if pulse is Pulse.END:
                hit_end = True

            prev = self.state
            step = transition(self.state, pulse)
            self._enter(step.state)

            if step.action is Action.RESET:
                log.debug("sync found, loading (width %d)", width)
                data, bit_count = 0, 0
            elif step.action is Action.DISCARD:
                data, bit_count, count = 0, 0, 0
            elif step.action in (Action.APPEND_0, Action.APPEND_1):
                bit  = 1 if step.action is Action.APPEND_1 else 0
                data = ((data << 1) | bit) & 0xFF
                bit_count += 1
                if bit_count == 8:
                    bit_count = 0
                    if count < capacity:
                        buffer[count] = data
                        count += 1
                    else:
                        self._enter(DecoderState.DONE)
            elif prev is DecoderState.SEARCHING and step.state is DecoderState.PILOTING:
                log.debug("pilot lock (width %d)", width)

        log.debug("block done: %d/%d bytes%s", count, capacity, " (end of input)" if hit_end else "")
        return count, hit_end
