"""Tests for the block-load state machine."""

from __future__ import annotations

import io

import numpy as np
import pytest

from ATME.config import TapeConfig
from ATME.errors import StreamError
from ATME.results import Ok, EndOfStream, IoFailure
from ATME.SGM.wave_encoder import WaveEncoder
from ATME.SMM.timing import SampleTiming, TimingModel
from ATME.SVM.edge_detector import EdgeDetector
from ATME.SVM.sample_stream import RawPcmSource, SampleStream
from ATME.SVM.wave_decoder import (
    Action, DecoderState, Pulse, WaveDecoder, classify_pulse, transition,
)

S = DecoderState
TIMING = TimingModel(44_100).timing


class PulseList:
    """Pulse source fed from a list of widths; 0 once exhausted."""

    def __init__(self, widths, fail_after=None):
        self.widths = list(widths)
        self.fail_after = fail_after
        self.served = 0

    def pulse_width(self):
        if self.fail_after is not None and self.served >= self.fail_after:
            raise StreamError('read failed: cable pulled')
        self.served += 1
        return self.widths.pop(0) if self.widths else 0


def bit_widths(data, timing=TIMING):
    out = []
    for byte in data:
        for i in range(7, -1, -1):
            out.append(timing.bit1_ref if (byte >> i) & 1 else timing.bit0_ref)
    return out


def block_widths(data, pilots=8, timing=TIMING):
    return [timing.pilot_ref] * pilots + [timing.sync_ref] + bit_widths(data, timing)


def decoder_over_pcm(pcm, config):
    source = RawPcmSource(io.BytesIO(pcm), config)
    detector = EdgeDetector(SampleStream(source, config), config)
    return WaveDecoder(detector, TimingModel(config.sample_rate).timing)


class TestTransitionTable:

    @pytest.mark.parametrize('state, pulse, expected', [
        (S.SEARCHING, Pulse.PILOT, (S.PILOTING, Action.NONE)),
        (S.SEARCHING, Pulse.SYNC, (S.SEARCHING, Action.NONE)),
        (S.SEARCHING, Pulse.OTHER, (S.SEARCHING, Action.NONE)),
        (S.PILOTING, Pulse.PILOT, (S.PILOTING, Action.NONE)),
        (S.PILOTING, Pulse.SYNC, (S.LOADING, Action.RESET)),
        (S.PILOTING, Pulse.OTHER, (S.SEARCHING, Action.DISCARD)),
        (S.LOADING, Pulse.BIT0, (S.LOADING, Action.APPEND_0)),
        (S.LOADING, Pulse.BIT1, (S.LOADING, Action.APPEND_1)),
        (S.LOADING, Pulse.OTHER, (S.DONE, Action.STOP)),
    ])
    def test_row(self, state, pulse, expected):
        assert tuple(transition(state, pulse)) == expected

    @pytest.mark.parametrize('state', [S.SEARCHING, S.PILOTING, S.LOADING, S.DONE])
    def test_end_of_input_always_done(self, state):
        assert transition(state, Pulse.END) == (S.DONE, Action.STOP)


class TestClassifyPulse:

    def test_states_use_their_own_symbols(self):
        assert classify_pulse(TIMING.pilot_ref, S.SEARCHING, TIMING) is Pulse.PILOT
        assert classify_pulse(TIMING.sync_ref, S.PILOTING, TIMING) is Pulse.SYNC
        assert classify_pulse(TIMING.bit0_ref, S.LOADING, TIMING) is Pulse.BIT0
        assert classify_pulse(TIMING.bit1_ref, S.LOADING, TIMING) is Pulse.BIT1
        # a pilot-width pulse means nothing while loading
        assert classify_pulse(TIMING.pilot_ref, S.LOADING, TIMING) is Pulse.OTHER
        assert classify_pulse(0, S.LOADING, TIMING) is Pulse.END

    def test_overlapping_windows_prefer_first_symbol(self):
        t = SampleTiming(
            sample_rate=1, pilot=(1, 1), sync=(1, 1), bit0=(1, 1), bit1=(1, 1),
            end_mark=(1, 1), pilot_ref=10, sync_ref=12, bit0_ref=10, bit1_ref=12,
            tolerance=3,
        )
        assert classify_pulse(11, S.PILOTING, t) is Pulse.PILOT
        assert classify_pulse(14, S.PILOTING, t) is Pulse.SYNC
        assert classify_pulse(11, S.LOADING, t) is Pulse.BIT0
        assert classify_pulse(14, S.LOADING, t) is Pulse.BIT1


class TestLoadBlock:

    def test_clean_block(self):
        dec = WaveDecoder(PulseList(block_widths(b'\x41\x42') + [60]), TIMING)
        buf = bytearray(2)
        assert dec.load_block(buf) == Ok(2)
        assert bytes(buf) == b'AB'
        assert dec.history == [S.SEARCHING, S.PILOTING, S.LOADING, S.DONE]

    def test_short_block_reports_count(self):
        dec = WaveDecoder(PulseList(block_widths(b'\x01\x02\x03')), TIMING)
        buf = bytearray(10)
        assert dec.load_block(buf) == Ok(3)
        assert bytes(buf[:3]) == b'\x01\x02\x03'
        assert bytes(buf[3:]) == bytes(7)

    def test_lost_pilot_returns_to_searching(self):
        widths = [TIMING.pilot_ref] * 3 + [50] + block_widths(b'\x99')
        dec = WaveDecoder(PulseList(widths), TIMING)
        buf = bytearray(1)
        assert dec.load_block(buf) == Ok(1)
        assert buf[0] == 0x99
        assert dec.history == [S.SEARCHING, S.PILOTING, S.SEARCHING, S.PILOTING, S.LOADING, S.DONE]

    def test_sync_without_pilot_ignored(self):
        widths = [TIMING.sync_ref] + bit_widths(b'\xff')
        dec = WaveDecoder(PulseList(widths), TIMING)
        assert dec.load_block(bytearray(1)) == EndOfStream()
        assert dec.history == [S.SEARCHING, S.DONE]

    def test_no_pilot_is_end_of_stream(self):
        dec = WaveDecoder(PulseList([3, 5, 40, 3] * 50), TIMING)
        res = dec.load_block(bytearray(27))
        assert isinstance(res, EndOfStream)
        assert res.eof and not res.ok
        assert dec.state is S.DONE
        assert S.LOADING not in dec.history

    def test_end_after_sync_is_end_of_stream(self):
        dec = WaveDecoder(PulseList(block_widths(b'')), TIMING)
        assert dec.load_block(bytearray(4)) == EndOfStream()

    def test_partial_byte_dropped(self):
        widths = block_widths(b'\x10') + bit_widths(b'\xff')[:5]
        dec = WaveDecoder(PulseList(widths), TIMING)
        buf = bytearray(4)
        assert dec.load_block(buf) == Ok(1)
        assert buf == bytearray(b'\x10\x00\x00\x00')

    def test_overrun_stops_at_capacity(self):
        pulses = PulseList(block_widths(b'\x01\x02\x03\x04'))
        dec = WaveDecoder(pulses, TIMING)
        buf = bytearray(2)
        assert dec.load_block(buf) == Ok(2)
        assert len(buf) == 2
        assert bytes(buf) == b'\x01\x02'
        assert dec.state is S.DONE
        # the fourth byte was never read
        assert len(pulses.widths) == 8

    def test_stream_error_is_io_failure(self):
        dec = WaveDecoder(PulseList(block_widths(b'\x55\x55'), fail_after=12), TIMING)
        res = dec.load_block(bytearray(2))
        assert isinstance(res, IoFailure)
        assert 'cable pulled' in res.reason
        assert res.byte_count == 0
        assert dec.state is S.DONE

    def test_consecutive_blocks(self):
        widths = block_widths(b'\x0a') + [TIMING.pilot_ref] + block_widths(b'\x0b\x0c')
        dec = WaveDecoder(PulseList(widths), TIMING)
        first, second = bytearray(1), bytearray(2)
        assert dec.load_block(first) == Ok(1)
        assert dec.load_block(second) == Ok(2)
        assert first == bytearray(b'\x0a')
        assert second == bytearray(b'\x0b\x0c')
        assert dec.load_block(bytearray(1)) == EndOfStream()


class TestDecodeAudio:

    def test_two_bytes_at_44100(self):
        cfg = TapeConfig(header_pilot_cycles=64, silence_seconds=0.05)
        enc = WaveEncoder(cfg)
        pcm = enc.tables.silence + b''.join(enc.iter_block(bytes([0x41, 0x42]), 64)) + enc.tables.silence
        dec = decoder_over_pcm(pcm, cfg)
        buf = bytearray(2)
        assert dec.load_block(buf) == Ok(2)
        assert buf == bytearray([0x41, 0x42])
        assert dec.history.index(S.PILOTING) < dec.history.index(S.LOADING)

    def test_square_wave_noise_never_locks(self):
        cfg = TapeConfig()
        wave = np.tile(np.array([20000] * 3 + [-20000] * 3, dtype='<i2'), 44_100 // 6)
        dec = decoder_over_pcm(wave.tobytes(), cfg)
        assert dec.load_block(bytearray(27)) == EndOfStream()
        assert dec.state is S.DONE

    def test_random_noise_never_locks(self):
        cfg = TapeConfig()
        rng = np.random.default_rng(7)
        noise = np.clip(rng.normal(0.0, 0.3, 44_100) * 32767, -32767, 32767).astype('<i2')
        dec = decoder_over_pcm(noise.tobytes(), cfg)
        res = dec.load_block(bytearray(27))
        assert res == EndOfStream()
