"""Tests for the Z80 cycle / sample timing model."""

from __future__ import annotations

import pytest

from ATME.config import TapeConfig
from ATME.errors import ConfigurationError
from ATME.SMM.constants import PILOT_PULSE, SYNC_PULSE, BIT1_PULSE
from ATME.SMM.timing import PulseTiming, TimingModel


class TestReferenceWidths:

    def test_44100_references(self):
        t = TimingModel(44_100).timing
        assert t.pilot_ref == 27
        assert t.sync_ref == 9
        assert t.bit0_ref == 11
        assert t.bit1_ref == 22
        assert t.tolerance == 4

    def test_44100_semicycles(self):
        t = TimingModel(44_100).timing
        assert t.pilot == (27, 27)
        assert t.sync == (8, 11)
        assert t.bit0 == (11, 11)
        assert t.bit1 == (22, 22)
        assert t.end_mark == (12, 57)

    def test_22050_references(self):
        t = TimingModel(22_050).timing
        assert (t.pilot_ref, t.sync_ref, t.bit0_ref, t.bit1_ref) == (14, 5, 5, 11)
        assert t.tolerance == 2

    def test_48000_builds(self):
        t = TimingModel(48_000).timing
        assert t.pilot_ref == 30
        assert t.tolerance == 4

    def test_pulse_timing_defaults(self):
        p = PulseTiming()
        assert p.pilot == PILOT_PULSE
        assert p.bit1 == BIT1_PULSE
        assert p.tolerance == SYNC_PULSE[0] // 2


class TestConfigurationErrors:

    @pytest.mark.parametrize('rate', [0, -44_100])
    def test_non_positive_rate_rejected(self, rate):
        with pytest.raises(ConfigurationError):
            TimingModel(rate)

    def test_rate_too_low_for_separation(self):
        # bit0/bit1 references collapse to 2 and 4 samples with ±1 tolerance
        with pytest.raises(ConfigurationError, match='bit0/bit1'):
            TimingModel(8_000)

    def test_config_validation_checks_separation(self):
        with pytest.raises(ConfigurationError, match='too low'):
            TapeConfig(sample_rate=8_000).validate()
        assert TapeConfig(sample_rate=22_050).validate().sample_rate == 22_050

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            TimingModel(0)


class TestConversions:

    def test_round_half_up(self):
        model = TimingModel(44_100)
        # 601 cycles = 8.155 samples, 1585 cycles = 21.507 samples
        assert model.cycles_to_samples(601) == 8
        assert model.cycles_to_samples(1585) == 22

    def test_no_drift_on_repeated_conversion(self):
        model = TimingModel(44_100)
        for cycles in range(0, 6000, 37):
            samples = model.cycles_to_samples(cycles)
            value = samples
            for _ in range(10):
                value = model.cycles_to_samples(model.samples_to_cycles(value))
            assert value == samples

    def test_seconds_to_samples(self):
        assert TimingModel(48_000).seconds_to_samples(0.5) == 24_000


class TestTolerance:

    @pytest.mark.parametrize('attr', ['pilot_ref', 'sync_ref', 'bit0_ref', 'bit1_ref'])
    def test_boundary(self, attr):
        t = TimingModel(44_100).timing
        ref = getattr(t, attr)
        assert t.matches(ref - t.tolerance, ref)
        assert t.matches(ref + t.tolerance, ref)
        assert not t.matches(ref - t.tolerance - 1, ref)
        assert not t.matches(ref + t.tolerance + 1, ref)

    def test_zero_width_never_matches(self):
        t = TimingModel(22_050).timing
        assert not t.matches(0, t.tolerance)

    def test_window(self):
        t = TimingModel(44_100).timing
        assert t.window(t.pilot_ref) == (23, 31)

    def test_summary_lists_windows(self):
        text = TimingModel(44_100).summary()
        assert 'Pilot' in text
        assert '23 – 31' in text
        assert '±4' in text
