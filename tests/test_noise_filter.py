"""Tests for the moving-average input filter."""

from __future__ import annotations

import sys

import pytest

from ATME.SVM.noise_filter import NoiseFilter, default_order


def test_order_clamped():
    assert NoiseFilter(1).order == 2
    assert NoiseFilter(0).order == 2
    assert NoiseFilter(100).order == 55
    assert NoiseFilter(9).order == 9


def test_steady_state_reaches_input():
    flt = NoiseFilter(5)
    outputs = [flt.filter(0.5) for _ in range(5)]
    for out in outputs[:-1]:
        assert out < 0.5
    assert outputs[-1] == pytest.approx(0.5)
    assert flt.filter(0.5) == pytest.approx(0.5)


@pytest.mark.parametrize('order', [2, 5, 7, 55])
@pytest.mark.parametrize('value', [0.1, 0.7, -0.9, 1.0, 0.0])
def test_steady_state_within_float_rounding(order, value):
    flt = NoiseFilter(order)
    for _ in range(order):
        out = flt.filter(value)
    # summing `order` floats may leave a few ulps of rounding
    bound = order * sys.float_info.epsilon * abs(value)
    assert abs(out - value) <= bound
    for _ in range(3 * order):
        assert abs(flt.filter(value) - value) <= bound


def test_warm_up_is_linear():
    flt = NoiseFilter(4)
    assert flt.filter(1.0) == pytest.approx(0.25)
    assert flt.filter(1.0) == pytest.approx(0.5)
    assert flt.filter(1.0) == pytest.approx(0.75)


def test_single_spike_is_spread():
    flt = NoiseFilter(5)
    out = [flt.filter(x) for x in (0.0, 0.0, 1.0, 0.0, 0.0)]
    assert max(out) == pytest.approx(0.2)


def test_clear_resets_history():
    flt = NoiseFilter(3)
    for _ in range(10):
        flt.filter(0.9)
    flt.clear()
    assert flt.filter(0.0) == 0.0
    assert flt.filter(0.3) == pytest.approx(0.1)


@pytest.mark.parametrize('rate, order', [
    (8_000, 3),
    (22_050, 5),
    (44_100, 7),
    (48_000, 7),
])
def test_default_order(rate, order):
    assert default_order(rate) == order
