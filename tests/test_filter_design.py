"""Tests for halfband and low-pass coefficient design."""

import numpy as np
import pytest
from scipy import signal

from dsm_decimator.filters.filter_chain import HALFBAND_DESIGNS
from dsm_decimator.filters.filter_design import (
    FINAL_FIR_PASSBAND_EDGE,
    FINAL_FIR_PASSBAND_RIPPLE_DB,
    FINAL_FIR_STOPBAND_ATTENUATION_DB,
    FINAL_FIR_STOPBAND_EDGE,
    SHAPING_FIR_TAPS,
    design_halfband_equiripple,
    design_halfband_window,
    design_lowpass_equiripple,
    design_lowpass_window,
    estimate_equiripple_order,
    fallback_fir_taps,
    halfband_zero_mask,
    measure_lowpass_response,
    ripple_to_deviation,
)


def test_halfband_zero_mask():
    mask = halfband_zero_mask(11)
    np.testing.assert_array_equal(np.flatnonzero(mask), [1, 3, 7, 9])


@pytest.mark.parametrize("order, transition_width", HALFBAND_DESIGNS)
def test_equiripple_halfband_structure(order, transition_width):
    coefficients = design_halfband_equiripple(order, transition_width)
    center = order // 2

    assert len(coefficients) == order + 1
    assert coefficients[center] == 0.5
    assert np.all(coefficients[halfband_zero_mask(order + 1)] == 0.0)
    np.testing.assert_allclose(coefficients, coefficients[::-1], atol=1e-12)
    assert np.sum(coefficients) == pytest.approx(1.0)
    # Outermost taps are non-zero for orders with order / 2 odd
    assert coefficients[0] != 0.0


@pytest.mark.parametrize("order, transition_width", HALFBAND_DESIGNS)
def test_equiripple_halfband_response(order, transition_width):
    coefficients = design_halfband_equiripple(order, transition_width)
    _, response = signal.freqz(coefficients, worN=[0.0, np.pi])
    assert abs(response[0]) == pytest.approx(1.0)
    assert abs(response[1]) < 1e-9


def test_window_halfband_structure():
    coefficients = design_halfband_window(14)
    assert coefficients[7] == 0.5
    assert np.all(coefficients[halfband_zero_mask(15)] == 0.0)
    assert np.sum(coefficients) == pytest.approx(1.0)


def test_ripple_to_deviation():
    assert ripple_to_deviation(0.0) == 0.0
    assert ripple_to_deviation(0.01) == pytest.approx(5.76e-4, rel=1e-2)


def test_order_estimate_grows_with_attenuation():
    low = estimate_equiripple_order(0.35, 0.65, 1e-3, 1e-3)
    high = estimate_equiripple_order(0.35, 0.65, 1e-3, 1e-5)
    assert high > low >= 2


def test_equiripple_lowpass_meets_targets():
    coefficients = design_lowpass_equiripple()
    ripple_db, attenuation_db = measure_lowpass_response(
        coefficients, FINAL_FIR_PASSBAND_EDGE, FINAL_FIR_STOPBAND_EDGE
    )
    assert ripple_db <= FINAL_FIR_PASSBAND_RIPPLE_DB
    assert attenuation_db >= FINAL_FIR_STOPBAND_ATTENUATION_DB
    assert np.sum(coefficients) == pytest.approx(1.0)
    np.testing.assert_allclose(coefficients, coefficients[::-1], atol=1e-12)


def test_window_lowpass():
    coefficients = design_lowpass_window(SHAPING_FIR_TAPS)
    assert len(coefficients) == 27
    assert np.sum(coefficients) == pytest.approx(1.0)
    np.testing.assert_allclose(coefficients, coefficients[::-1], atol=1e-12)


@pytest.mark.parametrize(
    "decimation, taps",
    [(2, 23), (3, 28), (5, 34), (1025, 51)],
)
def test_fallback_fir_taps(decimation, taps):
    assert fallback_fir_taps(decimation) == taps
