"""Tests for fixed-point formats, rounding and overflow handling."""

import numpy as np
import pytest

from dsm_decimator.filters.fixed_point import (
    FixedPointArray,
    FixedPointFormat,
    OverflowMode,
    RoundingMode,
    apply_overflow,
    shift_round,
)


def test_coefficient_format_range():
    fmt = FixedPointFormat(16, 15)
    assert fmt.min_value == -1.0
    assert fmt.max_value == 1.0 - 2.0 ** -15
    assert fmt.integer_length == 1
    assert str(fmt) == "Q1.15"


def test_working_and_accumulator_formats():
    assert str(FixedPointFormat(22, 18)) == "Q4.18"
    assert str(FixedPointFormat(58, 0)) == "Q58.0"
    assert FixedPointFormat(58, 0).max_integer == 2 ** 57 - 1
    assert str(FixedPointFormat(8, 8, signed=False)) == "UQ0.8"


@pytest.mark.parametrize(
    "word_length, signed",
    [(0, True), (64, True), (1, True)],
)
def test_invalid_formats_raise(word_length, signed):
    with pytest.raises(ValueError):
        FixedPointFormat(word_length, 0, signed=signed)


def test_from_float_rounds_half_to_even():
    fmt = FixedPointFormat(8, 0)
    values = FixedPointArray.from_float([0.5, 1.5, 2.5, -0.5, -1.5], fmt)
    np.testing.assert_array_equal(values.integers, [0, 2, 2, 0, -2])


def test_from_float_floor():
    fmt = FixedPointFormat(8, 0)
    values = FixedPointArray.from_float([0.5, 1.5, 2.7, -0.5], fmt, RoundingMode.FLOOR)
    np.testing.assert_array_equal(values.integers, [0, 1, 2, -1])


def test_from_float_saturates():
    fmt = FixedPointFormat(4, 0)
    values = FixedPointArray.from_float([10.0, -10.0, 1e30], fmt)
    np.testing.assert_array_equal(values.integers, [7, -8, 7])


def test_from_float_rejects_non_finite():
    with pytest.raises(ValueError):
        FixedPointArray.from_float([0.0, np.nan], FixedPointFormat(16, 15))


def test_bitstream_values_are_exact_in_q2_0():
    fmt = FixedPointFormat(2, 0)
    values = FixedPointArray.from_float([-1.0, 0.0, 1.0], fmt)
    np.testing.assert_array_equal(values.integers, [-1, 0, 1])
    np.testing.assert_array_equal(values.to_float(), [-1.0, 0.0, 1.0])


@pytest.mark.parametrize(
    "rounding, expected",
    [
        (RoundingMode.NEAREST_EVEN, [2, 3, 4, -2, -4]),
        (RoundingMode.FLOOR, [2, 3, 3, -3, -4]),
    ],
)
def test_shift_round(rounding, expected):
    result = shift_round(np.array([5, 6, 7, -5, -7]), 1, rounding)
    np.testing.assert_array_equal(result, expected)


def test_shift_round_nearest_even_above_half():
    # 11 / 4 = 2.75 -> 3 ; 9 / 4 = 2.25 -> 2 ; 10 / 4 = 2.5 -> 2
    result = shift_round(np.array([11, 9, 10]), 2, RoundingMode.NEAREST_EVEN)
    np.testing.assert_array_equal(result, [3, 2, 2])


def test_negative_shift_is_exact_left_shift():
    result = shift_round(np.array([3, -3]), -2, RoundingMode.NEAREST_EVEN)
    np.testing.assert_array_equal(result, [12, -12])


def test_wrap_overflow():
    fmt = FixedPointFormat(4, 0)
    wrapped = apply_overflow(np.array([8, 9, -9, 7, -8, 16]), fmt, OverflowMode.WRAP)
    np.testing.assert_array_equal(wrapped, [-8, -7, 7, 7, -8, 0])


def test_saturate_overflow():
    fmt = FixedPointFormat(4, 0)
    clipped = apply_overflow(np.array([8, 9, -9, 7]), fmt, OverflowMode.SATURATE)
    np.testing.assert_array_equal(clipped, [7, 7, -8, 7])


def test_requantize_to_coarser_format():
    source = FixedPointArray(np.array([5, 6, -5]), FixedPointFormat(8, 2))
    result = source.requantize(FixedPointFormat(8, 1))
    np.testing.assert_array_equal(result.integers, [2, 3, -2])
    assert result.fmt == FixedPointFormat(8, 1)


def test_requantize_to_finer_format_is_exact():
    source = FixedPointArray.from_float([0.75, -0.5], FixedPointFormat(16, 15))
    result = source.requantize(FixedPointFormat(22, 18))
    np.testing.assert_array_equal(result.to_float(), [0.75, -0.5])


def test_requantize_saturates_by_default():
    source = FixedPointArray(np.array([1000]), FixedPointFormat(16, 0))
    result = source.requantize(FixedPointFormat(8, 0))
    assert result.integers[0] == 127
