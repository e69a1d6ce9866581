"""Tests for bitstream normalization, padding and loading."""

import numpy as np
import pytest

from dsm_decimator.exceptions import EmptyBitstreamError
from dsm_decimator.signals.bitstream_preparer import (
    load_bitstream,
    pad_bitstream,
    prepare_bitstream,
)


def test_unipolar_is_converted_to_bipolar():
    prepared = prepare_bitstream([0, 1, 1, 0, 1])
    np.testing.assert_array_equal(prepared, [-1.0, 1.0, 1.0, -1.0, 1.0])


def test_bipolar_passes_through():
    prepared = prepare_bitstream([-1.0, 1.0, 0.5, -0.25])
    np.testing.assert_array_equal(prepared, [-1.0, 1.0, 0.5, -0.25])


def test_scaled_bipolar_is_normalized_by_peak():
    prepared = prepare_bitstream([-3.3, 3.3, 3.3, -3.3])
    np.testing.assert_allclose(prepared, [-1.0, 1.0, 1.0, -1.0])


def test_values_up_to_threshold_are_not_rescaled():
    prepared = prepare_bitstream([-1.5, 1.5])
    np.testing.assert_array_equal(prepared, [-1.5, 1.5])


def test_non_finite_samples_are_dropped():
    prepared = prepare_bitstream([1.0, np.nan, -1.0, np.inf, -np.inf, 1.0])
    np.testing.assert_array_equal(prepared, [1.0, -1.0, 1.0])


@pytest.mark.parametrize("raw", [[], [np.nan], [np.nan, np.inf]])
def test_empty_bitstream_raises(raw):
    with pytest.raises(EmptyBitstreamError):
        prepare_bitstream(raw)


def test_prepared_bitstream_is_read_only():
    prepared = prepare_bitstream([-1.0, 1.0])
    with pytest.raises(ValueError):
        prepared[0] = 0.0


def test_prepare_does_not_alias_caller_array():
    raw = np.array([-1.0, 1.0, -1.0])
    prepared = prepare_bitstream(raw)
    raw[0] = 5.0
    assert prepared[0] == -1.0


@pytest.mark.parametrize(
    "length, decimation, expected_length",
    [(10, 4, 12), (12, 4, 12), (1, 256, 256), (257, 256, 512), (7, 1, 7)],
)
def test_pad_to_multiple_of_decimation(length, decimation, expected_length):
    bitstream = prepare_bitstream(np.ones(length))
    padded = pad_bitstream(bitstream, decimation)
    assert len(padded) == expected_length
    np.testing.assert_array_equal(padded[:length], bitstream)
    assert np.all(padded[length:] == 0.0)


def test_pad_returns_new_writable_array():
    bitstream = prepare_bitstream(np.ones(8))
    padded = pad_bitstream(bitstream, 4)
    assert padded is not bitstream
    padded[0] = -1.0
    assert bitstream[0] == 1.0
    assert len(bitstream) == 8


def test_pad_rejects_non_positive_decimation():
    with pytest.raises(ValueError):
        pad_bitstream(prepare_bitstream([1.0]), 0)


def test_load_npy(tmp_path):
    path = tmp_path / "capture.npy"
    np.save(path, np.array([[0, 1], [1, 0]]))
    np.testing.assert_array_equal(load_bitstream(path), [0.0, 1.0, 1.0, 0.0])


def test_load_text_with_commas_and_whitespace(tmp_path):
    path = tmp_path / "capture.txt"
    path.write_text("1, -1, 1\n-1 1\n\n-1\n")
    np.testing.assert_array_equal(load_bitstream(path), [1, -1, 1, -1, 1, -1])


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_bitstream(tmp_path / "missing.npy")
