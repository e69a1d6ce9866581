"""Tests for the reference signal and test bitstream sources."""

import numpy as np
import pytest

from dsm_decimator.signals.digital_signal_generator import DigitalSignalGenerator


@pytest.fixture
def generator():
    return DigitalSignalGenerator(sampling_frequency_hz=1.0e6, number_of_samples=100000)


def test_quantized_sinusoid_lies_on_grid(generator):
    tone = generator.generate_sinusoidal_signal(1000.0, amplitude=0.5)
    step = 2.0 ** -15
    np.testing.assert_array_equal(tone / step, np.round(tone / step))
    assert np.max(np.abs(tone)) == pytest.approx(0.5, abs=step)


def test_dithered_bitstream_is_bipolar(generator):
    bits = generator.generate_dithered_bitstream(1000.0, amplitude=0.5, seed=2)
    assert set(np.unique(bits)) == {-1.0, 1.0}
    assert len(bits) == 100000


def test_dithered_bitstream_unipolar(generator):
    bits = generator.generate_dithered_bitstream(1000.0, seed=2, unipolar=True)
    assert set(np.unique(bits)) == {0.0, 1.0}


def test_dithered_bitstream_mean_follows_tone(generator):
    bits = generator.generate_dithered_bitstream(100.0, amplitude=0.5, seed=4)
    tone = 0.5 * np.sin(2 * np.pi * 100.0 * generator.get_time_axis())
    # Average over 1000-sample blocks (one tenth of a tone period)
    block_means = bits.reshape(-1, 1000).mean(axis=1)
    tone_means = tone.reshape(-1, 1000).mean(axis=1)
    assert np.max(np.abs(block_means - tone_means)) < 0.15


def test_dithered_bitstream_is_reproducible(generator):
    first = generator.generate_dithered_bitstream(1000.0, seed=9)
    second = generator.generate_dithered_bitstream(1000.0, seed=9)
    np.testing.assert_array_equal(first, second)


def test_tone_with_noise_has_requested_snr(generator):
    noisy = generator.generate_tone_with_noise(1000.0, 0.5, 40.0, seed=5)
    tone = 0.5 * np.sin(2 * np.pi * 1000.0 * generator.get_time_axis())
    noise = noisy - tone
    measured_snr = 10 * np.log10(np.mean(tone ** 2) / np.mean(noise ** 2))
    assert measured_snr == pytest.approx(40.0, abs=0.2)


@pytest.mark.parametrize(
    "frequency, amplitude",
    [(0.0, 0.5), (-10.0, 0.5), (5.0e5, 0.5), (1000.0, 0.0), (1000.0, 1.5)],
)
def test_invalid_tone_raises(generator, frequency, amplitude):
    with pytest.raises(ValueError):
        generator.generate_dithered_bitstream(frequency, amplitude)


@pytest.mark.parametrize(
    "rate, samples, word_length",
    [(0.0, 100, 16), (1.0e6, 0, 16), (1.0e6, 100, 1)],
)
def test_invalid_generator_raises(rate, samples, word_length):
    with pytest.raises(ValueError):
        DigitalSignalGenerator(rate, samples, word_length)


def test_signal_parameters_summary(generator):
    summary = generator.get_signal_parameters_summary(1000.0)
    assert summary["samples_per_period"] == pytest.approx(1000.0)
    assert summary["number_of_periods"] == pytest.approx(100.0)
    assert summary["duration_seconds"] == pytest.approx(0.1)
