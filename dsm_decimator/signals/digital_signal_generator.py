"""
Digital Signal Generator
========================

This module provides test signal sources for exercising the decimation
chain without a hardware modulator or simulator attached.

Three kinds of signals are provided:
1. Quantized sinusoids (finite word length reference tones)
2. Tone plus white noise with a known SNR (analyzer validation)
3. Dithered 1-bit bitstreams at the modulator rate

The 1-bit source is a memoryless dithered comparator: each output bit is
sign(x[n] + u[n]) with u uniform in [-1, 1). Its expected value equals
x[n] for |x| <= 1, so the decimated output carries the tone. It does NOT
noise-shape; the quantization error is white. Real modulator bitstreams
should be loaded with signals.load_bitstream().
"""

import numpy as np
from typing import Dict, Optional


class DigitalSignalGenerator:
    """
    Generator for reference signals at a fixed sampling rate.

    Usage:
        generator = DigitalSignalGenerator(
            sampling_frequency_hz=8.192e6,
            number_of_samples=2**22
        )
        bitstream = generator.generate_dithered_bitstream(
            signal_frequency_hz=31.25, amplitude=0.5, seed=1
        )

    Attributes:
        sampling_frequency_hz (float): Sample rate of generated signals.
        number_of_samples (int): Length of generated signals.
        word_length_bits (int): Word length used by the quantized sinusoid.
    """

    def __init__(
        self,
        sampling_frequency_hz: float,
        number_of_samples: int,
        word_length_bits: int = 16
    ) -> None:
        """
        Initialize the signal generator.

        Args:
            sampling_frequency_hz: Sample rate in Hz.
            number_of_samples: Number of samples per generated signal.
            word_length_bits: Word length for quantized sinusoids.
        """
        if sampling_frequency_hz <= 0:
            raise ValueError(
                f"Sampling frequency must be positive. Received: {sampling_frequency_hz} Hz"
            )
        if number_of_samples < 1:
            raise ValueError(
                f"Number of samples must be at least 1. Received: {number_of_samples}"
            )
        if word_length_bits < 2:
            raise ValueError(
                f"Word length must be at least 2 bits. Received: {word_length_bits}"
            )

        self.sampling_frequency_hz: float = sampling_frequency_hz
        self.number_of_samples: int = number_of_samples
        self.word_length_bits: int = word_length_bits

        # Step size of a signed word covering [-1, 1)
        self.quantization_step_size: float = 2.0 ** (1 - word_length_bits)

        self.time_axis_seconds: np.ndarray = (
            np.arange(self.number_of_samples) / self.sampling_frequency_hz
        )

    def _validate_tone(self, signal_frequency_hz: float, amplitude: float) -> None:
        """Check the Nyquist criterion and amplitude range."""
        nyquist_frequency_hz: float = self.sampling_frequency_hz / 2.0
        if signal_frequency_hz <= 0 or signal_frequency_hz >= nyquist_frequency_hz:
            raise ValueError(
                f"Signal frequency ({signal_frequency_hz} Hz) must be in "
                f"(0, {nyquist_frequency_hz}) Hz."
            )
        if amplitude <= 0 or amplitude > 1.0:
            raise ValueError(f"Amplitude must be in range (0, 1]. Received: {amplitude}")

    def _ideal_sinusoid(
        self,
        signal_frequency_hz: float,
        amplitude: float,
        phase_radians: float
    ) -> np.ndarray:
        angular_frequency: float = 2.0 * np.pi * signal_frequency_hz
        return amplitude * np.sin(angular_frequency * self.time_axis_seconds + phase_radians)

    def generate_sinusoidal_signal(
        self,
        signal_frequency_hz: float,
        amplitude: float = 0.5,
        phase_radians: float = 0.0
    ) -> np.ndarray:
        """
        Generate a sinusoid quantized to the configured word length.

        Values are rounded to the nearest multiple of 2^(1 - word_length)
        and clipped to the signed range [-1, 1 - step].

        Args:
            signal_frequency_hz: Tone frequency in Hz (below Nyquist).
            amplitude: Peak amplitude in (0, 1].
            phase_radians: Initial phase.

        Returns:
            np.ndarray: Quantized sinusoid.
        """
        self._validate_tone(signal_frequency_hz, amplitude)
        ideal_signal = self._ideal_sinusoid(signal_frequency_hz, amplitude, phase_radians)

        step: float = self.quantization_step_size
        quantized: np.ndarray = np.round(ideal_signal / step) * step
        return np.clip(quantized, -1.0, 1.0 - step)

    def generate_tone_with_noise(
        self,
        signal_frequency_hz: float,
        amplitude: float,
        signal_to_noise_ratio_db: float,
        seed: Optional[int] = None
    ) -> np.ndarray:
        """
        Generate a pure tone plus white Gaussian noise of known SNR.

        The noise variance is set so that
            10*log10((amplitude^2 / 2) / sigma^2) == signal_to_noise_ratio_db

        Args:
            signal_frequency_hz: Tone frequency in Hz.
            amplitude: Peak amplitude of the tone.
            signal_to_noise_ratio_db: Target SNR in dB.
            seed: Seed for reproducible noise.

        Returns:
            np.ndarray: Tone plus noise (not quantized).
        """
        self._validate_tone(signal_frequency_hz, amplitude)
        rng = np.random.default_rng(seed)

        signal_power: float = amplitude ** 2 / 2.0
        noise_power: float = signal_power / (10.0 ** (signal_to_noise_ratio_db / 10.0))

        tone = self._ideal_sinusoid(signal_frequency_hz, amplitude, 0.0)
        noise = rng.normal(0.0, np.sqrt(noise_power), self.number_of_samples)
        return tone + noise

    def generate_dithered_bitstream(
        self,
        signal_frequency_hz: float,
        amplitude: float = 0.5,
        seed: Optional[int] = None,
        unipolar: bool = False
    ) -> np.ndarray:
        """
        Generate a 1-bit stream whose local mean follows a sinusoid.

        Args:
            signal_frequency_hz: Tone frequency in Hz.
            amplitude: Peak amplitude of the encoded tone (0, 1].
            seed: Seed for the dither sequence.
            unipolar: If True, emit {0, 1} instead of {-1, +1}.

        Returns:
            np.ndarray: The bitstream at the generator's sampling rate.
        """
        self._validate_tone(signal_frequency_hz, amplitude)
        rng = np.random.default_rng(seed)

        tone = self._ideal_sinusoid(signal_frequency_hz, amplitude, 0.0)
        dither = rng.uniform(-1.0, 1.0, self.number_of_samples)
        bits: np.ndarray = np.where(tone + dither >= 0.0, 1.0, -1.0)

        if unipolar:
            return (bits + 1.0) / 2.0
        return bits

    def get_time_axis(self) -> np.ndarray:
        """Return the time axis for plotting."""
        return self.time_axis_seconds.copy()

    def get_signal_parameters_summary(self, signal_frequency_hz: float) -> Dict[str, float]:
        """
        Summarize timing parameters for a tone at this sampling rate.

        Args:
            signal_frequency_hz: Tone frequency in Hz.

        Returns:
            dict: Samples per period, number of periods and duration.
        """
        duration_seconds: float = self.number_of_samples / self.sampling_frequency_hz
        return {
            "sampling_frequency_hz": self.sampling_frequency_hz,
            "signal_frequency_hz": signal_frequency_hz,
            "samples_per_period": self.sampling_frequency_hz / signal_frequency_hz,
            "number_of_periods": duration_seconds * signal_frequency_hz,
            "duration_seconds": duration_seconds,
        }
