"""
Spectral Analyzer
=================

Measures SNDR, ENOB, SFDR and noise floor of a decimated output from its
power spectrum. No reference signal is needed: the tone is located as the
strongest bin.

Procedure:
1. Discard the filter transient: min(1024, round(10% of length)) samples.
2. FFT length N = max(256, largest power of two <= remaining samples).
   The first min(N, remaining) samples are analysed, zero-padded to N.
3. Remove the DC offset.
4. Apply a Hann window and take the one-sided power spectrum |X|^2,
   bins 0..N/2.
5. Fundamental = strongest bin at index >= 3 (bins 0-2 carry DC leakage).
6. Signal bins = fundamental ± min(20, floor(5% of the one-sided bins)),
   clipped to [3, N/2].
7. Noise = every bin >= 3 outside the signal bins. Harmonics are counted
   as noise, so the ratio is SNDR.

    SNDR = 10*log10(P_signal / P_noise)
    ENOB = (SNDR - 1.76) / 6.02
    SFDR = 10*log10(P_peak / max(P_noise_bin))
    NoiseFloor = 10*log10(mean(P_noise_bin))

If the noise bins hold no power the ratios are infinite (or NaN); these
IEEE values are returned as-is and a warning is logged.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .effective_number_of_bits import compute_effective_number_of_bits

logger = logging.getLogger(__name__)

MAXIMUM_TRANSIENT_SAMPLES: int = 1024
TRANSIENT_FRACTION: float = 0.1
MINIMUM_FFT_LENGTH: int = 256
FIRST_SIGNAL_BIN: int = 3
MAXIMUM_SIGNAL_SPAN_BINS: int = 20
SIGNAL_SPAN_FRACTION: float = 0.05


@dataclass
class SpectralMetrics:
    """
    Results of a spectral analysis.

    The first four fields are the sweep metrics; the rest describe the
    analysis and the output waveform.
    """
    sndr_db: float
    enob_bits: float
    sfdr_db: float
    noise_floor_db: float

    transient_samples: int
    fft_length: int
    signal_bin: int
    signal_bin_range: tuple
    signal_power_db: float
    noise_power_db: float
    dc_offset: float
    rms: float
    peak: float
    crest_factor: float

    power_spectrum: np.ndarray
    output_rate_hz: Optional[float] = None

    @property
    def signal_frequency_hz(self) -> Optional[float]:
        """Frequency of the detected tone, if the output rate is known."""
        if self.output_rate_hz is None:
            return None
        return self.signal_bin * self.output_rate_hz / self.fft_length

    def frequency_axis(self) -> np.ndarray:
        """Bin frequencies in Hz, or in cycles/sample without a rate."""
        rate: float = self.output_rate_hz if self.output_rate_hz is not None else 1.0
        return np.arange(len(self.power_spectrum)) * rate / self.fft_length

    def meets_target(self, target_enob_bits: float = 16.0) -> bool:
        return bool(self.enob_bits >= target_enob_bits)

    def get_summary_dict(self) -> dict:
        return {
            "SNDR (dB)": self.sndr_db,
            "ENOB (bits)": self.enob_bits,
            "SFDR (dB)": self.sfdr_db,
            "Noise Floor (dB)": self.noise_floor_db,
            "Signal Frequency (Hz)": self.signal_frequency_hz,
            "Signal Power (dB)": self.signal_power_db,
            "Noise Power (dB)": self.noise_power_db,
            "DC Offset": self.dc_offset,
            "RMS": self.rms,
            "Peak": self.peak,
            "Crest Factor": self.crest_factor,
            "FFT Length": self.fft_length,
        }

    def print_summary(self, target_enob_bits: float = 16.0) -> None:
        """Print the performance report with the PASS/FAIL status."""
        print("\n" + "=" * 50)
        print("SPECTRAL ANALYSIS")
        print("=" * 50)
        if self.signal_frequency_hz is not None:
            print(f"Signal Frequency         : {self.signal_frequency_hz:.2f} Hz")
        print(f"SNDR                     : {self.sndr_db:.2f} dB")
        print(f"ENOB                     : {self.enob_bits:.2f} bits")
        print(f"SFDR                     : {self.sfdr_db:.2f} dB")
        print(f"Noise Floor              : {self.noise_floor_db:.2f} dB")
        print(f"Signal Power             : {self.signal_power_db:.2f} dB")
        print(f"Noise Power              : {self.noise_power_db:.2f} dB")
        print(f"DC Offset                : {self.dc_offset:.6e}")
        print(f"RMS Value                : {self.rms:.6f}")
        print(f"Peak Value               : {self.peak:.6f}")
        print(f"Crest Factor             : {self.crest_factor:.2f}")
        status: str = "PASS" if self.meets_target(target_enob_bits) else "FAIL"
        print(f"{target_enob_bits:g}-bit target            : {status}")
        print("=" * 50)


def transient_length(number_of_samples: int) -> int:
    """Leading samples discarded as filter transient (round half up)."""
    return min(
        MAXIMUM_TRANSIENT_SAMPLES,
        int(np.floor(TRANSIENT_FRACTION * number_of_samples + 0.5))
    )


def fft_length(number_of_samples: int) -> int:
    """Largest power of two <= number_of_samples, but at least 256."""
    if number_of_samples < MINIMUM_FFT_LENGTH:
        return MINIMUM_FFT_LENGTH
    return 1 << (int(number_of_samples).bit_length() - 1)


def _to_db(power: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(10.0 * np.log10(power))


def analyze_spectrum(samples: np.ndarray, output_rate_hz: Optional[float] = None) -> SpectralMetrics:
    """
    Measure SNDR, ENOB, SFDR and noise floor of a decimated output.

    Args:
        samples: Output samples (float).
        output_rate_hz: Output sample rate, used only to report the tone
            frequency.

    Returns:
        SpectralMetrics: Metrics and the one-sided power spectrum.

    Raises:
        ValueError: If samples is empty or contains non-finite values.
    """
    data: np.ndarray = np.asarray(samples, dtype=np.float64)
    if data.size == 0:
        raise ValueError("Cannot analyse an empty signal")
    if not np.all(np.isfinite(data)):
        raise ValueError("Cannot analyse a signal with non-finite samples")

    # ===== STEP 1: DISCARD TRANSIENT =====
    transient: int = transient_length(len(data))
    steady: np.ndarray = data[transient:]

    # ===== STEP 2: FFT LENGTH AND SEGMENT =====
    n_fft: int = fft_length(len(steady))
    segment: np.ndarray = steady[:min(n_fft, len(steady))]

    # ===== STEP 3: REMOVE DC =====
    dc_offset: float = float(np.mean(segment))
    segment = segment - dc_offset

    # ===== STEP 4: WINDOWED ONE-SIDED POWER SPECTRUM =====
    window: np.ndarray = np.hanning(len(segment))
    spectrum: np.ndarray = np.fft.rfft(segment * window, n=n_fft)
    power: np.ndarray = np.abs(spectrum) ** 2

    # ===== STEP 5: FUNDAMENTAL =====
    signal_bin: int = FIRST_SIGNAL_BIN + int(np.argmax(power[FIRST_SIGNAL_BIN:]))
    peak_power: float = float(power[signal_bin])

    # ===== STEP 6: SIGNAL AND NOISE BINS =====
    span: int = min(MAXIMUM_SIGNAL_SPAN_BINS, int(np.floor(SIGNAL_SPAN_FRACTION * len(power))))
    low_bin: int = max(FIRST_SIGNAL_BIN, signal_bin - span)
    high_bin: int = min(len(power) - 1, signal_bin + span)

    bin_indices: np.ndarray = np.arange(len(power))
    signal_mask: np.ndarray = (bin_indices >= low_bin) & (bin_indices <= high_bin)
    noise_mask: np.ndarray = (bin_indices >= FIRST_SIGNAL_BIN) & ~signal_mask

    signal_power: float = float(np.sum(power[signal_mask]))
    noise_bins: np.ndarray = power[noise_mask]
    noise_power: float = float(np.sum(noise_bins))
    largest_spur: float = float(np.max(noise_bins)) if noise_bins.size else 0.0
    mean_noise: float = float(np.mean(noise_bins)) if noise_bins.size else 0.0

    # ===== STEP 7: METRICS =====
    if noise_power == 0.0:
        logger.warning("Noise bins hold no power; SNDR and SFDR are not finite")

    with np.errstate(divide="ignore", invalid="ignore"):
        sndr_db: float = float(10.0 * np.log10(np.float64(signal_power) / np.float64(noise_power)))
        sfdr_db: float = float(10.0 * np.log10(np.float64(peak_power) / np.float64(largest_spur)))

    rms: float = float(np.std(segment))
    peak: float = float(np.max(np.abs(segment)))
    with np.errstate(divide="ignore", invalid="ignore"):
        crest_factor: float = float(np.float64(peak) / np.float64(rms))

    metrics = SpectralMetrics(
        sndr_db=sndr_db,
        enob_bits=compute_effective_number_of_bits(sndr_db),
        sfdr_db=sfdr_db,
        noise_floor_db=_to_db(mean_noise),
        transient_samples=transient,
        fft_length=n_fft,
        signal_bin=signal_bin,
        signal_bin_range=(low_bin, high_bin),
        signal_power_db=_to_db(signal_power),
        noise_power_db=_to_db(noise_power),
        dc_offset=dc_offset,
        rms=rms,
        peak=peak,
        crest_factor=crest_factor,
        power_spectrum=power,
        output_rate_hz=output_rate_hz
    )
    logger.debug(
        "Spectrum: N=%d, tone bin %d, SNDR %.2f dB, ENOB %.2f bits",
        n_fft, signal_bin, sndr_db, metrics.enob_bits
    )
    return metrics
