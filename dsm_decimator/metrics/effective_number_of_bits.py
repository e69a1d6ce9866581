"""
Effective Number of Bits (ENOB) Computation
===========================================

ENOB is a measure of the dynamic performance of an ADC. It represents
the number of bits of an ideal converter that would have the same SNDR
as the device under test.

The relationship between SNDR and ENOB is:

    SNDR (dB) = 6.02 * ENOB + 1.76

Therefore:

    ENOB = (SNDR - 1.76) / 6.02

Where:
- 6.02 dB comes from the fact that each bit doubles the number of
  quantization levels, improving SNR by 20*log10(2) ≈ 6.02 dB
- 1.76 dB is a correction factor for quantization noise in an ideal
  converter (derived from the quantization noise power of a full-scale
  sine wave)

REFERENCE CURVE FOR DECIMATED 1-BIT STREAMS:
============================================

Sweep results are compared against an empirical reference

    ENOB_ref ≈ 1.76 * log2(OSR) - 3.5

which tracks what a practical 1-bit modulator plus decimation chain
delivers as the oversampling ratio grows. It is a guide for plots and
tables, not a bound.
"""

import numpy as np

REFERENCE_ENOB_SLOPE: float = 1.76
REFERENCE_ENOB_OFFSET: float = -3.5


def compute_effective_number_of_bits(signal_to_noise_ratio_db: float) -> float:
    """
    Compute ENOB from measured SNDR.

    Formula:  ENOB = (SNDR - 1.76) / 6.02

    Args:
        signal_to_noise_ratio_db: The measured SNDR in decibels.

    Returns:
        float:  Effective number of bits.

    Example:
        SNDR = 98 dB → ENOB = (98 - 1.76) / 6.02 ≈ 16 bits
    """
    enob: float = (signal_to_noise_ratio_db - 1.76) / 6.02

    return enob


def compute_snr_from_enob(enob: float) -> float:
    """
    Compute SNDR from ENOB (inverse of compute_effective_number_of_bits).

    Formula: SNDR = 6.02 * ENOB + 1.76

    Args:
        enob: Effective number of bits.

    Returns:
        float:  SNDR in decibels.
    """
    snr_db: float = 6.02 * enob + 1.76
    return snr_db


def estimate_reference_enob(oversampling_ratio) -> np.ndarray:
    """
    Empirical reference ENOB for a given OSR (scalar or array).

    Raises:
        ValueError: If any OSR is below 1.
    """
    osr = np.asarray(oversampling_ratio, dtype=np.float64)
    if np.any(osr < 1):
        raise ValueError("Oversampling ratio must be at least 1")

    reference = REFERENCE_ENOB_SLOPE * np.log2(osr) + REFERENCE_ENOB_OFFSET
    if reference.ndim == 0:
        return float(reference)
    return reference


def print_reference_enob_table(osr_values: list | None = None) -> None:
    """
    Print the reference ENOB and matching SNDR for a list of OSRs.

    Args:
        osr_values: List of OSR values to include.
    """
    if osr_values is None:
        osr_values = [32, 64, 128, 256, 512, 1024, 2048, 4096, 8192, 16384]

    print("\n" + "=" * 40)
    print("REFERENCE ENOB FOR DECIMATED 1-BIT STREAMS")
    print("=" * 40)
    print(f"{'OSR':<10}{'ENOB (bits)':<15}{'SNDR (dB)':<15}")
    print("-" * 40)

    for osr in osr_values:
        enob = estimate_reference_enob(osr)
        print(f"{osr:<10}{enob:<15.2f}{compute_snr_from_enob(enob):<15.1f}")

    print("=" * 40)
