"""
Metrics Module
==============

This module contains functions for calculating performance metrics:
- SNDR, SFDR and noise floor from the output spectrum
- ENOB (Effective Number of Bits) and its reference curve
"""

from .effective_number_of_bits import (
    compute_effective_number_of_bits,
    compute_snr_from_enob,
    estimate_reference_enob,
    print_reference_enob_table
)
from .spectral_analyzer import SpectralMetrics, analyze_spectrum

__all__ = [
    "compute_effective_number_of_bits",
    "compute_snr_from_enob",
    "estimate_reference_enob",
    "print_reference_enob_table",
    "SpectralMetrics",
    "analyze_spectrum"
]
