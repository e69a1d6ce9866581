"""
Signals Module
==============

This module contains bitstream preparation and loading, plus reference
signal sources for testing the decimation chain.
"""

from .bitstream_preparer import prepare_bitstream, pad_bitstream, load_bitstream
from .digital_signal_generator import DigitalSignalGenerator

__all__ = [
    "prepare_bitstream",
    "pad_bitstream",
    "load_bitstream",
    "DigitalSignalGenerator"
]
