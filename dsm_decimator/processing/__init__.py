"""
Processing Module
=================

Bit-true simulation of a decimation chain on a 1-bit bitstream.
"""

from .multirate_processor import MultirateProcessor, ProcessingTrace, StageTrace

__all__ = ["MultirateProcessor", "ProcessingTrace", "StageTrace"]
