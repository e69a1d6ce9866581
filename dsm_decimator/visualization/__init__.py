"""
Visualization Module
====================

This module provides plotting functions for sweep trade-offs and
decimated output spectra.
"""

from .sweep_plotter import SweepPlotter

__all__ = ["SweepPlotter"]
