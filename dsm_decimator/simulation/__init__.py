"""
Simulation Module
=================

This module provides the sweep orchestration layer that ties together
planning, filter design, bit-true processing and spectral analysis.
"""

from .sweep_controller import (
    SkippedPoint,
    SweepConfiguration,
    SweepController,
    SweepPoint,
    SweepResult
)

__all__ = [
    "SkippedPoint",
    "SweepConfiguration",
    "SweepController",
    "SweepPoint",
    "SweepResult"
]
