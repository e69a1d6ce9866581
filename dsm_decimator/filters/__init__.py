"""
Filters Module
==============

Fixed-point arithmetic, FIR coefficient design, the filter stage variant
(CIC, halfband, final FIR) and the chain builder.
"""

from .filter_chain import FilterChain, build_filter_chain
from .filter_stage import FilterStage, StageKind
from .fixed_point import (
    FixedPointArray,
    FixedPointFormat,
    OverflowMode,
    RoundingMode,
)

__all__ = [
    "FilterChain",
    "build_filter_chain",
    "FilterStage",
    "StageKind",
    "FixedPointArray",
    "FixedPointFormat",
    "OverflowMode",
    "RoundingMode",
]
