"""
Planning Module
===============

This module factors an oversampling ratio into a CIC, halfband and
final FIR decimation cascade.
"""

from .decimation_planner import DecimationPlan, plan_decimation, prime_factors

__all__ = ["DecimationPlan", "plan_decimation", "prime_factors"]
