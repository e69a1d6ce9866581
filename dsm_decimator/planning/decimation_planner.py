"""
Decimation Planner
==================

This module factors an oversampling ratio (OSR) into a three-part
decimation cascade:

    OSR = CIC_R x 2^HB_COUNT x FIR_R

Stage preference follows hardware cost:
1. CIC decimation is multiplier-free, so the largest power-of-two CIC
   factor that divides the OSR is taken first.
2. Halfband FIRs decimate by 2 with roughly half the multipliers of a
   general FIR (symmetry plus structurally zero taps), so every remaining
   factor of 2 becomes a halfband stage.
3. A single general FIR absorbs whatever odd residue is left. FIR_R may
   be 1, in which case the final FIR only shapes the spectrum.

Examples:
    OSR = 4096 -> CIC(256) x 2^4 x FIR(1)
    OSR = 4100 -> CIC(4)   x 2^0 x FIR(1025)
    OSR = 3    -> CIC(3)   x 2^0 x FIR(1)

The decomposition is deterministic but not globally optimal.
"""

import logging
import numbers
from dataclasses import dataclass
from typing import List

from ..exceptions import DecimationMismatchError, InvalidOSRError

logger = logging.getLogger(__name__)

# Power-of-two CIC factors, in order of preference
CIC_DECIMATION_CANDIDATES: tuple = (256, 128, 64, 32, 16, 8, 4, 2)

# Upper bound for a prime CIC factor when no power of two divides the OSR
MAXIMUM_PRIME_CIC_FACTOR: int = 64


@dataclass(frozen=True)
class DecimationPlan:
    """
    Factorization of an OSR into CIC, halfband and final FIR decimation.

    Attributes:
        cic_r: CIC decimation factor (>= 2).
        hb_count: Number of decimate-by-2 halfband stages (>= 0).
        fir_r: Final FIR decimation factor (>= 1).
        total_decimation: Product of all factors, equal to the OSR.
        description: Human-readable chain, e.g. "CIC(256)→4xHB→FIR(1)".
    """
    cic_r: int
    hb_count: int
    fir_r: int
    total_decimation: int
    description: str

    @property
    def halfband_decimation(self) -> int:
        """Combined decimation of all halfband stages."""
        return 2 ** self.hb_count


def prime_factors(value: int) -> List[int]:
    """Return the prime factors of value in ascending order, with repeats."""
    factors: List[int] = []
    divisor: int = 2
    remaining: int = value
    while divisor * divisor <= remaining:
        while remaining % divisor == 0:
            factors.append(divisor)
            remaining //= divisor
        divisor += 1
    if remaining > 1:
        factors.append(remaining)
    return factors


def _select_cic_decimation(osr: int) -> int:
    """Pick the CIC factor: a power of two if one divides, else a prime factor."""
    for candidate in CIC_DECIMATION_CANDIDATES:
        if osr % candidate == 0:
            return candidate

    factors: List[int] = prime_factors(osr)
    small_factors: List[int] = [f for f in factors if f <= MAXIMUM_PRIME_CIC_FACTOR]
    if small_factors:
        return max(small_factors)

    # Every prime factor exceeds the bound; the smallest one still divides
    return factors[0]


def plan_decimation(osr: int) -> DecimationPlan:
    """
    Factor an oversampling ratio into a CIC/halfband/FIR decimation plan.

    Args:
        osr: Integer oversampling ratio (>= 2).

    Returns:
        DecimationPlan: With cic_r * 2^hb_count * fir_r == osr.

    Raises:
        InvalidOSRError: If osr is not an integer or is below 2.
        DecimationMismatchError: If the factors do not multiply back to osr.
    """
    if isinstance(osr, bool) or not isinstance(osr, numbers.Integral):
        if not (isinstance(osr, float) and osr.is_integer()):
            raise InvalidOSRError(f"OSR must be an integer, got {osr!r}")
    osr = int(osr)
    if osr < 2:
        raise InvalidOSRError(f"OSR must be >= 2, got {osr}")

    # ===== STEP 1: CIC DECIMATION =====
    cic_r: int = _select_cic_decimation(osr)

    # ===== STEP 2: HALFBAND STAGES =====
    remaining: int = osr // cic_r
    hb_count: int = 0
    while remaining % 2 == 0 and remaining > 1:
        hb_count += 1
        remaining //= 2

    # ===== STEP 3: FINAL FIR TAKES THE RESIDUE =====
    fir_r: int = remaining

    total_decimation: int = cic_r * (2 ** hb_count) * fir_r
    if total_decimation != osr:
        raise DecimationMismatchError(
            f"Decimation mismatch: {cic_r} x 2^{hb_count} x {fir_r} = "
            f"{total_decimation}, expected {osr}"
        )

    plan = DecimationPlan(
        cic_r=cic_r,
        hb_count=hb_count,
        fir_r=fir_r,
        total_decimation=total_decimation,
        description=f"CIC({cic_r})→{hb_count}xHB→FIR({fir_r})"
    )
    logger.debug("OSR %d planned as %s", osr, plan.description)
    return plan
