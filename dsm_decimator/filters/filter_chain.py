"""
Filter Chain Builder
====================

Turns a DecimationPlan into a concrete chain of fixed-point stages:

    CIC(cic_r) -> HB1 -> HB2 -> ... -> HBk -> FIR(fir_r)

CIC STAGE:
==========
    6 sections, differential delay 1, decimation cic_r
    Gain (R*M)^N -> 6*log2(cic_r) bits of growth
    Register width 58 bits; the input occupies 2 bits, so the growth
    must satisfy 2 + ceil(6*log2(cic_r)) <= 58

HALFBAND STAGES:
================
    Stage 1: order 10, transition width 0.15
    Stage 2: order 14, transition width 0.10
    Stage 3: order 18, transition width 0.08
    Stage 4+: order 22, transition width 0.06

    Later stages run at lower rates, where the signal band takes a larger
    share of the spectrum, so they get sharper (longer) filters.

FINAL FIR:
==========
    fir_r > 1:  equiripple, passband 0.35, stopband 0.65, 0.01 dB ripple,
                80 dB attenuation; window-method fallback
    fir_r == 1: 27-tap window low-pass (cutoff 0.4), no decimation

ARITHMETIC:
===========
    Coefficients:  Q1.15  (16 bit)
    Products:      38 bit, 33 fractional
    Accumulators:  54 bit, 33 fractional
    Outputs:       22 bit, configurable fraction (default 18 -> Q4.18)
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from ..exceptions import FilterDesignFailedError
from ..planning.decimation_planner import DecimationPlan
from .filter_design import (
    SHAPING_FIR_TAPS,
    DesignNotConverged,
    design_halfband_equiripple,
    design_halfband_window,
    design_lowpass_equiripple,
    design_lowpass_window,
    fallback_fir_taps,
)
from .filter_stage import FilterStage, StageKind
from .fixed_point import FixedPointArray, FixedPointFormat, RoundingMode

logger = logging.getLogger(__name__)

CIC_SECTIONS: int = 6
CIC_DIFFERENTIAL_DELAY: int = 1
CIC_INPUT_BITS: int = 2
CIC_OUTPUT_FORMAT = FixedPointFormat(word_length=58, fraction_length=0)

COEFFICIENT_FORMAT = FixedPointFormat(word_length=16, fraction_length=15)
PRODUCT_FORMAT = FixedPointFormat(word_length=38, fraction_length=33)
ACCUMULATOR_FORMAT = FixedPointFormat(word_length=54, fraction_length=33)
OUTPUT_WORD_LENGTH: int = 22
DEFAULT_OUTPUT_FRACTION_LENGTH: int = 18

# (order, transition width) per halfband stage; the last entry repeats
HALFBAND_DESIGNS: Tuple[Tuple[int, float], ...] = (
    (10, 0.15),
    (14, 0.10),
    (18, 0.08),
    (22, 0.06),
)


@dataclass(frozen=True, eq=False)
class FilterChain:
    """
    Ordered stages implementing one decimation plan.

    Attributes:
        stages: Stages in processing order; the first is always the CIC.
        description: Architecture string, e.g. "CIC(256)→4xHB→FIR(1)".
    """
    stages: Tuple[FilterStage, ...]
    description: str

    def __post_init__(self) -> None:
        if not self.stages or self.stages[0].kind is not StageKind.CIC:
            raise ValueError("A filter chain must start with a CIC stage")

    @property
    def total_taps(self) -> int:
        """Coefficient count over all non-CIC stages."""
        return sum(stage.tap_count for stage in self.stages)

    @property
    def multiplier_count(self) -> int:
        return sum(stage.multiplier_count for stage in self.stages)

    @property
    def total_decimation(self) -> int:
        return int(np.prod([stage.decimation for stage in self.stages]))

    @property
    def cic_stage(self) -> FilterStage:
        return self.stages[0]

    @property
    def output_format(self) -> FixedPointFormat:
        return self.stages[-1].output_format

    def describe_stages(self) -> List[dict]:
        """Per-stage rows: decimation, taps, multipliers and formats."""
        return [stage.describe() for stage in self.stages]

    def print_summary(self) -> None:
        """Print the chain architecture and per-stage cost."""
        print(f"\nFilter chain: {self.description}")
        print(f"  Total decimation: {self.total_decimation}")
        print(f"  Total taps:       {self.total_taps}")
        print(f"  Multipliers:      {self.multiplier_count}")
        for row in self.describe_stages():
            print(
                f"  {row['label']:<5} {row['kind']:<10} R={row['decimation']:<5} "
                f"taps={row['taps']:<4} mult={row['multipliers']:<4} "
                f"out={row['output_format']}"
            )


def working_format(output_fraction_length: int = DEFAULT_OUTPUT_FRACTION_LENGTH) -> FixedPointFormat:
    """22-bit data format shared by every FIR-type stage output."""
    if not 0 <= output_fraction_length < OUTPUT_WORD_LENGTH:
        raise ValueError(
            f"Output fraction length must be in [0, {OUTPUT_WORD_LENGTH - 1}], "
            f"got {output_fraction_length}"
        )
    return FixedPointFormat(OUTPUT_WORD_LENGTH, output_fraction_length)


def quantize_coefficients(coefficients: np.ndarray) -> FixedPointArray:
    """Round real coefficients to Q1.15 (saturating at the format limits)."""
    return FixedPointArray.from_float(coefficients, COEFFICIENT_FORMAT, RoundingMode.NEAREST_EVEN)


def build_cic_stage(decimation: int) -> FilterStage:
    """
    Build the CIC stage and check its register growth.

    Raises:
        FilterDesignFailedError: If the growth does not fit 58 bits.
    """
    growth_bits: int = int(np.ceil(CIC_SECTIONS * np.log2(decimation * CIC_DIFFERENTIAL_DELAY)))
    required_bits: int = CIC_INPUT_BITS + growth_bits
    if required_bits > CIC_OUTPUT_FORMAT.word_length:
        raise FilterDesignFailedError(
            f"CIC decimation {decimation} needs {required_bits} register bits, "
            f"only {CIC_OUTPUT_FORMAT.word_length} available"
        )

    return FilterStage(
        kind=StageKind.CIC,
        label="CIC",
        decimation=decimation,
        output_format=CIC_OUTPUT_FORMAT,
        number_of_sections=CIC_SECTIONS,
        differential_delay=CIC_DIFFERENTIAL_DELAY,
        design_method="integrator-comb"
    )


def build_halfband_stage(index: int, output_format: FixedPointFormat) -> FilterStage:
    """
    Build the index-th halfband stage (0-based).

    The equiripple design is tried first, then the window method.

    Raises:
        FilterDesignFailedError: If both designs fail.
    """
    order, transition_width = HALFBAND_DESIGNS[min(index, len(HALFBAND_DESIGNS) - 1)]
    label: str = f"HB{index + 1}"

    try:
        coefficients = design_halfband_equiripple(order, transition_width)
        method: str = "equiripple"
    except DesignNotConverged as primary_error:
        logger.warning("%s: %s; falling back to window design", label, primary_error)
        try:
            coefficients = design_halfband_window(order)
            method = "window"
        except DesignNotConverged as fallback_error:
            raise FilterDesignFailedError(
                f"{label} (order {order}) could not be designed: {fallback_error}"
            ) from fallback_error

    return FilterStage(
        kind=StageKind.HALFBAND,
        label=label,
        decimation=2,
        output_format=output_format,
        coefficients=quantize_coefficients(coefficients),
        product_format=PRODUCT_FORMAT,
        accumulator_format=ACCUMULATOR_FORMAT,
        design_method=method
    )


def build_final_fir_stage(decimation: int, output_format: FixedPointFormat) -> FilterStage:
    """
    Build the final FIR.

    A decimating FIR uses the equiripple design with a window fallback.
    With decimation 1 the FIR is a fixed 27-tap shaping low-pass.

    Raises:
        FilterDesignFailedError: If no design succeeds.
    """
    if decimation == 1:
        try:
            coefficients = design_lowpass_window(SHAPING_FIR_TAPS)
        except DesignNotConverged as error:
            raise FilterDesignFailedError(f"Shaping FIR could not be designed: {error}") from error
        method: str = "window"
    else:
        try:
            coefficients = design_lowpass_equiripple()
            method = "equiripple"
        except DesignNotConverged as primary_error:
            number_of_taps: int = fallback_fir_taps(decimation)
            logger.warning(
                "FIR(%d): %s; falling back to %d-tap window design",
                decimation, primary_error, number_of_taps
            )
            try:
                coefficients = design_lowpass_window(number_of_taps)
                method = "window"
            except DesignNotConverged as fallback_error:
                raise FilterDesignFailedError(
                    f"Final FIR (R={decimation}) could not be designed: {fallback_error}"
                ) from fallback_error

    return FilterStage(
        kind=StageKind.FINAL_FIR,
        label="FIR",
        decimation=decimation,
        output_format=output_format,
        coefficients=quantize_coefficients(coefficients),
        product_format=PRODUCT_FORMAT,
        accumulator_format=ACCUMULATOR_FORMAT,
        design_method=method
    )


def build_filter_chain(
    plan: DecimationPlan,
    output_fraction_length: int = DEFAULT_OUTPUT_FRACTION_LENGTH
) -> FilterChain:
    """
    Design every stage of a decimation plan.

    Args:
        plan: Decimation plan to implement.
        output_fraction_length: Fraction bits of the 22-bit stage outputs.

    Returns:
        FilterChain: CIC, plan.hb_count halfbands and the final FIR.

    Raises:
        FilterDesignFailedError: If any stage cannot be designed.
        ValueError: If output_fraction_length is out of range.
    """
    data_format: FixedPointFormat = working_format(output_fraction_length)

    stages: List[FilterStage] = [build_cic_stage(plan.cic_r)]
    for index in range(plan.hb_count):
        stages.append(build_halfband_stage(index, data_format))
    stages.append(build_final_fir_stage(plan.fir_r, data_format))

    chain = FilterChain(stages=tuple(stages), description=plan.description)
    logger.debug(
        "Built %s: %d taps, %d multipliers, output %s",
        chain.description, chain.total_taps, chain.multiplier_count, data_format
    )
    return chain
