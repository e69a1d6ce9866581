"""
Multirate Processor
===================

This module runs a 1-bit bitstream through a FilterChain using explicit
fixed-point arithmetic.

Signal flow:
    [Bitstream ±1] → Q2.0 → [CIC] → Q58.0 → rescale by 2^-gain × 0.85 →
    Q4.18 → [HB1] → ... → [HBk] → [FIR] → [Decimated output]

The 0.85 factor leaves headroom so halfband and FIR overshoot cannot
saturate the 22-bit working format.

Each stage produces ceil(input_length / decimation) samples. The same
rounding mode is used at every requantization point. The processor holds
no state between calls: the same input always gives the same output.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ..exceptions import InvalidOutputError
from ..filters.filter_chain import FilterChain
from ..filters.fixed_point import FixedPointArray, FixedPointFormat, RoundingMode

logger = logging.getLogger(__name__)

# Signed 2-bit integers {-2, -1, 0, 1}: exactly holds {-1, 0, +1}
BITSTREAM_FORMAT = FixedPointFormat(word_length=2, fraction_length=0)

CIC_HEADROOM: float = 0.85
MINIMUM_OUTPUT_SAMPLES: int = 100


@dataclass
class StageTrace:
    """Output length and rate of one processed stage."""
    label: str
    decimation: int
    output_length: int
    output_format: str
    sample_rate_hz: Optional[float] = None


@dataclass
class ProcessingTrace:
    """
    Result of a traced run through a filter chain.

    Attributes:
        output: Decimated output samples (float).
        stages: Per-stage trace, in processing order.
        input_length: Number of bitstream samples processed.
        output_rate_hz: Output sample rate, if the modulator rate was given.
    """
    output: np.ndarray
    input_length: int
    stages: List[StageTrace] = field(default_factory=list)
    output_rate_hz: Optional[float] = None

    def print_summary(self) -> None:
        print(f"\nProcessed {self.input_length} input samples")
        for stage in self.stages:
            rate: str = f"{stage.sample_rate_hz:,.1f} Hz" if stage.sample_rate_hz else "-"
            print(
                f"  {stage.label:<5} R={stage.decimation:<5} "
                f"{stage.output_length:>9} samples  {rate:>16}  {stage.output_format}"
            )


class MultirateProcessor:
    """
    Bit-true simulator of a decimation chain.

    Args:
        rounding: Rounding mode used at every requantization point.
    """

    def __init__(self, rounding: RoundingMode = RoundingMode.NEAREST_EVEN) -> None:
        self.rounding: RoundingMode = rounding

    def process(
        self,
        bitstream: np.ndarray,
        chain: FilterChain,
        modulator_rate_hz: Optional[float] = None,
        trace: bool = False
    ):
        """
        Decimate a bitstream through every stage of the chain.

        Args:
            bitstream: Bipolar samples, normally ±1 with zero padding.
                Other values are rounded into Q2.0.
            chain: Filter chain to apply.
            modulator_rate_hz: Input sample rate, used for trace rates.
            trace: Return a ProcessingTrace instead of the bare output.

        Returns:
            np.ndarray or ProcessingTrace: Output at modulator_rate / OSR.

        Raises:
            InvalidOutputError: If the output is empty, non-finite or
                shorter than MINIMUM_OUTPUT_SAMPLES.
        """
        stage_traces: List[StageTrace] = []
        current_rate: Optional[float] = modulator_rate_hz

        # ===== STEP 1: BITSTREAM TO Q2.0 =====
        samples: FixedPointArray = FixedPointArray.from_float(
            bitstream, BITSTREAM_FORMAT, self.rounding
        )

        # ===== STEP 2: CIC =====
        cic_stage = chain.cic_stage
        samples = cic_stage.apply(samples, self.rounding)
        current_rate = self._record(stage_traces, cic_stage, samples, current_rate)

        # ===== STEP 3: REMOVE CIC GAIN =====
        scale: float = 2.0 ** (-cic_stage.gain_bits) * CIC_HEADROOM
        # Every FIR-type stage shares the chain's 22-bit working format
        data_format: FixedPointFormat = chain.output_format
        samples = FixedPointArray.from_float(samples.to_float() * scale, data_format, self.rounding)

        # ===== STEP 4: HALFBAND AND FINAL FIR STAGES =====
        for stage in chain.stages[1:]:
            samples = stage.apply(samples, self.rounding)
            current_rate = self._record(stage_traces, stage, samples, current_rate)

        output: np.ndarray = samples.to_float()
        self._validate_output(output)

        if not trace:
            return output
        return ProcessingTrace(
            output=output,
            input_length=len(bitstream),
            stages=stage_traces,
            output_rate_hz=current_rate
        )

    @staticmethod
    def _record(
        stage_traces: List[StageTrace],
        stage,
        samples: FixedPointArray,
        input_rate_hz: Optional[float]
    ) -> Optional[float]:
        output_rate: Optional[float] = None
        if input_rate_hz is not None:
            output_rate = input_rate_hz / stage.decimation

        stage_traces.append(StageTrace(
            label=stage.label,
            decimation=stage.decimation,
            output_length=len(samples),
            output_format=str(samples.fmt),
            sample_rate_hz=output_rate
        ))
        logger.debug("%s: %d samples out (%s)", stage.label, len(samples), samples.fmt)
        return output_rate

    @staticmethod
    def _validate_output(output: np.ndarray) -> None:
        if output.size == 0:
            raise InvalidOutputError("Decimated output is empty")
        if not np.any(np.isfinite(output)):
            raise InvalidOutputError("Decimated output has no finite samples")
        if output.size < MINIMUM_OUTPUT_SAMPLES:
            raise InvalidOutputError(
                f"Decimated output has {output.size} samples, "
                f"need at least {MINIMUM_OUTPUT_SAMPLES}"
            )
