"""
Filter Stages
=============

A decimation chain is a sequence of stages of three kinds:

1. CIC (cascaded integrator-comb)
   - N integrators at the input rate, decimation by R, N combs at the
     output rate
   - No multipliers; DC gain (R*M)^N, removed downstream by a shift
   - Registers use two's complement wrap-around: the integrators may
     overflow, yet the comb outputs are exact as long as the final result
     fits the register width (Hogenauer)

2. HALFBAND
   - Symmetric low-pass decimating by 2, every other tap zero

3. FINAL_FIR
   - General symmetric low-pass absorbing the residual decimation
     (or none, when it only shapes the spectrum)

Stages are a tagged variant: one dataclass with a `kind` tag and a
uniform apply() that dispatches on it.

FIR DATAPATH:
=============

    x[n] (data format) * h[k] (coefficient format) -> product format
    sum of products                                -> accumulator format
    accumulator                                    -> output format

Only the outputs kept after decimation are computed:
    y[m] = sum_k h[k] * x[m*R - k]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from .fixed_point import (
    FixedPointArray,
    FixedPointFormat,
    OverflowMode,
    RoundingMode,
    apply_overflow,
    shift_round,
)


class StageKind(Enum):
    CIC = "cic"
    HALFBAND = "halfband"
    FINAL_FIR = "final_fir"


def cic_decimate(
    samples: FixedPointArray,
    decimation: int,
    number_of_sections: int,
    differential_delay: int,
    output_format: FixedPointFormat
) -> FixedPointArray:
    """
    Run a CIC decimator on integer samples.

    Args:
        samples: Input samples (any integer-valued format).
        decimation: Rate change factor R.
        number_of_sections: Number of integrator/comb pairs N.
        differential_delay: Comb delay M in output samples.
        output_format: Register and output format (fraction length must
            match the input's).

    Returns:
        FixedPointArray: ceil(len / R) samples with gain (R*M)^N.
    """
    values: np.ndarray = samples.integers.astype(np.int64)

    # ===== INTEGRATORS (input rate, modulo 2^64) =====
    for _ in range(number_of_sections):
        values = np.cumsum(values, dtype=np.int64)

    # ===== DECIMATION =====
    values = values[::decimation]

    # ===== COMBS (output rate) =====
    for _ in range(number_of_sections):
        delayed = np.zeros_like(values)
        delayed[differential_delay:] = values[:len(values) - differential_delay]
        values = values - delayed

    wrapped = apply_overflow(values, output_format, OverflowMode.WRAP)
    return FixedPointArray(wrapped, output_format)


def fir_decimate(
    samples: FixedPointArray,
    coefficients: FixedPointArray,
    decimation: int,
    product_format: FixedPointFormat,
    accumulator_format: FixedPointFormat,
    output_format: FixedPointFormat,
    rounding: RoundingMode
) -> FixedPointArray:
    """
    Run a decimating FIR with bit-true product and accumulator formats.

    Products and accumulators saturate; the output is rounded with
    `rounding` and saturated into `output_format`.

    Returns:
        FixedPointArray: ceil(len / decimation) output samples.
    """
    data: np.ndarray = samples.integers
    output_indices: np.ndarray = np.arange(0, len(data), decimation)

    product_shift: int = (
        samples.fmt.fraction_length
        + coefficients.fmt.fraction_length
        - product_format.fraction_length
    )
    accumulate_shift: int = product_format.fraction_length - accumulator_format.fraction_length

    accumulator: np.ndarray = np.zeros(len(output_indices), dtype=np.int64)
    for tap_index, tap in enumerate(coefficients.integers):
        if tap == 0:
            continue
        source_indices = output_indices - tap_index
        delayed = np.where(source_indices >= 0, data[np.maximum(source_indices, 0)], 0)

        product = shift_round(delayed * np.int64(tap), product_shift, rounding)
        product = apply_overflow(product, product_format, OverflowMode.SATURATE)

        accumulator = accumulator + shift_round(product, accumulate_shift, rounding)
        accumulator = apply_overflow(accumulator, accumulator_format, OverflowMode.SATURATE)

    return FixedPointArray(accumulator, accumulator_format).requantize(
        output_format, rounding, OverflowMode.SATURATE
    )


@dataclass(frozen=True, eq=False)
class FilterStage:
    """
    One stage of a decimation chain.

    Attributes:
        kind: Stage variant tag.
        label: Short name for reports, e.g. "CIC", "HB2", "FIR".
        decimation: Rate change factor of this stage.
        output_format: Format of the samples this stage emits.
        coefficients: Quantized taps (FIR-type stages only).
        product_format: Multiplier output format (FIR-type stages only).
        accumulator_format: Adder tree format (FIR-type stages only).
        number_of_sections: Integrator/comb pairs (CIC only).
        differential_delay: Comb delay (CIC only).
        design_method: "integrator-comb", "equiripple" or "window".
    """
    kind: StageKind
    label: str
    decimation: int
    output_format: FixedPointFormat
    coefficients: Optional[FixedPointArray] = None
    product_format: Optional[FixedPointFormat] = None
    accumulator_format: Optional[FixedPointFormat] = None
    number_of_sections: int = 0
    differential_delay: int = 1
    design_method: str = ""

    @property
    def gain_bits(self) -> float:
        """log2 of the stage's DC gain (non-zero only for CIC)."""
        if self.kind is StageKind.CIC:
            return self.number_of_sections * float(
                np.log2(self.decimation * self.differential_delay)
            )
        return 0.0

    @property
    def tap_count(self) -> int:
        if self.coefficients is None:
            return 0
        return len(self.coefficients)

    @property
    def multiplier_count(self) -> int:
        """
        Hardware multipliers needed by this stage.

        CIC stages need none. Halfbands need one per non-zero tap. Other
        FIRs are symmetric and share a multiplier between mirrored taps.
        """
        if self.kind is StageKind.CIC:
            return 0
        if self.kind is StageKind.HALFBAND:
            return int(np.count_nonzero(self.coefficients.integers))
        return int(np.ceil(self.tap_count / 2))

    def coefficient_values(self) -> np.ndarray:
        """Real values of the quantized coefficients (empty for CIC)."""
        if self.coefficients is None:
            return np.zeros(0)
        return self.coefficients.to_float()

    def apply(
        self,
        samples: FixedPointArray,
        rounding: RoundingMode = RoundingMode.NEAREST_EVEN
    ) -> FixedPointArray:
        """Filter and decimate samples; dispatches on the stage kind."""
        if self.kind is StageKind.CIC:
            return cic_decimate(
                samples,
                self.decimation,
                self.number_of_sections,
                self.differential_delay,
                self.output_format
            )
        return fir_decimate(
            samples,
            self.coefficients,
            self.decimation,
            self.product_format,
            self.accumulator_format,
            self.output_format,
            rounding
        )

    def describe(self) -> dict:
        """Summary row for reports and downstream hardware generation."""
        def format_name(fmt: Optional[FixedPointFormat]) -> Optional[str]:
            return str(fmt) if fmt is not None else None

        has_taps: bool = self.coefficients is not None
        return {
            "label": self.label,
            "kind": self.kind.value,
            "decimation": self.decimation,
            "taps": self.tap_count,
            "multipliers": self.multiplier_count,
            "design_method": self.design_method,
            "coefficients": self.coefficients.integers.tolist() if has_taps else None,
            "coefficient_format": format_name(self.coefficients.fmt) if has_taps else None,
            "product_format": format_name(self.product_format),
            "accumulator_format": format_name(self.accumulator_format),
            "output_format": str(self.output_format),
            "gain_bits": self.gain_bits,
        }
