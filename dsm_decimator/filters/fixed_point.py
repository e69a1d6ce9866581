"""
Fixed-Point Arithmetic
======================

This module provides an explicit fixed-point value type used by every
stage of the decimation chain.

A fixed-point number is stored as a scaled integer:

    real_value = integer_value * 2^(-fraction_length)

Formats are written Qm.n, where m counts integer bits including the
sign bit and n counts fraction bits, e.g.:
    Q1.15  -> 16-bit signed coefficient in [-1, 1)
    Q4.18  -> 22-bit signed data word in [-8, 8)
    Q58.0  -> 58-bit signed integer (CIC accumulator)

Requantization rules:
    Rounding:  NEAREST_EVEN (round half to even, the default) or FLOOR
               (truncation toward -inf, i.e. an arithmetic right shift)
    Overflow:  SATURATE (clamp to the format range) or WRAP (two's
               complement modulo 2^word_length)

Integers are held in int64 arrays, so word lengths up to 63 bits are
supported exactly.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

# Widest word that still fits the int64 storage with its sign
MAXIMUM_WORD_LENGTH: int = 63


class RoundingMode(Enum):
    """Rounding applied when fraction bits are discarded."""
    NEAREST_EVEN = "nearest"
    FLOOR = "floor"


class OverflowMode(Enum):
    """Handling of values outside the target format's range."""
    SATURATE = "saturate"
    WRAP = "wrap"


@dataclass(frozen=True)
class FixedPointFormat:
    """
    Word length, fraction length and signedness of a fixed-point quantity.

    Attributes:
        word_length: Total number of bits, including the sign bit.
        fraction_length: Number of bits right of the binary point. May be
            negative or exceed word_length, as in general numeric types.
        signed: Two's complement if True, unsigned otherwise.
    """
    word_length: int
    fraction_length: int
    signed: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.word_length <= MAXIMUM_WORD_LENGTH:
            raise ValueError(
                f"Word length must be in [1, {MAXIMUM_WORD_LENGTH}], got {self.word_length}"
            )
        if self.signed and self.word_length < 2:
            raise ValueError("A signed format needs at least 2 bits")

    @property
    def integer_length(self) -> int:
        """Bits left of the binary point, including the sign bit."""
        return self.word_length - self.fraction_length

    @property
    def min_integer(self) -> int:
        return -(1 << (self.word_length - 1)) if self.signed else 0

    @property
    def max_integer(self) -> int:
        if self.signed:
            return (1 << (self.word_length - 1)) - 1
        return (1 << self.word_length) - 1

    @property
    def resolution(self) -> float:
        """Value of one least significant bit."""
        return 2.0 ** (-self.fraction_length)

    @property
    def min_value(self) -> float:
        return self.min_integer * self.resolution

    @property
    def max_value(self) -> float:
        return self.max_integer * self.resolution

    def __str__(self) -> str:
        prefix: str = "Q" if self.signed else "UQ"
        return f"{prefix}{self.integer_length}.{self.fraction_length}"


def shift_round(values: np.ndarray, shift: int, rounding: RoundingMode) -> np.ndarray:
    """
    Divide integers by 2^shift with the given rounding.

    A negative shift multiplies by 2^(-shift), which is always exact.

    Args:
        values: int64 array.
        shift: Number of fraction bits to discard.
        rounding: Rounding mode for the discarded bits.

    Returns:
        np.ndarray: Rescaled int64 array.
    """
    values = np.asarray(values, dtype=np.int64)
    if shift <= 0:
        return values << np.int64(-shift)

    quotient = values >> np.int64(shift)
    if rounding is RoundingMode.FLOOR:
        return quotient

    remainder = values - (quotient << np.int64(shift))
    half = np.int64(1) << np.int64(shift - 1)
    round_up = (remainder > half) | ((remainder == half) & ((quotient & 1) == 1))
    return quotient + round_up.astype(np.int64)


def apply_overflow(
    values: np.ndarray,
    fmt: FixedPointFormat,
    overflow: OverflowMode
) -> np.ndarray:
    """
    Bring integers into the range of a format.

    Args:
        values: int64 array.
        fmt: Target format.
        overflow: SATURATE clamps, WRAP keeps the low word_length bits.

    Returns:
        np.ndarray: int64 array within [fmt.min_integer, fmt.max_integer].
    """
    values = np.asarray(values, dtype=np.int64)
    if overflow is OverflowMode.SATURATE:
        return np.clip(values, fmt.min_integer, fmt.max_integer)

    mask = np.int64((1 << fmt.word_length) - 1)
    wrapped = values & mask
    if fmt.signed:
        sign_bit = np.int64(1 << (fmt.word_length - 1))
        wrapped = np.where(wrapped >= sign_bit, wrapped - (mask + 1), wrapped)
    return wrapped


@dataclass(frozen=True, eq=False)
class FixedPointArray:
    """
    An array of fixed-point values sharing one format.

    Attributes:
        integers: Stored integer values (int64).
        fmt: Format interpreting the integers.
    """
    integers: np.ndarray
    fmt: FixedPointFormat

    @classmethod
    def from_float(
        cls,
        values,
        fmt: FixedPointFormat,
        rounding: RoundingMode = RoundingMode.NEAREST_EVEN
    ) -> "FixedPointArray":
        """
        Quantize real values into a format, saturating out-of-range values.

        Raises:
            ValueError: If any value is NaN or infinite.
        """
        real = np.asarray(values, dtype=np.float64)
        if not np.all(np.isfinite(real)):
            raise ValueError("Cannot quantize non-finite values to fixed point")

        scaled = real * 2.0 ** fmt.fraction_length
        if rounding is RoundingMode.NEAREST_EVEN:
            scaled = np.rint(scaled)
        else:
            scaled = np.floor(scaled)

        # Clamp before the cast so huge values cannot overflow int64
        scaled = np.clip(scaled, fmt.min_integer, fmt.max_integer)
        return cls(scaled.astype(np.int64), fmt)

    def to_float(self) -> np.ndarray:
        """Return the represented real values."""
        return self.integers.astype(np.float64) * self.fmt.resolution

    def requantize(
        self,
        fmt: FixedPointFormat,
        rounding: RoundingMode = RoundingMode.NEAREST_EVEN,
        overflow: OverflowMode = OverflowMode.SATURATE
    ) -> "FixedPointArray":
        """Convert to another format using integer-exact rescaling."""
        shift: int = self.fmt.fraction_length - fmt.fraction_length
        rescaled = shift_round(self.integers, shift, rounding)
        return FixedPointArray(apply_overflow(rescaled, fmt, overflow), fmt)

    def __len__(self) -> int:
        return len(self.integers)
