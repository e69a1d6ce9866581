"""
FIR Filter Design
=================

Coefficient design routines for the FIR stages of the decimation chain.

Two design methods are used:

1. Equiripple (Parks-McClellan / Remez exchange) via scipy.signal.remez.
   Minimizes the maximum weighted error in pass- and stopband.

2. Window method (windowed sinc) via scipy.signal.firwin, used as a
   fallback when the equiripple exchange does not converge or does not
   meet the attenuation target.

All band edges are normalized so that 1.0 = Nyquist (fs = 2).

HALFBAND FILTERS:
=================

A halfband low-pass has its band edges placed symmetrically about
Nyquist/2:

    f_pass = 0.5 - TW/2,   f_stop = 0.5 + TW/2

With equal pass/stop weights the equiripple solution then has every
other coefficient (apart from the centre tap) equal to zero and a centre
tap of exactly 0.5. Those values are enforced explicitly after the
design so numerical residue does not cost multipliers.
"""

import logging
from typing import Optional

import numpy as np
from scipy import signal

logger = logging.getLogger(__name__)

# Final FIR design targets (normalized to Nyquist)
FINAL_FIR_PASSBAND_EDGE: float = 0.35
FINAL_FIR_STOPBAND_EDGE: float = 0.65
FINAL_FIR_PASSBAND_RIPPLE_DB: float = 0.01
FINAL_FIR_STOPBAND_ATTENUATION_DB: float = 80.0

# Window-method parameters
WINDOW_CUTOFF: float = 0.4
SHAPING_FIR_TAPS: int = 27

# How far beyond the order estimate the equiripple search may go
EQUIRIPPLE_ORDER_SEARCH_LIMIT: int = 24
FREQUENCY_GRID_POINTS: int = 4096


class DesignNotConverged(Exception):
    """Raised internally when a design method gives no usable filter."""


def _check_coefficients(coefficients: np.ndarray, method: str) -> np.ndarray:
    if coefficients.size == 0 or not np.all(np.isfinite(coefficients)):
        raise DesignNotConverged(f"{method} design produced non-finite coefficients")
    return coefficients


def halfband_zero_mask(number_of_taps: int) -> np.ndarray:
    """
    Return a boolean mask of the structurally zero taps of a halfband.

    Taps at even, non-zero distance from the centre are zero.
    """
    center: int = (number_of_taps - 1) // 2
    offsets: np.ndarray = np.abs(np.arange(number_of_taps) - center)
    return (offsets % 2 == 0) & (offsets != 0)


def _enforce_halfband_structure(coefficients: np.ndarray) -> np.ndarray:
    """Zero the structural taps, set the centre to 1/2, keep unity DC gain."""
    coefficients = coefficients.copy()
    number_of_taps: int = len(coefficients)
    center: int = (number_of_taps - 1) // 2

    coefficients[halfband_zero_mask(number_of_taps)] = 0.0
    coefficients[center] = 0.0

    # Non-centre taps of an ideal halfband sum to exactly 1/2
    side_sum: float = float(np.sum(coefficients))
    if abs(side_sum) < 1e-12:
        raise DesignNotConverged("Halfband side taps sum to zero")
    coefficients *= 0.5 / side_sum
    coefficients[center] = 0.5
    return coefficients


def design_halfband_equiripple(order: int, transition_width: float) -> np.ndarray:
    """
    Design a halfband low-pass with the Parks-McClellan algorithm.

    Args:
        order: Filter order N (N + 1 taps). N must be even with N/2 odd
            (e.g. 10, 14, 18, 22) so the outermost taps are non-zero.
        transition_width: Transition width normalized to Nyquist.

    Returns:
        np.ndarray: order + 1 coefficients with unity DC gain.

    Raises:
        DesignNotConverged: If the Remez exchange fails.
    """
    passband_edge: float = 0.5 - transition_width / 2.0
    stopband_edge: float = 0.5 + transition_width / 2.0

    try:
        coefficients = signal.remez(
            order + 1,
            [0.0, passband_edge, stopband_edge, 1.0],
            [1.0, 0.0],
            fs=2.0
        )
    except ValueError as error:
        raise DesignNotConverged(f"Remez halfband design failed: {error}") from error

    coefficients = _check_coefficients(np.asarray(coefficients, dtype=np.float64), "Remez")
    return _enforce_halfband_structure(coefficients)


def design_halfband_window(order: int) -> np.ndarray:
    """
    Design a halfband low-pass as a Hamming-windowed sinc (cutoff Nyquist/2).

    The sinc has zeros at every even offset from the centre, so the
    windowed result is a halfband by construction.
    """
    try:
        coefficients = signal.firwin(order + 1, 0.5)
    except ValueError as error:
        raise DesignNotConverged(f"Window halfband design failed: {error}") from error

    coefficients = _check_coefficients(np.asarray(coefficients, dtype=np.float64), "Window")
    return _enforce_halfband_structure(coefficients)


def ripple_to_deviation(passband_ripple_db: float) -> float:
    """Convert peak-to-peak passband ripple in dB to a linear deviation."""
    linear: float = 10.0 ** (passband_ripple_db / 20.0)
    return (linear - 1.0) / (linear + 1.0)


def estimate_equiripple_order(
    passband_edge: float,
    stopband_edge: float,
    passband_deviation: float,
    stopband_deviation: float
) -> int:
    """
    Estimate the equiripple low-pass order with Kaiser's formula.

        N ~ (-20*log10(sqrt(dp*ds)) - 13) / (14.6 * df)

    where df is the transition width in cycles/sample (fs = 1).
    """
    transition_width: float = (stopband_edge - passband_edge) / 2.0
    attenuation: float = -20.0 * np.log10(np.sqrt(passband_deviation * stopband_deviation))
    order: int = int(np.ceil((attenuation - 13.0) / (14.6 * transition_width)))
    return max(order, 2)


def measure_lowpass_response(
    coefficients: np.ndarray,
    passband_edge: float,
    stopband_edge: float
) -> tuple:
    """
    Measure passband ripple and minimum stopband attenuation.

    Returns:
        tuple: (passband_ripple_db, stopband_attenuation_db)
    """
    frequencies, response = signal.freqz(coefficients, worN=FREQUENCY_GRID_POINTS, fs=2.0)
    magnitude: np.ndarray = np.abs(response)

    passband: np.ndarray = magnitude[frequencies <= passband_edge]
    stopband: np.ndarray = magnitude[frequencies >= stopband_edge]

    with np.errstate(divide="ignore"):
        passband_ripple_db: float = float(
            20.0 * np.log10(np.max(passband) / np.min(passband))
        )
        stopband_attenuation_db: float = float(-20.0 * np.log10(np.max(stopband)))
    return passband_ripple_db, stopband_attenuation_db


def design_lowpass_equiripple(
    passband_edge: float = FINAL_FIR_PASSBAND_EDGE,
    stopband_edge: float = FINAL_FIR_STOPBAND_EDGE,
    passband_ripple_db: float = FINAL_FIR_PASSBAND_RIPPLE_DB,
    stopband_attenuation_db: float = FINAL_FIR_STOPBAND_ATTENUATION_DB,
    maximum_order: Optional[int] = None
) -> np.ndarray:
    """
    Design a minimum-order equiripple low-pass meeting the given targets.

    Starting from Kaiser's order estimate, the order is increased until
    the measured response meets both the ripple and attenuation targets.

    Args:
        passband_edge: Passband edge (1.0 = Nyquist).
        stopband_edge: Stopband edge (1.0 = Nyquist).
        passband_ripple_db: Allowed peak-to-peak passband ripple.
        stopband_attenuation_db: Required stopband attenuation.
        maximum_order: Give up beyond this order. Defaults to the estimate
            plus EQUIRIPPLE_ORDER_SEARCH_LIMIT.

    Returns:
        np.ndarray: Coefficients normalized to unity DC gain.

    Raises:
        DesignNotConverged: If no order up to maximum_order meets the targets.
    """
    passband_deviation: float = ripple_to_deviation(passband_ripple_db)
    stopband_deviation: float = 10.0 ** (-stopband_attenuation_db / 20.0)

    order: int = estimate_equiripple_order(
        passband_edge, stopband_edge, passband_deviation, stopband_deviation
    )
    if maximum_order is None:
        maximum_order = order + EQUIRIPPLE_ORDER_SEARCH_LIMIT

    # Weight each band by the inverse of its allowed deviation
    weights = [1.0, passband_deviation / stopband_deviation]

    last_error: str = "order search exhausted"
    while order <= maximum_order:
        try:
            coefficients = signal.remez(
                order + 1,
                [0.0, passband_edge, stopband_edge, 1.0],
                [1.0, 0.0],
                weight=weights,
                fs=2.0
            )
        except ValueError as error:
            last_error = str(error)
            order += 1
            continue

        coefficients = np.asarray(coefficients, dtype=np.float64)
        if np.all(np.isfinite(coefficients)):
            coefficients = coefficients / np.sum(coefficients)
            ripple_db, attenuation_db = measure_lowpass_response(
                coefficients, passband_edge, stopband_edge
            )
            if ripple_db <= passband_ripple_db and attenuation_db >= stopband_attenuation_db:
                logger.debug(
                    "Equiripple low-pass: order %d, ripple %.4f dB, attenuation %.1f dB",
                    order, ripple_db, attenuation_db
                )
                return coefficients
            last_error = (
                f"order {order} gives {ripple_db:.4f} dB ripple, "
                f"{attenuation_db:.1f} dB attenuation"
            )
        order += 1

    raise DesignNotConverged(f"Equiripple low-pass did not converge: {last_error}")


def design_lowpass_window(number_of_taps: int, cutoff: float = WINDOW_CUTOFF) -> np.ndarray:
    """
    Design a Hamming-windowed sinc low-pass.

    Args:
        number_of_taps: Filter length.
        cutoff: -6 dB cutoff normalized to Nyquist.

    Returns:
        np.ndarray: Coefficients with unity DC gain.
    """
    try:
        coefficients = signal.firwin(number_of_taps, cutoff)
    except ValueError as error:
        raise DesignNotConverged(f"Window low-pass design failed: {error}") from error
    return _check_coefficients(np.asarray(coefficients, dtype=np.float64), "Window")


def fallback_fir_taps(decimation: int) -> int:
    """Window-method tap count for a final FIR decimating by `decimation`."""
    return min(51, 15 + int(round(8 * np.log2(decimation))))
