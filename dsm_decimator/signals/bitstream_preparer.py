"""
Bitstream Preparation
=====================

This module turns the raw output of a delta-sigma modulator into the
bipolar sequence the decimation chain expects.

Modulator bitstreams arrive in several encodings:
- Unipolar {0, 1} (logic levels captured from a comparator)
- Bipolar {-1, +1} (already centred)
- Scaled bipolar, e.g. {-Vref, +Vref} from a simulator

All of them are normalized to a ±1-centred sequence. The prepared
bitstream is read-only: every sweep point pads its own copy.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np

from ..exceptions import EmptyBitstreamError

logger = logging.getLogger(__name__)

# Values above this magnitude are treated as a scaled bipolar encoding
BIPOLAR_RESCALE_THRESHOLD: float = 1.5


def prepare_bitstream(raw_samples) -> np.ndarray:
    """
    Normalize a raw modulator sequence into a read-only bipolar array.

    Normalization rules (applied after dropping NaN/Inf samples):
        - All values in [0, 1]:     v -> 2*v - 1 (unipolar to bipolar)
        - max|v| > 1.5:             v -> v / max|v|
        - Otherwise:                passed through unchanged

    Args:
        raw_samples: Any sequence convertible to a 1D float array.

    Returns:
        np.ndarray: Bipolar float64 samples, marked non-writeable.

    Raises:
        EmptyBitstreamError: If no finite samples remain.
    """
    samples: np.ndarray = np.asarray(raw_samples, dtype=np.float64).ravel()
    finite_mask: np.ndarray = np.isfinite(samples)
    dropped: int = int(samples.size - np.count_nonzero(finite_mask))
    samples = samples[finite_mask]

    if dropped:
        logger.warning("Dropped %d non-finite bitstream samples", dropped)

    if samples.size == 0:
        raise EmptyBitstreamError("Bitstream is empty after removing non-finite samples")

    # ===== CLASSIFY ENCODING =====
    if samples.min() >= 0.0 and samples.max() <= 1.0:
        bipolar = 2.0 * samples - 1.0
        logger.info("Converted unipolar bitstream (0, 1) to bipolar (-1, +1)")
    else:
        peak_magnitude: float = float(np.max(np.abs(samples)))
        if peak_magnitude > BIPOLAR_RESCALE_THRESHOLD:
            bipolar = samples / peak_magnitude
            logger.info("Rescaled bipolar bitstream by peak magnitude %.3f", peak_magnitude)
        else:
            bipolar = samples.copy()

    bipolar.setflags(write=False)
    return bipolar


def pad_bitstream(bipolar: np.ndarray, total_decimation: int) -> np.ndarray:
    """
    Append trailing zeros so the length is a multiple of the decimation.

    The shared prepared bitstream is never modified; a new array is
    returned even when no padding is needed.

    Args:
        bipolar: Prepared bipolar samples.
        total_decimation: Overall decimation factor of the chain.

    Returns:
        np.ndarray: Padded copy of the bitstream.
    """
    if total_decimation < 1:
        raise ValueError(f"Decimation factor must be positive, got {total_decimation}")

    remainder: int = len(bipolar) % total_decimation
    if remainder == 0:
        return np.array(bipolar, dtype=np.float64, copy=True)

    pad_length: int = total_decimation - remainder
    logger.debug(
        "Padding bitstream with %d zeros to a multiple of %d", pad_length, total_decimation
    )
    return np.concatenate([np.asarray(bipolar, dtype=np.float64), np.zeros(pad_length)])


def load_bitstream(path: Union[str, Path]) -> np.ndarray:
    """
    Load a raw bitstream captured from the modulator.

    Supported formats:
        - .npy files written by numpy.save
        - Text files with one or more samples per line, separated by
          whitespace or commas

    Args:
        path: File to read.

    Returns:
        np.ndarray: Raw (not yet prepared) samples as a 1D array.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bitstream file not found: {path}")

    if path.suffix == ".npy":
        samples = np.load(path)
    else:
        text: str = path.read_text().replace(",", " ")
        samples = np.array(text.split(), dtype=np.float64)

    logger.info("Loaded %d samples from %s", np.size(samples), path)
    return np.asarray(samples, dtype=np.float64).ravel()
