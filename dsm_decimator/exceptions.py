"""
Decimator Exceptions
====================

Error taxonomy for the decimation pipeline.

Point-local errors only invalidate the current sweep point:
- InvalidOSRError
- FilterDesignFailedError
- InvalidOutputError

Fatal errors abort the whole run:
- EmptyBitstreamError
- EmptySweepResultError
- DecimationMismatchError (planner defect, never expected at runtime)
"""


class DecimatorError(Exception):
    """Base class for all decimation pipeline errors."""


class InvalidOSRError(DecimatorError, ValueError):
    """Oversampling ratio is not an integer >= 2."""


class DecimationMismatchError(DecimatorError, RuntimeError):
    """A decimation plan does not multiply back to its OSR."""


class FilterDesignFailedError(DecimatorError, RuntimeError):
    """No design method produced a usable filter stage."""


class InvalidOutputError(DecimatorError, ValueError):
    """Filtered output is empty, non-finite or too short to analyze."""


class EmptyBitstreamError(DecimatorError, ValueError):
    """No usable samples remain in the input bitstream."""


class EmptySweepResultError(DecimatorError, RuntimeError):
    """Every point of a sweep failed."""


POINT_LOCAL_ERRORS = (
    InvalidOSRError,
    FilterDesignFailedError,
    InvalidOutputError,
)
