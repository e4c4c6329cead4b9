"""Exception types raised by coefficient stores and curves.

Every error is a synchronous contract violation: the operation that raised
did not mutate the store or curve it was called on.
"""


class CurveError(Exception):
    """Base class for all trajectory curve errors."""


class UnknownKeyError(CurveError, KeyError):
    """Raised when a coefficient key is not in the store."""


class UnknownTimeError(CurveError, KeyError):
    """Raised when no coefficient exists at the requested time."""


class ArityMismatchError(CurveError, ValueError):
    """Raised when parallel time and value sequences differ in length."""


class UnsupportedBatchSizeError(CurveError, ValueError):
    """Raised when a composition curve is extended by other than one sample."""


class OutOfRangeError(CurveError, ValueError):
    """Raised when a query time is outside the curve's defined range."""


class RangeMismatchError(CurveError, ValueError):
    """Raised when the correction range no longer matches the base range."""


class UnsupportedDerivativeOrderError(CurveError, ValueError):
    """Raised when a derivative order is not supported by an evaluator."""


class InconsistentStoreError(CurveError):
    """Raised by the consistency check when the store indices disagree."""
