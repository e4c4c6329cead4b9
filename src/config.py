"""Configuration shared by evaluators and curves."""

from dataclasses import dataclass
from enum import Enum


class CompositionStrategy(Enum):
    """How a composition curve combines its correction and base curves.

    CORRECT_AT_QUERY_TIME:
        corr(t) * base(t)
    INTERPOLATE_CORRECTED_ENDPOINTS:
        corr is evaluated at the base sample times (t1, t2) bracketing t,
        giving interpolate(corr(t1) * base(t1), corr(t2) * base(t2), alpha)
    """

    CORRECT_AT_QUERY_TIME = "correct_at_query_time"
    INTERPOLATE_CORRECTED_ENDPOINTS = "interpolate_corrected_endpoints"


@dataclass(kw_only=True)
class CurveConfig:
    seconds_per_time_unit: float = 1e-9  # Curve times are nanoseconds
    composition_strategy: CompositionStrategy = CompositionStrategy.CORRECT_AT_QUERY_TIME
    equality_tolerance: float = 1e-9

    def __post_init__(self):
        if self.seconds_per_time_unit <= 0.0:
            raise ValueError(
                f"seconds_per_time_unit must be positive, got {self.seconds_per_time_unit}"
            )
        if isinstance(self.composition_strategy, str):
            self.composition_strategy = CompositionStrategy(self.composition_strategy)
        if self.equality_tolerance < 0.0:
            raise ValueError(
                f"equality_tolerance must be non-negative, got {self.equality_tolerance}"
            )
