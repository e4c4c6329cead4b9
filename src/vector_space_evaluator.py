"""Linear interpolation of vector-valued curves."""

from typing import Any, List, Optional, Tuple

import numpy as np

from .coefficient import Coefficient, KeyCoefficientTime
from .config import CurveConfig
from .evaluator import Evaluator


class VectorSpaceEvaluator(Evaluator):
    """Evaluator for piecewise-linear curves in R^N.

    Between two samples (t0, v0) and (t1, v1):
        v(t) = (1 - alpha) v0 + alpha v1,    alpha = (t - t0) / (t1 - t0)

    The vector space is treated as an additive group, so composing two
    vector curves adds them and the identity is the zero vector.
    """

    def __init__(self, dimension: int, config: Optional[CurveConfig] = None):
        """Initialize evaluator.

        Args:
            dimension: Length N of the curve's vectors.
            config: Curve configuration.
        """
        super().__init__(config)
        if dimension < 1:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self.dimension = dimension

    @property
    def tangent_dimension(self) -> int:
        return self.dimension

    @property
    def max_derivative_order(self) -> int:
        return 2

    def make_coefficient(self, value: Any) -> Coefficient:
        coefficient = value if isinstance(value, Coefficient) else Coefficient(value)
        if coefficient.dimension != self.dimension:
            raise ValueError(
                f"Expected a vector of dimension {self.dimension}, got {coefficient.dimension}"
            )
        return coefficient

    def coefficient_value(self, coefficient: Any) -> np.ndarray:
        if isinstance(coefficient, Coefficient):
            return coefficient.value.copy()
        return np.asarray(coefficient, dtype=np.float64).ravel()

    def values_equal(self, a: np.ndarray, b: np.ndarray, tol: float) -> bool:
        return bool(np.allclose(a, b, rtol=0.0, atol=tol))

    # Additive group

    def identity(self) -> np.ndarray:
        return np.zeros(self.dimension)

    def compose(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return np.asarray(a, dtype=np.float64) + np.asarray(b, dtype=np.float64)

    def inverse(self, a: np.ndarray) -> np.ndarray:
        return -np.asarray(a, dtype=np.float64)

    def interpolate(self, a: np.ndarray, b: np.ndarray, alpha: float) -> np.ndarray:
        return (1.0 - alpha) * np.asarray(a, dtype=np.float64) + alpha * np.asarray(b, dtype=np.float64)

    def compose_jacobians(self, a: np.ndarray, b: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        eye = np.eye(self.dimension)
        return eye, eye.copy()

    def inverse_jacobian(self, a: np.ndarray) -> np.ndarray:
        return -np.eye(self.dimension)

    def interpolate_jacobians(self, a: np.ndarray, b: np.ndarray, alpha: float) -> Tuple[np.ndarray, np.ndarray]:
        eye = np.eye(self.dimension)
        return (1.0 - alpha) * eye, alpha * eye

    def interpolation_derivative(self, a: np.ndarray, b: np.ndarray, duration: float) -> np.ndarray:
        return (np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)) / duration

    def compose_derivative(self, a: np.ndarray, a_dot: np.ndarray, b: np.ndarray, b_dot: np.ndarray) -> np.ndarray:
        return np.asarray(a_dot, dtype=np.float64) + np.asarray(b_dot, dtype=np.float64)

    # Evaluation

    def evaluate(self, time: int, lower: KeyCoefficientTime, upper: KeyCoefficientTime) -> np.ndarray:
        if self.is_degenerate(lower, upper):
            return self.coefficient_value(lower.coefficient)
        return self.interpolate(
            self.coefficient_value(lower.coefficient),
            self.coefficient_value(upper.coefficient),
            self.alpha(time, lower, upper),
        )

    def evaluate_and_jacobian(
        self,
        time: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> Tuple[np.ndarray, List[np.ndarray]]:
        if self.is_degenerate(lower, upper):
            return self.coefficient_value(lower.coefficient), [np.eye(self.dimension)]
        alpha = self.alpha(time, lower, upper)
        value = self.evaluate(time, lower, upper)
        J_lower, J_upper = self.interpolate_jacobians(None, None, alpha)
        return value, [J_lower, J_upper]

    def evaluate_derivative(
        self,
        time: int,
        derivative_order: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> np.ndarray:
        return self.evaluate_derivative_and_jacobian(time, derivative_order, lower, upper)[0]

    def evaluate_derivative_and_jacobian(
        self,
        time: int,
        derivative_order: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> Tuple[np.ndarray, List[np.ndarray]]:
        self.check_derivative_order(derivative_order)
        if self.is_degenerate(lower, upper):
            return np.zeros(self.dimension), [np.zeros((self.dimension, self.dimension))]
        if derivative_order > 1:
            zero = np.zeros((self.dimension, self.dimension))
            return np.zeros(self.dimension), [zero, zero.copy()]

        duration = self.duration_seconds(lower, upper)
        derivative = self.interpolation_derivative(
            self.coefficient_value(lower.coefficient),
            self.coefficient_value(upper.coefficient),
            duration,
        )
        eye = np.eye(self.dimension)
        return derivative, [-eye / duration, eye / duration]
