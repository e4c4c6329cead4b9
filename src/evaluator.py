"""Evaluator contract implemented by every curve family.

A curve with local support evaluates at a time from the two coefficients
bracketing it, never from the whole coefficient history. The evaluator
turns such a bracket into values, derivatives and Jacobians. It also
exposes the algebraic structure of the value type (identity, composition,
inverse, interpolation) that composition curves and expressions build on.

Brackets are the (lower, upper) entries returned by
CoefficientManager.get_coefficients_at(). A degenerate bracket, where
lower and upper are the same entry, holds a single coefficient.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

import numpy as np

from .coefficient import KeyCoefficientTime
from .config import CurveConfig
from .errors import UnsupportedDerivativeOrderError
from .expressions import (
    ComposeExpression,
    ConstantExpression,
    Expression,
    InterpolateExpression,
    InverseExpression,
    LeafExpression,
)


class Evaluator(ABC):
    """Abstract evaluator for one curve family."""

    def __init__(self, config: Optional[CurveConfig] = None):
        """Initialize evaluator.

        Args:
            config: Curve configuration (time units, tolerances).
        """
        self.config = config or CurveConfig()

    # ------------------------------------------------------------------
    # Value type
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def tangent_dimension(self) -> int:
        """Dimension of the local parameterization of values."""
        pass

    @property
    @abstractmethod
    def max_derivative_order(self) -> int:
        pass

    @abstractmethod
    def make_coefficient(self, value: Any) -> Any:
        """Convert a curve value into the coefficient stored for it."""
        pass

    @abstractmethod
    def coefficient_value(self, coefficient: Any) -> Any:
        """Convert a stored coefficient into a curve value."""
        pass

    @abstractmethod
    def values_equal(self, a: Any, b: Any, tol: float) -> bool:
        pass

    # ------------------------------------------------------------------
    # Group structure
    # ------------------------------------------------------------------

    @abstractmethod
    def identity(self) -> Any:
        pass

    @abstractmethod
    def compose(self, a: Any, b: Any) -> Any:
        pass

    @abstractmethod
    def inverse(self, a: Any) -> Any:
        pass

    @abstractmethod
    def interpolate(self, a: Any, b: Any, alpha: float) -> Any:
        pass

    @abstractmethod
    def compose_jacobians(self, a: Any, b: Any) -> Tuple[np.ndarray, np.ndarray]:
        """Jacobians of compose(a, b) with respect to a and b."""
        pass

    @abstractmethod
    def inverse_jacobian(self, a: Any) -> np.ndarray:
        pass

    @abstractmethod
    def interpolate_jacobians(self, a: Any, b: Any, alpha: float) -> Tuple[np.ndarray, np.ndarray]:
        """Jacobians of interpolate(a, b, alpha) with respect to a and b."""
        pass

    @abstractmethod
    def interpolation_derivative(self, a: Any, b: Any, duration: float) -> np.ndarray:
        """First derivative of the interpolation from a to b over duration seconds."""
        pass

    @abstractmethod
    def compose_derivative(self, a: Any, a_dot: np.ndarray, b: Any, b_dot: np.ndarray) -> np.ndarray:
        """First derivative of compose(a(t), b(t)) by the product rule."""
        pass

    # ------------------------------------------------------------------
    # Evaluation contract
    # ------------------------------------------------------------------

    @abstractmethod
    def evaluate(self, time: int, lower: KeyCoefficientTime, upper: KeyCoefficientTime) -> Any:
        pass

    @abstractmethod
    def evaluate_and_jacobian(
        self,
        time: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> Tuple[Any, List[np.ndarray]]:
        """Evaluate the value and its Jacobians.

        Returns:
            Tuple (value, jacobians) with one Jacobian per distinct key of
            the bracket, in bracket order.
        """
        pass

    @abstractmethod
    def evaluate_derivative(
        self,
        time: int,
        derivative_order: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> np.ndarray:
        pass

    @abstractmethod
    def evaluate_derivative_and_jacobian(
        self,
        time: int,
        derivative_order: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> Tuple[np.ndarray, List[np.ndarray]]:
        pass

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @staticmethod
    def is_degenerate(lower: KeyCoefficientTime, upper: KeyCoefficientTime) -> bool:
        return lower.key == upper.key

    @staticmethod
    def alpha(time: int, lower: KeyCoefficientTime, upper: KeyCoefficientTime) -> float:
        """Interpolation fraction of time within the bracket."""
        if lower.time == upper.time:
            return 0.0
        return float(time - lower.time) / float(upper.time - lower.time)

    def duration_seconds(self, lower: KeyCoefficientTime, upper: KeyCoefficientTime) -> float:
        return (upper.time - lower.time) * self.config.seconds_per_time_unit

    def check_derivative_order(self, derivative_order: int) -> None:
        if derivative_order < 1 or derivative_order > self.max_derivative_order:
            raise UnsupportedDerivativeOrderError(
                f"Derivative order {derivative_order} is not supported, "
                f"expected 1..{self.max_derivative_order}"
            )

    def bracket_keys(self, lower: KeyCoefficientTime, upper: KeyCoefficientTime) -> List[int]:
        if self.is_degenerate(lower, upper):
            return [lower.key]
        return [lower.key, upper.key]

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def leaf_expression(self, key: int) -> Expression:
        return LeafExpression(self, key)

    def constant_expression(self, value: Any) -> Expression:
        return ConstantExpression(value)

    def compose_expression(self, a: Expression, b: Expression) -> Expression:
        return ComposeExpression(self, a, b)

    def inverse_expression(self, a: Expression) -> Expression:
        return InverseExpression(self, a)

    def interpolate_expression(self, a: Expression, b: Expression, alpha: float) -> Expression:
        return InterpolateExpression(self, a, b, alpha)

    def value_expression(
        self,
        time: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> Expression:
        """Build the expression of the curve value at time over the bracket keys."""
        if self.is_degenerate(lower, upper):
            return self.leaf_expression(lower.key)
        return self.interpolate_expression(
            self.leaf_expression(lower.key),
            self.leaf_expression(upper.key),
            self.alpha(time, lower, upper),
        )
