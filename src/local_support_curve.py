"""Curves whose value at a time depends only on the two bracketing samples."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .config import CurveConfig
from .coefficient_manager import CoefficientManager
from .evaluator import Evaluator
from .expressions import Expression
from .keys import KeyGenerator
from .slerp_se3_evaluator import SlerpSE3Evaluator
from .vector_space_evaluator import VectorSpaceEvaluator

logger = logging.getLogger(__name__)


class LocalSupportCurve:
    """Single-segment curve: one coefficient store plus one evaluator.

    Evaluation brackets the query time in the store and hands the bracket
    to the evaluator, so its cost is independent of the curve length.

    Example:
        >>> curve = LinearInterpolationVectorSpaceCurve(dimension=1, key_generator=KeyGenerator())
        >>> keys = curve.extend([0, 10], [np.array([0.0]), np.array([1.0])])
        >>> curve.evaluate(5)
        array([0.5])
    """

    def __init__(self, evaluator: Evaluator, key_generator: KeyGenerator):
        """Initialize an empty curve.

        Args:
            evaluator: Evaluator of the curve family.
            key_generator: Allocator for coefficient keys. Curves feeding one
                set of optimizer values must share it.
        """
        self.evaluator = evaluator
        self.manager = CoefficientManager(key_generator)

    @property
    def config(self) -> CurveConfig:
        return self.evaluator.config

    def __len__(self) -> int:
        return self.manager.size()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.manager!r})"

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def extend(self, times: Sequence[int], values: Sequence[Any]) -> List[int]:
        """Add samples to the curve, overwriting samples at existing times.

        Args:
            times: Sample times.
            values: Curve values, one per time.

        Returns:
            Keys of the samples.

        Raises:
            ArityMismatchError: If times and values differ in length.
        """
        coefficients = [self.evaluator.make_coefficient(value) for value in values]
        return self.manager.insert_coefficients(times, coefficients)

    def fit_curve(self, times: Sequence[int], values: Sequence[Any]) -> List[int]:
        """Fit the curve to samples. Interpolating curves simply store them."""
        return self.extend(times, values)

    def clear(self) -> None:
        self.manager.clear()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, time: int) -> Any:
        """Evaluate the curve value at a time.

        Raises:
            OutOfRangeError: If the time is outside the curve.
        """
        lower, upper = self.manager.get_coefficients_at(time)
        return self.evaluator.evaluate(time, lower, upper)

    def evaluate_derivative(self, time: int, derivative_order: int = 1) -> np.ndarray:
        """Evaluate a derivative of the curve, per second."""
        lower, upper = self.manager.get_coefficients_at(time)
        return self.evaluator.evaluate_derivative(time, derivative_order, lower, upper)

    def evaluate_and_jacobian(self, time: int) -> Tuple[Any, Dict[int, np.ndarray]]:
        """Evaluate the value and its Jacobians with respect to the bracket keys.

        Returns:
            Tuple (value, jacobians) with jacobians keyed by coefficient key.
        """
        lower, upper = self.manager.get_coefficients_at(time)
        value, jacobians = self.evaluator.evaluate_and_jacobian(time, lower, upper)
        return value, dict(zip(self.evaluator.bracket_keys(lower, upper), jacobians))

    def evaluate_derivative_and_jacobian(
        self,
        time: int,
        derivative_order: int = 1,
    ) -> Tuple[np.ndarray, Dict[int, np.ndarray]]:
        lower, upper = self.manager.get_coefficients_at(time)
        derivative, jacobians = self.evaluator.evaluate_derivative_and_jacobian(
            time, derivative_order, lower, upper
        )
        return derivative, dict(zip(self.evaluator.bracket_keys(lower, upper), jacobians))

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------

    def get_min_time(self) -> int:
        return self.manager.get_min_time()

    def get_max_time(self) -> int:
        return self.manager.get_max_time()

    def is_empty(self) -> bool:
        return self.manager.is_empty()

    def size(self) -> int:
        return self.manager.size()

    # ------------------------------------------------------------------
    # Optimizer interface
    # ------------------------------------------------------------------

    def get_value_expression(self, time: int) -> Expression:
        """Build the expression of the curve value at a time.

        The leaves of the expression are the keys of the bracketing
        coefficients.
        """
        lower, upper = self.manager.get_coefficients_at(time)
        return self.evaluator.value_expression(time, lower, upper)

    def get_keys_at(self, time: int) -> List[int]:
        """Keys that the curve value at a time depends on."""
        lower, upper = self.manager.get_coefficients_at(time)
        return self.evaluator.bracket_keys(lower, upper)

    def get_prior_expressions(self, time: int) -> List[Tuple[Expression, Any]]:
        """Build priors holding the coefficients around a time at their current values.

        Returns:
            One (leaf expression, current value) pair per key that the
            curve value at time depends on.
        """
        return [
            (
                self.evaluator.leaf_expression(key),
                self.evaluator.coefficient_value(self.manager.get_coefficient_by_key(key)),
            )
            for key in self.get_keys_at(time)
        ]

    def initialize_values(self, values: Dict[int, Any], keys: Optional[Sequence[int]] = None) -> None:
        """Write the current coefficients into an optimizer value mapping.

        Args:
            values: Mapping to fill, keyed by coefficient key.
            keys: Restrict to these keys. All coefficients when omitted.

        Raises:
            UnknownKeyError: If a requested key is not in the curve.
        """
        if keys is None:
            values.update(self.manager.get_coefficients())
            return
        for key in keys:
            values[key] = self.manager.get_coefficient_by_key(key)

    def update_from_values(self, values: Mapping[int, Any]) -> None:
        """Write optimized coefficients back by key.

        Keys that do not belong to this curve are ignored.
        """
        updates = {
            key: self.evaluator.make_coefficient(value)
            for key, value in values.items()
            if self.manager.has_coefficient_with_key(key)
        }
        logger.debug("Updating %d of %d coefficients", len(updates), self.manager.size())
        self.manager.set_coefficients(updates)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def get_samples(self) -> List[Tuple[int, Any]]:
        """Return (time, value) for every sample, in time order."""
        return [
            (entry.time, self.evaluator.coefficient_value(entry.coefficient))
            for entry in self.manager
        ]

    def equals(self, other: "LocalSupportCurve", tol: Optional[float] = None) -> bool:
        if tol is None:
            tol = self.config.equality_tolerance
        return self.manager.equals(other.manager, tol)


class LinearInterpolationVectorSpaceCurve(LocalSupportCurve):
    """Piecewise-linear curve in R^N."""

    def __init__(
        self,
        dimension: int,
        key_generator: KeyGenerator,
        config: Optional[CurveConfig] = None,
    ):
        super().__init__(VectorSpaceEvaluator(dimension, config), key_generator)


class SlerpSE3Curve(LocalSupportCurve):
    """Rigid-body pose curve interpolated along SE(3) geodesics."""

    def __init__(self, key_generator: KeyGenerator, config: Optional[CurveConfig] = None):
        super().__init__(SlerpSE3Evaluator(config), key_generator)
