"""Curves composed of a base curve and a separately maintained correction.

The caller always works with the corrected trajectory. Internally the base
curve stores pre-correction values, and an optimizer refines the
correction curve (e.g. a drift correction) without touching the base.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .config import CompositionStrategy, CurveConfig
from .errors import (
    ArityMismatchError,
    RangeMismatchError,
    UnknownTimeError,
    UnsupportedBatchSizeError,
    UnsupportedDerivativeOrderError,
)
from .evaluator import Evaluator
from .expressions import Expression
from .keys import KeyGenerator
from .local_support_curve import LocalSupportCurve
from .slerp_se3_evaluator import SlerpSE3Evaluator
from .vector_space_evaluator import VectorSpaceEvaluator

logger = logging.getLogger(__name__)


class CompositionCurve:
    """Trajectory expressed as correction(t) * base(t).

    The correction curve always spans at least the base curve's time range;
    extending the base pads the correction with its boundary values.

    Example:
        >>> curve = SE3CompositionCurve(KeyGenerator())
        >>> keys = curve.extend([0], [SE3Pose.identity()])
        >>> keys = curve.extend([10], [SE3Pose.exp(np.array([0, 0, 0, 1.0, 0, 0]))])
        >>> curve.set_correction_at_time(10, SE3Pose.exp(np.array([0, 0, 0.1, 0, 0, 0])))
        >>> curve.fold_in_corrections()
    """

    def __init__(
        self,
        evaluator: Evaluator,
        key_generator: KeyGenerator,
        strategy: Optional[CompositionStrategy] = None,
    ):
        """Initialize an empty composition curve.

        Args:
            evaluator: Evaluator shared by the base and correction curves.
            key_generator: Allocator shared by both curves so their keys
                never collide.
            strategy: Composition strategy. Defaults to the evaluator's
                configured strategy.
        """
        self.evaluator = evaluator
        self.strategy = strategy if strategy is not None else evaluator.config.composition_strategy
        self.key_generator = key_generator
        self.min_sampling_period = 0
        self.base_curve = LocalSupportCurve(evaluator, self.key_generator)
        self.correction_curve = LocalSupportCurve(evaluator, self.key_generator)

    @property
    def config(self) -> CurveConfig:
        return self.evaluator.config

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(strategy={self.strategy.name}, "
            f"base={self.base_curve.manager!r}, correction={self.correction_curve.manager!r})"
        )

    # ------------------------------------------------------------------
    # Bounds and sizes
    # ------------------------------------------------------------------

    def get_min_time(self) -> int:
        return self.base_curve.get_min_time()

    def get_max_time(self) -> int:
        return self.base_curve.get_max_time()

    def is_empty(self) -> bool:
        return self.base_curve.is_empty()

    def size(self) -> int:
        """Number of correction samples, which drives the optimization size."""
        return self.correction_curve.size()

    def correction_size(self) -> int:
        return self.correction_curve.size()

    def base_size(self) -> int:
        return self.base_curve.size()

    def clear(self) -> None:
        self.base_curve.clear()
        self.correction_curve.clear()

    def set_min_sampling_period(self, period: int) -> None:
        """Set the minimum spacing of correction samples added by extend().

        The base curve keeps every sample. When extending past the end
        would leave the last two correction samples closer than period,
        the last correction sample is moved to the new end instead of a
        new one being added. A period of 0 keeps every padding sample.

        Args:
            period: Minimum spacing in time units.

        Raises:
            ValueError: If period is negative.
        """
        if period < 0:
            raise ValueError(f"Minimum sampling period must be non-negative, got {period}")
        self.min_sampling_period = period

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def extend(self, times: Sequence[int], values: Sequence[Any]) -> List[int]:
        """Add one corrected sample to the trajectory.

        Args:
            times: Exactly one sample time.
            values: Exactly one corrected value.

        Returns:
            Key of the base coefficient.

        Raises:
            UnsupportedBatchSizeError: If more or less than one time is given.
            ArityMismatchError: If values does not hold exactly one value.
        """
        # TODO: support batches by padding once for the whole batch range
        if len(times) != 1:
            raise UnsupportedBatchSizeError(
                f"Extend was called with {len(times)} times, expected exactly one"
            )
        if len(values) != 1:
            raise ArityMismatchError(f"Got 1 time but {len(values)} values")

        time = times[0]
        value = self.evaluator.coefficient_value(self.evaluator.make_coefficient(values[0]))

        # Find the new limit times of the curve
        if self.base_curve.is_empty():
            new_min_time = new_max_time = time
        else:
            new_min_time = min(self.base_curve.get_min_time(), time)
            new_max_time = max(self.base_curve.get_max_time(), time)

        # Extend the correction curve to these times
        correction = self.correction_curve
        if correction.is_empty():
            correction.extend([new_min_time], [self.evaluator.identity()])
        if correction.get_max_time() < new_max_time:
            held = correction.evaluate(correction.get_max_time())
            correction_times = correction.manager.get_times()
            if (len(correction_times) > 1
                    and correction_times[-1] - correction_times[-2] < self.min_sampling_period):
                correction.manager.remove_coefficient_at_time(correction_times[-1])
                logger.debug("Moving correction sample at time %d to time %d",
                             correction_times[-1], new_max_time)
            correction.extend([new_max_time], [held])
            logger.debug("Padded correction curve up to time %d", new_max_time)
        if correction.get_min_time() > new_min_time:
            held = correction.evaluate(correction.get_min_time())
            correction.extend([new_min_time], [held])
            logger.debug("Padded correction curve down to time %d", new_min_time)

        # Store the value that reproduces the caller's value once corrected
        base_value = self.evaluator.compose(
            self.evaluator.inverse(correction.evaluate(time)), value
        )
        return self.base_curve.extend([time], [base_value])

    def fit_curve(self, times: Sequence[int], values: Sequence[Any]) -> List[int]:
        return self.extend(times, values)

    def fold_in_corrections(self) -> None:
        """Bake the corrections into the base curve.

        Every base sample becomes its corrected value and every correction
        sample is reset to identity. Keys and times of both curves are kept.
        """
        base_manager = self.base_curve.manager
        correction_manager = self.correction_curve.manager
        corrected = {
            entry.key: self.evaluator.make_coefficient(self.evaluate(entry.time))
            for entry in base_manager
        }
        identity = self.evaluator.identity()

        base_manager.set_coefficients(corrected)
        correction_manager.set_coefficients(
            {key: self.evaluator.make_coefficient(identity) for key in correction_manager.get_keys()}
        )
        logger.debug(
            "Folded corrections into %d base samples, reset %d correction samples",
            len(corrected), correction_manager.size(),
        )

    def set_correction_times(self, times: Sequence[int]) -> None:
        """Resample the correction curve at new times.

        Args:
            times: New correction sample times. Their minimum and maximum must
                equal the base curve's bounds.

        Raises:
            RangeMismatchError: If the new times do not span exactly the base
                curve's range. The correction curve is left unchanged.
        """
        if self.base_curve.is_empty() or len(times) == 0:
            raise RangeMismatchError("Cannot resample the correction of an empty curve")
        if min(times) != self.base_curve.get_min_time():
            raise RangeMismatchError(
                f"Min time of correction curve ({min(times)}) and base curve "
                f"({self.base_curve.get_min_time()}) are different"
            )
        if max(times) != self.base_curve.get_max_time():
            raise RangeMismatchError(
                f"Max time of correction curve ({max(times)}) and base curve "
                f"({self.base_curve.get_max_time()}) are different"
            )

        values = [self.correction_curve.evaluate(t) for t in times]
        self.correction_curve.clear()
        self.correction_curve.extend(times, values)
        logger.debug("Resampled correction curve at %d times", self.correction_curve.size())

    def set_correction_at_time(self, time: int, value: Any) -> None:
        """Replace an existing correction sample.

        Raises:
            UnknownTimeError: If there is no correction sample at this time.
        """
        manager = self.correction_curve.manager
        if not manager.has_coefficient_at_time(time):
            raise UnknownTimeError(f"No correction coefficient at time {time}")
        manager.insert_coefficient(time, self.evaluator.make_coefficient(value))

    def remove_correction_at_time(self, time: int) -> None:
        """Remove an existing correction sample.

        Raises:
            UnknownTimeError: If there is no correction sample at this time.
        """
        self.correction_curve.manager.remove_coefficient_at_time(time)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _corrected_endpoints(self, time: int) -> Optional[Tuple[int, int]]:
        """Ordered base sample times bracketing time, or None at a sample."""
        lower, upper = self.base_curve.manager.get_coefficients_at(time)
        if lower.time == time or upper.time == time:
            return None
        # Order the endpoints explicitly
        return min(lower.time, upper.time), max(lower.time, upper.time)

    def _corrected_base(self, time: int) -> Any:
        return self.evaluator.compose(
            self.correction_curve.evaluate(time), self.base_curve.evaluate(time)
        )

    def evaluate(self, time: int) -> Any:
        """Evaluate the corrected trajectory.

        Raises:
            OutOfRangeError: If the time is outside the base curve.
        """
        if self.strategy is CompositionStrategy.CORRECT_AT_QUERY_TIME:
            return self._corrected_base(time)

        endpoints = self._corrected_endpoints(time)
        if endpoints is None:
            return self._corrected_base(time)
        t_a, t_b = endpoints
        alpha = float(time - t_a) / float(t_b - t_a)
        return self.evaluator.interpolate(
            self._corrected_base(t_a), self._corrected_base(t_b), alpha
        )

    def evaluate_derivative(self, time: int, derivative_order: int = 1) -> np.ndarray:
        """Evaluate the first derivative of the corrected trajectory, per second.

        CORRECT_AT_QUERY_TIME applies the product rule to
        correction(t) * base(t). INTERPOLATE_CORRECTED_ENDPOINTS
        differentiates the interpolation between the corrected endpoints
        of the base segment containing time.

        Raises:
            UnsupportedDerivativeOrderError: For orders other than 1.
        """
        if derivative_order != 1:
            raise UnsupportedDerivativeOrderError(
                f"Composition curves only support first derivatives, got order {derivative_order}"
            )

        if self.strategy is CompositionStrategy.CORRECT_AT_QUERY_TIME:
            return self.evaluator.compose_derivative(
                self.correction_curve.evaluate(time),
                self.correction_curve.evaluate_derivative(time, 1),
                self.base_curve.evaluate(time),
                self.base_curve.evaluate_derivative(time, 1),
            )

        lower, upper = self.base_curve.manager.get_coefficients_at(time)
        if self.evaluator.is_degenerate(lower, upper):
            return np.zeros(self.evaluator.tangent_dimension)
        t_a, t_b = min(lower.time, upper.time), max(lower.time, upper.time)
        duration = (t_b - t_a) * self.config.seconds_per_time_unit
        return self.evaluator.interpolation_derivative(
            self._corrected_base(t_a), self._corrected_base(t_b), duration
        )

    # ------------------------------------------------------------------
    # Optimizer interface
    # ------------------------------------------------------------------

    def _corrected_base_expression(self, time: int) -> Expression:
        return self.evaluator.compose_expression(
            self.correction_curve.get_value_expression(time),
            self.evaluator.constant_expression(self.base_curve.evaluate(time)),
        )

    def get_value_expression(self, time: int) -> Expression:
        """Build the expression of the corrected value at a time.

        Correction coefficients are the leaves; base values enter as
        constants.
        """
        if self.strategy is CompositionStrategy.CORRECT_AT_QUERY_TIME:
            return self._corrected_base_expression(time)

        endpoints = self._corrected_endpoints(time)
        if endpoints is None:
            return self._corrected_base_expression(time)
        t_a, t_b = endpoints
        alpha = float(time - t_a) / float(t_b - t_a)
        return self.evaluator.interpolate_expression(
            self._corrected_base_expression(t_a),
            self._corrected_base_expression(t_b),
            alpha,
        )

    def get_keys_at(self, time: int) -> List[int]:
        """Correction keys that the corrected value at a time depends on."""
        return self.get_value_expression(time).keys()

    def get_prior_expressions(self, time: int) -> List[Tuple[Expression, Any]]:
        """Priors anchoring the correction coefficients around a time."""
        return self.correction_curve.get_prior_expressions(time)

    def initialize_values(self, values: Dict[int, Any], keys: Optional[Sequence[int]] = None) -> None:
        self.correction_curve.initialize_values(values, keys)

    def update_from_values(self, values: Mapping[int, Any]) -> None:
        self.correction_curve.update_from_values(values)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def get_base_samples(self) -> List[Tuple[int, Any]]:
        return self.base_curve.get_samples()

    def get_correction_samples(self) -> List[Tuple[int, Any]]:
        return self.correction_curve.get_samples()

    def get_composed_samples(self) -> List[Tuple[int, Any]]:
        """Return (time, corrected value) at every base sample time."""
        return [(t, self.evaluate(t)) for t in self.base_curve.manager.get_times()]


class VectorSpaceCompositionCurve(CompositionCurve):
    """Vector curve with an additive correction, base(t) + correction(t)."""

    def __init__(
        self,
        dimension: int,
        key_generator: KeyGenerator,
        config: Optional[CurveConfig] = None,
        strategy: Optional[CompositionStrategy] = None,
    ):
        super().__init__(VectorSpaceEvaluator(dimension, config), key_generator, strategy)


class SE3CompositionCurve(CompositionCurve):
    """Rigid-body trajectory with a rigid-body correction, C(t) * B(t).

    Twists are ordered [omega, v]. Frame B is the body frame, frame A the
    world frame.
    """

    def __init__(
        self,
        key_generator: KeyGenerator,
        config: Optional[CurveConfig] = None,
        strategy: Optional[CompositionStrategy] = None,
    ):
        super().__init__(SlerpSE3Evaluator(config), key_generator, strategy)

    def evaluate_twist_b(self, time: int) -> np.ndarray:
        """Body twist [omega_b, v_b] of the corrected trajectory."""
        return self.evaluate_derivative(time, 1)

    def evaluate_twist_a(self, time: int) -> np.ndarray:
        """Spatial twist Ad(T) [omega_b, v_b] of the corrected trajectory."""
        return self.evaluate(time).adjoint() @ self.evaluate_twist_b(time)

    def evaluate_angular_velocity_b(self, time: int) -> np.ndarray:
        return self.evaluate_twist_b(time)[:3]

    def evaluate_linear_velocity_b(self, time: int) -> np.ndarray:
        """Velocity of the body origin, expressed in the body frame."""
        return self.evaluate_twist_b(time)[3:]

    def evaluate_angular_velocity_a(self, time: int) -> np.ndarray:
        return self.evaluate(time).R @ self.evaluate_angular_velocity_b(time)

    def evaluate_linear_velocity_a(self, time: int) -> np.ndarray:
        """Velocity of the body origin, expressed in the world frame."""
        return self.evaluate(time).R @ self.evaluate_linear_velocity_b(time)
