"""Geodesic (slerp) interpolation of rigid-body pose curves."""

from typing import Any, List, Optional, Tuple

import numpy as np

from .coefficient import KeyCoefficientTime
from .config import CurveConfig
from .evaluator import Evaluator
from .lie_algebra import (
    adjoint,
    inverse_transform,
    se3_interpolate,
    se3_interpolate_jacobians,
    se3_log,
    se3_right_jacobian_inv,
)
from .se3_pose import SE3Pose


class SlerpSE3Evaluator(Evaluator):
    """Evaluator for SE(3) curves interpolated along the group geodesic.

    Between two samples (t0, T0) and (t1, T1):
        T(t) = T0 Exp(alpha Log(T0^-1 T1)),    alpha = (t - t0) / (t1 - t0)

    The first derivative is the constant body twist
        xi = Log(T0^-1 T1) / (t1 - t0)
    in [omega, v] order, per second. Jacobians use right perturbations,
    T (+) d = T Exp(d).
    """

    def __init__(self, config: Optional[CurveConfig] = None):
        super().__init__(config)

    @property
    def tangent_dimension(self) -> int:
        return 6

    @property
    def max_derivative_order(self) -> int:
        return 1

    def make_coefficient(self, value: Any) -> SE3Pose:
        if isinstance(value, SE3Pose):
            return value
        return SE3Pose.from_matrix(value)

    def coefficient_value(self, coefficient: Any) -> SE3Pose:
        return self.make_coefficient(coefficient)

    def values_equal(self, a: SE3Pose, b: SE3Pose, tol: float) -> bool:
        return a.equals(b, tol)

    # Group

    def identity(self) -> SE3Pose:
        return SE3Pose.identity()

    def compose(self, a: SE3Pose, b: SE3Pose) -> SE3Pose:
        return a * b

    def inverse(self, a: SE3Pose) -> SE3Pose:
        return a.inverted()

    def interpolate(self, a: SE3Pose, b: SE3Pose, alpha: float) -> SE3Pose:
        return SE3Pose.from_matrix(se3_interpolate(a.as_matrix(), b.as_matrix(), alpha))

    def compose_jacobians(self, a: SE3Pose, b: SE3Pose) -> Tuple[np.ndarray, np.ndarray]:
        # (a Exp(d)) b = a b Exp(Ad(b^-1) d)
        return adjoint(inverse_transform(b.as_matrix())), np.eye(6)

    def inverse_jacobian(self, a: SE3Pose) -> np.ndarray:
        # (a Exp(d))^-1 = a^-1 Exp(-Ad(a) d)
        return -a.adjoint()

    def interpolate_jacobians(self, a: SE3Pose, b: SE3Pose, alpha: float) -> Tuple[np.ndarray, np.ndarray]:
        return se3_interpolate_jacobians(a.as_matrix(), b.as_matrix(), alpha)

    def interpolation_derivative(self, a: SE3Pose, b: SE3Pose, duration: float) -> np.ndarray:
        return se3_log(inverse_transform(a.as_matrix()) @ b.as_matrix()) / duration

    def compose_derivative(self, a: SE3Pose, a_dot: np.ndarray, b: SE3Pose, b_dot: np.ndarray) -> np.ndarray:
        # Body twist of a(t) b(t) is Ad(b^-1) xi_a + xi_b
        return adjoint(inverse_transform(b.as_matrix())) @ a_dot + b_dot

    # Evaluation

    def evaluate(self, time: int, lower: KeyCoefficientTime, upper: KeyCoefficientTime) -> SE3Pose:
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
    ) -> Tuple[SE3Pose, List[np.ndarray]]:
        if self.is_degenerate(lower, upper):
            return self.coefficient_value(lower.coefficient), [np.eye(6)]
        T0 = self.coefficient_value(lower.coefficient)
        T1 = self.coefficient_value(upper.coefficient)
        alpha = self.alpha(time, lower, upper)
        J_lower, J_upper = self.interpolate_jacobians(T0, T1, alpha)
        return self.interpolate(T0, T1, alpha), [J_lower, J_upper]

    def evaluate_derivative(
        self,
        time: int,
        derivative_order: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> np.ndarray:
        self.check_derivative_order(derivative_order)
        if self.is_degenerate(lower, upper):
            return np.zeros(6)
        return self.interpolation_derivative(
            self.coefficient_value(lower.coefficient),
            self.coefficient_value(upper.coefficient),
            self.duration_seconds(lower, upper),
        )

    def evaluate_derivative_and_jacobian(
        self,
        time: int,
        derivative_order: int,
        lower: KeyCoefficientTime,
        upper: KeyCoefficientTime,
    ) -> Tuple[np.ndarray, List[np.ndarray]]:
        self.check_derivative_order(derivative_order)
        if self.is_degenerate(lower, upper):
            return np.zeros(6), [np.zeros((6, 6))]

        T0 = self.coefficient_value(lower.coefficient).as_matrix()
        T1 = self.coefficient_value(upper.coefficient).as_matrix()
        duration = self.duration_seconds(lower, upper)

        D = inverse_transform(T0) @ T1
        xi = se3_log(D)
        Jr_inv = se3_right_jacobian_inv(xi)
        J_upper = Jr_inv / duration
        J_lower = -Jr_inv @ adjoint(inverse_transform(D)) / duration
        return xi / duration, [J_lower, J_upper]
