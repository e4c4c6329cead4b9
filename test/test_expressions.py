"""Tests for keyed expressions and their Jacobians."""

from typing import Callable

import numpy as np
import pytest
from numpy.testing import assert_allclose

from trajectory_curves import (
    Coefficient,
    CoefficientManager,
    ConstantExpression,
    CurveConfig,
    KeyGenerator,
    SE3Pose,
    SlerpSE3Evaluator,
    VectorSpaceEvaluator,
)


class TestVectorExpressions:
    """Tests for expressions over the additive vector group."""

    def test_compose_and_inverse(self) -> None:
        evaluator = VectorSpaceEvaluator(2)
        expr = evaluator.compose_expression(
            evaluator.leaf_expression(0),
            evaluator.inverse_expression(evaluator.leaf_expression(1)),
        )
        values = {0: Coefficient([3.0, 4.0]), 1: Coefficient([1.0, 1.0])}
        value, jacobians = expr.value_and_jacobians(values)
        assert_allclose(value, [2.0, 3.0])
        assert_allclose(jacobians[0], np.eye(2))
        assert_allclose(jacobians[1], -np.eye(2))

    def test_shared_key_accumulates(self) -> None:
        """Test that a key used twice sums its Jacobian contributions."""
        evaluator = VectorSpaceEvaluator(1)
        leaf = evaluator.leaf_expression(7)
        expr = evaluator.interpolate_expression(leaf, evaluator.compose_expression(leaf, leaf), 0.5)
        value, jacobians = expr.value_and_jacobians({7: Coefficient([2.0])})
        # 0.5 x + 0.5 (x + x) = 1.5 x
        assert_allclose(value, [3.0])
        assert_allclose(jacobians[7], [[1.5]])
        assert expr.keys() == [7]

    def test_constant_has_no_keys(self) -> None:
        expr = ConstantExpression(np.array([1.0]))
        assert expr.keys() == []
        value, jacobians = expr.value_and_jacobians({})
        assert_allclose(value, [1.0])
        assert jacobians == {}

    def test_missing_value_raises(self) -> None:
        evaluator = VectorSpaceEvaluator(1)
        with pytest.raises(KeyError):
            evaluator.leaf_expression(3).value({})


class TestSE3Expressions:
    """Tests for expressions over SE(3)."""

    def test_nested_jacobians_numerical(self, random_pose: SE3Pose, other_pose: SE3Pose,
                                        numerical_jacobian: Callable) -> None:
        """Test chain rule through interpolate(inverse(a) * b, b, alpha)."""
        evaluator = SlerpSE3Evaluator()
        a = evaluator.leaf_expression(0)
        b = evaluator.leaf_expression(1)
        expr = evaluator.interpolate_expression(
            evaluator.compose_expression(evaluator.inverse_expression(a), b), b, 0.4
        )

        def f(pose_a: SE3Pose, pose_b: SE3Pose) -> SE3Pose:
            return evaluator.interpolate(pose_a.inverted() * pose_b, pose_b, 0.4)

        value, jacobians = expr.value_and_jacobians({0: random_pose, 1: other_pose})
        assert value.equals(f(random_pose, other_pose), 1e-12)
        assert_allclose(jacobians[0], numerical_jacobian(lambda X: f(X, other_pose), random_pose), atol=1e-6)
        assert_allclose(jacobians[1], numerical_jacobian(lambda X: f(random_pose, X), other_pose), atol=1e-6)

    def test_value_expression_matches_evaluate(self, config: CurveConfig, random_pose: SE3Pose, other_pose: SE3Pose) -> None:
        manager = CoefficientManager(KeyGenerator())
        manager.insert_coefficient(0, random_pose)
        manager.insert_coefficient(10, other_pose)
        evaluator = SlerpSE3Evaluator(config)
        lower, upper = manager.get_coefficients_at(6)

        expr = evaluator.value_expression(6, lower, upper)
        value, jacobians = expr.value_and_jacobians(manager.get_coefficients())
        expected, (J_lower, J_upper) = evaluator.evaluate_and_jacobian(6, lower, upper)
        assert value.equals(expected, 1e-12)
        assert_allclose(jacobians[lower.key], J_lower, atol=1e-12)
        assert_allclose(jacobians[upper.key], J_upper, atol=1e-12)
