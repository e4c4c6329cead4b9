"""Expressions over keyed coefficients for nonlinear optimizers.

An expression is a small tree whose leaves are either constants or
coefficients addressed by key. Evaluating it against a mapping
{key: coefficient} yields the value and the Jacobian of the value with
respect to every leaf key, so an optimizer can differentiate end-to-end
through curve evaluation and composition.

The group operations and their Jacobians come from the evaluator of the
curve family that built the expression. Jacobians are taken with respect
to the family's perturbation convention (right perturbation on SE(3),
additive on vector spaces).
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Tuple

import numpy as np

if TYPE_CHECKING:
    from .evaluator import Evaluator

Jacobians = Dict[int, np.ndarray]


def _accumulate(out: Jacobians, chain: np.ndarray, jacobians: Jacobians) -> None:
    """Add chain @ J into out for every key of jacobians."""
    for key, J in jacobians.items():
        contribution = chain @ J
        if key in out:
            out[key] = out[key] + contribution
        else:
            out[key] = contribution


class Expression(ABC):
    """Base class for differentiable expressions."""

    @abstractmethod
    def keys(self) -> List[int]:
        """Keys of the coefficients this expression depends on."""
        pass

    @abstractmethod
    def value_and_jacobians(self, values: Mapping[int, Any]) -> Tuple[Any, Jacobians]:
        """Evaluate the expression and its Jacobians.

        Args:
            values: Coefficients by key; must contain every key in keys().

        Returns:
            Tuple (value, jacobians) where jacobians maps each key to a
            (value tangent dim, coefficient tangent dim) matrix.
        """
        pass

    def value(self, values: Mapping[int, Any]) -> Any:
        return self.value_and_jacobians(values)[0]


class ConstantExpression(Expression):
    """A fixed value with no dependency on any coefficient."""

    def __init__(self, value: Any):
        self.constant = value

    def keys(self) -> List[int]:
        return []

    def value_and_jacobians(self, values: Mapping[int, Any]) -> Tuple[Any, Jacobians]:
        return self.constant, {}

    def __repr__(self) -> str:
        return f"ConstantExpression({self.constant!r})"


class LeafExpression(Expression):
    """The value of the coefficient with a given key."""

    def __init__(self, family: "Evaluator", key: int):
        self.family = family
        self.key = key

    def keys(self) -> List[int]:
        return [self.key]

    def value_and_jacobians(self, values: Mapping[int, Any]) -> Tuple[Any, Jacobians]:
        if self.key not in values:
            raise KeyError(f"No value for key {self.key}")
        value = self.family.coefficient_value(values[self.key])
        return value, {self.key: np.eye(self.family.tangent_dimension)}

    def __repr__(self) -> str:
        return f"LeafExpression(key={self.key})"


class ComposeExpression(Expression):
    """Group composition a * b."""

    def __init__(self, family: "Evaluator", a: Expression, b: Expression):
        self.family = family
        self.a = a
        self.b = b

    def keys(self) -> List[int]:
        return list(dict.fromkeys(self.a.keys() + self.b.keys()))

    def value_and_jacobians(self, values: Mapping[int, Any]) -> Tuple[Any, Jacobians]:
        value_a, jacobians_a = self.a.value_and_jacobians(values)
        value_b, jacobians_b = self.b.value_and_jacobians(values)
        d_a, d_b = self.family.compose_jacobians(value_a, value_b)
        jacobians: Jacobians = {}
        _accumulate(jacobians, d_a, jacobians_a)
        _accumulate(jacobians, d_b, jacobians_b)
        return self.family.compose(value_a, value_b), jacobians


class InverseExpression(Expression):
    """Group inverse a^-1."""

    def __init__(self, family: "Evaluator", a: Expression):
        self.family = family
        self.a = a

    def keys(self) -> List[int]:
        return self.a.keys()

    def value_and_jacobians(self, values: Mapping[int, Any]) -> Tuple[Any, Jacobians]:
        value_a, jacobians_a = self.a.value_and_jacobians(values)
        jacobians: Jacobians = {}
        _accumulate(jacobians, self.family.inverse_jacobian(value_a), jacobians_a)
        return self.family.inverse(value_a), jacobians


class InterpolateExpression(Expression):
    """Interpolation between a (alpha = 0) and b (alpha = 1)."""

    def __init__(self, family: "Evaluator", a: Expression, b: Expression, alpha: float):
        self.family = family
        self.a = a
        self.b = b
        self.alpha = float(alpha)

    def keys(self) -> List[int]:
        return list(dict.fromkeys(self.a.keys() + self.b.keys()))

    def value_and_jacobians(self, values: Mapping[int, Any]) -> Tuple[Any, Jacobians]:
        value_a, jacobians_a = self.a.value_and_jacobians(values)
        value_b, jacobians_b = self.b.value_and_jacobians(values)
        d_a, d_b = self.family.interpolate_jacobians(value_a, value_b, self.alpha)
        jacobians: Jacobians = {}
        _accumulate(jacobians, d_a, jacobians_a)
        _accumulate(jacobians, d_b, jacobians_b)
        return self.family.interpolate(value_a, value_b, self.alpha), jacobians
