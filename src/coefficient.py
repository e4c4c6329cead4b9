"""Coefficient value types stored by curves."""

from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(eq=False)
class Coefficient:
    """Vector-valued control coefficient.

    Attributes:
        value: (N,) coefficient vector.
    """

    value: np.ndarray

    def __post_init__(self):
        """Convert the value to a flat float array."""
        self.value = np.asarray(self.value, dtype=np.float64).ravel()
        if self.value.size == 0:
            raise ValueError("Coefficient must have at least one element")

    @property
    def dimension(self) -> int:
        return self.value.shape[0]

    def equals(self, other: "Coefficient", tol: float = 1e-9) -> bool:
        """Compare two coefficients element-wise within an absolute tolerance."""
        if not isinstance(other, Coefficient):
            return False
        if other.dimension != self.dimension:
            return False
        return bool(np.allclose(self.value, other.value, rtol=0.0, atol=tol))

    def __repr__(self) -> str:
        return f"Coefficient({self.value.tolist()})"


@dataclass(frozen=True)
class KeyCoefficientTime:
    """One stored coefficient together with its key and time.

    Attributes:
        time: Sample time of the coefficient.
        key: Stable key of the coefficient.
        coefficient: The coefficient value.
    """

    time: int
    key: int
    coefficient: Any
