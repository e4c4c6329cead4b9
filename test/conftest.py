"""Pytest fixtures for trajectory curve tests."""

from typing import Callable

import numpy as np
import pytest

from trajectory_curves import (
    CoefficientManager,
    Coefficient,
    CurveConfig,
    KeyGenerator,
    SE3Pose,
)


@pytest.fixture
def key_generator() -> KeyGenerator:
    """Fresh key allocator starting at 0."""
    return KeyGenerator()


@pytest.fixture
def config() -> CurveConfig:
    """Configuration with one time unit per second."""
    return CurveConfig(seconds_per_time_unit=1.0)


@pytest.fixture
def manager(key_generator: KeyGenerator) -> CoefficientManager:
    """Store with samples at times 0, 10, 20, 30."""
    manager = CoefficientManager(key_generator)
    for time in (0, 10, 20, 30):
        manager.insert_coefficient(time, Coefficient([float(time)]))
    return manager


@pytest.fixture
def random_twist() -> np.ndarray:
    """Random twist [omega, v] with a moderate rotation."""
    np.random.seed(42)
    return np.random.uniform(-0.8, 0.8, 6)


@pytest.fixture
def random_pose() -> SE3Pose:
    """Random rigid-body pose."""
    np.random.seed(43)
    return SE3Pose.exp(np.random.uniform(-0.7, 0.7, 6))


@pytest.fixture
def other_pose() -> SE3Pose:
    """Second random rigid-body pose."""
    np.random.seed(44)
    return SE3Pose.exp(np.random.uniform(-0.7, 0.7, 6))


@pytest.fixture
def numerical_jacobian() -> Callable[[Callable[[SE3Pose], SE3Pose], SE3Pose], np.ndarray]:
    """Central-difference Jacobian of a pose function under right perturbations.

    Column i is Log(f(X)^-1 f(X Exp(h e_i))) / h, differenced centrally.
    """
    def jacobian(f: Callable[[SE3Pose], SE3Pose], X: SE3Pose, h: float = 1e-6) -> np.ndarray:
        f0_inv = f(X).inverted()
        J = np.zeros((6, 6))
        for i in range(6):
            d = np.zeros(6)
            d[i] = h
            plus = (f0_inv * f(X * SE3Pose.exp(d))).log()
            minus = (f0_inv * f(X * SE3Pose.exp(-d))).log()
            J[:, i] = (plus - minus) / (2.0 * h)
        return J

    return jacobian
