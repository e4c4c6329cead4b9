"""Rigid-body pose used as value and coefficient of SE(3) curves."""

from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation

from .lie_algebra import (
    adjoint,
    inverse_transform,
    se3_exp,
    se3_log,
    transform_from_rotation_translation,
)


@dataclass(frozen=True, eq=False)
class SE3Pose:
    """Rigid-body transform T = [[R, p], [0, 1]].

    Attributes:
        R: (3, 3) rotation matrix, re-orthonormalized on construction.
        p: (3,) translation vector.
    """

    R: np.ndarray
    p: np.ndarray

    def __post_init__(self):
        """Validate shapes and project the rotation onto SO(3)."""
        R = np.asarray(self.R, dtype=np.float64)
        p = np.asarray(self.p, dtype=np.float64).ravel()
        if R.shape != (3, 3):
            raise ValueError(f"R must have shape (3, 3), got {R.shape}")
        if p.shape != (3,):
            raise ValueError(f"p must have shape (3,), got {p.shape}")
        if not (np.all(np.isfinite(R)) and np.all(np.isfinite(p))):
            raise ValueError("SE3Pose components must be finite")
        object.__setattr__(self, "R", Rotation.from_matrix(R).as_matrix())
        object.__setattr__(self, "p", p)

    @staticmethod
    def identity() -> "SE3Pose":
        return SE3Pose(np.eye(3), np.zeros(3))

    @staticmethod
    def from_matrix(T: np.ndarray) -> "SE3Pose":
        """Create a pose from a (4, 4) homogeneous matrix."""
        T = np.asarray(T, dtype=np.float64)
        if T.shape != (4, 4):
            raise ValueError(f"T must have shape (4, 4), got {T.shape}")
        return SE3Pose(T[:3, :3], T[:3, 3])

    @staticmethod
    def from_quaternion(wxyz: np.ndarray, p: np.ndarray) -> "SE3Pose":
        """Create a pose from a wxyz quaternion and a translation."""
        q = np.asarray(wxyz, dtype=np.float64).ravel()
        if q.shape != (4,):
            raise ValueError(f"Quaternion must have shape (4,), got {q.shape}")
        # scipy stores quaternions scalar-last
        return SE3Pose(Rotation.from_quat(q[[1, 2, 3, 0]]).as_matrix(), p)

    @staticmethod
    def exp(twist: np.ndarray) -> "SE3Pose":
        """Create a pose from a twist [omega, v]."""
        return SE3Pose.from_matrix(se3_exp(twist))

    def log(self) -> np.ndarray:
        """Return the twist [omega, v] of this pose."""
        return se3_log(self.as_matrix())

    @property
    def position(self) -> np.ndarray:
        return self.p.copy()

    @property
    def rotation(self) -> np.ndarray:
        return self.R.copy()

    @property
    def quaternion(self) -> np.ndarray:
        """Rotation as a wxyz quaternion with non-negative scalar part."""
        x, y, z, w = Rotation.from_matrix(self.R).as_quat()
        q = np.array([w, x, y, z])
        return -q if w < 0.0 else q

    def as_matrix(self) -> np.ndarray:
        """Return the (4, 4) homogeneous matrix."""
        return transform_from_rotation_translation(self.R, self.p)

    def adjoint(self) -> np.ndarray:
        """Return the (6, 6) Adjoint matrix."""
        return adjoint(self.as_matrix())

    def inverted(self) -> "SE3Pose":
        return SE3Pose.from_matrix(inverse_transform(self.as_matrix()))

    def __mul__(self, other: "SE3Pose") -> "SE3Pose":
        """Compose two transforms."""
        return SE3Pose(self.R @ other.R, self.R @ other.p + self.p)

    def transform_point(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64).ravel()
        if x.shape != (3,):
            raise ValueError(f"x must have shape (3,), got {x.shape}")
        return self.R @ x + self.p

    def equals(self, other: "SE3Pose", tol: float = 1e-9) -> bool:
        """Compare rotation and translation within an absolute tolerance."""
        if not isinstance(other, SE3Pose):
            return False
        return bool(
            np.allclose(self.R, other.R, rtol=0.0, atol=tol)
            and np.allclose(self.p, other.p, rtol=0.0, atol=tol)
        )

    def __repr__(self) -> str:
        return f"SE3Pose(p={self.p.tolist()}, q_wxyz={self.quaternion.tolist()})"
