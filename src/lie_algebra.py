"""Lie algebra operations for SE(3) and SO(3).

Pure NumPy implementation. Twists use the [omega, v] convention of
Lynch and Park (2017); Jacobians follow Barfoot (2017), Chapter 7, with the
blocks reordered to match [omega, v].

Right Jacobians satisfy
    Exp(xi + d) ~= Exp(xi) Exp(Jr(xi) d)
and left Jacobians
    Exp(xi + d) ~= Exp(Jl(xi) d) Exp(xi).
"""

import numpy as np

# Below this angle the closed forms lose precision and Taylor series are used
_SMALL_ANGLE = 1e-4
_SMALL_ANGLE_Q = 1e-2


def skew(v: np.ndarray) -> np.ndarray:
    """Cross-product matrix of a 3-vector: skew(a) @ b == np.cross(a, b)."""
    # Row i is e_i x v
    return np.cross(np.eye(3), np.asarray(v, dtype=np.float64).reshape(3))


def unskew(S: np.ndarray) -> np.ndarray:
    """Vector of the skew-symmetric part of a (3, 3) matrix; inverts skew()."""
    S = np.asarray(S, dtype=np.float64)
    return 0.5 * np.array([S[2, 1] - S[1, 2], S[0, 2] - S[2, 0], S[1, 0] - S[0, 1]])


def so3_exp(phi: np.ndarray) -> np.ndarray:
    """Compute the exponential map of a rotation vector.

    Rodrigues' formula:
        Exp(phi) = I + sin(theta)/theta [phi]^ + (1-cos(theta))/theta^2 [phi]^2

    Args:
        phi: (3,) rotation vector (axis * angle).

    Returns:
        (3, 3) rotation matrix in SO(3).
    """
    phi = np.asarray(phi, dtype=np.float64).flatten()
    theta = np.linalg.norm(phi)
    phi_hat = skew(phi)
    phi_hat_sq = phi_hat @ phi_hat

    if theta < _SMALL_ANGLE:
        return np.eye(3) + phi_hat + 0.5 * phi_hat_sq

    a = np.sin(theta) / theta
    # 1 - cos(theta) = 2 sin^2(theta / 2) avoids cancellation
    b = 2.0 * np.sin(0.5 * theta) ** 2 / theta**2
    return np.eye(3) + a * phi_hat + b * phi_hat_sq


def so3_log(R: np.ndarray) -> np.ndarray:
    """Compute the logarithm map of a rotation matrix.

    Args:
        R: (3, 3) rotation matrix.

    Returns:
        (3,) rotation vector omega*theta with theta in [0, pi].
    """
    R = np.asarray(R, dtype=np.float64)

    s = 0.5 * unskew(R - R.T)  # sin(theta) * axis
    sin_theta = np.linalg.norm(s)
    cos_theta = 0.5 * (np.trace(R) - 1.0)
    theta = np.arctan2(sin_theta, cos_theta)

    if sin_theta < 1e-6:
        if cos_theta > 0.0:
            # theta ~= sin(theta) near identity
            return s.copy()
        # theta close to pi: find the column of R + I with largest norm
        R_plus_I = R + np.eye(3)
        norms = [np.linalg.norm(R_plus_I[:, i]) for i in range(3)]
        i = int(np.argmax(norms))
        omega = R_plus_I[:, i] / norms[i]
        if np.dot(omega, s) < 0.0:
            omega = -omega
        return omega * theta

    return s * (theta / sin_theta)


def so3_left_jacobian(phi: np.ndarray) -> np.ndarray:
    """Left Jacobian of SO(3).

    Jl(phi) = I + (1-cos(theta))/theta^2 [phi]^ + (theta-sin(theta))/theta^3 [phi]^2

    Args:
        phi: (3,) rotation vector.

    Returns:
        (3, 3) left Jacobian.
    """
    phi = np.asarray(phi, dtype=np.float64).flatten()
    theta = np.linalg.norm(phi)
    phi_hat = skew(phi)
    phi_hat_sq = phi_hat @ phi_hat

    if theta < _SMALL_ANGLE:
        return np.eye(3) + 0.5 * phi_hat + phi_hat_sq / 6.0

    a = 2.0 * np.sin(0.5 * theta) ** 2 / theta**2
    b = (theta - np.sin(theta)) / theta**3
    return np.eye(3) + a * phi_hat + b * phi_hat_sq


def so3_left_jacobian_inv(phi: np.ndarray) -> np.ndarray:
    """Inverse of the SO(3) left Jacobian.

    Jl^-1(phi) = I - 1/2 [phi]^ + (1/theta^2 - (1+cos(theta))/(2 theta sin(theta))) [phi]^2

    Args:
        phi: (3,) rotation vector with norm below 2*pi.

    Returns:
        (3, 3) inverse left Jacobian.
    """
    phi = np.asarray(phi, dtype=np.float64).flatten()
    theta = np.linalg.norm(phi)
    phi_hat = skew(phi)
    phi_hat_sq = phi_hat @ phi_hat

    if theta < _SMALL_ANGLE:
        b = 1.0 / 12.0 + theta**2 / 720.0
    else:
        b = 1.0 / theta**2 - (1.0 + np.cos(theta)) / (2.0 * theta * np.sin(theta))
    return np.eye(3) - 0.5 * phi_hat + b * phi_hat_sq


def se3_exp(twist: np.ndarray) -> np.ndarray:
    """Compute the exponential map of a twist.

    Exp([omega, v]) = [[Exp(omega), Jl(omega) v], [0, 1]]

    Args:
        twist: (6,) twist [omega, v].

    Returns:
        (4, 4) homogeneous transformation matrix.
    """
    twist = np.asarray(twist, dtype=np.float64).flatten()
    omega = twist[:3]
    v = twist[3:]

    T = np.eye(4, dtype=np.float64)
    T[:3, :3] = so3_exp(omega)
    T[:3, 3] = so3_left_jacobian(omega) @ v
    return T


def se3_log(T: np.ndarray) -> np.ndarray:
    """Compute the logarithm map of a transformation.

    Args:
        T: (4, 4) homogeneous transformation matrix.

    Returns:
        (6,) twist [omega, v].
    """
    T = np.asarray(T, dtype=np.float64)
    omega = so3_log(T[:3, :3])
    v = so3_left_jacobian_inv(omega) @ T[:3, 3]
    return np.concatenate([omega, v])


def _se3_q_matrix(twist: np.ndarray) -> np.ndarray:
    """Off-diagonal block of the SE(3) left Jacobian (Barfoot eq. 7.86)."""
    phi = twist[:3]
    rho = twist[3:]
    theta = np.linalg.norm(phi)

    phi_hat = skew(phi)
    rho_hat = skew(rho)
    phi_rho = phi_hat @ rho_hat
    rho_phi = rho_hat @ phi_hat
    phi_rho_phi = phi_rho @ phi_hat

    if theta < _SMALL_ANGLE_Q:
        theta_sq = theta**2
        c1 = 1.0 / 6.0 - theta_sq / 120.0
        c2 = 1.0 / 24.0 - theta_sq / 720.0
        c3 = 1.0 / 120.0 - theta_sq / 2520.0
    else:
        c1 = (theta - np.sin(theta)) / theta**3
        c2 = (theta**2 + 2.0 * np.cos(theta) - 2.0) / (2.0 * theta**4)
        c3 = (2.0 * theta - 3.0 * np.sin(theta) + theta * np.cos(theta)) / (2.0 * theta**5)

    return (
        0.5 * rho_hat
        + c1 * (phi_rho + rho_phi + phi_rho_phi)
        + c2 * (phi_hat @ phi_rho + rho_phi @ phi_hat - 3.0 * phi_rho_phi)
        + c3 * (phi_rho_phi @ phi_hat + phi_hat @ phi_rho_phi)
    )


def se3_left_jacobian(twist: np.ndarray) -> np.ndarray:
    """Left Jacobian of SE(3).

    Jl([omega, v]) = [[Jl(omega), 0        ],
                      [Q(omega, v), Jl(omega)]]

    Args:
        twist: (6,) twist [omega, v].

    Returns:
        (6, 6) left Jacobian.
    """
    twist = np.asarray(twist, dtype=np.float64).flatten()
    J = so3_left_jacobian(twist[:3])

    Jl = np.zeros((6, 6), dtype=np.float64)
    Jl[:3, :3] = J
    Jl[3:, :3] = _se3_q_matrix(twist)
    Jl[3:, 3:] = J
    return Jl


def se3_left_jacobian_inv(twist: np.ndarray) -> np.ndarray:
    """Inverse of the SE(3) left Jacobian.

    Jl^-1 = [[J^-1,           0   ],
             [-J^-1 Q J^-1,   J^-1]]

    Args:
        twist: (6,) twist [omega, v].

    Returns:
        (6, 6) inverse left Jacobian.
    """
    twist = np.asarray(twist, dtype=np.float64).flatten()
    J_inv = so3_left_jacobian_inv(twist[:3])
    Q = _se3_q_matrix(twist)

    Jl_inv = np.zeros((6, 6), dtype=np.float64)
    Jl_inv[:3, :3] = J_inv
    Jl_inv[3:, :3] = -J_inv @ Q @ J_inv
    Jl_inv[3:, 3:] = J_inv
    return Jl_inv


def se3_right_jacobian(twist: np.ndarray) -> np.ndarray:
    """Right Jacobian of SE(3), Jr(xi) = Jl(-xi)."""
    return se3_left_jacobian(-np.asarray(twist, dtype=np.float64).flatten())


def se3_right_jacobian_inv(twist: np.ndarray) -> np.ndarray:
    """Inverse right Jacobian of SE(3), Jr^-1(xi) = Jl^-1(-xi)."""
    return se3_left_jacobian_inv(-np.asarray(twist, dtype=np.float64).flatten())


def adjoint(T: np.ndarray) -> np.ndarray:
    """6x6 adjoint of a pose, mapping [omega, v] twists from its child frame to its parent.

    Ad(T) = [[R, 0], [[p] R, R]]
    """
    T = np.asarray(T, dtype=np.float64)
    R, p = T[:3, :3], T[:3, 3]
    return np.block([[R, np.zeros((3, 3))], [skew(p) @ R, R]])


def inverse_transform(T: np.ndarray) -> np.ndarray:
    """Closed-form inverse of a rigid transform, (R, p) -> (R^T, -R^T p)."""
    T = np.asarray(T, dtype=np.float64)
    R_t = T[:3, :3].T
    return transform_from_rotation_translation(R_t, -R_t @ T[:3, 3])


def se3_interpolate(T_a: np.ndarray, T_b: np.ndarray, alpha: float) -> np.ndarray:
    """Interpolate along the geodesic between two transformations.

    T = T_a Exp(alpha Log(T_a^-1 T_b))

    Args:
        T_a: (4, 4) transformation at alpha = 0.
        T_b: (4, 4) transformation at alpha = 1.
        alpha: Interpolation fraction.

    Returns:
        (4, 4) interpolated transformation.
    """
    xi = se3_log(inverse_transform(T_a) @ T_b)
    return T_a @ se3_exp(alpha * xi)


def se3_interpolate_jacobians(
    T_a: np.ndarray,
    T_b: np.ndarray,
    alpha: float,
) -> tuple[np.ndarray, np.ndarray]:
    """Jacobians of se3_interpolate() under right perturbations.

    With D = T_a^-1 T_b and xi = Log(D):
        J_b = alpha Jr(alpha xi) Jr^-1(xi)
        J_a = Ad(Exp(-alpha xi)) - J_b Ad(D^-1)

    Args:
        T_a: (4, 4) transformation at alpha = 0.
        T_b: (4, 4) transformation at alpha = 1.
        alpha: Interpolation fraction.

    Returns:
        Tuple (J_a, J_b) of (6, 6) matrices.
    """
    D = inverse_transform(T_a) @ T_b
    xi = se3_log(D)
    J_b = alpha * se3_right_jacobian(alpha * xi) @ se3_right_jacobian_inv(xi)
    J_a = adjoint(se3_exp(-alpha * xi)) - J_b @ adjoint(inverse_transform(D))
    return J_a, J_b


def transform_from_rotation_translation(R: np.ndarray, p: np.ndarray) -> np.ndarray:
    """Stack a rotation and a translation into a 4x4 homogeneous matrix."""
    top = np.hstack((np.asarray(R, dtype=np.float64), np.reshape(p, (3, 1))))
    return np.vstack((top, [0.0, 0.0, 0.0, 1.0]))
