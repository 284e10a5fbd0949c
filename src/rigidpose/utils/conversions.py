"""Quaternion and rotation conversion utilities.

All quaternions in this module use [w, x, y, z] order.
"""

import numpy as np
import numpy.typing as npt

# Norm below which a quaternion carries no orientation
_NORM_EPSILON = 1e-12

# Rotation angle below which the log/exp maps use their small-angle limit
_ANGLE_EPSILON = 1e-10


def normalize_quaternion(q: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Scale a quaternion to unit length.

    Args:
        q: Quaternion as [w, x, y, z], any non-zero norm.

    Returns:
        Unit quaternion as [w, x, y, z].

    Raises:
        ValueError: If q does not have 4 components, its norm is zero or it
            is not finite.
    """
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError(f"Quaternion must have 4 components, got shape {q.shape}")

    norm = np.linalg.norm(q)
    if not np.isfinite(norm):
        raise ValueError(f"Quaternion must be finite, got {q.tolist()}")
    if norm < _NORM_EPSILON:
        raise ValueError("Quaternion with zero norm has no orientation")
    return q / norm


def quaternion_multiply(
    a: npt.NDArray[np.float64], b: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """Hamilton product a * b (apply b first, then a)."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array(
        [
            aw * bw - ax * bx - ay * by - az * bz,
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by - ax * bz + ay * bw + az * bx,
            aw * bz + ax * by - ay * bx + az * bw,
        ],
        dtype=np.float64,
    )


def quaternion_conjugate(q: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Conjugate of a quaternion, the inverse rotation for unit quaternions."""
    return np.array([q[0], -q[1], -q[2], -q[3]], dtype=np.float64)


def rotate_vector(
    q: npt.NDArray[np.float64], v: npt.ArrayLike
) -> npt.NDArray[np.float64]:
    """Rotate vectors by a unit quaternion.

    Args:
        q: Unit quaternion as [w, x, y, z].
        v: A 3D vector or an Nx3 array of vectors.

    Returns:
        Rotated vector(s) with the same shape as v.
    """
    return np.asarray(v, dtype=np.float64) @ quaternion_to_rotation_matrix(q).T


def quaternion_to_rotation_matrix(q: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Convert quaternion to rotation matrix.

    Args:
        q: Quaternion as [w, x, y, z].

    Returns:
        3x3 rotation matrix.
    """
    w, x, y, z = normalize_quaternion(q)

    return np.array(
        [
            [1 - 2 * (y**2 + z**2), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x**2 + z**2), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x**2 + y**2)],
        ],
        dtype=np.float64,
    )


def rotation_matrix_to_quaternion(R: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Convert rotation matrix to unit quaternion.

    Uses the branch on the largest diagonal term to stay well conditioned
    for rotations close to 180 degrees.

    Args:
        R: 3x3 rotation matrix.

    Returns:
        Unit quaternion as [w, x, y, z].

    Raises:
        ValueError: If R is not 3x3.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Rotation matrix must be 3x3, got shape {R.shape}")

    trace = np.trace(R)

    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (R[2, 1] - R[1, 2]) * s
        y = (R[0, 2] - R[2, 0]) * s
        z = (R[1, 0] - R[0, 1]) * s
    elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2])
        w = (R[2, 1] - R[1, 2]) / s
        x = 0.25 * s
        y = (R[0, 1] + R[1, 0]) / s
        z = (R[0, 2] + R[2, 0]) / s
    elif R[1, 1] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2])
        w = (R[0, 2] - R[2, 0]) / s
        x = (R[0, 1] + R[1, 0]) / s
        y = 0.25 * s
        z = (R[1, 2] + R[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1])
        w = (R[1, 0] - R[0, 1]) / s
        x = (R[0, 2] + R[2, 0]) / s
        y = (R[1, 2] + R[2, 1]) / s
        z = 0.25 * s

    return normalize_quaternion(np.array([w, x, y, z]))


def quaternion_log(q: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Map a unit quaternion to its rotation vector (axis * angle).

    The shorter of the two equivalent rotations (q or -q) is returned, so the
    angle lies in [0, pi].

    Args:
        q: Unit quaternion as [w, x, y, z].

    Returns:
        Rotation vector in radians.
    """
    q = normalize_quaternion(q)
    if q[0] < 0.0:
        q = -q

    vec = q[1:]
    sin_half = np.linalg.norm(vec)
    if sin_half < _ANGLE_EPSILON:
        # First-order limit: angle / sin(angle / 2) -> 2
        return 2.0 * vec

    half_angle = np.arctan2(sin_half, q[0])
    return vec * (2.0 * half_angle / sin_half)


def quaternion_exp(rotvec: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Map a rotation vector (axis * angle) to a unit quaternion.

    Args:
        rotvec: Rotation vector in radians.

    Returns:
        Unit quaternion as [w, x, y, z].
    """
    rotvec = np.asarray(rotvec, dtype=np.float64)
    angle = np.linalg.norm(rotvec)
    if angle < _ANGLE_EPSILON:
        return normalize_quaternion(np.array([1.0, *(0.5 * rotvec)]))

    half = 0.5 * angle
    return np.array([np.cos(half), *(np.sin(half) * rotvec / angle)], dtype=np.float64)


def align_quaternion_sign(
    q: npt.NDArray[np.float64], reference: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """Return q or -q, whichever lies in the same hemisphere as reference."""
    if np.dot(q, reference) < 0.0:
        return -q
    return q


def quaternion_angular_distance(
    a: npt.NDArray[np.float64], b: npt.NDArray[np.float64]
) -> float:
    """Angle in radians of the rotation taking a onto b.

    Args:
        a: Unit quaternion as [w, x, y, z].
        b: Unit quaternion as [w, x, y, z].

    Returns:
        Angle in [0, pi].
    """
    dot = min(abs(float(np.dot(a, b))), 1.0)
    return 2.0 * float(np.arccos(dot))
