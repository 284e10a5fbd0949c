"""Geometry helpers for building rotations about fixed axes."""

from typing import Union

import numpy as np
import numpy.typing as npt

from .conversions import quaternion_exp, quaternion_to_rotation_matrix

_NAMED_AXES = {
    "x": np.array([1.0, 0.0, 0.0]),
    "y": np.array([0.0, 1.0, 0.0]),
    "z": np.array([0.0, 0.0, 1.0]),
}

Axis = Union[str, npt.ArrayLike]


def _unit_axis(axis: Axis) -> npt.NDArray[np.float64]:
    if isinstance(axis, str):
        try:
            return _NAMED_AXES[axis.lower()]
        except KeyError:
            raise ValueError(f"Invalid axis: {axis}. Must be 'x', 'y', or 'z'.") from None

    vec = np.asarray(axis, dtype=np.float64)
    if vec.shape != (3,):
        raise ValueError(f"Axis must be a 3D vector, got shape {vec.shape}")
    norm = np.linalg.norm(vec)
    if norm == 0.0:
        raise ValueError("Axis must be non-zero")
    return vec / norm


def axis_angle_to_quaternion(axis: Axis, radians: float) -> npt.NDArray[np.float64]:
    """Create a unit quaternion for a rotation about an axis.

    Args:
        axis: 'x', 'y', 'z' or an arbitrary non-zero 3D vector.
        radians: Rotation angle in radians (right-hand rule).

    Returns:
        Unit quaternion as [w, x, y, z].
    """
    return quaternion_exp(_unit_axis(axis) * radians)


def rotation_quaternion(axis: Axis, degrees: float) -> npt.NDArray[np.float64]:
    """Degree-based variant of :func:`axis_angle_to_quaternion`."""
    return axis_angle_to_quaternion(axis, np.deg2rad(degrees))


def rotation_matrix(axis: Axis, degrees: float) -> npt.NDArray[np.float64]:
    """Create a 3D rotation matrix for rotation around an axis.

    Args:
        axis: 'x', 'y', 'z' or an arbitrary non-zero 3D vector.
        degrees: Rotation angle in degrees.

    Returns:
        3x3 rotation matrix.
    """
    return quaternion_to_rotation_matrix(rotation_quaternion(axis, degrees))
