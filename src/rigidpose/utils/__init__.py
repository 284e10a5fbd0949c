"""Quaternion and rotation helpers used by the pose types."""

from .conversions import (
    align_quaternion_sign,
    normalize_quaternion,
    quaternion_angular_distance,
    quaternion_conjugate,
    quaternion_exp,
    quaternion_log,
    quaternion_multiply,
    quaternion_to_rotation_matrix,
    rotate_vector,
    rotation_matrix_to_quaternion,
)
from .geometry import axis_angle_to_quaternion, rotation_matrix, rotation_quaternion

__all__ = [
    "align_quaternion_sign",
    "axis_angle_to_quaternion",
    "normalize_quaternion",
    "quaternion_angular_distance",
    "quaternion_conjugate",
    "quaternion_exp",
    "quaternion_log",
    "quaternion_multiply",
    "quaternion_to_rotation_matrix",
    "rotate_vector",
    "rotation_matrix",
    "rotation_matrix_to_quaternion",
    "rotation_quaternion",
]
