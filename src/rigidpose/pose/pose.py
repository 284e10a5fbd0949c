"""Rigid-body pose representation.

A pose is an SE(3) transform (unit quaternion rotation plus translation)
together with a scalar time offset describing the time-synchronization bias
of the sensor the pose belongs to.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
import numpy.typing as npt

from ..utils.conversions import (
    normalize_quaternion,
    quaternion_angular_distance,
    quaternion_conjugate,
    quaternion_multiply,
    quaternion_to_rotation_matrix,
    rotate_vector,
    rotation_matrix_to_quaternion,
)


def _identity_rotation() -> npt.NDArray[np.float64]:
    return np.array([1.0, 0.0, 0.0, 0.0], dtype=np.float64)


def _zero_translation() -> npt.NDArray[np.float64]:
    return np.zeros(3, dtype=np.float64)


@dataclass(frozen=True, eq=False)
class Pose:
    """Immutable rigid-body pose.

    The rotation is normalized on construction so every instance holds a unit
    quaternion. The stored arrays are read-only; derive new poses with
    :meth:`compose`, :meth:`inverse` or :meth:`with_time_offset`.

    Geometric operations return poses with a zero time offset. The offset is
    managed by the caller.
    """

    rotation: npt.NDArray[np.float64] = field(default_factory=_identity_rotation)  # [w, x, y, z]
    translation: npt.NDArray[np.float64] = field(default_factory=_zero_translation)
    time_offset: float = 0.0  # seconds

    def __post_init__(self) -> None:
        """Normalize the rotation and validate shapes."""
        rotation = normalize_quaternion(self.rotation)

        translation = np.array(self.translation, dtype=np.float64)
        if translation.size == 3:
            translation = translation.reshape(3)
        if translation.shape != (3,):
            raise ValueError(f"Translation must be a 3D vector, got shape {translation.shape}")

        rotation.setflags(write=False)
        translation.setflags(write=False)
        object.__setattr__(self, "rotation", rotation)
        object.__setattr__(self, "translation", translation)
        object.__setattr__(self, "time_offset", float(self.time_offset))

    @classmethod
    def identity(cls) -> "Pose":
        """Identity pose: no rotation, no translation, zero time offset."""
        return cls()

    @classmethod
    def from_pose(cls, other: "Pose") -> "Pose":
        """Copy another pose."""
        return cls(
            rotation=other.rotation,
            translation=other.translation,
            time_offset=other.time_offset,
        )

    @classmethod
    def from_quaternion(
        cls,
        quaternion: npt.ArrayLike,
        translation: npt.ArrayLike,
        time_offset: float = 0.0,
    ) -> "Pose":
        """Create a pose from a quaternion and translation.

        Args:
            quaternion: Rotation as [w, x, y, z], any non-zero norm.
            translation: 3D translation.
            time_offset: Time offset in seconds.

        Returns:
            Pose instance.
        """
        return cls(rotation=quaternion, translation=translation, time_offset=time_offset)

    @classmethod
    def from_rotation_matrix(
        cls,
        rotation_matrix: npt.ArrayLike,
        translation: npt.ArrayLike,
        time_offset: float = 0.0,
    ) -> "Pose":
        """Create a pose from a 3x3 rotation matrix and translation.

        Args:
            rotation_matrix: 3x3 rotation matrix.
            translation: 3D translation.
            time_offset: Time offset in seconds.

        Returns:
            Pose instance.
        """
        return cls(
            rotation=rotation_matrix_to_quaternion(rotation_matrix),
            translation=translation,
            time_offset=time_offset,
        )

    @classmethod
    def from_transform(cls, transform: npt.ArrayLike, time_offset: float = 0.0) -> "Pose":
        """Create a pose from a 4x4 homogeneous transformation matrix.

        Args:
            transform: 4x4 matrix [R | t; 0 0 0 1].
            time_offset: Time offset in seconds.

        Returns:
            Pose instance.
        """
        T = np.asarray(transform, dtype=np.float64)
        if T.shape != (4, 4):
            raise ValueError(f"Transform must be a 4x4 matrix, got shape {T.shape}")

        return cls(
            rotation=rotation_matrix_to_quaternion(T[:3, :3]),
            translation=T[:3, 3],
            time_offset=time_offset,
        )

    @classmethod
    def from_pose_message(cls, message: Any) -> "Pose":
        """Create a pose from a record with ``orientation`` and ``position``.

        The record is only read. It follows the geometry_msgs/Pose layout:
        ``orientation.{x, y, z, w}`` and ``position.{x, y, z}``.
        """
        orientation = message.orientation
        position = message.position
        return cls(
            rotation=[orientation.w, orientation.x, orientation.y, orientation.z],
            translation=[position.x, position.y, position.z],
        )

    @classmethod
    def from_odometry(cls, odometry: Any) -> "Pose":
        """Create a pose from an odometry record.

        Reads ``odometry.pose.pose`` (the nav_msgs/Odometry layout). The time
        offset is left at zero.
        """
        return cls.from_pose_message(odometry.pose.pose)

    @property
    def qw(self) -> float:
        return float(self.rotation[0])

    @property
    def qx(self) -> float:
        return float(self.rotation[1])

    @property
    def qy(self) -> float:
        return float(self.rotation[2])

    @property
    def qz(self) -> float:
        return float(self.rotation[3])

    @property
    def rotation_matrix(self) -> npt.NDArray[np.float64]:
        """3x3 rotation matrix of the pose."""
        return quaternion_to_rotation_matrix(self.rotation)

    @property
    def transform(self) -> npt.NDArray[np.float64]:
        """4x4 homogeneous transformation matrix of the pose."""
        T = np.eye(4)
        T[:3, :3] = self.rotation_matrix
        T[:3, 3] = self.translation
        return T

    def copy(self) -> "Pose":
        return Pose.from_pose(self)

    def with_time_offset(self, time_offset: float) -> "Pose":
        """Return the same transform with a different time offset."""
        return Pose(rotation=self.rotation, translation=self.translation, time_offset=time_offset)

    def compose(self, other: "Pose") -> "Pose":
        """Chain this transform with ``other``.

        The result expresses the frame of ``other`` in the parent frame of
        this pose, equivalent to ``self.transform @ other.transform``.
        """
        return compose(self, other)

    then = compose

    def __mul__(self, other: "Pose") -> "Pose":
        if not isinstance(other, Pose):
            return NotImplemented
        return compose(self, other)

    def inverse(self) -> "Pose":
        """Return the inverse transform.

        ``self.compose(self.inverse())`` is the identity.
        """
        inverse_rotation = quaternion_conjugate(self.rotation)
        return Pose(
            rotation=inverse_rotation,
            translation=-rotate_vector(inverse_rotation, self.translation),
        )

    def between(self, other: "Pose") -> "Pose":
        """Relative pose taking this frame onto ``other``."""
        return compose(self.inverse(), other)

    def transform_points(self, points: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Apply the pose to points expressed in its own frame.

        Args:
            points: A 3D point or an Nx3 array of points.

        Returns:
            Transformed point(s) with the same shape as the input.
        """
        points = np.asarray(points, dtype=np.float64)
        if points.shape[-1:] != (3,) or points.ndim > 2:
            raise ValueError(f"Points must be a 3D vector or Nx3 array, got shape {points.shape}")
        return rotate_vector(self.rotation, points) + self.translation

    def angular_distance(self, other: "Pose") -> float:
        """Rotation angle in radians between the orientations of two poses."""
        return quaternion_angular_distance(self.rotation, other.rotation)

    def is_close(self, other: "Pose", atol: float = 1e-9) -> bool:
        """Check whether two poses describe the same transform.

        ``q`` and ``-q`` describe the same rotation and compare equal. The time
        offset is not compared.
        """
        if not np.allclose(self.translation, other.translation, rtol=0.0, atol=atol):
            return False
        return bool(
            np.allclose(self.rotation, other.rotation, rtol=0.0, atol=atol)
            or np.allclose(self.rotation, -other.rotation, rtol=0.0, atol=atol)
        )

    def __str__(self) -> str:
        t = " ".join(f"{v:g}" for v in self.translation)
        q = " ".join(f"{v:g}" for v in (self.qx, self.qy, self.qz, self.qw))
        return f"t: [{t}], q: [{q}], td: {self.time_offset:g}"

    def __repr__(self) -> str:
        return (
            f"Pose(rotation={self.rotation.tolist()}, "
            f"translation={self.translation.tolist()}, "
            f"time_offset={self.time_offset!r})"
        )


def compose(pose1: Pose, pose2: Pose) -> Pose:
    """Compose two poses, applying ``pose1`` as the outer transform.

    Args:
        pose1: Pose of frame 1 in its parent frame.
        pose2: Pose of frame 2 in frame 1.

    Returns:
        Pose of frame 2 in the parent frame of frame 1, with zero time offset.
    """
    # t12 = t1 + q1 * t2, q12 = q1 * q2
    return Pose(
        rotation=quaternion_multiply(pose1.rotation, pose2.rotation),
        translation=rotate_vector(pose1.rotation, pose2.translation) + pose1.translation,
    )
