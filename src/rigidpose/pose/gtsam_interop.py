"""Conversion between :class:`Pose` and GTSAM Pose3.

Requires the optional ``gtsam`` dependency (``pip install rigidpose[gtsam]``).
"""

import gtsam
import numpy as np

from .pose import Pose


def to_gtsam_pose3(pose: Pose) -> gtsam.Pose3:
    """Convert to GTSAM Pose3.

    The time offset has no GTSAM counterpart and is dropped.

    Args:
        pose: Pose to convert.

    Returns:
        GTSAM Pose3 object.
    """
    # GTSAM's quaternion constructor takes (w, x, y, z)
    w, x, y, z = pose.rotation
    rot = gtsam.Rot3.Quaternion(float(w), float(x), float(y), float(z))
    point = gtsam.Point3(*(float(v) for v in pose.translation))
    return gtsam.Pose3(rot, point)


def from_gtsam_pose3(pose3: gtsam.Pose3, time_offset: float = 0.0) -> Pose:
    """Create a Pose from GTSAM Pose3.

    Args:
        pose3: GTSAM Pose3 object.
        time_offset: Time offset to attach, in seconds.

    Returns:
        Pose instance.
    """
    # Ensure the matrix is contiguous float64 before handing it to numpy code
    matrix = np.ascontiguousarray(pose3.matrix(), dtype=np.float64)
    return Pose.from_transform(matrix, time_offset=time_offset)
