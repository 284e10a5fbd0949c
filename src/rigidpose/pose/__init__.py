"""Pose type and pose algebra.

This module provides the rigid-body pose value type, composition and
inversion, and weighted averaging of pose sets. GTSAM conversions live in
:mod:`rigidpose.pose.gtsam_interop` so that importing this package does not
require GTSAM.
"""

from .averaging import (
    ComponentwiseAverager,
    GeodesicAverager,
    InvalidArgumentError,
    PoseAverager,
    PoseObserver,
    WeightedPose,
    compute_mean_pose,
)
from .pose import Pose, compose

__all__ = [
    "ComponentwiseAverager",
    "GeodesicAverager",
    "InvalidArgumentError",
    "Pose",
    "PoseAverager",
    "PoseObserver",
    "WeightedPose",
    "compose",
    "compute_mean_pose",
]
