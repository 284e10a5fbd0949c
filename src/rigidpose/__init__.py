"""rigidpose - Rigid-body pose algebra.

A small library providing an SE(3) pose value type (rotation, translation and
sensor time offset) with composition, inversion and weighted pose averaging,
for use by state estimation and sensor fusion code.
"""

from .pose import (
    ComponentwiseAverager,
    GeodesicAverager,
    InvalidArgumentError,
    Pose,
    compose,
    compute_mean_pose,
)

__version__ = "0.1.0"

__all__ = [
    "ComponentwiseAverager",
    "GeodesicAverager",
    "InvalidArgumentError",
    "Pose",
    "__version__",
    "compose",
    "compute_mean_pose",
]
