"""Weighted averaging of poses.

The default averager follows the component-wise quaternion average described in
"Averaging Quaternions and Vectors" (Unity community wiki): quaternions are
summed per component and the result is renormalized. It is a first-order
approximation that holds when the rotations are close to each other and share
a hemisphere. :class:`GeodesicAverager` computes the weighted geodesic mean of
the rotations instead, behind the same interface.

References:
    Hartley, Trumpf, Dai, Li. "Rotation Averaging". IJCV 2013.
"""

import abc
import logging
import math
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np
import numpy.typing as npt

from ..utils.conversions import (
    align_quaternion_sign,
    quaternion_conjugate,
    quaternion_exp,
    quaternion_log,
    quaternion_multiply,
)
from .pose import Pose

logger = logging.getLogger(__name__)

WeightedPose = Tuple[float, Pose]

# Called with (index, weight, pose) for every entry before averaging
PoseObserver = Callable[[int, float, Pose], None]


class InvalidArgumentError(ValueError):
    """Raised when a set of weighted poses cannot be averaged."""


def _validate(
    weighted_poses: Iterable[WeightedPose],
) -> Tuple[npt.NDArray[np.float64], List[Pose]]:
    """Split and check weighted poses.

    Weights are rescaled so the largest is 1.0, which keeps their sum finite.

    Returns:
        Tuple of (weights, poses).

    Raises:
        InvalidArgumentError: If the input is empty, a weight is negative or
            non-finite, an entry is not a pose, or the weights sum to zero.
    """
    weights = []
    poses = []
    for index, (weight, pose) in enumerate(weighted_poses):
        weight = float(weight)
        if not math.isfinite(weight) or weight < 0.0:
            raise InvalidArgumentError(
                f"Weight at index {index} must be finite and non-negative, got {weight}"
            )
        if not isinstance(pose, Pose):
            raise InvalidArgumentError(
                f"Entry at index {index} is not a Pose: {type(pose).__name__}"
            )
        weights.append(weight)
        poses.append(pose)

    if not poses:
        raise InvalidArgumentError("Cannot average an empty set of poses")

    weights_array = np.array(weights, dtype=np.float64)
    largest = weights_array.max()
    if largest == 0.0:
        raise InvalidArgumentError("Weights sum to zero")

    return weights_array / largest, poses


class PoseAverager(abc.ABC):
    """Base class for strategies that reduce weighted poses to one pose.

    Subclasses implement :meth:`_average`, which receives validated weights
    (largest weight 1.0, positive total) and the matching poses.
    """

    def average(self, weighted_poses: Iterable[WeightedPose]) -> Pose:
        """Compute the weighted mean pose.

        Args:
            weighted_poses: (weight, pose) pairs. Weights must be non-negative
                and need not sum to one.

        Returns:
            Mean pose with zero time offset.

        Raises:
            InvalidArgumentError: If the input cannot be averaged.
        """
        weights, poses = _validate(weighted_poses)
        return self._average(weights, poses)

    @abc.abstractmethod
    def _average(self, weights: npt.NDArray[np.float64], poses: List[Pose]) -> Pose:
        """Reduce validated weights and poses to the mean pose."""

    @staticmethod
    def _mean_translation(
        weights: npt.NDArray[np.float64], poses: List[Pose]
    ) -> npt.NDArray[np.float64]:
        translations = np.stack([pose.translation for pose in poses])
        return weights @ translations / weights.sum()


class ComponentwiseAverager(PoseAverager):
    """Weighted per-component quaternion average with renormalization.

    Valid when the rotations are close to each other. The quaternions must lie
    in the same hemisphere, since q and -q cancel when summed; pass
    ``align_signs=True`` to flip every quaternion towards the most heavily
    weighted one.
    """

    def __init__(self, align_signs: bool = False) -> None:
        """Initialize averager.

        Args:
            align_signs: Flip quaternions into the hemisphere of the entry
                with the largest weight before summing.
        """
        self.align_signs = align_signs

    def _average(self, weights: npt.NDArray[np.float64], poses: List[Pose]) -> Pose:
        quaternions = np.stack([pose.rotation for pose in poses])
        if self.align_signs:
            reference = quaternions[np.argmax(weights)]
            quaternions = np.stack([align_quaternion_sign(q, reference) for q in quaternions])

        rotation_mean = weights @ quaternions / weights.sum()

        # Pose construction renormalizes the averaged quaternion
        try:
            return Pose(rotation=rotation_mean, translation=self._mean_translation(weights, poses))
        except ValueError as err:
            raise InvalidArgumentError(
                "Quaternions cancel out; inputs lie in opposite hemispheres "
                "(use align_signs=True)"
            ) from err


class GeodesicAverager(PoseAverager):
    """Weighted geodesic (Karcher) mean of the rotations.

    Iteratively moves the estimate along the weighted mean of the tangent-space
    residuals until the update falls below ``tolerance``. The translation is the
    weighted Euclidean mean.
    """

    def __init__(self, max_iterations: int = 50, tolerance: float = 1e-10) -> None:
        """Initialize averager.

        Args:
            max_iterations: Maximum number of refinement steps.
            tolerance: Update norm (radians) at which the iteration stops.
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.max_iterations = max_iterations
        self.tolerance = tolerance

    def _average(self, weights: npt.NDArray[np.float64], poses: List[Pose]) -> Pose:
        total_weight = weights.sum()
        estimate = ComponentwiseAverager(align_signs=True)._average(weights, poses).rotation

        for iteration in range(self.max_iterations):
            estimate_inverse = quaternion_conjugate(estimate)
            residuals = np.stack(
                [
                    quaternion_log(quaternion_multiply(estimate_inverse, pose.rotation))
                    for pose in poses
                ]
            )
            step = weights @ residuals / total_weight
            estimate = quaternion_multiply(estimate, quaternion_exp(step))

            if np.linalg.norm(step) < self.tolerance:
                logger.debug("Geodesic mean converged after %d iterations", iteration + 1)
                break
        else:
            logger.warning(
                "Geodesic mean did not converge within %d iterations", self.max_iterations
            )

        return Pose(rotation=estimate, translation=self._mean_translation(weights, poses))


def compute_mean_pose(
    weighted_poses: Iterable[WeightedPose],
    averager: Optional[PoseAverager] = None,
    observer: Optional[PoseObserver] = None,
) -> Pose:
    """Compute the weighted mean of a set of poses.

    The input is validated first. Every entry is then reported at DEBUG level
    on this module's logger and passed to ``observer`` before averaging. The
    input is read once and not modified.

    Args:
        weighted_poses: (weight, pose) pairs, any iterable.
        averager: Averaging strategy. Defaults to :class:`ComponentwiseAverager`.
        observer: Optional callback invoked as ``observer(index, weight, pose)``.

    Returns:
        Mean pose with zero time offset.

    Raises:
        InvalidArgumentError: If the input is empty, contains a negative or
            non-finite weight or a non-pose entry, or its weights sum to zero.
    """
    weighted_poses = list(weighted_poses)
    _validate(weighted_poses)

    for index, (weight, pose) in enumerate(weighted_poses):
        logger.debug("%s, %s", weight, pose)
        if observer is not None:
            observer(index, weight, pose)

    if averager is None:
        averager = ComponentwiseAverager()
    return averager.average(weighted_poses)
