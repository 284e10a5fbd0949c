"""Tests for weighted pose averaging."""

import logging
from typing import List

import numpy as np
import pytest

from rigidpose import (
    ComponentwiseAverager,
    GeodesicAverager,
    InvalidArgumentError,
    Pose,
    compute_mean_pose,
)
from rigidpose.pose import PoseAverager
from rigidpose.utils.geometry import rotation_quaternion


class TestComputeMeanPose:
    """Test the default component-wise averaging."""

    def test_identical_poses(self, random_poses: List[Pose]) -> None:
        """Test averaging a pose with itself returns the pose."""
        for pose in random_poses:
            mean = compute_mean_pose([(1.0, pose), (1.0, pose)])
            assert mean.is_close(pose)

    def test_translation_arithmetic_mean(self) -> None:
        """Test shared rotation with two translations averages the translations."""
        q = rotation_quaternion([1.0, 1.0, 0.0], 35.0)
        t1 = np.array([1.0, -2.0, 3.0])
        t2 = np.array([-4.0, 0.5, 7.0])

        mean = compute_mean_pose([(1.0, Pose(q, t1)), (1.0, Pose(q, t2))])

        assert np.allclose(mean.translation, (t1 + t2) / 2)
        assert mean.is_close(Pose(q, (t1 + t2) / 2))

    def test_concrete_example(self) -> None:
        """Test identity rotations at x=0 and x=2 average to x=1."""
        weighted = [
            (1.0, Pose(translation=[0.0, 0.0, 0.0])),
            (1.0, Pose(translation=[2.0, 0.0, 0.0])),
        ]

        mean = compute_mean_pose(weighted)

        assert np.allclose(mean.translation, [1.0, 0.0, 0.0])
        assert np.allclose(mean.rotation, [1.0, 0.0, 0.0, 0.0])

    def test_weights_need_not_sum_to_one(self) -> None:
        """Test weights are normalized by their total."""
        weighted = [
            (3.0, Pose(translation=[0.0, 0.0, 0.0])),
            (1.0, Pose(translation=[4.0, 8.0, 0.0])),
        ]

        mean = compute_mean_pose(weighted)

        assert np.allclose(mean.translation, [1.0, 2.0, 0.0])

    def test_zero_weight_entry_is_ignored(self) -> None:
        """Test a zero-weight entry does not move the mean."""
        pose = Pose(rotation=rotation_quaternion("z", 20.0), translation=[1.0, 1.0, 1.0])
        other = Pose(rotation=rotation_quaternion("x", 80.0), translation=[9.0, 9.0, 9.0])

        mean = compute_mean_pose([(2.0, pose), (0.0, other)])

        assert mean.is_close(pose)

    def test_result_is_unit_quaternion(self) -> None:
        """Test the averaged quaternion is renormalized."""
        weighted = [
            (1.0, Pose(rotation=rotation_quaternion("z", -30.0))),
            (1.0, Pose(rotation=rotation_quaternion("z", 30.0))),
        ]

        mean = compute_mean_pose(weighted)

        assert np.isclose(np.linalg.norm(mean.rotation), 1.0)
        assert np.allclose(mean.rotation, [1.0, 0.0, 0.0, 0.0])

    def test_result_has_zero_time_offset(self) -> None:
        """Test the mean pose does not inherit time offsets."""
        weighted = [(1.0, Pose(time_offset=0.2)), (1.0, Pose(time_offset=0.4))]
        assert compute_mean_pose(weighted).time_offset == 0.0

    def test_input_not_modified(self, random_poses: List[Pose]) -> None:
        """Test the input sequence is left untouched."""
        weighted = [(float(i + 1), pose) for i, pose in enumerate(random_poses)]
        snapshot = list(weighted)

        compute_mean_pose(weighted)

        assert weighted == snapshot

    def test_accepts_generator(self) -> None:
        """Test a one-shot iterable is read once and averaged."""
        translations = ([0.0, 0.0, 0.0], [2.0, 4.0, 0.0])
        weighted = ((1.0, Pose(translation=t)) for t in translations)

        mean = compute_mean_pose(weighted)

        assert np.allclose(mean.translation, [1.0, 2.0, 0.0])

    @pytest.mark.parametrize("averager", [ComponentwiseAverager(), GeodesicAverager()])
    def test_huge_weights_stay_finite(self, averager: PoseAverager) -> None:
        """Test weights whose sum overflows still give a unit-norm mean."""
        weighted = [
            (1e308, Pose(translation=[0.0, 0.0, 0.0])),
            (1e308, Pose(translation=[2.0, 0.0, 0.0])),
        ]

        mean = compute_mean_pose(weighted, averager=averager)

        assert np.all(np.isfinite(mean.rotation))
        assert np.isclose(np.linalg.norm(mean.rotation), 1.0)
        assert np.allclose(mean.rotation, [1.0, 0.0, 0.0, 0.0])
        assert np.allclose(mean.translation, [1.0, 0.0, 0.0])


class TestDegenerateInput:
    """Test rejection of input that cannot be averaged."""

    def test_empty_input(self) -> None:
        """Test empty input raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="empty"):
            compute_mean_pose([])

    def test_all_zero_weights(self) -> None:
        """Test weights summing to zero raise InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="sum to zero"):
            compute_mean_pose([(0.0, Pose()), (0.0, Pose())])

    def test_negative_weight(self) -> None:
        """Test negative weight raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="non-negative"):
            compute_mean_pose([(1.0, Pose()), (-0.5, Pose())])

    def test_non_finite_weight(self) -> None:
        """Test NaN weight raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="finite"):
            compute_mean_pose([(float("nan"), Pose())])

    def test_non_pose_entry(self) -> None:
        """Test an entry that is not a Pose raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError, match="not a Pose"):
            compute_mean_pose([(1.0, np.eye(4))])

    def test_is_value_error(self) -> None:
        """Test InvalidArgumentError can be caught as ValueError."""
        with pytest.raises(ValueError):
            compute_mean_pose([])

    @pytest.mark.parametrize("averager", [ComponentwiseAverager(), GeodesicAverager()])
    def test_all_averagers_reject_empty(self, averager: PoseAverager) -> None:
        """Test every strategy shares the validation."""
        with pytest.raises(InvalidArgumentError):
            compute_mean_pose([], averager=averager)

    def test_base_averager_is_abstract(self) -> None:
        """Test the base strategy cannot be instantiated."""
        with pytest.raises(TypeError):
            PoseAverager()  # type: ignore[abstract]


class TestDiagnostics:
    """Test the per-entry observer and debug logging."""

    def test_observer_called_per_entry(self) -> None:
        """Test observer receives every entry in order."""
        poses = [Pose(translation=[float(i), 0.0, 0.0]) for i in range(3)]
        weighted = [(0.5, poses[0]), (1.0, poses[1]), (2.0, poses[2])]
        seen = []

        compute_mean_pose(weighted, observer=lambda i, w, p: seen.append((i, w, p)))

        assert [(i, w) for i, w, _ in seen] == [(0, 0.5), (1, 1.0), (2, 2.0)]
        assert all(p is poses[i] for i, _, p in seen)

    def test_observer_not_called_for_invalid_input(self) -> None:
        """Test malformed input is rejected before any entry is reported."""
        seen = []

        with pytest.raises(InvalidArgumentError):
            compute_mean_pose(
                [(1.0, Pose()), (-1.0, Pose())],
                observer=lambda i, w, p: seen.append(i),
            )

        assert seen == []

    def test_debug_log_per_entry(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test each entry is logged at DEBUG level."""
        weighted = [(1.0, Pose()), (2.0, Pose(translation=[1.0, 0.0, 0.0]))]

        with caplog.at_level(logging.DEBUG, logger="rigidpose.pose.averaging"):
            compute_mean_pose(weighted)

        messages = [r.getMessage() for r in caplog.records if r.name == "rigidpose.pose.averaging"]
        assert messages == [
            "1.0, t: [0 0 0], q: [0 0 0 1], td: 0",
            "2.0, t: [1 0 0], q: [0 0 0 1], td: 0",
        ]

    def test_silent_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test nothing is emitted above DEBUG."""
        with caplog.at_level(logging.INFO):
            compute_mean_pose([(1.0, Pose())])

        assert caplog.records == []


class TestComponentwiseAverager:
    """Test hemisphere handling of the component-wise averager."""

    def test_align_signs(self) -> None:
        """Test q and -q average to q when signs are aligned."""
        q = rotation_quaternion("y", 50.0)
        weighted = [(1.0, Pose(rotation=q)), (1.0, Pose(rotation=-q))]

        mean = compute_mean_pose(weighted, averager=ComponentwiseAverager(align_signs=True))

        assert mean.is_close(Pose(rotation=q))

    def test_default_does_not_align(self) -> None:
        """Test opposite signs cancel without alignment."""
        q = rotation_quaternion("y", 50.0)
        weighted = [(1.0, Pose(rotation=q)), (1.0, Pose(rotation=-q))]

        with pytest.raises(InvalidArgumentError, match="opposite hemispheres"):
            compute_mean_pose(weighted)

    def test_align_ignores_zero_weight_reference(self) -> None:
        """Test a leading zero-weight outlier does not pick the hemisphere."""
        weighted = [
            (1.0, Pose(rotation=rotation_quaternion("z", 170.0))),
            (1.0, Pose(rotation=rotation_quaternion("z", 190.0))),
        ]
        averager = ComponentwiseAverager(align_signs=True)
        expected = Pose(rotation=rotation_quaternion("z", 180.0))

        without_outlier = compute_mean_pose(weighted, averager=averager)
        with_outlier = compute_mean_pose([(0.0, Pose())] + weighted, averager=averager)

        assert without_outlier.is_close(expected, atol=1e-6)
        assert with_outlier.is_close(expected, atol=1e-6)


class TestGeodesicAverager:
    """Test the iterative geodesic mean."""

    def test_weighted_single_axis(self) -> None:
        """Test rotations about one axis average their angles by weight."""
        weighted = [
            (1.0, Pose(rotation=rotation_quaternion("z", 0.0))),
            (3.0, Pose(rotation=rotation_quaternion("z", 80.0))),
        ]

        mean = compute_mean_pose(weighted, averager=GeodesicAverager())

        assert mean.is_close(Pose(rotation=rotation_quaternion("z", 60.0)))

    def test_differs_from_componentwise_for_wide_spread(self) -> None:
        """Test the component-wise estimate is only approximate."""
        weighted = [
            (1.0, Pose(rotation=rotation_quaternion("z", 0.0))),
            (3.0, Pose(rotation=rotation_quaternion("z", 80.0))),
        ]

        approximate = compute_mean_pose(weighted)
        exact = Pose(rotation=rotation_quaternion("z", 60.0))

        assert approximate.angular_distance(exact) > 1e-3

    def test_agrees_with_componentwise_for_close_rotations(self, rng: np.random.Generator) -> None:
        """Test both strategies agree when rotations are tightly clustered."""
        base = Pose(
            rotation=rotation_quaternion([0.3, -0.2, 1.0], 40.0),
            translation=[1.0, 2.0, 3.0],
        )
        weighted = []
        for _ in range(10):
            jitter = Pose(rotation=rotation_quaternion(rng.normal(size=3), 0.5))
            weighted.append((float(rng.uniform(0.5, 2.0)), base * jitter))

        geodesic = compute_mean_pose(weighted, averager=GeodesicAverager())
        componentwise = compute_mean_pose(weighted)

        assert geodesic.angular_distance(componentwise) < 1e-4
        assert np.allclose(geodesic.translation, componentwise.translation)

    def test_handles_mixed_signs(self) -> None:
        """Test q and -q inputs are treated as the same rotation."""
        q = rotation_quaternion("x", 30.0)
        weighted = [(1.0, Pose(rotation=q)), (1.0, Pose(rotation=-q))]

        mean = compute_mean_pose(weighted, averager=GeodesicAverager())

        assert mean.is_close(Pose(rotation=q))

    def test_zero_weight_outlier_does_not_move_mean(self) -> None:
        """Test a leading zero-weight entry does not pick the starting point."""
        weighted = [
            (1.0, Pose(rotation=rotation_quaternion("z", 170.0))),
            (1.0, Pose(rotation=rotation_quaternion("z", 190.0))),
        ]
        expected = Pose(rotation=rotation_quaternion("z", 180.0))

        without_outlier = compute_mean_pose(weighted, averager=GeodesicAverager())
        with_outlier = compute_mean_pose([(0.0, Pose())] + weighted, averager=GeodesicAverager())

        assert without_outlier.is_close(expected, atol=1e-6)
        assert with_outlier.is_close(expected, atol=1e-6)

    def test_invalid_max_iterations(self) -> None:
        """Test max_iterations below one is rejected."""
        with pytest.raises(ValueError, match="max_iterations"):
            GeodesicAverager(max_iterations=0)
