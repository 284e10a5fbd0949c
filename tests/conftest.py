"""Pytest configuration and fixtures."""

from typing import Callable, List

import numpy as np
import pytest

from rigidpose import Pose


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator for reproducible poses."""
    return np.random.default_rng(42)


@pytest.fixture
def make_random_pose(rng: np.random.Generator) -> Callable[[], Pose]:
    """Factory producing poses with random rotation and translation."""

    def _make() -> Pose:
        return Pose(rotation=rng.normal(size=4), translation=rng.uniform(-5.0, 5.0, size=3))

    return _make


@pytest.fixture
def random_poses(make_random_pose: Callable[[], Pose]) -> List[Pose]:
    """A handful of random poses."""
    return [make_random_pose() for _ in range(8)]
