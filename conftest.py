"""conftest.py - shared fixtures"""
import numpy as np
import pytest

from collision import ObstacleMap
from space_information import SpaceInformation
from state_space import RealVectorStateSpace


def euclidean(a, b):
    return float(np.linalg.norm(a - b))


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def space_2d():
    """[0, 10] x [0, 10]"""
    return RealVectorStateSpace([[0.0, 10.0], [0.0, 10.0]])


@pytest.fixture
def si_free(space_2d):
    """Obstacle free 2-D space"""
    return SpaceInformation(space_2d)


@pytest.fixture
def wall_map():
    """A wall at x in [4.5, 5.5] from y=0 up to y=8, leaving a gap at the top."""
    return ObstacleMap(rectangles=[([4.5, 0.0], [5.5, 8.0])])


@pytest.fixture
def si_wall(space_2d, wall_map):
    return SpaceInformation(space_2d, wall_map)
