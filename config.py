# config.py

import numpy as np

# Expansion parameters
GOAL_BIAS = 0.05               # probability of expanding towards a goal sample
RANGE_EXTENT_FRACTION = 0.2    # range = fraction * maximum extent when no range is set
USE_PROJECTED_DISTANCE = False

# GNAT spatial index tuning
GNAT_DEGREE = 16
GNAT_MIN_DEGREE = 2
GNAT_MAX_DEGREE = 24
GNAT_MAX_PTS_PER_LEAF = 8
GNAT_REMOVED_CACHE_SIZE = 50
GNAT_SAMPLE_ATTEMPTS = 10      # redraws when a biased draw hits a removed element

# Valid state sampling / motion checking
VALID_SAMPLE_ATTEMPTS = 100
NEAR_SAMPLE_ATTEMPTS = 64      # draws from the clipped box before giving up on the ball
LONGEST_VALID_SEGMENT_FRACTION = 0.01

# Goal
GOAL_THRESHOLD = 1e-3

# Demo world
WORLD_BOUNDS = np.array([[0, 30],
                         [0, 30]])  # x, y
MAP_FILE = "map_obstacles.json"


class ConfigurationError(ValueError):
    """Raised when the planner or one of its components is set up wrongly."""


def validate_gnat_parameters(degree, min_degree, max_degree,
                             max_pts_per_leaf, removed_cache_size):
    values = {
        'degree': degree,
        'min_degree': min_degree,
        'max_degree': max_degree,
        'max_pts_per_leaf': max_pts_per_leaf,
        'removed_cache_size': removed_cache_size,
    }
    for name, value in values.items():
        if int(value) != value or value < 1:
            raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    if not min_degree <= degree <= max_degree:
        raise ConfigurationError(
            f"degree bounds must satisfy min_degree <= degree <= max_degree, "
            f"got {min_degree} <= {degree} <= {max_degree}")
