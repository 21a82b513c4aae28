# state_space.py
"""
Real vector configuration spaces and projections.

A configuration is a 1-D float array. Projections map a configuration to a
low dimensional feature vector that is only used to guide exploration.
"""

import numpy as np

from config import NEAR_SAMPLE_ATTEMPTS, ConfigurationError


class LinearProjection:
    """
    Projection x -> M @ x.

    Parameters
    ----------
    matrix : array-like
        (k, n) projection matrix.
    """

    def __init__(self, matrix):
        matrix = np.atleast_2d(np.asarray(matrix, dtype=float))
        if matrix.ndim != 2 or matrix.size == 0:
            raise ConfigurationError("projection matrix must be a non-empty 2-D array")
        self.matrix = matrix

    @classmethod
    def components(cls, state_dimension, indices):
        """Projection that keeps the given coordinates of the configuration."""
        matrix = np.zeros((len(indices), state_dimension))
        for row, index in enumerate(indices):
            if not 0 <= index < state_dimension:
                raise ConfigurationError(
                    f"projection index {index} outside a {state_dimension}-D space")
            matrix[row, index] = 1.0
        return cls(matrix)

    @property
    def dimension(self):
        return self.matrix.shape[0]

    def project(self, x):
        return self.matrix @ np.asarray(x, dtype=float)


class RealVectorStateSpace:
    """
    Axis aligned box of R^n with the Euclidean metric.

    Parameters
    ----------
    bounds : array-like
        (n, 2) array of [low, high] rows, one per dimension.
    default_projection : bool
        Register the default projection onto the first (at most two)
        coordinates.
    """

    DEFAULT_PROJECTION = ''

    def __init__(self, bounds, default_projection=True):
        bounds = np.asarray(bounds, dtype=float)
        if bounds.ndim != 2 or bounds.shape[1] != 2 or bounds.shape[0] == 0:
            raise ConfigurationError("bounds must be an (n, 2) array of [low, high] rows")
        if np.any(bounds[:, 0] >= bounds[:, 1]):
            raise ConfigurationError("every lower bound must be smaller than its upper bound")
        self.bounds = bounds
        self._projections = {}
        if default_projection:
            indices = list(range(min(2, self.dimension)))
            self.register_projection(self.DEFAULT_PROJECTION,
                                     LinearProjection.components(self.dimension, indices))

    @property
    def dimension(self):
        return self.bounds.shape[0]

    @property
    def low(self):
        return self.bounds[:, 0]

    @property
    def high(self):
        return self.bounds[:, 1]

    def maximum_extent(self):
        return float(np.linalg.norm(self.high - self.low))

    def allocate(self):
        """A fresh configuration at the centre of the space."""
        return (self.low + self.high) / 2.0

    def distance(self, a, b):
        return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))

    def interpolate(self, a, b, t):
        a = np.asarray(a, dtype=float)
        return a + t * (np.asarray(b, dtype=float) - a)

    def satisfies_bounds(self, x):
        x = np.asarray(x, dtype=float)
        return x.shape == (self.dimension,) and bool(np.all(x >= self.low) and np.all(x <= self.high))

    def sample_uniform(self, rng):
        return rng.uniform(self.low, self.high)

    def sample_uniform_near(self, rng, near, distance, attempts=NEAR_SAMPLE_ATTEMPTS):
        """
        Uniform sample from the part of the ball of the given radius around
        near that lies inside the bounds, or None if `attempts` draws from the
        enclosing box all fall outside the ball.
        """
        near = np.asarray(near, dtype=float)
        low = np.maximum(self.low, near - distance)
        high = np.minimum(self.high, near + distance)
        for _ in range(attempts):
            x = rng.uniform(low, high)
            if self.distance(x, near) <= distance:
                return x
        return None

    # ------------------------------------------------------------------
    # projections
    # ------------------------------------------------------------------
    def register_projection(self, name, projection):
        self._projections[name] = projection

    def get_projection(self, name):
        try:
            return self._projections[name]
        except KeyError:
            raise ConfigurationError(f"no projection registered under {name!r}") from None

    def has_projection(self, name):
        return name in self._projections

    def default_projection(self):
        """The projection registered as default, or None."""
        return self._projections.get(self.DEFAULT_PROJECTION)
