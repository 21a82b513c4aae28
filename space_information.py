# space_information.py

import math

from config import LONGEST_VALID_SEGMENT_FRACTION, ConfigurationError


class SpaceInformation:
    """
    Everything the planner needs to know about the configuration space.

    Bundles the state space with a validity predicate and checks motions by
    discretizing them into segments no longer than
    longest_valid_segment_fraction * maximum extent.

    Parameters
    ----------
    state_space : RealVectorStateSpace
    validity_checker : callable, optional
        Returns True for admissible configurations. Everything inside the
        bounds is valid when not given.
    longest_valid_segment_fraction : float
    """

    def __init__(self, state_space, validity_checker=None,
                 longest_valid_segment_fraction=LONGEST_VALID_SEGMENT_FRACTION):
        if not 0.0 < longest_valid_segment_fraction <= 1.0:
            raise ConfigurationError("longest_valid_segment_fraction must be in (0, 1]")
        self.state_space = state_space
        self.validity_checker = validity_checker
        self.longest_valid_segment = longest_valid_segment_fraction * state_space.maximum_extent()

    @property
    def dimension(self):
        return self.state_space.dimension

    def allocate(self):
        return self.state_space.allocate()

    def distance(self, a, b):
        return self.state_space.distance(a, b)

    def interpolate(self, a, b, t):
        return self.state_space.interpolate(a, b, t)

    def is_valid(self, x):
        if not self.state_space.satisfies_bounds(x):
            return False
        return self.validity_checker is None or bool(self.validity_checker(x))

    def check_motion(self, a, b):
        """
        True when b is valid and every intermediate configuration of the
        discretized segment a -> b is valid. a is assumed valid.
        """
        if not self.is_valid(b):
            return False
        steps = int(math.ceil(self.distance(a, b) / self.longest_valid_segment))
        for i in range(1, steps):
            if not self.is_valid(self.interpolate(a, b, i / steps)):
                return False
        return True

