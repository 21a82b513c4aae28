# sampler.py

import numpy as np

from config import VALID_SAMPLE_ATTEMPTS


class ValidStateSampler:
    """
    Draws valid configurations by rejection sampling.

    Each call makes at most `attempts` draws and returns None when none of
    them is valid.
    """

    def __init__(self, si, attempts=VALID_SAMPLE_ATTEMPTS, rng=None):
        self.si = si
        self.attempts = max(1, int(attempts))
        self.rng = rng if rng is not None else np.random.default_rng()

    def sample(self):
        space = self.si.state_space
        for _ in range(self.attempts):
            x = space.sample_uniform(self.rng)
            if self.si.is_valid(x):
                return x
        return None

    def sample_near(self, near, distance):
        """Valid configuration within `distance` of near, or None."""
        space = self.si.state_space
        for _ in range(self.attempts):
            x = space.sample_uniform_near(self.rng, near, distance)
            if x is not None and self.si.is_valid(x):
                return x
        return None
