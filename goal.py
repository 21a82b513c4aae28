# goal.py
"""
Goal definitions.

Every goal answers is_satisfied(x) with a (satisfied, distance) pair. The
distance is used to keep track of the best approximate solution. Goals that
can produce goal configurations return True from can_sample().
"""

import itertools

import numpy as np

from config import GOAL_THRESHOLD, ConfigurationError


class Goal:
    """Base goal: nothing is satisfied and nothing can be sampled."""

    def is_satisfied(self, x):
        return False, np.inf

    def can_sample(self):
        return False

    def sample_goal(self, rng):
        raise NotImplementedError(f"{type(self).__name__} cannot sample goal configurations")


class GoalPredicate(Goal):
    """Goal given by a boolean test; not sampleable."""

    def __init__(self, predicate, distance=None):
        self.predicate = predicate
        self.distance = distance

    def is_satisfied(self, x):
        satisfied = bool(self.predicate(x))
        if self.distance is not None:
            return satisfied, float(self.distance(x))
        return satisfied, 0.0 if satisfied else np.inf


class GoalRegion(Goal):
    """Goal satisfied within `threshold` of the region; subclasses define distance_goal()."""

    def __init__(self, threshold=GOAL_THRESHOLD):
        if threshold < 0:
            raise ConfigurationError(f"goal threshold must be non-negative, got {threshold!r}")
        self.threshold = float(threshold)

    def distance_goal(self, x):
        raise NotImplementedError

    def is_satisfied(self, x):
        d = float(self.distance_goal(x))
        return d <= self.threshold, d


class GoalState(GoalRegion):
    """A single goal configuration."""

    def __init__(self, si, state, threshold=GOAL_THRESHOLD):
        super().__init__(threshold)
        self.si = si
        self.state = np.array(state, dtype=float)

    def distance_goal(self, x):
        return self.si.distance(x, self.state)

    def can_sample(self):
        return True

    def sample_goal(self, rng):
        return self.state.copy()


class GoalStates(GoalRegion):
    """Several goal configurations; sample_goal() cycles through them."""

    def __init__(self, si, states, threshold=GOAL_THRESHOLD):
        super().__init__(threshold)
        self.si = si
        self.states = [np.array(s, dtype=float) for s in states]
        self._cycle = itertools.cycle(range(len(self.states)))

    def distance_goal(self, x):
        if not self.states:
            return np.inf
        return min(self.si.distance(x, s) for s in self.states)

    def can_sample(self):
        return bool(self.states)

    def sample_goal(self, rng):
        """Next goal state in round-robin order; rng is not used."""
        return self.states[next(self._cycle)].copy()
