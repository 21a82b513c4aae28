# planner.py
"""
Expansive tree planner driven by a density-aware GNAT.

Instead of sampling a random target and extending the nearest node, the
planner asks the spatial index for a node biased towards sparsely populated
regions and grows the tree from there with a configuration sampled within
`range` of it (or, with probability `goal_bias`, with a goal sample).
"""

import enum
import logging
import math
import time
from dataclasses import dataclass, field
from typing import List

import numpy as np

from config import (GOAL_BIAS, USE_PROJECTED_DISTANCE, RANGE_EXTENT_FRACTION,
                    GNAT_DEGREE, GNAT_MIN_DEGREE, GNAT_MAX_DEGREE,
                    GNAT_MAX_PTS_PER_LEAF, GNAT_REMOVED_CACHE_SIZE,
                    ConfigurationError)
from sampler import ValidStateSampler
from spatial_index import GNATSampler
from termination import TerminationCondition, timed_termination
from tree import MotionTree

logger = logging.getLogger(__name__)


class PlannerStatus(enum.Enum):
    EXACT_SOLUTION = 'exact solution'
    APPROXIMATE_SOLUTION = 'approximate solution'
    TIMEOUT = 'timeout'


@dataclass
class PlannerResult:
    """Outcome of one call to GNATPlanner.solve()."""
    status: PlannerStatus
    path: List[np.ndarray] = field(default_factory=list)
    goal_distance: float = math.inf
    iterations: int = 0
    goal_samples: int = 0
    rejections: int = 0
    tree_size: int = 0
    elapsed: float = 0.0

    @property
    def solved(self):
        return self.status is PlannerStatus.EXACT_SOLUTION

    @property
    def approximate(self):
        return self.status is PlannerStatus.APPROXIMATE_SOLUTION


class GNATPlanner:
    """
    Parameters
    ----------
    si : SpaceInformation
    use_projected_distance : bool
        Measure proximity between tree nodes in the projection space instead
        of the state space.
    degree, min_degree, max_degree, max_pts_per_leaf, removed_cache_size : int
        Spatial index tuning, see GNATSampler.
    goal_bias : float
        Probability of expanding towards a goal sample. Should stay small.
    max_distance : float, optional
        Maximum length of a motion added to the tree. Computed from the
        state space extent at setup when not given.
    projection : projection or str, optional
        Projection evaluator or the name of one registered with the state space.
    seed : int, optional
    """

    name = 'GNAT'

    def __init__(self, si, use_projected_distance=USE_PROJECTED_DISTANCE,
                 degree=GNAT_DEGREE, min_degree=GNAT_MIN_DEGREE, max_degree=GNAT_MAX_DEGREE,
                 max_pts_per_leaf=GNAT_MAX_PTS_PER_LEAF,
                 removed_cache_size=GNAT_REMOVED_CACHE_SIZE,
                 goal_bias=GOAL_BIAS, max_distance=None, projection=None, seed=None):
        self.si = si
        self.rng = np.random.default_rng(seed)
        self.index = GNATSampler(degree=degree, min_degree=min_degree, max_degree=max_degree,
                                 max_pts_per_leaf=max_pts_per_leaf,
                                 removed_cache_size=removed_cache_size, rng=self.rng)
        self.tree = MotionTree(self.index)
        self.sampler = None
        self.goal = None

        # distance strategies are created once so the index sees the same objects
        self._state_distance_fn = self._state_distance
        self._projected_distance_fn = self._projected_distance

        self._use_projected_distance = bool(use_projected_distance)
        self._projection = None
        self._goal_bias = GOAL_BIAS
        self._range = None
        self._starts = []
        self._next_start = 0
        self._setup_done = False

        self.goal_bias = goal_bias
        if max_distance is not None:
            self.range = max_distance
        if projection is not None:
            self.set_projection_evaluator(projection)

    # ------------------------------------------------------------------
    # parameters
    # ------------------------------------------------------------------
    @property
    def goal_bias(self):
        return self._goal_bias

    @goal_bias.setter
    def goal_bias(self, value):
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"goal bias must be in [0, 1], got {value!r}")
        self._goal_bias = float(value)

    @property
    def range(self):
        return self._range

    @range.setter
    def range(self, value):
        if not (value > 0.0 and math.isfinite(value)):
            raise ConfigurationError(f"range must be a positive number, got {value!r}")
        self._range = float(value)

    @property
    def use_projected_distance(self):
        return self._use_projected_distance

    @use_projected_distance.setter
    def use_projected_distance(self, value):
        value = bool(value)
        if value == self._use_projected_distance:
            return
        if len(self.tree):
            raise ConfigurationError(
                "the distance mode cannot change once the tree holds states; call clear() first")
        self._use_projected_distance = value
        self._setup_done = False

    @property
    def projection_evaluator(self):
        return self._projection

    def set_projection_evaluator(self, projection):
        """Set the projection, either as an object or by its registered name."""
        if isinstance(projection, str):
            projection = self.si.state_space.get_projection(projection)
        if projection is self._projection:
            return
        if self._use_projected_distance and len(self.tree):
            raise ConfigurationError(
                "the projection cannot change once the tree holds states; call clear() first")
        self._projection = projection
        self._setup_done = False

    # ------------------------------------------------------------------
    # problem definition
    # ------------------------------------------------------------------
    def add_start_state(self, x):
        self._starts.append(np.array(x, dtype=float))

    def set_goal(self, goal):
        self.goal = goal

    # ------------------------------------------------------------------
    # distances between motions
    # ------------------------------------------------------------------
    def _state_distance(self, a, b):
        return self.si.distance(a.x, b.x)

    def _projected_distance(self, a, b):
        return float(np.linalg.norm(self._projection.project(a.x) - self._projection.project(b.x)))

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def setup(self):
        if self._use_projected_distance:
            if self._projection is None:
                default = self.si.state_space.default_projection()
                if default is None:
                    raise ConfigurationError(
                        f"{self.name}: no projection evaluator specified and the state space "
                        f"has no default projection")
                logger.info("%s: Attempting to use default projection.", self.name)
                self._projection = default
            self.index.set_distance_function(self._projected_distance_fn)
        else:
            self.index.set_distance_function(self._state_distance_fn)

        if self._range is None:
            self._range = RANGE_EXTENT_FRACTION * self.si.state_space.maximum_extent()
            logger.info("%s: range computed to be %f", self.name, self._range)

        if self.sampler is None:
            self.sampler = ValidStateSampler(self.si, rng=self.rng)
        self._setup_done = True

    def clear(self):
        """Drop the tree; the next solve() starts again from the start states."""
        self.tree.clear()
        self._next_start = 0

    # ------------------------------------------------------------------
    # planning
    # ------------------------------------------------------------------
    def solve(self, ptc):
        """
        Grow the tree until the goal is reached or ptc says stop.

        Parameters
        ----------
        ptc : TerminationCondition or float
            Termination condition, or a time limit in seconds.

        Returns
        -------
        PlannerResult
        """
        if not isinstance(ptc, TerminationCondition):
            ptc = timed_termination(float(ptc))
        if not self._setup_done:
            self.setup()
        if self.goal is None:
            raise ConfigurationError(f"{self.name}: no goal specified")

        start_time = time.perf_counter()
        goal = self.goal
        result = PlannerResult(status=PlannerStatus.TIMEOUT)

        solution = None
        approx_sol = None
        approx_dist = math.inf

        while self._next_start < len(self._starts):
            x = self._starts[self._next_start]
            self._next_start += 1
            if not self.si.is_valid(x):
                logger.warning("%s: Skipping invalid start state %s", self.name, x.tolist())
                continue
            motion = self.tree.add_root(x)
            satisfied, dist = goal.is_satisfied(motion.x)
            if satisfied and solution is None:
                solution = motion
                approx_dist = dist
            elif solution is None and dist < approx_dist:
                approx_dist = dist
                approx_sol = motion

        if len(self.tree) == 0:
            logger.error("%s: There are no valid initial states!", self.name)
            raise ConfigurationError(f"{self.name}: there are no valid initial states")

        logger.info("%s: Starting with %d states", self.name, len(self.tree))

        goal_sampleable = goal.can_sample()
        while solution is None and not ptc():
            result.iterations += 1

            # Decide on a state to expand from
            existing = self.index.sample()
            if existing is None:
                continue

            # Sample a state near it (with goal biasing)
            if goal_sampleable and self.rng.random() < self._goal_bias:
                result.goal_samples += 1
                x = goal.sample_goal(self.rng)
            else:
                x = self.sampler.sample_near(existing.x, self._range)
                if x is None:
                    result.rejections += 1
                    continue

            if not self.si.check_motion(existing.x, x):
                result.rejections += 1
                continue

            motion = self.tree.add_node(x, existing)
            satisfied, dist = goal.is_satisfied(motion.x)
            if satisfied:
                solution = motion
                approx_dist = dist
                break
            if dist < approx_dist:
                approx_dist = dist
                approx_sol = motion

        if solution is not None:
            result.status = PlannerStatus.EXACT_SOLUTION
            result.path = self.tree.path_to(solution)
            result.goal_distance = approx_dist
        elif approx_sol is not None:
            result.status = PlannerStatus.APPROXIMATE_SOLUTION
            result.path = self.tree.path_to(approx_sol)
            result.goal_distance = approx_dist

        result.tree_size = len(self.tree)
        result.elapsed = time.perf_counter() - start_time
        logger.info("%s: Created %d states (%s after %d iterations)",
                    self.name, result.tree_size, result.status.value, result.iterations)
        return result

    def planner_data(self):
        """Vertices, edges (parent id, child id) and root ids of the tree."""
        return {
            'vertices': [motion.x for motion in self.tree],
            'edges': self.tree.edges(),
            'roots': [root.node_id for root in self.tree.roots],
        }
