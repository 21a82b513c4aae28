"""test_goal_termination.py - goal collaborators and termination conditions"""
import numpy as np
import pytest

from config import ConfigurationError
from goal import Goal, GoalPredicate, GoalState, GoalStates
from termination import TerminationCondition, iteration_termination, timed_termination


class TestGoals:

    def test_goal_state(self, si_free, rng):
        goal = GoalState(si_free, [9.0, 9.0], threshold=0.5)
        assert goal.is_satisfied(np.array([9.0, 9.3]))[0]
        satisfied, dist = goal.is_satisfied(np.array([9.0, 8.0]))
        assert not satisfied
        assert dist == pytest.approx(1.0)
        assert goal.can_sample()
        np.testing.assert_array_equal(goal.sample_goal(rng), [9.0, 9.0])

    def test_goal_states_cycle(self, si_free, rng):
        goal = GoalStates(si_free, [[1.0, 1.0], [2.0, 2.0]])
        samples = [goal.sample_goal(rng) for _ in range(4)]
        np.testing.assert_array_equal(samples, [[1.0, 1.0], [2.0, 2.0], [1.0, 1.0], [2.0, 2.0]])
        assert goal.is_satisfied(np.array([2.0, 2.0]))[0]
        assert not GoalStates(si_free, []).can_sample()

    def test_goal_predicate(self, rng):
        goal = GoalPredicate(lambda x: x[0] > 5.0)
        assert goal.is_satisfied(np.array([6.0, 0.0])) == (True, 0.0)
        assert goal.is_satisfied(np.array([4.0, 0.0]))[0] is False
        assert not goal.can_sample()
        with pytest.raises(NotImplementedError):
            goal.sample_goal(rng)

    def test_goal_predicate_distance(self):
        goal = GoalPredicate(lambda x: False, distance=lambda x: 10.0 - x[0])
        assert goal.is_satisfied(np.array([4.0, 0.0])) == (False, 6.0)

    def test_base_goal(self):
        satisfied, dist = Goal().is_satisfied(np.zeros(2))
        assert not satisfied and dist == np.inf

    def test_negative_threshold(self, si_free):
        with pytest.raises(ConfigurationError):
            GoalState(si_free, [1.0, 1.0], threshold=-1.0)


class TestTermination:

    def test_iteration_termination(self):
        ptc = iteration_termination(3)
        assert [ptc() for _ in range(5)] == [False, False, False, True, True]

    def test_terminate(self):
        ptc = TerminationCondition()
        assert not ptc()
        ptc.terminate()
        assert ptc()

    def test_timed(self):
        assert timed_termination(0.0)()
        assert not timed_termination(60.0)()

    def test_combination(self):
        cancel = TerminationCondition()
        ptc = timed_termination(60.0) | cancel
        assert not ptc.should_stop()
        cancel.terminate()
        assert ptc.should_stop()
