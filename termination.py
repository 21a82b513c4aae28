# termination.py

import time


class TerminationCondition:
    """
    Polled stop predicate.

    The condition is true once `fn` returns True or terminate() was called.
    Conditions combine with `|` (stop when either one stops).
    """

    def __init__(self, fn=None):
        self.fn = fn
        self._terminated = False

    def terminate(self):
        """Cancel from outside the planning loop."""
        self._terminated = True

    def should_stop(self):
        if self._terminated:
            return True
        return self.fn is not None and bool(self.fn())

    def __call__(self):
        return self.should_stop()

    def __or__(self, other):
        return TerminationCondition(lambda: self.should_stop() or other.should_stop())


def timed_termination(seconds):
    deadline = time.perf_counter() + seconds
    return TerminationCondition(lambda: time.perf_counter() >= deadline)


def iteration_termination(iterations):
    """True from the (iterations + 1)-th poll on, allowing exactly `iterations` loop passes."""
    polls = [0]

    def fn():
        polls[0] += 1
        return polls[0] > iterations

    return TerminationCondition(fn)
