# tree.py

import matplotlib.pyplot as plt

from node_module import Motion


class TreeInvariantError(RuntimeError):
    """A node was linked to a parent that is not part of the tree."""


class MotionTree:
    """
    Exploration tree stored as an arena of motions.

    Node ids are arena indices, parents are referred to by id and are always
    inserted before their children, so the structure is acyclic. Every node
    is also inserted in the spatial index.
    """

    def __init__(self, index):
        self.index = index
        self.motions = []
        self.roots = []

    def __len__(self):
        return len(self.motions)

    def __iter__(self):
        return iter(self.motions)

    def get(self, node_id):
        return self.motions[node_id]

    def contains(self, motion):
        return (0 <= motion.node_id < len(self.motions)
                and self.motions[motion.node_id] is motion)

    def add_root(self, x):
        motion = Motion(x, len(self.motions))
        self._insert(motion)
        self.roots.append(motion)
        return motion

    def add_node(self, x, parent):
        if parent is None or not self.contains(parent):
            raise TreeInvariantError(f"parent {parent!r} is not a node of this tree")
        motion = Motion(x, len(self.motions), parent.node_id)
        self._insert(motion)
        return motion

    def _insert(self, motion):
        self.index.add(motion)
        self.motions.append(motion)

    def parent(self, motion):
        if motion.parent_id is None:
            return None
        return self.motions[motion.parent_id]

    def root_of(self, motion):
        while motion.parent_id is not None:
            motion = self.motions[motion.parent_id]
        return motion

    def path_to(self, motion):
        """Configurations from the root to motion."""
        path = []
        current = motion
        while current is not None:
            path.append(current.x)
            current = self.parent(current)
        path.reverse()
        return path

    def depth(self, motion):
        depth = 0
        while motion.parent_id is not None:
            motion = self.motions[motion.parent_id]
            depth += 1
        return depth

    def is_ancestor(self, ancestor, motion):
        """True when ancestor lies strictly above motion."""
        current = self.parent(motion)
        while current is not None:
            if current is ancestor:
                return True
            current = self.parent(current)
        return False

    def edges(self):
        return [(m.parent_id, m.node_id) for m in self.motions if m.parent_id is not None]

    def clear(self):
        self.index.clear()
        self.motions = []
        self.roots = []

    def plot_tree(self, ax=None, path=None):
        """Draw nodes and edges using the first two coordinates."""
        if ax is None:
            _, ax = plt.subplots()
        for motion in self.motions:
            parent = self.parent(motion)
            if parent is not None:
                ax.plot([parent.x[0], motion.x[0]], [parent.x[1], motion.x[1]],
                        '-', color='gray', linewidth=0.5)
        if self.motions:
            xs = [m.x[0] for m in self.motions]
            ys = [m.x[1] for m in self.motions]
            ax.plot(xs, ys, 'bo', markersize=2)
        for root in self.roots:
            ax.plot(root.x[0], root.x[1], 'go', markersize=8, label='Root')
        if path:
            ax.plot([x[0] for x in path], [x[1] for x in path], 'r-', linewidth=2, label='Path')
        ax.set_aspect('equal')
        return ax
