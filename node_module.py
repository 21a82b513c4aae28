# node_module.py

import numpy as np


class Motion:
    """
    A node of the exploration tree.

    Parameters
    ----------
    x : array-like
        Configuration held by the node. A read-only copy is stored.
    node_id : int
        Index of the node in the tree arena.
    parent_id : int or None
        Arena index of the parent node, None for a root.
    """

    __slots__ = ('x', 'node_id', 'parent_id')

    def __init__(self, x, node_id, parent_id=None):
        x = np.array(x, dtype=float)
        x.setflags(write=False)
        self.x = x
        self.node_id = node_id
        self.parent_id = parent_id

    @property
    def is_root(self):
        return self.parent_id is None

    def __repr__(self):
        return f"Motion(node_id={self.node_id}, parent_id={self.parent_id}, x={self.x.tolist()})"
