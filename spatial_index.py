# spatial_index.py
"""
Geometric near-neighbor access tree (GNAT) with density-biased sampling.

The index partitions its items with pivots chosen by greedy k-centers. Every
child node keeps, for each of its siblings, the range of distances between its
own pivot and the items stored below that sibling. These ranges are used to
prune nearest-neighbor queries with the triangle inequality and to judge how
isolated a subtree is, which is what sample() uses to favour sparse regions.

Items are tracked by identity, so the same object must be passed to remove()
that was passed to add().
"""

import heapq
import itertools
import logging
import math

import numpy as np

from config import (GNAT_DEGREE, GNAT_MIN_DEGREE, GNAT_MAX_DEGREE,
                    GNAT_MAX_PTS_PER_LEAF, GNAT_REMOVED_CACHE_SIZE,
                    GNAT_SAMPLE_ATTEMPTS, ConfigurationError,
                    validate_gnat_parameters)

logger = logging.getLogger(__name__)

MAX_ESTIMATED_DIMENSION = 32.0


def greedy_k_centers(data, k, distance, rng):
    """
    Pick up to k well separated centers among data.

    The first center is drawn at random, each following one is the item
    furthest away from all centers chosen so far. Fewer than k centers are
    returned when every remaining item coincides with a center.

    Parameters
    ----------
    data : list
        Items to choose from.
    k : int
        Requested number of centers.
    distance : callable
        Distance between two items.
    rng : np.random.Generator

    Returns
    -------
    centers : list of int
        Indices into data.
    dists : np.ndarray
        (len(data), len(centers)) matrix of item-to-center distances.
    """
    n = len(data)
    dists = np.zeros((n, k))
    min_dist = np.full(n, np.inf)
    centers = [int(rng.integers(n))]
    for i in range(1, k):
        center = data[centers[-1]]
        for j in range(n):
            dists[j, i - 1] = distance(data[j], center)
        np.minimum(min_dist, dists[:, i - 1], out=min_dist)
        ind = int(np.argmax(min_dist))
        if min_dist[ind] < np.finfo(float).eps:
            break
        centers.append(ind)

    last = len(centers) - 1
    center = data[centers[last]]
    for j in range(n):
        dists[j, last] = distance(data[j], center)
    return centers, dists[:, :len(centers)]


class _Node:
    """One node of the GNAT: a pivot plus either leaf data or children."""

    __slots__ = ('degree', 'pivot', 'min_radius', 'max_radius',
                 'min_range', 'max_range', 'data', 'children', 'subtree_size')

    def __init__(self, degree, pivot, n_siblings=0):
        self.degree = degree
        self.pivot = pivot
        # distances from the pivot to the items stored below this node
        self.min_radius = math.inf
        self.max_radius = -math.inf
        # min_range[i] / max_range[i]: distances from the pivot to the items of sibling i
        self.min_range = np.full(n_siblings, np.inf)
        self.max_range = np.full(n_siblings, -np.inf)
        self.data = []
        self.children = []
        self.subtree_size = 1

    def update_radius(self, dist):
        if dist < self.min_radius:
            self.min_radius = dist
        if dist > self.max_radius:
            self.max_radius = dist

    def update_range(self, i, dist):
        if dist < self.min_range[i]:
            self.min_range[i] = dist
        if dist > self.max_range[i]:
            self.max_range[i] = dist

    def need_to_split(self, gnat):
        size = len(self.data)
        return size > gnat.max_pts_per_leaf and size > self.degree

    def add(self, gnat, item):
        self.subtree_size += 1
        if not self.children:
            self.data.append(item)
            if self.need_to_split(gnat):
                if gnat._removed:
                    gnat.rebuild()
                elif gnat._size >= gnat._rebuild_size:
                    gnat._rebuild_size <<= 1
                    gnat.rebuild()
                else:
                    self.split(gnat)
            return

        dists = [gnat.distance(item, child.pivot) for child in self.children]
        k = int(np.argmin(dists))
        for i, child in enumerate(self.children):
            child.update_range(k, dists[i])
        self.children[k].update_radius(dists[k])
        self.children[k].add(gnat, item)

    def split(self, gnat):
        pivots, dists = greedy_k_centers(self.data, self.degree, gnat.distance, gnat.rng)
        n_children = len(pivots)
        if n_children < 2:
            # every item coincides with the single center; stay a leaf
            return

        children = [_Node(self.degree, self.data[p], n_children) for p in pivots]
        assigned = np.argmin(dists, axis=1)
        is_pivot = np.zeros(len(self.data), dtype=bool)
        is_pivot[pivots] = True

        dimension_estimates = []
        for k, child in enumerate(children):
            members = assigned == k
            member_dists = dists[members]
            for i, other in enumerate(children):
                other.update_range(k, member_dists[:, i].min())
                other.update_range(k, member_dists[:, i].max())

            own = members & ~is_pivot
            child.data = [self.data[j] for j in np.flatnonzero(own)]
            radii = dists[own, k]
            if radii.size:
                child.min_radius = float(radii.min())
                child.max_radius = float(radii.max())
                estimate = _doubling_dimension(radii)
                if estimate is not None:
                    dimension_estimates.append(estimate)
            else:
                child.min_radius = child.max_radius = 0.0

        self.degree = n_children
        size = len(self.data)
        for child in children:
            child.degree = min(max(n_children * len(child.data) // size, gnat.min_degree),
                               gnat.max_degree)
            child.subtree_size = len(child.data) + 1

        if dimension_estimates:
            gnat._observe_dimension(float(np.mean(dimension_estimates)))

        self.children = children
        self.data = []
        logger.debug("GNAT: split %d items into %d children", size, n_children)

        for child in children:
            if child.need_to_split(gnat):
                child.split(gnat)

    def sampling_weight(self, gnat):
        """Log of the sampling weight: spread ** dimension / subtree size."""
        positive = self.min_range[self.min_range > 0.0]
        spread = float(positive.min()) if positive.size else 0.0
        spread = max(spread, self.max_radius)
        if spread <= 0.0:
            return -math.inf
        return gnat.estimated_dimension * math.log(spread) - math.log(self.subtree_size)

    def sample(self, gnat, rng):
        node = self
        while node.children:
            if rng.random() < 1.0 / node.subtree_size:
                return node.pivot
            log_weights = np.array([child.sampling_weight(gnat) for child in node.children])
            if np.isfinite(log_weights).any():
                weights = np.exp(log_weights - log_weights.max())
            else:
                # all subtrees collapsed onto their pivots; fall back on subtree sizes
                weights = np.array([child.subtree_size for child in node.children], dtype=float)
            node = node.children[rng.choice(len(node.children), p=weights / weights.sum())]

        i = int(rng.integers(len(node.data) + 1))
        return node.pivot if i == len(node.data) else node.data[i]


def _doubling_dimension(radii):
    """
    Estimate the intrinsic dimension of a cluster from its pivot distances.

    Compares the number of items within the cluster radius with the number
    within half of it: n(R) / n(R/2) ~ 2 ** d.
    """
    if radii.size < 2:
        return None
    radius = radii.max()
    if radius <= 0.0:
        return None
    n_all = radii.size + 1
    n_half = 1 + int(np.count_nonzero(radii <= radius / 2.0))
    if n_half >= n_all:
        return None
    return math.log(n_all / n_half) / math.log(2.0)


class GNATSampler:
    """
    Density-aware spatial index.

    Parameters
    ----------
    distance : callable, optional
        Distance between two items. Must be set before the first insertion.
    degree, min_degree, max_degree : int
        Nominal, minimum and maximum number of children of an internal node.
    max_pts_per_leaf : int
        Number of items a leaf holds before it is split.
    removed_cache_size : int
        Number of lazily removed items kept before the index is rebuilt.
    estimated_dimension : float, optional
        Intrinsic dimension used to weight biased draws. Estimated from the
        data when not given.
    rng : np.random.Generator, optional
    sample_attempts : int
        Number of draws sample() makes before giving up on removed items.
    """

    def __init__(self, distance=None, degree=GNAT_DEGREE, min_degree=GNAT_MIN_DEGREE,
                 max_degree=GNAT_MAX_DEGREE, max_pts_per_leaf=GNAT_MAX_PTS_PER_LEAF,
                 removed_cache_size=GNAT_REMOVED_CACHE_SIZE, estimated_dimension=None,
                 rng=None, sample_attempts=GNAT_SAMPLE_ATTEMPTS):
        validate_gnat_parameters(degree, min_degree, max_degree,
                                 max_pts_per_leaf, removed_cache_size)
        if estimated_dimension is not None and estimated_dimension <= 0:
            raise ConfigurationError(
                f"estimated_dimension must be positive, got {estimated_dimension!r}")
        self._distance = distance
        self.degree = int(degree)
        self.min_degree = int(min_degree)
        self.max_degree = int(max_degree)
        self.max_pts_per_leaf = int(max_pts_per_leaf)
        self.removed_cache_size = int(removed_cache_size)
        self.sample_attempts = max(1, int(sample_attempts))
        self.rng = rng if rng is not None else np.random.default_rng()

        self._fixed_dimension = estimated_dimension is not None
        self.estimated_dimension = float(estimated_dimension) if self._fixed_dimension else 1.0
        self._dimension_observations = 0

        self._tree = None
        self._size = 0
        self._rebuild_size = self.max_pts_per_leaf * self.degree
        self._live = set()      # ids of items currently in the index
        self._removed = {}      # id -> item, removed but still in the structure

    # ------------------------------------------------------------------
    # distance
    # ------------------------------------------------------------------
    @property
    def distance_function(self):
        return self._distance

    def set_distance_function(self, distance):
        if distance is self._distance:
            return
        if self._tree is not None:
            raise ConfigurationError(
                "the distance function cannot change while the index holds elements")
        self._distance = distance

    def distance(self, a, b):
        if self._distance is None:
            raise ConfigurationError("no distance function set for the spatial index")
        return self._distance(a, b)

    # ------------------------------------------------------------------
    # content
    # ------------------------------------------------------------------
    def size(self):
        return self._size

    def __len__(self):
        return self._size

    def contains(self, item):
        return id(item) in self._live

    def __contains__(self, item):
        return self.contains(item)

    def add(self, item):
        if self._distance is None:
            raise ConfigurationError("no distance function set for the spatial index")
        if id(item) in self._removed:
            self.rebuild()
        if self._tree is None:
            self._tree = _Node(self.degree, item)
            self._size = 1
        else:
            self._size += 1
            self._tree.add(self, item)
        self._live.add(id(item))

    def add_many(self, items):
        items = list(items)
        if not items:
            return
        if self._tree is not None:
            for item in items:
                self.add(item)
            return
        if self._distance is None:
            raise ConfigurationError("no distance function set for the spatial index")

        root = _Node(self.degree, items[0])
        root.data = items[1:]
        root.subtree_size = len(items)
        self._tree = root
        self._size = len(items)
        self._live.update(id(item) for item in items)
        if root.need_to_split(self):
            root.split(self)

    def remove(self, item):
        """Lazily remove an item. Returns False when it is not in the index."""
        key = id(item)
        if key not in self._live:
            return False
        self._live.discard(key)
        self._removed[key] = item
        self._size -= 1
        if len(self._removed) >= self.removed_cache_size:
            self.rebuild()
        return True

    def list(self):
        """All live items, in no particular order."""
        if self._tree is None:
            return []
        out = []
        stack = [self._tree]
        while stack:
            node = stack.pop()
            out.append(node.pivot)
            out.extend(node.data)
            stack.extend(node.children)
        return [item for item in out if id(item) not in self._removed]

    def clear(self):
        self._tree = None
        self._size = 0
        self._live.clear()
        self._removed.clear()
        self._rebuild_size = self.max_pts_per_leaf * self.degree

    def rebuild(self):
        """Rebuild the structure from the live items, dropping removed ones."""
        items = self.list()
        logger.debug("GNAT: rebuilding index with %d items (%d removed)",
                     len(items), len(self._removed))
        self._tree = None
        self._size = 0
        self._live.clear()
        self._removed.clear()
        self.add_many(items)

    def _observe_dimension(self, estimate):
        if self._fixed_dimension:
            return
        self._dimension_observations += 1
        self.estimated_dimension += (estimate - self.estimated_dimension) / self._dimension_observations
        self.estimated_dimension = min(max(self.estimated_dimension, 1.0), MAX_ESTIMATED_DIMENSION)

    # ------------------------------------------------------------------
    # biased draw
    # ------------------------------------------------------------------
    def sample(self, rng=None):
        """
        Draw an item, favouring items in sparsely populated regions.

        Returns None when every attempt landed on a removed item.
        """
        if self._size == 0:
            raise ValueError("Cannot sample from an empty index")
        rng = rng if rng is not None else self.rng
        for _ in range(self.sample_attempts):
            item = self._tree.sample(self, rng)
            if id(item) not in self._removed:
                return item
        return None

    # ------------------------------------------------------------------
    # nearest neighbors
    # ------------------------------------------------------------------
    def nearest(self, query):
        found = self._search(query, 1, math.inf)
        return found[0][1] if found else None

    def nearest_k(self, query, k):
        return [item for _, item in self._search(query, k, math.inf)]

    def nearest_r(self, query, radius):
        return [item for _, item in self._search(query, None, radius)]

    def _search(self, query, k, radius):
        """Best-first search; returns (distance, item) pairs sorted by distance."""
        if self._tree is None or self._size == 0 or k == 0:
            return []
        counter = itertools.count()
        found = []  # max-heap on distance: (-dist, seq, item)

        def bound():
            if k is not None and len(found) == k:
                return min(radius, -found[0][0])
            return radius

        def offer(item, dist):
            if dist > radius or id(item) in self._removed:
                return
            if k is None or len(found) < k:
                heapq.heappush(found, (-dist, next(counter), item))
            elif dist < -found[0][0]:
                heapq.heapreplace(found, (-dist, next(counter), item))

        root = self._tree
        offer(root.pivot, self.distance(query, root.pivot))
        queue = [(0.0, next(counter), root)]
        while queue:
            lower, _, node = heapq.heappop(queue)
            if lower > bound():
                break
            for item in node.data:
                offer(item, self.distance(query, item))
            if not node.children:
                continue

            children = node.children
            dists = [self.distance(query, child.pivot) for child in children]
            for child, dist in zip(children, dists):
                offer(child.pivot, dist)

            r = bound()
            for j, child in enumerate(children):
                pruned = any(
                    dists[i] - r > children[i].max_range[j] or dists[i] + r < children[i].min_range[j]
                    for i in range(len(children)) if i != j)
                if pruned:
                    continue
                if dists[j] - r > child.max_radius or dists[j] + r < child.min_radius:
                    continue
                heapq.heappush(queue, (max(0.0, dists[j] - child.max_radius), next(counter), child))

        return sorted(((-neg, item) for neg, _, item in found), key=lambda pair: pair[0])
