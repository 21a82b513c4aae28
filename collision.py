# collision.py

import json
import logging

import numpy as np
import rtree.index as index

from config import MAP_FILE, WORLD_BOUNDS

logger = logging.getLogger(__name__)


class ObstacleMap:
    """
    Circle and rectangle obstacles in the plane, stored in an R-tree.

    Used as a validity predicate: a configuration is valid when the point
    given by its first two coordinates lies outside every obstacle (grown by
    padding).

    Parameters
    ----------
    circles : list of (center, radius)
    rectangles : list of (corner1, corner2)
    padding : float
        Clearance added around every obstacle.
    """

    def __init__(self, circles=(), rectangles=(), padding=0.0):
        p = index.Property()
        p.dimension = 2
        self.idx = index.Index(properties=p)
        self.padding = float(padding)

        # Keep mapping from Rtree IDs -> obstacles
        self.obstacles = {}
        self.next_id = 0

        for center, radius in circles:
            self.add_circle(center, radius)
        for corner1, corner2 in rectangles:
            self.add_rectangle(corner1, corner2)

    def __len__(self):
        return len(self.obstacles)

    @property
    def circles(self):
        return [(obs[1], obs[2]) for obs in self.obstacles.values() if obs[0] == 'circle']

    @property
    def rectangles(self):
        return [(obs[1], obs[2]) for obs in self.obstacles.values() if obs[0] == 'rectangle']

    def add_circle(self, center, radius):
        center = np.asarray(center, dtype=float)[:2]
        radius = float(radius)
        r = radius + self.padding
        bbox = (center[0] - r, center[1] - r, center[0] + r, center[1] + r)
        return self._insert(('circle', center, radius), bbox)

    def add_rectangle(self, corner1, corner2):
        c1 = np.asarray(corner1, dtype=float)[:2]
        c2 = np.asarray(corner2, dtype=float)[:2]
        low = np.minimum(c1, c2)
        high = np.maximum(c1, c2)
        bbox = (low[0] - self.padding, low[1] - self.padding,
                high[0] + self.padding, high[1] + self.padding)
        return self._insert(('rectangle', low, high), bbox)

    def _insert(self, obstacle, bbox):
        oid = self.next_id
        self.next_id += 1
        self.idx.insert(oid, bbox)
        self.obstacles[oid] = obstacle
        return oid

    def _hits(self, obstacle, point):
        kind, a, b = obstacle
        if kind == 'circle':
            return np.linalg.norm(point - a) <= b + self.padding
        # rectangle: distance from point to the box
        gap = np.maximum(np.maximum(a - point, point - b), 0.0)
        if self.padding > 0.0:
            return np.linalg.norm(gap) <= self.padding
        return bool(np.all(point >= a) and np.all(point <= b))

    def point_collision_free(self, x):
        point = np.asarray(x, dtype=float)[:2]
        bbox = (point[0], point[1], point[0], point[1])
        for oid in self.idx.intersection(bbox):
            if self._hits(self.obstacles[oid], point):
                return False
        return True

    def __call__(self, x):
        return self.point_collision_free(x)

    # ------------------------------------------------------------------
    # map files
    # ------------------------------------------------------------------
    def save(self, filename=MAP_FILE):
        save_map_obstacles(self.circles, self.rectangles, filename)

    @classmethod
    def from_file(cls, filename=MAP_FILE, padding=0.0):
        circles, rectangles = load_map_obstacles(filename)
        return cls(circles, rectangles, padding=padding)


def load_map_obstacles(filename=MAP_FILE):
    """Load obstacles from JSON file."""
    with open(filename, 'r') as f:
        data = json.load(f)

    circles = [(np.array(circle['center'], dtype=float), float(circle['radius']))
               for circle in data.get('circles', [])]
    rectangles = [(np.array(rect['corner1'], dtype=float), np.array(rect['corner2'], dtype=float))
                  for rect in data.get('rectangles', [])]

    logger.info("Loaded %d circles and %d rectangles from %s",
                len(circles), len(rectangles), filename)
    return circles, rectangles


def save_map_obstacles(circles, rectangles, filename=MAP_FILE):
    """Save obstacles to JSON file."""
    data = {
        'circles': [{'center': [float(center[0]), float(center[1])], 'radius': float(radius)}
                    for center, radius in circles],
        'rectangles': [{'corner1': [float(c1[0]), float(c1[1])],
                        'corner2': [float(c2[0]), float(c2[1])]}
                       for c1, c2 in rectangles],
    }

    with open(filename, 'w') as f:
        json.dump(data, f, indent=2)

    logger.info("Map saved to %s (%d circles, %d rectangles)",
                filename, len(data['circles']), len(data['rectangles']))


def generate_obstacles(num_obstacles, min_radius, max_radius, bounds=WORLD_BOUNDS,
                       keep_clear=(), clearance=0.0, rng=None):
    """
    Random circle obstacles inside bounds.

    Obstacles that would cover a point of keep_clear (with the given
    clearance) are skipped, so fewer than num_obstacles may be returned.
    """
    rng = rng if rng is not None else np.random.default_rng()
    bounds = np.asarray(bounds, dtype=float)
    keep_clear = [np.asarray(p, dtype=float)[:2] for p in keep_clear]
    obstacles = []
    for _ in range(num_obstacles):
        center = rng.uniform(bounds[:2, 0], bounds[:2, 1])
        radius = rng.uniform(min_radius, max_radius)
        if any(np.linalg.norm(center - p) < radius + clearance for p in keep_clear):
            continue
        obstacles.append((center, radius))
    return obstacles
