"""test_spatial_index.py - GNAT index: structure, queries, biased draws"""
import numpy as np
import pytest

from config import ConfigurationError
from conftest import euclidean
from spatial_index import GNATSampler, greedy_k_centers


def make_points(rng, n, dim=2, scale=10.0):
    return [rng.uniform(0.0, scale, dim) for _ in range(n)]


class TestParameters:

    def test_nominal_degree_bounds(self):
        index = GNATSampler(euclidean, degree=16, min_degree=2, max_degree=24)
        assert index.degree == 16
        assert len(index) == 0

    def test_max_degree_below_min_degree(self):
        with pytest.raises(ConfigurationError):
            GNATSampler(euclidean, degree=16, min_degree=2, max_degree=1)

    def test_degree_outside_bounds(self):
        with pytest.raises(ConfigurationError):
            GNATSampler(euclidean, degree=30, min_degree=2, max_degree=24)

    @pytest.mark.parametrize('name', ['max_pts_per_leaf', 'removed_cache_size'])
    def test_non_positive_sizes(self, name):
        with pytest.raises(ConfigurationError):
            GNATSampler(euclidean, **{name: 0})

    def test_add_without_distance(self):
        index = GNATSampler()
        with pytest.raises(ConfigurationError):
            index.add(np.zeros(2))

    def test_distance_cannot_change_after_insertion(self):
        index = GNATSampler(euclidean)
        index.add(np.zeros(2))
        with pytest.raises(ConfigurationError):
            index.set_distance_function(lambda a, b: 0.0)
        index.clear()
        index.set_distance_function(lambda a, b: 0.0)


class TestKCenters:

    def test_centers_are_distinct(self, rng):
        data = make_points(rng, 50)
        centers, dists = greedy_k_centers(data, 5, euclidean, rng)
        assert len(set(centers)) == 5
        assert dists.shape == (50, 5)
        for k, c in enumerate(centers):
            assert dists[c, k] == pytest.approx(0.0)

    def test_coincident_points_give_one_center(self, rng):
        data = [np.ones(2) for _ in range(10)]
        centers, dists = greedy_k_centers(data, 4, euclidean, rng)
        assert len(centers) == 1
        assert dists.shape == (10, 1)


class TestContent:

    def test_add_and_list(self, rng):
        index = GNATSampler(euclidean, rng=rng)
        points = make_points(rng, 500)
        for p in points:
            index.add(p)
        assert len(index) == 500
        listed = index.list()
        assert len(listed) == 500
        assert {id(p) for p in listed} == {id(p) for p in points}

    def test_add_many(self, rng):
        index = GNATSampler(euclidean, rng=rng)
        points = make_points(rng, 300)
        index.add_many(points)
        assert index.size() == 300
        assert all(index.contains(p) for p in points)

    def test_coincident_points(self, rng):
        index = GNATSampler(euclidean, degree=4, min_degree=2, max_degree=6,
                            max_pts_per_leaf=2, rng=rng)
        points = [np.zeros(3) for _ in range(200)]
        for p in points:
            index.add(p)
        assert len(index) == 200
        assert index.contains(index.sample())

    def test_remove(self, rng):
        index = GNATSampler(euclidean, rng=rng)
        points = make_points(rng, 100)
        index.add_many(points)
        assert index.remove(points[3])
        assert not index.remove(points[3])
        assert len(index) == 99
        assert not index.contains(points[3])
        assert all(p is not points[3] for p in index.list())
        assert all(q is not points[3] for q in index.nearest_k(points[3], 10))

    def test_removed_cache_triggers_rebuild(self, rng):
        index = GNATSampler(euclidean, removed_cache_size=5, rng=rng)
        points = make_points(rng, 60)
        index.add_many(points)
        for p in points[:5]:
            index.remove(p)
        assert index._removed == {}
        assert len(index.list()) == 55

    def test_clear(self, rng):
        index = GNATSampler(euclidean, rng=rng)
        index.add_many(make_points(rng, 40))
        index.clear()
        assert len(index) == 0
        assert index.list() == []
        assert index.nearest(np.zeros(2)) is None


class TestNearest:

    @pytest.fixture
    def filled(self, rng):
        index = GNATSampler(euclidean, degree=8, min_degree=2, max_degree=12,
                            max_pts_per_leaf=4, rng=rng)
        points = make_points(rng, 400, dim=3)
        for p in points:
            index.add(p)
        return index, points

    def test_nearest_k_matches_brute_force(self, filled, rng):
        index, points = filled
        for _ in range(20):
            q = rng.uniform(0.0, 10.0, 3)
            expected = sorted(euclidean(q, p) for p in points)[:7]
            found = [euclidean(q, p) for p in index.nearest_k(q, 7)]
            np.testing.assert_allclose(found, expected)

    def test_nearest_r_matches_brute_force(self, filled, rng):
        index, points = filled
        for _ in range(20):
            q = rng.uniform(0.0, 10.0, 3)
            expected = sorted(d for d in (euclidean(q, p) for p in points) if d <= 2.0)
            found = [euclidean(q, p) for p in index.nearest_r(q, 2.0)]
            np.testing.assert_allclose(found, expected)

    def test_nearest_of_member_is_itself(self, filled):
        index, points = filled
        assert index.nearest(points[17]) is points[17]


class TestBiasedSample:

    def test_empty_index(self):
        with pytest.raises(ValueError):
            GNATSampler(euclidean).sample()

    def test_single_item(self):
        index = GNATSampler(euclidean)
        p = np.zeros(2)
        index.add(p)
        assert all(index.sample() is p for _ in range(10))

    def test_returns_live_items(self, rng):
        index = GNATSampler(euclidean, rng=rng)
        points = make_points(rng, 200)
        index.add_many(points)
        for p in points[:20]:
            index.remove(p)
        removed = {id(p) for p in points[:20]}
        for _ in range(200):
            item = index.sample()
            assert item is None or id(item) not in removed

    def test_all_draws_removed_gives_none(self, rng):
        index = GNATSampler(euclidean, sample_attempts=3, rng=rng)
        points = make_points(rng, 10)
        index.add_many(points)
        for p in points[1:]:
            index.remove(p)
        for _ in range(20):
            item = index.sample()
            assert item is None or item is points[0]

    def test_sparse_points_are_favoured(self, rng):
        index = GNATSampler(euclidean, estimated_dimension=2.0, rng=rng)
        cluster = [rng.normal(0.0, 0.01, 2) for _ in range(500)]
        sparse = [rng.uniform(20.0, 100.0, 2) for _ in range(20)]
        index.add_many(cluster + sparse)
        sparse_ids = {id(p) for p in sparse}
        draws = 2000
        hits = sum(id(index.sample()) in sparse_ids for _ in range(draws))
        # uniform drawing would give about 20 / 520 of the draws
        assert hits / draws > 0.5

    def test_dimension_is_estimated(self, rng):
        index = GNATSampler(euclidean, rng=rng)
        index.add_many(make_points(rng, 1000))
        assert 1.0 <= index.estimated_dimension <= 32.0
