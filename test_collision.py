"""test_collision.py - R-tree obstacle map and map files"""
import numpy as np
import pytest

from collision import ObstacleMap, generate_obstacles, load_map_obstacles


class TestObstacleMap:

    def test_circle(self):
        world = ObstacleMap(circles=[(np.array([5.0, 5.0]), 1.0)])
        assert not world([5.0, 5.5])
        assert world([5.0, 6.5])
        assert world([0.0, 0.0])

    def test_rectangle_corners_in_any_order(self):
        world = ObstacleMap(rectangles=[([3.0, 4.0], [1.0, 2.0])])
        assert not world([2.0, 3.0])
        assert world([3.5, 3.0])

    def test_rectangle_edges_are_blocked(self):
        world = ObstacleMap(rectangles=[([4.5, 0.0], [5.5, 8.0])])
        assert not world([5.0, 0.0])
        assert not world([4.5, 4.0])
        assert not world([5.5, 8.0])
        assert world([5.0, 8.01])

    def test_padding(self):
        world = ObstacleMap(circles=[([0.0, 0.0], 1.0)], rectangles=[([5.0, 5.0], [6.0, 6.0])],
                            padding=0.5)
        assert not world([1.4, 0.0])
        assert world([1.6, 0.0])
        assert not world([6.4, 5.5])
        assert world([6.6, 5.5])

    def test_uses_first_two_coordinates(self):
        world = ObstacleMap(circles=[([0.0, 0.0], 1.0)])
        assert not world([0.0, 0.0, 100.0])

    def test_counts(self):
        world = ObstacleMap()
        world.add_circle([1.0, 1.0], 0.5)
        world.add_rectangle([2.0, 2.0], [3.0, 3.0])
        assert len(world) == 2
        assert len(world.circles) == 1
        assert len(world.rectangles) == 1


def test_map_file_round_trip(tmp_path):
    filename = tmp_path / 'map.json'
    world = ObstacleMap(circles=[([1.0, 2.0], 0.5)], rectangles=[([3.0, 3.0], [4.0, 5.0])])
    world.save(filename)
    circles, rectangles = load_map_obstacles(filename)
    assert len(circles) == 1 and len(rectangles) == 1
    np.testing.assert_allclose(circles[0][0], [1.0, 2.0])
    assert circles[0][1] == pytest.approx(0.5)
    loaded = ObstacleMap.from_file(filename)
    assert not loaded([3.5, 4.0])


def test_generate_obstacles_keeps_points_clear(rng):
    keep = [np.array([1.0, 1.0]), np.array([29.0, 29.0])]
    obstacles = generate_obstacles(200, 1.0, 3.0, keep_clear=keep, clearance=0.5, rng=rng)
    assert 0 < len(obstacles) <= 200
    world = ObstacleMap(obstacles)
    assert all(world(p) for p in keep)
