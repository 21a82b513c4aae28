# demo.py

import logging
import os

import matplotlib.pyplot as plt
import numpy as np

from collision import ObstacleMap, generate_obstacles
from config import MAP_FILE, WORLD_BOUNDS
from goal import GoalState
from planner import GNATPlanner
from space_information import SpaceInformation
from state_space import RealVectorStateSpace

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

x_start = np.array([2.0, 2.0])
x_goal = np.array([28.0, 28.0])

if os.path.exists(MAP_FILE):
    world = ObstacleMap.from_file(MAP_FILE)
else:
    obstacles = generate_obstacles(25, 1.0, 3.0, WORLD_BOUNDS,
                                   keep_clear=[x_start, x_goal], clearance=1.0,
                                   rng=np.random.default_rng(1))
    world = ObstacleMap(obstacles)

space = RealVectorStateSpace(WORLD_BOUNDS)
si = SpaceInformation(space, world)

planner = GNATPlanner(si, goal_bias=0.05, max_distance=2.0, seed=0)
planner.add_start_state(x_start)
planner.set_goal(GoalState(si, x_goal, threshold=1.0))

result = planner.solve(5.0)
print(f"{result.status.value}: {len(result.path)} waypoints, "
      f"{result.tree_size} nodes, {result.iterations} iterations, "
      f"goal distance {result.goal_distance:.3f}")

fig, ax = plt.subplots(figsize=(8, 8))
for center, radius in world.circles:
    ax.add_patch(plt.Circle(center, radius, color='red', alpha=0.4))
for corner1, corner2 in world.rectangles:
    ax.add_patch(plt.Rectangle(corner1, *(corner2 - corner1), color='red', alpha=0.4))
planner.tree.plot_tree(ax=ax, path=result.path)
ax.plot(x_goal[0], x_goal[1], 'g*', markersize=15, label='Goal')
ax.set_xlim(WORLD_BOUNDS[0])
ax.set_ylim(WORLD_BOUNDS[1])
ax.legend()
ax.set_title(f'GNAT planner: {result.status.value}')
plt.show()
