"""
conftest.py — pytest fixtures shared across the test suite.

Provides the 100×100 reference worlds (empty, wall, four boxes) and a
call-counting oracle wrapper so individual test modules stay short.
"""

import numpy as np
import pytest

from rrt_planning.models import PlannerConfig
from rrt_planning.scene import Scene, SceneSpace
from rrt_planning.space import ConfigurationSpace


WORLD_BOUNDS = [(0.0, 100.0), (0.0, 100.0)]
START = np.array([1.0, 1.0])
GOAL = np.array([99.0, 99.0])


def assert_same_trees(trees_a, trees_b):
    """两次规划的树逐节点一致（handle、父节点、代价、状态）"""
    assert len(trees_a) == len(trees_b)
    for ta, tb in zip(trees_a, trees_b):
        assert len(ta) == len(tb)
        assert list(ta.handles()) == list(tb.handles())
        for h in ta.handles():
            assert ta.parent(h) == tb.parent(h)
            assert ta.cost(h) == tb.cost(h)
            np.testing.assert_array_equal(ta.state(h), tb.state(h))


class CountingSpace(ConfigurationSpace):
    """委托给内部 space，并统计各 oracle 方法的调用次数"""

    def __init__(self, inner: ConfigurationSpace):
        self.inner = inner
        self.calls = {"sample": 0, "steer": 0, "is_edge_free": 0,
                      "is_state_free": 0}

    @property
    def ndim(self):
        return self.inner.ndim

    @property
    def volume(self):
        return self.inner.volume

    def sample(self):
        self.calls["sample"] += 1
        return self.inner.sample()

    def distance(self, a, b):
        return self.inner.distance(a, b)

    def steer(self, from_state, toward, max_step):
        self.calls["steer"] += 1
        return self.inner.steer(from_state, toward, max_step)

    def is_edge_free(self, a, b):
        self.calls["is_edge_free"] += 1
        return self.inner.is_edge_free(a, b)

    def is_state_free(self, state):
        self.calls["is_state_free"] += 1
        return self.inner.is_state_free(state)


# =========================================================================
# Scene fixtures
# =========================================================================

@pytest.fixture
def wall_scene() -> Scene:
    """一堵完全隔开左右两半的墙（x = 45 ~ 55，y 覆盖整个边界）"""
    scene = Scene()
    scene.add_obstacle([45.0, 0.0], [55.0, 100.0], name="wall")
    return scene


@pytest.fixture
def box_scene() -> Scene:
    """四个 box 障碍物，起点 / 终点之间存在可行通道"""
    scene = Scene()
    scene.add_obstacle([20.0, 0.0], [30.0, 60.0], name="obs1")
    scene.add_obstacle([40.0, 40.0], [50.0, 100.0], name="obs2")
    scene.add_obstacle([60.0, 0.0], [70.0, 60.0], name="obs3")
    scene.add_obstacle([80.0, 40.0], [90.0, 100.0], name="obs4")
    return scene


# =========================================================================
# Space fixtures
# =========================================================================

@pytest.fixture
def empty_space() -> SceneSpace:
    """无障碍物的 100×100 世界"""
    return SceneSpace(WORLD_BOUNDS, seed=0)


@pytest.fixture
def wall_space(wall_scene) -> SceneSpace:
    return SceneSpace(WORLD_BOUNDS, scene=wall_scene, seed=0)


@pytest.fixture
def box_space(box_scene) -> SceneSpace:
    return SceneSpace(WORLD_BOUNDS, scene=box_scene, seed=0)


@pytest.fixture
def counting_wall_space(wall_scene) -> CountingSpace:
    return CountingSpace(SceneSpace(WORLD_BOUNDS, scene=wall_scene, seed=0))


# =========================================================================
# Config fixtures
# =========================================================================

@pytest.fixture
def e2e_config() -> PlannerConfig:
    """端到端场景配置：step 5.0，5000 次迭代"""
    return PlannerConfig(step_size=5.0, max_iterations=5000,
                         goal_tolerance=5.0, seed=0)
