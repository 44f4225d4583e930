"""test/test_path_smoother.py - Shortcut / 重采样测试"""
import numpy as np
import pytest

from rrt_planning.path_smoother import PathSmoother, compute_path_length


def _zigzag(n):
    return [np.array([10.0 + 5.0 * i, 10.0 + (3.0 if i % 2 else 0.0)])
            for i in range(n)]


class TestShortcut:

    def test_short_path_untouched(self, empty_space):
        smoother = PathSmoother(empty_space, step_size=5.0)
        path = [np.zeros(2), np.ones(2)]
        assert len(smoother.shortcut(path)) == 2

    def test_free_space_collapses(self, empty_space):
        smoother = PathSmoother(empty_space, step_size=5.0)
        path = _zigzag(10)
        short = smoother.shortcut(path, max_iters=200,
                                  rng=np.random.default_rng(0))
        assert len(short) < len(path)
        np.testing.assert_array_equal(short[0], path[0])
        np.testing.assert_array_equal(short[-1], path[-1])
        assert compute_path_length(short) <= compute_path_length(path) + 1e-9

    def test_never_cuts_through_obstacle(self, box_space):
        smoother = PathSmoother(box_space, step_size=5.0)
        # 绕过 obs1 顶部的路径，任何捷径都会穿过障碍物
        path = [np.array([15.0, 30.0]), np.array([15.0, 65.0]),
                np.array([35.0, 65.0]), np.array([35.0, 30.0])]
        short = smoother.shortcut(path, max_iters=50,
                                  rng=np.random.default_rng(1))
        assert len(short) == 4
        for a, b in zip(short[:-1], short[1:]):
            assert box_space.is_edge_free(a, b)


class TestResample:

    def test_steps_bounded(self, empty_space):
        smoother = PathSmoother(empty_space, step_size=2.0)
        path = [np.array([0.0, 0.0]), np.array([10.0, 0.0]),
                np.array([10.0, 7.0])]
        dense = smoother.resample(path)
        for a, b in zip(dense[:-1], dense[1:]):
            assert empty_space.distance(a, b) <= 2.0 + 1e-9
        np.testing.assert_array_equal(dense[-1], [10.0, 7.0])
        assert compute_path_length(dense) == pytest.approx(17.0)

    def test_single_point(self, empty_space):
        smoother = PathSmoother(empty_space, step_size=2.0)
        assert len(smoother.resample([np.zeros(2)])) == 1


class TestPathLength:

    def test_length(self):
        path = [np.array([0.0, 0.0]), np.array([3.0, 4.0]), np.array([3.0, 5.0])]
        assert compute_path_length(path) == pytest.approx(6.0)

    def test_degenerate(self):
        assert compute_path_length([]) == 0.0
        assert compute_path_length([np.zeros(2)]) == 0.0
