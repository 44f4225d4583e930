"""
examples/world_demo.py - 100×100 二维世界路径规划演示

四个矩形障碍物，障碍物外扩 1.0 的安全裕度。给定起点 / 终点和算法，
运行规划并用 matplotlib 绘制障碍物、搜索树和路径。

不给 --timeout 时找到第一条路径即返回；给出 --timeout 时 RRT* 会一直
优化到时间用尽。

用法:
    python examples/world_demo.py 5 5 95 95
    python examples/world_demo.py 5 5 95 95 --algorithm "RRT*" --timeout 2.0
    python examples/world_demo.py 5 5 95 95 --algorithm RRTConnect --save out.png
    python examples/world_demo.py 5 5 95 95 --config my_config.json --no-viz
"""

import argparse
import logging
import sys
from typing import Optional

import numpy as np

from rrt_planning import ALGORITHMS, PlannerConfig, PlanningResult, plan
from rrt_planning.exceptions import InvalidStartOrGoal
from rrt_planning.scene import Scene, SceneSpace

# ── 日志配置 ──────────────────────────────────────────────
LOG_FMT = "[%(asctime)s] %(levelname)-7s %(name)s: %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FMT, datefmt="%H:%M:%S")
logger = logging.getLogger("world_demo")

WORLD_SIZE = 100.0
MARGIN = 1.0


def build_world(seed: Optional[int] = None) -> SceneSpace:
    """四个矩形障碍物的演示世界"""
    scene = Scene()
    scene.add_obstacle([10.0, 10.0], [30.0, 30.0], name="block_sw")
    scene.add_obstacle([50.0, 50.0], [80.0, 80.0], name="block_ne")
    scene.add_obstacle([70.0, 20.0], [90.0, 40.0], name="block_se")
    scene.add_obstacle([35.0, 30.0], [45.0, 90.0], name="pillar")
    bounds = [(0.0, WORLD_SIZE), (0.0, WORLD_SIZE)]
    return SceneSpace(bounds, scene=scene, margin=MARGIN, seed=seed)


def plot_result(space: SceneSpace, result: PlanningResult,
                title: str, save_path: Optional[str] = None) -> None:
    import matplotlib
    if save_path:
        matplotlib.use("Agg")
    import matplotlib.pyplot as plt
    from matplotlib.patches import Rectangle

    fig, ax = plt.subplots(figsize=(8, 8))

    for obs in space.scene.get_obstacles():
        w, h = obs.size
        ax.add_patch(Rectangle(tuple(obs.min_point), w, h,
                               facecolor='black', edgecolor='black'))

    tree_colors = ['tab:blue', 'tab:orange']
    for tree, color in zip(result.trees, tree_colors):
        for a, b in tree.edges():
            ax.plot([a[0], b[0]], [a[1], b[1]], '-', color=color,
                    linewidth=0.6, alpha=0.6)

    if result.success:
        pts = np.array(result.path)
        ax.plot(pts[:, 0], pts[:, 1], 'r-', linewidth=3.0, zorder=5)
        ax.plot(pts[0, 0], pts[0, 1], 'o', color='green', markersize=12, zorder=6)
        ax.plot(pts[-1, 0], pts[-1, 1], 'o', color='gold', markersize=12, zorder=6)

    ax.set_xlim(0.0, WORLD_SIZE)
    ax.set_ylim(0.0, WORLD_SIZE)
    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_title(title)
    ax.set_aspect('equal')
    ax.grid(True, alpha=0.2)

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        logger.info("已保存: %s", save_path)
    else:
        plt.show()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="在 100×100 的二维障碍物世界中运行 RRT 系列规划器")
    parser.add_argument("start_x", type=float)
    parser.add_argument("start_y", type=float)
    parser.add_argument("end_x", type=float)
    parser.add_argument("end_y", type=float)
    parser.add_argument("--algorithm", type=str, default="RRT",
                        choices=list(ALGORITHMS.keys()),
                        help="规划算法 (默认: RRT)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="时间预算 (s)；给出时 RRT* 持续优化直到超时")
    parser.add_argument("--step-size", type=float, default=1.0,
                        help="steer 步长 (默认: 1.0)")
    parser.add_argument("--max-iters", type=int, default=1000000,
                        help="最大迭代次数 (默认: 1000000)")
    parser.add_argument("--seed", type=int, default=None,
                        help="随机种子 (默认: 无)")
    parser.add_argument("--config", type=str, default=None,
                        help="PlannerConfig JSON 文件，覆盖上面的参数")
    parser.add_argument("--save", type=str, default=None,
                        help="保存图片路径（不弹出窗口）")
    parser.add_argument("--no-viz", action="store_true",
                        help="不绘图")
    args = parser.parse_args()

    if args.config:
        config = PlannerConfig.from_json(args.config)
    else:
        config = PlannerConfig(
            max_iterations=args.max_iters,
            time_budget=args.timeout,
            step_size=args.step_size,
            goal_tolerance=args.step_size,
            return_on_first_found=args.timeout is None,
            seed=args.seed,
        )

    start = np.array([args.start_x, args.start_y])
    goal = np.array([args.end_x, args.end_y])
    space = build_world(seed=args.seed)

    logger.info("起点 (%.2f, %.2f) → 终点 (%.2f, %.2f)，算法 %s",
                start[0], start[1], goal[0], goal[1], args.algorithm)
    logger.info("配置: %s", config.to_dict())

    try:
        result = plan(space, start, goal, config, algorithm=args.algorithm)
    except InvalidStartOrGoal as e:
        logger.error("规划失败: %s", e)
        return 1

    if result.success:
        logger.info("找到路径: %d 个点，长度 %.3f，%d 个节点，%.3fs",
                    result.n_waypoints, result.cost, result.n_nodes,
                    result.computation_time)
    else:
        logger.warning("未找到路径: %s", result.message)

    if not args.no_viz:
        try:
            plot_result(space, result,
                        title=f"{args.algorithm} Path Finding Result",
                        save_path=args.save)
        except ImportError:
            logger.warning("matplotlib 未安装，跳过可视化 (pip install rrt-planning[viz])")

    return 0 if result.success else 2


if __name__ == "__main__":
    sys.exit(main())
