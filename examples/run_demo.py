"""
Plan the field scene with the bidirectional RRT and export it for OpenSCAD:
    python -m examples.run_demo --seed 1484997019 --output out.scad
Pass --seed -1 to draw a fresh seed; the seed used is always printed.
"""

import argparse
import sys
import time
from pathlib import Path

import numpy as np

from birrt import BiRRTPlanner, min_clearance
from birrt.common import path_length
from birrt.logging_config import set_level
from birrt.scad import write_scad

from .field_scene import (
    DEFAULT_GOAL,
    DEFAULT_SEED,
    DEFAULT_START,
    OTHER_ROBOTS,
    PLANNER_KWARGS,
    make_config,
    make_state_space,
    scene_constants,
)

try:
    import matplotlib.pyplot as plt
except ImportError:  # matplotlib is optional
    plt = None


def plot_result(result, state_space, out_path: Path):
    if plt is None:
        print("matplotlib not installed; skipping plot.")
        return None
    fig, ax = plt.subplots(figsize=(5, 7))
    for ox, oy in state_space.obstacles:
        ax.add_patch(plt.Circle((ox, oy), state_space.obstacle_radius, color="gray", alpha=0.8))
        ax.add_patch(plt.Circle((ox, oy), state_space.exclusion_distance, color="gray", fill=False, ls="--"))
    for child, parent in result.edges():
        ax.plot([child[0], parent[0]], [child[1], parent[1]], color="#a6cee3", linewidth=0.8)
    if result.path:
        xs = [p[0] for p in result.path]
        ys = [p[1] for p in result.path]
        ax.plot(xs, ys, color="#ff7f0e", linewidth=2.5, label="BiRRT")
    start = result.start_tree.root.state
    goal = result.goal_tree.root.state
    ax.scatter(start[0], start[1], c="green", marker="*", s=120, label="start", zorder=3)
    ax.scatter(goal[0], goal[1], c="red", marker="*", s=120, label="goal", zorder=3)
    ax.set_xlim(0, state_space.width)
    ax.set_ylim(0, state_space.height)
    ax.set_aspect("equal")
    ax.legend(loc="best")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Bidirectional RRT across the robot field.")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed (-1 draws one).")
    parser.add_argument("--step-size", type=float, default=PLANNER_KWARGS["step_size"])
    parser.add_argument("--goal-bias", type=float, default=PLANNER_KWARGS["goal_bias"])
    parser.add_argument("--goal-max-dist", type=float, default=PLANNER_KWARGS["goal_max_dist"])
    parser.add_argument("--max-iterations", type=int, default=PLANNER_KWARGS["max_iterations"])
    parser.add_argument(
        "--dense-check",
        type=float,
        default=None,
        help="Also check points along each edge at this spacing (default: endpoints only).",
    )
    parser.add_argument("--no-obstacles", action="store_true", help="Plan on an empty field.")
    parser.add_argument("--output", type=Path, default=Path("out.scad"))
    parser.add_argument("--plot", type=Path, default=None, help="Optional PNG path for a matplotlib plot.")
    parser.add_argument("--log-level", default=None, help="Planner log level (default from BIRRT_LOG_LEVEL).")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.log_level:
        set_level("birrt.planner", args.log_level)

    seed = args.seed
    if seed < 0:
        seed = int(np.random.SeedSequence().entropy % (2**32))
    print(f"INFO: using random seed: {seed}")

    obstacles = [] if args.no_obstacles else OTHER_ROBOTS
    state_space = make_state_space(obstacles, collision_step=args.dense_check)
    config = make_config(
        step_size=args.step_size,
        goal_bias=args.goal_bias,
        goal_max_dist=args.goal_max_dist,
        max_iterations=args.max_iterations,
    )
    planner = BiRRTPlanner(state_space, config, seed=seed)

    t0 = time.time()
    result = planner.plan(DEFAULT_START, DEFAULT_GOAL)
    wall = time.time() - t0
    stats = result.stats
    if not result.success:
        print(
            f"RRT Error: No solution found (iterations={stats['iterations']}, "
            f"nodes={stats['nodes']}, min_gap={stats['min_gap']:.1f})"
        )
        return 1

    print(
        f"BiRRT: iterations={stats['iterations']}, nodes={stats['nodes']}, "
        f"path_states={len(result.path)}, path_len={path_length(result.path):.1f}, "
        f"clearance={min_clearance(result.path, obstacles):.1f}, time={wall:.3f}s"
    )

    write_scad(
        args.output,
        result,
        DEFAULT_START,
        DEFAULT_GOAL,
        obstacles=obstacles,
        constants=scene_constants(seed),
    )
    print(f"wrote to file: {args.output}")

    if args.plot is not None:
        saved = plot_result(result, state_space, args.plot)
        if saved:
            print(f"Saved plot: {saved}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
