"""
Robot-soccer field scene: one robot plans across a scaled-down field while
five other robots stand in the way as static obstacles.
All lengths are in millimeters (METER = 1000).
"""

from typing import List, Optional, Tuple

from birrt import PlaneStateSpace, PlannerConfig

METER = 1000.0

SIZE_SCALE_UP = 2.0
ROBOT_RADIUS = 0.09 * METER * SIZE_SCALE_UP
ROBOT_HEIGHT = 0.15 * METER * SIZE_SCALE_UP

FIELD_SCALE = 0.6
FIELD_LENGTH = 6.05 * METER * FIELD_SCALE  # along y
FIELD_WIDTH = 4.05 * METER * FIELD_SCALE  # along x

LINE_HEIGHT = 0.02 * METER
LINE_WIDTH = 0.02 * METER

DEFAULT_START = (0.4 * METER, 0.3 * METER)
DEFAULT_GOAL = (2.0 * METER, 3.0 * METER)

# Placed to sit between start and goal.
OTHER_ROBOTS: List[Tuple[float, float]] = [
    (0.5 * METER, 1.2 * METER),
    (1.0 * METER, 0.9 * METER),
    (1.5 * METER, 1.2 * METER),
    (1.3 * METER, 2.0 * METER),
    (2.2 * METER, 2.1 * METER),
]

DEFAULT_SEED = 1484997019

PLANNER_KWARGS = dict(
    step_size=0.15 * METER,
    goal_bias=0.1,
    goal_max_dist=0.05 * METER,
    max_iterations=500,
)


def make_state_space(obstacles=None, collision_step: Optional[float] = None) -> PlaneStateSpace:
    return PlaneStateSpace(
        FIELD_WIDTH,
        FIELD_LENGTH,
        obstacles=tuple(OTHER_ROBOTS if obstacles is None else obstacles),
        obstacle_radius=ROBOT_RADIUS,
        collision_step=collision_step,
    )


def make_config(**overrides) -> PlannerConfig:
    kwargs = dict(PLANNER_KWARGS)
    kwargs.update(overrides)
    return PlannerConfig(**kwargs)


def scene_constants(seed: int) -> dict:
    return {
        "RobotRadius": ROBOT_RADIUS,
        "RobotHeight": ROBOT_HEIGHT,
        "FieldLength": FIELD_LENGTH,
        "FieldWidth": FIELD_WIDTH,
        "RRT_RandomSeed": int(seed),
        "meter": METER,
    }
