import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from .common import as_state
from .errors import DegenerateStepError


@runtime_checkable
class StateSpace(Protocol):
    """Capabilities the planner needs from a workspace.

    Any object with these members can be handed to ``BiRRTPlanner``.
    """

    dimensions: int

    def random_state(self, rng: np.random.Generator) -> np.ndarray:
        ...

    def state_valid(self, state: np.ndarray) -> bool:
        ...

    def transition_valid(self, source: np.ndarray, target: np.ndarray) -> bool:
        ...

    def intermediate_state(self, source: np.ndarray, target: np.ndarray, step_size: float) -> np.ndarray:
        ...

    def intermediate_state_range(
        self, source: np.ndarray, target: np.ndarray, min_step_size: float, max_step_size: float
    ) -> np.ndarray:
        ...


def steer(source: np.ndarray, target: np.ndarray, step_size: float) -> np.ndarray:
    """Move exactly step_size from source along the line toward target.

    The result may pass the target when it is closer than step_size.
    """
    if step_size <= 0.0:
        raise ValueError(f"step_size must be > 0, got {step_size}")
    source = np.asarray(source, dtype=np.float64)
    delta = np.asarray(target, dtype=np.float64) - source
    norm = float(np.linalg.norm(delta))
    if norm == 0.0:
        raise DegenerateStepError("Cannot steer toward a state identical to the source")
    return as_state(source + delta / norm * step_size)


@dataclass(frozen=True)
class PlaneStateSpace:
    """
    Bounded rectangle [0, width] x [0, height] with circular obstacles.
    Obstacles share the robot's radius, so a state is blocked when it is
    closer than 2 * obstacle_radius to any obstacle center.
    collision_step: when set, transitions are also checked at points spaced
    no more than this along the segment. When None only the endpoints are
    checked.
    """

    width: float
    height: float
    obstacles: Tuple[Tuple[float, float], ...] = field(default_factory=tuple)
    obstacle_radius: float = 0.0
    collision_step: Optional[float] = None
    dimensions: int = field(default=2, init=False)

    def __post_init__(self):
        if not (self.width > 0.0 and self.height > 0.0):
            raise ValueError(f"Workspace bounds must be positive, got {self.width}x{self.height}")
        if self.obstacle_radius < 0.0:
            raise ValueError("obstacle_radius must be >= 0")
        if self.collision_step is not None and self.collision_step <= 0.0:
            raise ValueError("collision_step must be > 0 when set")
        obstacles = tuple((float(x), float(y)) for x, y in self.obstacles)
        object.__setattr__(self, "obstacles", obstacles)
        centers = np.array(obstacles, dtype=np.float64).reshape(-1, 2)
        object.__setattr__(self, "_centers", centers)

    @property
    def exclusion_distance(self) -> float:
        return 2.0 * self.obstacle_radius

    def with_obstacles(self, obstacles: Iterable[Sequence[float]]) -> "PlaneStateSpace":
        return PlaneStateSpace(
            self.width,
            self.height,
            obstacles=tuple(tuple(o) for o in obstacles),
            obstacle_radius=self.obstacle_radius,
            collision_step=self.collision_step,
        )

    def random_state(self, rng: np.random.Generator) -> np.ndarray:
        x = rng.uniform(0.0, self.width)
        y = rng.uniform(0.0, self.height)
        return as_state((x, y))

    def in_bounds(self, state: np.ndarray) -> bool:
        x, y = float(state[0]), float(state[1])
        return 0.0 <= x <= self.width and 0.0 <= y <= self.height

    def clearance(self, state: np.ndarray) -> float:
        """Distance from state to the nearest obstacle's exclusion boundary."""
        if len(self._centers) == 0:
            return math.inf
        dists = np.linalg.norm(self._centers - np.asarray(state, dtype=np.float64), axis=1)
        return float(dists.min()) - self.exclusion_distance

    def state_valid(self, state: np.ndarray) -> bool:
        if len(state) != self.dimensions:
            return False
        if not self.in_bounds(state):
            return False
        return self.clearance(state) >= 0.0

    def transition_valid(self, source: np.ndarray, target: np.ndarray) -> bool:
        if not (self.state_valid(source) and self.state_valid(target)):
            return False
        if self.collision_step is None:
            return True
        source = np.asarray(source, dtype=np.float64)
        delta = np.asarray(target, dtype=np.float64) - source
        steps = max(1, int(math.ceil(float(np.linalg.norm(delta)) / self.collision_step)))
        for i in range(1, steps):
            if not self.state_valid(source + delta * (i / steps)):
                return False
        return True

    def intermediate_state(self, source: np.ndarray, target: np.ndarray, step_size: float) -> np.ndarray:
        return steer(source, target, step_size)

    def intermediate_state_range(
        self, source: np.ndarray, target: np.ndarray, min_step_size: float, max_step_size: float
    ) -> np.ndarray:
        # Step length is not adapted; the minimum is always used.
        if min_step_size > max_step_size:
            raise ValueError(f"min_step_size {min_step_size} exceeds max_step_size {max_step_size}")
        return self.intermediate_state(source, target, min_step_size)
