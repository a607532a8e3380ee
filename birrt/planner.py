"""Bidirectional RRT planner.

Two trees are grown alternately, one rooted at the start and one at the goal.
After every accepted extension the newest node is compared against the other
tree; once the gap is within ``goal_max_dist`` the trees are joined into a
path. Running out of iterations is reported through ``PlanResult`` rather
than raised.
"""

import enum
import math
import numbers
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from .common import as_state, as_tuple, euclidean, is_finite
from .errors import ConfigurationError, DegenerateStepError, PlannerStateError, PlanningFailure
from .logging_config import setup_logger
from .path import extract_path
from .state_space import StateSpace
from .tree import Tree

logger = setup_logger(__name__)


class PlannerStatus(enum.Enum):
    UNCONFIGURED = "unconfigured"
    READY = "ready"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class PlannerConfig:
    step_size: float = 1.0
    goal_bias: float = 0.1
    goal_max_dist: float = 0.5
    max_iterations: int = 500
    # Accepted for the (min, max) steering variant; growth always uses step_size.
    max_step_size: Optional[float] = None

    def validate(self) -> None:
        if not (math.isfinite(self.step_size) and self.step_size > 0.0):
            raise ConfigurationError(f"step_size must be > 0, got {self.step_size}")
        if not 0.0 <= self.goal_bias <= 1.0:
            raise ConfigurationError(f"goal_bias must be in [0, 1], got {self.goal_bias}")
        if not self.goal_max_dist >= 0.0:
            raise ConfigurationError(f"goal_max_dist must be >= 0, got {self.goal_max_dist}")
        if not isinstance(self.max_iterations, numbers.Integral) or self.max_iterations <= 0:
            raise ConfigurationError(f"max_iterations must be a positive integer, got {self.max_iterations}")
        if self.max_step_size is not None and self.max_step_size < self.step_size:
            raise ConfigurationError(
                f"max_step_size {self.max_step_size} is smaller than step_size {self.step_size}"
            )


@dataclass
class PlanResult:
    status: PlannerStatus
    start_tree: Tree
    goal_tree: Tree
    path: Optional[Tuple[np.ndarray, ...]] = None
    connection: Optional[Tuple[int, int]] = None
    iterations: int = 0
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status is PlannerStatus.SUCCEEDED

    def require_path(self) -> Tuple[np.ndarray, ...]:
        if not self.success or self.path is None:
            raise PlanningFailure(
                f"No path found after {self.iterations} iterations ({self.stats.get('reason', 'exhausted')})",
                result=self,
            )
        return self.path

    def path_tuples(self) -> List[Tuple[float, ...]]:
        return [as_tuple(s) for s in self.path] if self.path else []

    def edges(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        return self.start_tree.edges() + self.goal_tree.edges()

    def nodes(self) -> List[np.ndarray]:
        return [n.state for n in self.start_tree] + [n.state for n in self.goal_tree]


class BiRRTPlanner:
    def __init__(
        self,
        state_space: StateSpace,
        config: Optional[PlannerConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.state_space = state_space
        self.config = config if config is not None else PlannerConfig()
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self._start: Optional[np.ndarray] = None
        self._goal: Optional[np.ndarray] = None
        self._status = PlannerStatus.UNCONFIGURED
        self.result: Optional[PlanResult] = None

    @property
    def status(self) -> PlannerStatus:
        return self._status

    @property
    def start_state(self) -> Optional[np.ndarray]:
        return self._start

    @start_state.setter
    def start_state(self, state) -> None:
        self.set_start_state(state)

    @property
    def goal_state(self) -> Optional[np.ndarray]:
        return self._goal

    @goal_state.setter
    def goal_state(self, state) -> None:
        self.set_goal_state(state)

    def set_start_state(self, state) -> None:
        self._ensure_configurable()
        self._start = as_state(state)
        self._update_status()

    def set_goal_state(self, state) -> None:
        self._ensure_configurable()
        self._goal = as_state(state)
        self._update_status()

    def _ensure_configurable(self) -> None:
        if self._status not in (PlannerStatus.UNCONFIGURED, PlannerStatus.READY):
            raise PlannerStateError(f"Planner is {self._status.value}; create a new planner to plan again")

    def _update_status(self) -> None:
        ready = self._start is not None and self._goal is not None
        self._status = PlannerStatus.READY if ready else PlannerStatus.UNCONFIGURED

    def _check_configuration(self) -> None:
        self.config.validate()
        if self._start is None or self._goal is None:
            missing = [name for name, s in (("start", self._start), ("goal", self._goal)) if s is None]
            raise ConfigurationError(f"Missing {' and '.join(missing)} state")
        dims = getattr(self.state_space, "dimensions", len(self._start))
        for name, s in (("start", self._start), ("goal", self._goal)):
            if len(s) != dims or not is_finite(s):
                raise ConfigurationError(f"{name} state {as_tuple(s)} is not a finite {dims}-d state")
            if not self.state_space.state_valid(s):
                raise ConfigurationError(f"{name} state {as_tuple(s)} is not valid in the state space")

    def plan(self, start, goal, **run_kwargs) -> PlanResult:
        self.set_start_state(start)
        self.set_goal_state(goal)
        return self.run(**run_kwargs)

    def run(
        self,
        timeout: Optional[float] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> PlanResult:
        """Grow both trees until they connect or the budget runs out.

        timeout: wall-clock seconds, checked once per iteration.
        should_stop: called once per iteration; returning True ends the run.
        """
        if self._status not in (PlannerStatus.UNCONFIGURED, PlannerStatus.READY):
            raise PlannerStateError(f"Planner already {self._status.value}; run() may only be called once")
        self._check_configuration()

        cfg = self.config
        start_time = time.time()
        self._status = PlannerStatus.RUNNING

        start_tree = Tree(len(self._start))
        start_tree.add_node(self._start)
        goal_tree = Tree(len(self._goal))
        goal_tree.add_node(self._goal)
        trees = (start_tree, goal_tree)

        min_gap = euclidean(self._start, self._goal)
        connection: Optional[Tuple[int, int]] = None
        reason = "exhausted"
        iterations = 0
        rejected = 0

        logger.info(
            "planning started",
            start=self._start,
            goal=self._goal,
            step_size=cfg.step_size,
            max_iterations=cfg.max_iterations,
            seed=self.seed,
        )

        if min_gap <= cfg.goal_max_dist and self.state_space.transition_valid(self._start, self._goal):
            connection = (0, 0)

        active = 0
        while connection is None and iterations < cfg.max_iterations:
            if timeout is not None and (time.time() - start_time) > timeout:
                reason = "timeout"
                break
            if should_stop is not None and should_stop():
                reason = "cancelled"
                break
            iterations += 1
            tree, other = trees[active], trees[1 - active]

            new_idx = self._extend(tree, other)
            if new_idx is None:
                rejected += 1
            else:
                new_state = tree.state(new_idx)
                other_idx, gap = other.nearest_with_distance(new_state)
                min_gap = min(min_gap, gap)
                if gap <= cfg.goal_max_dist and self.state_space.transition_valid(
                    new_state, other.state(other_idx)
                ):
                    connection = (new_idx, other_idx) if active == 0 else (other_idx, new_idx)
                    break
            active = 1 - active

        elapsed = time.time() - start_time
        path = None
        if connection is not None:
            path = extract_path(start_tree, connection[0], goal_tree, connection[1])
            reason = "connected"
            self._status = PlannerStatus.SUCCEEDED
            logger.info(
                "trees connected",
                iterations=iterations,
                nodes=len(start_tree) + len(goal_tree),
                path_states=len(path),
                elapsed=round(elapsed, 4),
            )
        else:
            self._status = PlannerStatus.FAILED
            logger.warning(
                "no path found",
                reason=reason,
                iterations=iterations,
                nodes=len(start_tree) + len(goal_tree),
                min_gap=round(min_gap, 4),
            )

        self.result = PlanResult(
            status=self._status,
            start_tree=start_tree,
            goal_tree=goal_tree,
            path=path,
            connection=connection,
            iterations=iterations,
            stats={
                "nodes": len(start_tree) + len(goal_tree),
                "iterations": iterations,
                "rejected": rejected,
                "time": elapsed,
                "success": connection is not None,
                "min_gap": min_gap,
                "reason": reason,
            },
        )
        return self.result

    def _sample(self, other: Tree) -> np.ndarray:
        if self.rng.random() < self.config.goal_bias:
            return other.state(0)
        return self.state_space.random_state(self.rng)

    def _steer(self, source: np.ndarray, target: np.ndarray) -> np.ndarray:
        cfg = self.config
        if cfg.max_step_size is None:
            return self.state_space.intermediate_state(source, target, cfg.step_size)
        return self.state_space.intermediate_state_range(source, target, cfg.step_size, cfg.max_step_size)

    def _extend(self, tree: Tree, other: Tree) -> Optional[int]:
        """Add one node to tree toward a sample; None when the step is rejected."""
        sample = self._sample(other)
        nearest_idx = tree.nearest(sample)
        nearest_state = tree.state(nearest_idx)
        try:
            new_state = self._steer(nearest_state, sample)
        except DegenerateStepError:
            logger.debug("sample coincides with nearest node", node=nearest_idx)
            return None
        if not self.state_space.transition_valid(nearest_state, new_state):
            logger.debug("transition rejected", source=nearest_state, target=new_state)
            return None
        return tree.add_node(new_state, parent=nearest_idx)
