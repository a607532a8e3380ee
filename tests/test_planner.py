import math

import numpy as np
import pytest

from birrt import (
    BiRRTPlanner,
    ConfigurationError,
    PlaneStateSpace,
    PlannerConfig,
    PlannerStateError,
    PlannerStatus,
    PlanningFailure,
    min_clearance,
)
from birrt.common import as_state
from examples.field_scene import DEFAULT_SEED

START = (400.0, 300.0)
GOAL = (2000.0, 3000.0)
WIDTH, HEIGHT = 2430.0, 3630.0
ROBOT_RADIUS = 180.0
FIELD_ROBOTS = [(500.0, 1200.0), (1000.0, 900.0), (1500.0, 1200.0), (1300.0, 2000.0), (2200.0, 2100.0)]


def make_space(obstacles=(), collision_step=None):
    return PlaneStateSpace(
        WIDTH, HEIGHT, obstacles=obstacles, obstacle_radius=ROBOT_RADIUS, collision_step=collision_step
    )


def make_config(**overrides):
    kwargs = dict(step_size=150.0, goal_bias=0.1, goal_max_dist=50.0, max_iterations=500)
    kwargs.update(overrides)
    return PlannerConfig(**kwargs)


def check_success_contract(result, space, config):
    assert result.status is PlannerStatus.SUCCEEDED
    path = result.require_path()
    assert np.array_equal(path[0], START)
    assert np.linalg.norm(path[-1] - np.asarray(GOAL)) <= config.goal_max_dist
    for i in range(1, len(path)):
        assert space.transition_valid(path[i - 1], path[i])


def sagitta(radius, chord):
    return radius - math.sqrt(radius * radius - (chord / 2.0) ** 2)


def test_empty_field_plan_succeeds():
    space = make_space()
    config = make_config()
    result = BiRRTPlanner(space, config, seed=DEFAULT_SEED).plan(START, GOAL)
    assert result.status is PlannerStatus.SUCCEEDED, result.stats
    check_success_contract(result, space, config)
    assert result.iterations <= config.max_iterations


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_empty_field_plan_succeeds_with_generous_budget(seed):
    space = make_space()
    config = make_config(max_iterations=5000)
    result = BiRRTPlanner(space, config, seed=seed).plan(START, GOAL)
    check_success_contract(result, space, config)
    assert result.stats["success"]
    assert result.stats["nodes"] == len(result.start_tree) + len(result.goal_tree)


def test_routes_around_blocking_robots():
    space = make_space(FIELD_ROBOTS)
    config = make_config()
    # at least one robot sits on the straight start-goal line
    assert min_clearance([as_state(START), as_state(GOAL)], FIELD_ROBOTS) < space.exclusion_distance

    result = BiRRTPlanner(space, config, seed=DEFAULT_SEED).plan(START, GOAL)
    assert result.status is PlannerStatus.SUCCEEDED, result.stats
    check_success_contract(result, space, config)
    for state in result.path:
        assert space.clearance(state) >= 0.0
    # endpoint-only checks let an edge cut the exclusion circle by at most its sagitta
    slack = sagitta(space.exclusion_distance, config.step_size) + 1e-6
    assert min_clearance(result.path, FIELD_ROBOTS) >= space.exclusion_distance - slack


def test_dense_check_keeps_segments_out_of_exclusion_zone():
    space = make_space(FIELD_ROBOTS, collision_step=10.0)
    config = make_config(max_iterations=5000)
    result = BiRRTPlanner(space, config, seed=DEFAULT_SEED).plan(START, GOAL)
    assert result.status is PlannerStatus.SUCCEEDED, result.stats
    check_success_contract(result, space, config)
    slack = sagitta(space.exclusion_distance, 10.0) + 1e-6
    assert min_clearance(result.path, FIELD_ROBOTS) >= space.exclusion_distance - slack


def test_start_inside_obstacle_fails_before_planning():
    space = make_space([(START[0] + 100.0, START[1])])
    planner = BiRRTPlanner(space, make_config(), seed=1)
    planner.set_start_state(START)
    planner.set_goal_state(GOAL)
    with pytest.raises(ConfigurationError):
        planner.run()
    assert planner.result is None
    assert planner.status is PlannerStatus.READY


def test_goal_out_of_bounds_is_configuration_error():
    planner = BiRRTPlanner(make_space(), make_config(), seed=1)
    with pytest.raises(ConfigurationError):
        planner.plan(START, (WIDTH + 1.0, 10.0))


def test_single_iteration_fails_with_bounded_growth():
    planner = BiRRTPlanner(make_space(), make_config(max_iterations=1), seed=3)
    result = planner.plan(START, GOAL)
    assert result.status is PlannerStatus.FAILED
    assert planner.status is PlannerStatus.FAILED
    assert result.path is None
    assert result.iterations == 1
    assert len(result.start_tree) + len(result.goal_tree) - 2 <= 1
    with pytest.raises(PlanningFailure):
        result.require_path()


def test_failed_run_adds_at_most_one_node_per_iteration():
    config = make_config(goal_max_dist=0.0, max_iterations=120)
    result = BiRRTPlanner(make_space(FIELD_ROBOTS), config, seed=9).plan(START, GOAL)
    assert not result.success
    added = len(result.start_tree) + len(result.goal_tree) - 2
    assert added + result.stats["rejected"] == config.max_iterations
    assert result.stats["reason"] == "exhausted"
    # trees stay inspectable after failure
    assert len(result.edges()) == added
    assert len(result.nodes()) == added + 2


def test_same_seed_reproduces_the_run():
    space = make_space(FIELD_ROBOTS)
    config = make_config(max_iterations=800)
    a = BiRRTPlanner(space, config, seed=1484997019).plan(START, GOAL)
    b = BiRRTPlanner(space, config, seed=1484997019).plan(START, GOAL)
    assert a.status is b.status
    assert a.iterations == b.iterations
    assert np.array_equal(a.start_tree.states(), b.start_tree.states())
    assert np.array_equal(a.goal_tree.states(), b.goal_tree.states())
    assert [n.parent for n in a.start_tree] == [n.parent for n in b.start_tree]
    if a.success:
        assert len(a.path) == len(b.path)
        assert all(np.array_equal(p, q) for p, q in zip(a.path, b.path))


def test_different_seeds_grow_different_trees():
    space = make_space()
    config = make_config(max_iterations=50, goal_max_dist=0.0)
    a = BiRRTPlanner(space, config, seed=1).plan(START, GOAL)
    b = BiRRTPlanner(space, config, seed=2).plan(START, GOAL)
    assert not np.array_equal(a.start_tree.states(), b.start_tree.states())


def test_injected_generator_is_used():
    space = make_space()
    config = make_config(max_iterations=40, goal_max_dist=0.0)
    a = BiRRTPlanner(space, config, rng=np.random.default_rng(21)).plan(START, GOAL)
    b = BiRRTPlanner(space, config, seed=21).plan(START, GOAL)
    assert np.array_equal(a.start_tree.states(), b.start_tree.states())


class FixedSampleSpace:
    """Wraps a plane space but always samples the same state."""

    def __init__(self, inner, sample):
        self.inner = inner
        self.sample = as_state(sample)
        self.dimensions = inner.dimensions

    def random_state(self, rng):
        return self.sample

    def state_valid(self, state):
        return self.inner.state_valid(state)

    def transition_valid(self, source, target):
        return self.inner.transition_valid(source, target)

    def intermediate_state(self, source, target, step_size):
        return self.inner.intermediate_state(source, target, step_size)

    def intermediate_state_range(self, source, target, min_step_size, max_step_size):
        return self.inner.intermediate_state_range(source, target, min_step_size, max_step_size)


def test_degenerate_steps_are_rejected_not_fatal():
    # Every start-tree step targets the start itself; the goal tree walks straight to it.
    space = FixedSampleSpace(make_space(), START)
    config = make_config(goal_bias=0.0, max_iterations=100)
    result = BiRRTPlanner(space, config, seed=0).plan(START, GOAL)
    assert result.success
    assert len(result.start_tree) == 1
    assert result.stats["rejected"] == len(result.goal_tree) - 1
    assert result.iterations == 2 * (len(result.goal_tree) - 1)
    assert all(np.all(np.isfinite(s)) for s in result.path)
    assert np.array_equal(result.path[0], START)
    assert np.array_equal(result.path[-1], GOAL)


def test_start_within_goal_distance_connects_immediately():
    config = make_config(goal_max_dist=50.0)
    near_goal = (START[0] + 30.0, START[1])
    result = BiRRTPlanner(make_space(), config, seed=0).plan(START, near_goal)
    assert result.success
    assert result.iterations == 0
    assert len(result.path) == 2


def test_identical_start_and_goal_yield_single_state_path():
    result = BiRRTPlanner(make_space(), make_config(), seed=0).plan(START, START)
    assert result.success
    assert len(result.path) == 1


def test_status_lifecycle():
    planner = BiRRTPlanner(make_space(), make_config(max_iterations=3, goal_max_dist=0.0), seed=0)
    assert planner.status is PlannerStatus.UNCONFIGURED
    planner.start_state = START
    assert planner.status is PlannerStatus.UNCONFIGURED
    with pytest.raises(ConfigurationError):
        planner.run()
    planner.goal_state = GOAL
    assert planner.status is PlannerStatus.READY
    planner.run()
    assert planner.status is PlannerStatus.FAILED
    with pytest.raises(PlannerStateError):
        planner.run()
    with pytest.raises(PlannerStateError):
        planner.set_goal_state(START)


@pytest.mark.parametrize(
    "overrides",
    [
        dict(step_size=0.0),
        dict(step_size=-1.0),
        dict(goal_bias=1.5),
        dict(goal_bias=-0.1),
        dict(goal_max_dist=-1.0),
        dict(max_iterations=0),
        dict(max_iterations=2.5),
        dict(max_iterations=float("inf")),
        dict(max_iterations=float("nan")),
        dict(max_step_size=10.0),
    ],
)
def test_invalid_config_is_rejected(overrides):
    planner = BiRRTPlanner(make_space(), make_config(**overrides), seed=0)
    with pytest.raises(ConfigurationError):
        planner.plan(START, GOAL)
    assert planner.result is None


def test_max_step_size_is_accepted_but_step_stays_minimum():
    config = make_config(max_step_size=400.0, max_iterations=60, goal_max_dist=0.0)
    result = BiRRTPlanner(make_space(), config, seed=4).plan(START, GOAL)
    for child, parent in result.edges():
        assert math.isclose(float(np.linalg.norm(child - parent)), config.step_size)


def test_should_stop_cancels_run():
    calls = []

    def stop():
        calls.append(1)
        return len(calls) > 5

    result = BiRRTPlanner(make_space(), make_config(goal_max_dist=0.0), seed=0).plan(
        START, GOAL, should_stop=stop
    )
    assert not result.success
    assert result.iterations == 5
    assert result.stats["reason"] == "cancelled"


def test_zero_timeout_stops_without_iterating_far():
    result = BiRRTPlanner(make_space(), make_config(max_iterations=10**6, goal_max_dist=0.0), seed=0).plan(
        START, GOAL, timeout=0.0
    )
    assert not result.success
    assert result.stats["reason"] in ("timeout", "exhausted")
    assert result.iterations < 10**6


def test_rejected_iterations_do_not_format_states(monkeypatch):
    import birrt.planner

    def fail(state):
        raise AssertionError("states formatted while debug logging is off")

    monkeypatch.setattr(birrt.planner, "as_tuple", fail)
    # the start tree walks to the lower edge, then every step toward the sample leaves the field
    space = FixedSampleSpace(make_space(), (START[0], -1000.0))
    config = make_config(goal_bias=0.0, max_iterations=40, goal_max_dist=0.0)
    result = BiRRTPlanner(space, config, seed=5).plan(START, GOAL)
    assert len(result.start_tree) == 3
    assert result.stats["rejected"] >= 18
