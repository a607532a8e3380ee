import math

import numpy as np

from birrt import PlaneStateSpace, Tree, extract_path, min_clearance, path_is_valid
from birrt.common import as_state, path_length, segment_point_distance
from birrt.path import segment_lengths


def make_chain(points):
    tree = Tree()
    tree.add_node(points[0])
    for i, p in enumerate(points[1:]):
        tree.add_node(p, parent=i)
    return tree


def test_extract_path_joins_start_and_goal_trees():
    start_tree = make_chain([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
    goal_tree = make_chain([(5.0, 0.0), (4.0, 0.0), (3.0, 0.0)])
    path = extract_path(start_tree, 2, goal_tree, 2)
    assert [tuple(p) for p in path] == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0), (4.0, 0.0), (5.0, 0.0)]
    assert math.isclose(path_length(path), 5.0)
    assert segment_lengths(path) == [1.0] * 5


def test_extract_path_drops_duplicate_connection_state():
    start_tree = make_chain([(0.0, 0.0), (1.0, 1.0)])
    goal_tree = make_chain([(3.0, 3.0), (1.0, 1.0)])
    path = extract_path(start_tree, 1, goal_tree, 1)
    assert [tuple(p) for p in path] == [(0.0, 0.0), (1.0, 1.0), (3.0, 3.0)]


def test_extract_path_from_branching_tree_follows_parents():
    start_tree = Tree()
    start_tree.add_node((0.0, 0.0))
    start_tree.add_node((0.0, 1.0), parent=0)
    start_tree.add_node((1.0, 0.0), parent=0)
    start_tree.add_node((2.0, 0.0), parent=2)
    goal_tree = make_chain([(3.0, 0.0)])
    path = extract_path(start_tree, 3, goal_tree, 0)
    assert [tuple(p) for p in path] == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)]


def test_path_is_valid_checks_states_and_transitions():
    space = PlaneStateSpace(10.0, 10.0, obstacles=[(5.0, 5.0)], obstacle_radius=1.0)
    good = [as_state(p) for p in [(1.0, 1.0), (1.0, 9.0), (9.0, 9.0)]]
    assert path_is_valid(good, space)
    bad = good + [as_state((5.0, 5.5))]
    assert not path_is_valid(bad, space)
    assert not path_is_valid([], space)


def test_min_clearance_uses_segment_distance():
    path = [as_state((0.0, 0.0)), as_state((10.0, 0.0))]
    assert math.isclose(min_clearance(path, [(5.0, 3.0), (20.0, 0.0)]), 3.0)
    assert min_clearance(path, []) == float("inf")
    assert math.isclose(min_clearance(path[:1], [(3.0, 4.0)]), 5.0)


def test_segment_point_distance_clamps_to_endpoints():
    assert math.isclose(segment_point_distance((0, 0), (1, 0), (2, 0)), 1.0)
    assert math.isclose(segment_point_distance((0, 0), (0, 0), (3, 4)), 5.0)
    assert math.isclose(segment_point_distance((0, 0), (4, 0), (2, -2)), 2.0)
