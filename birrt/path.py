from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .common import path_length, segment_point_distance, states_equal
from .tree import Tree


def extract_path(start_tree: Tree, start_index: int, goal_tree: Tree, goal_index: int) -> Tuple[np.ndarray, ...]:
    """Join two trees at a connection into one start -> goal sequence.

    start_index and goal_index are the connecting nodes in the start and goal
    tree. A duplicated connection state is kept once.
    """
    head = start_tree.path_to_root(start_index)
    head.reverse()
    tail = goal_tree.path_to_root(goal_index)
    if head and tail and states_equal(head[-1], tail[0]):
        tail = tail[1:]
    return tuple(head + tail)


def path_is_valid(path: Sequence[np.ndarray], state_space) -> bool:
    """Every state and every consecutive transition passes the state space checks."""
    if not path:
        return False
    if not all(state_space.state_valid(s) for s in path):
        return False
    return all(state_space.transition_valid(path[i - 1], path[i]) for i in range(1, len(path)))


def min_clearance(path: Sequence[np.ndarray], obstacles: Iterable[Sequence[float]]) -> float:
    """Smallest distance between any path segment and any obstacle center."""
    obstacles = list(obstacles)
    if not obstacles or not path:
        return float("inf")
    if len(path) == 1:
        return min(float(np.linalg.norm(np.asarray(path[0]) - np.asarray(o))) for o in obstacles)
    best = float("inf")
    for i in range(1, len(path)):
        for o in obstacles:
            best = min(best, segment_point_distance(path[i - 1], path[i], o))
    return best


def segment_lengths(path: Sequence[np.ndarray]) -> List[float]:
    return [float(np.linalg.norm(path[i] - path[i - 1])) for i in range(1, len(path))]


__all__ = ["extract_path", "path_is_valid", "min_clearance", "segment_lengths", "path_length"]
