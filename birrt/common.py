import math
from typing import Iterable, Sequence, Tuple

import numpy as np


def as_state(values: Iterable[float]) -> np.ndarray:
    """Copy values into a read-only float64 vector."""
    state = np.array(values, dtype=np.float64).reshape(-1)
    state.flags.writeable = False
    return state


def as_tuple(state: np.ndarray) -> Tuple[float, ...]:
    return tuple(float(v) for v in state)


def euclidean(p: Sequence[float], q: Sequence[float]) -> float:
    return float(np.linalg.norm(np.asarray(p, dtype=np.float64) - np.asarray(q, dtype=np.float64)))


def states_equal(p: np.ndarray, q: np.ndarray) -> bool:
    return p.shape == q.shape and bool(np.array_equal(p, q))


def path_length(path: Sequence[np.ndarray]) -> float:
    length = 0.0
    for i in range(1, len(path)):
        length += euclidean(path[i - 1], path[i])
    return length


def segment_point_distance(a: Sequence[float], b: Sequence[float], p: Sequence[float]) -> float:
    """Distance from point p to the closed segment a-b."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    p = np.asarray(p, dtype=np.float64)
    ab = b - a
    denom = float(np.dot(ab, ab))
    if denom == 0.0:
        return euclidean(a, p)
    t = min(1.0, max(0.0, float(np.dot(p - a, ab)) / denom))
    return euclidean(a + t * ab, p)


def is_finite(values: Iterable[float]) -> bool:
    return all(math.isfinite(float(v)) for v in values)
