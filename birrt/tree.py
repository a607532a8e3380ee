from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .common import as_state

NO_PARENT = -1


@dataclass(frozen=True)
class TreeNode:
    index: int
    state: np.ndarray
    parent: int

    @property
    def is_root(self) -> bool:
        return self.parent == NO_PARENT


class Tree:
    """
    Append-only search tree.
    States live in one contiguous array; each node stores its parent as an
    index into that array, and a parent always precedes its children.
    """

    def __init__(self, dimensions: Optional[int] = None, capacity: int = 64):
        self.dimensions = dimensions
        self._capacity = max(1, int(capacity))
        self._states: Optional[np.ndarray] = None
        self._parents: List[int] = []

    def __len__(self) -> int:
        return len(self._parents)

    def __iter__(self) -> Iterator[TreeNode]:
        for i in range(len(self)):
            yield self.node(i)

    @property
    def root(self) -> TreeNode:
        if not self._parents:
            raise ValueError("Tree is empty")
        return self.node(0)

    def _reserve(self, dims: int) -> None:
        if self._states is None:
            self._states = np.empty((self._capacity, dims), dtype=np.float64)
        elif len(self) == self._states.shape[0]:
            grown = np.empty((self._states.shape[0] * 2, dims), dtype=np.float64)
            grown[: len(self)] = self._states[: len(self)]
            self._states = grown

    def add_node(self, state, parent: int = NO_PARENT) -> int:
        """Append a node and return its index. Only the first node may be parentless."""
        state = as_state(state)
        if self.dimensions is None:
            self.dimensions = state.shape[0]
        elif state.shape[0] != self.dimensions:
            raise ValueError(f"Expected a {self.dimensions}-d state, got {state.shape[0]}-d")
        if not self._parents:
            if parent != NO_PARENT:
                raise ValueError("The root node cannot have a parent")
        elif not 0 <= parent < len(self):
            raise ValueError(f"Parent index {parent} does not refer to an existing node")

        self._reserve(self.dimensions)
        idx = len(self)
        self._states[idx] = state
        self._parents.append(int(parent))
        return idx

    def state(self, index: int) -> np.ndarray:
        if not 0 <= index < len(self):
            raise IndexError(f"Node index {index} out of range")
        row = self._states[index].view()
        row.flags.writeable = False
        return row

    def parent(self, index: int) -> int:
        return self._parents[index]

    def node(self, index: int) -> TreeNode:
        return TreeNode(index, self.state(index), self._parents[index])

    def states(self) -> np.ndarray:
        """Read-only (n, d) view of every state in insertion order."""
        if self._states is None:
            return np.empty((0, self.dimensions or 0), dtype=np.float64)
        view = self._states[: len(self)].view()
        view.flags.writeable = False
        return view

    def all_nodes(self) -> List[TreeNode]:
        return list(self)

    def nearest_with_distance(self, state) -> Tuple[int, float]:
        if not self._parents:
            raise ValueError("Cannot query nearest node of an empty tree")
        dists = np.linalg.norm(self.states() - np.asarray(state, dtype=np.float64), axis=1)
        # argmin returns the first minimum, so ties go to the earliest node
        idx = int(np.argmin(dists))
        return idx, float(dists[idx])

    def nearest(self, state) -> int:
        return self.nearest_with_distance(state)[0]

    def path_to_root(self, index: int) -> List[np.ndarray]:
        """States from node `index` back to the root, inclusive."""
        if not 0 <= index < len(self):
            raise IndexError(f"Node index {index} out of range")
        path: List[np.ndarray] = []
        while index != NO_PARENT:
            path.append(self.state(index))
            index = self._parents[index]
        return path

    def depth(self, index: int) -> int:
        return len(self.path_to_root(index)) - 1

    def edges(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        """(child, parent) state pairs for every non-root node."""
        return [(self.state(i), self.state(p)) for i, p in enumerate(self._parents) if p != NO_PARENT]
