"""
Bidirectional RRT path planning in bounded workspaces with circular obstacles.
Exports:
- BiRRTPlanner, PlannerConfig, PlanResult, PlannerStatus
- StateSpace protocol and PlaneStateSpace
- Tree arena with nearest-neighbor lookup
"""

from .errors import BiRRTError, ConfigurationError, DegenerateStepError, PlannerStateError, PlanningFailure
from .path import extract_path, min_clearance, path_is_valid
from .planner import BiRRTPlanner, PlannerConfig, PlannerStatus, PlanResult
from .state_space import PlaneStateSpace, StateSpace, steer
from .tree import NO_PARENT, Tree, TreeNode

__all__ = [
    "BiRRTPlanner",
    "PlannerConfig",
    "PlannerStatus",
    "PlanResult",
    "PlaneStateSpace",
    "StateSpace",
    "steer",
    "Tree",
    "TreeNode",
    "NO_PARENT",
    "extract_path",
    "min_clearance",
    "path_is_valid",
    "BiRRTError",
    "ConfigurationError",
    "DegenerateStepError",
    "PlannerStateError",
    "PlanningFailure",
]
