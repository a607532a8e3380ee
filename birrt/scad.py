"""OpenSCAD export of a planning result.

Writes plain ``name = value;`` assignments so a scene script can ``include``
the file and draw the start, goal, obstacles, solution and both trees.
"""

from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, TextIO, Tuple, TypeVar, Union

import numpy as np

from .errors import PlanningFailure
from .tree import Tree

T = TypeVar("T")
Line = Tuple[Sequence[float], Sequence[float]]


def _fmt(value: float) -> str:
    return f"{float(value):g}"


def vec2scad(state: Sequence[float]) -> str:
    return "[" + ", ".join(_fmt(v) for v in state) + "]"


def line2scad(line: Line) -> str:
    return f"[{vec2scad(line[0])}, {vec2scad(line[1])}]"


def tree_lines(tree: Tree) -> List[Line]:
    return list(tree.edges())


def scad_constant(name: str, value) -> str:
    if isinstance(value, (list, tuple, np.ndarray)):
        return f"{name} = {vec2scad(value)};\n"
    if isinstance(value, int):
        return f"{name} = {value};\n"
    return f"{name} = {_fmt(value)};\n"


def scad_array(name: str, items: Iterable[T], printer: Callable[[T], str]) -> str:
    lines = [f"{name} = [\n"]
    for item in items:
        lines.append(f"  {printer(item)},\n")
    lines.append("];\n")
    return "".join(lines)


def render_scad(
    result,
    start: Sequence[float],
    goal: Sequence[float],
    obstacles: Iterable[Sequence[float]] = (),
    constants: Optional[Mapping[str, float]] = None,
) -> str:
    path = result.require_path()
    parts: List[str] = []
    for name, value in (constants or {}).items():
        parts.append(scad_constant(name, value))
    parts.append(scad_constant("StartPos", start))
    parts.append(scad_constant("GoalPos", goal))
    parts.append(scad_array("ObstacleRobots", list(obstacles), vec2scad))
    parts.append(scad_array("RRT_Solution", path, vec2scad))
    lines = tree_lines(result.start_tree) + tree_lines(result.goal_tree)
    parts.append(scad_array("RRT_Lines", lines, line2scad))
    parts.append(scad_array("RRT_Nodes", result.nodes(), vec2scad))
    return "".join(parts)


def write_scad(
    out: Union[str, Path, TextIO],
    result,
    start: Sequence[float],
    goal: Sequence[float],
    obstacles: Iterable[Sequence[float]] = (),
    constants: Optional[Mapping[str, float]] = None,
) -> None:
    """Write the scene to a path or an open text stream. Raises PlanningFailure for a failed result."""
    if not result.success:
        raise PlanningFailure("Cannot export a failed planning result", result=result)
    text = render_scad(result, start, goal, obstacles, constants)
    if hasattr(out, "write"):
        out.write(text)
        return
    Path(out).write_text(text, encoding="utf-8")
