# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Interpolation, trim path helpers and scripted mutations of paths."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Final, Protocol, TypeVar, cast

from .command import SVG_CHARS, Command, SvgChar
from .geometry import Matrix, Point
from .math import lerp
from .path import Path


def interpolate(start: Path, end: Path, fraction: float) -> Path:
    """
    Blend the points of two morphable paths.

    :param fraction: ``0`` yields ``start``, ``1`` yields ``end``.
    :raises ValueError: If the paths are not morphable.
    """
    if not start.is_morphable_with(end):
        raise ValueError("Attempt to interpolate two unmorphable paths")
    commands: list[Command] = []
    for start_cmd, end_cmd in zip(start.commands, end.commands):
        points: list[Point | None] = []
        for p1, p2 in zip(start_cmd.points, end_cmd.points):
            # The first move of a path has no start point.
            if p1 is None or p2 is None:
                points.append(None)
            else:
                points.append(
                    Point(lerp(p1.x, p2.x, fraction), lerp(p1.y, p2.y, fraction))
                )
        commands.append(Command(start_cmd.svg_char, tuple(points)))
    return Path(commands)


class PathOp(Protocol):
    @property
    def sub_idx(self) -> int: ...

    @property
    def cmd_idx(self) -> int: ...


PathOpT = TypeVar("PathOpT", bound=PathOp)


def sort_path_ops(ops: Iterable[PathOpT]) -> list[PathOpT]:
    """
    Sort ``ops`` by descending subpath and command index.

    Applying splits in this order keeps the indices of the remaining ones valid.
    """
    return sorted(ops, key=lambda op: (op.sub_idx, op.cmd_idx), reverse=True)


def to_stroke_dash_array(
    trim_path_start: float,
    trim_path_end: float,
    trim_path_offset: float,
    path_length: float,
) -> tuple[float, float]:
    """
    The SVG ``stroke-dasharray`` showing the trimmed part of a path.

    If ``trim_path_start`` exceeds ``trim_path_end``, the visible part wraps
    around the end of the path.
    """
    shown_fraction = trim_path_end - trim_path_start
    if trim_path_start > trim_path_end:
        shown_fraction += 1
    return (
        shown_fraction * path_length,
        (1 - shown_fraction + 0.001) * path_length,
    )


def to_stroke_dash_offset(
    trim_path_start: float,
    trim_path_end: float,
    trim_path_offset: float,
    path_length: float,
) -> float:
    """The SVG ``stroke-dashoffset`` matching :func:`to_stroke_dash_array`."""
    return path_length * (1 - (trim_path_start + trim_path_offset) % 1)


# ------------------------------------------------------------------------------
# Op scripts
# ------------------------------------------------------------------------------

_TRANSFORM_OPS: Final = frozenset({"scale", "rotate", "translate"})


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def from_path_op_string(path_string: str, ops: str) -> Path:
    """
    Replay the whitespace-separated op script ``ops`` on a new path.

    =========================  ===============================================
    Op                         Operation
    =========================  ===============================================
    ``RV s``                   reverse subpath ``s``
    ``SB s`` / ``SF s``        shift subpath ``s`` back / forward
    ``S s c t...``             split command ``(s, c)`` at the times ``t``
    ``SIH s c``                split command ``(s, c)`` in half
    ``US s c``                 unsplit command ``(s, c)``
    ``CV s c x``               convert command ``(s, c)`` to ``x``
    ``UCV s``                  unconvert subpath ``s``
    ``RT``                     revert
    ``M from to``              move a subpath
    ``AC x y n``               add a collapsing subpath of ``n`` commands
    ``DC``                     delete the collapsing subpaths
    ``SSSP s c``               split stroked subpath ``s`` after ``c``
    ``SFSP s c1 c2``           split filled subpath ``s`` from ``c1`` to ``c2``
    ``DSSP s``                 delete stroked subpath ``s``
    ``DFSP s``                 delete filled subpath ``s``
    ``DFSPS s c``              delete the filled split segment ``(s, c)``
    ``T op args...``           transform by any number of ``scale sx sy``,
                               ``rotate deg`` and ``translate tx ty``
    =========================  ===============================================

    :raises ValueError: If the script contains an unknown op.
    """
    tokens = ops.split()
    mutator = Path(path_string).mutate()
    i = 0

    def take(n: int) -> list[str]:
        nonlocal i
        args = tokens[i + 1 : i + 1 + n]
        if len(args) != n:
            raise ValueError(f"Path op {tokens[i]} expects {n} arguments")
        i += n
        return args

    while i < len(tokens):
        match tokens[i]:
            case "RV":
                (s,) = take(1)
                mutator.reverse_sub_path(int(s))
            case "SB":
                (s,) = take(1)
                mutator.shift_sub_path_back(int(s))
            case "SF":
                (s,) = take(1)
                mutator.shift_sub_path_forward(int(s))
            case "S":
                s, c, t = take(3)
                ts = [float(t)]
                while i + 1 < len(tokens) and _is_number(tokens[i + 1]):
                    ts.append(float(tokens[i + 1]))
                    i += 1
                mutator.split_command(int(s), int(c), *ts)
            case "SIH":
                s, c = take(2)
                mutator.split_command_in_half(int(s), int(c))
            case "US":
                s, c = take(2)
                mutator.unsplit_command(int(s), int(c))
            case "CV":
                s, c, char = take(3)
                if char not in SVG_CHARS:
                    raise ValueError(f"Invalid svg char: {char}")
                mutator.convert_command(int(s), int(c), cast(SvgChar, char))
            case "UCV":
                (s,) = take(1)
                mutator.unconvert_sub_path(int(s))
            case "RT":
                mutator.revert()
            case "M":
                src, dst = take(2)
                mutator.move_sub_path(int(src), int(dst))
            case "AC":
                x, y, n = take(3)
                mutator.add_collapsing_sub_path(Point(float(x), float(y)), int(n))
            case "DC":
                mutator.delete_collapsing_sub_paths()
            case "SSSP":
                s, c = take(2)
                mutator.split_stroked_sub_path(int(s), int(c))
            case "SFSP":
                s, c1, c2 = take(3)
                mutator.split_filled_sub_path(int(s), int(c1), int(c2))
            case "DFSP":
                (s,) = take(1)
                mutator.delete_filled_sub_path(int(s))
            case "DFSPS":
                s, c = take(2)
                mutator.delete_filled_sub_path_segment(int(s), int(c))
            case "DSSP":
                (s,) = take(1)
                mutator.delete_stroked_sub_path(int(s))
            case "T":
                while i + 1 < len(tokens) and tokens[i + 1].lower() in _TRANSFORM_OPS:
                    i += 1
                    match tokens[i].lower():
                        case "scale":
                            sx, sy = take(2)
                            matrix = Matrix.scaling(float(sx), float(sy))
                        case "rotate":
                            (deg,) = take(1)
                            matrix = Matrix.rotation(float(deg))
                        case _:
                            tx, ty = take(2)
                            matrix = Matrix.translation(float(tx), float(ty))
                    mutator.transform(matrix)
            case op:
                raise ValueError(f"Invalid path op: {op}")
        i += 1
    return mutator.build()
