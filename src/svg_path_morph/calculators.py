# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
Per-segment geometry.

A calculator wraps the geometry of a single command and answers all metric
queries about it. Calculators are immutable; :meth:`Calculator.split` and
:meth:`Calculator.convert` return new instances.
"""

from __future__ import annotations

import logging
import math
from functools import cached_property
from typing import Final, Protocol

from .bezier import Bezier
from .command import Command, CommandBuilder, SvgChar
from .geometry import (
    BBox,
    Line,
    Point,
    Projection,
    distance,
    lerp_points,
    points_equal,
    unique_points,
)
from .math import round_to

logger = logging.getLogger(__name__)

#: Decimals kept by the straight line computations.
_LINE_DIGITS: Final = 10

# Bisection parameters of :meth:`BezierCalculator.find_time_by_distance`.
_LENGTH_EPSILON: Final = 0.001
_MAX_DEPTH: Final = -100


class Calculator(Protocol):
    """Geometric queries on the segment drawn by a single command."""

    @property
    def length(self) -> float: ...

    def get_point_at_length(self, distance: float) -> Point: ...

    def project(self, point: Point) -> Projection | None: ...

    def split(self, t1: float, t2: float) -> Calculator: ...

    def convert(self, svg_char: SvgChar) -> Calculator: ...

    def find_time_by_distance(self, distance: float) -> float: ...

    def to_command(self) -> Command: ...

    def get_bounding_box(self) -> BBox: ...

    def intersects(self, line: Line) -> list[float]: ...


def new_calculator(cmd: Command) -> Calculator:
    """
    Pick the calculator matching the geometry of ``cmd``.

    Commands whose points all coincide are treated as points and curves
    with only two distinct points as straight lines.

    :raises ValueError: For an unknown command character.
    """
    points = cmd.points
    if cmd.svg_char == "M":
        return MoveCalculator(cmd.id, points[0], cmd.end)
    pts = [p for p in points if p is not None]
    unique = unique_points(pts)
    if len(unique) == 1:
        return PointCalculator(cmd.id, cmd.svg_char, pts[0])
    if cmd.svg_char in ("L", "Z") or len(unique) == 2:
        return LineCalculator(cmd.id, cmd.svg_char, pts[0], pts[-1])
    if cmd.svg_char in ("Q", "C"):
        return BezierCalculator(cmd.id, cmd.svg_char, *pts)
    raise ValueError(f"Invalid command type: {cmd.svg_char}")


# ------------------------------------------------------------------------------
# Moves and points
# ------------------------------------------------------------------------------


class MoveCalculator:
    """Calculator for ``M`` commands, which draw nothing."""

    def __init__(self, id: str, start: Point | None, end: Point) -> None:
        self.id = id
        self.start = start
        self.end = end

    @property
    def length(self) -> float:
        return 0.0

    def get_point_at_length(self, distance: float) -> Point:
        return self.end

    def project(self, point: Point) -> Projection | None:
        return None

    def split(self, t1: float, t2: float) -> Calculator:
        return self

    def convert(self, svg_char: SvgChar) -> Calculator:
        if svg_char != "M":
            raise ValueError(f"Cannot convert a move to {svg_char}")
        return self

    def find_time_by_distance(self, distance: float) -> float:
        return distance

    def to_command(self) -> Command:
        return CommandBuilder("M", [self.start, self.end]).set_id(self.id).build()

    def get_bounding_box(self) -> BBox:
        return BBox.of_points([self.end])

    def intersects(self, line: Line) -> list[float]:
        return []


class PointCalculator:
    """Calculator for drawing commands of zero length."""

    def __init__(self, id: str, svg_char: SvgChar, point: Point) -> None:
        self.id = id
        self.svg_char: SvgChar = svg_char
        self.point = point

    @property
    def length(self) -> float:
        return 0.0

    def get_point_at_length(self, distance: float) -> Point:
        return self.point

    def project(self, point: Point) -> Projection | None:
        return Projection(
            x=self.point.x, y=self.point.y, d=distance(point, self.point), t=0.5
        )

    def split(self, t1: float, t2: float) -> Calculator:
        return self

    def convert(self, svg_char: SvgChar) -> Calculator:
        return PointCalculator(self.id, svg_char, self.point)

    def find_time_by_distance(self, distance: float) -> float:
        return distance

    def to_command(self) -> Command:
        match self.svg_char:
            case "L" | "Z":
                points = [self.point] * 2
            case "Q":
                points = [self.point] * 3
            case "C":
                points = [self.point] * 4
            case _:
                raise ValueError(f"Invalid command type: {self.svg_char}")
        return CommandBuilder(self.svg_char, points).set_id(self.id).build()

    def get_bounding_box(self) -> BBox:
        return BBox.of_points([self.point])

    def intersects(self, line: Line) -> list[float]:
        return []


# ------------------------------------------------------------------------------
# Straight lines
# ------------------------------------------------------------------------------


def _round(n: float) -> float:
    return round_to(n, _LINE_DIGITS)


class LineCalculator:
    """Calculator for straight segments from :attr:`p1` to :attr:`p2`."""

    def __init__(self, id: str, svg_char: SvgChar, p1: Point, p2: Point) -> None:
        self.id = id
        self.svg_char: SvgChar = svg_char
        self.p1 = p1
        self.p2 = p2

    @property
    def length(self) -> float:
        return distance(self.p1, self.p2)

    def get_point_at_length(self, distance: float) -> Point:
        return lerp_points(self.p1, self.p2, distance / self.length)

    def project(self, point: Point) -> Projection | None:
        (x, y), (x1, y1), (x2, y2) = point, self.p1, self.p2
        a, b = x2 - x1, y2 - y1
        dot = (x - x1) * a + (y - y1) * b
        len_sq = _round(a * a + b * b)
        param = -1 if len_sq == 0 else _round(dot / len_sq)
        if param < 0:
            xx, yy = x1, y1
        elif param > 1:
            xx, yy = x2, y2
        else:
            xx, yy = x1 + param * a, y1 + param * b
        dd = math.hypot(x - xx, y - yy)
        if _round(x2) != _round(x1):
            dt = (xx - x1) / (x2 - x1)
        elif _round(y2) != _round(y1):
            dt = (yy - y1) / (y2 - y1)
        else:
            dt = 0.5
        return Projection(x=_round(xx), y=_round(yy), d=_round(dd), t=_round(dt))

    def split(self, t1: float, t2: float) -> Calculator:
        p1 = lerp_points(self.p1, self.p2, t1)
        p2 = lerp_points(self.p1, self.p2, t2)
        if points_equal(p1, p2):
            return PointCalculator(self.id, self.svg_char, p1)
        return LineCalculator(self.id, self.svg_char, p1, p2)

    def convert(self, svg_char: SvgChar) -> Calculator:
        return LineCalculator(self.id, svg_char, self.p1, self.p2)

    def find_time_by_distance(self, distance: float) -> float:
        return distance

    def to_command(self) -> Command:
        p1, p2 = self.p1, self.p2
        match self.svg_char:
            case "L" | "Z":
                points = [p1, p2]
            case "Q":
                points = [p1, lerp_points(p1, p2, 0.5), p2]
            case "C":
                points = [p1, lerp_points(p1, p2, 1 / 3), lerp_points(p1, p2, 2 / 3), p2]
            case _:
                raise ValueError(f"Invalid command type: {self.svg_char}")
        return CommandBuilder(self.svg_char, points).set_id(self.id).build()

    def get_bounding_box(self) -> BBox:
        return BBox.of_points([self.p1, self.p2])

    def intersects(self, line: Line) -> list[float]:
        """
        Time of the intersection with ``line``, if any.

        Parallel (including collinear) lines never intersect.
        """
        if points_equal(self.p1, self.p2):
            return []
        (a, b), (c, d) = self.p1, self.p2
        (p, q), (r, s) = line.p1, line.p2
        det = _round((c - a) * (s - q) - (r - p) * (d - b))
        if det == 0:
            return []
        t = _round(((s - q) * (r - a) + (p - r) * (s - b)) / det)
        u = _round(((b - d) * (r - a) + (c - a) * (s - b)) / det)
        return [t] if 0 <= t <= 1 and 0 <= u <= 1 else []


# ------------------------------------------------------------------------------
# Curves
# ------------------------------------------------------------------------------


class BezierCalculator:
    """Calculator for quadratic and cubic Bézier segments."""

    def __init__(self, id: str, svg_char: SvgChar, *points: Point) -> None:
        self.id = id
        self.svg_char: SvgChar = svg_char
        self.points: tuple[Point, ...] = points

    @cached_property
    def bezier(self) -> Bezier:
        return Bezier(self.points)

    @property
    def length(self) -> float:
        return self.bezier.length

    def get_point_at_length(self, distance: float) -> Point:
        return self.bezier.compute(self.find_time_by_distance(distance / self.length))

    def project(self, point: Point) -> Projection | None:
        return self.bezier.project(point)

    def split(self, t1: float, t2: float) -> Calculator:
        if t1 == t2:
            return PointCalculator(self.id, self.svg_char, self.bezier.compute(t1))
        points = self.bezier.split(t1, t2).points
        if len(unique_points(points)) == 2:
            return LineCalculator(self.id, self.svg_char, points[0], points[-1])
        return BezierCalculator(self.id, self.svg_char, *points)

    def convert(self, svg_char: SvgChar) -> Calculator:
        if self.svg_char == "Q" and svg_char == "C":
            q0, q1, q2 = self.points
            return BezierCalculator(
                self.id,
                svg_char,
                q0,
                lerp_points(q0, q1, 2 / 3),
                lerp_points(q2, q1, 2 / 3),
                q2,
            )
        return BezierCalculator(self.id, svg_char, *self.points)

    def find_time_by_distance(self, distance: float) -> float:
        """
        Curve time at which the arc length is ``distance`` of the total length.

        Bisects the curve time until the ratio of the arc lengths of both
        halves matches ``distance / (1 - distance)``.
        """
        if distance < 0 or distance > 1:
            logger.warning("Distance must be between 0 and 1, got %s", distance)
        if distance in (0, 1):
            return distance

        original_distance = distance
        low_to_high_ratio = distance / (1 - distance)
        step = -2
        while step > _MAX_DEPTH:
            left, right = self.bezier.split_at(distance)
            diff = left.length - low_to_high_ratio * right.length
            if abs(diff) < _LENGTH_EPSILON:
                break
            step -= 1
            distance += (-1 if diff > 0 else 1) * 2.0**step

        if step == _MAX_DEPTH:
            logger.warning(
                "Could not find the time for distance %s on %s %s",
                original_distance,
                self.svg_char,
                ", ".join(str(p) for p in self.points),
            )
            return original_distance
        return distance

    def to_command(self) -> Command:
        return CommandBuilder(self.svg_char, list(self.points)).set_id(self.id).build()

    def get_bounding_box(self) -> BBox:
        return self.bezier.bbox()

    def intersects(self, line: Line) -> list[float]:
        if points_equal(self.points[0], self.points[-1]):
            return []
        return self.bezier.intersects(line)
