# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from functools import reduce
from typing_extensions import override

from .math import is_near_zero, lerp, round_to

# ------------------------------------------------------------------------------
# Basic geometric primitives
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class Point:
    """2D point with float coordinates."""

    x: float
    y: float

    def __iter__(self) -> Iterator[float]:
        """Iterate as ``(x, y)``."""
        yield self.x
        yield self.y

    @override
    def __str__(self) -> str:
        """Human-readable representation ``(x, y)``."""
        return f"({self.x:g}, {self.y:g})"

    def __add__(self, other: Point) -> Point:
        """Vector addition :math:`v + w`."""
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        """Vector subtraction :math:`v - w`."""
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, other: float) -> Point:
        r"""Scalar multiplication :math:`v ⋅ λ`."""
        return Point(self.x * other, self.y * other)


def distance(p1: Point, p2: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(p1.x - p2.x, p1.y - p2.y)


def points_equal(p1: Point | None, p2: Point | None) -> bool:
    """
    Test whether two points coincide up to the rounding precision.

    Missing points are never equal to anything, not even to each other.
    """
    return p1 is not None and p2 is not None and is_near_zero(distance(p1, p2))


def lerp_points(p1: Point, p2: Point, t: float) -> Point:
    """Linearly interpolate between two points."""
    return Point(lerp(p1.x, p2.x, t), lerp(p1.y, p2.y, t))


def unique_points(points: Iterable[Point]) -> list[Point]:
    """Keep the first point of each group of :func:`points_equal` points."""
    res: list[Point] = []
    for p in points:
        if not any(points_equal(p, q) for q in res):
            res.append(p)
    return res


# ------------------------------------------------------------------------------
# Affine transformations
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class Matrix:
    r"""
    Affine transformation

    .. math::

        \begin{pmatrix}
            a & c & e \\
            b & d & f \\
            0 & 0 & 1
        \end{pmatrix}

    in the convention of the SVG ``matrix(a, b, c, d, e, f)`` transform.
    """

    a: float = 1
    b: float = 0
    c: float = 0
    d: float = 1
    e: float = 0
    f: float = 0

    @staticmethod
    def identity() -> Matrix:
        return Matrix()

    @staticmethod
    def flatten(matrices: Sequence[Matrix]) -> Matrix:
        """Collapse ``matrices`` into one by successive :meth:`dot` products."""
        return reduce(lambda prev, m: prev.dot(m), matrices, Matrix.identity())

    @staticmethod
    def scaling(sx: float, sy: float) -> Matrix:
        return Matrix(sx, 0, 0, sy, 0, 0)

    @staticmethod
    def rotation(degrees: float) -> Matrix:
        """Rotation about the origin by ``degrees``."""
        rad = math.radians(degrees)
        cos, sin = math.cos(rad), math.sin(rad)
        return Matrix(cos, sin, -sin, cos, 0, 0)

    @staticmethod
    def translation(tx: float, ty: float) -> Matrix:
        return Matrix(1, 0, 0, 1, tx, ty)

    def dot(self, m: Matrix) -> Matrix:
        """
        Matrix product ``self ⋅ m``, i.e. ``m`` is applied first.

        Every entry of the result is rounded to the geometric precision.
        """
        return Matrix(
            round_to(self.a * m.a + self.c * m.b),
            round_to(self.b * m.a + self.d * m.b),
            round_to(self.a * m.c + self.c * m.d),
            round_to(self.b * m.c + self.d * m.d),
            round_to(self.a * m.e + self.c * m.f + self.e),
            round_to(self.b * m.e + self.d * m.f + self.f),
        )

    def invert(self) -> Matrix | None:
        """Return the inverse transformation, or ``None`` if it is singular."""
        det = round_to(self.a * self.d - self.b * self.c)
        if det == 0:
            return None
        return Matrix(
            self.d / det,
            -self.b / det,
            -self.c / det,
            self.a / det,
            (self.c * self.f - self.d * self.e) / det,
            (self.b * self.e - self.a * self.f) / det,
        )


def transform_point(point: Point, *matrices: Matrix) -> Point:
    """Apply ``matrices`` to ``point`` in order, rounding after each step."""
    for m in matrices:
        point = Point(
            round_to(m.a * point.x + m.c * point.y + m.e),
            round_to(m.b * point.x + m.d * point.y + m.f),
        )
    return point


# ------------------------------------------------------------------------------
# Lines, boxes and projections
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class Line:
    """Line segment from :attr:`p1` to :attr:`p2`."""

    p1: Point
    p2: Point


@dataclass(frozen=True)
class Interval:
    min: float
    max: float


@dataclass(frozen=True)
class BBox:
    """Axis-aligned bounding box given by its ``x`` and ``y`` extent."""

    x: Interval
    y: Interval

    @staticmethod
    def of_points(points: Iterable[Point]) -> BBox:
        pts = list(points)
        xs, ys = [p.x for p in pts], [p.y for p in pts]
        return BBox(Interval(min(xs), max(xs)), Interval(min(ys), max(ys)))


@dataclass(frozen=True)
class Rect:
    """Rectangle with left, top, right and bottom edges."""

    l: float
    t: float
    r: float
    b: float

    def contains_point(self, p: Point) -> bool:
        """Half-open containment test ``l ≤ x < r`` and ``t ≤ y < b``."""
        return self.l <= p.x < self.r and self.t <= p.y < self.b


@dataclass(frozen=True)
class Projection:
    """
    Closest point on a segment to some query point.

    :ivar x: X coordinate of the closest point.
    :ivar y: Y coordinate of the closest point.
    :ivar d: Distance from the query point.
    :ivar t: Curve time of the closest point.
    """

    x: float
    y: float
    d: float
    t: float
