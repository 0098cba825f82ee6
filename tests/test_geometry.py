# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from typing import Final

import pytest

from svg_path_morph.geometry import (
    BBox,
    Interval,
    Matrix,
    Point,
    Rect,
    distance,
    lerp_points,
    points_equal,
    transform_point,
    unique_points,
)

test_points: Final = [
    Point(0, 0),
    Point(1, 2),
    Point(-3, 4),
    Point(10.5, -7),
    Point(-8, 3.14),
    Point(100, 0.001),
]


def test_point_ops() -> None:
    a, b = Point(1, 2), Point(3, 5)
    assert a + b == Point(4, 7)
    assert b - a == Point(2, 3)
    assert a * 2 == Point(2, 4)
    assert tuple(a) == (1, 2)
    assert str(Point(1.5, -2)) == "(1.5, -2)"
    assert distance(a, b) == pytest.approx(13**0.5)
    assert lerp_points(a, b, 0.5) == Point(2, 3.5)


def test_points_equal() -> None:
    assert points_equal(Point(1, 1), Point(1 + 1e-12, 1))
    assert not points_equal(Point(1, 1), Point(1.001, 1))
    assert not points_equal(None, Point(1, 1))
    assert not points_equal(None, None)


def test_unique_points() -> None:
    pts = [Point(0, 0), Point(1, 1), Point(1e-12, 0), Point(1, 1)]
    assert unique_points(pts) == [Point(0, 0), Point(1, 1)]


@pytest.mark.parametrize("p", test_points)
def test_identity(p: Point) -> None:
    assert transform_point(p, Matrix.identity()) == p
    assert transform_point(p) == p


def test_rotation() -> None:
    assert transform_point(Point(1, 0), Matrix.rotation(90)) == Point(0, 1)
    assert transform_point(Point(0, 1), Matrix.rotation(90)) == Point(-1, 0)


def test_dot_order() -> None:
    """The right-hand matrix of a product is applied first."""
    t, s = Matrix.translation(1, 2), Matrix.scaling(2, 3)
    p = Point(1, 1)
    assert transform_point(p, t.dot(s)) == transform_point(p, s, t) == Point(3, 5)
    assert transform_point(p, s.dot(t)) == transform_point(p, t, s) == Point(4, 9)
    assert Matrix.flatten([t, s]) == t.dot(s)
    assert Matrix.flatten([]) == Matrix.identity()


@pytest.mark.parametrize("p", test_points)
def test_invert(p: Point) -> None:
    m = Matrix.translation(4, -2).dot(Matrix.rotation(30)).dot(Matrix.scaling(2, 0.5))
    inv = m.invert()
    assert inv is not None
    q = transform_point(p, m, inv)
    assert q.x == pytest.approx(p.x, abs=1e-6)
    assert q.y == pytest.approx(p.y, abs=1e-6)


def test_invert_singular() -> None:
    assert Matrix.scaling(0, 1).invert() is None


def test_bbox_and_rect() -> None:
    box = BBox.of_points([Point(1, 5), Point(-2, 3), Point(4, -1)])
    assert box == BBox(Interval(-2, 4), Interval(-1, 5))

    rect = Rect(0, 0, 10, 10)
    assert rect.contains_point(Point(0, 0))
    assert rect.contains_point(Point(5, 9.99))
    assert not rect.contains_point(Point(10, 5))
    assert not rect.contains_point(Point(-1, 5))
