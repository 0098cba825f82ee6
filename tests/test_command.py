# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

import pytest

from svg_path_morph.command import Command
from svg_path_morph.geometry import Matrix, Point


def test_invalid_svg_char() -> None:
    with pytest.raises(ValueError, match="Invalid command character"):
        Command("H", (Point(0, 0), Point(1, 0)))  # type: ignore[arg-type]


def test_unique_ids() -> None:
    c1 = Command("L", (Point(0, 0), Point(1, 0)))
    c2 = Command("L", (Point(0, 0), Point(1, 0)))
    assert c1.id != c2.id
    assert c1.mutate().build().id == c1.id


def test_str() -> None:
    assert str(Command("L", (Point(0, 0), Point(1.23456, -2)))) == "L 1.235, -2"
    assert str(Command("Z", (Point(1, 0), Point(0, 0)))) == "Z"


@pytest.mark.parametrize(
    "svg_char,points,target,expected",
    [
        ("M", (None, Point(0, 0)), "L", False),
        ("L", (Point(0, 0), Point(1, 1)), "M", False),
        ("L", (Point(0, 0), Point(1, 1)), "L", False),
        ("L", (Point(0, 0), Point(1, 1)), "Q", True),
        ("L", (Point(0, 0), Point(1, 1)), "C", True),
        ("Z", (Point(0, 0), Point(1, 1)), "L", True),
        ("Q", (Point(0, 0), Point(1, 1), Point(2, 0)), "C", True),
        ("Q", (Point(0, 0), Point(1, 1), Point(2, 0)), "L", False),
        ("Q", (Point(0, 0), Point(0, 0), Point(2, 0)), "L", True),
        ("C", (Point(0, 0), Point(1, 1), Point(2, 1), Point(3, 0)), "Q", False),
        ("C", (Point(0, 0), Point(0, 0), Point(3, 0), Point(3, 0)), "L", True),
    ],
)
def test_can_convert_to(
    svg_char: str, points: tuple[Point | None, ...], target: str, expected: bool
) -> None:
    cmd = Command(svg_char, points)  # type: ignore[arg-type]
    assert cmd.can_convert_to(target) == expected


def test_builder_reverse() -> None:
    cmd = Command("C", (Point(0, 0), Point(1, 1), Point(2, 1), Point(3, 0)))
    rev = cmd.mutate().reverse().build()
    assert rev.points == (Point(3, 0), Point(2, 1), Point(1, 1), Point(0, 0))
    assert rev.id == cmd.id

    # The first move has nothing to reverse to.
    move = Command("M", (None, Point(1, 1)))
    assert move.mutate().reverse().build().points == (None, Point(1, 1))


def test_builder_transform() -> None:
    cmd = Command("L", (Point(0, 0), Point(1, 0)))
    res = (
        cmd.mutate()
        .transform(Matrix.scaling(2, 2))
        .transform(Matrix.translation(1, 1))
        .build()
    )
    assert res.points == (Point(1, 1), Point(3, 1))

    move = Command("M", (None, Point(1, 0)))
    assert move.mutate().transform(Matrix.rotation(90)).build().points == (
        None,
        Point(0, 1),
    )


def test_builder_flags() -> None:
    cmd = Command("L", (Point(0, 0), Point(1, 0)))
    res = cmd.mutate().toggle_split_point().set_is_split_segment(True).build()
    assert res.is_split_point
    assert res.is_split_segment
    assert not res.mutate().toggle_split_point().build().is_split_point
