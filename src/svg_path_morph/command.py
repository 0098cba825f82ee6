# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Final, Literal, TypeAlias

from typing_extensions import override

from .geometry import Matrix, Point, transform_point, unique_points
from .math import format_number

SvgChar: TypeAlias = Literal["M", "L", "Q", "C", "Z"]

SVG_CHARS: Final[frozenset[str]] = frozenset("MLQCZ")

_ids: Final = itertools.count(1)


def new_id() -> str:
    """Return a fresh identifier that is unique within this process."""
    return str(next(_ids))


@dataclass(frozen=True, eq=False)
class Command:
    """
    Immutable drawing command in absolute coordinates.

    The first point of a command is the end point of the previous one, so that
    every command knows both of its end points. The first point of the very
    first ``M`` command of a path is ``None``.

    :ivar svg_char: One of ``M``, ``L``, ``Q``, ``C`` and ``Z``.
    :ivar points: ``2`` points for ``M``/``L``/``Z``, ``3`` for ``Q``, ``4`` for ``C``.
    :ivar is_split_point: ``True`` if the end point was created by a split.
    :ivar id: Stable identifier of the command.
    :ivar is_split_segment: ``True`` if the command was created by splitting a
        filled subpath.
    """

    svg_char: SvgChar
    points: tuple[Point | None, ...]
    is_split_point: bool = False
    id: str = field(default_factory=new_id)
    is_split_segment: bool = False

    def __post_init__(self) -> None:
        if self.svg_char not in SVG_CHARS:
            raise ValueError(f"Invalid command character: {self.svg_char!r}")

    @property
    def start(self) -> Point | None:
        return self.points[0]

    @property
    def end(self) -> Point:
        end = self.points[-1]
        assert end is not None
        return end

    def can_convert_to(self, target: str) -> bool:
        """
        Test whether this command can be represented as a ``target`` command
        without changing its geometry.
        """
        char = self.svg_char
        if char == "M" or target == "M" or char == target:
            return False
        match char:
            case "L":
                return target in ("Q", "C")
            case "Z":
                return target in ("L", "Q", "C")
            case "Q":
                return target == "C" or (
                    target == "L" and len(unique_points(self._points())) <= 2
                )
            case "C":
                return target == "L" and len(unique_points(self._points())) <= 2
        return False

    def mutate(self) -> CommandBuilder:
        return CommandBuilder(
            self.svg_char,
            list(self.points),
            is_split_point=self.is_split_point,
            id=self.id,
            is_split_segment=self.is_split_segment,
        )

    def _points(self) -> list[Point]:
        return [p for p in self.points if p is not None]

    @override
    def __str__(self) -> str:
        if self.svg_char == "Z":
            return "Z"
        end = self.end
        return f"{self.svg_char} {format_number(end.x, 3)}, {format_number(end.y, 3)}"


class CommandBuilder:
    """Mutable builder producing new :class:`Command` instances."""

    def __init__(
        self,
        svg_char: SvgChar,
        points: list[Point | None],
        *,
        is_split_point: bool = False,
        id: str = "",
        is_split_segment: bool = False,
    ) -> None:
        self.svg_char: SvgChar = svg_char
        self.points = list(points)
        self.is_split_point = is_split_point
        self.id = id
        self.is_split_segment = is_split_segment
        self.matrix = Matrix.identity()

    def set_svg_char(self, svg_char: SvgChar) -> CommandBuilder:
        self.svg_char = svg_char
        return self

    def set_points(self, *points: Point | None) -> CommandBuilder:
        self.points = list(points)
        return self

    def set_id(self, id: str) -> CommandBuilder:
        self.id = id
        return self

    def set_is_split_point(self, is_split_point: bool) -> CommandBuilder:
        self.is_split_point = is_split_point
        return self

    def toggle_split_point(self) -> CommandBuilder:
        self.is_split_point = not self.is_split_point
        return self

    def set_is_split_segment(self, is_split_segment: bool) -> CommandBuilder:
        self.is_split_segment = is_split_segment
        return self

    def transform(self, *matrices: Matrix) -> CommandBuilder:
        """Apply ``matrices`` after any previously queued transformation."""
        for m in matrices:
            self.matrix = m.dot(self.matrix)
        return self

    def reverse(self) -> CommandBuilder:
        """Reverse the point order, except for a leading ``M`` without start."""
        if self.svg_char == "M" and self.points[0] is None:
            return self
        self.points.reverse()
        return self

    def build(self) -> Command:
        points = tuple(
            None if p is None else transform_point(p, self.matrix)
            for p in self.points
        )
        return Command(
            self.svg_char,
            points,
            is_split_point=self.is_split_point,
            id=self.id or new_id(),
            is_split_segment=self.is_split_segment,
        )
