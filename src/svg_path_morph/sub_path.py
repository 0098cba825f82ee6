# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .command import Command, new_id
from .geometry import points_equal


@dataclass(frozen=True, eq=False)
class SubPath:
    """
    Run of commands starting with a move and ending with a closepath or
    right before the next move.

    :ivar commands: The commands of this subpath, starting with an ``M``.
    :ivar id: Stable identifier of this subpath.
    :ivar is_collapsing: ``True`` if the subpath was added to collapse to a point.
    :ivar is_reversed: ``True`` if the subpath has been reversed.
    :ivar shift_offset: Number of positions the start point has been shifted by.
    :ivar is_split: ``True`` if the subpath was created by a split.
    :ivar is_unsplittable: ``True`` if the subpath can be unsplit.
    """

    commands: tuple[Command, ...]
    id: str = field(default_factory=new_id)
    is_collapsing: bool = False
    is_reversed: bool = False
    shift_offset: int = 0
    is_split: bool = False
    is_unsplittable: bool = False

    @property
    def is_closed(self) -> bool:
        """``True`` iff the first and last command end at the same point."""
        return points_equal(self.commands[0].end, self.commands[-1].end)

    def mutate(self) -> SubPathBuilder:
        return SubPathBuilder(self)


class SubPathBuilder:
    """Builder producing modified copies of a :class:`SubPath`."""

    def __init__(self, sub_path: SubPath) -> None:
        self.commands: Sequence[Command] = sub_path.commands
        self.id = sub_path.id
        self.is_collapsing = sub_path.is_collapsing
        self.is_reversed = sub_path.is_reversed
        self.shift_offset = sub_path.shift_offset
        self.is_split = sub_path.is_split
        self.is_unsplittable = sub_path.is_unsplittable

    def set_commands(self, commands: Sequence[Command]) -> SubPathBuilder:
        self.commands = commands
        return self

    def set_id(self, id: str) -> SubPathBuilder:
        self.id = id
        return self

    def set_is_collapsing(self, is_collapsing: bool) -> SubPathBuilder:
        self.is_collapsing = is_collapsing
        return self

    def set_is_reversed(self, is_reversed: bool) -> SubPathBuilder:
        self.is_reversed = is_reversed
        return self

    def set_shift_offset(self, shift_offset: int) -> SubPathBuilder:
        self.shift_offset = shift_offset
        return self

    def set_is_split(self, is_split: bool) -> SubPathBuilder:
        self.is_split = is_split
        return self

    def set_is_unsplittable(self, is_unsplittable: bool) -> SubPathBuilder:
        self.is_unsplittable = is_unsplittable
        return self

    def build(self) -> SubPath:
        return SubPath(
            tuple(self.commands),
            self.id,
            self.is_collapsing,
            self.is_reversed,
            self.shift_offset,
            self.is_split,
            self.is_unsplittable,
        )


def create_sub_paths(commands: Sequence[Command]) -> list[SubPath]:
    """
    Group a flat command list into subpaths.

    A drawing command that directly follows a closepath starts a new subpath
    at the last move, which is duplicated under a fresh id. A move that
    directly follows another move ends the current subpath and is dropped.
    """
    if not commands or commands[0].svg_char != "M":
        return []

    current: list[Command] = []
    last_move = commands[0]
    sub_paths: list[SubPath] = []
    for cmd in commands:
        if cmd.svg_char == "M":
            last_move = cmd
            if current:
                sub_paths.append(SubPath(tuple(current)))
                current = []
            else:
                current.append(cmd)
            continue
        if not current:
            current.append(last_move.mutate().set_id(new_id()).build())
        current.append(cmd)
        if cmd.svg_char == "Z":
            sub_paths.append(SubPath(tuple(current)))
            current = []
    if current:
        sub_paths.append(SubPath(tuple(current)))
    return sub_paths
