# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from functools import cached_property

from .command import Command
from .geometry import Matrix, Point, Rect
from .path_mutator import PathMutator
from .path_parser import commands_to_string
from .path_state import HitOptions, HitResult, PathState, ProjectionOntoPath
from .sub_path import SubPath

logger = logging.getLogger(__name__)


class Path:
    """
    An immutable compound path, the unit that is edited and morphed.

    Paths are created from path data, from a list of absolute commands or from
    a :class:`PathState` and are changed by staging operations on the
    :class:`PathMutator` returned by :meth:`mutate`.

    >>> path = Path("M 0 0 L 10 10 L 20 20")
    >>> path.mutate().split_command(0, 2, 0.5).build().path_string
    'M 0 0 L 10 10 L 15 15 L 20 20'
    """

    def __init__(self, obj: str | Sequence[Command] | PathState) -> None:
        self._ps = obj if isinstance(obj, PathState) else PathState(obj)
        ids = Counter(cmd.id for cmd in self.commands)
        if duplicates := [id for id, n in ids.items() if n > 1]:
            logger.warning("Duplicate command ids in %s: %s", self.path_string, duplicates)

    def __str__(self) -> str:
        return self.path_string

    def __repr__(self) -> str:
        return f"Path({self.path_string!r})"

    @cached_property
    def path_string(self) -> str:
        """The path data of the visible commands."""
        return commands_to_string(self.commands)

    @property
    def sub_paths(self) -> tuple[SubPath, ...]:
        return self._ps.sub_paths

    @property
    def commands(self) -> tuple[Command, ...]:
        return self._ps.commands

    def get_sub_path(self, sub_idx: int) -> SubPath:
        """
        :raises IndexError: If ``sub_idx`` is out of bounds.
        """
        num_sub_paths = len(self.sub_paths)
        if not 0 <= sub_idx < num_sub_paths:
            raise IndexError(
                "Subpath index out of bounds: "
                f"sub_idx={sub_idx} num_sub_paths={num_sub_paths}"
            )
        return self.sub_paths[sub_idx]

    def get_command(self, sub_idx: int, cmd_idx: int) -> Command:
        """
        :raises IndexError: If either index is out of bounds.
        """
        commands = self.get_sub_path(sub_idx).commands
        if not 0 <= cmd_idx < len(commands):
            raise IndexError(
                "Command index out of bounds: "
                f"sub_idx={sub_idx} cmd_idx={cmd_idx} num_commands={len(commands)}"
            )
        return commands[cmd_idx]

    @property
    def path_length(self) -> float:
        return self._ps.path_length

    def get_sub_path_length(self, sub_idx: int) -> float:
        return self._ps.get_sub_path_length(sub_idx)

    def get_point_at_length(self, distance: float) -> Point | None:
        return self._ps.get_point_at_length(distance)

    def is_morphable_with(self, path: Path) -> bool:
        """
        ``True`` iff both paths have the same sequence of command types and
        can therefore be interpolated.
        """
        cmds1, cmds2 = self.commands, path.commands
        return len(cmds1) == len(cmds2) and all(
            c1.svg_char == c2.svg_char for c1, c2 in zip(cmds1, cmds2)
        )

    def project(
        self, point: Point, restrict_to_sub_idx: int | None = None
    ) -> ProjectionOntoPath | None:
        """The point on this path closest to ``point``, if there is any."""
        return self._ps.project(point, restrict_to_sub_idx)

    def hit_test(self, point: Point, opts: HitOptions | None = None) -> HitResult:
        return self._ps.hit_test(point, opts)

    def get_pole_of_inaccessibility(self, sub_idx: int) -> Point:
        return self._ps.get_pole_of_inaccessibility(sub_idx)

    def get_bounding_box(self) -> Rect:
        return self._ps.get_bounding_box()

    def is_clockwise(self, sub_idx: int) -> bool:
        return self._ps.is_clockwise(sub_idx)

    def mutate(self) -> PathMutator:
        return PathMutator(self._ps)

    def transform(self, matrix: Matrix) -> Path:
        """A new unmutated path with ``matrix`` applied to all points."""
        return self.mutate().transform(matrix).build().clone()

    def clone(self) -> Path:
        """A new path with the same path data and no mutation history."""
        return Path(self.path_string)

    def revert(self) -> Path:
        """This path before any mutation."""
        return self.mutate().revert().build()
