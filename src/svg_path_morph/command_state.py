# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
Mutation history of a single source command.

A :class:`CommandState` wraps one command of the originally parsed path (its
*backing command*) and records how it has been split, converted and
transformed since. The visible commands are always rebuilt from the backing
command and the mutation list, so every mutation can be undone by dropping
entries from that list.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .calculators import Calculator, new_calculator
from .command import Command, SvgChar, new_id
from .geometry import BBox, Line, Matrix, Point, Projection
from .math import lerp

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Mutation:
    """
    One visible piece of a command state.

    :ivar id: Id of the command built for this piece.
    :ivar t: Backing curve time at which this piece ends.
    :ivar svg_char: Command character the piece is drawn with.
    """

    id: str
    t: float
    svg_char: SvgChar


@dataclass(frozen=True)
class CommandProjection:
    """Projection onto a command state, with the index of the piece hit."""

    projection: Projection
    split_idx: int


class CommandState:
    """
    Immutable container of a backing command and its mutations.

    :param backing_command: The original, unmutated command.
    :param min_t: Lower time bound, larger than ``0`` for sliced states.
    :param max_t: Upper time bound, smaller than ``1`` for sliced states.
    :param split_segment_id: Shared id of the two lines created by a filled
        subpath split.
    :param parent_command_state: The state from which such a line was split off.
    """

    def __init__(
        self,
        backing_command: Command,
        commands: Sequence[Command] | None = None,
        mutations: Sequence[Mutation] | None = None,
        transform: Matrix | None = None,
        calculator: Calculator | None = None,
        min_t: float = 0,
        max_t: float = 1,
        split_segment_id: str = "",
        parent_command_state: CommandState | None = None,
    ) -> None:
        self._backing_command = backing_command
        self._commands: tuple[Command, ...] = (
            (backing_command,) if commands is None else tuple(commands)
        )
        self._mutations: tuple[Mutation, ...] = (
            (Mutation(backing_command.id, 1, backing_command.svg_char),)
            if mutations is None
            else tuple(mutations)
        )
        self._transform = Matrix.identity() if transform is None else transform
        self._calculator = (
            new_calculator(backing_command) if calculator is None else calculator
        )
        self._min_t = min_t
        self._max_t = max_t
        self._split_segment_id = split_segment_id
        self._parent_command_state = parent_command_state

    @property
    def backing_id(self) -> str:
        return self._backing_command.id

    @property
    def commands(self) -> tuple[Command, ...]:
        return self._commands

    @property
    def mutations(self) -> tuple[Mutation, ...]:
        return self._mutations

    @property
    def min_t(self) -> float:
        return self._min_t

    @property
    def max_t(self) -> float:
        return self._max_t

    @property
    def split_segment_id(self) -> str:
        return self._split_segment_id

    @property
    def parent_command_state(self) -> CommandState | None:
        return self._parent_command_state

    @property
    def path_length(self) -> float:
        return self._calculator.length

    def get_bounding_box(self) -> BBox:
        return self._calculator.get_bounding_box()

    def get_point_at_length(self, distance: float) -> Point:
        return self._calculator.get_point_at_length(distance)

    def get_id_at_index(self, split_idx: int) -> str:
        return self._mutations[split_idx].id

    def intersects(self, line: Line) -> list[float]:
        """Intersection times with ``line`` within ``(min_t, max_t]``."""
        return [
            t
            for t in self._calculator.intersects(line)
            if self._min_t < t <= self._max_t
        ]

    def project(self, point: Point) -> CommandProjection | None:
        """
        Project ``point`` onto the backing command.

        The time of the result is relative to the visible piece that was hit.
        Projections outside of ``[min_t, max_t]`` belong to another slice and
        yield ``None``.
        """
        projection = self._calculator.project(point)
        if projection is None:
            return None
        t = projection.t
        if t < self._min_t or self._max_t < t:
            return None
        split_idx = sum(1 for m in self._mutations if m.t < t)
        splits = [self._min_t, *(m.t for m in self._mutations)]
        start, end = splits[split_idx], splits[split_idx + 1]
        rel_t = 0 if start == end else (t - start) / (end - start)
        return CommandProjection(
            Projection(x=projection.x, y=projection.y, d=projection.d, t=rel_t),
            split_idx,
        )

    def slice(self, split_idx: int) -> tuple[CommandState, CommandState | None]:
        """
        Slice this state at ``split_idx`` into a left and right part.

        The right part is ``None`` if the state is not split at that index.
        """
        left = self.mutate().slice_left(split_idx).build()
        right = None
        if self.is_split_at_index(split_idx):
            right = self.mutate().slice_right(split_idx).build()
        return left, right

    def merge(self, cs: CommandState) -> CommandState:
        """
        Merge ``cs``, the left part of a previous :meth:`slice`, into this state.

        :raises ValueError: If both states wrap different backing commands.
        """
        if self.backing_id != cs.backing_id:
            raise ValueError(
                "Attempt to merge command state objects with unequal backing IDs"
            )
        if self._min_t < cs.min_t:
            logger.warning(
                "Merging command states out of order: %s < %s", self._min_t, cs.min_t
            )
        return (
            self.mutate()
            .set_mutations([*cs.mutations[:-1], *self._mutations])
            .set_min_t(cs.min_t)
            .build()
        )

    def is_split_at_index(self, split_idx: int) -> bool:
        return split_idx != len(self._mutations) - 1

    def mutate(self) -> CommandStateMutator:
        return CommandStateMutator(
            self._backing_command,
            list(self._mutations),
            self._transform,
            self._calculator,
            self._min_t,
            self._max_t,
            self._split_segment_id,
            self._parent_command_state,
        )


class CommandStateMutator:
    """Builder producing mutated copies of a :class:`CommandState`."""

    def __init__(
        self,
        backing_command: Command,
        mutations: list[Mutation],
        matrix: Matrix,
        calculator: Calculator,
        min_t: float,
        max_t: float,
        split_segment_id: str,
        parent_command_state: CommandState | None,
    ) -> None:
        self.backing_command = backing_command
        self.mutations = mutations
        self.matrix = matrix
        self.calculator = calculator
        self.min_t = min_t
        self.max_t = max_t
        self.split_segment_id = split_segment_id
        self.parent_command_state = parent_command_state

    def slice_left(self, split_idx: int) -> CommandStateMutator:
        """Keep only the pieces up to and including ``split_idx``."""
        self.mutations = self.mutations[: split_idx + 1]
        self.max_t = self.mutations[-1].t
        return self

    def slice_right(self, split_idx: int) -> CommandStateMutator:
        """Keep only the pieces after ``split_idx``."""
        self.min_t = self.mutations[split_idx].t
        self.mutations = self.mutations[split_idx + 1 :]
        return self

    def set_mutations(self, mutations: Sequence[Mutation]) -> CommandStateMutator:
        self.mutations = list(mutations)
        return self

    def set_min_t(self, min_t: float) -> CommandStateMutator:
        self.min_t = min_t
        return self

    def set_split_segment_info(
        self, parent_command_state: CommandState | None, id: str
    ) -> CommandStateMutator:
        self.split_segment_id = id
        self.parent_command_state = parent_command_state
        return self

    def reverse(self) -> CommandStateMutator:
        """Reverse the backing command and mirror all split times."""
        self.backing_command = self.backing_command.mutate().reverse().build()
        self.calculator = self._transformed_calculator()
        last = self.mutations.pop()
        self.mutations = [
            Mutation(m.id, lerp(self.max_t, self.min_t, m.t), m.svg_char)
            for m in reversed(self.mutations)
        ]
        self.mutations.append(last)
        return self

    def _splits(self, split_idx: int) -> tuple[float, float]:
        splits = [self.min_t, *(m.t for m in self.mutations)]
        return splits[split_idx], splits[split_idx + 1]

    def split_at_index(
        self, split_idx: int, ts: Sequence[float]
    ) -> CommandStateMutator:
        """
        Split the piece at ``split_idx`` at the piece-relative times ``ts``.
        """
        start, end = self._splits(split_idx)
        return self._split([lerp(start, end, t) for t in ts])

    def split_in_half_at_index(self, split_idx: int) -> CommandStateMutator:
        """Split the piece at ``split_idx`` into two parts of equal length."""
        start, end = self._splits(split_idx)
        distance = lerp(start, end, 0.5)
        return self._split([self.calculator.find_time_by_distance(distance)])

    def _split(self, ts: Sequence[float]) -> CommandStateMutator:
        if not ts or self.backing_command.svg_char == "M":
            return self
        curr_splits = [m.t for m in self.mutations]
        curr_chars = [m.svg_char for m in self.mutations]
        for t in ts:
            svg_char = curr_chars[bisect.bisect_left(curr_splits, t)]
            idx = bisect.bisect_left(self.mutations, t, key=lambda m: m.t)
            self.mutations.insert(idx, Mutation(new_id(), t, svg_char))
        # Only the last piece of a split closepath can remain a closepath.
        self.mutations = [
            Mutation(m.id, m.t, "L")
            if m.svg_char == "Z" and i != len(self.mutations) - 1
            else m
            for i, m in enumerate(self.mutations)
        ]
        return self

    def unsplit_at_index(self, split_idx: int) -> CommandStateMutator:
        """Remove the split point at the end of the piece at ``split_idx``."""
        if not 0 <= split_idx < len(self.mutations) - 1:
            logger.warning("Ignoring attempt to unsplit a non-split command")
            return self
        del self.mutations[split_idx]
        return self

    def convert_at_index(
        self, split_idx: int, svg_char: SvgChar
    ) -> CommandStateMutator:
        m = self.mutations[split_idx]
        self.mutations[split_idx] = Mutation(m.id, m.t, svg_char)
        return self

    def unconvert_subpath(self) -> CommandStateMutator:
        """Undo all conversions; split closepaths stay lines except the last piece."""
        backing_char = self.backing_command.svg_char
        last = len(self.mutations) - 1
        self.mutations = [
            Mutation(m.id, m.t, "L" if backing_char == "Z" and i != last else backing_char)
            for i, m in enumerate(self.mutations)
        ]
        return self

    def force_convert_closepaths_to_lines(self) -> CommandStateMutator:
        """Irreversibly replace a closepath backing command by a line."""
        if self.backing_command.svg_char == "Z":
            self.backing_command = (
                new_calculator(self.backing_command).convert("L").to_command()
            )
            self.calculator = self._transformed_calculator()
            self.mutations = [
                Mutation(m.id, m.t, "L" if m.svg_char == "Z" else m.svg_char)
                for m in self.mutations
            ]
        return self

    def _transformed_calculator(self) -> Calculator:
        return new_calculator(
            self.backing_command.mutate().transform(self.matrix).build()
        )

    def transform(self, matrix: Matrix) -> CommandStateMutator:
        """Apply ``matrix`` after all previously applied transformations."""
        self.matrix = matrix.dot(self.matrix)
        self.calculator = self._transformed_calculator()
        return self

    def set_transform(self, matrix: Matrix) -> CommandStateMutator:
        """Replace all previously applied transformations by ``matrix``."""
        self.matrix = matrix
        self.calculator = self._transformed_calculator()
        return self

    def revert(self) -> CommandStateMutator:
        """Drop all splits, conversions and transformations."""
        last = self.mutations[-1]
        self.mutations = [Mutation(last.id, last.t, self.backing_command.svg_char)]
        self.matrix = Matrix.identity()
        self.calculator = new_calculator(self.backing_command)
        return self

    def build(self) -> CommandState:
        commands: list[Command] = []
        prev_t = self.min_t
        last = len(self.mutations) - 1
        for i, m in enumerate(self.mutations):
            commands.append(
                self.calculator.split(prev_t, m.t)
                .convert(m.svg_char)
                .to_command()
                .mutate()
                .set_id(m.id)
                .set_is_split_point(i != last)
                .set_is_split_segment(
                    m.svg_char != "M" and self.parent_command_state is not None
                )
                .build()
            )
            prev_t = m.t
        return CommandState(
            self.backing_command,
            commands,
            self.mutations,
            self.matrix,
            self.calculator,
            self.min_t,
            self.max_t,
            self.split_segment_id,
            self.parent_command_state,
        )
