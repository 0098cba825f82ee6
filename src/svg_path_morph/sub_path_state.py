# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
Subpath states and the split tree.

Every subpath of the originally parsed path owns a :class:`SubPathState`.
Splitting a subpath turns its state into an internal node whose
``split_sub_paths`` hold the states of the two halves, so each original
subpath is the root of a binary tree whose leaves are the visible subpaths.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from .command import new_id
from .command_state import CommandState


class SubPathState:
    """
    Immutable state of one subpath.

    :param command_states: One state per source command, starting with the move.
    :param is_reversed: ``True`` if the visible commands are drawn in reverse.
    :param shift_offset: Number of positions the start point has been shifted by.
    :param split_sub_paths: The child states if this subpath has been split.
    """

    def __init__(
        self,
        command_states: Sequence[CommandState],
        is_reversed: bool = False,
        shift_offset: int = 0,
        id: str | None = None,
        split_sub_paths: Sequence[SubPathState] = (),
    ) -> None:
        self._command_states = tuple(command_states)
        self._is_reversed = is_reversed
        self._shift_offset = shift_offset
        self._id = new_id() if id is None else id
        self._split_sub_paths = tuple(split_sub_paths)

    @property
    def id(self) -> str:
        return self._id

    @property
    def command_states(self) -> tuple[CommandState, ...]:
        return self._command_states

    @property
    def is_reversed(self) -> bool:
        return self._is_reversed

    @property
    def shift_offset(self) -> int:
        return self._shift_offset

    @property
    def split_sub_paths(self) -> tuple[SubPathState, ...]:
        return self._split_sub_paths

    @property
    def num_commands(self) -> int:
        """Number of visible commands across all command states."""
        return sum(len(cs.commands) for cs in self._command_states)

    def revert(self) -> SubPathState:
        return self.mutate().revert().build()

    def clone(self) -> SubPathState:
        return self.mutate().build()

    def mutate(self) -> SubPathStateMutator:
        return SubPathStateMutator(
            self._id,
            list(self._command_states),
            self._is_reversed,
            self._shift_offset,
            list(self._split_sub_paths),
        )


class SubPathStateMutator:
    """Builder producing modified copies of a :class:`SubPathState`."""

    def __init__(
        self,
        id: str,
        command_states: list[CommandState],
        is_reversed: bool,
        shift_offset: int,
        split_sub_paths: list[SubPathState],
    ) -> None:
        self.id = id
        self.command_states = command_states
        self.is_reversed = is_reversed
        self.shift_offset = shift_offset
        self.split_sub_paths = split_sub_paths

    def set_id(self, id: str) -> SubPathStateMutator:
        self.id = id
        return self

    def set_command_states(
        self, command_states: Sequence[CommandState]
    ) -> SubPathStateMutator:
        self.command_states = list(command_states)
        return self

    def set_command_state(
        self, cs_idx: int, command_state: CommandState
    ) -> SubPathStateMutator:
        """
        Replace the command state at ``cs_idx``.

        :raises IndexError: If ``cs_idx`` is out of bounds.
        """
        if not 0 <= cs_idx < len(self.command_states):
            raise IndexError(
                f"Command state index {cs_idx} out of bounds for "
                f"{len(self.command_states)} command states"
            )
        self.command_states[cs_idx] = command_state
        return self

    def reverse(self) -> SubPathStateMutator:
        return self.set_is_reversed(not self.is_reversed)

    def set_is_reversed(self, is_reversed: bool) -> SubPathStateMutator:
        self.is_reversed = is_reversed
        return self

    def set_shift_offset(self, shift_offset: int) -> SubPathStateMutator:
        self.shift_offset = shift_offset
        return self

    def set_split_sub_paths(
        self, split_sub_paths: Sequence[SubPathState]
    ) -> SubPathStateMutator:
        self.split_sub_paths = list(split_sub_paths)
        return self

    def revert(self) -> SubPathStateMutator:
        """Revert all command states and drop reversal, shift and splits."""
        self.command_states = [cs.mutate().revert().build() for cs in self.command_states]
        self.is_reversed = False
        self.shift_offset = 0
        self.split_sub_paths = []
        return self

    def build(self) -> SubPathState:
        return SubPathState(
            self.command_states,
            self.is_reversed,
            self.shift_offset,
            self.id,
            self.split_sub_paths,
        )


def iter_leaves(sps: SubPathState) -> Iterator[SubPathState]:
    """Yield the leaves of the split tree rooted at ``sps`` in order."""
    if not sps.split_sub_paths:
        yield sps
        return
    for child in sps.split_sub_paths:
        yield from iter_leaves(child)


def flatten_sub_path_states(
    sub_path_states: Sequence[SubPathState],
) -> list[SubPathState]:
    """All leaf states of the given split trees, in order."""
    return [leaf for sps in sub_path_states for leaf in iter_leaves(sps)]


def find_sub_path_state(
    sub_path_states: Sequence[SubPathState], sps_idx: int
) -> SubPathState:
    """The leaf state at position ``sps_idx`` of :func:`flatten_sub_path_states`."""
    return flatten_sub_path_states(sub_path_states)[sps_idx]
