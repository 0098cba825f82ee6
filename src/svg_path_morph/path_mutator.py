# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
Structural editing of paths.

:class:`PathMutator` stages a sequence of edits on the split trees and the
subpath ordering of a :class:`~svg_path_morph.path_state.PathState` and
produces a new :class:`~svg_path_morph.path.Path` on :meth:`PathMutator.build`.
The module-level functions implement the reverse and shift pipeline that
derives the visible commands of a leaf subpath state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from .command import Command, SvgChar, new_id
from .command_state import CommandState
from .geometry import Matrix, Point, points_equal
from .math import floor_mod
from .sub_path_state import SubPathState, SubPathStateMutator, flatten_sub_path_states

if TYPE_CHECKING:
    from .path import Path
    from .path_state import PathState

logger = logging.getLogger(__name__)


def _find_internal_indices(
    css: Sequence[CommandState], cmd_idx: int
) -> tuple[CommandState, int, int]:
    """
    Locate command ``cmd_idx`` among the pieces of ``css``.

    :return: The command state containing the command, its index in ``css``
        and the index of the piece within it.
    :raises IndexError: If ``cmd_idx`` exceeds the number of commands.
    """
    counter = 0
    for cs_idx, cs in enumerate(css):
        if counter + len(cs.commands) > cmd_idx:
            return cs, cs_idx, cmd_idx - counter
        counter += len(cs.commands)
    raise IndexError(f"No command state for command {cmd_idx}")


def _is_closed(sps: SubPathState) -> bool:
    """Whether ``sps`` has more than one command and ends where it starts."""
    if sps.num_commands <= 1:
        return False
    first_cmd = sps.command_states[0].commands[0]
    last_cmd = sps.command_states[-1].commands[-1]
    return points_equal(first_cmd.end, last_cmd.end)


def _unique_split_segment_ids(css: Sequence[CommandState]) -> list[str]:
    ids: list[str] = []
    for cs in css:
        if cs.split_segment_id and cs.split_segment_id not in ids:
            ids.append(cs.split_segment_id)
    return ids


def _contains_split_segment(sps: SubPathState, split_seg_id: str) -> bool:
    return any(cs.split_segment_id == split_seg_id for cs in sps.command_states)


class PathMutator:
    """
    Builder for mutated :class:`~svg_path_morph.path.Path` objects.

    Every operation returns the mutator itself so that calls can be chained.
    Subpath indices always refer to the subpaths as they are visible after
    all previously staged operations.
    """

    def __init__(self, ps: PathState) -> None:
        # Split trees of all subpath states, collapsing subpaths last.
        self._sub_path_state_map: list[SubPathState] = list(ps.sub_path_state_map)
        # Maps sub_idx to positions in the flattened list of leaves.
        self._sub_path_ordering: list[int] = list(ps.sub_path_ordering)
        self._num_collapsing_sub_paths = ps.num_collapsing_sub_paths

    # --------------------------------------------------------------------------
    # Reversing and shifting
    # --------------------------------------------------------------------------

    def reverse_sub_path(self, sub_idx: int) -> PathMutator:
        """
        Reverse the order of the points in the closed subpath ``sub_idx``.

        Open and single-command subpaths are left unchanged.
        """
        logger.debug("reverse_sub_path(%s)", sub_idx)
        sps = self._find_sub_path_state_leaf(sub_idx)
        if not _is_closed(sps):
            logger.warning("Ignoring attempt to reverse non-closed subpath %s", sub_idx)
            return self
        self._set_sub_path_state_leaf(sub_idx, sps.mutate().reverse().build())
        return self

    def shift_sub_path_back(self, sub_idx: int, num_shifts: int = 1) -> PathMutator:
        """Move the start point of the closed subpath ``sub_idx`` backwards."""
        logger.debug("shift_sub_path_back(%s, %s)", sub_idx, num_shifts)
        if self._find_sub_path_state_leaf(sub_idx).is_reversed:
            return self._shift(sub_idx, lambda o, n: (o + num_shifts) % (n - 1))
        return self._shift(sub_idx, lambda o, n: floor_mod(o - num_shifts, n - 1))

    def shift_sub_path_forward(self, sub_idx: int, num_shifts: int = 1) -> PathMutator:
        """Move the start point of the closed subpath ``sub_idx`` forwards."""
        logger.debug("shift_sub_path_forward(%s, %s)", sub_idx, num_shifts)
        if self._find_sub_path_state_leaf(sub_idx).is_reversed:
            return self._shift(sub_idx, lambda o, n: floor_mod(o - num_shifts, n - 1))
        return self._shift(sub_idx, lambda o, n: (o + num_shifts) % (n - 1))

    def _shift(
        self, sub_idx: int, calc_offset: Callable[[int, int], int]
    ) -> PathMutator:
        sps = self._find_sub_path_state_leaf(sub_idx)
        if not _is_closed(sps):
            logger.warning("Ignoring attempt to shift non-closed subpath %s", sub_idx)
            return self
        self._set_sub_path_state_leaf(
            sub_idx,
            sps.mutate()
            .set_shift_offset(calc_offset(sps.shift_offset, sps.num_commands))
            .build(),
        )
        return self

    # --------------------------------------------------------------------------
    # Splitting and converting commands
    # --------------------------------------------------------------------------

    def split_command(self, sub_idx: int, cmd_idx: int, *ts: float) -> PathMutator:
        """
        Split the command ``(sub_idx, cmd_idx)`` at the times ``ts``.

        :raises ValueError: If no time is given.
        """
        logger.debug("split_command(%s, %s, %s)", sub_idx, cmd_idx, ts)
        if not ts:
            raise ValueError("Must specify at least one t value")
        target_cs, cs_idx, split_idx = self._find_reversed_and_shifted_internal_indices(
            sub_idx, cmd_idx
        )
        shift_offset = self._get_updated_shift_offset_after_split(
            sub_idx, cs_idx, len(ts)
        )
        sps = self._find_sub_path_state_leaf(sub_idx)
        if sps.is_reversed:
            ts = tuple(1 - t for t in ts)
        self._set_sub_path_state_leaf(
            sub_idx,
            sps.mutate()
            .set_shift_offset(shift_offset)
            .set_command_state(
                cs_idx, target_cs.mutate().split_at_index(split_idx, ts).build()
            )
            .build(),
        )
        return self

    def split_command_in_half(self, sub_idx: int, cmd_idx: int) -> PathMutator:
        """Split the command ``(sub_idx, cmd_idx)`` into two parts of equal length."""
        logger.debug("split_command_in_half(%s, %s)", sub_idx, cmd_idx)
        target_cs, cs_idx, split_idx = self._find_reversed_and_shifted_internal_indices(
            sub_idx, cmd_idx
        )
        shift_offset = self._get_updated_shift_offset_after_split(sub_idx, cs_idx, 1)
        self._set_sub_path_state_leaf(
            sub_idx,
            self._find_sub_path_state_leaf(sub_idx)
            .mutate()
            .set_shift_offset(shift_offset)
            .set_command_state(
                cs_idx, target_cs.mutate().split_in_half_at_index(split_idx).build()
            )
            .build(),
        )
        return self

    def _get_updated_shift_offset_after_split(
        self, sub_idx: int, cs_idx: int, num_splits: int
    ) -> int:
        # All splits happen within one command, so they all lie on the same
        # side of the shift pivot.
        shift_offset = self._find_sub_path_state_leaf(sub_idx).shift_offset
        if shift_offset and cs_idx <= shift_offset:
            return shift_offset + num_splits
        return shift_offset

    def unsplit_command(self, sub_idx: int, cmd_idx: int) -> PathMutator:
        """Remove the split point at the end of the command ``(sub_idx, cmd_idx)``."""
        logger.debug("unsplit_command(%s, %s)", sub_idx, cmd_idx)
        target_cs, cs_idx, split_idx = self._find_reversed_and_shifted_internal_indices(
            sub_idx, cmd_idx
        )
        sps = self._find_sub_path_state_leaf(sub_idx)
        unsplit_idx = split_idx - 1 if sps.is_reversed else split_idx
        if not 0 <= unsplit_idx < len(target_cs.mutations) - 1:
            # The end point lies on a command state boundary.
            logger.warning(
                "Ignoring attempt to unsplit non-split command (%s, %s)",
                sub_idx,
                cmd_idx,
            )
            return self
        self._set_sub_path_state_leaf(
            sub_idx,
            sps.mutate()
            .set_command_state(
                cs_idx, target_cs.mutate().unsplit_at_index(unsplit_idx).build()
            )
            .build(),
        )
        sps = self._find_sub_path_state_leaf(sub_idx)
        if sps.shift_offset and cs_idx <= sps.shift_offset:
            # Keep the positions of the remaining points in place.
            self._set_sub_path_state_leaf(
                sub_idx, sps.mutate().set_shift_offset(sps.shift_offset - 1).build()
            )
        return self

    def convert_command(
        self, sub_idx: int, cmd_idx: int, svg_char: SvgChar
    ) -> PathMutator:
        """Draw the command ``(sub_idx, cmd_idx)`` as ``svg_char``."""
        logger.debug("convert_command(%s, %s, %s)", sub_idx, cmd_idx, svg_char)
        target_cs, cs_idx, split_idx = self._find_reversed_and_shifted_internal_indices(
            sub_idx, cmd_idx
        )
        self._set_sub_path_state_leaf(
            sub_idx,
            self._find_sub_path_state_leaf(sub_idx)
            .mutate()
            .set_command_state(
                cs_idx, target_cs.mutate().convert_at_index(split_idx, svg_char).build()
            )
            .build(),
        )
        return self

    def unconvert_sub_path(self, sub_idx: int) -> PathMutator:
        """Undo all conversions in the subpath ``sub_idx``."""
        logger.debug("unconvert_sub_path(%s)", sub_idx)
        sps = self._find_sub_path_state_leaf(sub_idx)
        css = [
            cs if cs_idx == 0 else cs.mutate().unconvert_subpath().build()
            for cs_idx, cs in enumerate(sps.command_states)
        ]
        self._set_sub_path_state_leaf(sub_idx, sps.mutate().set_command_states(css).build())
        return self

    # --------------------------------------------------------------------------
    # Transformations
    # --------------------------------------------------------------------------

    def _map_command_states(self, fn: Callable[[CommandState], CommandState]) -> None:
        def recurse(sps: SubPathState) -> SubPathState:
            return (
                sps.mutate()
                .set_command_states([fn(cs) for cs in sps.command_states])
                .set_split_sub_paths([recurse(child) for child in sps.split_sub_paths])
                .build()
            )

        self._sub_path_state_map = [recurse(sps) for sps in self._sub_path_state_map]

    def transform(self, matrix: Matrix) -> PathMutator:
        """Apply ``matrix`` after all previously applied transformations."""
        logger.debug("transform(%s)", matrix)
        self._map_command_states(lambda cs: cs.mutate().transform(matrix).build())
        return self

    def add_transforms(self, matrices: Sequence[Matrix]) -> PathMutator:
        """Apply ``matrices``, flattened into one, on top of the current ones."""
        return self.transform(Matrix.flatten(matrices))

    def set_transforms(self, matrices: Sequence[Matrix]) -> PathMutator:
        """Replace all applied transformations by ``matrices``."""
        logger.debug("set_transforms(%s)", matrices)
        matrix = Matrix.flatten(matrices)
        self._map_command_states(lambda cs: cs.mutate().set_transform(matrix).build())
        return self

    # --------------------------------------------------------------------------
    # Moving, splitting and deleting subpaths
    # --------------------------------------------------------------------------

    def move_sub_path(self, from_sub_idx: int, to_sub_idx: int) -> PathMutator:
        """Move the subpath ``from_sub_idx`` to the position ``to_sub_idx``."""
        logger.debug("move_sub_path(%s, %s)", from_sub_idx, to_sub_idx)
        self._sub_path_ordering.insert(
            to_sub_idx, self._sub_path_ordering.pop(from_sub_idx)
        )
        return self

    def split_stroked_sub_path(self, sub_idx: int, cmd_idx: int) -> PathMutator:
        """
        Split the subpath ``sub_idx`` into two at the end point of ``cmd_idx``.

        A move to the split point starts the second subpath, which is
        inserted right after the first one.
        """
        logger.debug("split_stroked_sub_path(%s, %s)", sub_idx, cmd_idx)
        sps = self._find_sub_path_state_leaf(sub_idx)
        css = reverse_and_shift_command_states(
            sps.command_states, sps.is_reversed, sps.shift_offset
        )
        _, cs_idx, split_idx = _find_internal_indices(css, cmd_idx)
        start_css: list[CommandState] = list(css[:cs_idx])
        end_css: list[CommandState] = []
        split_point = css[cs_idx].commands[split_idx].end
        left, right = css[cs_idx].slice(split_idx)
        start_css.append(left)
        end_move_cs = CommandState(Command("M", (split_point, split_point)))
        if sps.is_reversed:
            end_move_cs = end_move_cs.mutate().reverse().build()
        end_css.append(end_move_cs)
        if right is not None:
            end_css.append(right)
        end_css.extend(css[cs_idx + 1 :])

        self._set_sub_path_state_leaf(
            sub_idx,
            sps.mutate()
            .set_split_sub_paths([SubPathState(start_css), SubPathState(end_css)])
            .build(),
        )
        self._update_ordering_after_split_sub_path(sub_idx)
        return self

    def delete_stroked_sub_path(self, sub_idx: int) -> PathMutator:
        """
        Undo the stroked split that created the subpath ``sub_idx``.

        The sibling subpath is merged back as well.

        :raises ValueError: If the subpath is not the result of a split.
        """
        logger.debug("delete_stroked_sub_path(%s)", sub_idx)
        parent = self._find_sub_path_state_parent(sub_idx)
        if parent is None:
            raise ValueError(f"Subpath {sub_idx} is not the result of a split")
        split_id = parent.split_sub_paths[0].command_states[-1].commands[-1].id
        mutator = parent.mutate().set_split_sub_paths([])
        self._delete_sps_split_point(parent.command_states, split_id, mutator)
        self._replace_sub_path_state_node(parent, mutator.build())
        self._update_ordering_after_unsplit_sub_path(sub_idx)
        return self

    def split_filled_sub_path(
        self, sub_idx: int, start_cmd_idx: int, end_cmd_idx: int
    ) -> PathMutator:
        """
        Split the closed subpath ``sub_idx`` along the line connecting the end
        points of ``start_cmd_idx`` and ``end_cmd_idx``.

        Consider the following subpath, split with ``start_cmd_idx=1`` and
        ``end_cmd_idx=4``::

            2-------------------3    xxxxxxxxxxxxxxxxxxxxx    1------->>>---------2
            |                   |    x                   x    |                   |
            |                   |    x                   x    ^                   v
            1                   4    1------->>>---------2    0-------<<<---------3
            |                   |    |                   |    x                   x
            |                   |    ^                   v    x                   x
            0-------------------5    0-------<<<---------3    xxxxxxxxxxxxxxxxxxxxx

        The two resulting subpaths share the new split segment, drawn in
        opposite directions, and together cover the area of the original.
        The order of the two command indices does not matter.
        """
        logger.debug(
            "split_filled_sub_path(%s, %s, %s)", sub_idx, start_cmd_idx, end_cmd_idx
        )
        target_sps = self._find_sub_path_state_leaf(sub_idx)
        target_css = reverse_and_shift_command_states(
            target_sps.command_states, target_sps.is_reversed, target_sps.shift_offset
        )

        _, start_cs_idx, start_split_idx = _find_internal_indices(
            target_css, start_cmd_idx
        )
        _, end_cs_idx, end_split_idx = _find_internal_indices(target_css, end_cmd_idx)
        if (start_cs_idx, start_split_idx) > (end_cs_idx, end_split_idx):
            start_cs_idx, start_split_idx, end_cs_idx, end_split_idx = (
                end_cs_idx,
                end_split_idx,
                start_cs_idx,
                start_split_idx,
            )

        # The first slice provides the end of the first subpath's boundary run
        # and the start of the second one's; the second slice vice versa.
        first_left, first_right = target_css[start_cs_idx].slice(start_split_idx)
        second_left, second_right = target_css[end_cs_idx].slice(end_split_idx)
        start_split_point = first_left.commands[start_split_idx].end
        end_split_point = second_left.commands[end_split_idx].end

        # Both lines share one id so that deleting either removes both.
        split_segment_id = new_id()
        end_line = (
            CommandState(Command("L", (end_split_point, start_split_point)))
            .mutate()
            .set_split_segment_info(second_left, split_segment_id)
            .build()
        )
        start_line = (
            CommandState(Command("L", (start_split_point, end_split_point)))
            .mutate()
            .set_split_segment_info(first_left, split_segment_id)
            .build()
        )

        start_css: list[CommandState] = []
        for i, cs in enumerate(target_css):
            if i < start_cs_idx or end_cs_idx < i:
                start_css.append(cs)
            elif i == start_cs_idx:
                start_css.extend([first_left, start_line])
            elif i == end_cs_idx and second_right is not None:
                start_css.append(second_right)

        end_css: list[CommandState] = []
        for i, cs in enumerate(target_css):
            if i == start_cs_idx:
                # The move starts a new split segment run and remembers the
                # state it was cut from, but carries no segment id.
                end_css.append(
                    CommandState(Command("M", (start_split_point, start_split_point)))
                    .mutate()
                    .set_split_segment_info(first_left, "")
                    .build()
                )
                if first_right is not None:
                    end_css.append(first_right)
            elif start_cs_idx < i < end_cs_idx:
                end_css.append(cs)
            elif i == end_cs_idx:
                end_css.extend([second_left, end_line])

        split_sub_paths = [SubPathState(start_css), SubPathState(end_css)]
        parent = self._find_sub_path_state_parent(sub_idx)
        parent_split_backing_ids = [
            cs.backing_id
            for cs in (parent.command_states if parent is not None else ())
            if cs.split_segment_id
        ]
        # Split segments of this subpath that were not inherited from the parent.
        sibling_split_backing_ids = [
            cs.backing_id
            for cs in target_sps.command_states
            if cs.split_segment_id and cs.backing_id not in parent_split_backing_ids
        ]

        new_states: list[SubPathState]
        if (
            any(sps is target_sps for sps in self._sub_path_state_map)
            or (
                first_right is not None
                and first_left.backing_id in sibling_split_backing_ids
            )
            or (
                second_right is not None
                and second_left.backing_id in sibling_split_backing_ids
            )
        ):
            # Add a new tree level below top-level subpaths and below subpaths
            # that are cut across one of their own split segments.
            new_states = [target_sps.mutate().set_split_sub_paths(split_sub_paths).build()]
        else:
            new_states = split_sub_paths

        self._replace_sub_path_state_node(target_sps, *new_states)
        self._update_ordering_after_split_sub_path(sub_idx)
        return self

    def delete_filled_sub_path(self, sub_idx: int) -> PathMutator:
        """
        Delete the split segments of the filled subpath ``sub_idx``.

        All adjacent subpaths sharing one of these segments are merged with it.
        """
        logger.debug("delete_filled_sub_path(%s)", sub_idx)
        target_css = self._find_sub_path_state_leaf(sub_idx).command_states
        parent = self._find_sub_path_state_parent(sub_idx)
        parent_split_seg_ids = _unique_split_segment_ids(
            parent.command_states if parent is not None else ()
        )
        sibling_split_seg_ids = [
            id
            for id in _unique_split_segment_ids(target_css)
            if id not in parent_split_seg_ids
        ]
        for id in sibling_split_seg_ids:
            target_cs = next(cs for cs in target_css if cs.split_segment_id == id)
            deleted_sub_idxs = self._calculate_deleted_sub_idxs(target_cs)
            self._delete_filled_sub_path_segment(sub_idx, target_cs)
            sub_idx -= sum(1 for idx in deleted_sub_idxs if idx <= sub_idx)
        return self

    def delete_filled_sub_path_segment(self, sub_idx: int, cmd_idx: int) -> PathMutator:
        """
        Delete the split segment ``(sub_idx, cmd_idx)`` and merge the two
        subpaths sharing it.
        """
        logger.debug("delete_filled_sub_path_segment(%s, %s)", sub_idx, cmd_idx)
        target_cs, _, _ = self._find_reversed_and_shifted_internal_indices(
            sub_idx, cmd_idx
        )
        return self._delete_filled_sub_path_segment(sub_idx, target_cs)

    def delete_sub_path_split_segment(
        self, first_sub_idx: int, second_sub_idx: int
    ) -> PathMutator:
        """
        Delete the split segment shared by the subpaths ``first_sub_idx`` and
        ``second_sub_idx`` and merge them.

        :raises ValueError: If the two subpaths share no split segment.
        """
        logger.debug(
            "delete_sub_path_split_segment(%s, %s)", first_sub_idx, second_sub_idx
        )
        second_ids = {
            cs.split_segment_id
            for cs in self._find_sub_path_state_leaf(second_sub_idx).command_states
            if cs.split_segment_id
        }
        shared = [
            cs
            for cs in self._find_sub_path_state_leaf(first_sub_idx).command_states
            if cs.split_segment_id in second_ids
        ]
        if not shared:
            raise ValueError(
                f"Subpaths {first_sub_idx} and {second_sub_idx} share no split segment"
            )
        # Segments inherited from an earlier split of the parent come last.
        parent = self._find_sub_path_state_parent(first_sub_idx)
        inherited = _unique_split_segment_ids(
            parent.command_states if parent is not None else ()
        )
        shared.sort(key=lambda cs: cs.split_segment_id in inherited)
        return self._delete_filled_sub_path_segment(first_sub_idx, shared[0])

    unsplit_stroked_sub_path = delete_stroked_sub_path
    unsplit_filled_sub_path = delete_filled_sub_path

    def _delete_filled_sub_path_segment(
        self, sub_idx: int, target_cs: CommandState
    ) -> PathMutator:
        target_sps_id = self._find_sub_path_state_leaf(sub_idx).id
        split_seg_id = target_cs.split_segment_id
        psps = self._find_split_segment_parent_node(split_seg_id)
        pssps = psps.split_sub_paths
        pcss = psps.command_states
        sharing = [
            i for i, sps in enumerate(pssps) if _contains_split_segment(sps, split_seg_id)
        ]
        split_sub_path_idx1, split_sub_path_idx2 = sharing[0], sharing[-1]
        deleted_sub_idxs = self._calculate_deleted_sub_idxs(target_cs)
        split_css1 = pssps[split_sub_path_idx1].command_states
        split_css2 = pssps[split_sub_path_idx2].command_states

        updated_split_sub_paths: list[SubPathState] = []
        if len(pssps) > 2:
            # Besides deleting the segment, the two subpaths next to it have
            # to be stitched together into one.
            parent_cs2 = split_css2[-1].parent_command_state
            assert parent_cs2 is not None
            parent_backing_id2 = parent_cs2.backing_id

            new_css: list[CommandState] = []
            # Walk the first subpath up to the first split.
            i, cs = 0, split_css1[0]
            for i, cs in enumerate(split_css1):
                if split_css1[i + 1].split_segment_id == split_seg_id:
                    break
                new_css.append(cs)
            parent_backing_cmd_idx1 = i
            if cs.backing_id == split_css2[1].backing_id:
                new_css.append(split_css2[1].merge(cs))
            else:
                new_css.extend([cs, split_css2[1]])

            # Walk the second subpath up to the second split.
            last_cs: CommandState | None = None
            for j in range(2, len(split_css2) - 1):
                last_cs = split_css2[j]
                if split_css2[j + 1].split_segment_id == split_seg_id:
                    break
                new_css.append(last_cs)

            i = next(
                (
                    k
                    for k, c in enumerate(split_css1)
                    if c.backing_id == parent_backing_id2
                ),
                -1,
            )
            if i >= 0:
                if last_cs is not None:
                    if split_css1[i].backing_id == last_cs.backing_id:
                        # The split created a new point, so reconstruct the
                        # command from its two halves.
                        new_css.append(split_css1[i].merge(last_cs))
                    else:
                        # The split was done at an existing point.
                        new_css.append(last_cs)
            else:
                i = parent_backing_cmd_idx1 + 1
                if last_cs is not None:
                    new_css.append(last_cs)
            new_css.extend(split_css1[i + 1 :])

            updated_split_sub_paths = list(pssps)
            updated_split_sub_paths[split_sub_path_idx1] = SubPathState(
                new_css, id=target_sps_id
            )
            del updated_split_sub_paths[split_sub_path_idx2]

        mutator = psps.mutate().set_split_sub_paths(updated_split_sub_paths)
        first_parent_cs = split_css2[0].parent_command_state
        second_parent_cs = split_css2[-1].parent_command_state
        assert first_parent_cs is not None and second_parent_cs is not None
        for split_cmd_id in (
            first_parent_cs.commands[-1].id,
            second_parent_cs.commands[-1].id,
        ):
            self._delete_sps_split_point(pcss, split_cmd_id, mutator)
        self._replace_sub_path_state_node(psps, mutator.build())
        for idx in deleted_sub_idxs:
            self._update_ordering_after_unsplit_sub_path(idx)
        return self

    def _calculate_deleted_sub_idxs(self, target_cs: CommandState) -> list[int]:
        """
        Subpath indices removed by deleting the split segment of ``target_cs``,
        in descending order.
        """
        split_seg_id = target_cs.split_segment_id
        psps = self._find_split_segment_parent_node(split_seg_id)
        sharing = [
            sps
            for sps in psps.split_sub_paths
            if _contains_split_segment(sps, split_seg_id)
        ]
        deleted = [
            *flatten_sub_path_states([sharing[0]]),
            *flatten_sub_path_states([sharing[-1]]),
        ]
        leaves = flatten_sub_path_states(self._sub_path_state_map)
        return sorted(
            (self._sub_path_ordering.index(leaves.index(sps)) for sps in deleted[1:]),
            reverse=True,
        )

    @staticmethod
    def _delete_sps_split_point(
        css: Sequence[CommandState], split_cmd_id: str, mutator: SubPathStateMutator
    ) -> None:
        """Unsplit the piece of ``css`` whose command has the id ``split_cmd_id``."""
        for cs_idx, cs in enumerate(css):
            ids = [cs.get_id_at_index(i) for i in range(len(cs.commands))]
            if split_cmd_id not in ids:
                continue
            split_idx = ids.index(split_cmd_id)
            if cs.is_split_at_index(split_idx):
                mutator.set_command_state(
                    cs_idx, cs.mutate().unsplit_at_index(split_idx).build()
                )
            return

    def _update_ordering_after_split_sub_path(self, sub_idx: int) -> None:
        # The second half directly follows the first one among the leaves.
        sps_idx = self._sub_path_ordering[sub_idx]
        self._sub_path_ordering = [
            i + 1 if sps_idx < i else i for i in self._sub_path_ordering
        ]
        self._sub_path_ordering.insert(sub_idx + 1, sps_idx + 1)

    def _update_ordering_after_unsplit_sub_path(self, sub_idx: int) -> None:
        sps_idx = self._sub_path_ordering.pop(sub_idx)
        self._sub_path_ordering = [
            i - 1 if sps_idx < i else i for i in self._sub_path_ordering
        ]

    # --------------------------------------------------------------------------
    # Collapsing subpaths
    # --------------------------------------------------------------------------

    def add_collapsing_sub_path(self, point: Point, num_commands: int) -> PathMutator:
        """Append a subpath of ``num_commands`` commands collapsed to ``point``."""
        logger.debug("add_collapsing_sub_path(%s, %s)", point, num_commands)
        prev_cmd = self._build_ordered_commands()[-1]
        css = [CommandState(Command("M", (prev_cmd.end, point)))]
        css.extend(
            CommandState(Command("L", (point, point))) for _ in range(1, num_commands)
        )
        self._sub_path_state_map.append(SubPathState(css))
        self._sub_path_ordering.append(len(self._sub_path_ordering))
        self._num_collapsing_sub_paths += 1
        return self

    def delete_collapsing_sub_paths(self) -> PathMutator:
        """Remove all collapsing subpaths, keeping the order of the others."""
        logger.debug("delete_collapsing_sub_paths()")
        num_sub_paths = len(self._sub_path_ordering)
        num_collapsing = self._num_collapsing_sub_paths
        sps_idx_to_sub_idx = [
            self._sub_path_ordering.index(sps_idx) for sps_idx in range(num_sub_paths)
        ]
        # Collapsing subpaths are always the last roots and leaves.
        del self._sub_path_state_map[len(self._sub_path_state_map) - num_collapsing :]
        del sps_idx_to_sub_idx[num_sub_paths - num_collapsing :]
        self._sub_path_ordering = [
            sps_idx
            for sub_idx in range(num_sub_paths)
            for sps_idx, s in enumerate(sps_idx_to_sub_idx)
            if s == sub_idx
        ]
        self._num_collapsing_sub_paths = 0
        return self

    # --------------------------------------------------------------------------
    # Reverting and building
    # --------------------------------------------------------------------------

    def revert(self) -> PathMutator:
        """Undo every staged and previous mutation."""
        logger.debug("revert()")
        self.delete_collapsing_sub_paths()
        self._sub_path_state_map = [sps.revert() for sps in self._sub_path_state_map]
        self._sub_path_ordering = list(range(len(self._sub_path_state_map)))
        return self

    def build(self) -> Path:
        from .path import Path
        from .path_state import PathState

        return Path(
            PathState(
                self._build_ordered_commands(),
                self._sub_path_state_map,
                self._sub_path_ordering,
                self._num_collapsing_sub_paths,
            )
        )

    def _build_ordered_commands(self) -> list[Command]:
        sps_cmds = [
            reverse_and_shift_commands(sps)
            for sps in flatten_sub_path_states(self._sub_path_state_map)
        ]
        ordered = [sps_cmds[sps_idx] for sps_idx in self._sub_path_ordering]
        commands: list[Command] = []
        for sub_idx, cmds in enumerate(ordered):
            move = cmds[0]
            # Each move starts where the previous subpath ended.
            if sub_idx == 0:
                if move.start is not None:
                    cmds[0] = move.mutate().set_points(None, move.end).build()
            else:
                start = ordered[sub_idx - 1][-1].end
                cmds[0] = move.mutate().set_points(start, move.end).build()
            commands.extend(cmds)
        return commands

    # --------------------------------------------------------------------------
    # Tree navigation
    # --------------------------------------------------------------------------

    def _find_sub_path_state_leaf(self, sub_idx: int) -> SubPathState:
        leaves = flatten_sub_path_states(self._sub_path_state_map)
        return leaves[self._sub_path_ordering[sub_idx]]

    def _set_sub_path_state_leaf(self, sub_idx: int, new_state: SubPathState) -> None:
        self._replace_sub_path_state_node(
            self._find_sub_path_state_leaf(sub_idx), new_state
        )

    def _find_sub_path_state_parent(self, sub_idx: int) -> SubPathState | None:
        """Immediate parent of the leaf shown as ``sub_idx``, if any."""
        parents: list[SubPathState | None] = []

        def recurse(
            level: Sequence[SubPathState], parent: SubPathState | None
        ) -> None:
            for state in level:
                if state.split_sub_paths:
                    recurse(state.split_sub_paths, state)
                else:
                    parents.append(parent)

        recurse(self._sub_path_state_map, None)
        return parents[self._sub_path_ordering[sub_idx]]

    def _find_reversed_and_shifted_internal_indices(
        self, sub_idx: int, cmd_idx: int
    ) -> tuple[CommandState, int, int]:
        """Like :func:`_find_internal_indices`, accounting for reversal and shift."""
        sps = self._find_sub_path_state_leaf(sub_idx)
        num_commands = sps.num_commands
        if cmd_idx and sps.is_reversed:
            cmd_idx = num_commands - cmd_idx
        cmd_idx += sps.shift_offset
        if cmd_idx >= num_commands:
            # Subtracting num_commands - 1 (and not num_commands) is intentional.
            cmd_idx -= num_commands - 1
        return _find_internal_indices(sps.command_states, cmd_idx)

    def _replace_sub_path_state_node(
        self, node: SubPathState, *new_states: SubPathState
    ) -> None:
        """
        Replace ``node``, located by identity, by ``new_states`` and rebuild
        its ancestors.
        """

        def recurse(states: list[SubPathState]) -> list[SubPathState] | None:
            for i, state in enumerate(states):
                if state is node:
                    states[i : i + 1] = new_states
                    return states
                children = recurse(list(state.split_sub_paths))
                if children is not None:
                    states[i] = state.mutate().set_split_sub_paths(children).build()
                    return states
            return None

        states = recurse(list(self._sub_path_state_map))
        assert states is not None, "subpath state not found"
        self._sub_path_state_map = states

    def _find_split_segment_parent_node(self, split_seg_id: str) -> SubPathState:
        """First node with a child containing the split segment ``split_seg_id``."""

        def recurse(states: Sequence[SubPathState]) -> SubPathState | None:
            for state in states:
                for sps in state.split_sub_paths:
                    if _contains_split_segment(sps, split_seg_id):
                        return state
                    parent = recurse([sps])
                    if parent is not None:
                        return parent
            return None

        parent = recurse(self._sub_path_state_map)
        if parent is None:
            raise ValueError(f"No split segment with id {split_seg_id!r}")
        return parent


# ------------------------------------------------------------------------------
# Reverse and shift pipeline
# ------------------------------------------------------------------------------


def reverse_and_shift_command_states(
    css: Sequence[CommandState], is_reversed: bool, shift_offset: int
) -> list[CommandState]:
    """
    Command states in visible order, used to build the children of a split.

    A trailing closepath is replaced by a line first.
    """
    new_css = list(css)
    new_css[-1] = css[-1].mutate().force_convert_closepaths_to_lines().build()
    return shift_command_states(
        reverse_command_states(new_css, is_reversed), is_reversed, shift_offset
    )


def reverse_command_states(
    css: list[CommandState], is_reversed: bool
) -> list[CommandState]:
    if not is_reversed:
        return css
    rev_css = [
        CommandState(
            Command("M", (css[0].commands[0].start, css[-1].commands[-1].end))
        )
    ]
    rev_css.extend(cs.mutate().reverse().build() for cs in reversed(css[1:]))
    return rev_css


def shift_command_states(
    css: list[CommandState], is_reversed: bool, shift_offset: int
) -> list[CommandState]:
    """Rotate ``css`` so that the visible subpath starts ``shift_offset`` commands later."""
    if not shift_offset or len(css) == 1:
        return css

    num_commands = sum(len(cs.commands) for cs in css)
    if is_reversed:
        shift_offset = num_commands - 1 - shift_offset

    counter = 0
    for target_cs_idx, target_cs in enumerate(css):
        size = len(target_cs.commands)
        if counter + size > shift_offset:
            target_split_idx = shift_offset - counter
            break
        counter += size
    else:
        raise IndexError(f"Shift offset {shift_offset} out of bounds")

    new_css = [
        CommandState(
            Command(
                "M",
                (css[0].commands[0].start, target_cs.commands[target_split_idx].end),
            )
        )
    ]
    left, right = target_cs.slice(target_split_idx)
    if right is not None:
        new_css.append(right)
    new_css.extend(css[target_cs_idx + 1 :])
    new_css.extend(css[1:target_cs_idx])
    new_css.append(left)
    return new_css


def reverse_and_shift_commands(sps: SubPathState) -> list[Command]:
    """The visible commands of the leaf ``sps``."""
    return shift_commands(sps, reverse_commands(sps))


def _closepath_to_line(cmd: Command) -> Command:
    # TODO: keep the closepath so that stroke-linejoin is preserved.
    return cmd.mutate().set_svg_char("L").set_points(*cmd.points).build()


def reverse_commands(sps: SubPathState) -> list[Command]:
    css = sps.command_states
    cmds = [cmd for cs in css for cmd in cs.commands]
    if not sps.is_reversed or len(cmds) == 1:
        return cmds

    cmds = []
    for cs in css:
        cs_cmds = list(cs.commands)
        if cs_cmds[0].svg_char != "M":
            # For A--B--C with AB split, the reversed C--B--A shows CB split.
            cs_cmds[0] = cs_cmds[0].mutate().toggle_split_point().build()
            cs_cmds[-1] = cs_cmds[-1].mutate().toggle_split_point().build()
        cmds.extend(cs_cmds)

    if cmds[-1].svg_char == "Z":
        cmds[-1] = _closepath_to_line(cmds[-1])

    new_cmds = [cmd.mutate().reverse().build() for cmd in reversed(cmds[1:])]
    new_cmds.insert(
        0, cmds[0].mutate().set_points(cmds[0].start, new_cmds[0].start).build()
    )
    return new_cmds


def shift_commands(sps: SubPathState, cmds: list[Command]) -> list[Command]:
    shift_offset = sps.shift_offset
    if (
        not shift_offset
        or len(cmds) == 1
        or not points_equal(cmds[0].end, cmds[-1].end)
    ):
        return cmds

    num_commands = len(cmds)
    if sps.is_reversed:
        shift_offset = num_commands - 1 - shift_offset

    if cmds[-1].svg_char == "Z":
        cmds[-1] = _closepath_to_line(cmds[-1])

    if shift_offset == 1:
        return [
            cmds[0].mutate().set_points(cmds[0].start, cmds[1].end).build(),
            *cmds[2:],
            cmds[1],
        ]
    if shift_offset == num_commands - 1:
        return [
            cmds[0]
            .mutate()
            .set_points(cmds[0].start, cmds[num_commands - 2].end)
            .build(),
            cmds[-1],
            *cmds[1:-1],
        ]

    # After the rotation, the original move is at num_commands - shift_offset.
    new_cmds = [cmds[(i + shift_offset) % num_commands] for i in range(num_commands)]
    prev_move = new_cmds.pop(num_commands - shift_offset)
    new_cmds.append(new_cmds.pop(0))
    new_cmds.insert(
        0, cmds[0].mutate().set_points(prev_move.start, new_cmds[-1].end).build()
    )
    return new_cmds
