# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
The complete state of a path.

A :class:`PathState` combines the split trees of all subpath states with the
*subpath ordering*, which maps client-visible subpath indices to positions in
the flattened list of leaf states, and derives the visible subpaths and
commands from them.

Two index spaces are used throughout: ``sub_idx``/``cmd_idx`` address the
visible subpaths and commands, while ``sps_idx``/``cs_idx``/``split_idx``
address leaf states, their command states and the pieces of those.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .command import Command
from .command_state import CommandState
from .geometry import Line, Point, Projection, Rect, distance
from .path_parser import parse_commands
from .sub_path import SubPath, create_sub_paths
from .sub_path_state import SubPathState, find_sub_path_state

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class ProjectionOntoPath:
    """A :class:`Projection` onto the visible command ``(sub_idx, cmd_idx)``."""

    sub_idx: int
    cmd_idx: int
    projection: Projection


@dataclass(frozen=True)
class HitOptions:
    """
    Options of :meth:`PathState.hit_test`.

    :ivar is_point_in_range: Tests whether a command end point at the given
        distance counts as a hit.
    :ivar is_segment_in_range: Tests whether a segment at the given distance
        counts as a hit.
    :ivar find_shapes_in_range: Whether to test the filled closed subpaths.
    :ivar restrict_to_sub_idx: Only consider these subpaths.
    """

    is_point_in_range: Callable[[float, Command], bool] | None = None
    is_segment_in_range: Callable[[float, Command], bool] | None = None
    find_shapes_in_range: bool = False
    restrict_to_sub_idx: Sequence[int] | None = None


@dataclass(frozen=True)
class HitResult:
    end_point_hits: tuple[ProjectionOntoPath, ...] = ()
    segment_hits: tuple[ProjectionOntoPath, ...] = ()
    shape_hits: tuple[int, ...] = ()

    @property
    def is_end_point_hit(self) -> bool:
        return bool(self.end_point_hits)

    @property
    def is_segment_hit(self) -> bool:
        return bool(self.segment_hits)

    @property
    def is_shape_hit(self) -> bool:
        return bool(self.shape_hits)

    @property
    def is_hit(self) -> bool:
        return self.is_end_point_hit or self.is_segment_hit or self.is_shape_hit


@dataclass(frozen=True)
class CommandStateInfo:
    """Location of a visible command within the subpath states."""

    sps: SubPathState
    cs: CommandState
    split_idx: int


def create_bounding_box(css: Iterable[CommandState]) -> Rect:
    """Smallest rectangle containing the bounding boxes of all ``css``."""
    l, t, r, b = math.inf, math.inf, -math.inf, -math.inf
    for cs in css:
        bbox = cs.get_bounding_box()
        for x, y in (
            (bbox.x.min, bbox.y.min),
            (bbox.x.max, bbox.y.min),
            (bbox.x.min, bbox.y.max),
            (bbox.x.max, bbox.y.max),
        ):
            if math.isnan(x) or math.isnan(y):
                continue
            l, t, r, b = min(x, l), min(y, t), max(x, r), max(y, b)
    return Rect(l, t, r, b)


class PathState:
    """
    Immutable path state.

    :param obj: Path data or the list of commands of the unmutated path.
    :param sub_path_state_map: Split tree roots, one per source subpath,
        followed by the ``num_collapsing_sub_paths`` collapsing subpaths.
    :param sub_path_ordering: Maps visible subpath indices to leaf positions.
    :param num_collapsing_sub_paths: Number of collapsing subpaths at the end
        of ``sub_path_state_map``.
    """

    def __init__(
        self,
        obj: str | Sequence[Command],
        sub_path_state_map: Sequence[SubPathState] | None = None,
        sub_path_ordering: Sequence[int] | None = None,
        num_collapsing_sub_paths: int = 0,
    ) -> None:
        commands = parse_commands(obj) if isinstance(obj, str) else list(obj)
        sub_paths = create_sub_paths(commands)
        self.sub_path_state_map: tuple[SubPathState, ...] = (
            tuple(sub_path_state_map)
            if sub_path_state_map is not None
            else tuple(
                SubPathState([CommandState(c) for c in s.commands]) for s in sub_paths
            )
        )
        self.sub_path_ordering: tuple[int, ...] = (
            tuple(sub_path_ordering)
            if sub_path_ordering is not None
            else tuple(range(len(sub_paths)))
        )
        self.num_collapsing_sub_paths = num_collapsing_sub_paths

        self.sub_paths: tuple[SubPath, ...] = tuple(
            self._build_sub_path(sub_path, sub_idx)
            for sub_idx, sub_path in enumerate(sub_paths)
        )
        self.commands: tuple[Command, ...] = tuple(
            cmd for sub_path in self.sub_paths for cmd in sub_path.commands
        )

    def _build_sub_path(self, sub_path: SubPath, sub_idx: int) -> SubPath:
        cmds = []
        for cmd_idx, cmd in enumerate(sub_path.commands):
            info = self.find_command_state_info(sub_idx, cmd_idx)
            cmd_id = info.cs.get_id_at_index(info.split_idx)
            cmds.append(cmd.mutate().set_id(cmd_id).build())
        sps_idx = self.sub_path_ordering[sub_idx]
        sps = self.find_sub_path_state(sub_idx)
        is_split_leaf = all(s is not sps for s in self.sub_path_state_map)
        is_collapsing = (
            len(self.sub_path_ordering) - self.num_collapsing_sub_paths <= sps_idx
        )
        return (
            sub_path.mutate()
            .set_id(sps.id)
            .set_commands(cmds)
            .set_is_collapsing(is_collapsing)
            .set_is_reversed(sps.is_reversed)
            .set_shift_offset(sps.shift_offset)
            .set_is_split(is_split_leaf)
            .set_is_unsplittable(is_split_leaf)
            .build()
        )

    # ---- lengths -----------------------------------------------------------------

    @property
    def path_length(self) -> float:
        return sum(self.get_sub_path_length(i) for i in range(len(self.sub_paths)))

    def get_sub_path_length(self, sub_idx: int) -> float:
        sps = self.find_sub_path_state(sub_idx)
        return sum(cs.path_length for cs in sps.command_states)

    def get_point_at_length(self, distance: float) -> Point | None:
        """The point at arc length ``distance``, or ``None`` past the end."""
        length = 0.0
        for sub_idx in range(len(self.sub_paths)):
            for cs in self.find_sub_path_state(sub_idx).command_states:
                cs_length = cs.path_length
                if length <= distance < length + cs_length:
                    return cs.get_point_at_length(distance - length)
                length += cs_length
        return None

    # ---- projection and hit testing ------------------------------------------------

    def _candidate_sub_idxs(self, restrict: Iterable[int] | None) -> list[int]:
        allowed = None if restrict is None else set(restrict)
        return [
            sub_idx
            for sub_idx, sub_path in enumerate(self.sub_paths)
            if not sub_path.is_collapsing and (allowed is None or sub_idx in allowed)
        ]

    def _project_onto_command_states(
        self, point: Point, sub_idx: int
    ) -> list[ProjectionOntoPath]:
        sps_idx = self.sub_path_ordering[sub_idx]
        sps = self.find_sub_path_state(sub_idx)
        res: list[ProjectionOntoPath] = []
        for cs_idx, cs in enumerate(sps.command_states):
            cs_projection = cs.project(point)
            if cs_projection is None:
                continue
            projection = cs_projection.projection
            if sps.is_reversed:
                projection = Projection(
                    x=projection.x, y=projection.y, d=projection.d, t=1 - projection.t
                )
            cmd_idx = self.to_cmd_idx(sps_idx, cs_idx, cs_projection.split_idx)
            res.append(ProjectionOntoPath(sub_idx, cmd_idx, projection))
        return res

    def project(
        self, point: Point, restrict_to_sub_idx: int | None = None
    ) -> ProjectionOntoPath | None:
        """
        Closest point on the path to ``point``.

        On distance ties, later subpaths win since they are drawn on top.
        Within a subpath, the first command wins.
        """
        restrict = None if restrict_to_sub_idx is None else [restrict_to_sub_idx]
        best: ProjectionOntoPath | None = None
        for sub_idx in reversed(self._candidate_sub_idxs(restrict)):
            for candidate in self._project_onto_command_states(point, sub_idx):
                if best is None or candidate.projection.d < best.projection.d:
                    best = candidate
        return best

    def hit_test(self, point: Point, opts: HitOptions | None = None) -> HitResult:
        """
        Test ``point`` against the end points, the segments and the filled
        shapes of the path, as enabled by ``opts``.

        End point hits are sorted by distance, preferring split points on ties.
        Shape hits are tested from the topmost subpath down and stop at the
        first hit.
        """
        opts = HitOptions() if opts is None else opts
        sub_idxs = self._candidate_sub_idxs(opts.restrict_to_sub_idx)

        end_point_hits: list[tuple[ProjectionOntoPath, Command]] = []
        if opts.is_point_in_range is not None:
            for sub_idx in sub_idxs:
                for cmd_idx, cmd in enumerate(self.sub_paths[sub_idx].commands):
                    end = cmd.end
                    d = distance(end, point)
                    if opts.is_point_in_range(d, cmd):
                        projection = Projection(x=end.x, y=end.y, d=d, t=1)
                        end_point_hits.append(
                            (ProjectionOntoPath(sub_idx, cmd_idx, projection), cmd)
                        )
            end_point_hits.sort(key=lambda hit: (hit[0].projection.d, not hit[1].is_split_point))

        segment_hits: list[ProjectionOntoPath] = []
        if opts.is_segment_in_range is not None:
            for sub_idx in sub_idxs:
                for hit in self._project_onto_command_states(point, sub_idx):
                    cmd = self.sub_paths[sub_idx].commands[hit.cmd_idx]
                    if opts.is_segment_in_range(hit.projection.d, cmd):
                        segment_hits.append(hit)

        shape_hits: list[int] = []
        if opts.find_shapes_in_range:
            for sub_idx in reversed(sub_idxs):
                if not self.sub_paths[sub_idx].is_closed:
                    continue
                if self._is_shape_hit(point, sub_idx):
                    shape_hits.append(sub_idx)
                    break

        return HitResult(
            tuple(hit for hit, _ in end_point_hits),
            tuple(segment_hits),
            tuple(shape_hits),
        )

    def _is_shape_hit(self, point: Point, sub_idx: int) -> bool:
        """Even-odd test of ``point`` against the closed subpath ``sub_idx``."""
        css = self.find_sub_path_state(sub_idx).command_states
        bounds = create_bounding_box(css)
        if not bounds.contains_point(point):
            return False
        # Cast a ray to a point that is guaranteed to lie outside the subpath.
        line = Line(point, Point(bounds.r + 1, bounds.b + 1))
        num_intersections = sum(len(cs.intersects(line)) for cs in css)
        return num_intersections % 2 == 1

    # ---- shape queries -------------------------------------------------------------

    def get_pole_of_inaccessibility(self, sub_idx: int) -> Point:
        """
        Interior point of the subpath farthest from its outline.

        The outline is approximated by the polygon through the command end
        points; an open subpath is closed by a straight line.
        """
        from shapely.geometry import Polygon
        from shapely.ops import polylabel

        sub_path = self.sub_paths[sub_idx]
        cmds = sub_path.commands[1:]
        polygon: list[tuple[float, float]] = []
        for cmd in cmds:
            assert cmd.start is not None
            polygon.extend([(cmd.start.x, cmd.start.y), (cmd.end.x, cmd.end.y)])
        if cmds and not sub_path.is_closed:
            first = cmds[0].start
            assert first is not None
            polygon.extend([(first.x, first.y), (cmds[-1].end.x, cmds[-1].end.y)])

        ring = [p for i, p in enumerate(polygon) if i == 0 or p != polygon[i - 1]]
        if len(set(ring)) < 3:
            # No area: fall back to the centroid of the points.
            pts = ring or [(sub_path.commands[0].end.x, sub_path.commands[0].end.y)]
            return Point(
                sum(x for x, _ in pts) / len(pts), sum(y for _, y in pts) / len(pts)
            )
        pole = polylabel(Polygon(ring), tolerance=1.0)
        return Point(pole.x, pole.y)

    def get_bounding_box(self) -> Rect:
        return create_bounding_box(
            cs for sps in self.sub_path_state_map for cs in sps.command_states
        )

    def is_clockwise(self, sub_idx: int) -> bool:
        """
        Orientation of the polygon through the command end points, as drawn
        with the y axis pointing down. Degenerate subpaths count as clockwise.
        """
        cmds = self.sub_paths[sub_idx].commands
        area = 0.0
        for i, cmd in enumerate(cmds):
            x0, y0 = cmd.end
            x1, y1 = cmds[(i + 1) % len(cmds)].end
            area += x0 * y1 - x1 * y0
        return area >= 0

    # ---- index bookkeeping ---------------------------------------------------------

    def find_sub_path_state(self, sub_idx: int) -> SubPathState:
        """The leaf state drawn as the visible subpath ``sub_idx``."""
        return find_sub_path_state(
            self.sub_path_state_map, self.sub_path_ordering[sub_idx]
        )

    def find_command_state_info(self, sub_idx: int, cmd_idx: int) -> CommandStateInfo:
        """
        Locate the visible command ``(sub_idx, cmd_idx)`` within the states.

        :raises IndexError: If the command does not exist.
        """
        sps = self.find_sub_path_state(sub_idx)
        num_cmds = sps.num_commands
        if cmd_idx and sps.is_reversed:
            cmd_idx = num_cmds - cmd_idx
        cmd_idx += sps.shift_offset
        if cmd_idx >= num_cmds:
            # Subtracting num_cmds (and not num_cmds - 1) is intentional.
            cmd_idx -= num_cmds
        counter = 0
        for cs in sps.command_states:
            if counter + len(cs.commands) > cmd_idx:
                return CommandStateInfo(sps, cs, cmd_idx - counter)
            counter += len(cs.commands)
        raise IndexError(f"No command state for command {cmd_idx} of subpath {sub_idx}")

    def to_cmd_idx(self, sps_idx: int, cs_idx: int, split_idx: int) -> int:
        """Inverse of :meth:`find_command_state_info`."""
        sps = self.find_sub_path_state(self.sub_path_ordering.index(sps_idx))
        num_cmds = sps.num_commands
        cmd_idx = split_idx + sum(
            len(cs.commands) for cs in sps.command_states[:cs_idx]
        )
        shift_offset = sps.shift_offset
        if sps.is_reversed:
            cmd_idx = num_cmds - cmd_idx
            shift_offset = num_cmds - 1 - shift_offset
        if shift_offset:
            cmd_idx += num_cmds - shift_offset - 1
            if cmd_idx >= num_cmds:
                cmd_idx = cmd_idx - num_cmds + 1
        return cmd_idx
