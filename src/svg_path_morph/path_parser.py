# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
SVG path data parsing and serialization.

:class:`PathParser` tokenizes path data following the SVG path grammar,
:func:`parse_commands` turns the tokens into absolute :class:`Command`
objects using only ``M``, ``L``, ``Q``, ``C`` and ``Z``, and
:func:`commands_to_string` writes such commands back as path data.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Final

from .command import Command
from .geometry import Matrix, Point
from .math import format_number

_command_type: Final = re.compile(r"[\t\n\f\r ]*([MLHVZCSQTAmlhvzcsqta])[\t\n\f\r ]*")
_flag: Final = re.compile(r"[01]")
_number: Final = re.compile(
    r"[+-]?(([0-9]*\.[0-9]+)|([0-9]+\.)|([0-9]+))([eE][+-]?[0-9]+)?"
)
_non_negative: Final = re.compile(
    r"(([0-9]*\.[0-9]+)|([0-9]+\.)|([0-9]+))([eE][+-]?[0-9]+)?"
)
_comma_whitespace: Final = re.compile(r"(([ \t\r\n]+,?[ \t\r\n]*)|(,[ \t\r\n]*))")

_grammar: Final[dict[str, tuple[re.Pattern[str], ...]]] = {
    "M": (_number, _number),
    "L": (_number, _number),
    "H": (_number,),
    "V": (_number,),
    "Z": (),
    "C": (_number,) * 6,
    "S": (_number,) * 4,
    "Q": (_number,) * 4,
    "T": (_number, _number),
    "A": (_non_negative, _non_negative, _number, _flag, _flag, _number, _number),
}


def _malformed(cursor: int) -> ValueError:
    return ValueError(f"malformed path (first error at {cursor})")


class PathParser:
    """Tokenizer for SVG path data."""

    @staticmethod
    def _components(
        cmd: str, path: str, cursor: int
    ) -> tuple[int, list[list[str]]]:
        """Read all argument groups following the command ``cmd`` at ``cursor``."""
        expected = _grammar[cmd.upper()]
        components: list[list[str]] = []
        while cursor <= len(path):
            component = [cmd]
            for regex in expected:
                match = regex.match(path, cursor)
                if match is not None:
                    component.append(match.group(0))
                    cursor = match.end()
                    ws = _comma_whitespace.match(path, cursor)
                    if ws is not None:
                        cursor = ws.end()
                elif len(component) == 1:
                    return cursor, components
                else:
                    raise _malformed(cursor)
            components.append(component)
            if not expected:
                return cursor, components
            # Additional coordinate pairs after a move are implicit lines.
            if cmd == "m":
                cmd = "l"
            elif cmd == "M":
                cmd = "L"
        raise _malformed(cursor)

    @staticmethod
    def parse(path: str) -> list[list[str]]:
        """
        Split ``path`` into ``[command, *arguments]`` lists.

        Implicitly repeated commands are expanded into separate lists.

        :raises ValueError: If the path data is malformed.
        """
        cursor = 0
        tokens: list[list[str]] = []
        while cursor < len(path):
            match = _command_type.match(path, cursor)
            if match is None:
                raise _malformed(cursor)
            cmd = match.group(1)
            if cursor == 0 and cmd.lower() != "m":
                raise _malformed(cursor)
            cursor, components = PathParser._components(cmd, path, match.end())
            tokens.extend(components)
        return tokens


# ------------------------------------------------------------------------------
# Elliptical arcs
# ------------------------------------------------------------------------------


def arc_to_beziers(
    start: Point,
    end: Point,
    rx: float,
    ry: float,
    rotation: float,
    large_arc: bool,
    sweep: bool,
) -> list[tuple[Point, Point, Point]]:
    """
    Approximate an SVG elliptical arc by cubic Béziers.

    The arc is cut into segments of at most a quarter turn each.

    :param rotation: Rotation of the ellipse axes in degrees.
    :return: ``(cp1, cp2, end)`` for each cubic segment. Empty if ``start``
        and ``end`` coincide.
    """
    theta = math.radians(rotation)
    cos_theta, sin_theta = math.cos(theta), math.sin(theta)

    while True:
        # Work in the coordinate system where the ellipse is the unit circle.
        x0p = (start.x * cos_theta + start.y * sin_theta) / rx
        y0p = (-start.x * sin_theta + start.y * cos_theta) / ry
        x1p = (end.x * cos_theta + end.y * sin_theta) / rx
        y1p = (-end.x * sin_theta + end.y * cos_theta) / ry
        dx, dy = x0p - x1p, y0p - y1p
        dsq = dx * dx + dy * dy
        if dsq == 0:
            return []
        disc = 1 / dsq - 1 / 4
        if disc >= 0:
            break
        # The radii are too small to reach the end point, so scale them up.
        adjust = math.sqrt(dsq) / 1.99999
        rx, ry = rx * adjust, ry * adjust

    s = math.sqrt(disc)
    xm, ym = (x0p + x1p) / 2, (y0p + y1p) / 2
    if large_arc == sweep:
        cx, cy = xm - s * dy, ym + s * dx
    else:
        cx, cy = xm + s * dy, ym - s * dx

    eta0 = math.atan2(y0p - cy, x0p - cx)
    eta1 = math.atan2(y1p - cy, x1p - cx)
    sweep_angle = eta1 - eta0
    if sweep != (sweep_angle >= 0):
        sweep_angle += -2 * math.pi if sweep_angle > 0 else 2 * math.pi

    cx, cy = cx * rx, cy * ry
    cx, cy = cx * cos_theta - cy * sin_theta, cx * sin_theta + cy * cos_theta

    num_segments = math.ceil(abs(sweep_angle * 4 / math.pi))
    angle_per_segment = sweep_angle / num_segments

    def derivative(eta: float) -> Point:
        sin_eta, cos_eta = math.sin(eta), math.cos(eta)
        return Point(
            -rx * cos_theta * sin_eta - ry * sin_theta * cos_eta,
            -rx * sin_theta * sin_eta + ry * cos_theta * cos_eta,
        )

    segments: list[tuple[Point, Point, Point]] = []
    e1, ep1, eta = start, derivative(eta0), eta0
    for i in range(num_segments):
        eta2 = eta + angle_per_segment
        e2 = Point(
            cx + rx * cos_theta * math.cos(eta2) - ry * sin_theta * math.sin(eta2),
            cy + rx * sin_theta * math.cos(eta2) + ry * cos_theta * math.sin(eta2),
        )
        ep2 = derivative(eta2)
        tan_diff = math.tan((eta2 - eta) / 2)
        alpha = math.sin(eta2 - eta) * (math.sqrt(4 + 3 * tan_diff * tan_diff) - 1) / 3
        if i == num_segments - 1:
            e2 = end
        segments.append((e1 + ep1 * alpha, e2 - ep2 * alpha, e2))
        e1, ep1, eta = e2, ep2, eta2
    return segments


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------


def _reflect(control: Point, about: Point) -> Point:
    return Point(2 * about.x - control.x, 2 * about.y - control.y)


def parse_commands(
    path: str, matrices: Sequence[Matrix] | None = None
) -> list[Command]:
    """
    Parse SVG path data into absolute commands.

    ``H`` and ``V`` become lines, ``S`` and ``T`` become full curves and arcs
    are approximated by cubic Béziers. The first move has no start point.

    :param matrices: Transformations combined by :meth:`Matrix.flatten`, so
        the last one is applied first.
    :raises ValueError: If the path data is malformed.
    """
    commands: list[Command] = []
    current: Point | None = None
    last_move: Point | None = None
    # Last control point of the previous command, for smooth curves.
    control: Point | None = None
    prev_char = ""

    for cmd, *args in PathParser.parse(path):
        values = [float(a) for a in args]
        char = cmd.upper()
        relative = cmd.islower() and current is not None

        def absolute(x: float, y: float) -> Point:
            if relative:
                assert current is not None
                return Point(current.x + x, current.y + y)
            return Point(x, y)

        next_control: Point | None = None
        match char:
            case "M":
                end = absolute(*values)
                commands.append(Command("M", (current, end)))
                last_move = end
            case "L":
                end = absolute(*values)
                commands.append(Command("L", (current, end)))
            case "H":
                assert current is not None
                x = values[0] + current.x if relative else values[0]
                end = Point(x, current.y)
                commands.append(Command("L", (current, end)))
            case "V":
                assert current is not None
                y = values[0] + current.y if relative else values[0]
                end = Point(current.x, y)
                commands.append(Command("L", (current, end)))
            case "C" | "S":
                assert current is not None
                if char == "C":
                    cp1 = absolute(values[0], values[1])
                    values = values[2:]
                elif control is not None and prev_char in ("C", "S"):
                    cp1 = _reflect(control, current)
                else:
                    cp1 = current
                cp2 = absolute(values[0], values[1])
                end = absolute(values[2], values[3])
                commands.append(Command("C", (current, cp1, cp2, end)))
                next_control = cp2
            case "Q" | "T":
                assert current is not None
                if char == "Q":
                    cp = absolute(values[0], values[1])
                    values = values[2:]
                elif control is not None and prev_char in ("Q", "T"):
                    cp = _reflect(control, current)
                else:
                    cp = current
                end = absolute(values[0], values[1])
                commands.append(Command("Q", (current, cp, end)))
                next_control = cp
            case "A":
                assert current is not None
                rx, ry, rotation, large_arc, sweep = values[:5]
                end = absolute(values[5], values[6])
                rx, ry = abs(rx), abs(ry)
                if rx == 0 or ry == 0:
                    commands.append(Command("L", (current, end)))
                else:
                    start = current
                    for cp1, cp2, seg_end in arc_to_beziers(
                        start, end, rx, ry, rotation, large_arc != 0, sweep != 0
                    ):
                        commands.append(Command("C", (start, cp1, cp2, seg_end)))
                        start = seg_end
            case "Z":
                assert current is not None and last_move is not None
                end = last_move
                commands.append(Command("Z", (current, end)))
            case _:
                raise ValueError(f"malformed path (unknown command {cmd})")

        current = end
        control = next_control
        prev_char = char

    if matrices:
        matrix = Matrix.flatten(matrices)
        commands = [cmd.mutate().transform(matrix).build() for cmd in commands]
    return commands


def commands_to_string(commands: Sequence[Command]) -> str:
    """
    Serialize absolute commands as path data.

    Every coordinate is rounded to three decimals, for example
    ``M 0 0 L 10 10 Z``.
    """
    tokens: list[str] = []
    for cmd in commands:
        tokens.append(cmd.svg_char)
        if cmd.svg_char == "Z":
            continue
        for p in cmd.points[1:]:
            assert p is not None
            tokens.append(format_number(p.x, 3))
            tokens.append(format_number(p.y, 3))
    return " ".join(tokens)
