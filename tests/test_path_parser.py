from __future__ import annotations

import pytest

from svg_path_morph.geometry import Matrix, Point
from svg_path_morph.path_parser import PathParser, commands_to_string, parse_commands


def test_move_to() -> None:
    """``m`` command parsing and validation."""
    with pytest.raises(ValueError):
        PathParser.parse("m 10")
    assert PathParser.parse("m 10 20") == [["m", "10", "20"]]


def test_exponents() -> None:
    """Exponent notation is supported."""
    assert PathParser.parse("m 1e3 2e-3") == [["m", "1e3", "2e-3"]]


def test_no_whitespace_between_negative_sign() -> None:
    """Allow negative sign to follow a number without whitespace."""
    assert PathParser.parse("M46-86") == [["M", "46", "-86"]]


def test_overloaded_move_to() -> None:
    """Implicit ``l`` following an ``m`` are expanded correctly."""
    assert PathParser.parse("m 12.5,52 39,0 0,-40 -39,0 z") == [
        ["m", "12.5", "52"],
        ["l", "39", "0"],
        ["l", "0", "-40"],
        ["l", "-39", "0"],
        ["z"],
    ]


def test_initial_move_missing() -> None:
    """Path must start with an ``M``/``m`` command."""
    with pytest.raises(ValueError, match="malformed"):
        PathParser.parse("l 1 1")


def test_curve_to() -> None:
    """``c`` command parsing and implicit repetition of command."""
    a = PathParser.parse("m0 0c 50,0 50,100 100,100 50,0 50,-100 100,-100")
    b = PathParser.parse("m0 0c 50,0 50,100 100,100 c 50,0 50,-100 100,-100")
    assert a == [
        ["m", "0", "0"],
        ["c", "50", "0", "50", "100", "100", "100"],
        ["c", "50", "0", "50", "-100", "100", "-100"],
    ]
    assert a == b


def test_line_to() -> None:
    """``l`` command parsing and validation."""
    with pytest.raises(ValueError, match="malformed"):
        PathParser.parse("m0 0l 10 10 0")

    assert PathParser.parse("m0 0l 10,10") == [["m", "0", "0"], ["l", "10", "10"]]
    assert PathParser.parse("m0 0l10 10 10 10") == [
        ["m", "0", "0"],
        ["l", "10", "10"],
        ["l", "10", "10"],
    ]


@pytest.mark.parametrize(
    "path,expected",
    [
        ("m0 0 h 10.5", [["m", "0", "0"], ["h", "10.5"]]),
        ("m0 0 v 10.5", [["m", "0", "0"], ["v", "10.5"]]),
        ("M10 80 Q 95 10 180 80", [["M", "10", "80"], ["Q", "95", "10", "180", "80"]]),
        ("M0 0 S 1 2, 3 4", [["M", "0", "0"], ["S", "1", "2", "3", "4"]]),
        ("M0 0 T 1 -200", [["M", "0", "0"], ["T", "1", "-200"]]),
        (
            "M0 0A 30 50 0 0 1 162.55 162.45",
            [["M", "0", "0"], ["A", "30", "50", "0", "0", "1", "162.55", "162.45"]],
        ),
        # Arc flags need no separator.
        (
            "M0 0A 60 60 0 01100 100",
            [["M", "0", "0"], ["A", "60", "60", "0", "0", "1", "100", "100"]],
        ),
        ("m0 0z", [["m", "0", "0"], ["z"]]),
    ],
)
def test_tokens(path: str, expected: list[list[str]]) -> None:
    assert PathParser.parse(path) == expected


def test_incomplete_arguments() -> None:
    with pytest.raises(ValueError):
        PathParser.parse("M0 0 t 1 2 3")
    with pytest.raises(ValueError):
        PathParser.parse("M0 0 A -1 1 0 0 1 5 5")


def _format(path: str) -> str:
    return commands_to_string(parse_commands(path))


def test_parse_commands_absolute() -> None:
    """Relative commands and ``H``/``V`` are turned into absolute lines."""
    assert _format("M-4-8h8v16h-8v-16") == "M -4 -8 L 4 -8 L 4 8 L -4 8 L -4 -8"
    assert _format("m 1 1 2 2 l 3 3") == "M 1 1 L 3 3 L 6 6"


def test_parse_commands_first_move() -> None:
    """The first move has no start point, later moves start at the current point."""
    cmds = parse_commands("M 1 2 L 3 4 M 5 6")
    assert cmds[0].start is None
    assert cmds[2].start == cmds[1].end


def test_parse_commands_close() -> None:
    """``Z`` returns to the start of the subpath."""
    cmds = parse_commands("M 1 1 L 5 1 L 5 5 Z L 0 3")
    assert cmds[3].svg_char == "Z"
    assert cmds[3].end == cmds[0].end
    assert cmds[4].start == cmds[0].end


def test_parse_commands_smooth_curves() -> None:
    """``S`` and ``T`` reflect the previous control point only after a curve."""
    assert _format("M 0 0 C 0 10 10 10 10 0 S 20 -10 20 0") == (
        "M 0 0 C 0 10 10 10 10 0 C 10 -10 20 -10 20 0"
    )
    assert _format("M 0 0 L 10 0 S 20 10 20 0") == "M 0 0 L 10 0 C 10 0 20 10 20 0"
    assert _format("M 0 0 Q 5 5 10 0 T 20 0") == "M 0 0 Q 5 5 10 0 Q 15 -5 20 0"
    assert _format("M 0 0 L 10 0 T 20 0") == "M 0 0 L 10 0 Q 10 0 20 0"


def test_parse_commands_arc() -> None:
    """Arcs become cubic curves ending exactly at the arc's end point."""
    cmds = parse_commands("M 0 0 A 10 10 0 0 1 20 0")
    assert cmds[0].svg_char == "M"
    assert len(cmds) >= 3
    assert all(cmd.svg_char == "C" for cmd in cmds[1:])
    assert cmds[-1].end == Point(20, 0)
    # The half circle passes through its lowest point.
    assert any(
        abs(cmd.end.x - 10) < 1e-6 and abs(abs(cmd.end.y) - 10) < 1e-6 for cmd in cmds
    )

    # Zero radii degenerate to a line.
    assert _format("M 0 0 A 0 10 0 0 1 20 0") == "M 0 0 L 20 0"


def test_commands_to_string_rounding() -> None:
    """Numbers are rounded to three decimals without trailing zeros."""
    assert _format("M 0.12345 -0.0001 L 1.5000 2") == "M 0.123 0 L 1.5 2"


def test_parse_commands_matrices() -> None:
    """Matrices are flattened, so the last one is applied first."""
    matrices = [Matrix.translation(1, 2), Matrix.scaling(2, 2)]
    cmds = parse_commands("M 1 1 L 2 3", matrices)
    assert cmds[0].start is None
    assert cmds[0].end == Point(3, 4)
    assert cmds[1].end == Point(5, 8)
