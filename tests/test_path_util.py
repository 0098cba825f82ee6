# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from dataclasses import dataclass

import pytest

from svg_path_morph import Path, interpolate
from svg_path_morph.path_util import (
    from_path_op_string,
    sort_path_ops,
    to_stroke_dash_array,
    to_stroke_dash_offset,
)


@dataclass(frozen=True)
class _Op:
    sub_idx: int
    cmd_idx: int


@pytest.mark.parametrize(
    "fraction,expected",
    [
        (0, "M 0 0 L 10 10 C 0 0 0 0 0 0"),
        (0.5, "M 5 5 L 15 5 C 1 1 2 2 3 3"),
        (1, "M 10 10 L 20 0 C 2 2 4 4 6 6"),
    ],
)
def test_interpolate(fraction: float, expected: str) -> None:
    start = Path("M 0 0 L 10 10 C 0 0 0 0 0 0")
    end = Path("M 10 10 L 20 0 C 2 2 4 4 6 6")
    path = interpolate(start, end, fraction)
    assert path.path_string == expected
    assert path.commands[0].start is None


def test_interpolate_unmorphable() -> None:
    with pytest.raises(ValueError, match="unmorphable"):
        interpolate(Path("M 0 0 L 10 10"), Path("M 0 0 Q 1 1 10 10"), 0.5)


def test_interpolate_after_alignment() -> None:
    start = from_path_op_string("M 0 0 L 10 0 L 10 10", "SIH 0 1")
    end = Path("M 0 0 L 0 10 L 10 10 L 20 10")
    assert start.is_morphable_with(end)
    assert interpolate(start, end, 0.5).path_string == "M 0 0 L 2.5 5 L 10 5 L 15 10"


def test_sort_path_ops() -> None:
    ops = [_Op(0, 2), _Op(1, 1), _Op(0, 5), _Op(1, 3)]
    assert sort_path_ops(ops) == [_Op(1, 3), _Op(1, 1), _Op(0, 5), _Op(0, 2)]


def test_sorted_splits_keep_indices_valid() -> None:
    mutator = Path("M 0 0 L 10 0 L 20 0").mutate()
    for op in sort_path_ops([_Op(0, 1), _Op(0, 2)]):
        mutator.split_command_in_half(op.sub_idx, op.cmd_idx)
    assert mutator.build().path_string == "M 0 0 L 5 0 L 10 0 L 15 0 L 20 0"


@pytest.mark.parametrize(
    "start,end,offset,expected_array,expected_offset",
    [
        (0, 1, 0, (100, 0.1), 100),
        (0, 0.5, 0, (50, 50.1), 100),
        (0.25, 0.75, 0, (50, 50.1), 75),
        # The shown part wraps around the end of the path.
        (0.75, 0.25, 0, (50, 50.1), 25),
        (0.25, 0.75, 0.5, (50, 50.1), 25),
    ],
)
def test_stroke_dash(
    start: float,
    end: float,
    offset: float,
    expected_array: tuple[float, float],
    expected_offset: float,
) -> None:
    assert to_stroke_dash_array(start, end, offset, 100) == pytest.approx(expected_array)
    assert to_stroke_dash_offset(start, end, offset, 100) == pytest.approx(
        expected_offset
    )


def test_op_script_transforms() -> None:
    path = from_path_op_string("M 0 0 L 1 0", "T scale 2 2 translate 1 1 SIH 0 1")
    assert path.path_string == "M 1 1 L 2 1 L 3 1"


@pytest.mark.parametrize(
    "ops,match",
    [
        ("XX 0", "Invalid path op"),
        ("RV", "expects 1 arguments"),
        ("CV 0 1 X", "Invalid svg char"),
    ],
)
def test_op_script_errors(ops: str, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        from_path_op_string("M 0 0 L 10 10", ops)
