# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Numeric quadratic and cubic Bézier curves backed by NumPy."""

from __future__ import annotations

from collections.abc import Sequence
from functools import cached_property
from math import comb
from typing import TYPE_CHECKING, Final

from .geometry import BBox, Line, Point, Projection
from .math import unit_interval_roots

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

#: Number of Gauss-Legendre nodes used for arc length integration.
_GAUSS_ORDER: Final = 24
#: Number of steps of the lookup table used by :meth:`Bezier.project`.
_LUT_STEPS: Final = 100
#: Tolerance of the bounding box filter applied to intersections.
_BBOX_EPSILON: Final = 1e-6


def _between(v: float, lo: float, hi: float) -> bool:
    return (
        lo <= v <= hi or abs(v - lo) <= _BBOX_EPSILON or abs(v - hi) <= _BBOX_EPSILON
    )


class Bezier:
    r"""
    Quadratic or cubic Bézier curve

    .. math::

        B(t) = \sum_{i=0}^{n} \binom{n}{i} (1 - t)^{n - i} t^i P_i,
        \quad t \in [0, 1].

    :param points: The ``3`` or ``4`` control points.
    """

    def __init__(self, points: Sequence[Point]) -> None:
        import numpy as np

        if len(points) not in (3, 4):
            raise ValueError(f"Bezier curves need 3 or 4 points, got {len(points)}")
        self.points: tuple[Point, ...] = tuple(points)
        self._coords: npt.NDArray[np.float64] = np.array(
            [[p.x, p.y] for p in points], dtype=np.float64
        )

    @property
    def order(self) -> int:
        return len(self.points) - 1

    # ---- evaluation --------------------------------------------------------------

    def _evaluate(self, ts: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Evaluate the curve at all ``ts``; returns an array of shape ``(len(ts), 2)``."""
        import numpy as np

        n = self.order
        basis = np.stack(
            [comb(n, i) * (1 - ts) ** (n - i) * ts**i for i in range(n + 1)], axis=1
        )
        return basis @ self._coords

    def _derivative(self, ts: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        import numpy as np

        n = self.order
        deltas = n * np.diff(self._coords, axis=0)
        basis = np.stack(
            [comb(n - 1, i) * (1 - ts) ** (n - 1 - i) * ts**i for i in range(n)],
            axis=1,
        )
        return basis @ deltas

    def compute(self, t: float) -> Point:
        """The point :math:`B(t)`; the end points are returned exactly."""
        import numpy as np

        if t == 0:
            return self.points[0]
        if t == 1:
            return self.points[-1]
        x, y = self._evaluate(np.array([t], dtype=np.float64))[0]
        return Point(float(x), float(y))

    @cached_property
    def length(self) -> float:
        r"""
        Arc length

        .. math::

            \int_0^1 \| B'(t) \|_2 \, dt

        approximated by Gauss-Legendre quadrature.
        """
        import numpy as np

        nodes, weights = np.polynomial.legendre.leggauss(_GAUSS_ORDER)
        ts = 0.5 * nodes + 0.5
        speeds = np.hypot(*self._derivative(ts).T)
        return float(0.5 * np.dot(weights, speeds))

    # ---- subdivision -------------------------------------------------------------

    def hull(self, t: float) -> list[list[Point]]:
        """All de Casteljau levels at time ``t``, starting with the control points."""
        levels = [list(self.points)]
        while len(levels[-1]) > 1:
            prev = levels[-1]
            levels.append(
                [
                    Point(
                        a.x + (b.x - a.x) * t,
                        a.y + (b.y - a.y) * t,
                    )
                    for a, b in zip(prev, prev[1:])
                ]
            )
        return levels

    def split_at(self, t: float) -> tuple[Bezier, Bezier]:
        """Split the curve at ``t`` into its left and right part."""
        levels = self.hull(t)
        left = [level[0] for level in levels]
        right = [level[-1] for level in reversed(levels)]
        return Bezier(left), Bezier(right)

    def split(self, t1: float, t2: float) -> Bezier:
        """The part of the curve between ``t1`` and ``t2``."""
        if t1 == 0:
            return self.split_at(t2)[0]
        if t2 == 1:
            return self.split_at(t1)[1]
        right = self.split_at(t1)[1]
        return right.split_at((t2 - t1) / (1 - t1))[0]

    # ---- queries -----------------------------------------------------------------

    def project(self, point: Point) -> Projection:
        """
        Closest point on the curve to ``point``.

        A coarse lookup table locates the neighbourhood of the closest point,
        which is then refined with a ten times finer linear search.
        """
        import numpy as np

        lut = self._evaluate(np.linspace(0, 1, _LUT_STEPS + 1))
        dists = np.hypot(lut[:, 0] - point.x, lut[:, 1] - point.y)
        mpos = int(np.argmin(dists))
        mdist = float(dists[mpos]) + 1

        t1, t2 = (mpos - 1) / _LUT_STEPS, (mpos + 1) / _LUT_STEPS
        step = 0.1 / _LUT_STEPS
        ts = np.arange(t1, t2 + step, step)
        fine = self._evaluate(ts)
        fine_dists = np.hypot(fine[:, 0] - point.x, fine[:, 1] - point.y)
        best = int(np.argmin(fine_dists))

        ft = t1
        if fine_dists[best] < mdist:
            mdist = float(fine_dists[best])
            ft = float(ts[best])
        ft = min(max(ft, 0.0), 1.0)
        p = self.compute(ft)
        return Projection(x=p.x, y=p.y, d=mdist, t=ft)

    def bbox(self) -> BBox:
        """Tight bounding box computed from the extrema of both coordinates."""
        d = [b - a for a, b in zip(self.points, self.points[1:])]
        ts = {0.0, 1.0}
        for axis in ("x", "y"):
            coeffs = [getattr(p, axis) for p in d]
            if self.order == 2:
                # d0 (1 - t) + d1 t
                poly = [coeffs[1] - coeffs[0], coeffs[0]]
            else:
                # d0 (1 - t)^2 + 2 d1 (1 - t) t + d2 t^2
                d0, d1, d2 = coeffs
                poly = [d0 - 2 * d1 + d2, 2 * (d1 - d0), d0]
            ts.update(unit_interval_roots(poly))
        return BBox.of_points(self.compute(t) for t in sorted(ts))

    def intersects(self, line: Line) -> list[float]:
        """
        Curve times at which the curve crosses ``line``.

        The curve is expressed in terms of the signed distance of its control
        points to the infinite line, whose roots are then restricted to those
        within the bounding box of the line segment.
        """
        p1, p2 = line.p1, line.p2
        angle_dx, angle_dy = p2.x - p1.x, p2.y - p1.y
        ds = [
            (p.y - p1.y) * angle_dx - (p.x - p1.x) * angle_dy for p in self.points
        ]
        if self.order == 2:
            d0, d1, d2 = ds
            poly = [d0 - 2 * d1 + d2, 2 * (d1 - d0), d0]
        else:
            d0, d1, d2, d3 = ds
            poly = [
                -d0 + 3 * d1 - 3 * d2 + d3,
                3 * d0 - 6 * d1 + 3 * d2,
                -3 * d0 + 3 * d1,
                d0,
            ]

        mx, mxx = min(p1.x, p2.x), max(p1.x, p2.x)
        my, myy = min(p1.y, p2.y), max(p1.y, p2.y)
        res: list[float] = []
        for t in unit_interval_roots(poly):
            p = self.compute(t)
            if _between(p.x, mx, mxx) and _between(p.y, my, myy):
                res.append(t)
        return res

