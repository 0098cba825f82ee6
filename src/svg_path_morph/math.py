# This file is part of https://github.com/KurtBoehm/svg-path-editor.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, TypeAlias

if TYPE_CHECKING:
    import sympy as sp

Symbol: TypeAlias = "sp.Symbol"
Expr: TypeAlias = "sp.Expr"
Boolean: TypeAlias = "sp.logic.boolalg.Boolean"

#: Number of decimals kept by :func:`round_to` and all geometric comparisons.
ROUNDING_DIGITS: Final = 9

_number_strip_trailing_zeros: Final = re.compile(r"^(-?[0-9]*\.([0-9]*[1-9])?)0*$")
_number_strip_dot: Final = re.compile(r"\.$")

# ------------------------------------------------------------------------------
# Floating-point helpers
# ------------------------------------------------------------------------------


def floor_mod(num: int, max_num: int) -> int:
    """Floor modulus of ``num``, non-negative for positive ``max_num``."""
    return num % max_num


def lerp(a: float, b: float, t: float) -> float:
    """Linearly interpolate between ``a`` and ``b`` at time ``t``."""
    return a + (b - a) * t


def round_to(n: float, digits: int = ROUNDING_DIGITS) -> float:
    """
    Round ``n`` to ``digits`` decimals.

    Negative zero is normalized to ``0.0`` so that rounded values compare
    and print consistently.
    """
    return round(n, digits) + 0.0


def is_near_zero(n: float) -> bool:
    """``True`` iff ``n`` rounds to zero at :data:`ROUNDING_DIGITS` decimals."""
    return round_to(n) == 0


def format_number(v: float, d: int | None) -> str:
    """Format a float with optional fixed decimals and no trailing zeros."""
    s = f"{v:.{d}f}" if d is not None else str(v)
    s = _number_strip_trailing_zeros.sub(r"\1", s)
    s = _number_strip_dot.sub("", s)
    return "0" if s == "-0" else s


# ------------------------------------------------------------------------------
# Polynomial roots
# ------------------------------------------------------------------------------


@dataclass(frozen=True)
class Precision:
    """
    Digits used when the roots of float polynomials are classified with SymPy.

    :ivar baseline: Values below :math:`10^{-\\texttt{baseline}}` count as zero.
    :ivar additional: Guard digits used when evaluating numerically.
    """

    baseline: int
    additional: int

    @property
    def full(self) -> int:
        return self.baseline + self.additional


#: Precision used when solving the curve time polynomials.
ROOT_PRECISION: Final = Precision(12, 8)


def as_bool(r: Boolean) -> bool:
    """
    Coerce a SymPy Boolean to builtin :class:`bool`.

    :raises ValueError: If ``r`` cannot be simplified to a definite Boolean.
    """
    import sympy as sp

    r = sp.simplify(r)
    if isinstance(r, sp.logic.boolalg.BooleanTrue):
        return True
    if isinstance(r, sp.logic.boolalg.BooleanFalse):
        return False
    raise ValueError(f"Cannot be evaluated to a Boolean: {r}")


def sign(expr: Expr, *, n: Precision | None = None) -> int:
    """
    Sign of a real expression as ``-1``, ``0`` or ``1``.

    Without ``n`` the sign is decided symbolically. Otherwise ``expr`` is
    evaluated to ``n.full`` digits and magnitudes up to
    :math:`10^{-\\texttt{baseline}}` count as zero.

    :raises ValueError: If the symbolic comparison cannot be decided.
    """
    import sympy as sp

    if n is None:
        if as_bool(sp.Eq(expr, 0)):
            return 0
        return 1 if as_bool(sp.StrictGreaterThan(expr, 0)) else -1
    v = expr.evalf(n=n.full)
    if abs(v) <= 10 ** (-n.baseline):
        return 0
    return 1 if v > 0 else -1


def quadratic_roots(a1: Expr, a0: Expr, *, n: Precision | None = None) -> list[Expr]:
    r"""
    Real roots of the monic quadratic :math:`z^2 + a_1 z + a_0`.

    A discriminant that is zero within ``n`` yields a double root.
    """
    import sympy as sp

    disc = a1**2 - 4 * a0
    match sign(disc, n=n):
        case -1:
            return []
        case 0:
            return [-a1 / 2, -a1 / 2]
    sqrt_disc = sp.sqrt(disc)
    return [(-a1 + sqrt_disc) / 2, (-a1 - sqrt_disc) / 2]


def cubic_roots(
    a2: Expr, a1: Expr, a0: Expr, *, n: Precision | None = None
) -> list[Expr]:
    r"""
    Real roots of the monic cubic :math:`z^3 + a_2 z^2 + a_1 z + a_0`,
    following https://quarticequations.com/Selected_Algorithms.pdf.

    * :math:`r^2 + q^3 > 0`: one real root.
    * :math:`r^2 + q^3 ≤ 0`: three real roots (Viète’s trigonometric form).
    """
    import sympy as sp

    q = a1 / 3 - a2**2 / 9
    r = (a1 * a2 - 3 * a0) / 6 - a2**3 / 27

    if sign(r**2 + q**3, n=n) > 0:
        aa = (sp.Abs(r) + sp.sqrt(r**2 + q**3)) ** sp.Rational(1, 3)
        t1 = aa - q / aa if sign(r, n=n) >= 0 else q / aa - aa
        return [t1 - a2 / 3]

    if sign(q, n=n) == 0:
        theta = sp.S.Zero
    else:
        arg = r / ((-q) ** sp.Rational(3, 2))
        if sign(arg - 1, n=n) >= 0:
            theta = sp.S.Zero
        elif sign(arg + 1, n=n) <= 0:
            theta = sp.pi
        else:
            theta = sp.acos(arg)
    return [
        2 * sp.sqrt(-q) * sp.cos(theta / 3 + k * 2 * sp.pi / 3) - a2 / 3
        for k in (0, -1, 1)
    ]


def polynomial_roots(
    poly: Expr, x: Symbol, *, n: Precision | None = None
) -> dict[Expr, int]:
    """
    Real roots of a univariate polynomial up to degree 3, mapped to their
    multiplicities.

    :raises ValueError: If the polynomial degree is greater than 3 or for the
                        identically zero polynomial (infinitely many solutions).
    """
    import sympy as sp

    res: list[Expr]
    match sp.Poly(poly, x).all_coeffs():
        case [a3, a2, a1, a0]:
            res = cubic_roots(a2 / a3, a1 / a3, a0 / a3, n=n)
        case [a2, a1, a0]:
            res = quadratic_roots(a1 / a2, a0 / a2, n=n)
        case [a1, a0]:
            res = [-a0 / a1]
        case [a0]:
            if sign(a0) == 0:
                raise ValueError("Infinitely many solutions!")
            res = []
        case _:
            raise ValueError(
                f"Only polynomials up to degree 3 are supported, got {poly}"
            )
    return Counter(res)


def unit_interval_roots(coeffs: Sequence[float]) -> list[float]:
    """
    Real roots in :math:`[0, 1]` of a polynomial with float coefficients.

    ``coeffs`` are given in descending powers. Leading coefficients that are
    numerically zero relative to the largest one are dropped so that
    degenerate curves fall back to a lower degree. The roots are rounded to
    ten decimals, deduplicated and returned in ascending order.
    """
    import sympy as sp

    scale = max((abs(c) for c in coeffs), default=0.0)
    if scale == 0:
        return []
    trimmed = [c / scale for c in coeffs]
    while trimmed and abs(trimmed[0]) < 1e-12:
        trimmed.pop(0)
    if len(trimmed) < 2:
        return []

    x = sp.Symbol("x")
    degree = len(trimmed) - 1
    poly = sum(
        (sp.Float(c) * x ** (degree - i) for i, c in enumerate(trimmed) if c != 0),
        sp.S.Zero,
    )

    res: list[float] = []
    for root in polynomial_roots(poly, x, n=ROOT_PRECISION):
        z = complex(sp.N(root, ROOT_PRECISION.full))
        if abs(z.imag) > 1e-9:
            continue
        t = round_to(z.real, 10)
        if 0 <= t <= 1 and t not in res:
            res.append(t)
    return sorted(res)
