from __future__ import annotations

from dataclasses import dataclass

from scipy import optimize

from ..exceptions import NumericalFailureError
from ..typing import ScalarFn

# ---------------------------
# Results + Exceptions
# ---------------------------


@dataclass(frozen=True, slots=True)
class RootResult:
    root: float
    converged: bool
    iterations: int
    method: str
    f_at_root: float
    bracket: tuple[float, float] | None = None


class RootFindingError(NumericalFailureError):
    """Base class for root-finding failures."""


class NotBracketedError(RootFindingError):
    """Raised when a bracketing method is called without a valid sign change."""


class NoConvergenceError(RootFindingError):
    """Raised when the method fails to converge within max_iter."""


class NoBracketError(NotBracketedError):
    """Raised by bracket_root when it cannot find a bracketing interval."""


# ---------------------------
# Bracketing
# ---------------------------


def bracket_root(
    Fn: ScalarFn,
    lo: float,
    hi: float,
    *,
    grow: float = 1.6,
    max_steps: int = 50,
) -> tuple[float, float]:
    """
    Widen ``[lo, hi]`` geometrically until ``Fn`` changes sign over it.

    At each step the end with the smaller ``|Fn|`` is pushed outwards by
    ``grow`` times the current width.

    Returns (lo, hi) such that Fn(lo) == 0 or Fn(hi) == 0 or Fn(lo)*Fn(hi) < 0.
    """
    if hi == lo:
        raise ValueError("Require lo != hi.")
    if grow <= 0.0:
        raise ValueError("Require grow > 0.")
    a, b = (lo, hi) if lo < hi else (hi, lo)

    fa = Fn(a)
    fb = Fn(b)
    for _ in range(max_steps):
        if fa == 0.0 or fb == 0.0 or fa * fb < 0:
            return a, b
        if abs(fa) < abs(fb):
            a += grow * (a - b)
            fa = Fn(a)
        else:
            b += grow * (b - a)
            fb = Fn(b)

    if fa == 0.0 or fb == 0.0 or fa * fb < 0:
        return a, b
    raise NoBracketError(
        f"No bracket found after {max_steps} expansions; last interval [{a:.6g}, {b:.6g}]."
    )


# ---------------------------
# Root finders
# ---------------------------


def ridder_method(
    Fn: ScalarFn,
    lo: float,
    hi: float,
    *,
    tol_x: float = 1e-8,
    max_iter: int = 100,
) -> RootResult:
    """Ridder's method on a bracketing interval (``scipy.optimize.ridder``)."""
    a, b = (lo, hi) if lo <= hi else (hi, lo)
    fa = Fn(a)
    if fa == 0.0:
        return RootResult(
            root=a, converged=True, iterations=0, method="ridder", f_at_root=fa, bracket=(a, b)
        )
    fb = Fn(b)
    if fb == 0.0:
        return RootResult(
            root=b, converged=True, iterations=0, method="ridder", f_at_root=fb, bracket=(a, b)
        )
    if fa * fb > 0:
        raise NotBracketedError(
            "Ridder requires Fn(lo) and Fn(hi) to have opposite signs."
        )

    root, info = optimize.ridder(
        Fn, a, b, xtol=tol_x, maxiter=max_iter, full_output=True, disp=False
    )
    if not info.converged:
        raise NoConvergenceError(
            f"Ridder did not converge within max_iter ({info.flag})."
        )
    return RootResult(
        root=float(root),
        converged=True,
        iterations=int(info.iterations),
        method="ridder",
        f_at_root=float(Fn(root)),
        bracket=(a, b),
    )
