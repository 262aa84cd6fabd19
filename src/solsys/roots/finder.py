"""Root bracketing, root refinement and extremum search for scalar functions.

These routines locate event times (equinoxes, solstices, stations) by
sampling a caller-supplied function of one variable, typically a Julian
date. The function may be expensive and may perform I/O; it is called in
arbitrary order.

Failure policy differs between the two refiners. refine_root raises when it
runs out of iterations, while find_extremum logs a warning and returns its
best estimate. The difference comes from the Numerical Recipes routines
these are based on. Unifying it needs a decision on which behavior callers
of the extremum search rely on.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Tuple

from ..logging import get_logger
from .errors import IterationLimitExceededError, PreconditionViolationError

logger = get_logger(__name__)

ScalarFunction = Callable[[float], float]

# Maximum iterations for refine_root and find_extremum.
MAX_ITERATIONS = 100
# Machine-precision guard used in the convergence tests.
EPS = 3.0e-8
# Absolute tolerance floor for extremum search near x == 0.
ZEPS = 1.0e-10
# Golden section ratio complement, (3 - sqrt(5)) / 2.
CGOLD = 0.3819660


@dataclass(frozen=True)
class RealRange:
    """A closed interval [lo, hi]."""

    lo: float
    hi: float

    @property
    def width(self) -> float:
        return self.hi - self.lo


@dataclass(frozen=True)
class RealPoint:
    """A sample of a function: x and f(x)."""

    x: float
    fx: float


def is_negative(value: float) -> bool:
    return value < 0.0


def signs_same(a: float, b: float) -> bool:
    """True if a and b fall in the same sign class. Zero counts as positive."""
    return is_negative(a) == is_negative(b)


def normalize(value: float, period: float) -> float:
    """Return the phase of a periodic value, in [0, period).

    For example normalize(theta, 360.0) is an angle in degrees and
    normalize(jd + 1.5, 7.0) is the day of the week with Sunday as 0.
    """
    quotient = value / period
    return period * (quotient - math.floor(quotient))


def bracket_roots(
    func: ScalarFunction,
    domain: RealRange,
    intervals: int,
    max_results: int,
) -> Tuple[int, List[RealRange]]:
    """Find sub-intervals of a domain over which func changes sign.

    The domain is split into equal steps and func is evaluated at every
    boundary. A step whose end values fall in different sign classes is a
    bracket. Zero counts as positive, so a function that touches zero
    without crossing it may or may not produce a bracket.

    Args:
        func: Function to sample
        domain: Interval to search
        intervals: Number of equal steps
        max_results: Maximum number of brackets to return

    Returns:
        Tuple of (number of brackets found, first max_results brackets).
        A count larger than the list length means the list was truncated;
        callers can detect this by asking for one more than they expect.

    Raises:
        ValueError: If intervals is not positive
    """
    if intervals < 1:
        raise ValueError("intervals must be at least 1")

    delta_x = (domain.hi - domain.lo) / intervals
    brackets: List[RealRange] = []
    count = 0

    previous = RealPoint(domain.lo, func(domain.lo))
    for i in range(1, intervals + 1):
        x = domain.hi if i == intervals else domain.lo + i * delta_x
        current = RealPoint(x, func(x))
        if not signs_same(previous.fx, current.fx):
            if count < max_results:
                brackets.append(RealRange(previous.x, current.x))
            count += 1
        previous = current

    logger.debug(f"Found {count} brackets in [{domain.lo}, {domain.hi}]")
    return count, brackets


def refine_root(
    func: ScalarFunction,
    bracket: RealRange,
    tol: float,
    max_iterations: int = MAX_ITERATIONS,
) -> float:
    """Locate a root within a bracket using Brent's method.

    Each step tries inverse quadratic interpolation (or the secant method
    when only two distinct points are known) and falls back to bisection
    when the interpolated step would leave the bracket or shrink it too
    slowly.

    Args:
        func: Function whose root is sought
        bracket: Interval whose endpoints straddle the root
        tol: Absolute accuracy wanted for the root
        max_iterations: Iteration cap

    Returns:
        The root, accurate to tol

    Raises:
        PreconditionViolationError: If func(lo) and func(hi) are in the same
            sign class, or either is exactly zero
        IterationLimitExceededError: If the cap is reached
    """
    a = bracket.lo
    b = c = bracket.hi
    fa = func(a)
    fb = func(b)
    if signs_same(fa, fb) or fa == 0.0 or fb == 0.0:
        raise PreconditionViolationError(
            f"Root must be bracketed: f({a}) = {fa}, f({b}) = {fb}"
        )

    fc = fb
    d = e = 0.0
    for iteration in range(max_iterations):
        if signs_same(fb, fc) and fb != 0.0 and fc != 0.0:
            # Rename so that the root lies between b and c
            c = a
            fc = fa
            e = d = b - a
        if abs(fc) < abs(fb):
            a, b, c = b, c, b
            fa, fb, fc = fb, fc, fb

        tol1 = 2.0 * EPS * abs(b) + 0.5 * tol
        xm = 0.5 * (c - b)
        if abs(xm) <= tol1 or fb == 0.0:
            logger.debug(f"Root {b} found after {iteration} iterations")
            return b

        if abs(e) >= tol1 and abs(fa) > abs(fb):
            s = fb / fa
            if a == c:
                # Secant step
                p = 2.0 * xm * s
                q = 1.0 - s
            else:
                # Inverse quadratic interpolation
                q = fa / fc
                r = fb / fc
                p = s * (2.0 * xm * q * (q - r) - (b - a) * (r - 1.0))
                q = (q - 1.0) * (r - 1.0) * (s - 1.0)
            if p > 0.0:
                q = -q
            p = abs(p)
            min1 = 3.0 * xm * q - abs(tol1 * q)
            min2 = abs(e * q)
            if 2.0 * p < min(min1, min2):
                e = d
                d = p / q
            else:
                d = xm
                e = d
        else:
            d = xm
            e = d

        a = b
        fa = fb
        if abs(d) > tol1:
            b += d
        else:
            b += abs(tol1) if xm >= 0.0 else -abs(tol1)
        fb = func(b)

    raise IterationLimitExceededError(max_iterations, b)


def find_extremum(
    a: float,
    b: float,
    c: float,
    func: ScalarFunction,
    tol: float,
    minimize: bool = True,
    max_iterations: int = MAX_ITERATIONS,
) -> RealPoint:
    """Isolate a local minimum or maximum using Brent's method.

    Combines golden section search with parabolic interpolation. a and c
    bound the search in either order; b lies between them and func(b) must
    be better (lower when minimizing, higher when maximizing) than both
    func(a) and func(c).

    Unlike refine_root, running out of iterations is not an error here:
    a warning is logged and the best point found so far is returned.

    Args:
        a: One end of the search interval
        b: Interior point with a better value than either end
        c: Other end of the search interval
        func: Function to search
        tol: Fractional precision wanted for the abscissa
        minimize: Search for a minimum if True, a maximum if False
        max_iterations: Iteration cap

    Returns:
        The extremum as a RealPoint, with fx in func's own sign
    """
    sign = 1.0 if minimize else -1.0

    def objective(x: float) -> float:
        return sign * func(x)

    lo = min(a, c)
    hi = max(a, c)
    x = w = v = b
    fx = fw = fv = objective(x)
    d = 0.0
    e = 0.0

    for iteration in range(max_iterations):
        xm = 0.5 * (lo + hi)
        tol1 = tol * abs(x) + ZEPS
        tol2 = 2.0 * tol1
        if abs(x - xm) <= tol2 - 0.5 * (hi - lo):
            logger.debug(f"Extremum at {x} found after {iteration} iterations")
            return RealPoint(x, sign * fx)

        if abs(e) > tol1:
            # Trial parabolic fit
            r = (x - w) * (fx - fv)
            q = (x - v) * (fx - fw)
            p = (x - v) * q - (x - w) * r
            q = 2.0 * (q - r)
            if q > 0.0:
                p = -p
            q = abs(q)
            etemp = e
            e = d
            if abs(p) >= abs(0.5 * q * etemp) or p <= q * (lo - x) or p >= q * (hi - x):
                e = lo - x if x >= xm else hi - x
                d = CGOLD * e
            else:
                d = p / q
                u = x + d
                if u - lo < tol2 or hi - u < tol2:
                    d = abs(tol1) if xm - x >= 0.0 else -abs(tol1)
        else:
            e = lo - x if x >= xm else hi - x
            d = CGOLD * e

        if abs(d) >= tol1:
            u = x + d
        else:
            u = x + (abs(tol1) if d >= 0.0 else -abs(tol1))
        fu = objective(u)

        if fu <= fx:
            if u >= x:
                lo = x
            else:
                hi = x
            v, w, x = w, x, u
            fv, fw, fx = fw, fx, fu
        else:
            if u < x:
                lo = u
            else:
                hi = u
            if fu <= fw or w == x:
                v, w = w, u
                fv, fw = fw, fu
            elif fu <= fv or v == x or v == w:
                v = u
                fv = fu

    logger.warning(
        f"Extremum search stopped after {max_iterations} iterations; "
        f"returning best estimate {x}"
    )
    return RealPoint(x, sign * fx)


def find_roots(
    func: ScalarFunction,
    domain: RealRange,
    intervals: int,
    tol: float,
    max_results: int,
) -> List[float]:
    """Bracket and refine every root of func within a domain.

    A bracket endpoint where func is exactly zero is itself reported as the
    root, since refine_root does not accept such brackets.

    Args:
        func: Function whose roots are sought
        domain: Interval to search
        intervals: Number of equal sampling steps
        tol: Absolute accuracy wanted for each root
        max_results: Maximum number of roots to return

    Returns:
        Roots in increasing order of their brackets
    """
    count, brackets = bracket_roots(func, domain, intervals, max_results)
    if count > len(brackets):
        logger.info(f"Found {count} brackets, refining the first {len(brackets)}")

    roots: List[float] = []
    for bracket in brackets:
        if func(bracket.lo) == 0.0:
            roots.append(bracket.lo)
        elif func(bracket.hi) == 0.0:
            roots.append(bracket.hi)
        else:
            roots.append(refine_root(func, bracket, tol))
    return roots


__all__ = [
    "RealRange",
    "RealPoint",
    "ScalarFunction",
    "MAX_ITERATIONS",
    "signs_same",
    "normalize",
    "bracket_roots",
    "refine_root",
    "find_extremum",
    "find_roots",
]
