"""
Chebyshev interpolation of JPL ephemeris coefficient blocks.

A record holds, for each body, ``na`` consecutive sub-interval blocks of
``ncm`` components with ``ncf`` coefficients each, laid out as
``coeff[sub_interval][component][degree]``.
"""

import math
from typing import Sequence, Tuple, Union

import numpy as np

from ..space_time.julian import split

__all__ = [
    "split",
    "chebyshev_polynomials",
    "chebyshev_derivatives",
    "interpolate",
]

ArrayLike = Union[Sequence[float], np.ndarray]


def chebyshev_polynomials(tc: float, count: int) -> np.ndarray:
    """Values of T_0..T_{count-1} at tc."""
    pc = np.zeros(count)
    pc[0] = 1.0
    if count > 1:
        pc[1] = tc
    twot = tc + tc
    for i in range(2, count):
        pc[i] = twot * pc[i - 1] - pc[i - 2]
    return pc


def chebyshev_derivatives(tc: float, pc: np.ndarray) -> np.ndarray:
    """Derivatives dT_k/dtc for k = 0..len(pc)-1, given the values in pc."""
    count = len(pc)
    vc = np.zeros(count)
    if count > 1:
        vc[1] = 1.0
    twot = tc + tc
    for i in range(2, count):
        vc[i] = twot * vc[i - 1] + pc[i - 1] + pc[i - 1] - vc[i - 2]
    return vc


def interpolate(
    coeffs: ArrayLike,
    t: Tuple[float, float],
    ncf: int,
    ncm: int,
    na: int,
    velocity: bool = True,
) -> np.ndarray:
    """Interpolate a block of Chebyshev coefficients.

    Args:
        coeffs: Flat coefficients for one body within one record
        t: Pair of (fraction of the record interval in [0, 1], length of
           the record interval in output time units)
        ncf: Coefficients per component
        ncm: Number of components
        na: Number of sub-intervals in the record
        velocity: Also compute rates

    Returns:
        Array of ncm values, followed by ncm rates when velocity is True

    Raises:
        ValueError: If the fraction is outside [0, 1] or coeffs is too short
    """
    fraction, length = t
    if not 0.0 <= fraction <= 1.0:
        raise ValueError("fraction must be in [0, 1]")

    coeffs = np.asarray(coeffs, dtype=np.float64)
    size = ncf * ncm * na
    if coeffs.size < size:
        raise ValueError(
            f"Expected at least {size} coefficients, got {coeffs.size}"
        )

    # Pick the sub-interval; fraction == 1 stays in the last one at tc == 1
    whole = math.floor(fraction)
    temp = na * fraction
    sub_interval = int(temp - whole)
    tc = 2.0 * (math.modf(temp)[0] + whole) - 1.0

    block = coeffs[:size].reshape(na, ncm, ncf)[sub_interval]

    pc = chebyshev_polynomials(tc, ncf)
    positions = block @ pc
    if not velocity:
        return positions

    vc = chebyshev_derivatives(tc, pc)
    vfac = (na + na) / length
    rates = (block @ vc) * vfac
    return np.concatenate((positions, rates))
