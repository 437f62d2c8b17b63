"""Truncated Box-Cox Cole-Green (BCCG) distribution.

The Box-Cox transform is only defined on part of the real line when ``nu`` is
not zero, so the normal probability mass outside that support is cut off and
the remainder rescaled to one. Dropping that normalisation shifts scores by
hundreds of points; both directions below always apply it.
"""

from __future__ import annotations

import math

from gamx.normal import normal_cdf, normal_quantile

# Below this |nu| the transform is taken at its log-normal limit.
NU_EPSILON = 1e-10


def _truncation_mass(sigma: float, nu: float) -> float:
    if abs(nu) < NU_EPSILON:
        return 1.0
    return normal_cdf(1.0 / (sigma * abs(nu)))


def box_cox_z(y: float, mu: float, sigma: float, nu: float) -> float:
    if abs(nu) < NU_EPSILON:
        return math.log(y / mu) / sigma
    return ((y / mu) ** nu - 1.0) / (nu * sigma)


def forward_cdf(y: float, mu: float, sigma: float, nu: float) -> float:
    """Return P(Y <= y) for the truncated BCCG distribution."""

    if y <= 0.0:
        return 0.0
    z = box_cox_z(y, mu, sigma, nu)
    a = normal_cdf(z)
    b = normal_cdf(-1.0 / (sigma * abs(nu))) if nu > 0 and abs(nu) >= NU_EPSILON else 0.0
    c = _truncation_mass(sigma, nu)
    return (a - b) / c


def inverse_cdf(p: float, mu: float, sigma: float, nu: float) -> float:
    """Return the ``p`` quantile, or ``nan`` when ``p`` is not inside (0, 1).

    The result can be non-finite for pathological parameters; callers treat
    any non-finite value as invalid.
    """

    if not (0.0 < p < 1.0):
        return math.nan
    mass = _truncation_mass(sigma, nu)
    if nu <= 0:
        adjusted = p * mass
    else:
        # 1 - (1 - p) * mass, arranged so the lower tail keeps its precision.
        adjusted = (1.0 - mass) + p * mass
    z = normal_quantile(adjusted)
    if abs(nu) < NU_EPSILON:
        return mu * math.exp(sigma * z)
    base = nu * sigma * z + 1.0
    if base < 0.0:
        return math.nan
    try:
        return mu * base ** (1.0 / nu)
    except (OverflowError, ZeroDivisionError):
        return math.inf


__all__ = ["NU_EPSILON", "box_cox_z", "forward_cdf", "inverse_cdf"]
