"""Standard normal CDF and quantile function.

Both functions work on plain Python floats. They are called once or twice per
score and up to a few hundred times per inverse search, so they avoid numpy
dispatch overhead. Neither raises: out-of-domain input gives ``nan``.
"""

from __future__ import annotations

import math

_SQRT2 = math.sqrt(2.0)
_SQRT2PI = math.sqrt(2.0 * math.pi)

# Acklam's rational approximation to the normal quantile (relative error 1.15e-9
# before refinement).
_A = (
    -3.969683028665376e01,
    2.209460984245205e02,
    -2.759285104469687e02,
    1.383577518672690e02,
    -3.066479806614716e01,
    2.506628277459239e00,
)
_B = (
    -5.447609879822406e01,
    1.615858368580409e02,
    -1.556989798598866e02,
    6.680131188771972e01,
    -1.328068155288572e01,
)
_C = (
    -7.784894002430293e-03,
    -3.223964580411365e-01,
    -2.400758277161838e00,
    -2.549732539343734e00,
    4.374664141464968e00,
    2.938163982698783e00,
)
_D = (
    7.784695709041462e-03,
    3.224671290700398e-01,
    2.445134137142996e00,
    3.754408661907416e00,
)
_P_LOW = 0.02425
_P_HIGH = 1.0 - _P_LOW
_HALLEY_STEPS = 2


def normal_cdf(x: float) -> float:
    """Return Φ(x) for the standard normal distribution."""

    # erfc keeps full relative precision in the lower tail, where 0.5 * (1 + erf)
    # would cancel.
    return 0.5 * math.erfc(-x / _SQRT2)


def normal_pdf(x: float) -> float:
    return math.exp(-0.5 * x * x) / _SQRT2PI


def _initial_quantile(p: float) -> float:
    if p < _P_LOW:
        q = math.sqrt(-2.0 * math.log(p))
        return (((((_C[0] * q + _C[1]) * q + _C[2]) * q + _C[3]) * q + _C[4]) * q + _C[5]) / (
            (((_D[0] * q + _D[1]) * q + _D[2]) * q + _D[3]) * q + 1.0
        )
    if p > _P_HIGH:
        q = math.sqrt(-2.0 * math.log1p(-p))
        return -(((((_C[0] * q + _C[1]) * q + _C[2]) * q + _C[3]) * q + _C[4]) * q + _C[5]) / (
            (((_D[0] * q + _D[1]) * q + _D[2]) * q + _D[3]) * q + 1.0
        )
    q = p - 0.5
    r = q * q
    return (((((_A[0] * r + _A[1]) * r + _A[2]) * r + _A[3]) * r + _A[4]) * r + _A[5]) * q / (
        ((((_B[0] * r + _B[1]) * r + _B[2]) * r + _B[3]) * r + _B[4]) * r + 1.0
    )


def normal_quantile(p: float) -> float:
    """Return Φ⁻¹(p), or ``nan`` when ``p`` is not strictly inside (0, 1).

    The rational estimate is polished with Halley steps on Φ(x) - p, which
    brings the result to the limit of double precision.
    """

    if not (0.0 < p < 1.0):
        return math.nan
    x = _initial_quantile(p)
    for _ in range(_HALLEY_STEPS):
        # Work on the tail nearest to x so the residual does not cancel.
        if x > 0.0:
            err = (1.0 - p) - 0.5 * math.erfc(x / _SQRT2)
        else:
            err = normal_cdf(x) - p
        u = err / normal_pdf(x)
        x = x - u / (1.0 + 0.5 * x * u)
    return x


__all__ = ["normal_cdf", "normal_pdf", "normal_quantile"]
