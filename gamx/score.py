"""GAMX score composer.

A total is mapped to its percentile under the body-mass (and age) specific BCCG
distribution, then re-expressed on a normal scale centred at 1000 with 100
points per standard deviation.

Failures never raise. :func:`compute_score` returns ``INVALID_SCORE`` (0.0) for
a non-positive or non-finite body mass or total, an unrecognised gender, or a
total whose percentile rounds to 0 or 1, or a (variant, gender) pair without a
usable parameter table. :func:`explain_score` carries the
same result together with the reason.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from gamx.bccg import forward_cdf
from gamx.normal import normal_quantile
from gamx.resolver import DistributionParameters, resolve_parameters
from gamx.tables import Gender, ParameterTableError, TableStore, Variant

LOGGER = logging.getLogger(__name__)

SCORE_SCALE = 100.0
SCORE_OFFSET = 1000.0
INVALID_SCORE = 0.0


class InvalidReason(str, Enum):
    GENDER = "gender"
    BODY_MASS = "body_mass"
    TOTAL = "total"
    PROBABILITY = "probability"
    TABLE = "table"


@dataclass(frozen=True)
class ScoreBreakdown:
    """Intermediate values of one score computation."""

    score: float
    parameters: DistributionParameters | None = None
    probability: float = math.nan
    z: float = math.nan
    reason: InvalidReason | None = None
    message: str | None = None

    @property
    def valid(self) -> bool:
        return self.reason is None


def round_score(value: float) -> float:
    """Round to 2 decimals, halves upward.

    Every tie or ordering decision between scores goes through this rounding.
    """

    return math.floor(value * 100.0 + 0.5) / 100.0


def _positive_finite(value: object) -> bool:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > 0.0


def score_with_parameters(total: float, params: DistributionParameters) -> float:
    """Score ``total`` against already resolved parameters."""

    p = forward_cdf(total, params.mu, params.sigma, params.nu)
    z = normal_quantile(p)
    if not math.isfinite(z):
        return INVALID_SCORE
    return z * SCORE_SCALE + SCORE_OFFSET


def _invalid(reason: InvalidReason, **context: object) -> ScoreBreakdown:
    LOGGER.debug("GAMX score invalid (%s): %s", reason.value, context)
    return ScoreBreakdown(score=INVALID_SCORE, reason=reason)


def explain_score(
    gender: Gender | str,
    body_mass: float,
    total: float,
    variant: Variant = Variant.SENIOR,
    age: float | None = None,
    *,
    store: TableStore | None = None,
) -> ScoreBreakdown:
    parsed = Gender.parse(gender)
    if parsed is None:
        return _invalid(InvalidReason.GENDER, gender=gender)
    if not _positive_finite(body_mass):
        return _invalid(InvalidReason.BODY_MASS, body_mass=body_mass)
    if not _positive_finite(total):
        return _invalid(InvalidReason.TOTAL, total=total)

    try:
        params = resolve_parameters(parsed, float(body_mass), variant, age, store=store)
    except ParameterTableError as exc:
        LOGGER.warning("GAMX score unavailable: %s", exc)
        return ScoreBreakdown(score=INVALID_SCORE, reason=InvalidReason.TABLE, message=str(exc))
    p = forward_cdf(float(total), params.mu, params.sigma, params.nu)
    z = normal_quantile(p)
    if not math.isfinite(z):
        LOGGER.debug("GAMX probability %r outside (0, 1) for total=%s params=%s", p, total, params)
        return ScoreBreakdown(score=INVALID_SCORE, parameters=params, probability=p, reason=InvalidReason.PROBABILITY)
    return ScoreBreakdown(
        score=z * SCORE_SCALE + SCORE_OFFSET,
        parameters=params,
        probability=p,
        z=z,
    )


def compute_score(
    gender: Gender | str,
    body_mass: float,
    total: float,
    variant: Variant = Variant.SENIOR,
    age: float | None = None,
    *,
    store: TableStore | None = None,
) -> float:
    """Return the GAMX score, or ``INVALID_SCORE`` for malformed input.

    ``age`` is only read by the age-dependent variants, which clamp it into
    their supported range.
    """

    return explain_score(gender, body_mass, total, variant, age, store=store).score


def compute_gamx(gender: Gender | str, body_mass: float, total: float, *, store: TableStore | None = None) -> float:
    return compute_score(gender, body_mass, total, Variant.SENIOR, store=store)


def compute_gamx_u17(gender: Gender | str, body_mass: float, total: float, *, store: TableStore | None = None) -> float:
    return compute_score(gender, body_mass, total, Variant.U17, store=store)


def compute_gamx_age_adjusted(
    gender: Gender | str, body_mass: float, total: float, age: float, *, store: TableStore | None = None
) -> float:
    """Age-adjusted score; ages outside 13-40 are clamped."""
    return compute_score(gender, body_mass, total, Variant.AGE_ADJUSTED, age, store=store)


def compute_gamx_masters(
    gender: Gender | str, body_mass: float, total: float, age: float, *, store: TableStore | None = None
) -> float:
    """Masters score; ages outside 30-95 are clamped."""
    return compute_score(gender, body_mass, total, Variant.MASTERS, age, store=store)


__all__ = [
    "INVALID_SCORE",
    "InvalidReason",
    "SCORE_OFFSET",
    "SCORE_SCALE",
    "ScoreBreakdown",
    "compute_gamx",
    "compute_gamx_age_adjusted",
    "compute_gamx_masters",
    "compute_gamx_u17",
    "compute_score",
    "explain_score",
    "round_score",
    "score_with_parameters",
]
