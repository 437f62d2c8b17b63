"""Inverse scoring: the lightest whole-kilo total that strictly beats a score.

The continuous inverse of the BCCG distribution gives a starting point, then a
bounded walk over whole kilos settles the answer at 2-decimal precision. The
score is increasing in the total, so walking up until the rounded score beats
the rounded target and then back down while it still does gives the minimum
without the boundary misclassification a bisection can hit.
"""

from __future__ import annotations

import logging
import math

from gamx import config
from gamx.bccg import inverse_cdf
from gamx.normal import normal_cdf
from gamx.resolver import resolve_parameters
from gamx.score import INVALID_SCORE, SCORE_OFFSET, SCORE_SCALE, round_score, score_with_parameters
from gamx.tables import Gender, ParameterTableError, TableStore, Variant

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_TOTAL = config.DEFAULT_MAX_TOTAL
INVALID_TARGET = 0


def kg_target(
    gender: Gender | str,
    body_mass: float,
    target_score: float,
    variant: Variant = Variant.SENIOR,
    age: float | None = None,
    *,
    max_total: int | None = None,
    store: TableStore | None = None,
) -> int:
    """Return the smallest total whose score rounds strictly above ``target_score``.

    Returns ``INVALID_TARGET`` (0) when even ``max_total`` kg does not beat the
    target, when the gender, body mass or target is unusable, or when no
    usable parameter table is installed for the variant and gender. ``max_total``
    defaults to the configured bound (600 kg unless overridden).
    """

    parsed = Gender.parse(gender)
    try:
        mass = float(body_mass)
        target = float(target_score)
    except (TypeError, ValueError):
        mass = target = math.nan
    if parsed is None or not (math.isfinite(mass) and mass > 0.0) or not math.isfinite(target):
        LOGGER.debug("kg_target rejected gender=%r body_mass=%r target=%r", gender, body_mass, target_score)
        return INVALID_TARGET

    bound = int(max_total if max_total is not None else config.active_config().max_total)
    try:
        params = resolve_parameters(parsed, mass, variant, age, store=store)
    except ParameterTableError as exc:
        LOGGER.warning("kg_target unavailable: %s", exc)
        return INVALID_TARGET
    target_rounded = round_score(target)

    def beats(total: int) -> bool:
        score = score_with_parameters(total, params)
        return score != INVALID_SCORE and round_score(score) > target_rounded

    p = normal_cdf((target - SCORE_OFFSET) / SCORE_SCALE)
    estimate = inverse_cdf(p, params.mu, params.sigma, params.nu)
    candidate = math.ceil(estimate) if math.isfinite(estimate) else 1
    candidate = min(max(candidate, 1), bound)

    while candidate < bound and not beats(candidate):
        candidate += 1
    if not beats(candidate):
        LOGGER.debug("kg_target: %d kg does not beat %.2f (%s, %s kg)", bound, target, variant.value, mass)
        return INVALID_TARGET

    while candidate > 1 and beats(candidate - 1):
        candidate -= 1
    return candidate


__all__ = ["DEFAULT_MAX_TOTAL", "INVALID_TARGET", "kg_target"]
