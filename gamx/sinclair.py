"""Sinclair 2024 coefficients, the classical companion to GAMX in rankings."""

from __future__ import annotations

import math
from dataclasses import dataclass

from gamx.tables import Gender


@dataclass(frozen=True, slots=True)
class SinclairCoefficients:
    a: float
    max_body_weight: float


SINCLAIR_2024: dict[Gender, SinclairCoefficients] = {
    Gender.MALE: SinclairCoefficients(a=0.722762521, max_body_weight=193.609),
    Gender.FEMALE: SinclairCoefficients(a=0.787004341, max_body_weight=153.757),
}


def sinclair_factor(body_weight: float, gender: Gender | str) -> float:
    """Return ``10 ** (A * log10(bw / max_bw) ** 2)``; 1.0 above max_bw, 0 when unusable."""

    parsed = Gender.parse(gender)
    if parsed is None or not body_weight or body_weight <= 0 or not math.isfinite(body_weight):
        return 0.0
    coeffs = SINCLAIR_2024[parsed]
    if body_weight > coeffs.max_body_weight:
        return 1.0
    return 10.0 ** (coeffs.a * math.log10(body_weight / coeffs.max_body_weight) ** 2)


def sinclair_2024(total: float, body_weight: float, gender: Gender | str) -> float:
    if not total or total <= 0 or not math.isfinite(total):
        return 0.0
    return total * sinclair_factor(body_weight, gender)


__all__ = ["SINCLAIR_2024", "SinclairCoefficients", "sinclair_2024", "sinclair_factor"]
