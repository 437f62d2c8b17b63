"""Resolve the (mu, sigma, nu) triple for a scoring request.

Out-of-range body mass and age are clamped onto the table, never rejected and
never extrapolated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from gamx.tables import Gender, ParameterTable, TableStore, Variant, default_store


@dataclass(frozen=True, slots=True)
class DistributionParameters:
    """Median, scale and Box-Cox shape of the BCCG distribution."""

    mu: float
    sigma: float
    nu: float


def clamp_age(age: float, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return int(min(max(int(age), low), high))


def age_bucket(ages: np.ndarray, clamped_age: int) -> slice:
    """Return the contiguous block of rows that belong to ``clamped_age``.

    The first row is found by binary search and the block is expanded forward
    while rows carry the same age. Both steps compare against the clamped age;
    comparing against the caller's raw age would leave a one-row block for
    anyone outside the table's range.

    When the table has no block for that exact age, the nearest block is used,
    the younger one on a tie.
    """

    n = int(ages.shape[0])
    bucket_age = float(clamped_age)
    start = int(np.searchsorted(ages, bucket_age, side="left"))
    if start == n or ages[start] != bucket_age:
        below = float(ages[start - 1]) if start > 0 else None
        above = float(ages[start]) if start < n else None
        if above is None or (below is not None and bucket_age - below <= above - bucket_age):
            bucket_age = below
        else:
            bucket_age = above
        start = int(np.searchsorted(ages, bucket_age, side="left"))

    stop = start
    while stop < n and ages[stop] == bucket_age:
        stop += 1
    return slice(start, stop)


def interpolate_by_mass(
    body_mass: np.ndarray,
    mu: np.ndarray,
    sigma: np.ndarray,
    nu: np.ndarray,
    target: float,
) -> DistributionParameters:
    """Interpolate the parameter triple at ``target`` body mass.

    The target is clamped to the table's mass range. An exact match returns
    that row. Otherwise the bracketing rows are blended with the reference
    model's cross weights: ``w_low = high.mass - target`` multiplies the high
    row and ``w_high = target - low.mass`` multiplies the low row.
    """

    n = int(body_mass.shape[0])
    target = min(max(float(target), float(body_mass[0])), float(body_mass[n - 1]))
    idx = int(np.searchsorted(body_mass, target, side="left"))
    if idx < n and body_mass[idx] == target:
        return DistributionParameters(float(mu[idx]), float(sigma[idx]), float(nu[idx]))

    low, high = idx - 1, idx
    w_low = float(body_mass[high]) - target
    w_high = target - float(body_mass[low])
    total = w_low + w_high

    def blend(column: np.ndarray) -> float:
        return (w_low * float(column[high]) + w_high * float(column[low])) / total

    return DistributionParameters(blend(mu), blend(sigma), blend(nu))


def resolve_from_table(table: ParameterTable, body_mass: float, age: float | None = None) -> DistributionParameters:
    bounds = table.variant.age_bounds
    if table.age is None or bounds is None:
        return interpolate_by_mass(table.body_mass, table.mu, table.sigma, table.nu, body_mass)

    # A missing age resolves as the youngest age the table covers.
    if age is None or not math.isfinite(age):
        age = bounds[0]
    clamped = clamp_age(age, bounds)
    rows = age_bucket(table.age, clamped)
    return interpolate_by_mass(
        table.body_mass[rows],
        table.mu[rows],
        table.sigma[rows],
        table.nu[rows],
        body_mass,
    )


def resolve_parameters(
    gender: Gender | str,
    body_mass: float,
    variant: Variant = Variant.SENIOR,
    age: float | None = None,
    *,
    store: TableStore | None = None,
) -> DistributionParameters:
    """Look up and interpolate the BCCG parameters for one request.

    ``age`` is ignored for mass-only variants.

    Raises:
        ValueError: If ``gender`` is not recognised.
        ParameterTableError: If no usable table is installed for the variant
            and gender (:class:`MissingTableError` when the file is absent).
    """

    parsed = Gender.parse(gender)
    if parsed is None:
        raise ValueError(f"Unknown gender {gender!r}")
    table = (store or default_store()).table(variant, parsed)
    return resolve_from_table(table, body_mass, age)


__all__ = [
    "DistributionParameters",
    "age_bucket",
    "clamp_age",
    "interpolate_by_mass",
    "resolve_from_table",
    "resolve_parameters",
]
