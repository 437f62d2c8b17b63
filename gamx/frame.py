"""Batch scoring and ranking over athlete DataFrames."""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd

from gamx.score import INVALID_SCORE, compute_score, round_score
from gamx.tables import TableStore, Variant
from gamx.target import INVALID_TARGET, kg_target

LOGGER = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("gender", "body_mass", "total")
SCORE_COLUMN = "gamx"


def ensure_columns(df: pd.DataFrame, required: Iterable[str]) -> None:
    missing = set(required) - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {', '.join(sorted(missing))}")


def _ages(df: pd.DataFrame) -> pd.Series:
    if "age" not in df.columns:
        return pd.Series(np.nan, index=df.index, dtype=float)
    return pd.to_numeric(df["age"], errors="coerce")


def score_frame(
    df: pd.DataFrame,
    variant: Variant = Variant.SENIOR,
    *,
    store: TableStore | None = None,
    score_col: str = SCORE_COLUMN,
) -> pd.DataFrame:
    """Return a copy of ``df`` with a score column.

    Expects ``gender``, ``body_mass`` and ``total`` columns plus ``age`` for the
    age-dependent variants. Rows that cannot be scored get ``INVALID_SCORE``.
    """

    ensure_columns(df, REQUIRED_COLUMNS)
    working = df.copy()
    body_mass = pd.to_numeric(working["body_mass"], errors="coerce")
    total = pd.to_numeric(working["total"], errors="coerce")
    ages = _ages(working)

    working[score_col] = [
        compute_score(gender, bm, tot, variant, age, store=store)
        for gender, bm, tot, age in zip(working["gender"], body_mass, total, ages)
    ]
    invalid = int((working[score_col] == INVALID_SCORE).sum())
    if invalid:
        LOGGER.info("%d of %d rows could not be scored (%s)", invalid, len(working), variant.value)
    return working


def rank_frame(
    df: pd.DataFrame,
    variant: Variant = Variant.SENIOR,
    *,
    store: TableStore | None = None,
    score_col: str = SCORE_COLUMN,
    max_total: int | None = None,
) -> pd.DataFrame:
    """Score, rank and sort athletes, best first.

    ``rank`` is competition style on 2-decimal scores (equal scores share the
    better rank). ``kg_to_lead`` is the total an athlete needs to strictly beat
    the current leader, left empty for the leaders themselves and for rows
    without a valid score.
    """

    scored = score_frame(df, variant, store=store, score_col=score_col)
    valid = scored[score_col] != INVALID_SCORE
    rounded = scored[score_col].map(round_score).where(valid)

    scored["rank"] = rounded.rank(method="min", ascending=False).astype("Int64")
    kg_to_lead = pd.Series(pd.NA, index=scored.index, dtype="Int64")
    if valid.any():
        leader_score = float(scored.loc[valid, score_col].max())
        leader_rounded = round_score(leader_score)
        body_mass = pd.to_numeric(scored["body_mass"], errors="coerce")
        ages = _ages(scored)
        for idx in scored.index[valid & (rounded < leader_rounded)]:
            needed = kg_target(
                scored.at[idx, "gender"],
                body_mass.at[idx],
                leader_score,
                variant,
                ages.at[idx],
                max_total=max_total,
                store=store,
            )
            if needed != INVALID_TARGET:
                kg_to_lead.at[idx] = needed
    scored["kg_to_lead"] = kg_to_lead

    ordered = scored.sort_values(["rank"], kind="mergesort", na_position="last")
    return ordered.reset_index(drop=True)


__all__ = ["REQUIRED_COLUMNS", "SCORE_COLUMN", "ensure_columns", "rank_frame", "score_frame"]
