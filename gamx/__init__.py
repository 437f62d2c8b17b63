"""GAMX performance scoring: body-mass and age normalised weightlifting scores."""

from .config import EngineConfig, configure, load_engine_config
from .resolver import DistributionParameters, resolve_parameters
from .score import (
    INVALID_SCORE,
    InvalidReason,
    ScoreBreakdown,
    compute_gamx,
    compute_gamx_age_adjusted,
    compute_gamx_masters,
    compute_gamx_u17,
    compute_score,
    explain_score,
    round_score,
)
from .sinclair import sinclair_2024
from .tables import Gender, MissingTableError, ParameterTableError, TableStore, Variant, default_store
from .target import DEFAULT_MAX_TOTAL, INVALID_TARGET, kg_target

__all__ = [
    "DEFAULT_MAX_TOTAL",
    "DistributionParameters",
    "EngineConfig",
    "Gender",
    "INVALID_SCORE",
    "INVALID_TARGET",
    "InvalidReason",
    "MissingTableError",
    "ParameterTableError",
    "ScoreBreakdown",
    "TableStore",
    "Variant",
    "compute_gamx",
    "compute_gamx_age_adjusted",
    "compute_gamx_masters",
    "compute_gamx_u17",
    "compute_score",
    "configure",
    "default_store",
    "explain_score",
    "kg_target",
    "load_engine_config",
    "resolve_parameters",
    "round_score",
    "sinclair_2024",
]
