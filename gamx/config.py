"""Pydantic model for the YAML-driven engine configuration."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_TOTAL = 600


class EngineConfig(BaseModel):
    """Process-wide engine settings."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    table_root: Path | None = Field(
        default=None,
        description="Directory of parameter table CSVs. Falls back to GAMX_TABLE_ROOT, then the packaged data.",
    )
    max_total: int = Field(
        default=DEFAULT_MAX_TOTAL,
        ge=1,
        description="Upper bound (kg) for the inverse target search.",
    )


_ACTIVE = EngineConfig()
_ACTIVE_LOCK = threading.Lock()


def active_config() -> EngineConfig:
    return _ACTIVE


def configure(cfg: EngineConfig | None = None, **overrides: Any) -> EngineConfig:
    """Install the engine defaults used when callers pass no explicit store or bound."""

    global _ACTIVE
    base = cfg if cfg is not None else EngineConfig()
    if overrides:
        base = base.model_copy(update=overrides)
    if base.table_root is not None:
        base = base.model_copy(update={"table_root": base.table_root.expanduser().resolve()})
    with _ACTIVE_LOCK:
        _ACTIVE = base
    return base


def _load_payload(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file missing at {path}")
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Config payload in {path} must be a mapping")
    return payload


def _resolve_section(payload: dict[str, Any], key: str) -> dict[str, Any]:
    """Allow a nested section for shared config files."""

    section = payload.get(key)
    if section is None:
        return payload
    if not isinstance(section, dict):
        raise ValueError(f"{key} section inside config must be a mapping")
    return section


def load_engine_config(path: Path) -> EngineConfig:
    """Load a YAML file describing the engine settings.

    Relative ``table_root`` values are taken relative to the config file.
    """

    payload = _load_payload(path)
    cfg = EngineConfig.model_validate(_resolve_section(payload, "gamx"))
    if cfg.table_root is not None and not cfg.table_root.expanduser().is_absolute():
        cfg = cfg.model_copy(update={"table_root": (path.parent / cfg.table_root).resolve()})
    return cfg


__all__ = ["DEFAULT_MAX_TOTAL", "EngineConfig", "active_config", "configure", "load_engine_config"]
