"""Utilities for resolving the directory that holds the GAMX parameter tables.

The helper checks the ``GAMX_TABLE_ROOT`` environment variable first. When it
is set to a non-empty value, that directory becomes the table root. When the
variable is missing, tables are read from the ``data`` directory shipped inside
the package. All returned paths are absolute to avoid depending on the current
working directory.
"""

from __future__ import annotations

import os
from pathlib import Path

GAMX_TABLE_ENV = "GAMX_TABLE_ROOT"
_PACKAGE_ROOT = Path(__file__).resolve().parent


def get_package_root() -> Path:
    """Return the absolute path to the ``gamx`` package directory."""
    return _PACKAGE_ROOT


def get_bundled_table_root() -> Path:
    return (get_package_root() / "data").resolve()


def get_table_root() -> Path:
    """Return the absolute table root, honoring GAMX_TABLE_ROOT when set."""
    env_value = os.environ.get(GAMX_TABLE_ENV)
    if env_value:
        return Path(env_value).expanduser().resolve()
    return get_bundled_table_root()
