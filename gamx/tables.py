"""Read-only parameter tables for the GAMX distribution.

Each (variant, gender) pair maps to one table of Box-Cox Cole-Green parameters
indexed by body mass, and by age for the age-dependent variants. Tables are
parsed from CSV on first use and frozen afterwards; every array handed out is
read-only, so a store can be shared between threads without coordination.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from gamx import config, paths

LOGGER = logging.getLogger(__name__)

MASS_COLUMNS = ("body_mass", "mu", "sigma", "nu")
AGE_COLUMNS = ("age",) + MASS_COLUMNS


class ParameterTableError(ValueError):
    """Raised when a parameter table file is malformed."""


class MissingTableError(ParameterTableError, LookupError):
    """Raised when no table is installed for a (variant, gender) pair."""


class Gender(str, Enum):
    MALE = "M"
    FEMALE = "F"

    @classmethod
    def parse(cls, value: object) -> Optional["Gender"]:
        """Map the spellings used by competition software onto M/F, else ``None``."""

        if isinstance(value, Gender):
            return value
        if not isinstance(value, str):
            return None
        return _GENDER_ALIASES.get(value.strip().upper())

    @property
    def file_label(self) -> str:
        return "men" if self is Gender.MALE else "women"


_GENDER_ALIASES: dict[str, Gender] = {
    "M": Gender.MALE,
    "MALE": Gender.MALE,
    "MEN": Gender.MALE,
    "F": Gender.FEMALE,
    "W": Gender.FEMALE,
    "FEMALE": Gender.FEMALE,
    "WOMEN": Gender.FEMALE,
}


class Variant(str, Enum):
    """Parameter table families."""

    SENIOR = "senior"
    U17 = "u17"
    AGE_ADJUSTED = "age-adjusted"
    MASTERS = "masters"

    @property
    def age_bounds(self) -> tuple[int, int] | None:
        return VARIANT_AGE_BOUNDS.get(self)

    @property
    def age_dependent(self) -> bool:
        return self in VARIANT_AGE_BOUNDS


# Inclusive age range covered by each age-dependent table.
VARIANT_AGE_BOUNDS: dict[Variant, tuple[int, int]] = {
    Variant.AGE_ADJUSTED: (13, 40),
    Variant.MASTERS: (30, 95),
}


def table_filename(variant: Variant, gender: Gender) -> str:
    return f"{variant.value}-{gender.file_label}.csv"


def _frozen(values: pd.Series) -> np.ndarray:
    array = np.ascontiguousarray(values.to_numpy(dtype=float))
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class ParameterTable:
    """One parameter table, stored column-wise.

    ``age`` is ``None`` for mass-only variants. For age-dependent variants the
    rows form contiguous age blocks in ascending order, each sorted by body mass.
    """

    variant: Variant
    gender: Gender
    body_mass: np.ndarray
    mu: np.ndarray
    sigma: np.ndarray
    nu: np.ndarray
    age: np.ndarray | None = None

    def __len__(self) -> int:
        return int(self.body_mass.shape[0])

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, variant: Variant, gender: Gender, *, source: str = "<frame>") -> "ParameterTable":
        expected = AGE_COLUMNS if variant.age_dependent else MASS_COLUMNS
        missing = [col for col in expected if col not in frame.columns]
        if missing:
            raise ParameterTableError(f"{source}: missing columns {missing} for {variant.value} table")
        if frame.empty:
            raise ParameterTableError(f"{source}: table has no rows")

        try:
            numeric = frame.loc[:, list(expected)].apply(pd.to_numeric, errors="raise")
        except (TypeError, ValueError) as exc:
            raise ParameterTableError(f"{source}: non-numeric table value ({exc})") from exc
        values = numeric.to_numpy(dtype=float)
        if not np.isfinite(values).all():
            raise ParameterTableError(f"{source}: table contains non-finite values")
        if (numeric["sigma"] <= 0).any():
            raise ParameterTableError(f"{source}: sigma must be positive")
        if (numeric["body_mass"] <= 0).any():
            raise ParameterTableError(f"{source}: body mass must be positive")

        mass_steps = np.diff(numeric["body_mass"].to_numpy(dtype=float))
        age = None
        if variant.age_dependent:
            age_values = numeric["age"].to_numpy(dtype=float)
            if not np.array_equal(age_values, np.round(age_values)):
                raise ParameterTableError(f"{source}: ages must be whole years")
            age_steps = np.diff(age_values)
            if (age_steps < 0).any():
                raise ParameterTableError(f"{source}: age blocks must be contiguous and ascending")
            # Body mass only has to be sorted inside an age block.
            mass_steps = mass_steps[age_steps == 0]
            age = _frozen(numeric["age"])
        if (mass_steps < 0).any():
            raise ParameterTableError(f"{source}: rows must be sorted by body mass")

        return cls(
            variant=variant,
            gender=gender,
            body_mass=_frozen(numeric["body_mass"]),
            mu=_frozen(numeric["mu"]),
            sigma=_frozen(numeric["sigma"]),
            nu=_frozen(numeric["nu"]),
            age=age,
        )

    @classmethod
    def from_csv(cls, path: Path, variant: Variant, gender: Gender) -> "ParameterTable":
        try:
            frame = pd.read_csv(path)
        except pd.errors.EmptyDataError as exc:
            raise ParameterTableError(f"{path}: table file is empty") from exc
        return cls.from_frame(frame, variant, gender, source=str(path))


TableKey = tuple[Variant, Gender]


class TableStore:
    """Lazily loaded, read-only collection of parameter tables.

    A store is backed either by a directory of CSV files or by in-memory
    DataFrames. Each table is parsed at most once.
    """

    def __init__(
        self,
        root: Path | None = None,
        frames: Mapping[TableKey, pd.DataFrame] | None = None,
    ) -> None:
        self.root = root.expanduser().resolve() if root is not None else None
        self._frames = dict(frames or {})
        self._tables: dict[TableKey, ParameterTable] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_directory(cls, root: Path) -> "TableStore":
        return cls(root=root)

    @classmethod
    def from_frames(cls, frames: Mapping[TableKey, pd.DataFrame]) -> "TableStore":
        return cls(frames=frames)

    def _path(self, variant: Variant, gender: Gender) -> Path | None:
        if self.root is None:
            return None
        return self.root / table_filename(variant, gender)

    def has_table(self, variant: Variant, gender: Gender) -> bool:
        key = (variant, gender)
        if key in self._tables or key in self._frames:
            return True
        path = self._path(variant, gender)
        return path is not None and path.is_file()

    def available(self) -> list[TableKey]:
        return [(variant, gender) for variant in Variant for gender in Gender if self.has_table(variant, gender)]

    def table(self, variant: Variant, gender: Gender) -> ParameterTable:
        key = (variant, gender)
        cached = self._tables.get(key)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._tables.get(key)
            if cached is None:
                cached = self._load(variant, gender)
                self._tables[key] = cached
        return cached

    def _load(self, variant: Variant, gender: Gender) -> ParameterTable:
        frame = self._frames.get((variant, gender))
        if frame is not None:
            table = ParameterTable.from_frame(frame, variant, gender, source=f"<{variant.value}/{gender.value}>")
            LOGGER.debug("Loaded in-memory %s/%s table (%d rows)", variant.value, gender.value, len(table))
            return table
        path = self._path(variant, gender)
        if path is None or not path.is_file():
            raise MissingTableError(
                f"No {variant.value} table installed for gender {gender.value}"
                + (f" (looked for {path})" if path is not None else "")
            )
        table = ParameterTable.from_csv(path, variant, gender)
        LOGGER.info("Loaded %s/%s parameter table from %s (%d rows)", variant.value, gender.value, path, len(table))
        return table


_DEFAULT_STORES: dict[tuple[Optional[Path], Optional[str]], TableStore] = {}
_DEFAULT_LOCK = threading.Lock()


def default_store() -> TableStore:
    """Return the process-wide store for the configured table root.

    The root comes from the active engine config, then ``GAMX_TABLE_ROOT``, then
    the packaged data directory. One store is built per distinct root.
    """

    key = (config.active_config().table_root, os.environ.get(paths.GAMX_TABLE_ENV) or None)
    store = _DEFAULT_STORES.get(key)
    if store is not None:
        return store
    with _DEFAULT_LOCK:
        store = _DEFAULT_STORES.get(key)
        if store is None:
            root = key[0] if key[0] is not None else paths.get_table_root()
            store = TableStore.from_directory(root)
            _DEFAULT_STORES[key] = store
    return store


__all__ = [
    "Gender",
    "MissingTableError",
    "ParameterTable",
    "ParameterTableError",
    "TableStore",
    "Variant",
    "VARIANT_AGE_BOUNDS",
    "default_store",
    "table_filename",
]
