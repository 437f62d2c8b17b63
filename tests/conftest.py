from __future__ import annotations

from itertools import product
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from gamx import config, paths
from gamx.tables import Gender, TableStore, Variant, table_filename

MEN_MASSES = [55.0, 61.0, 67.0, 73.0, 81.0, 89.0, 96.0, 102.0, 109.0, 120.0]
WOMEN_MASSES = [45.0, 49.0, 55.0, 59.0, 64.0, 71.0, 76.0, 81.0, 87.0, 100.0]


def _ramp(lo: float, hi: float, n: int) -> np.ndarray:
    return np.linspace(lo, hi, n)


def mass_only_frame(masses: list[float], mu: tuple[float, float], sigma: tuple[float, float], nu: tuple[float, float]) -> pd.DataFrame:
    n = len(masses)
    return pd.DataFrame(
        {
            "body_mass": masses,
            "mu": _ramp(*mu, n),
            "sigma": _ramp(*sigma, n),
            "nu": _ramp(*nu, n),
        }
    )


def age_frame(ages: list[int], masses: list[float], mu_by_age: dict[int, tuple[float, float]]) -> pd.DataFrame:
    """Rows grouped by age, each block sorted by body mass."""

    rows = []
    n = len(masses)
    for age, (idx, mass) in product(ages, enumerate(masses)):
        lo, hi = mu_by_age[age]
        frac = idx / (n - 1)
        rows.append(
            {
                "age": age,
                "body_mass": mass,
                "mu": lo + (hi - lo) * frac,
                "sigma": 0.09 + 0.002 * (age % 7) + 0.01 * frac,
                "nu": 1.2 - 0.5 * frac,
            }
        )
    return pd.DataFrame(rows)


def synthetic_frames() -> dict[tuple[Variant, Gender], pd.DataFrame]:
    masters_ages = [30, 40, 50, 60, 70]
    adjusted_ages = [13, 16, 20, 30, 40]
    return {
        (Variant.SENIOR, Gender.MALE): mass_only_frame(MEN_MASSES, (230.0, 390.0), (0.11, 0.10), (1.2, 0.6)),
        (Variant.SENIOR, Gender.FEMALE): mass_only_frame(WOMEN_MASSES, (150.0, 250.0), (0.12, 0.11), (1.0, 0.5)),
        (Variant.U17, Gender.MALE): mass_only_frame(MEN_MASSES, (170.0, 300.0), (0.13, 0.12), (1.1, 0.6)),
        (Variant.U17, Gender.FEMALE): mass_only_frame(WOMEN_MASSES, (110.0, 190.0), (0.14, 0.12), (1.0, 0.5)),
        (Variant.MASTERS, Gender.MALE): age_frame(
            masters_ages,
            [60.0, 69.0, 81.0, 102.0],
            {30: (210.0, 300.0), 40: (195.0, 280.0), 50: (175.0, 250.0), 60: (150.0, 215.0), 70: (120.0, 175.0)},
        ),
        (Variant.MASTERS, Gender.FEMALE): age_frame(
            masters_ages,
            [48.0, 58.0, 69.0, 87.0],
            {30: (140.0, 200.0), 40: (130.0, 185.0), 50: (115.0, 165.0), 60: (95.0, 140.0), 70: (75.0, 110.0)},
        ),
        (Variant.AGE_ADJUSTED, Gender.MALE): age_frame(
            adjusted_ages,
            [49.0, 61.0, 73.0, 96.0],
            {13: (90.0, 140.0), 16: (150.0, 230.0), 20: (210.0, 300.0), 30: (230.0, 320.0), 40: (215.0, 300.0)},
        ),
        (Variant.AGE_ADJUSTED, Gender.FEMALE): age_frame(
            adjusted_ages,
            [40.0, 49.0, 59.0, 76.0],
            {13: (70.0, 105.0), 16: (110.0, 160.0), 20: (145.0, 205.0), 30: (155.0, 215.0), 40: (145.0, 200.0)},
        ),
    }


@pytest.fixture(autouse=True)
def reset_engine_config():
    yield
    config.configure()


@pytest.fixture
def synthetic_store() -> TableStore:
    return TableStore.from_frames(synthetic_frames())


@pytest.fixture
def bundled_store() -> TableStore:
    return TableStore.from_directory(paths.get_bundled_table_root())


@pytest.fixture
def synthetic_table_root(tmp_path: Path) -> Path:
    root = tmp_path / "tables"
    root.mkdir()
    for (variant, gender), frame in synthetic_frames().items():
        frame.to_csv(root / table_filename(variant, gender), index=False)
    return root
