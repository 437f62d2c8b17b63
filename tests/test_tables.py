from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from gamx import config, paths
from gamx.tables import (
    Gender,
    MissingTableError,
    ParameterTable,
    ParameterTableError,
    TableStore,
    Variant,
    default_store,
    table_filename,
)


def _write(path: Path, payload: str) -> Path:
    path.write_text(payload.strip() + "\n", encoding="utf-8")
    return path


def test_bundled_masters_table_loads(bundled_store: TableStore) -> None:
    table = bundled_store.table(Variant.MASTERS, Gender.MALE)
    assert len(table) == 2
    assert list(table.age) == [30.0, 58.0]
    assert list(table.body_mass) == [69.0, 69.0]
    assert table.mu[1] == pytest.approx(163.770409487479)


def test_table_arrays_are_read_only(bundled_store: TableStore) -> None:
    table = bundled_store.table(Variant.MASTERS, Gender.MALE)
    with pytest.raises(ValueError):
        table.mu[0] = 1.0


def test_store_returns_same_table_instance(bundled_store: TableStore) -> None:
    first = bundled_store.table(Variant.MASTERS, Gender.MALE)
    assert bundled_store.table(Variant.MASTERS, Gender.MALE) is first


def test_bundled_store_lists_available_tables(bundled_store: TableStore) -> None:
    assert bundled_store.available() == [(Variant.MASTERS, Gender.MALE)]
    assert bundled_store.has_table(Variant.MASTERS, Gender.MALE)
    assert not bundled_store.has_table(Variant.SENIOR, Gender.FEMALE)


def test_missing_table_raises_lookup_error(bundled_store: TableStore) -> None:
    with pytest.raises(MissingTableError) as excinfo:
        bundled_store.table(Variant.SENIOR, Gender.MALE)
    assert isinstance(excinfo.value, LookupError)
    assert "senior" in str(excinfo.value)


def test_directory_store_reads_csv(tmp_path: Path) -> None:
    _write(
        tmp_path / table_filename(Variant.SENIOR, Gender.FEMALE),
        """
body_mass,mu,sigma,nu
45,150,0.12,1.0
55,180,0.115,0.8
""",
    )
    store = TableStore.from_directory(tmp_path)
    table = store.table(Variant.SENIOR, Gender.FEMALE)
    assert table.age is None
    assert list(table.body_mass) == [45.0, 55.0]
    assert store.available() == [(Variant.SENIOR, Gender.FEMALE)]


def test_unsorted_body_mass_is_rejected(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "senior-men.csv",
        """
body_mass,mu,sigma,nu
61,250,0.1,1.0
55,230,0.1,1.0
""",
    )
    with pytest.raises(ParameterTableError, match="sorted by body mass"):
        ParameterTable.from_csv(path, Variant.SENIOR, Gender.MALE)


def test_age_blocks_may_restart_body_mass() -> None:
    frame = pd.DataFrame(
        {
            "age": [30, 30, 31, 31],
            "body_mass": [60.0, 80.0, 60.0, 80.0],
            "mu": [200.0, 250.0, 198.0, 247.0],
            "sigma": [0.1] * 4,
            "nu": [1.0] * 4,
        }
    )
    table = ParameterTable.from_frame(frame, Variant.MASTERS, Gender.MALE)
    assert len(table) == 4


def test_non_contiguous_age_blocks_are_rejected() -> None:
    frame = pd.DataFrame(
        {
            "age": [30, 31, 30],
            "body_mass": [60.0, 60.0, 80.0],
            "mu": [200.0, 198.0, 250.0],
            "sigma": [0.1] * 3,
            "nu": [1.0] * 3,
        }
    )
    with pytest.raises(ParameterTableError, match="contiguous"):
        ParameterTable.from_frame(frame, Variant.MASTERS, Gender.MALE)


def test_age_column_required_for_age_dependent_variant() -> None:
    frame = pd.DataFrame({"body_mass": [60.0], "mu": [200.0], "sigma": [0.1], "nu": [1.0]})
    with pytest.raises(ParameterTableError, match="missing columns"):
        ParameterTable.from_frame(frame, Variant.AGE_ADJUSTED, Gender.FEMALE)


@pytest.mark.parametrize(
    "override,message",
    [
        ({"sigma": [0.0]}, "sigma"),
        ({"mu": [float("nan")]}, "non-finite"),
        ({"body_mass": [-1.0]}, "body mass"),
        ({"nu": ["abc"]}, "non-numeric"),
    ],
)
def test_bad_values_are_rejected(override: dict, message: str) -> None:
    payload = {"body_mass": [60.0], "mu": [200.0], "sigma": [0.1], "nu": [1.0]}
    payload.update(override)
    with pytest.raises(ParameterTableError, match=message):
        ParameterTable.from_frame(pd.DataFrame(payload), Variant.SENIOR, Gender.MALE)


def test_empty_table_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "senior-men.csv", "body_mass,mu,sigma,nu")
    with pytest.raises(ParameterTableError, match="no rows"):
        ParameterTable.from_csv(path, Variant.SENIOR, Gender.MALE)


def test_env_override(monkeypatch, tmp_path: Path) -> None:
    custom_root = tmp_path / "tables"
    custom_root.mkdir()
    monkeypatch.setenv(paths.GAMX_TABLE_ENV, str(custom_root))

    assert paths.get_table_root() == custom_root.resolve()
    assert default_store().root == custom_root.resolve()


def test_bundled_fallback(monkeypatch) -> None:
    monkeypatch.delenv(paths.GAMX_TABLE_ENV, raising=False)
    expected = (paths.get_package_root() / "data").resolve()

    assert paths.get_table_root() == expected
    assert default_store().root == expected


def test_bundled_root_ships_masters_tables() -> None:
    root = paths.get_bundled_table_root()
    assert root == (paths.get_package_root() / "data").resolve()
    assert (root / table_filename(Variant.MASTERS, Gender.MALE)).is_file()


def test_configured_root_takes_precedence_over_env(monkeypatch, tmp_path: Path) -> None:
    env_root = tmp_path / "env"
    cfg_root = tmp_path / "cfg"
    env_root.mkdir()
    cfg_root.mkdir()
    monkeypatch.setenv(paths.GAMX_TABLE_ENV, str(env_root))
    config.configure(table_root=cfg_root)

    assert default_store().root == cfg_root.resolve()


def test_default_store_is_reused(monkeypatch) -> None:
    monkeypatch.delenv(paths.GAMX_TABLE_ENV, raising=False)
    assert default_store() is default_store()


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("M", Gender.MALE),
        ("male", Gender.MALE),
        (" Men ", Gender.MALE),
        ("F", Gender.FEMALE),
        ("W", Gender.FEMALE),
        ("women", Gender.FEMALE),
        (Gender.FEMALE, Gender.FEMALE),
        ("X", None),
        ("", None),
        (None, None),
        (1, None),
    ],
)
def test_gender_parse(raw, expected) -> None:
    assert Gender.parse(raw) is expected


def test_variant_age_bounds() -> None:
    assert Variant.MASTERS.age_bounds == (30, 95)
    assert Variant.AGE_ADJUSTED.age_bounds == (13, 40)
    assert Variant.SENIOR.age_bounds is None
    assert not Variant.U17.age_dependent
    assert Variant.MASTERS.age_dependent
