"""Score totals, solve kg targets and rank athletes with the GAMX engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gamx import config
from gamx.frame import rank_frame
from gamx.score import InvalidReason, explain_score
from gamx.tables import Gender, ParameterTableError, Variant, default_store
from gamx.target import INVALID_TARGET, kg_target

app = typer.Typer(help=__doc__, no_args_is_help=True)
console = Console()

LOGGER = logging.getLogger(__name__)


def _parse_gender(value: str) -> Gender:
    parsed = Gender.parse(value)
    if parsed is None:
        raise typer.BadParameter(f"Unknown gender {value!r}; use M or F.")
    return parsed


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


@app.callback()
def main(
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML engine config (optional `gamx:` section)."),
    table_root: Optional[Path] = typer.Option(
        None,
        "--table-root",
        help="Directory of parameter table CSVs (defaults to GAMX_TABLE_ROOT or the packaged tables).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")
    try:
        cfg = config.load_engine_config(config_path) if config_path else config.EngineConfig()
    except (FileNotFoundError, ValueError) as exc:
        _fail(f"Invalid config: {exc}")
    overrides = {"table_root": table_root} if table_root is not None else {}
    active = config.configure(cfg, **overrides)
    LOGGER.debug("Engine config: %s", active)


@app.command()
def score(
    gender: str = typer.Option(..., "--gender", "-g", help="M or F."),
    body_mass: float = typer.Option(..., "--body-mass", "-b", help="Body mass (kg)."),
    total: float = typer.Option(..., "--total", "-t", help="Total lifted (kg)."),
    variant: Variant = typer.Option(Variant.SENIOR, "--variant", help="Parameter table family."),
    age: Optional[int] = typer.Option(None, "--age", help="Age in years (age-dependent variants only)."),
    explain: bool = typer.Option(False, "--explain", help="Show the resolved distribution parameters."),
) -> None:
    """Print the GAMX score for one total."""

    result = explain_score(_parse_gender(gender), body_mass, total, variant, age)
    if result.reason is InvalidReason.TABLE:
        _fail(result.message or f"No usable {variant.value} table")
    if not result.valid:
        _fail(f"Invalid input ({result.reason.value}); score is {result.score:.2f}")

    console.print(f"{result.score:.2f}")
    if explain and result.parameters is not None:
        table = Table(title=f"GAMX {variant.value}")
        for column in ("mu", "sigma", "nu", "p", "z"):
            table.add_column(column, justify="right")
        params = result.parameters
        table.add_row(
            f"{params.mu:.6f}",
            f"{params.sigma:.6f}",
            f"{params.nu:.6f}",
            f"{result.probability:.6f}",
            f"{result.z:.6f}",
        )
        console.print(table)


@app.command()
def target(
    gender: str = typer.Option(..., "--gender", "-g", help="M or F."),
    body_mass: float = typer.Option(..., "--body-mass", "-b", help="Body mass (kg)."),
    score_to_beat: float = typer.Option(..., "--score", "-s", help="Score that must be strictly beaten."),
    variant: Variant = typer.Option(Variant.SENIOR, "--variant", help="Parameter table family."),
    age: Optional[int] = typer.Option(None, "--age", help="Age in years (age-dependent variants only)."),
    max_total: Optional[int] = typer.Option(None, "--max-total", min=1, help="Upper bound for the search (kg)."),
) -> None:
    """Print the smallest whole-kilo total that beats a score."""

    parsed = _parse_gender(gender)
    try:
        default_store().table(variant, parsed)
    except ParameterTableError as exc:
        _fail(str(exc))
    needed = kg_target(parsed, body_mass, score_to_beat, variant, age, max_total=max_total)
    if needed == INVALID_TARGET:
        _fail(f"No total up to {max_total or config.active_config().max_total} kg beats {score_to_beat:.2f}")
    console.print(str(needed))


@app.command()
def rank(
    athletes: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV with gender, body_mass, total[, age]."),
    variant: Variant = typer.Option(Variant.SENIOR, "--variant", help="Parameter table family."),
    out: Optional[Path] = typer.Option(None, "--out", help="Write the ranking to this CSV instead of printing it."),
) -> None:
    """Rank every athlete in a CSV by GAMX score."""

    df = pd.read_csv(athletes)
    try:
        ranked = rank_frame(df, variant)
    except ValueError as exc:
        _fail(str(exc))

    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        ranked.to_csv(out, index=False)
        console.print(f"Wrote {len(ranked)} rows to [bold]{out}[/bold]")
        return

    table = Table(title=f"GAMX {variant.value} ranking")
    for column in ranked.columns:
        table.add_column(str(column))
    for row in ranked.itertuples(index=False):
        table.add_row(*["" if pd.isna(value) else (f"{value:.2f}" if isinstance(value, float) else str(value)) for value in row])
    console.print(table)


@app.command()
def tables() -> None:
    """List the parameter tables installed under the active table root."""

    store = default_store()
    console.print(f"Table root: [bold]{store.root}[/bold]")
    available = store.available()
    if not available:
        console.print("[yellow]No parameter tables found.[/yellow]")
        return

    listing = Table()
    listing.add_column("variant")
    listing.add_column("gender")
    listing.add_column("rows", justify="right")
    listing.add_column("ages")
    for variant, gender in available:
        try:
            table = store.table(variant, gender)
        except ParameterTableError as exc:
            listing.add_row(variant.value, gender.value, "-", f"[red]{escape(str(exc))}[/red]")
            continue
        ages = "" if table.age is None else f"{int(table.age.min())}-{int(table.age.max())}"
        listing.add_row(variant.value, gender.value, str(len(table)), ages)
    console.print(listing)


if __name__ == "__main__":  # pragma: no cover
    app()
