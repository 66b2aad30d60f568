"""
Data generation script for the SQL Trainer.

Emits seeded synthetic rows for one table archetype as CSV (handy for eyeballing
generator ranges or seeding fixtures) and can optionally provision a practice
table with the same generator through the engine's Provisioner.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from sql_trainer.catalog.archetypes import archetype as archetype_for
from sql_trainer.config import get_settings
from sql_trainer.domain.models import TableArchetype, TableKind
from sql_trainer.engine.generator import generate
from sql_trainer.engine.provisioner import Provisioner
from sql_trainer.infrastructure.db_factory import create_pool, wait_for_store

app = typer.Typer(help="Generate synthetic practice rows to CSV and optionally provision a table.")


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def write_rows_csv(
    csv_path: Path, blueprint: TableArchetype, rows: List[Dict[str, Any]]
) -> None:
    columns = [c.name for c in blueprint.insertable_columns]
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(columns)
        for row in rows:
            writer.writerow([_format_value(row[name]) for name in columns])


def _provision(blueprint: TableArchetype, rows: int, seed: int, dsn: Optional[str]) -> str:
    settings = get_settings()
    pool = create_pool(settings, dsn=dsn)
    pool.open()
    try:
        wait_for_store(pool, timeout=settings.db_pool_timeout)
        provisioner = Provisioner(
            pool,
            rng=random.Random(seed),
            statement_timeout_ms=settings.db_statement_timeout_ms,
            acquire_timeout=settings.db_pool_timeout,
        )
        return provisioner.provision(blueprint, rows).table_name
    finally:
        pool.close()


@app.command()
def main(
    kind: TableKind = typer.Option(
        TableKind.EMPLOYEES,
        "--kind",
        "-k",
        help="Table archetype to generate rows for.",
    ),
    rows: int = typer.Option(
        50,
        "--rows",
        "-r",
        min=0,
        help="Number of rows to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: Optional[str] = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    provision: bool = typer.Option(
        False,
        "--provision",
        help="Also create a practice table holding rows from the same seed.",
    ),
) -> None:
    """
    Generate synthetic rows for an archetype and optionally provision them.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="sql_trainer_csv_"))
        csv_path = tmpdir / f"{kind.value}.csv"

    blueprint = archetype_for(kind)
    typer.echo(f"Generating {rows:,} {kind.value} rows -> {csv_path} (seed={seed})")
    write_rows_csv(csv_path, blueprint, generate(blueprint, rows, rng=random.Random(seed)))
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if not provision:
        return

    table_name = _provision(blueprint, rows, seed, dsn)
    typer.echo(f"Provisioned {table_name} with {rows:,} rows.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
