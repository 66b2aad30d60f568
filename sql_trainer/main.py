from __future__ import annotations

import sys
from typing import Optional

import typer

from sql_trainer.catalog.consistency import check_catalog
from sql_trainer.catalog.templates import templates
from sql_trainer.config import get_settings
from sql_trainer.domain.errors import CatalogError, TrainerError
from sql_trainer.domain.models import TableKind
from sql_trainer.reporter import render_result, render_schema, render_task
from sql_trainer.service import TrainerService
from sql_trainer.utils.logging import configure_logging

app = typer.Typer(help="SQL Trainer CLI: generate practice tasks and check solutions.")


def _configure() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool={settings.db_pool_min_size}-{settings.db_pool_max_size} "
        f"statement_timeout={settings.db_statement_timeout_ms}ms | "
        f"rows={settings.task_row_count} store={settings.task_store} | "
        f"templates={len(templates())}"
    )


@app.command()
def check() -> None:
    """
    Run the catalog consistency check without touching the database.
    """
    try:
        check_catalog()
    except CatalogError as exc:
        for problem in exc.problems:
            typer.echo(f"- {problem}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Catalog OK ({len(templates())} templates).")


@app.command()
def compose(
    kind: Optional[TableKind] = typer.Option(
        None, "--kind", "-k", help="Restrict to one table archetype."
    ),
    template: Optional[str] = typer.Option(
        None, "--template", "-t", help="Force a specific template key."
    ),
    show_solution: bool = typer.Option(
        False, "--show-solution", help="Also print the physical table and reference query."
    ),
) -> None:
    """
    Provision a practice table and print a new task.
    """
    _configure()
    try:
        with TrainerService.from_settings() as service:
            task = service.compose(kind=kind, template_key=template)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    except TrainerError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    render_task(task, show_solution=show_solution)


@app.command()
def verify(
    task_id: str = typer.Argument(..., help="Task id printed by `compose`."),
    query: str = typer.Argument(..., help="Candidate SQL query."),
) -> None:
    """
    Check a solution for a previously composed task.

    Tasks only outlive the composing process with TASK_STORE=postgres.
    """
    _configure()
    settings = get_settings()
    if settings.task_store != "postgres":
        typer.echo("verify needs TASK_STORE=postgres to find tasks from other runs.", err=True)
        raise typer.Exit(code=2)
    try:
        with TrainerService.from_settings(settings) as service:
            result = service.verify(task_id, query)
    except TrainerError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    render_result(result)
    if not result.correct:
        raise typer.Exit(code=1)


@app.command()
def schema(table: str = typer.Argument(..., help="Physical table name.")) -> None:
    """
    Show the columns of a table in the current schema.
    """
    _configure()
    with TrainerService.from_settings() as service:
        columns = service.schema_of(table)
    render_schema(table, columns)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default API_HOST)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default PORT)."),
) -> None:
    """
    Run the HTTP API with uvicorn.
    """
    import uvicorn

    from sql_trainer.api import create_app

    _configure()
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=None,
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
