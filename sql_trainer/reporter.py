from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from sql_trainer.domain.models import SchemaColumn, Task, VerificationResult


def render_task(task: Task, show_solution: bool = False, console: Optional[Console] = None) -> None:
    """
    Render a composed task as a rich panel.

    The physical table name and reference query are only shown with
    `show_solution`, for operators debugging templates.
    """
    console = console or Console()
    view = task.to_view()

    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("Task", view.id)
    table.add_row("Table", view.table)
    table.add_row("Difficulty", view.difficulty.value)
    table.add_row("Template", task.template_key)
    table.add_row("Created", view.created_at.isoformat())
    if show_solution:
        table.add_row("Physical table", f"[dim]{task.table_name}[/dim]")
        table.add_row("Reference", f"[green]{task.reference_query}[/green]")

    console.print(Panel(table, title=f"[bold]{view.description}[/bold]", box=box.ROUNDED))


def render_schema(table_name: str, columns: Sequence[SchemaColumn], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not columns:
        console.print(f"[yellow]Table {table_name!r} not found.[/yellow]")
        return

    table = Table(title=f"Schema of {table_name}", box=box.ROUNDED)
    table.add_column("Column", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Nullable", justify="center")
    for column in columns:
        table.add_row(column.name, column.type, "yes" if column.nullable else "no")
    console.print(table)


def render_result(result: VerificationResult, console: Optional[Console] = None) -> None:
    console = console or Console()
    if result.correct:
        console.print(f"[bold green]✔ {result.message or 'Correct'}[/bold green]")
    else:
        console.print(f"[bold red]✘ {result.message or 'Incorrect'}[/bold red]")
