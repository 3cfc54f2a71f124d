"""Ingest and status commands."""

import asyncio

import typer
from rich.panel import Panel
from rich.markup import escape
from rich.table import Table

from ..config import Config
from ..db import close_connection_pool, get_connection_pool
from ..errors import CooldownActive, NewsdeskError
from ..pipeline import IngestionOrchestrator, IngestionResult, RunStatus, whole_days
from .common import console, load_settings


async def _run_ingestion(config: Config, force: bool) -> IngestionResult:
    pool = await get_connection_pool(config.get_db_config())
    try:
        orchestrator = IngestionOrchestrator.from_config(config, pool.connection)
        return await orchestrator.run(force=force)
    finally:
        await close_connection_pool()


def print_summary(result: IngestionResult) -> None:
    """Print ingestion run summary."""
    table = Table(title="Ingestion Summary")
    table.add_column("Category", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Duration", style="yellow")
    table.add_column("Details", style="dim")

    for stage in result.stages:
        status = "[green]✓[/green]" if stage.success else "[red]✗[/red]"
        duration = f"{stage.duration:.1f}s" if stage.duration > 0 else "-"
        if stage.success:
            details = (
                f"{stage.stats.get('items', 0)} items, "
                f"{stage.stats.get('new', 0)} new, "
                f"{stage.stats.get('duplicates', 0)} duplicates, "
                f"{stage.stats.get('links', 0)} links"
            )
        else:
            details = escape(str(stage.error)) if stage.error else "Failed"
        table.add_row(stage.name.title(), status, duration, details)

    console.print(table)

    if result.success:
        console.print(Panel(
            f"[green]✅ Ingestion completed successfully![/green]\n\n"
            f"Items processed: {result.processed}",
            style="green",
        ))
    else:
        console.print(Panel(
            f"[red]❌ Ingestion failed![/red]\n\n"
            f"Items processed before failure: {result.processed}\n"
            f"Error: {escape(str(result.error))}",
            style="red",
        ))


def ingest_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Ignore the cooldown window"),
    as_json: bool = typer.Option(False, "--json", help="Print the run result as JSON"),
) -> None:
    """Fetch every category from the provider and store new articles."""
    config = load_settings(ctx)

    try:
        result = asyncio.run(_run_ingestion(config, force))
    except CooldownActive as e:
        console.print(f"[yellow]⏳ {e}. Use --force to run anyway.[/yellow]")
        raise typer.Exit(1)
    except NewsdeskError as e:
        console.print(f"[red]Ingestion failed: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Ingestion interrupted by user[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Database error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=result.to_dict())
    elif result.status == RunStatus.SKIPPED:
        console.print("[yellow]An ingestion run is already in progress.[/yellow]")
    else:
        print_summary(result)

    if result.status == RunStatus.SKIPPED:
        return
    if not result.success:
        raise typer.Exit(1)


async def _read_status(config: Config):
    pool = await get_connection_pool(config.get_db_config())
    try:
        orchestrator = IngestionOrchestrator.from_config(config, pool.connection)
        async with pool.connection() as conn:
            last_run = await orchestrator.checkpoints.get_last_run(conn)
        remaining = await orchestrator.cooldown_remaining()
        return last_run, remaining, orchestrator.cooldown is not None
    finally:
        await close_connection_pool()


def status_command(ctx: typer.Context) -> None:
    """Show the last successful run and the cooldown state."""
    config = load_settings(ctx)

    try:
        last_run, remaining, enforced = asyncio.run(_read_status(config))
    except Exception as e:
        console.print(f"[red]Database error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if last_run is None:
        console.print("No successful ingestion recorded yet.")
        return

    console.print(f"Last successful run: [bold]{last_run.isoformat()}[/bold]")
    if not enforced:
        console.print("Cooldown: [dim]disabled[/dim]")
    elif remaining is not None:
        days = whole_days(remaining)
        console.print(f"Cooldown: [yellow]{days} days remaining[/yellow]")
    else:
        console.print("Cooldown: [green]elapsed, ready to run[/green]")
