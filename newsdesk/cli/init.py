"""Init command implementation."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.panel import Panel

from ..config import DEFAULT_CONFIG_PATH, Config, ConfigModel, save_config
from ..db import close_connection_pool, init_database, validate_connection
from ..logs import configure_logging
from .common import console


async def _prepare_database(db_config: dict) -> bool:
    try:
        if not await validate_connection(db_config):
            return False
        await init_database(db_config)
        return True
    finally:
        await close_connection_pool()


def init_command(
    ctx: typer.Context,
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("newsdesk", "--db-name", help="Database name"),
    db_user: str = typer.Option("newsdesk", "--db-user", help="Database user"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing config file"),
) -> None:
    """Write a default configuration and create the database schema."""
    console.print(Panel.fit("📰 newsdesk - Initialization", style="bold blue"))
    configure_logging("WARNING", console=console)

    config_path: Optional[Path] = (ctx.obj or {}).get("config_path") or DEFAULT_CONFIG_PATH

    if config_path.exists() and not overwrite:
        console.print(f"ℹ️  Keeping existing config: {config_path}")
    else:
        config = ConfigModel(
            postgres={
                "host": db_host,
                "port": db_port,
                "database": db_name,
                "user": db_user,
                "password_env": "NEWSDESK_DB_PASSWORD",
            },
        )
        save_config(config, config_path)
        console.print(f"✅ Created config: {config_path}")

    try:
        db_config = Config(config_path).get_db_config()
    except ValueError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print("\n[bold]Initializing database...[/bold]")
    try:
        ready = asyncio.run(_prepare_database(db_config))
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not ready:
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export NEWSDESK_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ newsdesk initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Set the provider key: [bold]export RAPIDAPI_KEY=your_key[/bold]\n"
            f"2. Run: [bold]newsdesk ingest[/bold]",
            style="green",
        )
    )
