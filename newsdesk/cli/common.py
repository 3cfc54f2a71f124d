"""Helpers shared by CLI commands."""

import asyncio
from typing import Any, Awaitable, Callable

import typer
from psycopg import AsyncConnection
from rich.console import Console
from rich.markup import escape

from ..config import Config
from ..db import close_connection_pool, get_connection
from ..logs import configure_logging

console = Console()


def load_settings(ctx: typer.Context) -> Config:
    """Load configuration for a command, configuring logging on the way."""
    options = ctx.obj or {}
    config = Config(options.get("config_path"))

    try:
        level = config.config.logging.level
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config.config_path}[/red]")
        console.print("Run 'newsdesk init' first.")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    configure_logging("DEBUG" if options.get("verbose") else level, console=console)
    return config


async def _with_connection(config: Config, func: Callable[[AsyncConnection], Awaitable[Any]]) -> Any:
    try:
        async with get_connection(config.get_db_config()) as conn:
            async with conn.transaction():
                return await func(conn)
    finally:
        await close_connection_pool()


def run_with_connection(config: Config, func: Callable[[AsyncConnection], Awaitable[Any]]) -> Any:
    """Run a coroutine function against one pooled connection, in a transaction."""
    return asyncio.run(_with_connection(config, func))
