"""Article maintenance commands."""

from typing import List
from uuid import UUID

import typer
from rich.markup import escape
from rich.table import Table

from ..db import ArticleStorage
from ..models import Article, Category
from .common import console, load_settings, run_with_connection

articles_app = typer.Typer(help="Maintain stored articles")


def _parse_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[red]Not a valid article id: {value}[/red]")
        raise typer.Exit(1)


def article_table(title: str, rows: List[Article]) -> Table:
    """Render articles as a rich table."""
    table = Table(title=title)
    table.add_column("Id", style="dim")
    table.add_column("Published", style="yellow")
    table.add_column("Category", style="green")
    table.add_column("Publisher", style="magenta")
    table.add_column("Title", style="cyan")

    for row in rows:
        table.add_row(
            str(row.id),
            row.published_at.strftime("%Y-%m-%d %H:%M"),
            row.category or "-",
            escape(row.publisher),
            escape(row.title),
        )
    return table


@articles_app.command("toggle")
def articles_toggle(
    ctx: typer.Context,
    article_id: str = typer.Argument(..., help="Article id"),
) -> None:
    """Toggle whether an article is active."""
    config = load_settings(ctx)
    parsed = _parse_id(article_id)
    storage = ArticleStorage()

    if not run_with_connection(config, lambda conn: storage.set_status(conn, parsed)):
        console.print(f"[red]Article {article_id} not found.[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Toggled article {article_id}[/green]")


@articles_app.command("clean")
def articles_clean(ctx: typer.Context) -> None:
    """Delete all inactive articles."""
    config = load_settings(ctx)
    storage = ArticleStorage()

    deleted = run_with_connection(config, storage.clean_inactive)
    console.print(f"[green]✅ Deleted {deleted} inactive articles[/green]")


@articles_app.command("subnews")
def articles_subnews(
    ctx: typer.Context,
    article_id: str = typer.Argument(..., help="Parent article id"),
) -> None:
    """List active sub-news linked under an article."""
    config = load_settings(ctx)
    parsed = _parse_id(article_id)
    storage = ArticleStorage()

    async def load(conn):
        parent = await storage.get_article(conn, parsed)
        if parent is None:
            return None, []
        return parent, await storage.get_subnews(conn, parsed)

    parent, rows = run_with_connection(config, load)
    if parent is None:
        console.print(f"[red]Article {article_id} not found.[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]{escape(parent.title)}[/bold]")
    if not rows:
        console.print("[yellow]No sub-news linked to this article.[/yellow]")
        return

    console.print(article_table("Sub-news", rows))


def _print_page(title: str, rows: List[Article], total: int, offset: int) -> None:
    if not rows:
        console.print(f"[yellow]No articles to show ({total} in total).[/yellow]")
        return
    console.print(article_table(title, rows))
    console.print(f"Showing {offset + 1}-{offset + len(rows)} of {total}")


@articles_app.command("inactive")
def articles_inactive(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", min=1, help="Rows per page"),
    offset: int = typer.Option(0, "--offset", min=0, help="Rows to skip"),
) -> None:
    """List inactive articles, the ones 'articles clean' would delete."""
    config = load_settings(ctx)
    storage = ArticleStorage()

    rows, total = run_with_connection(config, lambda conn: storage.list_inactive(conn, limit, offset))
    _print_page("Inactive articles", rows, total, offset)


@articles_app.command("list")
def articles_list(
    ctx: typer.Context,
    category: str = typer.Option(..., "--category", help="Category name"),
    limit: int = typer.Option(10, "--limit", min=1, help="Rows per page"),
    offset: int = typer.Option(0, "--offset", min=0, help="Rows to skip"),
) -> None:
    """List active articles of one category, newest first."""
    try:
        parsed = Category.parse(category)
    except ValueError:
        choices = ", ".join(c.value for c in Category)
        console.print(f"[red]Unknown category: {escape(category)}. Choose from: {choices}[/red]")
        raise typer.Exit(1)

    config = load_settings(ctx)
    storage = ArticleStorage()

    rows, total = run_with_connection(
        config, lambda conn: storage.list_by_category(conn, parsed, limit, offset)
    )
    _print_page(f"{parsed.value.title()} articles", rows, total, offset)
