"""Main CLI application."""

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .articles import articles_app
from .ingest import ingest_command, status_command
from .init import init_command

app = typer.Typer(
    name="newsdesk",
    help="newsdesk - News ingestion and deduplication backend",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        envvar="NEWSDESK_CONFIG",
        help="Path to config.yaml",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """News ingestion and deduplication backend."""
    ctx.obj = {"config_path": config_path, "verbose": verbose}


# Register commands
app.command("init")(init_command)
app.command("ingest")(ingest_command)
app.command("status")(status_command)
app.add_typer(articles_app, name="articles", help="Maintain stored articles")


if __name__ == "__main__":
    app()
