#!/usr/bin/env python3
"""
Opportunity Board Admin Client.

Command-line admin panel for the opportunity board backend.
Built with Typer for commands and Rich for formatted output.

Usage:
    python board.py --help

    # Board
    python board.py opportunities list                    # Current display order
    python board.py opportunities list --sort deadline    # Sorted by deadline
    python board.py opportunities move 4 0                # Drag position 4 to the top
    python board.py opportunities watch                   # Re-render on every change
    python board.py opportunities archive <id>
    python board.py opportunities duplicate <id> --status active

    # Submissions
    python board.py submissions list
    python board.py submissions approve <id>

    # Backend
    python board.py health status -d

Options:
    --token, -t       Admin access token (or BOARD_ADMIN_TOKEN)
    --verbose, -v     INFO level logging
    --debug           DEBUG level logging
"""

import os
import sys
from pathlib import Path

import typer
from rich.console import Console

project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from modules.cli.client import TOKEN_ENV_VAR
from modules.cli.commands import health_app, opportunities_app, submissions_app

app = typer.Typer(
    name="board",
    help="Opportunity Board admin client.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(opportunities_app, name="opportunities")
app.add_typer(submissions_app, name="submissions")
app.add_typer(health_app, name="health")


@app.callback()
def main(
    token: str = typer.Option(
        None,
        "--token",
        "-t",
        help="Admin access token from /api/v1/auth/login",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="INFO level logging"),
    debug: bool = typer.Option(False, "--debug", help="DEBUG level logging"),
) -> None:
    """
    Opportunity Board admin client.

    Lists, reorders and curates opportunities through the backend API.
    """
    if not (project_root / ".project_root").exists():
        console.print("[red]Error: .project_root not found. Run from project root.[/red]")
        raise typer.Exit(1)

    if token:
        os.environ[TOKEN_ENV_VAR] = token

    if debug or verbose:
        from modules.backend.core.logging import setup_logging

        setup_logging(level="DEBUG" if debug else "INFO", format_type="console")
        if debug:
            console.print("[dim]Debug mode enabled[/dim]")


if __name__ == "__main__":
    app()
