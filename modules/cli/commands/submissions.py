"""
Submission Commands.

Admin triage of visitor submissions.
"""

import asyncio

import httpx
import typer
from rich.console import Console
from rich.table import Table

from modules.backend.core.config import get_app_config
from modules.backend.core.exceptions import ApplicationError
from modules.cli.client import get_api_client
from modules.cli.store import raise_for_envelope

app = typer.Typer(help="Submission review commands")
console = Console()


def _path(suffix: str = "") -> str:
    return f"{get_app_config().application.api_prefix}/submissions{suffix}"


@app.command("list")
def list_submissions(
    status: str = typer.Option("pending", "--status", "-s", help="pending, approved or rejected"),
    limit: int = typer.Option(20, "--limit", "-l", help="Page size"),
    offset: int = typer.Option(0, "--offset", "-o", help="Items to skip"),
) -> None:
    """
    List submissions newest first.

    Examples:
        board.py submissions list
        board.py submissions list --status approved --limit 50
    """
    asyncio.run(_list(status, limit, offset))


async def _list(status: str, limit: int, offset: int) -> None:
    client = get_api_client()
    try:
        response = await client.get(_path(), params={"status": status, "limit": limit, "offset": offset})
        body = raise_for_envelope(response)
    except (httpx.HTTPError, ApplicationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        await client.close()

    pagination = body.get("pagination", {})
    table = Table(title=f"Submissions: {status} ({pagination.get('total', '?')} total)", show_header=True)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("From")
    table.add_column("Submitted")

    for item in body.get("data", []):
        table.add_row(
            item["id"],
            item["opportunity_name"],
            item["opportunity_type"],
            item.get("user_name") or "-",
            item["created_at"][:16].replace("T", " "),
        )
    console.print(table)
    if pagination.get("has_more"):
        console.print(f"[dim]More available: --offset {offset + limit}[/dim]")


@app.command()
def approve(submission_id: str = typer.Argument(..., help="Submission ID")) -> None:
    """
    Publish a submission as an active opportunity.

    Examples:
        board.py submissions approve 3f2c...
    """
    asyncio.run(_approve(submission_id))


async def _approve(submission_id: str) -> None:
    client = get_api_client()
    try:
        response = await client.post(_path(f"/{submission_id}/approve"))
        opportunity = raise_for_envelope(response)["data"]
    except (httpx.HTTPError, ApplicationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        await client.close()

    console.print(f"[green]✓ Approved[/green] {opportunity['title']} [dim]({opportunity['id']})[/dim]")
