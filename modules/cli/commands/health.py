"""
Health Commands.

Backend liveness and readiness as seen from the admin client.
"""

import asyncio

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from modules.cli.client import get_api_client

app = typer.Typer(help="Health check commands")
console = Console()

_COLORS = {"healthy": "green", "unhealthy": "red"}


def _color(status: str) -> str:
    return _COLORS.get(status, "yellow")


@app.command()
def status(
    detailed: bool = typer.Option(False, "--detailed", "-d", help="Show per-component status"),
) -> None:
    """
    Check backend health (requires a running server).

    Examples:
        board.py health status
        board.py health status -d
    """
    asyncio.run(_status(detailed))


async def _status(detailed: bool) -> None:
    client = get_api_client()
    try:
        response = await client.get("/health/detailed" if detailed else "/health/ready")
    except httpx.ConnectError:
        console.print("[red]Error: Cannot connect to backend[/red]")
        console.print("[dim]Is the server running? Start with: python cli.py --service server[/dim]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        await client.close()

    if response.status_code not in (200, 503):
        console.print(f"[red]Unexpected response: {response.status_code}[/red]")
        raise typer.Exit(1)

    display_health(response.json(), detailed)
    if response.status_code == 503:
        raise typer.Exit(1)


def display_health(data: dict, detailed: bool) -> None:
    """Render a health payload as a panel or a component table."""
    overall = data.get("status", "unknown")

    if not detailed or "checks" not in data:
        color = _color(overall)
        console.print(Panel(f"[{color}]{overall.upper()}[/{color}]", title="Backend Status"))
        return

    table = Table(title="Health Status", show_header=True)
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    for component, check in data["checks"].items():
        check_status = check.get("status", "unknown")
        details = []
        if "latency_ms" in check:
            details.append(f"latency: {check['latency_ms']}ms")
        if "error" in check:
            details.append(f"error: {check['error']}")
        color = _color(check_status)
        table.add_row(component, f"[{color}]{check_status}[/{color}]", ", ".join(details) or "-")

    console.print(table)

    info = data.get("application")
    if info:
        console.print(f"\n[dim]Application: {info.get('name', 'N/A')} v{info.get('version', 'N/A')}[/dim]")
        console.print(f"[dim]Environment: {info.get('environment', 'N/A')}[/dim]")
