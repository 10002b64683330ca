"""
Opportunity Commands.

Admin commands over the opportunity board. Listing and moves run a local
``ListingView`` on a snapshot fetched from the backend, so the order shown
here is the order a move operates on.
"""

import asyncio
from datetime import datetime

import httpx
import typer
from rich.console import Console
from rich.table import Table

from modules.backend.core.config import get_app_config
from modules.backend.core.exceptions import ApplicationError
from modules.backend.listing.engine import DeadlineState, ViewOptions, deadline_state
from modules.backend.listing.reorder import ReorderCoordinator
from modules.backend.listing.view import ListingView, PollingSnapshotSource, SnapshotQuery
from modules.cli.client import APIClient, get_api_client
from modules.cli.store import HttpOpportunityStore

app = typer.Typer(help="Opportunity board commands")
console = Console()

_DEADLINE_STYLES = {
    DeadlineState.ONGOING: "cyan",
    DeadlineState.OPEN: "green",
    DeadlineState.ENDING_SOON: "yellow",
    DeadlineState.CLOSED: "red",
}


def _fail(error: Exception) -> None:
    if isinstance(error, httpx.ConnectError):
        console.print("[red]Error: Cannot connect to backend[/red]")
        console.print("[dim]Is the server running? Start with: python cli.py --service server[/dim]")
    else:
        console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)


def _build_view(
    status: str,
    statuses: list[str] | None,
    search: str,
    sort: str,
    categories: list[str] | None,
    include_archived: bool,
) -> ListingView:
    query = SnapshotQuery(status=status, include_archived=include_archived)
    options = ViewOptions.build(
        statuses=query.display_statuses(statuses),
        search=search,
        sort=sort,
        include_archived=include_archived,
        categories=categories,
    )
    return ListingView(query, options)


def render_table(view: ListingView, now: datetime | None = None) -> Table:
    """Display sequence as a Rich table with positional indexes."""
    rows = view.display(now)
    table = Table(
        title=f"Opportunities ({len(rows)} of {len(view.snapshot)}, sort: {view.options.sort.value})",
        show_header=True,
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Provider")
    table.add_column("Status")
    table.add_column("Deadline")
    table.add_column("Order", justify="right")

    for index, record in enumerate(rows):
        state = deadline_state(record.deadline, now)
        color = _DEADLINE_STYLES[state]
        deadline = record.deadline.strftime("%Y-%m-%d") if record.deadline else "-"
        status = "archived" if record.archived_at else record.status
        table.add_row(
            str(index),
            record.id[:8],
            record.title,
            record.provider,
            status,
            f"[{color}]{deadline} ({state.value})[/{color}]",
            "-" if record.sort_order is None else str(record.sort_order),
        )
    return table


@app.command("list")
def list_opportunities(
    status: str = typer.Option("all", "--status", "-s", help="Coarse filter: all, active, inactive, archived"),
    statuses: list[str] = typer.Option(None, "--only", help="Fine status filter (repeatable)"),
    search: str = typer.Option("", "--search", "-q", help="Text search"),
    sort: str = typer.Option("default", "--sort", help="default, recent, updated, ongoing, deadline"),
    categories: list[str] = typer.Option(None, "--category", "-c", help="Category tag (repeatable)"),
    include_archived: bool = typer.Option(False, "--archived", "-a", help="Include archived records"),
) -> None:
    """
    Show the board as the admin panel would display it.

    Examples:
        board.py opportunities list
        board.py opportunities list --only active -q grant --sort deadline
    """
    view = _build_view(status, statuses, search, sort, categories, include_archived)
    asyncio.run(_list(view))


async def _list(view: ListingView) -> None:
    client = get_api_client()
    try:
        view.apply_snapshot(await HttpOpportunityStore(client).list(view.query))
        console.print(render_table(view))
    except (httpx.HTTPError, ApplicationError) as e:
        _fail(e)
    finally:
        await client.close()


@app.command()
def move(
    source: int = typer.Argument(..., help="Current position (#) of the record"),
    destination: int = typer.Argument(..., help="Position to move it to"),
    status: str = typer.Option("all", "--status", "-s", help="Coarse filter the positions refer to"),
    include_archived: bool = typer.Option(False, "--archived", "-a", help="Include archived records"),
) -> None:
    """
    Move a record to a new position in the manual order.

    Positions are the # column of `opportunities list` in default sort.

    Examples:
        board.py opportunities move 0 2
    """
    view = _build_view(status, None, "", "default", None, include_archived)
    asyncio.run(_move(view, source, destination))


async def _move(view: ListingView, source: int, destination: int, client: APIClient | None = None) -> None:
    client = client or get_api_client()
    store = HttpOpportunityStore(client)
    try:
        view.apply_snapshot(await store.list(view.query))
        items = await ReorderCoordinator(store, view).move(source, destination)
        if not items:
            console.print("[dim]Nothing to do, record is already in place[/dim]")
            return
        console.print(f"[green]✓ Saved new order for {len(items)} records[/green]")
        console.print(render_table(view))
    except (httpx.HTTPError, ApplicationError) as e:
        _fail(e)
    finally:
        await client.close()


@app.command()
def watch(
    status: str = typer.Option("all", "--status", "-s", help="Coarse filter"),
    sort: str = typer.Option("default", "--sort", help="Sort mode"),
    interval: float = typer.Option(None, "--interval", "-i", help="Poll interval in seconds"),
    updates: int = typer.Option(None, "--updates", "-n", help="Stop after this many snapshots"),
) -> None:
    """
    Follow the board, re-rendering whenever the snapshot changes.

    Examples:
        board.py opportunities watch --interval 2
    """
    view = _build_view(status, None, "", sort, None, False)
    interval = interval or get_app_config().listing.poll_interval_seconds
    try:
        asyncio.run(_watch(view, interval, updates))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped watching[/dim]")


async def _watch(view: ListingView, interval: float, updates: int | None) -> None:
    client = get_api_client()
    source = PollingSnapshotSource(HttpOpportunityStore(client), interval)
    try:
        await view.follow(
            source,
            on_update=lambda current: console.print(render_table(current)),
            max_updates=updates,
        )
    except (httpx.HTTPError, ApplicationError) as e:
        _fail(e)
    finally:
        await client.close()


async def _single(action: str, opportunity_id: str, payload: dict | None = None) -> None:
    client = get_api_client()
    store = HttpOpportunityStore(client)
    try:
        if action == "delete":
            await store.delete(opportunity_id)
            console.print(f"[green]✓ Deleted {opportunity_id}[/green]")
            return
        record = await store.action(opportunity_id, action, payload)
        console.print(f"[green]✓ {action.title()}d[/green] {record.title} [dim]({record.id}, {record.status})[/dim]")
    except (httpx.HTTPError, ApplicationError) as e:
        _fail(e)
    finally:
        await client.close()


@app.command()
def archive(opportunity_id: str = typer.Argument(..., help="Opportunity ID")) -> None:
    """Archive a record (hidden from default listings)."""
    asyncio.run(_single("archive", opportunity_id))


@app.command()
def unarchive(
    opportunity_id: str = typer.Argument(..., help="Opportunity ID"),
    status: str = typer.Option(None, "--status", "-s", help="active or inactive (default from listing.yaml)"),
) -> None:
    """Restore an archived record."""
    asyncio.run(_single("unarchive", opportunity_id, {"status": status} if status else None))


@app.command()
def duplicate(
    opportunity_id: str = typer.Argument(..., help="Opportunity ID"),
    suffix: str = typer.Option(None, "--suffix", help="Title suffix for the copy"),
    status: str = typer.Option("inactive", "--status", "-s", help="Status of the copy"),
) -> None:
    """Copy a record into a new one."""
    payload: dict = {"status": status}
    if suffix is not None:
        payload["title_suffix"] = suffix
    asyncio.run(_single("duplicate", opportunity_id, payload))


@app.command()
def delete(
    opportunity_id: str = typer.Argument(..., help="Opportunity ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Permanently delete a record."""
    if not yes:
        typer.confirm(f"Permanently delete {opportunity_id}?", abort=True)
    asyncio.run(_single("delete", opportunity_id))
