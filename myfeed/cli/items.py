"""Item browsing commands."""

import asyncio
from datetime import timedelta

import typer
from rich.console import Console
from rich.table import Table

from ..ingestion.dates import utcnow
from .run import _load_config
from .runtime import open_runtime

console = Console()
items_app = typer.Typer(help="Browse ingested items")


@items_app.command("list")
def items_list(
    hours: int = typer.Option(24, "--hours", "-h", help="Show items ingested in the last N hours"),
    include_done: bool = typer.Option(False, "--all", "-a", help="Include items marked done"),
) -> None:
    """List recently ingested items, newest first."""
    config = _load_config()
    since = utcnow() - timedelta(hours=hours)

    async def _feed():
        async with open_runtime(config) as runtime:
            return await runtime.gateway.item_feed(since, include_done)

    items = asyncio.run(_feed())
    if not items:
        console.print("[yellow]No items.[/yellow]")
        return

    table = Table(title=f"Items from the last {hours}h")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Tags", style="magenta")
    table.add_column("Link", style="blue")

    for item in items:
        title = item.title or item.link
        if item.done:
            title = f"[strike]{title}[/strike]"
        table.add_row(str(item.id), title, ", ".join(item.tags), item.link)

    console.print(table)


@items_app.command("done")
def items_done(
    item_id: int = typer.Argument(..., help="Item ID"),
    undo: bool = typer.Option(False, "--undo", help="Mark as not done"),
) -> None:
    """Mark an item as done."""
    config = _load_config()

    async def _done() -> None:
        async with open_runtime(config) as runtime:
            await runtime.gateway.set_item_done(item_id, not undo)

    asyncio.run(_done())
    console.print(f"[green]✅ Item {item_id} marked {'not done' if undo else 'done'}[/green]")


@items_app.command("untag")
def items_untag(
    item_id: int = typer.Argument(..., help="Item ID"),
    tag: str = typer.Argument(..., help="Tag to remove"),
) -> None:
    """Remove a tag from an item."""
    config = _load_config()

    async def _untag() -> None:
        async with open_runtime(config) as runtime:
            await runtime.gateway.remove_item_tag(item_id, tag)

    asyncio.run(_untag())
    console.print(f"[green]✅ Removed tag {tag} from item {item_id}[/green]")


@items_app.command("remove")
def items_remove(
    item_id: int = typer.Argument(..., help="Item ID"),
) -> None:
    """Delete an item."""
    config = _load_config()

    async def _remove() -> bool:
        async with open_runtime(config) as runtime:
            return await runtime.gateway.delete_item(item_id)

    if not asyncio.run(_remove()):
        console.print(f"[red]Item {item_id} not found.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Removed item {item_id}[/green]")
