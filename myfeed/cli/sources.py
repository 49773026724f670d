"""Sources management commands."""

import asyncio
from datetime import datetime
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from ..db import PersistenceError
from ..ingestion import FeedError, IngestStats
from ..ingestion.dates import utcnow
from ..models import Source
from .run import _load_config
from .runtime import open_runtime

console = Console()
sources_app = typer.Typer(help="Manage feed sources")


def _fmt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


@sources_app.command("list")
def sources_list(
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Only sources with all of these tags"),
) -> None:
    """List all configured sources."""
    config = _load_config()

    async def _list() -> List[Source]:
        async with open_runtime(config) as runtime:
            if tag:
                return await runtime.gateway.list_sources_with_tags(tag)
            return await runtime.gateway.list_sources()

    sources = asyncio.run(_list())
    if not sources:
        console.print("[yellow]No sources configured.[/yellow]")
        return

    table = Table(title="Sources")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("TTL", style="green")
    table.add_column("Last poll", style="yellow")
    table.add_column("Last pub", style="yellow")
    table.add_column("Min date", style="magenta")
    table.add_column("URL", style="blue")

    for source in sources:
        table.add_row(
            str(source.id),
            ("★ " if source.favorite else "") + source.name,
            str(source.ttl) if source.ttl is not None else "-",
            _fmt(source.last_poll),
            _fmt(source.last_pub),
            _fmt(source.min_date),
            source.url,
        )

    console.print(table)


@sources_app.command("add")
def sources_add(
    name: str = typer.Option(..., "--name", "-n", help="Source name"),
    url: str = typer.Option(..., "--url", "-u", help="Feed URL"),
    min_date: Optional[datetime] = typer.Option(
        None,
        "--min-date",
        help="Ignore items published before this date",
        formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"],
    ),
    tag: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag added to every item"),
    favorite: bool = typer.Option(False, "--favorite", help="Mark the source as a favorite"),
) -> None:
    """Add a new source and poll it right away."""
    config = _load_config()
    source = Source(name=name, url=url, min_date=min_date, favorite=favorite)

    async def _add() -> Tuple[Source, IngestStats]:
        async with open_runtime(config) as runtime:
            saved = await runtime.sources.register_source(source)
            if tag:
                await runtime.gateway.add_source_tags(saved.id, [t.lower() for t in tag])
            stats = await runtime.poller.poll_source(saved, utcnow())
            return saved, stats

    try:
        saved, stats = asyncio.run(_add())
    except FeedError as e:
        console.print(f"[red]Feed check failed: {e}[/red]")
        raise typer.Exit(1)
    except PersistenceError as e:
        console.print(f"[red]Could not save source: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Added source: {saved.name} (id {saved.id})[/green]")
    console.print(f"Polled {saved.name}: {stats.inserted} new items")


@sources_app.command("remove")
def sources_remove(
    source_id: int = typer.Argument(..., help="Source ID to remove"),
) -> None:
    """Remove a source. Its items are kept."""
    config = _load_config()

    async def _remove() -> bool:
        async with open_runtime(config) as runtime:
            return await runtime.gateway.delete_source(source_id)

    if not asyncio.run(_remove()):
        console.print(f"[red]Source {source_id} not found.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Removed source {source_id}[/green]")


@sources_app.command("tag")
def sources_tag(
    source_id: int = typer.Argument(..., help="Source ID"),
    tags: List[str] = typer.Argument(..., help="Tags to assign"),
) -> None:
    """Assign tags to a source; new items from it get them too."""
    config = _load_config()

    async def _tag() -> None:
        async with open_runtime(config) as runtime:
            await runtime.gateway.add_source_tags(source_id, [t.lower() for t in tags])

    asyncio.run(_tag())
    console.print(f"[green]✅ Tagged source {source_id}: {', '.join(tags)}[/green]")


@sources_app.command("untag")
def sources_untag(
    source_id: int = typer.Argument(..., help="Source ID"),
    tag: str = typer.Argument(..., help="Tag to remove"),
) -> None:
    """Remove a tag from a source."""
    config = _load_config()

    async def _untag() -> None:
        async with open_runtime(config) as runtime:
            await runtime.gateway.remove_source_tag(source_id, tag)

    asyncio.run(_untag())
    console.print(f"[green]✅ Removed tag {tag} from source {source_id}[/green]")


@sources_app.command("preview")
def sources_preview(
    url: str = typer.Argument(..., help="Feed URL"),
    min_date: Optional[datetime] = typer.Option(
        None,
        "--min-date",
        help="Ignore items published before this date",
        formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"],
    ),
) -> None:
    """Show what a feed would produce, without storing anything."""
    config = _load_config()
    source = Source(name=url, url=url, min_date=min_date)

    async def _preview():
        async with open_runtime(config) as runtime:
            return await runtime.sources.preview_source(source)

    try:
        preview = asyncio.run(_preview())
    except FeedError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Preview of {url}")
    table.add_column("Published", style="yellow")
    table.add_column("Title", style="cyan")
    table.add_column("Tags", style="magenta")
    table.add_column("Image", style="blue")

    for enriched in preview:
        item = enriched.item
        table.add_row(
            _fmt(item.published),
            item.title or item.link,
            ", ".join(sorted(enriched.tags)),
            "✓" if item.image else "✗",
        )

    console.print(table)
