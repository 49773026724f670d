"""Tag management commands."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..models import Tag
from .run import _load_config
from .runtime import open_runtime

console = Console()
tags_app = typer.Typer(help="Manage tags")


@tags_app.command("list")
def tags_list() -> None:
    """List all tags."""
    config = _load_config()

    async def _list():
        async with open_runtime(config) as runtime:
            return await runtime.gateway.list_tags()

    tags = asyncio.run(_list())
    if not tags:
        console.print("[yellow]No tags.[/yellow]")
        return

    table = Table(title="Tags")
    table.add_column("Name", style="cyan")
    table.add_column("Background")
    table.add_column("Text")
    table.add_column("Border")
    for tag in tags:
        table.add_row(tag.name, tag.background_color or "-", tag.text_color or "-", tag.border_color or "-")
    console.print(table)


@tags_app.command("set")
def tags_set(
    name: str = typer.Argument(..., help="Tag name"),
    background: Optional[str] = typer.Option(None, "--background", help="Background color"),
    text: Optional[str] = typer.Option(None, "--text", help="Text color"),
    border: Optional[str] = typer.Option(None, "--border", help="Border color"),
) -> None:
    """Create a tag, or update the colors of an existing one."""
    config = _load_config()
    tag = Tag(name=name, background_color=background, text_color=text, border_color=border)

    async def _set() -> bool:
        async with open_runtime(config) as runtime:
            if await runtime.gateway.get_tag(name) is None:
                await runtime.gateway.insert_tag(tag)
                return True
            await runtime.gateway.update_tag(tag)
            return False

    created = asyncio.run(_set())
    console.print(f"[green]✅ {'Created' if created else 'Updated'} tag {name}[/green]")


@tags_app.command("remove")
def tags_remove(
    name: str = typer.Argument(..., help="Tag name"),
) -> None:
    """Delete a tag and unlink it everywhere."""
    config = _load_config()

    async def _remove() -> bool:
        async with open_runtime(config) as runtime:
            return await runtime.gateway.delete_tag(name)

    if not asyncio.run(_remove()):
        console.print(f"[red]Tag {name} not found.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Removed tag {name}[/green]")
