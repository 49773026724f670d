"""Run and poll command implementations."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config
from ..logging_config import setup_logging
from ..pipeline import PollMessage, PollReport
from .runtime import open_runtime

console = Console()


def _load_config() -> Config:
    config = Config()
    try:
        config.config
    except FileNotFoundError:
        console.print("[red]Config file not found. Run 'myfeed init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return config


def _configure_logging(config: Config, verbose: bool) -> None:
    settings = config.config.logging
    setup_logging(
        level="DEBUG" if verbose else settings.level,
        log_dir=Path(settings.log_dir).expanduser() if settings.log_dir else None,
    )


async def _serve(config: Config) -> None:
    async with open_runtime(config) as runtime:
        async with runtime.status_bus.subscribe() as status:
            runtime.poller.start()
            try:
                async for message in status:
                    if message is PollMessage.POLLING:
                        console.print("[dim]Polling sources...[/dim]")
                    else:
                        console.print("[green]Source polled[/green]")
            finally:
                await runtime.poller.stop()


def run_command(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at debug level"),
) -> None:
    """Poll sources forever until interrupted."""
    config = _load_config()
    _configure_logging(config, verbose)

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        console.print("\n[yellow]Poller stopped[/yellow]")


async def _poll(config: Config) -> PollReport:
    async with open_runtime(config) as runtime:
        return await runtime.poller.poll_once()


def print_poll_report(report: PollReport) -> None:
    """Print a summary of one poll cycle."""
    if report.aborted:
        console.print("[red]Poll cycle aborted: sources could not be loaded[/red]")
        return

    table = Table(title="Poll Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="bold")
    table.add_row("Sources checked", str(report.checked))
    table.add_row("Polled", f"[green]{report.polled}[/green]")
    table.add_row("Not due", str(report.skipped))
    table.add_row("Failed", f"[red]{report.failed}[/red]")
    table.add_row("New items", str(report.inserted))
    table.add_row("Already seen", str(report.duplicates))
    console.print(table)


def poll_command(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at debug level"),
) -> None:
    """Run a single poll cycle and print a summary."""
    config = _load_config()
    _configure_logging(config, verbose)

    report = asyncio.run(_poll(config))
    print_poll_report(report)
    if report.aborted:
        raise typer.Exit(1)
