"""Init command implementation."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, default_config_path, save_config
from ..db import close_connection_pool, init_database, validate_connection

console = Console()


async def _init_schema(db_config: dict) -> bool:
    try:
        if not await validate_connection(db_config):
            return False
        await init_database(db_config)
        return True
    finally:
        await close_connection_pool()


def init_command(
    config_path: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Where to write the config file (default: $MYFEED_CONFIG or ~/.config/myfeed/config.yaml)",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("myfeed", "--db-name", help="Database name"),
    db_user: str = typer.Option("myfeed", "--db-user", help="Database user"),
) -> None:
    """Write a default configuration and create the database schema."""
    if config_path is None:
        config_path = default_config_path()

    config = ConfigModel(
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "MYFEED_DB_PASSWORD",
        },
    )
    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        ok = asyncio.run(_init_schema(config.postgres.model_dump()))
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    if not ok:
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export MYFEED_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ myfeed initialized![/green]\n\n"
            f"Configuration: {config_path}\n\n"
            f"Next steps:\n"
            f"1. Add a source: [bold]myfeed sources add --name Example --url https://example.com/feed.xml[/bold]\n"
            f"2. Start polling: [bold]myfeed run[/bold]",
            style="green",
        )
    )
