"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .init import init_command
from .items import items_app
from .run import poll_command, run_command
from .sources import sources_app
from .tags import tags_app

app = typer.Typer(
    name="myfeed",
    help="myfeed - scheduled feed ingestion",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("run")(run_command)
app.command("poll")(poll_command)
app.add_typer(sources_app, name="sources", help="Manage feed sources")
app.add_typer(items_app, name="items", help="Browse ingested items")
app.add_typer(tags_app, name="tags", help="Manage tags")


if __name__ == "__main__":
    app()
