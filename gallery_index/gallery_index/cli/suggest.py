"""
Suggest command for gallery_index CLI.
"""
import click
from rich import box
from rich.markup import escape
from rich.table import Table

from .base import configure_verbosity, console, get_service


@click.command()
@click.argument("query")
@click.option("--limit", default=20, type=click.IntRange(1, 500), help="Maximum suggestions to show.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def suggest(query: str, limit: int, verbose: int) -> None:
    """Autocompletes a tag, e.g. 'female:big' or 'artist:abc'."""
    configure_verbosity(verbose)

    suggestions = get_service().suggest(query)
    if not suggestions:
        console.print(f"[yellow]No suggestions for '{escape(query)}'.[/yellow]")
        return

    table = Table(title=f"Suggestions for '{query}'", box=box.ROUNDED)
    table.add_column("Tag", style="white bold")
    table.add_column("Namespace", style="magenta")
    table.add_column("Galleries", justify="right", style="cyan")
    for s in suggestions[:limit]:
        table.add_row(s.tag, s.ns, f"{s.count:,}")
    console.print(table)
