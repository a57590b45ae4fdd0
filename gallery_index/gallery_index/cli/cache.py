"""
Cache maintenance commands for gallery_index CLI.
"""
import click
from rich import box
from rich.table import Table

from .base import configure_verbosity, console, format_bytes, get_service
from ..logging import get_logger

logger = get_logger(__name__)


@click.group()
def cache() -> None:
    """Inspect or clear the gallery and nozomi caches."""
    pass


@cache.command()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def stats(verbose: int) -> None:
    """Shows file counts and sizes of the disk caches."""
    configure_verbosity(verbose)
    service = get_service()
    data = service.cache_stats()

    table = Table(title=f"Cache: {service.cache_root}", box=box.ROUNDED)
    table.add_column("Tier", style="white bold")
    table.add_column("Files", justify="right", style="cyan")
    table.add_column("Size", justify="right")
    table.add_row("Gallery records", str(data["records_files"]), format_bytes(data["records_bytes"]))
    table.add_row("Nozomi lists", str(data["nozomi_files"]), format_bytes(data["nozomi_bytes"]))
    table.add_row("Memory records", str(data["memory_records"]), "-")
    console.print(table)


@cache.command()
@click.option("--records", "only_records", is_flag=True, help="Only clear gallery records.")
@click.option("--nozomi", "only_nozomi", is_flag=True, help="Only clear nozomi lists.")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def clear(only_records: bool, only_nozomi: bool, yes: bool, verbose: int) -> None:
    """Deletes cached files (both tiers unless one is selected)."""
    configure_verbosity(verbose)
    records = only_records or not only_nozomi
    nozomi = only_nozomi or not only_records

    service = get_service()
    if not yes and not click.confirm(f"Clear cache in {service.cache_root}?", default=False):
        console.print("[dim]Aborted.[/dim]")
        return

    removed = service.clear_cache(records=records, nozomi=nozomi)
    logger.info(f"Cache clear command removed {removed} files")
    console.print(f"[green]Removed {removed} cached files.[/green]")
