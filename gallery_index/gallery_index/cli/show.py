"""
Show command for gallery_index CLI.

Displays one gallery's metadata and file list.
"""
import click
from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .base import configure_verbosity, console, fail, get_service
from ..logging import get_logger
from ..metadata import is_valid_gallery_id

logger = get_logger(__name__)


@click.command()
@click.argument("gallery_id")
@click.option("--files", "show_files", is_flag=True, help="List every file with its hash.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def show(gallery_id: str, show_files: bool, verbose: int) -> None:
    """Shows metadata for a single gallery."""
    configure_verbosity(verbose)
    logger.info(f"Show command started (gallery_id={gallery_id}, files={show_files})")

    if not is_valid_gallery_id(gallery_id):
        fail(f"'{gallery_id}' is not a gallery id")
        return

    record = get_service().get_record(gallery_id)
    if record is None:
        console.print(f"[red]Gallery {gallery_id} not found or unavailable.[/red]")
        return

    details = Text()
    details.append(f"Type: {record.type}\n", style="magenta")
    details.append(f"Language: {record.language or '-'}\n")
    for label, values in (
        ("Artists", record.artists),
        ("Groups", record.groups),
        ("Series", record.series),
        ("Characters", record.characters),
        ("Tags", record.tags),
    ):
        details.append(f"{label}: ", style="bold")
        details.append(", ".join(values) if values else "-")
        details.append("\n")
    details.append(f"Pages: {len(record.files)}", style="cyan")

    console.print(Panel(details, title=f"[bold]{record.title}[/bold] [dim]#{record.id}[/dim]", expand=False))

    if show_files and record.files:
        table = Table(box=box.SIMPLE)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Name")
        table.add_column("Size", justify="right")
        table.add_column("WebP", justify="center")
        table.add_column("Hash", style="dim")
        for idx, entry in enumerate(record.files, 1):
            table.add_row(
                str(idx),
                entry.name,
                f"{entry.width}x{entry.height}",
                "yes" if entry.has_webp else "no",
                entry.hash,
            )
        console.print(table)
