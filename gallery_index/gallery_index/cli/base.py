"""
Helpers shared by every gallery_index command.
"""
import logging
import sys
from typing import List, Optional

from rich import box
from rich.markup import escape
from rich.table import Table

from ..config import get_config, get_logging_config
from ..logging import ConfigError, console, get_logger, set_log_level, setup_logging
from ..models import ContentRecord
from ..service import GalleryService

logger = get_logger(__name__)

_service: Optional[GalleryService] = None


def get_service() -> GalleryService:
    """Returns the process-wide GalleryService, building it on first use."""
    global _service
    if _service is None:
        try:
            _service = GalleryService(get_config())
        except ConfigError as e:
            fail(str(e))
    return _service


def configure_verbosity(verbose: int) -> None:
    """Applies LOG_* settings, then maps -v / -vv to console levels."""
    try:
        log_config = get_logging_config()
    except ConfigError as e:
        fail(str(e))
        return
    setup_logging(log_config.log_file)
    set_log_level(log_config.file_level, "file")

    log_level = log_config.console_level
    clean_logs = False
    if verbose == 1:
        log_level = logging.INFO
        clean_logs = True
    elif verbose >= 2:
        log_level = logging.DEBUG

    set_log_level(log_level, "console", clean=clean_logs)


def fail(message: str) -> None:
    """Prints an error and exits with status 1."""
    logger.error(message)
    console.print(f"[red]Error: {escape(message)}[/red]")
    sys.exit(1)


def _join(values: List[str], limit: int = 3) -> str:
    shown = ", ".join(values[:limit])
    if len(values) > limit:
        shown += f" (+{len(values) - limit})"
    return shown


def build_records_table(records: List[ContentRecord], title: str) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Title", style="white bold")
    table.add_column("Type", justify="center", style="magenta")
    table.add_column("Lang", justify="center", style="dim")
    table.add_column("Artists", style="cyan")
    table.add_column("Tags", style="dim")
    table.add_column("Pages", justify="right")

    for record in records:
        table.add_row(
            record.id,
            record.title,
            record.type,
            record.language or "-",
            _join(record.artists, 2),
            _join(record.tags, 4),
            str(len(record.files)),
        )
    return table


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1024
        if value < 1024 or unit == "GB":
            break
    return f"{value:.1f} {unit}"
