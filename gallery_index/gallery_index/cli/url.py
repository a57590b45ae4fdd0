"""
Delivery URL commands for gallery_index CLI.
"""
import click
from typing import Optional

from .base import configure_verbosity, console, fail, get_service
from ..logging import get_logger

logger = get_logger(__name__)

EXTENSIONS = click.Choice(["avif", "webp"], case_sensitive=False)


@click.command()
@click.argument("content_hash")
@click.option("--ext", "extension", type=EXTENSIONS, default=None, help="Image format (default from ROUTING_EXTENSION).")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def url(content_hash: str, extension: Optional[str], verbose: int) -> None:
    """Prints the current delivery URL for a file hash."""
    configure_verbosity(verbose)
    click.echo(get_service().resolve_asset_url(content_hash, extension))


@click.command("file-url")
@click.argument("gallery_id")
@click.argument("file_name")
@click.option("--ext", "extension", type=EXTENSIONS, default=None, help="Image format (default from ROUTING_EXTENSION).")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def file_url(gallery_id: str, file_name: str, extension: Optional[str], verbose: int) -> None:
    """Prints the delivery URL of FILE_NAME inside gallery GALLERY_ID."""
    configure_verbosity(verbose)
    logger.info(f"File URL lookup (gallery_id={gallery_id}, file_name={file_name})")

    target = get_service().resolve_file_url(gallery_id, file_name, extension)
    if target is None:
        fail(f"No file '{file_name}' in gallery {gallery_id}")
        return
    console.print(target, soft_wrap=True)
