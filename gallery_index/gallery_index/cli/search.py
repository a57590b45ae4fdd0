"""
Search command for gallery_index CLI.

Resolves include/exclude filters into a page of galleries.
"""
import json
import click
from typing import Tuple

from .base import build_records_table, configure_verbosity, console, fail, get_service
from ..logging import ValidationError, get_logger
from ..models import FilterQuery

logger = get_logger(__name__)


@click.command()
@click.option("-i", "--include", "include_terms", multiple=True, metavar="CATEGORY:VALUE",
              help="Require a value (repeatable). Values of one category are OR-ed, categories are AND-ed.")
@click.option("-x", "--exclude", "exclude_terms", multiple=True, metavar="CATEGORY:VALUE",
              help="Drop galleries matching a value (repeatable).")
@click.option("--page", default=1, type=int, help="1-based page number.")
@click.option("--limit", default=None, type=int, help="Galleries per page (default from PROCESSING_PAGE_SIZE).")
@click.option("--json", "as_json", is_flag=True, help="Print the raw page as JSON.")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG).")
def search(include_terms: Tuple[str, ...], exclude_terms: Tuple[str, ...], page: int, limit: int, as_json: bool, verbose: int) -> None:
    """
    Lists galleries matching the filters, newest first.

    Terms without a category prefix are tags, e.g. -i female:glasses -i language:korean -x tag:ai_generated
    """
    configure_verbosity(verbose)
    logger.info(f"Search command started (include={include_terms}, exclude={exclude_terms}, page={page}, limit={limit})")

    service = get_service()
    try:
        query = FilterQuery.from_terms(include_terms, exclude_terms)
        result = service.query_page(query, page, limit or service.config.processing.page_size)
    except ValidationError as e:
        fail(str(e))
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    if not result.records:
        console.print(f"[yellow]No galleries on page {page} ({result.total} total matches).[/yellow]")
        return

    console.print(build_records_table(result.records, f"Page {page} - {result.total} matches"))
    if result.has_more:
        console.print(f"[dim]More results: --page {page + 1}[/dim]")
