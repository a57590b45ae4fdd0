import concurrent.futures
import logging
from typing import Sequence

from .constants import DEFAULT_THREAD_POOL_SIZE
from .logging import ValidationError
from .metadata import MetadataStore
from .models import Page

logger = logging.getLogger(__name__)


class Paginator:
    """Slices an ordered id list and materializes one page of records."""

    def __init__(self, store: MetadataStore, max_workers: int = DEFAULT_THREAD_POOL_SIZE):
        self.store = store
        self.max_workers = max_workers

    def paginate(self, ids: Sequence[int], page_num: int, page_size: int) -> Page:
        """
        Returns page `page_num` (1-based) of `ids`.

        Records that fail to resolve are dropped from the page; the total
        always reflects the full id list.
        """
        if page_num < 1:
            raise ValidationError(f"page must be >= 1, got {page_num}")
        if page_size < 1:
            raise ValidationError(f"limit must be >= 1, got {page_size}")

        total = len(ids)
        start = (page_num - 1) * page_size
        has_more = page_num * page_size < total

        if start >= total:
            return Page(records=[], total=total, has_more=has_more)

        page_ids = [str(i) for i in ids[start:start + page_size]]
        workers = min(self.max_workers, len(page_ids))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            # map() keeps slice order regardless of completion order
            resolved = list(executor.map(self.store.get, page_ids))

        records = [r for r in resolved if r is not None]
        if len(records) < len(page_ids):
            logger.info(f"Page {page_num}: {len(page_ids) - len(records)} of {len(page_ids)} galleries unavailable")

        return Page(records=records, total=total, has_more=has_more)
