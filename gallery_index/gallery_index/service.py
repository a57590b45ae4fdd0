"""
Query facade used by the presentation layer and the CLI.

GalleryService wires the stores together once per process and exposes the
narrow query/response contract: resolve_page() and resolve_asset_url().
"""

import logging
from typing import Iterable, List, Mapping, Optional

from .cache import MemoryRecordCache, cache_stats, clear_cache
from .config import GalleryIndexConfig, get_config
from .filters import FilterResolver
from .metadata import MetadataStore
from .constants import DEFAULT_PAGE
from .models import ContentRecord, FilterQuery, Page, Suggestion
from .nozomi import PostingListStore
from .paginator import Paginator
from .routing import RoutingResolver
from .suggestions import TagSuggester
from .transport import create_session

logger = logging.getLogger(__name__)


class GalleryService:
    def __init__(self, config: Optional[GalleryIndexConfig] = None, session=None):
        self.config = config or get_config()
        catalog = self.config.catalog
        cache = self.config.cache
        processing = self.config.processing

        self.session = session or create_session(
            user_agent=catalog.user_agent,
            referer=catalog.referer,
            retries=catalog.retries,
            pool_size=processing.thread_pool_size,
        )
        self.cache_root = cache.root

        self.posting_lists = PostingListStore(
            cache.root,
            domain=catalog.domain,
            session=self.session,
            timeout=catalog.posting_list_timeout,
            max_age_seconds=cache.posting_list_max_age_seconds,
        )
        self.metadata = MetadataStore(
            cache.root,
            domain=catalog.domain,
            session=self.session,
            timeout=catalog.timeout,
            memory=MemoryRecordCache(cache.memory_max_records),
        )
        self.routing = RoutingResolver(
            domain=catalog.domain,
            asset_domain=catalog.asset_domain,
            session=self.session,
            ttl_seconds=self.config.routing.ttl_seconds,
            timeout=catalog.timeout,
            default_extension=self.config.routing.extension,
        )
        self.suggester = TagSuggester(
            domain=catalog.tag_index_domain,
            session=self.session,
            timeout=catalog.timeout,
        )
        self.resolver = FilterResolver(self.posting_lists, max_workers=processing.thread_pool_size)
        self.paginator = Paginator(self.metadata, max_workers=processing.thread_pool_size)

    def resolve_ids(self, query: FilterQuery) -> List[int]:
        return self.resolver.resolve(query)

    def resolve_page(
        self,
        page: int = DEFAULT_PAGE,
        limit: Optional[int] = None,
        include: Optional[Mapping[str, Iterable[str]]] = None,
        exclude: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> Page:
        """
        Resolves one page of galleries for the given filters.

        Raises:
            ValidationError: For unknown categories or non-positive page/limit.
        """
        limit = limit or self.config.processing.page_size
        query = FilterQuery.build(include, exclude)
        return self.query_page(query, page, limit)

    def query_page(self, query: FilterQuery, page: int, limit: int) -> Page:
        logger.info(f"Resolving page {page} (limit={limit}) include={_describe(query.include)} exclude={_describe(query.exclude)}")
        ids = self.resolver.resolve(query)
        result = self.paginator.paginate(ids, page, limit)
        logger.info(f"Page {page}: {len(result.records)} records of {result.total}")
        return result

    def get_record(self, gallery_id) -> Optional[ContentRecord]:
        return self.metadata.get(gallery_id)

    def resolve_asset_url(self, content_hash: str, extension: Optional[str] = None) -> str:
        return self.routing.url_for(content_hash, extension)

    def resolve_file_url(self, gallery_id, file_name: str, extension: Optional[str] = None) -> Optional[str]:
        """Delivery URL of a named file inside a gallery, or None if unknown."""
        record = self.metadata.get(gallery_id)
        if record is None:
            return None
        entry = record.find_file(file_name)
        if entry is None or not entry.hash:
            return None
        return self.routing.url_for(entry.hash, extension)

    def suggest(self, query: str) -> List[Suggestion]:
        return self.suggester.suggest(query)

    def cache_stats(self) -> dict:
        stats = cache_stats(self.cache_root)
        stats["memory_records"] = len(self.metadata.memory)
        return stats

    def clear_cache(self, records: bool = True, nozomi: bool = True) -> int:
        if records:
            self.metadata.memory.clear()
        return clear_cache(self.cache_root, records=records, nozomi=nozomi)


def _describe(filters) -> str:
    return "{" + ", ".join(f"{k.value}: {list(v)}" for k, v in filters.items()) + "}"
