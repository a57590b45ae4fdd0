"""
Resolves filter queries into ordered gallery id lists.

Within a category the selected values are OR-ed (union of their posting
lists); across categories they are AND-ed (intersection). Excluded values of
every category are pooled into one set and subtracted at the end.
"""

import concurrent.futures
import logging
from typing import List, Optional, Set, Tuple

from . import paths
from .models import Category, FilterQuery
from .nozomi import PostingListStore
from .constants import DEFAULT_THREAD_POOL_SIZE

logger = logging.getLogger(__name__)


class FilterResolver:
    def __init__(self, store: PostingListStore, max_workers: int = DEFAULT_THREAD_POOL_SIZE):
        self.store = store
        self.max_workers = max_workers

    def resolve(self, query: Optional[FilterQuery] = None) -> List[int]:
        """
        Returns the ids matching the query, newest (highest id) first.
        """
        query = query or FilterQuery()

        if not query.include:
            result = set(self.store.fetch(paths.index_all()))
        else:
            result = self._intersect_includes(query)
            if not result:
                return []

        if query.exclude:
            excluded: Set[int] = set()
            for category, values in query.exclude.items():
                excluded |= self.union(category, values)
            if excluded:
                before = len(result)
                result -= excluded
                logger.debug(f"Exclusions removed {before - len(result)} of {before} ids")

        return sorted(result, reverse=True)

    def _intersect_includes(self, query: FilterQuery) -> Set[int]:
        unions: List[Set[int]] = []
        for category, values in query.include.items():
            ids = self.union(category, values)
            if not ids:
                # One empty category empties the whole intersection
                logger.info(f"No galleries for {category.value}={list(values)}")
                return set()
            unions.append(ids)

        # Smallest first so the running intersection shrinks fastest
        unions.sort(key=len)
        result = set(unions[0])
        for ids in unions[1:]:
            result &= ids
            if not result:
                break
        return result

    def union(self, category: Category, values: Tuple[str, ...]) -> Set[int]:
        """Fetches every value's posting list in parallel and unions them."""
        nozomi_paths = list(dict.fromkeys(paths.encode(category, v) for v in values))
        if not nozomi_paths:
            return set()
        if len(nozomi_paths) == 1:
            return set(self.store.fetch(nozomi_paths[0]))

        combined: Set[int] = set()
        workers = min(self.max_workers, len(nozomi_paths))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            for ids in executor.map(self.store.fetch, nozomi_paths):
                combined.update(ids)
        return combined
