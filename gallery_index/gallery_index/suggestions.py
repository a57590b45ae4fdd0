"""
Tag autocompletion against the remote tag index.

The index is a trie published as static JSON: the term 'big b' under the
'female' field lives at /female/b/i/g/_/b.json.
"""

import logging
from typing import List, Optional, Tuple

import requests

from . import constants as c
from .logging import log_api_call
from .models import Suggestion
from .paths import escape_value
from .transport import create_session

logger = logging.getLogger(__name__)

GLOBAL_FIELD = "global"
# Namespaces shown without a prefix
_BARE_NAMESPACES = {"tag", GLOBAL_FIELD}


def split_query(query: str) -> Tuple[str, str]:
    """'female:big_b' -> ('female', 'big b'); 'glasses' -> ('global', 'glasses')"""
    term = query.replace("_", " ")
    field = GLOBAL_FIELD
    if c.NAMESPACE_SEPARATOR in term:
        field, term = term.split(c.NAMESPACE_SEPARATOR, 1)
    return field, term


def tag_index_url(domain: str, field: str, term: str) -> str:
    segments = "/".join(escape_value(ch) for ch in term)
    return f"https://{domain}/{field}/{segments}.json"


def format_suggestion(item: list) -> Optional[Suggestion]:
    """Converts one [name, count, ns] row into a Suggestion."""
    if not isinstance(item, (list, tuple)) or not item:
        return None
    name = str(item[0])
    count = item[1] if len(item) > 1 and isinstance(item[1], int) else 0
    ns = (item[2] if len(item) > 2 else None) or "tag"
    tag = name if ns in _BARE_NAMESPACES else f"{ns}:{name}"
    return Suggestion(tag=tag, count=count, ns=ns)


class TagSuggester:
    def __init__(
        self,
        domain: str = c.TAG_INDEX_DOMAIN,
        session: Optional[requests.Session] = None,
        timeout: float = c.CATALOG_TIMEOUT_SECONDS,
    ):
        self.domain = domain
        self.session = session or create_session()
        self.timeout = timeout

    def suggest(self, query: str) -> List[Suggestion]:
        """Returns completions for `query`, or [] on any failure."""
        if not query or not query.strip():
            return []

        field, term = split_query(query.strip())
        if not term:
            return []

        url = tag_index_url(self.domain, field, term)
        log_api_call(url, "GET")
        try:
            response = self.session.get(url, timeout=self.timeout)
            if not 200 <= response.status_code < 300:
                logger.info(f"Tag index returned {response.status_code} for '{query}'")
                return []
            rows = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Tag suggestions failed for '{query}': {e}")
            return []

        if not isinstance(rows, list):
            return []
        return [s for s in (format_suggestion(row) for row in rows) if s is not None]
