"""
Posting list (.nozomi) acquisition and parsing.

A nozomi file is a flat sequence of big-endian signed 32-bit gallery ids.
"""

import logging
import struct
from pathlib import Path
from typing import Iterable, Optional, Tuple

import requests

from . import constants as c
from .cache import load_cached_nozomi, save_nozomi_cache, ensure_cache_dirs
from .logging import APIError, log_api_call
from .transport import SingleFlight, create_session

logger = logging.getLogger(__name__)


def parse_posting_list(data: bytes) -> Tuple[int, ...]:
    """
    Decodes nozomi bytes into gallery ids.
    A trailing partial record is dropped.
    """
    count = len(data) // c.NOZOMI_RECORD_SIZE
    remainder = len(data) % c.NOZOMI_RECORD_SIZE
    if remainder:
        logger.warning(f"Posting list has {remainder} trailing bytes; ignoring partial record")
    if count == 0:
        return ()
    return struct.unpack(f">{count}i", data[:count * c.NOZOMI_RECORD_SIZE])


def encode_posting_list(ids: Iterable[int]) -> bytes:
    """Encodes gallery ids into nozomi bytes."""
    ids = list(ids)
    return struct.pack(f">{len(ids)}i", *ids)


def nozomi_url(domain: str, nozomi_path: str) -> str:
    """
    Builds the download URL for a nozomi path.

    The full index sits at the domain root; area and language lists live
    under the 'n/' segment.
    """
    routed = "/" in nozomi_path or nozomi_path.startswith(c.LANGUAGE_INDEX_PREFIX)
    if routed and nozomi_path != c.INDEX_ALL_PATH:
        return f"https://{domain}/{c.NOZOMI_PREFIX}/{nozomi_path}{c.NOZOMI_EXTENSION}"
    return f"https://{domain}/{nozomi_path}{c.NOZOMI_EXTENSION}"


class PostingListStore:
    """
    Fetches posting lists with a disk cache in front of the remote catalog.

    fetch() never raises: not-found, transport failures and write failures
    all degrade to an empty result.
    """

    def __init__(
        self,
        cache_root: Path,
        domain: str = c.CATALOG_DOMAIN,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_age_seconds: int = c.DEFAULT_POSTING_LIST_MAX_AGE_SECONDS,
    ):
        self.cache_root = Path(cache_root)
        self.domain = domain
        self.session = session or create_session()
        self.timeout = timeout
        self.max_age_seconds = max_age_seconds
        self._flights = SingleFlight()
        ensure_cache_dirs(self.cache_root)

    def fetch(self, nozomi_path: str) -> Tuple[int, ...]:
        """Returns the ids listed at nozomi_path, in upstream order."""
        try:
            return self._flights.do(nozomi_path, lambda: self._load(nozomi_path))
        except APIError as e:
            logger.warning(f"Posting list {nozomi_path} unavailable: {e}")
            return ()
        except Exception as e:
            logger.error(f"Error processing posting list {nozomi_path}: {e}", exc_info=True)
            return ()

    def _load(self, nozomi_path: str) -> Tuple[int, ...]:
        data = load_cached_nozomi(self.cache_root, nozomi_path, self.max_age_seconds)
        if data is not None:
            logger.debug(f"Nozomi cache hit: {nozomi_path}")
            return parse_posting_list(data)

        data = self._download(nozomi_path)
        if data:
            save_nozomi_cache(self.cache_root, nozomi_path, data)
        return parse_posting_list(data)

    def _download(self, nozomi_path: str) -> bytes:
        """
        Downloads raw nozomi bytes.

        Returns:
            The body, or b"" when upstream has no such list (404).

        Raises:
            APIError: On any other non-success status or transport error.
        """
        url = nozomi_url(self.domain, nozomi_path)
        log_api_call(url, "GET")
        logger.info(f"Fetching nozomi: {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise APIError(f"GET {url} failed: {e}") from e

        if response.status_code == 404:
            logger.info(f"No posting list at {url}")
            return b""
        if not 200 <= response.status_code < 300:
            raise APIError(f"GET {url} returned {response.status_code}")

        return response.content
