"""
Image delivery routing.

Images are sharded across subdomains a1, a2, ... by a bucket derived from the
file hash. The bucket -> subdomain table and the path prefix are published in
gg.js and rotate over time, so the extracted program is refetched at most once
per TTL.
"""

import logging
import re
import threading
import time
from typing import Callable, Optional

import requests

from . import constants as c
from .logging import APIError, log_api_call
from .models import RoutingProgram
from .transport import create_session

logger = logging.getLogger(__name__)

_DEFAULT_RE = re.compile(r"var o = (\d)")
_OVERRIDE_RE = re.compile(r"o = (\d); break;")
_BASE_PATH_RE = re.compile(r"b:\s*'(.+?)'")
_CASE_RE = re.compile(r"case (\d+):")
_BUCKET_RE = re.compile(r"([0-9a-fA-F]{2})([0-9a-fA-F])\Z")

FALLBACK_PROGRAM = RoutingProgram(
    table={},
    default=c.ROUTING_FALLBACK_DEFAULT,
    base_path=c.ROUTING_FALLBACK_BASE_PATH,
)


def extract_routing_program(script: str) -> RoutingProgram:
    """
    Pulls the routing table out of gg.js source text.

    Every 'case N:' label maps to the single override value; unmatched
    patterns fall back to 0 / empty base path.
    """
    default_match = _DEFAULT_RE.search(script)
    override_match = _OVERRIDE_RE.search(script)
    base_match = _BASE_PATH_RE.search(script)

    default = int(default_match.group(1)) if default_match else 0
    override = int(override_match.group(1)) if override_match else 0
    base_path = base_match.group(1) if base_match else ""

    table = {int(label): override for label in _CASE_RE.findall(script)}
    return RoutingProgram(table=table, default=default, base_path=base_path)


def hash_bucket(content_hash: str) -> int:
    """
    Bucket of a file hash: for a hash ending in 'xyz', int('z' + 'xy', 16).
    Returns 0 for hashes that are too short or not hex.
    """
    match = _BUCKET_RE.search(content_hash or "")
    if not match:
        return 0
    return int(match.group(2) + match.group(1), 16)


def subdomain_for(program: RoutingProgram, content_hash: str) -> str:
    return f"a{program.lookup(hash_bucket(content_hash)) + 1}"


def build_asset_url(program: RoutingProgram, content_hash: str, asset_domain: str, extension: str) -> str:
    bucket = hash_bucket(content_hash)
    subdomain = subdomain_for(program, content_hash)
    return f"https://{subdomain}.{asset_domain}/{program.base_path}{bucket}/{content_hash}.{extension}"


class RoutingResolver:
    """
    Owns the process-wide RoutingProgram and its last successful fetch time.
    """

    def __init__(
        self,
        domain: str = c.CATALOG_DOMAIN,
        asset_domain: str = c.ASSET_DOMAIN,
        session: Optional[requests.Session] = None,
        ttl_seconds: float = c.ROUTING_TTL_SECONDS,
        timeout: float = c.CATALOG_TIMEOUT_SECONDS,
        default_extension: str = c.ROUTING_DEFAULT_EXTENSION,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.domain = domain
        self.asset_domain = asset_domain
        self.session = session or create_session()
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self.default_extension = default_extension
        self._clock = clock
        self._program: Optional[RoutingProgram] = None
        self._fetched_at: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def script_url(self) -> str:
        return f"https://{self.domain}/{c.ROUTING_SCRIPT_NAME}"

    def program(self) -> RoutingProgram:
        """
        Returns the current program, refreshing it when older than the TTL.

        A failed refresh is not remembered: the previous program (or the
        fallback when there is none) is served and the next call tries again.
        """
        now = self._clock()
        with self._lock:
            program, fetched_at = self._program, self._fetched_at
        if program is not None and fetched_at is not None and now - fetched_at < self.ttl_seconds:
            return program

        try:
            fresh = self._fetch()
        except APIError as e:
            logger.warning(f"Routing refresh failed, using {'stale' if program else 'fallback'} program: {e}")
            return program or FALLBACK_PROGRAM

        # Concurrent refreshes may race here; the last writer wins
        with self._lock:
            self._program = fresh
            self._fetched_at = now
        logger.info(f"Routing program refreshed: {len(fresh.table)} cases, base '{fresh.base_path}'")
        return fresh

    def url_for(self, content_hash: str, extension: Optional[str] = None) -> str:
        return build_asset_url(self.program(), content_hash, self.asset_domain, extension or self.default_extension)

    def invalidate(self) -> None:
        with self._lock:
            self._fetched_at = None

    def _fetch(self) -> RoutingProgram:
        url = self.script_url
        log_api_call(url, "GET")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise APIError(f"GET {url} failed: {e}") from e
        if not 200 <= response.status_code < 300:
            raise APIError(f"GET {url} returned {response.status_code}")
        return extract_routing_program(response.text)
