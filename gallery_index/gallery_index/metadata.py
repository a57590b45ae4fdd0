import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from . import constants as c
from .cache import MemoryRecordCache, ensure_cache_dirs, load_cached_record, save_record_cache
from .logging import APIError, PayloadError, log_api_call
from .models import ContentRecord, FileEntry
from .transport import SingleFlight, create_session

logger = logging.getLogger(__name__)


def _flag(value: Any) -> bool:
    # Upstream sends "1" / "" (sometimes 1 / 0 / null)
    return value not in (None, "", 0, "0", False)


def _tag_name(raw: Dict[str, Any]) -> str:
    tag = raw.get("tag", "")
    if _flag(raw.get("female")):
        return f"female:{tag}"
    if _flag(raw.get("male")):
        return f"male:{tag}"
    return tag


def _pluck(items: Optional[List[Dict[str, Any]]], key: str) -> List[str]:
    return [item[key] for item in (items or []) if isinstance(item, dict) and item.get(key)]


def refine_type(record: ContentRecord) -> ContentRecord:
    """
    Reconciles the declared type with the tags.

    gamecg, artistcg, imageset and anime tags (in that precedence) always win;
    a webtoon tag only turns manga or doujinshi into webtoon.
    """
    tags = set(record.tags)
    for override in c.TYPE_OVERRIDE_TAGS:
        if override in tags:
            record.type = override
            return record
    if c.WEBTOON_TAG in tags and record.type in c.WEBTOON_OVERRIDABLE_TYPES:
        record.type = c.WEBTOON_TAG
    return record


def normalize_record(data: Dict[str, Any]) -> ContentRecord:
    """
    Converts a raw galleryinfo object into a ContentRecord.

    Raises:
        PayloadError: If the object lacks an id or has a malformed file list.
    """
    if not isinstance(data, dict) or data.get("id") in (None, ""):
        raise PayloadError("gallery document has no id")

    try:
        files = [
            FileEntry(
                name=f.get("name", ""),
                width=int(f.get("width") or 0),
                height=int(f.get("height") or 0),
                hash=f.get("hash") or "",
                has_webp=_flag(f.get("haswebp")),
            )
            for f in data.get("files") or []
        ]
    except (AttributeError, TypeError, ValueError) as e:
        raise PayloadError(f"malformed file list: {e}") from e

    record = ContentRecord(
        id=str(data["id"]),
        title=data.get("title") or "",
        type=data.get("type") or "",
        language=data.get("language") or None,
        tags=[_tag_name(t) for t in data.get("tags") or [] if isinstance(t, dict)],
        artists=_pluck(data.get("artists"), "artist"),
        groups=_pluck(data.get("groups"), "group"),
        series=_pluck(data.get("parodys"), "parody"),
        characters=_pluck(data.get("characters"), "character"),
        files=files,
    )
    return refine_type(record)


def parse_gallery_document(text: str) -> ContentRecord:
    """
    Parses a galleries/<id>.js body ("var galleryinfo = {...}").

    Raises:
        PayloadError: If the body is not the expected JSON payload.
    """
    body = text.strip()
    if body.startswith(c.GALLERY_DOCUMENT_PREFIX):
        body = body[len(c.GALLERY_DOCUMENT_PREFIX):]
    body = body.rstrip(";")

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise PayloadError(f"gallery document is not JSON: {e}") from e

    return normalize_record(data)


def is_valid_gallery_id(gallery_id: Any) -> bool:
    text = str(gallery_id)
    return text.isdigit() and int(text) > 0


class MetadataStore:
    """
    Resolves gallery ids to ContentRecords.

    Lookup order: memory LRU, then galleries/<id>.json on disk, then the remote
    galleries/<id>.js document. get() never raises.
    """

    def __init__(
        self,
        cache_root: Path,
        domain: str = c.CATALOG_DOMAIN,
        session: Optional[requests.Session] = None,
        timeout: float = c.CATALOG_TIMEOUT_SECONDS,
        memory: Optional[MemoryRecordCache] = None,
    ):
        self.cache_root = Path(cache_root)
        self.domain = domain
        self.session = session or create_session()
        self.timeout = timeout
        self.memory = memory if memory is not None else MemoryRecordCache()
        self._flights = SingleFlight()
        ensure_cache_dirs(self.cache_root)

    def gallery_url(self, gallery_id: str) -> str:
        return f"https://{self.domain}/galleries/{gallery_id}.js"

    def get(self, gallery_id) -> Optional[ContentRecord]:
        gallery_id = str(gallery_id).strip()
        if not is_valid_gallery_id(gallery_id):
            logger.warning(f"Ignoring invalid gallery id {gallery_id!r}")
            return None

        record = self.memory.get(gallery_id)
        if record is not None:
            return record

        try:
            return self._flights.do(gallery_id, lambda: self._load(gallery_id))
        except APIError as e:
            logger.warning(f"Gallery {gallery_id} unavailable: {e}")
            return None
        except Exception as e:
            logger.error(f"Error loading gallery {gallery_id}: {e}", exc_info=True)
            return None

    def _load(self, gallery_id: str) -> ContentRecord:
        # Another caller may have filled memory while we waited for the flight
        record = self.memory.get(gallery_id)
        if record is not None:
            return record

        cached = load_cached_record(self.cache_root, gallery_id)
        if cached is not None:
            # Re-run refinement so rule changes apply to old cache files
            record = refine_type(cached)
            self.memory.put(record)
            return record

        record = self._fetch_remote(gallery_id)
        self.memory.put(record)
        save_record_cache(self.cache_root, record)
        return record

    def _fetch_remote(self, gallery_id: str) -> ContentRecord:
        """
        Raises:
            APIError: On non-success status, timeout or transport error.
            PayloadError: If the document cannot be parsed.
        """
        url = self.gallery_url(gallery_id)
        log_api_call(url, "GET")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            raise APIError(f"GET {url} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise APIError(f"GET {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise APIError(f"GET {url} returned {response.status_code}")

        record = parse_gallery_document(response.text)
        logger.info(f"Fetched gallery {gallery_id}: {record.title}")
        return record
