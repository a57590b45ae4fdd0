"""
Caching functionality for gallery records and nozomi posting lists.

Disk layout under the cache root:
    galleries/<id>.json          one normalized ContentRecord per file
    nozomi/<path>.nozomi         raw posting list bytes, '/' and ':' replaced by '-'
"""

import json
import logging
import threading
import time
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, Optional

from .models import ContentRecord
from .constants import (
    GALLERY_CACHE_DIRNAME,
    NOZOMI_CACHE_DIRNAME,
    NOZOMI_EXTENSION,
    CACHE_FILENAME_FILLER,
    DEFAULT_MEMORY_MAX_RECORDS,
)

logger = logging.getLogger(__name__)


def get_gallery_cache_dir(cache_root: Path) -> Path:
    return Path(cache_root) / GALLERY_CACHE_DIRNAME


def get_nozomi_cache_dir(cache_root: Path) -> Path:
    return Path(cache_root) / NOZOMI_CACHE_DIRNAME


def nozomi_cache_filename(nozomi_path: str) -> str:
    """'tag/female:glasses-all' -> 'tag-female-glasses-all.nozomi'"""
    safe = nozomi_path.replace("/", CACHE_FILENAME_FILLER).replace(":", CACHE_FILENAME_FILLER)
    return safe + NOZOMI_EXTENSION


def get_record_cache_path(cache_root: Path, gallery_id: str) -> Path:
    return get_gallery_cache_dir(cache_root) / f"{gallery_id}.json"


def get_nozomi_cache_path(cache_root: Path, nozomi_path: str) -> Path:
    return get_nozomi_cache_dir(cache_root) / nozomi_cache_filename(nozomi_path)


def ensure_cache_dirs(cache_root: Path) -> None:
    """Creates the cache directories. Failure only disables disk caching."""
    for directory in (get_gallery_cache_dir(cache_root), get_nozomi_cache_dir(cache_root)):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create cache directory {directory}: {e}")


_RECORD_LIST_FIELDS = ("tags", "artists", "groups", "series", "characters")


def _check_record_shape(data: Any, gallery_id: str) -> None:
    """Raises ValueError when cached JSON is not a record for gallery_id."""
    if not isinstance(data, dict):
        raise ValueError("not a JSON object")
    if str(data.get("id", "")) != gallery_id:
        raise ValueError(f"id {data.get('id')!r} does not match {gallery_id}")
    for name in _RECORD_LIST_FIELDS:
        values = data.get(name, [])
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise ValueError(f"'{name}' is not a list of strings")
    files = data.get("files", [])
    if not isinstance(files, list) or not all(isinstance(f, dict) for f in files):
        raise ValueError("'files' is not a list of objects")


def load_cached_record(cache_root: Path, gallery_id: str) -> Optional[ContentRecord]:
    """
    Loads a record from the disk cache.

    Returns:
        The cached ContentRecord, or None if missing, unreadable or not
        shaped like a record for gallery_id (the caller then refetches).
    """
    cache_file = get_record_cache_path(cache_root, gallery_id)
    if not cache_file.exists():
        return None

    try:
        with open(cache_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        _check_record_shape(data, gallery_id)
        return ContentRecord.from_dict(data)
    except (json.JSONDecodeError, OSError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Ignoring unreadable gallery cache {cache_file}: {e}")
        return None


def save_record_cache(cache_root: Path, record: ContentRecord) -> bool:
    """
    Saves a record to the disk cache.

    Returns:
        True if successful, False otherwise.
    """
    cache_file = get_record_cache_path(cache_root, record.id)
    try:
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        with open(cache_file, "w", encoding="utf-8") as f:
            json.dump(record.to_dict(), f, ensure_ascii=False)
        return True
    except (OSError, TypeError) as e:
        logger.error(f"Failed to save gallery cache {cache_file}: {e}")
        return False


def load_cached_nozomi(cache_root: Path, nozomi_path: str, max_age_seconds: int = 0) -> Optional[bytes]:
    """
    Reads cached posting list bytes.

    An empty file is never valid (a download must have been interrupted), so it
    is removed and None is returned to force a refetch. With a positive
    max_age_seconds, files older than that are treated as missing.
    """
    cache_file = get_nozomi_cache_path(cache_root, nozomi_path)
    if not cache_file.exists():
        return None

    try:
        stat = cache_file.stat()
        if stat.st_size == 0:
            logger.warning(f"Removing empty nozomi cache {cache_file}")
            cache_file.unlink(missing_ok=True)
            return None

        if max_age_seconds > 0:
            cache_age = time.time() - stat.st_mtime
            if cache_age > max_age_seconds:
                logger.info(f"Nozomi cache is stale ({cache_age:.1f}s old, max {max_age_seconds}s): {cache_file.name}")
                return None

        return cache_file.read_bytes()
    except OSError as e:
        logger.warning(f"Failed to read nozomi cache {cache_file}: {e}")
        return None


def save_nozomi_cache(cache_root: Path, nozomi_path: str, data: bytes) -> bool:
    """Writes posting list bytes to the disk cache. Returns True on success."""
    cache_file = get_nozomi_cache_path(cache_root, nozomi_path)
    try:
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so a concurrent reader never sees a partial file
        tmp_file = cache_file.with_name(f"{cache_file.name}.{threading.get_ident()}.tmp")
        tmp_file.write_bytes(data)
        tmp_file.replace(cache_file)
        return True
    except OSError as e:
        logger.error(f"Failed to save nozomi cache {cache_file}: {e}")
        return False


def clear_cache(cache_root: Path, records: bool = True, nozomi: bool = True) -> int:
    """
    Deletes cached files.

    Returns:
        The number of files removed.
    """
    targets = []
    if records:
        targets.append((get_gallery_cache_dir(cache_root), "*.json"))
    if nozomi:
        targets.append((get_nozomi_cache_dir(cache_root), f"*{NOZOMI_EXTENSION}"))

    removed = 0
    for directory, pattern in targets:
        if not directory.exists():
            continue
        for cache_file in directory.glob(pattern):
            try:
                cache_file.unlink()
                removed += 1
            except OSError as e:
                logger.error(f"Failed to remove {cache_file}: {e}")

    logger.info(f"Cache cleared: {removed} files removed from {cache_root}")
    return removed


def cache_stats(cache_root: Path) -> Dict[str, int]:
    """Counts files and bytes in each cache directory."""
    stats = {}
    for label, directory, pattern in (
        ("records", get_gallery_cache_dir(cache_root), "*.json"),
        ("nozomi", get_nozomi_cache_dir(cache_root), f"*{NOZOMI_EXTENSION}"),
    ):
        files = list(directory.glob(pattern)) if directory.exists() else []
        stats[f"{label}_files"] = len(files)
        stats[f"{label}_bytes"] = sum(f.stat().st_size for f in files if f.exists())
    return stats


class MemoryRecordCache:
    """
    Thread-safe in-process LRU of ContentRecords keyed by gallery id.
    """

    def __init__(self, max_records: int = DEFAULT_MEMORY_MAX_RECORDS):
        self.max_records = max_records
        self._records: "OrderedDict[str, ContentRecord]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, gallery_id: str) -> Optional[ContentRecord]:
        with self._lock:
            record = self._records.get(gallery_id)
            if record is not None:
                self._records.move_to_end(gallery_id)
            return record

    def put(self, record: ContentRecord) -> None:
        with self._lock:
            self._records[record.id] = record
            self._records.move_to_end(record.id)
            while len(self._records) > self.max_records:
                evicted, _ = self._records.popitem(last=False)
                logger.debug(f"Evicted gallery {evicted} from memory cache")

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __contains__(self, gallery_id: str) -> bool:
        with self._lock:
            return gallery_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
