from gallery_index.gallery_index.cache import (
    MemoryRecordCache,
    cache_stats,
    clear_cache,
    ensure_cache_dirs,
    get_nozomi_cache_path,
    get_record_cache_path,
    load_cached_nozomi,
    load_cached_record,
    save_nozomi_cache,
    save_record_cache,
)
from gallery_index.gallery_index.models import ContentRecord, FileEntry


def record(gallery_id, **kwargs):
    return ContentRecord(id=str(gallery_id), **kwargs)


class TestMemoryRecordCache:
    def test_get_and_put(self):
        cache = MemoryRecordCache(max_records=3)
        cache.put(record(1, title="one"))
        assert cache.get("1").title == "one"
        assert cache.get("2") is None
        assert "1" in cache and len(cache) == 1

    def test_evicts_least_recently_used(self):
        cache = MemoryRecordCache(max_records=2)
        cache.put(record(1))
        cache.put(record(2))
        cache.get("1")
        cache.put(record(3))
        assert "1" in cache
        assert "2" not in cache
        assert "3" in cache

    def test_replacing_keeps_size(self):
        cache = MemoryRecordCache(max_records=2)
        cache.put(record(1, title="a"))
        cache.put(record(1, title="b"))
        assert len(cache) == 1
        assert cache.get("1").title == "b"

    def test_clear(self):
        cache = MemoryRecordCache()
        cache.put(record(1))
        cache.clear()
        assert len(cache) == 0


class TestRecordFiles:
    def test_round_trip_keeps_files(self, cache_root):
        original = record(12, title="t", tags=["female:glasses"],
                          files=[FileEntry(name="01.jpg", width=10, height=20, hash="abc", has_webp=True)])
        assert save_record_cache(cache_root, original) is True
        loaded = load_cached_record(cache_root, "12")
        assert loaded == original

    def test_missing_record(self, cache_root):
        assert load_cached_record(cache_root, "404") is None

    def test_unknown_keys_are_ignored(self, cache_root):
        path = get_record_cache_path(cache_root, "5")
        path.parent.mkdir(parents=True)
        path.write_text('{"id": 5, "title": "x", "legacy_field": 1}', encoding="utf-8")
        assert load_cached_record(cache_root, "5").title == "x"

    def test_wrong_field_types_are_unreadable(self, cache_root):
        path = get_record_cache_path(cache_root, "5")
        path.parent.mkdir(parents=True)
        path.write_text('{"id": "5", "tags": null}', encoding="utf-8")
        assert load_cached_record(cache_root, "5") is None

    def test_record_for_another_id_is_unreadable(self, cache_root):
        path = get_record_cache_path(cache_root, "5")
        path.parent.mkdir(parents=True)
        path.write_text("{}", encoding="utf-8")
        assert load_cached_record(cache_root, "5") is None


class TestNozomiFiles:
    def test_save_and_load(self, cache_root):
        assert save_nozomi_cache(cache_root, "tag/a-all", b"\x00\x00\x00\x01") is True
        assert load_cached_nozomi(cache_root, "tag/a-all") == b"\x00\x00\x00\x01"
        # No temp files left behind
        assert [p.name for p in get_nozomi_cache_path(cache_root, "tag/a-all").parent.iterdir()] == ["tag-a-all.nozomi"]

    def test_empty_file_is_removed(self, cache_root):
        path = get_nozomi_cache_path(cache_root, "tag/b-all")
        path.parent.mkdir(parents=True)
        path.write_bytes(b"")
        assert load_cached_nozomi(cache_root, "tag/b-all") is None
        assert not path.exists()

    def test_zero_max_age_never_expires(self, cache_root):
        save_nozomi_cache(cache_root, "index-all", b"\x00\x00\x00\x02")
        assert load_cached_nozomi(cache_root, "index-all", max_age_seconds=0) is not None


class TestMaintenance:
    def populate(self, cache_root):
        save_record_cache(cache_root, record(1))
        save_record_cache(cache_root, record(2))
        save_nozomi_cache(cache_root, "tag/a-all", b"\x00\x00\x00\x01")

    def test_stats(self, cache_root):
        self.populate(cache_root)
        stats = cache_stats(cache_root)
        assert stats["records_files"] == 2
        assert stats["nozomi_files"] == 1
        assert stats["nozomi_bytes"] == 4
        assert stats["records_bytes"] > 0

    def test_stats_on_missing_root(self, tmp_path):
        stats = cache_stats(tmp_path / "nope")
        assert stats == {"records_files": 0, "records_bytes": 0, "nozomi_files": 0, "nozomi_bytes": 0}

    def test_clear_everything(self, cache_root):
        self.populate(cache_root)
        assert clear_cache(cache_root) == 3
        assert cache_stats(cache_root)["records_files"] == 0

    def test_clear_only_nozomi(self, cache_root):
        self.populate(cache_root)
        assert clear_cache(cache_root, records=False, nozomi=True) == 1
        assert cache_stats(cache_root)["records_files"] == 2

    def test_ensure_dirs(self, cache_root):
        ensure_cache_dirs(cache_root)
        assert (cache_root / "galleries").is_dir()
        assert (cache_root / "nozomi").is_dir()
