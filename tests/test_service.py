import pytest

from gallery_index.gallery_index.config import CacheConfig, CatalogConfig, GalleryIndexConfig, ProcessingConfig
from gallery_index.gallery_index.logging import ValidationError
from gallery_index.gallery_index.service import GalleryService

from conftest import (
    ASSET_DOMAIN,
    DOMAIN,
    GG_SCRIPT,
    GG_URL,
    FakeResponse,
    FakeSession,
    gallery_document,
    gallery_route,
    nozomi_response,
    nozomi_route,
)

HASH_01 = "a1b2c3d4e5f60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f9e"


@pytest.fixture
def config(cache_root):
    return GalleryIndexConfig(
        catalog=CatalogConfig(domain=DOMAIN, asset_domain=ASSET_DOMAIN, tag_index_domain="tags.example.net"),
        cache=CacheConfig(root=cache_root),
        processing=ProcessingConfig(thread_pool_size=4, page_size=2),
    )


@pytest.fixture
def catalog_session():
    routes = {
        nozomi_route("index-all"): nozomi_response([10, 50, 20, 40, 30]),
        nozomi_route("index-korean"): nozomi_response([50, 40, 30, 20, 10]),
        nozomi_route("tag/female:glasses-all"): nozomi_response([50, 30]),
        nozomi_route("tag/full_color-all"): nozomi_response([40]),
        nozomi_route("artist/abc-all"): nozomi_response([30]),
        GG_URL: FakeResponse(200, text=GG_SCRIPT),
    }
    for gallery_id in (10, 20, 30, 40, 50):
        routes[gallery_route(gallery_id)] = gallery_document(gallery_id)
    return FakeSession(routes)


@pytest.fixture
def service(config, catalog_session):
    return GalleryService(config, session=catalog_session)


def ids_of(page):
    return [int(r.id) for r in page.records]


def test_no_filters_pages_full_catalog(service):
    page = service.resolve_page()
    assert ids_of(page) == [50, 40]
    assert page.total == 5
    assert page.has_more is True


def test_include_and_exclude(service):
    page = service.resolve_page(
        page=1,
        limit=10,
        include={"tags": ["female:glasses", "full color"], "language": ["korean"]},
        exclude={"artist": ["abc"]},
    )
    assert ids_of(page) == [50, 40]
    assert page.total == 2
    assert page.has_more is False


def test_page_past_the_end(service):
    page = service.resolve_page(page=9, limit=2, include={"language": ["korean"]})
    assert page.records == []
    assert page.total == 5


def test_missing_gallery_is_dropped(service, catalog_session):
    catalog_session.routes[gallery_route(40)] = FakeResponse(404)
    page = service.resolve_page(limit=3)
    assert ids_of(page) == [50, 30]
    assert page.total == 5


def test_unknown_category_is_rejected(service):
    with pytest.raises(ValidationError):
        service.resolve_page(include={"colour": ["red"]})


def test_bad_page_is_rejected(service):
    with pytest.raises(ValidationError):
        service.resolve_page(page=0)


def test_records_are_cached_between_pages(service, catalog_session):
    service.resolve_page()
    service.resolve_page()
    assert catalog_session.count(gallery_route(50)) == 1
    assert catalog_session.count(nozomi_route("index-all")) == 1


def test_resolve_asset_url(service):
    assert service.resolve_asset_url(HASH_01) == f"https://a2.{ASSET_DOMAIN}/1729526401/3833/{HASH_01}.avif"
    assert service.resolve_asset_url(HASH_01, "webp").endswith(f"{HASH_01}.webp")


def test_resolve_file_url(service):
    assert service.resolve_file_url(50, "01.jpg") == service.resolve_asset_url(HASH_01)
    assert service.resolve_file_url(50, "missing.jpg") is None
    assert service.resolve_file_url(99, "01.jpg") is None


def test_cache_stats_and_clear(service):
    service.resolve_page()
    stats = service.cache_stats()
    assert stats["records_files"] == 2
    assert stats["nozomi_files"] == 1
    assert stats["memory_records"] == 2

    assert service.clear_cache() == 3
    assert service.cache_stats()["memory_records"] == 0


def test_suggest_failure_is_empty(service):
    assert service.suggest("female:gla") == []
