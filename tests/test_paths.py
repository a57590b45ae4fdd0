import pytest

from gallery_index.gallery_index.models import Category
from gallery_index.gallery_index.paths import encode, escape_value, index_all


@pytest.mark.parametrize("category, value, expected", [
    ("language", "korean", "index-korean"),
    ("languages", "korean", "index-korean"),
    ("type", "manga", "type/manga-all"),
    ("types", "doujinshi", "type/doujinshi-all"),
    ("artist", "some artist", "artist/some_artist-all"),
    ("artists", "abc", "artist/abc-all"),
    ("series", "touhou project", "series/touhou_project-all"),
    ("characters", "reimu hakurei", "character/reimu_hakurei-all"),
    ("group", "circle", "group/circle-all"),
    ("tag", "full color", "tag/full_color-all"),
    ("tags", "full color", "tag/full_color-all"),
])
def test_area_shapes(category, value, expected):
    assert encode(category, value) == expected


def test_accepts_category_enum():
    assert encode(Category.ARTIST, "abc") == "artist/abc-all"


def test_gender_namespace_stays_a_tag():
    assert encode("tag", "female:big breasts") == "tag/female:big_breasts-all"
    assert encode("tag", "male:shota") == "tag/male:shota-all"
    # Even when filed under another category the gendered value is a tag
    assert encode("artist", "female:glasses") == "tag/female:glasses-all"


def test_value_namespace_overrides_category():
    assert encode("tag", "artist:abc") == "artist/abc-all"
    assert encode("tag", "language:english") == "index-english"
    assert encode("tag", "series:one piece") == "series/one_piece-all"


def test_unknown_namespace_falls_back_to_tag_area():
    assert encode("tag", "foo:bar") == "tag/bar-all"
    assert encode("whatever", "x") == "tag/x-all"


def test_webtoon_type_is_indexed_as_tag():
    assert encode("type", "webtoon") == "tag/webtoon-all"
    assert encode("type", "webtoon") == encode("tag", "webtoon")
    assert encode("tag", "type:webtoon") == "tag/webtoon-all"


def test_escaping():
    assert escape_value("a b/c.d") == "a_bslashcdotd"
    assert encode("series", "fate/grand order") == "series/fateslashgrand_order-all"
    assert encode("artist", "mr.x") == "artist/mrdotx-all"


def test_only_first_separator_splits():
    assert encode("tag", "series:re:zero") == "series/re:zero-all"


def test_case_is_preserved():
    assert encode("artist", "ABC") == "artist/ABC-all"


def test_deterministic():
    assert encode("tag", "female:glasses") == encode("tag", "female:glasses")


def test_index_all():
    assert index_all() == "index-all"
