"""
Maps (category, value) filter terms to nozomi resource paths.

Pure string transforms; nothing here touches the network or the disk.
"""

from typing import Union

from . import constants as c
from .models import Category

# Areas whose lists live at <area>/<value>-all
_NAMED_AREAS = {Category.ARTIST, Category.SERIES, Category.CHARACTER, Category.GROUP}


def escape_value(value: str) -> str:
    """Replaces the characters the catalog cannot carry in a path segment."""
    return "".join(c.VALUE_ESCAPES.get(ch, ch) for ch in value)


def _split_namespace(category: str, value: str):
    if c.NAMESPACE_SEPARATOR not in value:
        return category, value
    ns, rest = value.split(c.NAMESPACE_SEPARATOR, 1)
    if ns in c.GENDER_NAMESPACES:
        # male:/female: are part of the tag name itself
        return Category.TAG.value, value
    return ns, rest


def encode(category: Union[Category, str], value: str) -> str:
    """
    Returns the nozomi path (without extension) for a filter term.

        encode('language', 'korean')       -> 'index-korean'
        encode('type', 'manga')            -> 'type/manga-all'
        encode('tag', 'female:big breasts') -> 'tag/female:big_breasts-all'
        encode('tag', 'artist:foo')        -> 'artist/foo-all'
    """
    raw_category = category.value if isinstance(category, Category) else str(category)
    area_name, area_value = _split_namespace(raw_category, value)

    area = Category.lookup(area_name)
    if area is None:
        area = Category.TAG

    # Upstream indexes webtoon as a tag, not a type
    if area is Category.TYPE and area_value == c.WEBTOON_TAG:
        area = Category.TAG

    encoded = escape_value(area_value)

    if area is Category.LANGUAGE:
        return f"{c.LANGUAGE_INDEX_PREFIX}{encoded}"
    if area is Category.TYPE:
        return f"type/{encoded}-all"
    if area in _NAMED_AREAS:
        return f"{area.value}/{encoded}-all"
    return f"tag/{encoded}-all"


def index_all() -> str:
    """Path of the unfiltered catalog."""
    return c.INDEX_ALL_PATH
