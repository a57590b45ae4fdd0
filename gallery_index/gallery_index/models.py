from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .logging import ValidationError


class Category(str, Enum):
    """The closed set of filterable areas of the catalog."""
    TYPE = "type"
    LANGUAGE = "language"
    TAG = "tag"
    ARTIST = "artist"
    SERIES = "series"
    CHARACTER = "character"
    GROUP = "group"

    @classmethod
    def parse(cls, name: str) -> "Category":
        """
        Resolves a category name, accepting the plural forms used by the
        catalog's own URLs ('tags', 'artists', ...).

        Raises:
            ValidationError: If the name is not a known category.
        """
        key = (name or "").strip().lower()
        if key in _PLURALS:
            key = _PLURALS[key]
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValidationError(f"Unknown category '{name}' (expected one of: {valid})") from None

    @classmethod
    def lookup(cls, name: str) -> Optional["Category"]:
        """Like parse(), but returns None for unknown names."""
        try:
            return cls.parse(name)
        except ValidationError:
            return None


_PLURALS = {
    "types": "type",
    "languages": "language",
    "tags": "tag",
    "artists": "artist",
    "characters": "character",
    "groups": "group",
}


FilterMap = Dict[Category, Tuple[str, ...]]


def _normalize_filter_map(raw: Optional[Mapping[Any, Iterable[str]]]) -> FilterMap:
    result: FilterMap = {}
    for name, values in (raw or {}).items():
        category = name if isinstance(name, Category) else Category.parse(name)
        if isinstance(values, str):
            values = [values]
        # dict.fromkeys keeps first-seen order while dropping duplicates
        unique = tuple(dict.fromkeys(v for v in (values or []) if v))
        if not unique:
            continue
        merged = result.get(category, ()) + unique
        result[category] = tuple(dict.fromkeys(merged))
    return result


@dataclass(frozen=True)
class FilterQuery:
    """Included and excluded values per category."""
    include: FilterMap = field(default_factory=dict)
    exclude: FilterMap = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        include: Optional[Mapping[Any, Iterable[str]]] = None,
        exclude: Optional[Mapping[Any, Iterable[str]]] = None,
    ) -> "FilterQuery":
        """
        Validates and normalizes raw category -> values mappings.

        Unknown categories raise ValidationError; categories without values
        are dropped so that {'tag': []} behaves like no filter at all.
        """
        return cls(include=_normalize_filter_map(include), exclude=_normalize_filter_map(exclude))

    @classmethod
    def from_terms(cls, include_terms: Iterable[str] = (), exclude_terms: Iterable[str] = ()) -> "FilterQuery":
        """
        Builds a query from 'category:value' terms (as typed on the command line).
        A term without a known category prefix is treated as a tag, so
        'female:glasses' stays a gendered tag.
        """
        return cls.build(_terms_to_map(include_terms), _terms_to_map(exclude_terms))

    @property
    def is_empty(self) -> bool:
        return not self.include and not self.exclude


def _terms_to_map(terms: Iterable[str]) -> Dict[Category, List[str]]:
    result: Dict[Category, List[str]] = {}
    for term in terms:
        category = Category.TAG
        value = term
        if ":" in term:
            prefix, rest = term.split(":", 1)
            known = Category.lookup(prefix)
            if known is not None:
                category, value = known, rest
        result.setdefault(category, []).append(value)
    return result


@dataclass
class FileEntry:
    """A single page image of a gallery."""
    name: str
    width: int = 0
    height: int = 0
    hash: str = ""
    has_webp: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileEntry":
        return cls(
            name=data.get("name", ""),
            width=int(data.get("width") or 0),
            height=int(data.get("height") or 0),
            hash=data.get("hash") or "",
            has_webp=bool(data.get("has_webp", data.get("haswebp", False))),
        )


@dataclass
class ContentRecord:
    """
    Normalized gallery metadata.
    Saved to galleries/<id>.json in the cache root.
    """
    id: str
    title: str = ""
    type: str = ""
    language: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    artists: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    series: List[str] = field(default_factory=list)
    characters: List[str] = field(default_factory=list)
    files: List[FileEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentRecord":
        # Filter unknown keys to prevent init errors if schema changes
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        filtered["id"] = str(filtered.get("id", ""))
        filtered["files"] = [
            f if isinstance(f, FileEntry) else FileEntry.from_dict(f)
            for f in filtered.get("files") or []
        ]
        return cls(**filtered)

    def find_file(self, name: str) -> Optional[FileEntry]:
        for entry in self.files:
            if entry.name == name:
                return entry
        return None


@dataclass(frozen=True)
class RoutingProgram:
    """Bucket -> subdomain offset table extracted from gg.js."""
    table: Mapping[int, int] = field(default_factory=dict)
    default: int = 0
    base_path: str = ""

    def lookup(self, bucket: int) -> int:
        return self.table.get(bucket, self.default)


@dataclass
class Page:
    """One page of resolved records."""
    records: List[ContentRecord]
    total: int
    has_more: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "total": self.total,
            "hasMore": self.has_more,
        }


@dataclass
class Suggestion:
    """A tag index completion."""
    tag: str
    count: int
    ns: str
