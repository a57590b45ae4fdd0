"""
Constants used throughout the gallery_index application.
"""

# Remote Catalog
CATALOG_DOMAIN = "ltn.gold-usergeneratedcontent.net"
ASSET_DOMAIN = "gold-usergeneratedcontent.net"
TAG_INDEX_DOMAIN = "tagindex.hitomi.la"
CATALOG_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
CATALOG_REFERER = "https://hitomi.la/"
CATALOG_TIMEOUT_SECONDS = 5.0
CATALOG_RETRY_COUNT = 0  # Upstream failures degrade to empty results instead

# Posting Lists (.nozomi)
NOZOMI_EXTENSION = ".nozomi"
NOZOMI_PREFIX = "n"  # Routing segment for every list except the full index
NOZOMI_RECORD_SIZE = 4
INDEX_ALL_PATH = "index-all"
LANGUAGE_INDEX_PREFIX = "index-"

# Gallery Documents
GALLERY_DOCUMENT_PREFIX = "var galleryinfo = "

# Routing Script (gg.js)
ROUTING_SCRIPT_NAME = "gg.js"
ROUTING_TTL_SECONDS = 60
ROUTING_DEFAULT_EXTENSION = "avif"
ROUTING_FALLBACK_DEFAULT = 0
ROUTING_FALLBACK_BASE_PATH = "1"

# Cache Layout
CACHE_ROOT_DIRNAME = ".cache"
GALLERY_CACHE_DIRNAME = "galleries"
NOZOMI_CACHE_DIRNAME = "nozomi"
CACHE_FILENAME_FILLER = "-"
DEFAULT_MEMORY_MAX_RECORDS = 4096
DEFAULT_POSTING_LIST_MAX_AGE_SECONDS = 0  # 0 = never expire

# Query Defaults
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 24
DEFAULT_THREAD_POOL_SIZE = 16

# Tag Namespaces
GENDER_NAMESPACES = ("male", "female")
NAMESPACE_SEPARATOR = ":"

# Value escaping shared by nozomi paths and tag index lookups
VALUE_ESCAPES = {
    " ": "_",
    "/": "slash",
    ".": "dot",
}

# Gallery types that tags override, in precedence order
TYPE_OVERRIDE_TAGS = ("gamecg", "artistcg", "imageset", "anime")
WEBTOON_TAG = "webtoon"
WEBTOON_OVERRIDABLE_TYPES = {"manga", "doujinshi"}
