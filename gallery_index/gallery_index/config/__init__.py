"""
Settings for gallery_index, re-exported from manager so callers can write
`from ..config import get_config`.
"""

from .manager import (
    CatalogConfig,
    CacheConfig,
    RoutingConfig,
    LoggingConfig,
    ProcessingConfig,
    GalleryIndexConfig,
    setup_config,
    get_config,
    reload_config,
    get_catalog_config,
    get_cache_config,
    get_routing_config,
    get_logging_config,
    get_processing_config,
)

__all__ = [
    "CatalogConfig",
    "CacheConfig",
    "RoutingConfig",
    "LoggingConfig",
    "ProcessingConfig",
    "GalleryIndexConfig",
    "setup_config",
    "get_config",
    "reload_config",
    "get_catalog_config",
    "get_cache_config",
    "get_routing_config",
    "get_logging_config",
    "get_processing_config",
]
