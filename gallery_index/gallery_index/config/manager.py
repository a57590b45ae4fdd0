"""
Typed settings for gallery_index.

Each concern reads its own environment prefix (CATALOG_, CACHE_, ROUTING_,
LOG_, PROCESSING_) from the process environment or a .env file; see
.env.example at the repository root for every variable.
"""

import json
from pathlib import Path
from typing import Any, Optional, Union
from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import constants as c
from ..logging import ConfigError

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


def _env(prefix: str = "", **extra: Any) -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        **extra
    )


class CatalogConfig(BaseSettings):
    """Where and how the remote catalog is reached"""

    model_config = _env("CATALOG_")

    domain: str = Field(default=c.CATALOG_DOMAIN, description="Host serving nozomi lists, gallery documents and gg.js")
    asset_domain: str = Field(default=c.ASSET_DOMAIN, description="Parent domain of the image delivery subdomains")
    tag_index_domain: str = Field(default=c.TAG_INDEX_DOMAIN, description="Host serving tag suggestions")
    user_agent: str = Field(default=c.CATALOG_USER_AGENT, description="User-Agent sent with every request")
    referer: str = Field(default=c.CATALOG_REFERER, description="Referer sent with every request")
    timeout: float = Field(default=c.CATALOG_TIMEOUT_SECONDS, description="Gallery document and gg.js timeout in seconds")
    posting_list_timeout: Optional[float] = Field(default=None, description="Nozomi download timeout in seconds (unset = wait)")
    retries: int = Field(default=c.CATALOG_RETRY_COUNT, ge=0, description="Transport-level retries per request")


class CacheConfig(BaseSettings):
    """Memory and disk cache tiers"""

    model_config = _env("CACHE_")

    root: Path = Field(default=Path(c.CACHE_ROOT_DIRNAME), description="Directory holding galleries/ and nozomi/")
    memory_max_records: int = Field(default=c.DEFAULT_MEMORY_MAX_RECORDS, description="Gallery records kept in memory")
    posting_list_max_age_seconds: int = Field(
        default=c.DEFAULT_POSTING_LIST_MAX_AGE_SECONDS,
        ge=0,
        description="Max age of a cached nozomi file (0 = never expire)"
    )

    @field_validator('memory_max_records')
    @classmethod
    def validate_memory_max_records(cls, v: int) -> int:
        if v < 1:
            raise ValueError("memory_max_records must be at least 1")
        return v


class RoutingConfig(BaseSettings):
    """Image delivery routing (gg.js)"""

    model_config = _env("ROUTING_")

    ttl_seconds: float = Field(default=c.ROUTING_TTL_SECONDS, description="Seconds a fetched gg.js program stays valid")
    extension: str = Field(default=c.ROUTING_DEFAULT_EXTENSION, description="Image extension used when none is asked for")


class LoggingConfig(BaseSettings):
    """Log file and console verbosity"""

    model_config = _env("LOG_")

    file_level: str = Field(default="INFO", description="Level written to the log file")
    console_level: str = Field(default="WARNING", description="Level shown on the console without -v")
    log_file: str = Field(default="gallery_index.log", description="Log file path")

    @field_validator('file_level', 'console_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Log level must be one of {', '.join(VALID_LOG_LEVELS)}")
        return v.upper()


class ProcessingConfig(BaseSettings):
    """Fan-out width and paging"""

    model_config = _env("PROCESSING_")

    thread_pool_size: int = Field(default=c.DEFAULT_THREAD_POOL_SIZE, description="Parallel remote fetches")
    page_size: int = Field(default=c.DEFAULT_PAGE_SIZE, description="Records per page when no limit is given")

    @field_validator('thread_pool_size', 'page_size')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class GalleryIndexConfig(BaseSettings):
    """
    All settings in one object.

    Sections can also be set with nested variables, e.g. CACHE__ROOT.
    """

    model_config = _env(env_nested_delimiter="__")

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)

    def save_to_file(self, path: Union[str, Path]) -> None:
        """Writes the effective settings as JSON (handy for bug reports)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode='json'), f, indent=2, ensure_ascii=False)

    @classmethod
    def load_from_file(cls, path: Union[str, Path]) -> "GalleryIndexConfig":
        """
        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls(**json.load(f))


_config_instance: Optional[GalleryIndexConfig] = None


def _build(**kwargs: Any) -> GalleryIndexConfig:
    try:
        return GalleryIndexConfig(**kwargs)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid gallery_index settings:\n{e}") from e


def setup_config(env_file: Optional[Union[str, Path]] = None, **overrides: Any) -> GalleryIndexConfig:
    """
    Builds the process-wide configuration.

    Args:
        env_file: Alternative .env file to read
        **overrides: Section objects replacing what the environment says,
            e.g. cache=CacheConfig(root=tmp)

    Raises:
        ConfigError: If a setting fails validation
    """
    global _config_instance
    if env_file:
        overrides["_env_file"] = str(env_file)
    _config_instance = _build(**overrides)
    return _config_instance


def get_config() -> GalleryIndexConfig:
    """Returns the process-wide configuration, reading the environment on first use."""
    global _config_instance
    if _config_instance is None:
        _config_instance = _build()
    return _config_instance


def reload_config() -> GalleryIndexConfig:
    """Re-reads the environment and .env, discarding earlier overrides."""
    global _config_instance
    _config_instance = _build()
    return _config_instance


def get_catalog_config() -> CatalogConfig:
    return get_config().catalog


def get_cache_config() -> CacheConfig:
    return get_config().cache


def get_routing_config() -> RoutingConfig:
    return get_config().routing


def get_logging_config() -> LoggingConfig:
    return get_config().logging


def get_processing_config() -> ProcessingConfig:
    return get_config().processing
