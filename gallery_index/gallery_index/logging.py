"""
Logging setup and the exception types shared by every gallery_index module.

Two handlers hang off the root logger: a UTF-8 log file that records the
full INFO trail, and a rich console handler that stays quiet (WARNING) unless
a CLI command asks for more with -v / -vv.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Union
from rich.logging import RichHandler
from rich.console import Console

# Shared by the logging handler and every CLI command
console = Console()

LevelType = Union[str, int]

DEFAULT_LOG_FILE = "gallery_index.log"
FILE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
_MASKED_PARAM_HINTS = ('key', 'token', 'password', 'secret')


class GalleryIndexError(Exception):
    """Root of the gallery_index exception tree."""
    pass


class ConfigError(GalleryIndexError):
    """Settings from the environment or .env could not be validated."""
    pass


class APIError(GalleryIndexError):
    """A remote catalog request failed (nozomi, gallery, gg.js, tag index)."""
    pass


class PayloadError(APIError):
    """The remote catalog answered with data that cannot be parsed."""
    pass


class ValidationError(GalleryIndexError):
    """Caller input (categories, page numbers) is invalid."""
    pass


def _to_level(level: LevelType) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


class GalleryIndexLogger:
    """
    Owns the root logger's handlers for the lifetime of the process.
    """

    def __init__(self, log_file: str = DEFAULT_LOG_FILE):
        self.log_file = log_file
        self.console = console
        self.file_handler = self._build_file_handler()
        self.console_handler = self._build_console_handler()
        self._install()

    def _build_file_handler(self) -> logging.FileHandler:
        # Gallery titles come in every script, so the file is always UTF-8
        handler = logging.FileHandler(self.log_file, encoding='utf-8')
        handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        handler.setLevel(logging.INFO)
        return handler

    def _build_console_handler(self) -> RichHandler:
        handler = RichHandler(
            console=self.console,
            show_path=False,
            show_time=True,
            show_level=True,
            markup=False,
            keywords=[]
        )
        handler.setLevel(logging.WARNING)
        return handler

    def _install(self) -> None:
        root = logging.getLogger()
        root.setLevel(logging.INFO)
        # Replace, never append: a second install must not double every line
        root.handlers = [self.file_handler, self.console_handler]

    def use_log_file(self, log_file: str) -> None:
        """Moves file logging to another path, keeping the current level."""
        if log_file == self.log_file:
            return
        level = self.file_handler.level
        self.file_handler.close()
        self.log_file = log_file
        self.file_handler = self._build_file_handler()
        self.file_handler.setLevel(level)
        logging.getLogger().handlers = [self.file_handler, self.console_handler]

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

    def _apply_level(self, handler: logging.Handler, level: LevelType) -> None:
        numeric = _to_level(level)
        root = logging.getLogger()
        # Handlers never see records the root logger already filtered out
        if numeric < root.level:
            root.setLevel(numeric)
        handler.setLevel(numeric)

    def set_console_level(self, level: LevelType, clean: bool = False) -> None:
        """
        Changes what the console shows.

        With clean=True the timestamp and level columns are hidden, which
        reads better for the INFO chatter of -v.
        """
        self._apply_level(self.console_handler, level)
        self.console_handler._log_render.show_time = not clean
        self.console_handler._log_render.show_level = not clean

    def set_file_level(self, level: LevelType) -> None:
        self._apply_level(self.file_handler, level)

    def handlers_for(self, handler_type: str) -> Dict[str, logging.Handler]:
        handlers = {"console": self.console_handler, "file": self.file_handler}
        if handler_type == "both":
            return handlers
        return {handler_type: handlers[handler_type]} if handler_type in handlers else {}


_logger_instance: Optional[GalleryIndexLogger] = None


def setup_logging(log_file: Optional[str] = None) -> GalleryIndexLogger:
    """
    Installs the process-wide handlers on first call and returns the owner.

    Later calls return the same instance; passing a different log_file moves
    file logging there (modules may log before the CLI has read LOG_LOG_FILE).
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = GalleryIndexLogger(log_file or DEFAULT_LOG_FILE)
    elif log_file:
        _logger_instance.use_log_file(log_file)
    return _logger_instance


def get_logger(name: str) -> logging.Logger:
    """Logger for CLI modules; makes sure the handlers exist first."""
    setup_logging()
    return logging.getLogger(name)


def set_log_level(level: LevelType, handler_type: str = "both", clean: bool = False) -> None:
    """
    Args:
        level: Level name or number, e.g. 'DEBUG' or logging.INFO
        handler_type: 'console', 'file' or 'both'
        clean: Hide time and level columns on the console
    """
    instance = setup_logging()
    if handler_type in ("console", "both"):
        instance.set_console_level(level, clean=clean)
    if handler_type in ("file", "both"):
        instance.set_file_level(level)


@contextmanager
def temporary_log_level(level: LevelType, handler_type: str = "console") -> Iterator[None]:
    """
    Raises or lowers one handler's level for the duration of a block.

        with temporary_log_level("DEBUG"):
            service.resolve_page(...)
    """
    handlers = setup_logging().handlers_for(handler_type)
    previous = {name: h.level for name, h in handlers.items()}
    for handler in handlers.values():
        handler.setLevel(_to_level(level))
    try:
        yield
    finally:
        for name, handler in handlers.items():
            handler.setLevel(previous[name])


def log_api_call(url: str, method: str, params: Optional[dict] = None) -> None:
    """Records an outgoing catalog request at DEBUG, masking secret-looking params."""
    logger = logging.getLogger("gallery_index.api")
    if not logger.isEnabledFor(logging.DEBUG):
        return

    shown = "None"
    if params:
        shown = str({
            k: "********" if isinstance(k, str) and any(h in k.lower() for h in _MASKED_PARAM_HINTS) else v
            for k, v in params.items()
        })
    logger.debug(f"API CALL: {method} {url} | Params: {shown}")


__all__ = [
    "console",
    "GalleryIndexError",
    "ConfigError",
    "APIError",
    "PayloadError",
    "ValidationError",
    "GalleryIndexLogger",
    "setup_logging",
    "get_logger",
    "set_log_level",
    "temporary_log_level",
    "log_api_call",
]
