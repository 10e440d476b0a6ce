"""
=============================================================================
CONFIGURATION
=============================================================================

Two layers:

    FileServerOptions   What the file-serving core needs: the change
                        detection cadence, the index page, cache bounds.
                        Unset (zero/empty) values get defaults when the
                        FileServer is constructed.

    ServerConfig        Everything needed to run the process: network,
                        HTTP, thread pool, logging, the served directory,
                        plus the FileServerOptions fields.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    FILESERVER_HOST              bind address        (127.0.0.1)
    FILESERVER_PORT              port                (8080)
    FILESERVER_WORKERS           max worker threads  (16)
    FILESERVER_TIMEOUT           socket timeout, s   (30)
    FILESERVER_ROOT              served directory    (.)
    FILESERVER_URL_PREFIX        mount prefix        (none)
    FILESERVER_INDEX_PAGE        index suffix        (/index.html)
    FILESERVER_CHECK_INTERVAL    detection cadence   (1.0)
    FILESERVER_DETECT_CHANGES    0 disables it       (1)
    FILESERVER_CACHE_MAX_BYTES   byte budget         (265 MiB)
    FILESERVER_CACHE_MAX_ENTRIES entry bound         (none)
    FILESERVER_CACHE_TTL         entry lifetime, s   (none)
    FILESERVER_LOG_LEVEL         logging level       (INFO)
    FILESERVER_LOG_FORMAT        text | json         (text)

=============================================================================
"""

from dataclasses import dataclass, replace
from typing import Optional
import os

from .cache.content_cache import DEFAULT_MAX_BYTES


DEFAULT_CHECK_INTERVAL = 1.0
DEFAULT_INDEX_PAGE = "/index.html"


@dataclass(frozen=True)
class FileServerOptions:
    """
    Options for a FileServer.

    Attributes:
        check_interval: Seconds between change-detection sweeps.
        index_page: Suffix naming a directory's index page.
        cache_max_bytes: Cache byte budget; None for unbounded.
        cache_max_entries: Cache entry bound; None for unbounded.
        cache_ttl: Cache entry lifetime in seconds; None for no expiry.
    """

    check_interval: float = 0
    index_page: str = ""
    cache_max_bytes: Optional[int] = DEFAULT_MAX_BYTES
    cache_max_entries: Optional[int] = None
    cache_ttl: Optional[float] = None

    def with_defaults(self) -> "FileServerOptions":
        """Copy with zero/empty fields replaced by their defaults."""
        check_interval = self.check_interval or DEFAULT_CHECK_INTERVAL
        index_page = self.index_page or DEFAULT_INDEX_PAGE
        if not index_page.startswith("/"):
            index_page = "/" + index_page
        return replace(self, check_interval=check_interval, index_page=index_page)


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value else None


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value else None


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP file server.

    Development:

        ServerConfig(root="./public", log_level="DEBUG")

    Production:

        ServerConfig(
            host="0.0.0.0",
            port=80,
            root="/srv/www",
            max_workers=32,
            cache_max_bytes=1024 * 1024 * 1024,
        )
    """

    # Network
    host: str = "127.0.0.1"
    port: int = 8080                     # 0 lets the OS pick
    backlog: int = 128
    buffer_size: int = 8192
    timeout: Optional[float] = 30.0

    # HTTP
    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    # Thread pool
    min_workers: int = 4
    max_workers: int = 16

    # Serving
    root: str = "."
    url_prefix: str = ""
    index_page: str = DEFAULT_INDEX_PAGE
    check_interval: float = DEFAULT_CHECK_INTERVAL
    detect_changes: bool = True

    # Cache
    cache_max_bytes: Optional[int] = DEFAULT_MAX_BYTES
    cache_max_entries: Optional[int] = None
    cache_ttl: Optional[float] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    server_name: str = "FileServer/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build a configuration from FILESERVER_* environment variables."""
        return cls(
            host=os.getenv("FILESERVER_HOST", "127.0.0.1"),
            port=int(os.getenv("FILESERVER_PORT", "8080")),
            max_workers=int(os.getenv("FILESERVER_WORKERS", "16")),
            timeout=float(os.getenv("FILESERVER_TIMEOUT", "30")),
            root=os.getenv("FILESERVER_ROOT", "."),
            url_prefix=os.getenv("FILESERVER_URL_PREFIX", ""),
            index_page=os.getenv("FILESERVER_INDEX_PAGE", DEFAULT_INDEX_PAGE),
            check_interval=float(os.getenv("FILESERVER_CHECK_INTERVAL", str(DEFAULT_CHECK_INTERVAL))),
            detect_changes=os.getenv("FILESERVER_DETECT_CHANGES", "1") not in ("0", "false", "no"),
            cache_max_bytes=_optional_int(os.getenv("FILESERVER_CACHE_MAX_BYTES", str(DEFAULT_MAX_BYTES))),
            cache_max_entries=_optional_int(os.getenv("FILESERVER_CACHE_MAX_ENTRIES")),
            cache_ttl=_optional_float(os.getenv("FILESERVER_CACHE_TTL")),
            log_level=os.getenv("FILESERVER_LOG_LEVEL", "INFO"),
            log_format=os.getenv("FILESERVER_LOG_FORMAT", "text"),
        )

    def file_server_options(self) -> FileServerOptions:
        return FileServerOptions(
            check_interval=self.check_interval,
            index_page=self.index_page,
            cache_max_bytes=self.cache_max_bytes,
            cache_max_entries=self.cache_max_entries,
            cache_ttl=self.cache_ttl,
        )

    def validate(self) -> None:
        """
        Reject impossible values at startup.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.check_interval < 0:
            raise ValueError("check_interval must be >= 0")

        if self.cache_max_bytes is not None and self.cache_max_bytes < 0:
            raise ValueError("cache_max_bytes must be >= 0")

        if self.cache_max_entries is not None and self.cache_max_entries < 1:
            raise ValueError("cache_max_entries must be >= 1")

        if self.cache_ttl is not None and self.cache_ttl <= 0:
            raise ValueError("cache_ttl must be > 0")

        if self.url_prefix and not self.url_prefix.startswith("/"):
            raise ValueError(f"url_prefix must start with '/': {self.url_prefix!r}")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")
