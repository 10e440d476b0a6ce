"""
=============================================================================
FILE SERVER
=============================================================================

Entry point of the file-serving core, independent of any transport:

    fs = FileServer(FileServerOptions(index_page="/index.html"))

    handler = fs.serve(LocalFileSystem("./public"))    # request → response
    stop, done = fs.detect(LocalFileSystem("./public"))

    ...

    quit(stop, done)                                    # stop detection

One FileServer owns one ContentCache. Every handler returned by serve()
shares it, and the change detector sweeps it.

=============================================================================
"""

from typing import Optional, Tuple
import logging
import threading

from .cache.content_cache import ContentCache
from .cache.detector import ChangeDetector
from .config import FileServerOptions
from .handlers.dispatcher import RequestDispatcher
from .storage.base import FileSystem


logger = logging.getLogger(__name__)


class FileServer:
    """
    Caching file server.

    Args:
        options: Serving options; unset values get defaults here.
        cache: Cache to use instead of one built from `options`.
    """

    def __init__(
        self,
        options: Optional[FileServerOptions] = None,
        cache: Optional[ContentCache] = None,
    ):
        self.options = (options or FileServerOptions()).with_defaults()
        self.cache = cache if cache is not None else ContentCache(
            max_bytes=self.options.cache_max_bytes,
            max_entries=self.options.cache_max_entries,
            ttl=self.options.cache_ttl,
        )
        self._detector: Optional[ChangeDetector] = None

    @property
    def check_interval(self) -> float:
        return self.options.check_interval

    @property
    def index_page(self) -> str:
        return self.options.index_page

    def serve(self, root: FileSystem) -> RequestDispatcher:
        """Handler serving `root` through this server's cache."""
        return RequestDispatcher(root, self.cache, index_page=self.options.index_page)

    def detect(self, root: FileSystem) -> Tuple[threading.Event, threading.Event]:
        """
        Start background change detection over `root`.

        Returns:
            (stop_event, done_event). Set the first to stop detection; the
            second is set once the detector has exited. See quit().
        """
        if self._detector is not None and self._detector.is_running:
            raise RuntimeError("Change detection already running")

        self._detector = ChangeDetector(self.cache, root, interval=self.options.check_interval)
        self._detector.start()
        logger.info(f"Change detection every {self.options.check_interval}s")
        return self._detector.stop_event, self._detector.done_event


def quit(
    stop_event: threading.Event,
    done_event: threading.Event,
    timeout: Optional[float] = None,
) -> bool:
    """
    Stop a detector started by FileServer.detect() and wait for it.

    Returns:
        True once it has exited, False on timeout.
    """
    stop_event.set()
    return done_event.wait(timeout)
