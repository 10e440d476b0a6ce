"""
=============================================================================
HTTP FILE SERVER
=============================================================================

Ties the transport to the file-serving core:

    ┌──────────────┐  Connection  ┌────────────┐
    │ SocketServer │─────────────►│ ThreadPool │
    └──────────────┘              └─────┬──────┘
                                        │ per connection, per request
                                        ▼
                        RequestParser → middleware → RequestDispatcher
                                        │                 │
                                        │           ContentCache ◄── ChangeDetector
                                        ▼
                          HEAD? drop body → to_bytes() → socket

=============================================================================
LIFECYCLE
=============================================================================

    run()
      ├── logging setup
      ├── thread pool start
      ├── change detection start      (FileServer.detect)
      └── accept loop                 (blocks)
    shutdown() / SIGINT / SIGTERM
      ├── accept loop exits
      ├── change detection quit       (stop event, wait for done event)
      └── thread pool drained and stopped

=============================================================================
"""

from typing import Optional, Tuple
import logging
import threading

from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .file_server import FileServer, quit
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    ResponseBuilder,
    internal_error,
)
from .middleware import Middleware, MiddlewarePipeline, NextHandler, StripPrefixMiddleware
from .storage import FileSystem, LocalFileSystem


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Multi-threaded HTTP/1.1 server for a FileSystem.

        server = HTTPServer(ServerConfig(root="./public", port=8080))
        server.use(LoggingMiddleware())
        server.run()

    Args:
        config: Server configuration; defaults when omitted.
        filesystem: Storage to serve; LocalFileSystem(config.root) when
                    omitted.
    """

    def __init__(self, config: Optional[ServerConfig] = None, filesystem: Optional[FileSystem] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.filesystem = filesystem or LocalFileSystem(self.config.root)
        self.file_server = FileServer(self.config.file_server_options())
        self.dispatcher = self.file_server.serve(self.filesystem)

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._middleware = MiddlewarePipeline()

        self._handler: Optional[NextHandler] = None
        self._detection: Optional[Tuple[threading.Event, threading.Event]] = None
        self._running = False

    @property
    def cache(self):
        return self.file_server.cache

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port) once listening."""
        return self._socket_server.address

    @property
    def ready(self) -> threading.Event:
        """Set once the server is accepting connections."""
        return self._socket_server.ready

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware; the first added is the outermost."""
        self._middleware.add(middleware)
        return self

    def build_handler(self) -> NextHandler:
        """
        The full request → response chain, without the transport.

        The URL prefix is stripped innermost, so access logs show the
        path the client actually asked for.
        """
        inner: NextHandler = self.dispatcher
        if self.config.url_prefix:
            inner = MiddlewarePipeline().add(StripPrefixMiddleware(self.config.url_prefix)).wrap(inner)
        return self._middleware.wrap(inner)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Answer one parsed request exactly as a connection would.

        Handler exceptions become 500 responses; HEAD responses lose their
        body but keep Content-Length.
        """
        if self._handler is None:
            self._handler = self.build_handler()

        try:
            response = self._handler(request)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            response = internal_error()

        if request.is_head:
            response = response.without_body()
        return response

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """Serve until shutdown() or SIGINT/SIGTERM. Blocks."""
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._handler = self.build_handler()
        self._running = True

        self._thread_pool.start()

        if self.config.detect_changes:
            self._detection = self.file_server.detect(self.filesystem)

        logger.info(
            f"Serving {self.filesystem} on {self.config.host}:{self.config.port}"
            f"{self.config.url_prefix or ''} "
            f"({self.config.min_workers}-{self.config.max_workers} workers)"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("fileserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False

        if self._detection is not None:
            if not quit(*self._detection, timeout=5.0):
                logger.warning("Change detection did not stop in time")
            self._detection = None

        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info(f"Server stopped (cache: {self.cache.stats()})")

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTIONS
    # ─────────────────────────────────────────────────────────────────────

    def _handle_connection(self, conn: Connection):
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
        )
        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop for one connection (worker thread)."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                    if raw_request is None:
                        break

                    request = self._parser.parse(raw_request, conn.address)
                    conn.state = conn.state.PROCESSING

                    response = self.handle(request)
                    keep_alive = request.is_keep_alive and self.config.keep_alive

                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    if not conn.send_response(response.to_bytes(self.config.server_name)):
                        break
                    if not keep_alive:
                        break

                    conn.set_keep_alive()

                except HTTPParseError as e:
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    break

                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break

                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        response = (ResponseBuilder()
            .status(status)
            .json({"error": message})
            .close_connection()
            .build())
        conn.send_response(response.to_bytes(self.config.server_name))
