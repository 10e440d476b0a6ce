"""
=============================================================================
FILESERVER - Caching HTTP File Server
=============================================================================

Serves a directory tree over HTTP/1.1 and keeps the files it has served in
memory, so repeat requests never touch the disk.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   GET /docs            →  301 docs/                                 │
    │   GET /docs/           →  /docs/index.html, cached under /docs      │
    │   GET /docs/           →  served from memory                        │
    │   GET /docs/index.html →  301 ./                                    │
    │   GET /img/            →  <pre> listing (no index page)             │
    │   If-Modified-Since    →  304 when unchanged                        │
    └─────────────────────────────────────────────────────────────────────┘

A background change detector drops cache entries whose files changed on
disk.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    fileserver/
    ├── __main__.py          CLI (python -m fileserver)
    ├── server.py            HTTPServer: transport + file handler
    ├── file_server.py       FileServer: serve() / detect() / quit()
    ├── config.py            ServerConfig, FileServerOptions
    ├── core/                sockets, connections, thread pool
    ├── http/                parsing, responses, conditional requests
    ├── handlers/            canonical paths, index, listing, dispatcher
    ├── cache/               ContentCache, ChangeDetector
    ├── storage/             FileSystem contract, LocalFileSystem
    └── middleware/          access log, URL prefix

=============================================================================
QUICK START
=============================================================================

    from fileserver import HTTPServer, ServerConfig
    from fileserver.middleware import LoggingMiddleware

    server = HTTPServer(ServerConfig(root="./public", port=8080))
    server.use(LoggingMiddleware())
    server.run()

Or embed only the handler:

    from fileserver import FileServer, FileServerOptions, LocalFileSystem

    handler = FileServer(FileServerOptions()).serve(LocalFileSystem("./public"))
    response = handler(request)

=============================================================================
"""

from .cache import CachedFile, ChangeDetector, ContentCache
from .config import FileServerOptions, ServerConfig
from .file_server import FileServer, quit
from .handlers import RequestDispatcher
from .server import HTTPServer
from .storage import FileSystem, LocalFileSystem, NotFound

__version__ = "1.0.0"

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "FileServer",
    "FileServerOptions",
    "quit",
    "RequestDispatcher",
    "ContentCache",
    "CachedFile",
    "ChangeDetector",
    "FileSystem",
    "LocalFileSystem",
    "NotFound",
    "__version__",
]
