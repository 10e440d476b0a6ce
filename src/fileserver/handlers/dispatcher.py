"""
=============================================================================
REQUEST DISPATCHER
=============================================================================

The file-serving handler. One call per request, no state shared between
calls except the content cache:

    ┌──────────────┐
    │ canonicalize │── ends with index page ──────────────► 301 ./
    └──────┬───────┘
           ▼
    ┌──────────────┐  hit   ┌────────────────────┐
    │ cache lookup │───────►│ slash check → 301  │
    └──────┬───────┘        │ serve_content      │──► 200/206/304/412/416
           │ miss           └────────────────────┘
           ▼
    ┌──────────────┐
    │ open + stat  │── fails ─────────────────────────────► 404
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ slash check  │── dir without / or file with / ──────► 301
    └──────┬───────┘
           ▼
    ┌──────────────┐  index found   ┌─────────────────────────────┐
    │ directory?   │───────────────►│ serve_content, then cache   │
    └──────┬───────┘   regular file │ under the *request* key     │
           │ no index               └─────────────────────────────┘
           ▼
    ┌──────────────┐
    │ freshness    │── not modified ──────────────────────► 304
    │ listing      │──────────────────────────────────────► 200 <pre>
    └──────────────┘

=============================================================================
CACHE POPULATION
=============================================================================

Only regular files are cached, only after a full 200 answer to a GET, and
always under the canonical request path. A directory served through its
index page is cached under the directory's key, so the next request for
the directory skips the index lookup entirely.

The file is read once into memory; the same bytes feed the response and
the cache entry.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional
import logging

from ..cache.content_cache import CachedFile, ContentCache
from ..http.conditional import check_last_modified, serve_content
from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    internal_error,
    local_redirect,
    method_not_allowed,
    not_found,
)
from ..http.status_codes import HTTPStatus
from ..storage.base import FileHandle, FileInfo, FileSystem, StorageError
from .index import resolve_index
from .listing import listing_response
from .paths import (
    clean_path,
    ensure_leading_slash,
    index_redirect,
    trailing_slash_redirect,
)


logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "HEAD"]


@dataclass
class RequestContext:
    """
    Per-request working state.

    Attributes:
        request: The request being answered.
        path: Raw request path with a leading slash; drives redirects.
        name: Canonical name; cache key and storage name.
        is_directory: Whether the resolved resource is a directory.
        via_index: A directory is being answered with its index page.
        entry: Cache entry serving this request, if any.
        handle: Open storage handle serving this request, if any.
        info: Metadata of the resolved resource.
        source_path: Storage name actually read.
    """

    request: HTTPRequest
    path: str
    name: str
    is_directory: bool = False
    via_index: bool = False
    entry: Optional[CachedFile] = None
    handle: Optional[FileHandle] = None
    info: Optional[FileInfo] = None
    source_path: str = ""


class RequestDispatcher:
    """
    Serves files from a FileSystem through a ContentCache.

    Instances are callables (request → response) and safe to share across
    worker threads.

        dispatcher = RequestDispatcher(LocalFileSystem("./public"), ContentCache())
        response = dispatcher(request)
    """

    def __init__(
        self,
        root: FileSystem,
        cache: ContentCache,
        index_page: str = "/index.html",
    ):
        self.root = root
        self.cache = cache
        self.index_page = index_page

    def __call__(self, request: HTTPRequest) -> HTTPResponse:
        return self.handle(request)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        if request.method not in ALLOWED_METHODS:
            return method_not_allowed(ALLOWED_METHODS)

        path = ensure_leading_slash(request.path)
        ctx = RequestContext(request=request, path=path, name=clean_path(path))

        target = index_redirect(ctx.path, self.index_page)
        if target is not None:
            return local_redirect(target, request.query_string)

        entry = self.cache.lookup(ctx.name)
        if entry is not None:
            ctx.entry = entry
            return self._serve_cached(ctx)

        return self._serve_from_storage(ctx)

    # ─────────────────────────────────────────────────────────────────────
    # CACHE HIT
    # ─────────────────────────────────────────────────────────────────────

    def _serve_cached(self, ctx: RequestContext) -> HTTPResponse:
        entry = ctx.entry
        logger.debug(f"Cache hit: {ctx.name}")

        target = trailing_slash_redirect(ctx.path, entry.is_directory)
        if target is not None:
            return local_redirect(target, ctx.request.query_string)

        return serve_content(ctx.request, entry.name, entry.modified_at, entry.content)

    # ─────────────────────────────────────────────────────────────────────
    # CACHE MISS
    # ─────────────────────────────────────────────────────────────────────

    def _serve_from_storage(self, ctx: RequestContext) -> HTTPResponse:
        try:
            handle = self.root.open(ctx.name)
        except StorageError as e:
            logger.debug(f"Open failed for {ctx.name}: {e}")
            return not_found()

        with handle:
            try:
                info = handle.stat()
            except StorageError as e:
                logger.debug(f"Stat failed for {ctx.name}: {e}")
                return not_found()

            ctx.handle, ctx.info = handle, info
            ctx.is_directory = info.is_directory
            ctx.source_path = ctx.name

            target = trailing_slash_redirect(ctx.path, info.is_directory)
            if target is not None:
                return local_redirect(target, ctx.request.query_string)

            if not ctx.is_directory:
                return self._serve_file(ctx)

            index = resolve_index(self.root, ctx.name, self.index_page)
            if index is None:
                return self._serve_listing(ctx)

            with index.handle:
                ctx.handle, ctx.info = index.handle, index.info
                ctx.source_path = index.path
                ctx.is_directory = False
                ctx.via_index = True
                return self._serve_file(ctx)

    def _serve_listing(self, ctx: RequestContext) -> HTTPResponse:
        headers = {}
        not_modified = check_last_modified(ctx.request, ctx.info.modified_at, headers)
        if not_modified is not None:
            return not_modified
        return listing_response(ctx.handle, headers)

    def _serve_file(self, ctx: RequestContext) -> HTTPResponse:
        try:
            content = ctx.handle.read()
        except StorageError as e:
            logger.warning(f"Failed to read {ctx.source_path}: {e}")
            return internal_error("Failed to read file")

        response = serve_content(ctx.request, ctx.info.name, ctx.info.modified_at, content)

        if response.status == HTTPStatus.OK and ctx.request.method == "GET":
            self.cache.insert(ctx.name, CachedFile(
                name=ctx.info.name,
                modified_at=ctx.info.modified_at,
                size=ctx.info.size,
                content=content,
                source_path=ctx.source_path,
                is_directory=ctx.via_index,
            ))

        return response
