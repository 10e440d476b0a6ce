"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    paths.py        canonical names and redirect targets
    index.py        directory index page lookup
    listing.py      HTML listing for directories without an index
    dispatcher.py   RequestDispatcher, the file-serving handler

Usage:

    from fileserver.cache import ContentCache
    from fileserver.handlers import RequestDispatcher
    from fileserver.storage import LocalFileSystem

    handler = RequestDispatcher(LocalFileSystem("./public"), ContentCache())
    response = handler(request)

=============================================================================
"""

from .dispatcher import RequestDispatcher, RequestContext, ALLOWED_METHODS
from .index import resolve_index, ResolvedIndex
from .listing import render_listing, listing_response, html_escape, href_for
from .paths import (
    base_name,
    canonicalize,
    clean_path,
    index_redirect,
    trailing_slash_redirect,
)

__all__ = [
    "RequestDispatcher",
    "RequestContext",
    "ALLOWED_METHODS",
    "resolve_index",
    "ResolvedIndex",
    "render_listing",
    "listing_response",
    "html_escape",
    "href_for",
    "base_name",
    "canonicalize",
    "clean_path",
    "index_redirect",
    "trailing_slash_redirect",
]
