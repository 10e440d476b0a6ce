"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows about HTTP syntax and semantics but nothing about
files or caches:

    request.py       bytes → HTTPRequest
    response.py      HTTPResponse → bytes, HTTP dates, redirects
    conditional.py   If-* headers, ETag, Range, the serving primitive
    status_codes.py  HTTPStatus enum
    mime_types.py    extension → Content-Type

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    parse_http_date,
    local_redirect,       # 301 with relative Location
    not_found,            # 404
    method_not_allowed,   # 405
    internal_error,       # 500
)
from .conditional import check_last_modified, serve_content, parse_range, RangeError
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "format_http_date",
    "parse_http_date",
    "local_redirect",
    "not_found",
    "method_not_allowed",
    "internal_error",

    # Conditional serving
    "check_last_modified",
    "serve_content",
    "parse_range",
    "RangeError",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_mime_type",
    "get_content_type",
]
