"""
=============================================================================
HTTP STATUS CODES USED BY THE FILE SERVER
=============================================================================

A file server speaks a small dialect of HTTP. Every response it produces
falls into one of these buckets:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    FILE SERVER STATUS CODES                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   200 OK                   Full file body or directory listing      │
    │   206 Partial Content      A single byte range of a file            │
    │                                                                      │
    │   301 Moved Permanently    Canonical URL redirects:                 │
    │                              /docs        → docs/                   │
    │                              /a.txt/      → ../a.txt                │
    │                              /index.html  → ./                      │
    │   304 Not Modified         Client copy is still fresh               │
    │                                                                      │
    │   404 Not Found            Storage could not open/stat the path     │
    │   405 Method Not Allowed   Anything except GET / HEAD               │
    │   412 Precondition Failed  If-Match / If-Unmodified-Since failed    │
    │   416 Range Not Satisfiable                                         │
    │                                                                      │
    │   500 Internal Server Error                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The transport layer needs a few more (400, 408, 413, 503, 505) for
requests that never reach the file handler.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    Extends IntEnum so a status compares equal to its integer code:

        >>> HTTPStatus.NOT_MODIFIED == 304
        True
        >>> HTTPStatus.NOT_MODIFIED.phrase
        'Not Modified'
    """

    # 2xx SUCCESS
    OK = 200
    PARTIAL_CONTENT = 206          # Range request fulfilled

    # 3xx REDIRECTION
    MOVED_PERMANENTLY = 301        # Canonical path redirects
    FOUND = 302
    NOT_MODIFIED = 304             # Conditional request, client copy fresh

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PRECONDITION_FAILED = 412
    PAYLOAD_TOO_LARGE = 413
    RANGE_NOT_SATISFIABLE = 416

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 304 Not Modified
                     ─── ────────────
                      │        └── phrase
                      └────────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        return self >= 400

    @property
    def allows_body(self) -> bool:
        """
        Whether a response with this status may carry a body.

        RFC 7230 §3.3: 1xx, 204 and 304 responses never have a body,
        and must not advertise one through Content-Length.
        """
        return not (100 <= self < 200 or self in (204, 304))


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.FOUND: "Found",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PRECONDITION_FAILED: "Precondition Failed",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
