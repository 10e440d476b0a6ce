"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Handlers return an HTTPResponse; the server serializes it with to_bytes()
and writes it to the socket.

    ResponseBuilder()                       HTTP/1.1 200 OK\\r\\n
        .status(HTTPStatus.OK)              Content-Type: text/html; ...\\r\\n
        .html("<pre>...</pre>")    ──►      Content-Length: 14\\r\\n
        .build()                            Date: ...\\r\\n
                                            \\r\\n
                                            <pre>...</pre>

=============================================================================
BODYLESS RESPONSES
=============================================================================

A 304 Not Modified response must not carry a body, and the conditional
logic deliberately removes Content-Type and Content-Length from it.
to_bytes() therefore only auto-adds Content-Length for statuses that allow
a body (see HTTPStatus.allows_body).

HEAD responses are different: the headers describe the GET body, so the
server keeps Content-Length and drops the body bytes (see without_body()).

=============================================================================
HTTP DATES
=============================================================================

Last-Modified, If-Modified-Since and Date use the IMF-fixdate format:

    Sun, 06 Nov 1994 08:49:37 GMT

format_http_date() writes it and parse_http_date() reads it. Parsing is
strict: anything else (RFC 850 dates, asctime, numeric offsets) is treated
as "no date", which makes the conditional check fall back to a full
response.

=============================================================================
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json
import re

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Use ResponseBuilder or the helper functions at the bottom of this
    module rather than constructing it field by field.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 301 Moved Permanently" """
        return f"{self.version} {self.status} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def without_body(self) -> "HTTPResponse":
        """
        Copy of this response for a HEAD request.

        Content-Length keeps describing the body a GET would have
        received; only the bytes are dropped.
        """
        headers = dict(self.headers)
        if self.status.allows_body:
            headers.setdefault("Content-Length", str(len(self.body)))
        return replace(self, headers=headers, body=b"")

    def to_bytes(self, server_name: str = "FileServer/1.0") -> bytes:
        """
        Serialize status line, headers and body.

        Adds Date and Server when missing, and Content-Length for statuses
        that allow a body.
        """
        response_headers = dict(self.headers)
        body = self.body if self.status.allows_body else b""

        if self.status.allows_body and "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Last-Modified", format_http_date(mtime))
            .body(content)
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Raw body; strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: str) -> "ResponseBuilder":
        self._body = html.encode("utf-8")
        self._headers["Content-Type"] = "text/html; charset=utf-8"
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def redirect(self, location: str, permanent: bool = False) -> "ResponseBuilder":
        """
        301 (permanent) or 302 redirect to `location`.

        The location is written as given. Relative locations such as
        "docs/" or "../a.txt" stay relative, which keeps redirects correct
        when the handler is mounted under a URL prefix.
        """
        self._status = HTTPStatus.MOVED_PERMANENTLY if permanent else HTTPStatus.FOUND
        self._headers["Location"] = location
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# HTTP DATES
# =============================================================================

_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

_HTTP_DATE_PATTERN = re.compile(
    r"^(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun), "
    r"(\d{2}) (Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec) (\d{4}) "
    r"(\d{2}):(\d{2}):(\d{2}) GMT$"
)


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an IMF-fixdate, always in GMT.

    Naive datetimes are taken to be UTC already; aware ones are converted.
    Sub-second precision is dropped.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def parse_http_date(value: str) -> Optional[datetime]:
    """
    Parse an IMF-fixdate into an aware UTC datetime.

    Returns None for empty or unparseable values, including impossible
    calendar dates such as "31 Feb".
    """
    match = _HTTP_DATE_PATTERN.match(value.strip())
    if not match:
        return None

    day, month, year, hour, minute, second = match.groups()
    try:
        return datetime(
            int(year), _MONTHS.index(month) + 1, int(day),
            int(hour), int(minute), int(second),
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def local_redirect(location: str, query_string: str = "") -> HTTPResponse:
    """
    301 Moved Permanently to a relative location, keeping the query.

        local_redirect("docs/", "v=1")  →  Location: docs/?v=1
    """
    if query_string:
        location += "?" + query_string
    return ResponseBuilder().redirect(location, permanent=True).build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": message}).build()


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """405 with the Allow header RFC 7231 requires."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .json({"error": "Method Not Allowed", "allowed": allowed_methods})
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.INTERNAL_SERVER_ERROR).json({"error": message}).build()
