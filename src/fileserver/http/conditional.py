"""
=============================================================================
CONDITIONAL REQUESTS AND CONTENT SERVING
=============================================================================

Two entry points:

    check_last_modified()   The If-Modified-Since gate used for directory
                            listings. Either answers 304 or stamps
                            Last-Modified on the outgoing headers.

    serve_content()         The serving primitive for file bytes, whether
                            they came from storage or from the in-memory
                            cache. Handles preconditions, ETag,
                            Last-Modified, single byte ranges and 304.

=============================================================================
THE ONE-SECOND SLACK
=============================================================================

HTTP dates have whole-second precision, file systems do not:

    file mtime            12:00:00.734
    Last-Modified sent    12:00:00        (truncated)
    If-Modified-Since     12:00:00        (echoed back by the client)

A naive `mtime <= since` says "modified" (0.734 > 0). We instead test
`mtime < since + 1s`, which treats every mtime inside the echoed second as
unchanged.

=============================================================================
PRECONDITION ORDER (RFC 7232 §6)
=============================================================================

    1. If-Match              fails → 412
    2. If-Unmodified-Since   (only without If-Match) fails → 412
    3. If-None-Match         matches → 304 (GET/HEAD)
    4. If-Modified-Since     (only without If-None-Match) → 304 (GET/HEAD)
    5. If-Range + Range      → 206 / 416 / full 200

=============================================================================
RANGES
=============================================================================

A single satisfiable range yields 206 Partial Content. Multiple ranges are
answered with the full body (a server may always ignore Range), as are
range sets larger than the content itself.

=============================================================================
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from .mime_types import get_content_type
from .request import HTTPRequest
from .response import HTTPResponse, format_http_date, parse_http_date
from .status_codes import HTTPStatus


_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_SECOND = timedelta(seconds=1)


class RangeError(ValueError):
    """
    A Range header that cannot be honoured.

    `no_overlap` distinguishes "well-formed but past the end of the
    content" (answered with Content-Range: bytes */size) from syntax
    errors.
    """

    def __init__(self, message: str, no_overlap: bool = False):
        super().__init__(message)
        self.no_overlap = no_overlap


def _as_utc(modified_at: Optional[datetime]) -> Optional[datetime]:
    """Normalize to an aware UTC datetime; None and epoch mean unknown."""
    if modified_at is None:
        return None
    if modified_at.tzinfo is None:
        modified_at = modified_at.replace(tzinfo=timezone.utc)
    if modified_at == _UNIX_EPOCH or modified_at.year <= 1:
        return None
    return modified_at


def _truncate(dt: datetime) -> datetime:
    return dt.replace(microsecond=0)


def make_etag(modified_at: Optional[datetime], size: int) -> Optional[str]:
    """
    Strong ETag from mtime seconds and size: "1718445600-5120".

    No ETag when the modification time is unknown.
    """
    modified_at = _as_utc(modified_at)
    if modified_at is None:
        return None
    return f'"{int(modified_at.timestamp())}-{size}"'


def check_last_modified(
    request: HTTPRequest,
    modified_at: Optional[datetime],
    headers: Dict[str, str],
) -> Optional[HTTPResponse]:
    """
    Evaluate If-Modified-Since against a resource's modification time.

    Args:
        request: The incoming request.
        modified_at: Resource mtime, or None when unknown.
        headers: Response headers collected so far. Mutated: gains
                 Last-Modified when the resource is served in full.

    Returns:
        A 304 response (without Content-Type / Content-Length) when the
        client copy is fresh; None when the caller should serve the full
        resource.
    """
    modified_at = _as_utc(modified_at)
    if modified_at is None:
        return None

    since = parse_http_date(request.get_header("If-Modified-Since"))
    if since is not None and modified_at < since + _ONE_SECOND:
        headers.pop("Content-Type", None)
        headers.pop("Content-Length", None)
        return HTTPResponse(status=HTTPStatus.NOT_MODIFIED, headers=headers)

    headers["Last-Modified"] = format_http_date(modified_at)
    return None


def serve_content(
    request: HTTPRequest,
    name: str,
    modified_at: Optional[datetime],
    content: bytes,
) -> HTTPResponse:
    """
    Serve file bytes with full conditional and range semantics.

    Args:
        request: The incoming request (GET or HEAD).
        name: Served file name; its extension picks the Content-Type.
        modified_at: File mtime, or None when unknown.
        content: The complete file body.

    Returns:
        200, 206, 304, 412 or 416 response. HEAD bodies are stripped by
        the server, not here, so Content-Length stays accurate.
    """
    size = len(content)
    modified_at = _as_utc(modified_at)
    etag = make_etag(modified_at, size)

    headers: Dict[str, str] = {}
    if modified_at is not None:
        headers["Last-Modified"] = format_http_date(modified_at)
    if etag:
        headers["ETag"] = etag

    # ─────────────────────────────────────────────────────────────────
    # PRECONDITIONS
    # ─────────────────────────────────────────────────────────────────
    if_match = request.get_header("If-Match")
    if if_match:
        if not _etag_matches(if_match, etag, weak=False):
            return HTTPResponse(status=HTTPStatus.PRECONDITION_FAILED, headers=headers)
    elif not _unmodified_since(request, modified_at):
        return HTTPResponse(status=HTTPStatus.PRECONDITION_FAILED, headers=headers)

    if request.method in ("GET", "HEAD"):
        if_none_match = request.get_header("If-None-Match")
        if if_none_match:
            if _etag_matches(if_none_match, etag, weak=True):
                return HTTPResponse(status=HTTPStatus.NOT_MODIFIED, headers=headers)
        else:
            not_modified = check_last_modified(request, modified_at, headers)
            if not_modified is not None:
                return not_modified

    headers["Content-Type"] = get_content_type(name)
    headers["Accept-Ranges"] = "bytes"

    # ─────────────────────────────────────────────────────────────────
    # RANGES
    # ─────────────────────────────────────────────────────────────────
    range_header = request.get_header("Range")
    if range_header and _if_range_passes(request, etag, modified_at):
        try:
            ranges = parse_range(range_header, size)
        except RangeError as e:
            if e.no_overlap:
                headers["Content-Range"] = f"bytes */{size}"
            headers["Content-Type"] = "text/plain; charset=utf-8"
            return HTTPResponse(
                status=HTTPStatus.RANGE_NOT_SATISFIABLE,
                headers=headers,
                body=f"{e}\n".encode("utf-8"),
            )

        if len(ranges) == 1:
            start, length = ranges[0]
            headers["Content-Range"] = f"bytes {start}-{start + length - 1}/{size}"
            headers["Content-Length"] = str(length)
            return HTTPResponse(
                status=HTTPStatus.PARTIAL_CONTENT,
                headers=headers,
                body=content[start:start + length],
            )

    headers["Content-Length"] = str(size)
    return HTTPResponse(status=HTTPStatus.OK, headers=headers, body=content)


def parse_range(header: str, size: int) -> List[Tuple[int, int]]:
    """
    Parse a Range header into (start, length) pairs.

        parse_range("bytes=0-99", 1000)    → [(0, 100)]
        parse_range("bytes=-100", 1000)    → [(900, 100)]
        parse_range("bytes=900-", 1000)    → [(900, 100)]

    Ranges starting at or past the end are dropped; if nothing is left
    the header is unsatisfiable.

    Raises:
        RangeError: On malformed syntax, or when no range overlaps.
    """
    if not header:
        return []

    prefix = "bytes="
    if not header.startswith(prefix):
        raise RangeError("invalid range")

    ranges: List[Tuple[int, int]] = []
    no_overlap = False

    for byte_range in header[len(prefix):].split(","):
        byte_range = byte_range.strip()
        if not byte_range:
            continue
        if "-" not in byte_range:
            raise RangeError("invalid range")

        start_s, end_s = (part.strip() for part in byte_range.split("-", 1))

        if not start_s:
            # Suffix form: the last N bytes
            if not _is_number(end_s):
                raise RangeError("invalid range")
            suffix = min(int(end_s), size)
            if suffix == 0:
                no_overlap = True
                continue
            start = size - suffix
            ranges.append((start, size - start))
            continue

        if not _is_number(start_s):
            raise RangeError("invalid range")
        start = int(start_s)
        if start >= size:
            no_overlap = True
            continue

        if not end_s:
            ranges.append((start, size - start))
            continue

        if not _is_number(end_s) or int(end_s) < start:
            raise RangeError("invalid range")
        end = min(int(end_s), size - 1)
        ranges.append((start, end - start + 1))

    if no_overlap and not ranges:
        raise RangeError("invalid range: failed to overlap", no_overlap=True)

    if sum(length for _, length in ranges) > size:
        return []
    return ranges


def _is_number(value: str) -> bool:
    return value.isascii() and value.isdigit()


def _etag_matches(header: str, etag: Optional[str], weak: bool) -> bool:
    """
    Match an If-Match / If-None-Match list against our ETag.

    Strong comparison (If-Match) never matches weak validators.
    """
    if etag is None:
        return False

    for candidate in header.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            if not weak:
                continue
            candidate = candidate[2:]
        if candidate == etag:
            return True
    return False


def _unmodified_since(request: HTTPRequest, modified_at: Optional[datetime]) -> bool:
    """If-Unmodified-Since check; passes when the header or mtime is absent."""
    since = parse_http_date(request.get_header("If-Unmodified-Since"))
    if since is None or modified_at is None:
        return True
    return _truncate(modified_at) <= since


def _if_range_passes(
    request: HTTPRequest,
    etag: Optional[str],
    modified_at: Optional[datetime],
) -> bool:
    """
    Whether a Range header may be honoured.

    If-Range carries either an ETag (strong match required) or a date
    (must equal the truncated mtime). When it fails, the full body is sent.
    """
    if_range = request.get_header("If-Range")
    if not if_range:
        return True

    if if_range.startswith('"') or if_range.startswith("W/"):
        return etag is not None and if_range == etag

    since = parse_http_date(if_range)
    return since is not None and modified_at is not None and _truncate(modified_at) == since
