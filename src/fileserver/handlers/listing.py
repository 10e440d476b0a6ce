"""
=============================================================================
DIRECTORY LISTINGS
=============================================================================

Rendered for directories without an index page:

    <pre>
    <a href="a%20dir/">a dir/</a>
    <a href="b.txt">b.txt</a>
    <a href="q%3F.txt">q?.txt</a>
    <a href="%3Cx%3E">&lt;x&gt;</a>
    </pre>

Two different encodings are applied to every name:

    href   percent-encoded as a URL path, so "?" and "#" stay part of the
           path instead of starting a query or fragment
    text   HTML-escaped, so "<" and "&" display literally

=============================================================================
TRUNCATION
=============================================================================

Entries are read in batches. A storage error part way through ends the
listing early but still closes the <pre> block; the status line has
already been decided by then, so the error is only logged.

=============================================================================
"""

from typing import List
from urllib.parse import quote
import logging

from ..http.response import HTTPResponse, ResponseBuilder
from ..storage.base import FileHandle, StorageError


logger = logging.getLogger(__name__)

BATCH_SIZE = 100

LISTING_CONTENT_TYPE = "text/html; charset=utf-8"

_HTML_ESCAPES = [
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&#34;"),
    ("'", "&#39;"),
]

# Reserved characters that may appear unescaped in a URL path segment
_PATH_SAFE = "/$&+,:;=@"


def html_escape(text: str) -> str:
    for char, entity in _HTML_ESCAPES:
        text = text.replace(char, entity)
    return text


def href_for(name: str) -> str:
    """
    URL-path encoding of an entry name, relative to the listed directory.

    A colon in the first segment would read as a URL scheme ("a:b" →
    scheme "a"), so such names get a "./" prefix.
    """
    encoded = quote(name, safe=_PATH_SAFE)
    if ":" in encoded.split("/", 1)[0]:
        encoded = "./" + encoded
    return encoded


def render_listing(handle: FileHandle, batch_size: int = BATCH_SIZE) -> str:
    """HTML <pre> block linking every entry of an open directory."""
    lines: List[str] = ["<pre>\n"]

    while True:
        try:
            entries = handle.read_dir(batch_size)
        except StorageError as e:
            logger.warning(f"Directory listing truncated: {e}")
            break
        if not entries:
            break

        for entry in entries:
            name = entry.name + "/" if entry.is_directory else entry.name
            lines.append(f'<a href="{href_for(name)}">{html_escape(name)}</a>\n')

    lines.append("</pre>\n")
    return "".join(lines)


def listing_response(handle: FileHandle, headers=None) -> HTTPResponse:
    """
    200 response carrying the listing of `handle`.

    `headers` (e.g. Last-Modified from the freshness check) are copied
    onto the response; Content-Type is always the listing's.
    """
    builder = ResponseBuilder()
    if headers:
        builder.headers(headers)
    return builder.content_type(LISTING_CONTENT_TYPE).body(render_listing(handle)).build()
