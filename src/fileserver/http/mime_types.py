"""
=============================================================================
CONTENT TYPES FOR SERVED FILES
=============================================================================

The file server never looks inside a file to guess its type. The
Content-Type comes from the extension of the *served* name, which for a
directory request is the name of its index file:

    GET /docs/          served name: index.html   → text/html; charset=utf-8
    GET /img/logo.svg   served name: logo.svg     → image/svg+xml; charset=utf-8
    GET /bin/tool       served name: tool         → application/octet-stream

Cached entries keep the served name, so a cache hit produces exactly the
same Content-Type as the original storage read.

=============================================================================
"""

import posixpath
from typing import Optional


# Extension (lowercase, with dot) → MIME type
MIME_TYPES = {
    # Text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".json": "application/json",
    ".xml": "application/xml",
    ".map": "application/json",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # Media
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".mp4": "video/mp4",
    ".webm": "video/webm",

    # Documents and archives
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".wasm": "application/wasm",
}

# Unknown extension: opaque bytes, browsers download rather than render
DEFAULT_MIME_TYPE = "application/octet-stream"

# application/* and image/* types that are really text
_TEXTUAL_TYPES = {
    "application/json",
    "application/xml",
    "image/svg+xml",
}


def get_mime_type(name: str, default: Optional[str] = None) -> str:
    """
    Look up the MIME type for a file name by its extension.

    Args:
        name: File name or slash-separated path ("a/b/page.HTML" works).
        default: Returned for unknown extensions instead of
                 application/octet-stream.
    """
    extension = posixpath.splitext(name)[1].lower()
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def is_text_type(mime_type: str) -> bool:
    """True for MIME types that should carry a charset parameter."""
    return mime_type.startswith("text/") or mime_type in _TEXTUAL_TYPES


def get_content_type(name: str, charset: str = "utf-8") -> str:
    """
    Full Content-Type header value for a served name.

        >>> get_content_type("index.html")
        'text/html; charset=utf-8'
        >>> get_content_type("logo.png")
        'image/png'
    """
    mime_type = get_mime_type(name)
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
