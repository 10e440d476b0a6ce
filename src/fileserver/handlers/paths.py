"""
=============================================================================
PATH CANONICALIZATION
=============================================================================

Every request path is reduced to one canonical name before it is used as a
cache key or handed to storage:

    raw path                  canonical
    ─────────────────────     ─────────
    a.txt                     /a.txt         leading slash added
    /docs/                    /docs          trailing slash dropped
    //docs//./x/../a.txt      /docs/a.txt    lexical cleaning
    /../../etc/passwd         /etc/passwd    rooted: ".." stops at "/"

The trailing slash is not lost: redirect decisions look at the *raw* path
(see trailing_slash_redirect) while lookups use the canonical one.

=============================================================================
REDIRECTS
=============================================================================

All redirects are relative, so they stay correct when the handler is
mounted under a stripped URL prefix:

    /docs/index.html   →  ./              index page named explicitly
    /docs              →  docs/           directory without slash
    /a.txt/            →  ../a.txt        file with slash

=============================================================================
"""

from typing import Optional
import posixpath


def clean_path(path: str) -> str:
    """
    Lexically clean a slash-separated path.

    Resolves "." and "..", collapses repeated slashes, drops a trailing
    slash. Rooted paths stay rooted and never climb above "/". An empty
    path cleans to ".".
    """
    if not path:
        return "."

    cleaned = posixpath.normpath(path)
    # normpath keeps exactly two leading slashes (POSIX allows them to be
    # special); a URL path has no such case.
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def ensure_leading_slash(path: str) -> str:
    return path if path.startswith("/") else "/" + path


def canonicalize(path: str) -> str:
    """Canonical cache/storage name for a raw request path."""
    return clean_path(ensure_leading_slash(path))


def base_name(path: str) -> str:
    """
    Last element of a path, ignoring trailing slashes.

        base_name("/docs/")   → "docs"
        base_name("/a.txt")   → "a.txt"
        base_name("/")        → "/"
        base_name("")         → "."
    """
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def index_redirect(path: str, index_page: str) -> Optional[str]:
    """
    "./" when `path` names the index page explicitly, else None.

    Serving /docs/index.html and /docs/ as two URLs for the same bytes
    splits caches and search indexes; the index form is always redirected
    to the directory form.
    """
    if path.endswith(index_page):
        return "./"
    return None


def trailing_slash_redirect(path: str, is_directory: bool) -> Optional[str]:
    """
    Relative redirect target when the trailing slash disagrees with the
    resource type, else None.

    Only the last path segment is used, so the target is correct no matter
    what prefix was stripped in front of `path`.
    """
    has_slash = path.endswith("/")

    if is_directory and not has_slash:
        return base_name(path) + "/"
    if not is_directory and has_slash:
        return "../" + base_name(path)
    return None
