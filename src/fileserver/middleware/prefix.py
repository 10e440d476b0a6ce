"""
Mounting the file handler under a URL prefix.

    StripPrefixMiddleware("/files")

        /files/docs/a.txt   →  handler sees /docs/a.txt
        /files              →  handler sees "" (the root)
        /other              →  404, handler never called

The file handler only ever emits relative redirects ("docs/",
"../a.txt", "./"), so its Location headers stay correct under the prefix
without being rewritten.
"""

from dataclasses import replace

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, not_found
from .base import Middleware, NextHandler


class StripPrefixMiddleware(Middleware):
    def __init__(self, prefix: str):
        self.prefix = prefix

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        if not self.prefix:
            return next(request)
        if not request.path.startswith(self.prefix):
            return not_found()
        return next(replace(request, path=request.path[len(self.prefix):]))
