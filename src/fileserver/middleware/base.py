"""
=============================================================================
MIDDLEWARE
=============================================================================

A middleware sees every request on its way in and every response on its
way out:

    def __call__(self, request, next):
        ...                      # before
        response = next(request)
        ...                      # after
        return response

MiddlewarePipeline nests them around the file handler. The first one
added is the outermost:

    pipeline.add(LoggingMiddleware())        # sees the final response
    pipeline.add(StripPrefixMiddleware("/files"))
    handler = pipeline.wrap(dispatcher)

        Logging → StripPrefix → dispatcher → StripPrefix → Logging

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """Base class for request/response middleware."""

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Handle `request`, usually by delegating to `next`."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered middleware wrapped around a final handler."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """Build the chain; the first middleware added runs first."""
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
