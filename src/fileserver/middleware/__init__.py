"""
Middleware wrapped around the file handler.

    base.py      Middleware, MiddlewarePipeline
    logging.py   LoggingMiddleware (access log)
    prefix.py    StripPrefixMiddleware (URL prefix mounting)
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .prefix import StripPrefixMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "StripPrefixMiddleware",
]
