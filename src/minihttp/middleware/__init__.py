"""
Middleware components.

    base.py      Middleware ABC and MiddlewarePipeline
    logging.py   Access logging (text or JSON)
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
