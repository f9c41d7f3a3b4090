"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

Emits one access-log line per request on the "minihttp.access" logger.

Text format (Apache-like):

    127.0.0.1 - - [18/Oct/2026:10:00:00 +0000] "GET /echo/abc" 200 3 0.41ms

JSON format (for log aggregators):

    {"request_id": "1f2e3d4c", "method": "GET", "path": "/echo/abc", ...}

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


# Configure separately from the server logger, e.g.
#   logging.getLogger("minihttp.access").setLevel(logging.WARNING)
logger = logging.getLogger("minihttp.access")


@dataclass
class RequestLog:
    """Structured log entry for one request/response pair."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Should be FIRST in the pipeline so that timing covers everything
    downstream and failures in later middleware are still logged.

    Usage:
        server.use(LoggingMiddleware())                    # text
        server.use(LoggingMiddleware(log_format="json"))   # JSON
        server.use(LoggingMiddleware(skip_paths=["/"]))    # quiet root
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = False,
        log_level: int = logging.INFO,
        skip_paths: Optional[list] = None,
    ):
        """
        Initialize logging middleware.

        Args:
            log_format: "text" or "json".
            include_request_id: Add an X-Request-ID header to responses.
                                Off by default so responses carry only the
                                headers their handler set.
            log_level: Level for successful requests. 5xx responses are
                       always logged at ERROR.
            skip_paths: Exact paths that are never logged.
        """
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        if request.path in self.skip_paths:
            return response

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        level = logging.ERROR if response.status >= 500 else self.log_level
        if self.log_format == "json":
            logger.log(level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(level, log_entry.to_text())

        return response
