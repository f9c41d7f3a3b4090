"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that turns bytes into HTTP messages and back again:

    request.py       Raw bytes → HTTPRequest (RequestParser)
    response.py      HTTPResponse / ResponseBuilder → raw bytes
    router.py        (method, path) → handler
    status_codes.py  Status registry: code → reason phrase
    encoding.py      Accept-Encoding negotiation, gzip compression

This package knows nothing about sockets or threads; it can be exercised
entirely with in-memory bytes, which is how the unit tests use it.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    created,
    bad_request,
    not_found,
    method_not_allowed,
    internal_error,
    error_response,
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus, status_text
from .encoding import negotiate_encoding, compress, SUPPORTED_ENCODINGS

__all__ = [
    # Request
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    # Response
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "internal_error",
    "error_response",
    # Routing
    "Router",
    "Route",
    "RouteMatch",
    # Status
    "HTTPStatus",
    "status_text",
    # Encoding
    "negotiate_encoding",
    "compress",
    "SUPPORTED_ENCODINGS",
]
