"""
Stateless route handlers: root, echo, user-agent and not-found.

Each handler takes an HTTPRequest and returns exactly one HTTPResponse.
"""

import logging

from ..http.encoding import compress, negotiate_encoding
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, ok, not_found


logger = logging.getLogger(__name__)


def handle_root(request: HTTPRequest) -> HTTPResponse:
    """
    GET / → 200 OK with no headers and an empty body.

        HTTP/1.1 200 OK\r\n
        \r\n
    """
    return ok()


def handle_echo(request: HTTPRequest) -> HTTPResponse:
    """
    GET /echo/:message → the message back as text/plain.

    If the client accepts gzip the body is compressed:

        Accept-Encoding: gzip          HTTP/1.1 200 OK
                                 ──►   Content-Type: text/plain
                                       Content-Encoding: gzip
                                       Content-Length: <compressed size>
    """
    body = request.path_params.get("message", "").encode("utf-8")
    encoding = negotiate_encoding(request.accept_encoding)

    builder = ResponseBuilder().content_type("text/plain")
    if encoding:
        body = compress(body, encoding)
        builder.header("Content-Encoding", encoding)
        logger.debug(f"Echo body compressed with {encoding} ({len(body)} bytes)")

    return (builder
        .header("Content-Length", str(len(body)))
        .body(body)
        .build())


def handle_user_agent(request: HTTPRequest) -> HTTPResponse:
    """GET /user-agent → the User-Agent header value as text/plain."""
    body = request.user_agent.encode("utf-8")
    return (ResponseBuilder()
        .content_type("text/plain")
        .header("Content-Length", str(len(body)))
        .body(body)
        .build())


def handle_not_found(request: HTTPRequest) -> HTTPResponse:
    """Catch-all → 404 Not Found, status line only."""
    return not_found()
