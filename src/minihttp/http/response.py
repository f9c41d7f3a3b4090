"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and serializes them to wire bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    HTTP/1.1 200 OK\r\n                 ← Status line
    Content-Type: text/plain\r\n        ← Headers, in the order they were set
    Content-Encoding: gzip\r\n
    Content-Length: 23\r\n
    \r\n                                ← Blank line
    <23 bytes of body>                  ← Body

=============================================================================
EXACT WIRE OUTPUT
=============================================================================

Serialization writes only the headers the handler asked for. Nothing is
injected behind the handler's back, with two narrow exceptions:

    - Content-Length is added when the body is non-empty and the handler
      did not set it (the client cannot find the end of the body otherwise)
    - Server is added when a server name is passed to to_bytes()

So a bare response is exactly its status line plus the blank line:

    HTTPResponse(HTTPStatus.NOT_FOUND).to_bytes()
        == b"HTTP/1.1 404 Not Found\r\n\r\n"

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus, status_text


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Use ResponseBuilder (or the helper functions at the bottom of this
    module) for a more convenient way to construct responses.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 201 Created"
        """
        return f"{self.version} {int(self.status)} {status_text(self.status)}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the response body, encoding strings as UTF-8."""
        if isinstance(body, str):
            self.body = body.encode("utf-8")
        else:
            self.body = body
        return self

    def to_bytes(self, server_name: Optional[str] = None) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        Args:
            server_name: Value for the Server header. None omits the header.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        response_headers = dict(self.headers)

        if self.body and "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if server_name and "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    ==========================================================================
    USAGE
    ==========================================================================

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("hello")
            .header("Content-Encoding", "gzip")
            .build())

    Each method returns `self`, except build(). build() appends
    Content-Length last if the body is non-empty and no length was set,
    which keeps the conventional header order:

        Content-Type, [Content-Encoding], Content-Length

    ==========================================================================
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        """Set the HTTP status code."""
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        """Add multiple headers at once."""
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body (raw bytes or string).

        Strings are encoded as UTF-8.
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: Union[str, bytes], content_type: str = "text/plain") -> "ResponseBuilder":
        """Set a plain text body and its Content-Type."""
        self.content_type(content_type)
        return self.body(text)

    def octets(self, content: bytes) -> "ResponseBuilder":
        """Set a binary body served as application/octet-stream."""
        self.content_type("application/octet-stream")
        return self.body(content)

    def build(self) -> HTTPResponse:
        """Build the final HTTPResponse object."""
        headers = dict(self._headers)
        if self._body and "Content-Length" not in headers:
            headers["Content-Length"] = str(len(self._body))
        return HTTPResponse(
            status=self._status,
            headers=headers,
            body=self._body,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Quick one-liners for the responses the handlers and server need.
# Error responses carry no body: the status line says it all.
#
# =============================================================================

def ok(body: Union[str, bytes] = b"", content_type: Optional[str] = None) -> HTTPResponse:
    """
    Create a 200 OK response.

    With no arguments this is the bare "HTTP/1.1 200 OK" response with no
    headers and no body.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if content_type:
        builder.content_type(content_type)
    return builder.body(body).build()


def created(body: bytes = b"", content_type: Optional[str] = None) -> HTTPResponse:
    """Create a 201 Created response."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED)
    if content_type:
        builder.content_type(content_type)
    return builder.body(body).build()


def bad_request() -> HTTPResponse:
    """Create a 400 Bad Request response."""
    return HTTPResponse(status=HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    """Create a 404 Not Found response with no headers and no body."""
    return HTTPResponse(status=HTTPStatus.NOT_FOUND)


def method_not_allowed(allowed_methods: list) -> HTTPResponse:
    """
    Create a 405 Method Not Allowed response.

    Includes the Allow header listing valid methods (RFC 7231 §6.5.5).
    """
    return HTTPResponse(
        status=HTTPStatus.METHOD_NOT_ALLOWED,
        headers={"Allow": ", ".join(allowed_methods)},
    )


def internal_error() -> HTTPResponse:
    """Create a 500 Internal Server Error response."""
    return HTTPResponse(status=HTTPStatus.INTERNAL_SERVER_ERROR)


def error_response(status: int) -> HTTPResponse:
    """Create a bodiless response for an arbitrary error status."""
    return HTTPResponse(status=status)
