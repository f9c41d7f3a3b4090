"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status registry: the small, fixed set of status codes this server can
emit, together with their reason phrases.

=============================================================================
WHERE THE REASON PHRASE GOES
=============================================================================

    HTTP/1.1 404 Not Found\r\n
             ─┬─ ────┬────
              │      │
              │      └── Reason phrase (looked up here)
              └───────── Status code

Per RFC 7230 the reason phrase is informational only. Clients must not
depend on it, so an unknown code is written with an empty phrase rather
than failing the response:

    HTTP/1.1 299 \r\n

=============================================================================
CODES IN USE
=============================================================================

    ┌────────┬────────────────────────────────────────────────────────────┐
    │  200   │ Root, echo, user-agent, file read                          │
    │  201   │ File stored                                                │
    ├────────┼────────────────────────────────────────────────────────────┤
    │  400   │ Malformed request, invalid filename                        │
    │  404   │ No route, missing file                                     │
    │  405   │ Known path, wrong method                                   │
    │  408   │ Client too slow to send its request                        │
    │  413   │ Request larger than max_request_size                       │
    ├────────┼────────────────────────────────────────────────────────────┤
    │  500   │ Handler crashed, file write failed                         │
    │  503   │ Too many live connections                                  │
    │  505   │ HTTP version other than 1.0 / 1.1                          │
    └────────┴────────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes emitted by the server.

    This enum extends IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200
    CREATED = 201

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def status_text(code: int) -> str:
    """
    Get the reason phrase for a numeric status code.

    Total function: never raises, returns "" for codes outside the registry.

    Args:
        code: Numeric HTTP status code.

    Returns:
        Reason phrase, or an empty string if the code is unknown.
    """
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""
