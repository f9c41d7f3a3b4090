"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes of one request into an HTTPRequest object.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    POST /files/notes.txt HTTP/1.1\r\n        ← Request line
    Host: localhost:4221\r\n                  ← Headers
    User-Agent: curl/8.4.0\r\n
    Content-Length: 5\r\n
    \r\n                                      ← Blank line
    hello                                     ← Body (Content-Length bytes)

Only Content-Length framing is understood. Chunked transfer encoding is
not supported; a chunked body is simply treated as absent.

=============================================================================
ERROR MAPPING
=============================================================================

Every parse failure raises HTTPParseError carrying the status the client
should receive before the connection is closed:

    400 Bad Request                - Malformed syntax, truncated body,
                                     ".." path segment
    405 Method Not Allowed         - Method outside RFC 7231
    413 Payload Too Large          - Over max_request_size (if configured)
    505 HTTP Version Not Supported - Anything but HTTP/1.0 or HTTP/1.1

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import parse_qs, urlsplit, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code that should be returned to the client.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         GET, POST, ...
        path:           URL-decoded path WITHOUT the query string
                        "/echo/hello world", not "/echo/hello%20world?x=1"
        version:        "HTTP/1.1" or "HTTP/1.0"
        headers:        Header names are LOWERCASE, so lookups through
                        get_header() are case-insensitive
        query_params:   "?a=1&a=2" → {"a": ["1", "2"]}
        body:           Exactly Content-Length bytes (may be empty)
        path_params:    Filled in by the router: "/files/:filename"
                        matched against "/files/a.txt" → {"filename": "a.txt"}
        client_address: (ip, port) of the peer, used for access logging

    Handlers treat the request as read-only; the router is the only
    component that writes to it (path_params, before dispatch).

    =========================================================================
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list] = field(default_factory=dict)
    body: bytes = b""

    path_params: Dict[str, str] = field(default_factory=dict)

    client_address: tuple = ("", 0)

    @property
    def content_length(self) -> int:
        """Content-Length as an integer, 0 if missing or invalid."""
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        """User-Agent header value, "" if the client sent none."""
        return self.headers.get("user-agent", "")

    @property
    def accept_encoding(self) -> str:
        """Raw Accept-Encoding header value, "" if absent."""
        return self.headers.get("accept-encoding", "")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup).

        Example:
            request.get_header("User-Agent")  # same as "user-agent"
        """
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        Raw bytes
            │
            ├── 1. Size check (only if max_request_size is set) → 413
            ├── 2. Split at \r\n\r\n                            → 400
            ├── 3. Request line: METHOD SP URI SP VERSION      → 400/405/505
            ├── 4. Headers: "Name: Value", names lowercased
            ├── 5. Body: exactly Content-Length bytes           → 400
            │
            ▼
        HTTPRequest

    ==========================================================================
    """

    VALID_METHODS = {
        "GET",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "HEAD",
        "OPTIONS",
        "TRACE",
        "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: Optional[int] = None):
        """
        Initialize the request parser.

        Args:
            max_request_size: Maximum allowed request size in bytes.
                              None (the default) means unlimited.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple = ("", 0),
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from the socket.
            client_address: Client's (ip, port) tuple for logging.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if self.max_request_size is not None and len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        # Header bytes outside UTF-8 are kept as U+FFFD rather than rejected
        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        if not lines[0]:
            raise HTTPParseError("Empty request line")

        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError(
                f"Invalid Content-Length: {headers['content-length']!r}"
            )
        if content_length < 0:
            raise HTTPParseError(f"Invalid Content-Length: {content_length}")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple:
        """
        Parse the HTTP request line.

            "GET /echo/abc?x=1 HTTP/1.1"
             ─┬─ ──────┬────── ────┬───
              │        │           │
            Method    URI       Version

        Returns:
            Tuple of (method, path, query_params, version)

        Raises:
            HTTPParseError: If the line is malformed.
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        parsed = urlsplit(uri)
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        # "/files/../secret" must never reach a handler; "/echo/a..b" may
        if ".." in path.split("/"):
            raise HTTPParseError("Invalid path: contains ..", status_code=400)

        return method, path, query_params, version

    def _parse_headers(self, lines: list) -> Dict[str, str]:
        """
        Parse header lines into a dictionary with lowercase names.

        Repeated headers are joined with ", " (RFC 7230 §3.2.2).
        Obsolete line folding (continuation lines starting with
        whitespace) is appended to the previous header.
        Lines without a colon are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
