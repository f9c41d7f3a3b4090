"""
Unit tests for HTTP request parsing.
"""

import pytest

from minihttp.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
)


def parse(data: bytes, **kwargs) -> HTTPRequest:
    return RequestParser(**kwargs).parse(data, ("127.0.0.1", 5000))


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        request = parse(sample_get_request)

        assert request.method == "GET"
        assert request.path == "/echo/hello"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 5000)
        assert request.body == b""

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed with lowercase names."""
        request = parse(sample_get_request)

        assert request.headers["host"] == "localhost:4221"
        assert request.user_agent == "pytest/8.0"
        assert request.accept_encoding == "gzip"

    def test_parse_query_params(self, sample_get_request: bytes):
        """Test that the query string is split off the path."""
        request = parse(sample_get_request)

        assert request.query_params == {"lang": ["en", "fr"]}
        assert request.get_query("lang") == "en"
        assert request.get_query("missing") is None
        assert request.get_query("missing", "x") == "x"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Test parsing a POST request with a Content-Length body."""
        request = parse(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/files/notes.txt"
        assert request.content_length == 10
        assert request.body == b"hello file"

    def test_body_truncated_to_content_length(self):
        """Test that bytes past Content-Length are not part of the body."""
        data = (
            b"POST /files/a HTTP/1.1\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
            b"abcdef"
        )
        assert parse(data).body == b"abc"

    def test_binary_body_preserved(self):
        body = bytes(range(256))
        data = (
            b"POST /files/bin HTTP/1.1\r\n"
            + f"Content-Length: {len(body)}\r\n\r\n".encode()
            + body
        )
        assert parse(data).body == body

    def test_parse_path_percent_decoded(self):
        """Test that percent-escapes in the path are decoded."""
        request = parse(b"GET /echo/hello%20world HTTP/1.1\r\n\r\n")
        assert request.path == "/echo/hello world"

    @pytest.mark.parametrize("target", [b"/echo/a;b", b"/files/a;b.txt", b"/x;y/z;w"])
    def test_semicolon_kept_in_path(self, target):
        """Test that ';' is an ordinary path character, not a params separator."""
        request = parse(b"GET " + target + b" HTTP/1.1\r\n\r\n")
        assert request.path == target.decode()

    def test_semicolon_path_with_query(self):
        request = parse(b"GET /echo/a;b?x=1 HTTP/1.1\r\n\r\n")

        assert request.path == "/echo/a;b"
        assert request.query_params == {"x": ["1"]}

    def test_dots_inside_segment_allowed(self):
        """Test that '..' only counts as a whole segment."""
        request = parse(b"GET /echo/a..b HTTP/1.1\r\n\r\n")
        assert request.path == "/echo/a..b"

    @pytest.mark.parametrize("target", [
        b"/files/..",
        b"/files/../etc/passwd",
        b"/files/a%2F..%2Fsecret",
        b"/files/%2E%2E",
    ])
    def test_parse_path_traversal_blocked(self, target):
        """Test that '..' segments are rejected with 400."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET " + target + b" HTTP/1.1\r\n\r\n")
        assert exc_info.value.status_code == 400

    def test_parse_invalid_method(self):
        """Test that unknown methods get 405."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"FETCH / HTTP/1.1\r\n\r\n")
        assert exc_info.value.status_code == 405

    @pytest.mark.parametrize("line", [
        b"GET /",
        b"GET / HTTP/1.1 extra",
        b"get / HTTP/1.1",
        b"GET  / HTTP/1.1",
        b"GARBAGE",
    ])
    def test_parse_invalid_request_line(self, line):
        """Test malformed request lines."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse(line + b"\r\n\r\n")
        assert exc_info.value.status_code == 400

    def test_http_version_parsing(self):
        """Test supported and unsupported versions."""
        assert parse(b"GET / HTTP/1.0\r\n\r\n").version == "HTTP/1.0"

        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / HTTP/2.0\r\n\r\n")
        assert exc_info.value.status_code == 505

    def test_parse_missing_terminator(self):
        """Test that a request without a blank line is incomplete."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / HTTP/1.1\r\nHost: x\r\n")
        assert exc_info.value.status_code == 400

    def test_parse_empty_request(self):
        with pytest.raises(HTTPParseError):
            parse(b"\r\n\r\n")

    @pytest.mark.parametrize("value", [b"abc", b"-1", b"1.5"])
    def test_invalid_content_length(self, value):
        """Test non-numeric and negative Content-Length values."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"POST /files/a HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n")
        assert exc_info.value.status_code == 400

    def test_short_body(self):
        """Test that a body shorter than Content-Length is rejected."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"POST /files/a HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")
        assert exc_info.value.status_code == 400

    def test_parse_request_too_large(self):
        """Test the optional size limit."""
        data = b"POST /files/a HTTP/1.1\r\nContent-Length: 100\r\n\r\n" + b"x" * 100

        assert parse(data).body == b"x" * 100

        with pytest.raises(HTTPParseError) as exc_info:
            parse(data, max_request_size=64)
        assert exc_info.value.status_code == 413

    def test_case_insensitive_headers(self):
        """Test header lookup regardless of case."""
        request = parse(b"GET / HTTP/1.1\r\nUSER-AGENT: Foo\r\nX-Thing:  v \r\n\r\n")

        assert request.get_header("User-Agent") == "Foo"
        assert request.get_header("user-agent") == "Foo"
        assert request.get_header("x-thing") == "v"

    def test_get_header_default(self):
        request = parse(b"GET / HTTP/1.1\r\n\r\n")

        assert request.get_header("x-missing") == ""
        assert request.get_header("x-missing", "none") == "none"
        assert request.user_agent == ""

    def test_repeated_headers_joined(self):
        """Test that duplicate headers are comma-joined."""
        request = parse(
            b"GET / HTTP/1.1\r\n"
            b"Accept-Encoding: br\r\n"
            b"Accept-Encoding: gzip\r\n"
            b"\r\n"
        )
        assert request.accept_encoding == "br, gzip"

    def test_folded_header(self):
        """Test obsolete line folding."""
        request = parse(
            b"GET / HTTP/1.1\r\n"
            b"X-Long: first\r\n"
            b"  second\r\n"
            b"\r\n"
        )
        assert request.get_header("x-long") == "first second"

    def test_non_utf8_header_replaced(self):
        """Test that undecodable header bytes do not fail the parse."""
        request = parse(b"GET / HTTP/1.1\r\nUser-Agent: caf\xe9\r\n\r\n")
        assert request.user_agent == "caf\ufffd"


class TestHTTPRequest:
    """Tests for the HTTPRequest dataclass."""

    def test_defaults(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.version == "HTTP/1.1"
        assert request.headers == {}
        assert request.path_params == {}
        assert request.body == b""
        assert request.content_length == 0

    def test_invalid_content_length_property(self):
        request = HTTPRequest(method="POST", path="/", headers={"content-length": "nope"})
        assert request.content_length == 0
