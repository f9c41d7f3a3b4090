"""
Unit tests for content-encoding negotiation and compression.
"""

import gzip

import pytest

from minihttp.http.encoding import negotiate_encoding, compress, SUPPORTED_ENCODINGS


class TestNegotiateEncoding:
    """Tests for negotiate_encoding()."""

    def test_gzip_alone(self):
        assert negotiate_encoding("gzip") == "gzip"

    def test_gzip_in_list(self):
        """Test that gzip is found among other encodings."""
        assert negotiate_encoding("deflate, gzip, br") == "gzip"
        assert negotiate_encoding("encoding-1, gzip, encoding-2") == "gzip"

    def test_unsupported_only(self):
        """Test encodings the server cannot produce."""
        assert negotiate_encoding("deflate") == ""
        assert negotiate_encoding("br, identity") == ""

    def test_empty_header(self):
        assert negotiate_encoding("") == ""

    def test_match_is_case_sensitive(self):
        """Test that only the lowercase token is recognised."""
        assert negotiate_encoding("GZIP") == ""

    def test_supported_set(self):
        assert SUPPORTED_ENCODINGS == ("gzip",)


class TestCompress:
    """Tests for compress()."""

    def test_produces_gzip_stream(self):
        """Test that the output is a standard gzip member."""
        data = compress(b"abc")
        assert data[:2] == b"\x1f\x8b"
        assert gzip.decompress(data) == b"abc"

    def test_empty_body(self):
        assert gzip.decompress(compress(b"")) == b""

    def test_unknown_encoding(self):
        """Test that unsupported encodings are rejected."""
        with pytest.raises(ValueError):
            compress(b"abc", "br")
