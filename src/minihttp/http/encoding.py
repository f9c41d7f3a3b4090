"""
=============================================================================
CONTENT ENCODING
=============================================================================

Content negotiation and compression for response bodies.

=============================================================================
HOW NEGOTIATION WORKS
=============================================================================

The client advertises what it can decode:

    Accept-Encoding: deflate, gzip, br

The server picks ONE encoding it supports, compresses the body with it,
and tells the client which one it used:

    Content-Encoding: gzip
    Content-Length: 43          ← length of the COMPRESSED body

If nothing matches, the body goes out uncompressed and Content-Encoding
is omitted entirely.

Only gzip is supported. Matching is a plain substring test on the raw
header value, so "gzip;q=1.0" and "x-gzip" both select gzip while "GZIP"
does not.

=============================================================================
"""

import gzip


SUPPORTED_ENCODINGS = ("gzip",)


def negotiate_encoding(accept_encoding: str) -> str:
    """
    Select a supported content encoding from an Accept-Encoding value.

    Args:
        accept_encoding: Raw Accept-Encoding header value (may be empty).

    Returns:
        The selected encoding token, or "" if none is supported.

    Example:
        negotiate_encoding("deflate, gzip")   # "gzip"
        negotiate_encoding("br")              # ""
    """
    for encoding in SUPPORTED_ENCODINGS:
        if encoding in accept_encoding:
            return encoding
    return ""


def compress(body: bytes, encoding: str = "gzip", level: int = 9) -> bytes:
    """
    Compress a response body.

    Args:
        body: Uncompressed bytes.
        encoding: Encoding token returned by negotiate_encoding().
        level: Compression level (1 = fastest, 9 = smallest).

    Returns:
        A complete gzip stream (header, DEFLATE data, CRC32 trailer).

    Raises:
        ValueError: If the encoding is not supported.
    """
    if encoding != "gzip":
        raise ValueError(f"Unsupported content encoding: {encoding!r}")
    return gzip.compress(body, compresslevel=level)
