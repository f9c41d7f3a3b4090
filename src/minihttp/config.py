"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable the server reads lives in ServerConfig. Nothing else in the
package consults the environment or holds its own defaults.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments    minihttp --port 3000                 │
    │   2. Environment variables     HTTP_PORT=3000 minihttp              │
    │   3. Defaults in this dataclass                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional


DEFAULT_DIRECTORY = "/tmp/data/codecrafters.io/http-server-tester"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


def _env_optional(name: str, default: Optional[str]) -> Optional[str]:
    """Read an env var where "none" or "" means explicitly unset."""
    value = os.getenv(name, default)
    if value is None or value.strip().lower() in ("", "none"):
        return None
    return value


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig(host="127.0.0.1", port=0, log_level="DEBUG")

    Tester defaults:
        ServerConfig()   # 0.0.0.0:4221, files under DEFAULT_DIRECTORY
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """The IP address to bind to. "0.0.0.0" listens on every interface."""

    port: int = 4221
    """
    The port number to listen on.
    0 asks the OS for a free port; read it back from HTTPServer.address.
    """

    backlog: int = 128
    """Maximum number of connections queued by the kernel before accept()."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Per-read socket timeout in seconds.
    A client that stalls longer gets 408 Request Timeout.
    None = wait forever.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: Optional[int] = None
    """
    Upper bound on request size in bytes, answered with 413 when exceeded.
    None = unlimited.
    """

    server_name: Optional[str] = None
    """
    Value for a Server response header.
    None = no Server header, so responses carry only what handlers set.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    max_workers: int = 256
    """
    Maximum number of connections processed at once, one thread each.
    Connections beyond this are answered with 503 and closed.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILE STORAGE
    # ─────────────────────────────────────────────────────────────────────

    directory: str = DEFAULT_DIRECTORY
    """Storage root for /files/:filename. Created on first write."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        HTTP_HOST              Bind host (default: 0.0.0.0)
        HTTP_PORT              Bind port (default: 4221)
        HTTP_WORKERS           Max concurrent connections (default: 256)
        HTTP_TIMEOUT           Read timeout in seconds, or "none" (default: 30)
        HTTP_MAX_REQUEST_SIZE  Request size limit in bytes (default: none)
        HTTP_DIRECTORY         Storage root (default: DEFAULT_DIRECTORY)
        HTTP_LOG_LEVEL         Logging level (default: INFO)
        HTTP_LOG_FORMAT        text or json (default: text)

        Raises:
            ValueError: A numeric variable does not parse.
        """
        timeout = _env_optional("HTTP_TIMEOUT", "30")
        max_request_size = _env_optional("HTTP_MAX_REQUEST_SIZE", None)

        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", "4221")),
            max_workers=int(os.getenv("HTTP_WORKERS", "256")),
            timeout=float(timeout) if timeout is not None else None,
            max_request_size=int(max_request_size) if max_request_size is not None else None,
            directory=os.getenv("HTTP_DIRECTORY", DEFAULT_DIRECTORY),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text").lower(),
        )

    @property
    def log_level_value(self) -> int:
        """The numeric logging level for log_level."""
        return getattr(logging, self.log_level.upper())

    def validate(self) -> None:
        """
        Fail fast on impossible values.

        Raises:
            ValueError: Describing the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size is not None and self.max_request_size < 1:
            raise ValueError("max_request_size must be >= 1")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. "
                f"Must be one of {', '.join(LOG_LEVELS)}."
            )

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Invalid log_format: {self.log_format}. Must be text or json.")
