"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttp import HTTPServer, ServerConfig, create_app


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /echo/hello?lang=en&lang=fr HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: pytest/8.0\r\n"
        b"Accept-Encoding: gzip\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a file body."""
    body = b"hello file"
    return (
        b"POST /files/notes.txt HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: application/octet-stream\r\n"
        b"Content-Length: %d\r\n" % len(body)
        + b"\r\n"
        + body
    )


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    """Empty storage root for /files."""
    root = tmp_path / "files"
    root.mkdir()
    return root


@pytest.fixture
def config(storage_dir: Path) -> ServerConfig:
    """Test server configuration on an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        timeout=5.0,
        max_workers=32,
        directory=str(storage_dir),
        log_level="WARNING",
    )


class LiveServer:
    """Runs an HTTPServer on a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes on a fresh connection and read until the server closes."""
        return send_raw(self.address, raw, timeout)


def send_raw(address: Tuple[str, int], raw: bytes, timeout: float = 5.0) -> bytes:
    with socket.create_connection(address, timeout=timeout) as sock:
        if raw:
            sock.sendall(raw)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def server_factory() -> Generator:
    """Start any HTTPServer in the background; all are stopped at teardown."""
    started = []

    def start(server: HTTPServer) -> LiveServer:
        srv = LiveServer(server)
        srv.start()
        started.append(srv)
        return srv

    yield start

    for srv in started:
        srv.stop()


@pytest.fixture
def live_server(config: ServerConfig, server_factory) -> LiveServer:
    """The full application listening on 127.0.0.1:<ephemeral>."""
    return server_factory(create_app(config))
