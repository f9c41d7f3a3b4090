"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket with buffered request framing.

TCP is a byte stream: a request may arrive in any number of recv() chunks.
read_request() buffers until the header terminator is seen, then keeps
reading until the declared Content-Length of body bytes is present:

    GET /echo/abc HTTP/1.1\r\n          ┐
    Host: localhost:4221\r\n            │ read until \r\n\r\n
    \r\n                                ┘
    <Content-Length bytes>              ← read until complete

Each connection carries exactly one request. The server closes it as soon
as the response has been written.

=============================================================================
LIFECYCLE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
              │                                      ▲
              └──────── (timeout / peer gone) ───────┘

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


HEADER_TERMINATOR = b"\r\n\r\n"

# Upper bound on how long close() waits for the peer to stop sending
DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and cleanup."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A single client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        state: Current lifecycle state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Bytes requested per recv() call.
        timeout: Per-read socket timeout in seconds. None blocks forever.
        max_request_size: Upper bound on buffered request bytes. None
                          means unlimited.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_request_size: Optional[int] = None

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request from the socket.

        Returns:
            The request bytes (head plus body), or None if the peer closed
            the connection before sending a complete header block.

        Raises:
            TimeoutError: A read exceeded the socket timeout.
            ValueError: The request exceeded max_request_size.
        """
        self.state = ConnectionState.READING

        try:
            while HEADER_TERMINATOR not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    if self._buffer:
                        logger.debug(
                            f"[{self.id}] Peer closed mid-header "
                            f"after {len(self._buffer)} bytes"
                        )
                    return None
                self._buffer += chunk
                self._check_size()

            header_end = self._buffer.find(HEADER_TERMINATOR)
            body_start = header_end + len(HEADER_TERMINATOR)
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    # Short body. The parser reports it as a 400.
                    break
                self._buffer += chunk
                self._check_size()

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]
            self.state = ConnectionState.PROCESSING
            return request_data

        except socket.timeout:
            raise TimeoutError(f"Request read timed out after {self.timeout}s")

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _check_size(self):
        if self.max_request_size is not None and len(self._buffer) > self.max_request_size:
            raise ValueError(f"Request too large: {len(self._buffer)} bytes")

    def _parse_content_length(self, headers: bytes) -> int:
        """
        Find Content-Length in the raw header block.

        Framing only: a missing, malformed or negative value reads as 0 and
        the request parser rejects the bad header itself.
        """
        header_str = headers.decode("latin-1").lower()
        for line in header_str.split("\r\n")[1:]:
            if line.startswith("content-length:"):
                try:
                    return max(0, int(line.split(":", 1)[1].strip()))
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Write the full response with sendall().

        Returns:
            True if sent, False if the peer went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, drain_timeout: Optional[float] = DRAIN_TIMEOUT):
        """
        Close the connection.

        Sends FIN with shutdown(SHUT_WR), drains for at most drain_timeout
        seconds so unread request bytes do not turn the close into a reset,
        then releases the socket. Pass drain_timeout=None to skip the drain.
        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.half_close()
        if drain_timeout:
            self._drain(drain_timeout)
        self.release()

    def half_close(self):
        """Signal end of response with FIN while still accepting input."""
        self.state = ConnectionState.CLOSING
        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # peer already gone

    def _drain(self, timeout: float):
        deadline = time.monotonic() + timeout
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(1024):
                    break
        except OSError:
            pass  # socket.timeout is an OSError

    def release(self):
        """Close the underlying socket without further I/O."""
        if self.state == ConnectionState.CLOSED:
            return
        self.socket.close()
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.1f}ms")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
