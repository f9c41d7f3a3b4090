"""
Unit tests for Connection request framing.
"""

import socket
import threading
import time

import pytest

from minihttp.core.connection import Connection, ConnectionState


@pytest.fixture
def pair():
    """A connected (server, client) socket pair."""
    server_sock, client_sock = socket.socketpair()
    yield server_sock, client_sock
    client_sock.close()
    server_sock.close()


def make_conn(sock: socket.socket, **kwargs) -> Connection:
    return Connection(socket=sock, address=("127.0.0.1", 1234), **kwargs)


class TestReadRequest:
    """Tests for Connection.read_request."""

    def test_reads_headers_only(self, pair):
        server_sock, client_sock = pair
        client_sock.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        conn = make_conn(server_sock, timeout=2.0)
        assert conn.read_request() == b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
        assert conn.state == ConnectionState.PROCESSING

    def test_reads_body_in_chunks(self, pair):
        """Test a request split across several sends."""
        server_sock, client_sock = pair
        request = b"POST /files/a HTTP/1.1\r\nContent-Length: 10\r\n\r\n0123456789"

        def trickle():
            for i in range(0, len(request), 7):
                client_sock.sendall(request[i:i + 7])
                time.sleep(0.01)

        sender = threading.Thread(target=trickle)
        sender.start()
        conn = make_conn(server_sock, timeout=2.0)
        data = conn.read_request()
        sender.join()

        assert data == request

    def test_ignores_bytes_past_body(self, pair):
        server_sock, client_sock = pair
        client_sock.sendall(b"POST / HTTP/1.1\r\nContent-Length: 2\r\n\r\nabEXTRA")

        data = make_conn(server_sock, timeout=2.0).read_request()
        assert data.endswith(b"\r\n\r\nab")

    def test_peer_closed_before_request(self, pair):
        server_sock, client_sock = pair
        client_sock.close()

        assert make_conn(server_sock, timeout=2.0).read_request() is None

    def test_short_body_returns_what_arrived(self, pair):
        """Test that a body cut short by close is handed on for the parser to reject."""
        server_sock, client_sock = pair
        client_sock.sendall(b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")
        client_sock.shutdown(socket.SHUT_WR)

        data = make_conn(server_sock, timeout=2.0).read_request()
        assert data.endswith(b"\r\n\r\nabc")

    def test_timeout(self, pair):
        server_sock, client_sock = pair
        client_sock.sendall(b"GET / HTTP/1.1\r\n")

        with pytest.raises(TimeoutError):
            make_conn(server_sock, timeout=0.2).read_request()

    def test_max_request_size(self, pair):
        server_sock, client_sock = pair
        client_sock.sendall(b"GET / HTTP/1.1\r\nX-Pad: " + b"x" * 200 + b"\r\n\r\n")

        with pytest.raises(ValueError):
            make_conn(server_sock, timeout=2.0, max_request_size=64).read_request()

    @pytest.mark.parametrize("value", [b"abc", b"-4"])
    def test_bad_content_length_reads_no_body(self, pair, value):
        server_sock, client_sock = pair
        head = b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"
        client_sock.sendall(head)

        assert make_conn(server_sock, timeout=2.0).read_request() == head


class TestSendAndClose:
    """Tests for send_response and close."""

    def test_send_response(self, pair):
        server_sock, client_sock = pair
        conn = make_conn(server_sock, timeout=2.0)

        assert conn.send_response(b"HTTP/1.1 200 OK\r\n\r\n") is True
        assert client_sock.recv(100) == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_context_manager_closes(self, pair):
        server_sock, client_sock = pair

        with make_conn(server_sock, timeout=2.0) as conn:
            conn.send_response(b"done")

        assert conn.state == ConnectionState.CLOSED
        assert client_sock.recv(100) == b"done"
        assert client_sock.recv(100) == b""

    def test_close_twice(self, pair):
        server_sock, _ = pair
        conn = make_conn(server_sock, timeout=2.0)
        conn.close()
        conn.close()
        assert conn.state == ConnectionState.CLOSED

    def test_drain_is_bounded(self, pair):
        """Test that a peer that keeps sending cannot hold close() open."""
        server_sock, client_sock = pair
        stop = threading.Event()

        def chatter():
            try:
                while not stop.is_set():
                    client_sock.sendall(b"x")
                    time.sleep(0.05)
            except OSError:
                pass  # server side closed

        sender = threading.Thread(target=chatter)
        sender.start()
        conn = make_conn(server_sock, timeout=2.0)

        start = time.monotonic()
        conn.close(drain_timeout=0.3)
        elapsed = time.monotonic() - start
        stop.set()
        sender.join()

        assert conn.state == ConnectionState.CLOSED
        assert elapsed < 1.0

    def test_close_without_drain(self, pair):
        server_sock, client_sock = pair
        conn = make_conn(server_sock, timeout=2.0)

        start = time.monotonic()
        conn.close(drain_timeout=None)

        assert time.monotonic() - start < 0.2
        assert conn.state == ConnectionState.CLOSED
        assert client_sock.recv(100) == b""
