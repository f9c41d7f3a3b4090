"""
Networking core.

    socket_server.py   Listening socket and accept loop
    connection.py      Per-client request framing and close sequence
    workers.py         Thread-per-connection executor with a cap, and the
                       reaper that closes rejected connections
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .workers import ConnectionReaper, ConnectionWorkers

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ConnectionWorkers",
    "ConnectionReaper",
]
