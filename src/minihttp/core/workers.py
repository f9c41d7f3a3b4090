"""
=============================================================================
CONNECTION WORKERS
=============================================================================

One thread per accepted connection, with a hard cap on how many may be
alive at once.

    acceptor ──► submit(process, conn) ──┬──► Thread "conn-1"  (running)
                                         ├──► Thread "conn-2"  (running)
                                         └──► False            (at cap)

Every connection gets its own thread immediately, so a slow client can
never sit in a queue behind another one. When max_workers threads are
already live, submit() refuses and the caller answers 503.

Rejected connections are handed to a ConnectionReaper, a single thread
that drains and closes them under a deadline so the acceptor never waits
on a rejected client.

=============================================================================
"""

import queue
import selectors
import threading
import time
import logging
from typing import Callable, List, Optional

from .connection import Connection, DRAIN_TIMEOUT


logger = logging.getLogger(__name__)


class ConnectionWorkers:
    """
    Thread-per-connection executor with a concurrency cap.

    Usage:
        workers = ConnectionWorkers(max_workers=256)

        if not workers.submit(process_connection, conn):
            reject(conn)

        workers.shutdown(wait=True, timeout=5.0)
    """

    def __init__(self, max_workers: int = 256, name_prefix: str = "conn"):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.max_workers = max_workers
        self.name_prefix = name_prefix

        self._threads: set = set()
        self._lock = threading.Lock()
        self._counter = 0
        self._shutdown = False

        self.tasks_completed = 0
        self.tasks_failed = 0
        self.tasks_rejected = 0

    def submit(self, func: Callable, *args, **kwargs) -> bool:
        """
        Run func(*args, **kwargs) on a fresh daemon thread.

        Returns:
            True if a thread was started. False if the cap is reached or
            the group is shutting down.
        """
        with self._lock:
            if self._shutdown or len(self._threads) >= self.max_workers:
                self.tasks_rejected += 1
                return False

            self._counter += 1
            thread = threading.Thread(
                target=self._run,
                args=(func, args, kwargs),
                name=f"{self.name_prefix}-{self._counter}",
                daemon=True,
            )
            self._threads.add(thread)

        thread.start()
        return True

    def _run(self, func: Callable, args: tuple, kwargs: dict):
        thread = threading.current_thread()
        start_time = time.time()
        try:
            func(*args, **kwargs)
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(f"{thread.name} failed after {elapsed:.3f}s: {e}")
            with self._lock:
                self.tasks_failed += 1
        else:
            with self._lock:
                self.tasks_completed += 1
        finally:
            with self._lock:
                self._threads.discard(thread)

    @property
    def active(self) -> int:
        """Number of live connection threads."""
        with self._lock:
            return len(self._threads)

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "active": len(self._threads),
                "max_workers": self.max_workers,
                "completed": self.tasks_completed,
                "failed": self.tasks_failed,
                "rejected": self.tasks_rejected,
            }

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Refuse new work and optionally join live threads.

        Args:
            wait: Join threads that are still running.
            timeout: Overall deadline for the join, in seconds. Threads
                     still alive afterwards are daemons and are abandoned.
        """
        with self._lock:
            self._shutdown = True
            threads = list(self._threads)

        if not wait or not threads:
            return

        logger.info(f"Waiting for {len(threads)} connection(s) to finish...")
        deadline = None if timeout is None else time.time() + timeout
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.time())
            thread.join(remaining)

        still_running = self.active
        if still_running:
            logger.warning(f"Shutdown timeout, abandoning {still_running} connection(s)")


class ConnectionReaper:
    """
    Finishes closing connections that were answered on the accept thread.

    The caller writes its response and calls add(). The reaper half-closes
    the socket, discards whatever the peer still sends, and releases it
    once the peer closes or linger seconds have passed, whichever is
    first. One thread watches every pending socket through a selector.

    Usage:
        reaper = ConnectionReaper()
        conn.send_response(error_response(503).to_bytes())
        reaper.add(conn)
        ...
        reaper.shutdown()
    """

    POLL_INTERVAL = 0.05

    def __init__(self, linger: float = DRAIN_TIMEOUT):
        self.linger = linger
        self._incoming: "queue.SimpleQueue[Connection]" = queue.SimpleQueue()
        self._selector = selectors.DefaultSelector()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    def add(self, conn: Connection):
        """Queue a connection for closing. Never blocks."""
        if self._stopped.is_set():
            conn.close(drain_timeout=None)
            return

        conn.half_close()
        self._incoming.put(conn)

        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._run, name="conn-reaper", daemon=True
                )
                self._thread.start()

    @property
    def pending(self) -> int:
        """Connections waiting to be released."""
        return len(self._selector.get_map()) + self._incoming.qsize()

    def _run(self):
        while not self._stopped.is_set():
            self._register_incoming()

            if not self._selector.get_map():
                try:
                    conn = self._incoming.get(timeout=self.POLL_INTERVAL)
                except queue.Empty:
                    continue
                self._register(conn)

            for key, _ in self._selector.select(timeout=self.POLL_INTERVAL):
                self._read(key.data[0])

            self._expire(time.monotonic())

        self._close_all()

    def _register_incoming(self):
        while True:
            try:
                conn = self._incoming.get_nowait()
            except queue.Empty:
                return
            self._register(conn)

    def _register(self, conn: Connection):
        try:
            conn.socket.setblocking(False)
            self._selector.register(
                conn.socket, selectors.EVENT_READ, (conn, time.monotonic() + self.linger)
            )
        except (OSError, ValueError) as e:
            logger.debug(f"[{conn.id}] Could not watch rejected connection: {e}")
            conn.release()

    def _read(self, conn: Connection):
        try:
            data = conn.socket.recv(4096)
        except BlockingIOError:
            return
        except OSError:
            data = b""

        if not data:
            self._release(conn)

    def _expire(self, now: float):
        expired: List[Connection] = [
            key.data[0]
            for key in self._selector.get_map().values()
            if key.data[1] <= now
        ]
        for conn in expired:
            self._release(conn)

    def _release(self, conn: Connection):
        self._selector.unregister(conn.socket)
        conn.release()

    def _close_all(self):
        self._register_incoming()
        for key in list(self._selector.get_map().values()):
            self._release(key.data[0])

    def shutdown(self, timeout: Optional[float] = None):
        """Stop the reaper and release every pending connection."""
        self._stopped.set()
        with self._lock:
            thread = self._thread
        if thread is not None:
            thread.join(timeout)
