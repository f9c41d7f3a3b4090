"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           HTTPServer                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   SocketServer ──accept──► ConnectionWorkers ──thread──► Connection │
    │                                                             │       │
    │                     RequestParser ◄──── read_request() ◄────┘       │
    │                           │                                         │
    │                           ▼                                         │
    │           MiddlewarePipeline ──► Router ──► handler                 │
    │                                                │                    │
    │                         send_response() ◄──────┘                    │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. SocketServer accepts the TCP connection
    2. ConnectionWorkers starts a thread for it (or 503 at capacity,
       after which ConnectionReaper closes it off the accept thread)
    3. Connection reads one framed request      (timeout → 408, size → 413)
    4. RequestParser builds an HTTPRequest      (malformed → 400/405/505)
    5. Middleware and Router produce a response (handler raised → 500)
    6. Response bytes are sent and the connection is closed

A failure at any step ends that one connection. The acceptor and every
other connection carry on.

=============================================================================
"""

import logging
from typing import Optional, Callable, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionWorkers, ConnectionReaper
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, Router,
    error_response, internal_error,
)
from .middleware import MiddlewarePipeline, Middleware


logger = logging.getLogger(__name__)


# Upper bound on how long shutdown waits for in-flight connections.
SHUTDOWN_TIMEOUT = 10.0


class HTTPServer:
    """
    Threaded HTTP/1.1 server, one request per connection.

    Usage:
        server = HTTPServer(ServerConfig(port=4221))

        @server.get("/echo/:message")
        def echo(request):
            return ok(request.path_params["message"], "text/plain")

        server.use(LoggingMiddleware())
        server.run()  # blocks until SIGINT/SIGTERM or shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._workers = ConnectionWorkers(max_workers=self.config.max_workers)
        self._reaper = ConnectionReaper()
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self._router = Router()
        self._middleware = MiddlewarePipeline()

        # middleware.wrap(router.handle), built when the server starts
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    # =========================================================================
    # CONFIGURATION METHODS
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """
        Add middleware. The first one added is the outermost.

        Returns:
            Self for method chaining.
        """
        self._middleware.add(middleware)
        self._handler = None
        return self

    @property
    def router(self) -> Router:
        return self._router

    def route(self, path: str, method: Optional[str] = None, **kwargs):
        """Register a route handler (any method when method is None)."""
        return self._router.route(path, method, **kwargs)

    def get(self, path: str, **kwargs):
        """Register a GET route."""
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        """Register a POST route."""
        return self._router.post(path, **kwargs)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port), real once the server is listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener is bound. Returns False on timeout."""
        return self._socket_server.ready.wait(timeout)

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port (0 picks a free one).

        Raises:
            OSError: The address could not be bound.
        """
        if host is not None:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._running = True
        self._setup_logging()
        self._build_handler()

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        self._print_startup_banner()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def _build_handler(self) -> Callable[[HTTPRequest], HTTPResponse]:
        self._handler = self._middleware.wrap(self._router.handle)
        return self._handler

    def _print_startup_banner(self):
        host, port = self.config.host, self.config.port
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"║  minihttp on http://{host}:{port}".ljust(63) + "║")
        print(f"║  Files: {self.config.directory}".ljust(63) + "║")
        print(f"║  Max connections: {self.config.max_workers}".ljust(63) + "║")
        print("║  Press Ctrl+C to stop".ljust(63) + "║")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()
        self._router.print_routes()

    def _setup_logging(self):
        level = self.config.log_level_value
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("minihttp").setLevel(level)

    def _shutdown(self):
        """Stop accepting, then wait (bounded) for in-flight connections."""
        logger.info("Shutting down server...")
        self._running = False
        self._socket_server.shutdown()
        self._workers.shutdown(wait=True, timeout=SHUTDOWN_TIMEOUT)
        self._reaper.shutdown(timeout=1.0)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one parsed request through middleware and router.

        Exposed so the application can be exercised without sockets.
        """
        handler = self._handler or self._build_handler()
        return handler(request)

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread: hand the connection to a worker."""
        if not self._workers.submit(self._process_connection, conn):
            logger.warning(f"[{conn.id}] At {self.config.max_workers} connections, rejecting")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE)
            self._reaper.add(conn)

    def _process_connection(self, conn: Connection):
        """Serve exactly one request on conn (runs on a worker thread)."""
        with conn:
            try:
                raw_request = conn.read_request()
            except TimeoutError:
                logger.info(f"[{conn.id}] Timed out reading request from {conn.client_ip}")
                self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT)
                return
            except ValueError as e:
                logger.warning(f"[{conn.id}] {e}")
                self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE)
                return

            if raw_request is None:
                logger.debug(f"[{conn.id}] Client closed before sending a request")
                return

            try:
                request = self._parser.parse(raw_request, conn.address)
            except HTTPParseError as e:
                logger.warning(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
                self._send_error(conn, e.status_code)
                return

            try:
                response = self.handle(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                response = internal_error()

            conn.send_response(response.to_bytes(self.config.server_name))

    def _send_error(self, conn: Connection, status: int):
        """Send a bare status-line response for failures outside the handlers."""
        response = error_response(status)
        conn.send_response(response.to_bytes(self.config.server_name))
