"""
=============================================================================
MINIHTTP - A small threaded HTTP/1.1 server on raw sockets
=============================================================================

    GET  /                   200 OK, empty
    GET  /echo/:message      the message back (gzip when accepted)
    GET  /user-agent         the User-Agent header back
    GET  /files/:filename    a stored file
    POST /files/:filename    store the body, 201 Created
    *                        404 Not Found

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttp/
    ├── __main__.py          # CLI entry point (python -m minihttp)
    ├── app.py               # create_app(): server + route table
    ├── server.py            # HTTPServer orchestration
    ├── config.py            # ServerConfig dataclass
    ├── storage.py           # FileStore for /files
    ├── core/                # Sockets and threads
    ├── http/                # Parsing, responses, routing, status, gzip
    ├── middleware/          # Pipeline and access logging
    └── handlers/            # Route handlers

=============================================================================
QUICK START
=============================================================================

    from minihttp import ServerConfig, create_app

    app = create_app(ServerConfig(port=4221, directory="/tmp/files"))
    app.run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer
from .app import create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
