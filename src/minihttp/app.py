"""
Application factory: an HTTPServer with the standard route table.

    ANY   /                   handle_root
    GET   /files/:filename    FilesHandler.get
    POST  /files/:filename    FilesHandler.post
    GET   /echo/:message      handle_echo
    GET   /user-agent         handle_user_agent
    *     (no match)          handle_not_found
"""

from typing import Optional

from .config import ServerConfig
from .server import HTTPServer
from .storage import FileStore
from .handlers import (
    FilesHandler,
    handle_root,
    handle_echo,
    handle_user_agent,
    handle_not_found,
)
from .middleware import LoggingMiddleware


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Create the server with every route and the access log installed.

    Example:
        app = create_app(ServerConfig(port=0, directory="/tmp/files"))
        app.run()
    """
    server = HTTPServer(config)
    config = server.config

    server.use(LoggingMiddleware(log_format=config.log_format))
    server.router.fallback = handle_not_found

    files = FilesHandler(FileStore(config.directory))

    server.route("/", name="root")(handle_root)
    server.get("/files/:filename", name="files_get")(files.get)
    server.post("/files/:filename", name="files_post")(files.post)
    server.get("/echo/:message", name="echo")(handle_echo)
    server.get("/user-agent", name="user_agent")(handle_user_agent)

    return server
