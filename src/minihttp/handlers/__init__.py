"""
=============================================================================
REQUEST HANDLERS
=============================================================================

The five route handlers of the server:

    basic.py
        handle_root          GET  /                 200, empty
        handle_echo          GET  /echo/:message    200, text (gzip optional)
        handle_user_agent    GET  /user-agent       200, User-Agent value
        handle_not_found     (fallback)             404, empty

    files.py
        FilesHandler.get     GET  /files/:filename  200 + bytes, or 404
        FilesHandler.post    POST /files/:filename  201 + echoed body

Every handler has the same signature:

    def handler(request: HTTPRequest) -> HTTPResponse

=============================================================================
"""

from .basic import handle_root, handle_echo, handle_user_agent, handle_not_found
from .files import FilesHandler

__all__ = [
    "handle_root",
    "handle_echo",
    "handle_user_agent",
    "handle_not_found",
    "FilesHandler",
]
