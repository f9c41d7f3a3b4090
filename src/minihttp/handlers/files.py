"""
=============================================================================
FILES HANDLER
=============================================================================

Reads and writes Stored Files through the /files/:filename route.

=============================================================================
FLOW
=============================================================================

    GET /files/a.txt                     POST /files/a.txt  (body B)
        │                                    │
        ├── validate name ──✗──► 400         ├── validate name ──✗──► 400
        ├── read <root>/a.txt                ├── write B to <root>/a.txt
        │       └──✗──► 404                  │       └──✗──► 500
        ▼                                    ▼
    200 OK                               201 Created
    Content-Type: application/           Content-Type: application/
                  octet-stream                         octet-stream
    Content-Length: <file size>          Content-Length: <len(B)>
    <file bytes>                         <B echoed back>

A missing or unreadable file is the client's problem (404); a failed
write is the server's problem (500).

=============================================================================
"""

import logging

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse, ResponseBuilder, HTTPStatus,
    bad_request, not_found, internal_error,
)
from ..storage import FileStore, InvalidFilenameError


logger = logging.getLogger(__name__)


class FilesHandler:
    """
    Handler pair for reading (GET) and storing (POST) files.

    Usage:
        files = FilesHandler(FileStore("/tmp/data"))
        router.get("/files/:filename")(files.get)
        router.post("/files/:filename")(files.post)
    """

    def __init__(self, store: FileStore):
        self.store = store

    def get(self, request: HTTPRequest) -> HTTPResponse:
        """Serve a stored file as application/octet-stream."""
        filename = request.path_params.get("filename", "")

        try:
            content = self.store.read(filename)
        except InvalidFilenameError as e:
            logger.warning(f"Rejected filename on read: {e}")
            return bad_request()
        except OSError as e:
            logger.info(f"File not readable: {filename!r} ({e.strerror or e})")
            return not_found()

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .octets(content)
            .header("Content-Length", str(len(content)))
            .build())

    def post(self, request: HTTPRequest) -> HTTPResponse:
        """Store the request body and echo it back with 201 Created."""
        filename = request.path_params.get("filename", "")

        try:
            written = self.store.write(filename, request.body)
        except InvalidFilenameError as e:
            logger.warning(f"Rejected filename on write: {e}")
            return bad_request()
        except OSError as e:
            logger.error(f"Failed to store {filename!r}: {e}")
            return internal_error()

        return (ResponseBuilder()
            .status(HTTPStatus.CREATED)
            .octets(request.body)
            .header("Content-Length", str(written))
            .build())
