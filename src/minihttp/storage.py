"""
=============================================================================
STORED FILES
=============================================================================

A flat directory of byte blobs addressed by filename:

    GET  /files/notes.txt   →  read  <root>/notes.txt
    POST /files/notes.txt   →  write <root>/notes.txt

=============================================================================
FILENAME VALIDATION
=============================================================================

The filename comes straight from the URL, so it is validated before it
touches the filesystem:

    "notes.txt"        ✓
    ""                 ✗  empty
    "." / ".."         ✗  directory references
    "a/b", "a\\b"      ✗  separators (no subdirectories)
    "a\\x00b"          ✗  NUL byte
    symlink escaping   ✗  resolved path must stay under root

Violations raise InvalidFilenameError, which the handler turns into a
400 Bad Request.

=============================================================================
CONCURRENCY
=============================================================================

Each filename has its own lock. A read and a write of the SAME name are
serialized, so a reader sees either the old content or the new content,
never a half-written file. Different names never contend. Concurrent
writers are last-writer-wins.

=============================================================================
"""

import logging
import os
import threading
from pathlib import Path
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Union


logger = logging.getLogger(__name__)


class InvalidFilenameError(ValueError):
    """Raised when a requested filename is unsafe or malformed."""


class FileStore:
    """
    Thread-safe store of raw byte files under a single root directory.

    Usage:
        store = FileStore("/tmp/data")
        store.write("a.txt", b"hello")
        store.read("a.txt")      # b"hello"
        store.read("missing")    # FileNotFoundError
    """

    # Owner read/write, group/other read
    FILE_MODE = 0o644

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()
        # filename -> [lock, number of holders and waiters]
        self._locks: Dict[str, List[Any]] = {}
        self._locks_guard = threading.Lock()

    def resolve(self, filename: str) -> Path:
        """
        Validate a filename and resolve it to a path under the root.

        Raises:
            InvalidFilenameError: If the name is unsafe.
        """
        if not filename or filename in (".", ".."):
            raise InvalidFilenameError(f"Invalid filename: {filename!r}")

        if "/" in filename or "\\" in filename or "\x00" in filename:
            raise InvalidFilenameError(f"Invalid filename: {filename!r}")

        if os.path.isabs(filename):
            raise InvalidFilenameError(f"Absolute filename: {filename!r}")

        path = (self.root / filename).resolve()
        try:
            path.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {filename!r}")
            raise InvalidFilenameError(f"Filename escapes storage root: {filename!r}")

        return path

    @contextmanager
    def _locked(self, filename: str) -> Iterator[None]:
        """
        Hold the per-filename lock for the duration of the block.

        Entries are reference counted and dropped when the last holder
        leaves, so the map only ever contains names in active use.
        """
        with self._locks_guard:
            entry = self._locks.get(filename)
            if entry is None:
                entry = self._locks[filename] = [threading.Lock(), 0]
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[filename]

    def read(self, filename: str) -> bytes:
        """
        Read a stored file fully into memory.

        Raises:
            InvalidFilenameError: If the name is unsafe.
            OSError: If the file is missing, a directory, or unreadable.
        """
        path = self.resolve(filename)
        with self._locked(filename):
            return path.read_bytes()

    def write(self, filename: str, content: bytes) -> int:
        """
        Create or truncate a stored file with the given content.

        The storage root is created on first use if it does not exist.

        Returns:
            Number of bytes written.

        Raises:
            InvalidFilenameError: If the name is unsafe.
            OSError: If the file cannot be written.
        """
        path = self.resolve(filename)
        with self._locked(filename):
            self.root.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.FILE_MODE)
            with os.fdopen(fd, "wb") as f:
                f.write(content)

        logger.debug(f"Stored {len(content)} bytes at {path}")
        return len(content)
