"""
Blob loading under size and content-type limits.

Content is read from GitPython's object database stream. The probe prefix
decides between binary and text; text is read up to a fixed cap and
silently truncated beyond it.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from git import Repo
from gitdb.exc import BadName, BadObject
from gitdb.util import hex_to_bin

from commit_ingest.config import Settings, settings as default_settings
from commit_ingest.entities import ContentType, FileSide
from commit_ingest.services.pipeline_exceptions import ObjectAccessError

logger = logging.getLogger(__name__)

READ_CHUNK = 64 * 1024


def is_binary(probe: bytes) -> bool:
    """A NUL byte inside the probe window marks the content as binary."""
    return b"\x00" in probe


def _read_up_to(stream, limit: int) -> bytes:
    chunks = []
    remaining = limit
    while remaining > 0:
        chunk = stream.read(min(remaining, READ_CHUNK))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _release(stream) -> None:
    """
    Drain whatever is left of the stream.

    Object streams share the handle's persistent ``cat-file --batch`` pipe,
    which only accepts the next request once the current object is consumed.
    """
    while stream.read(READ_CHUNK):
        pass


class BlobLoader:
    """Loads blob contents from a repository handle."""

    def __init__(self, repo: Repo, settings: Optional[Settings] = None):
        settings = settings or default_settings
        self.repo = repo
        self.binary_probe = settings.BINARY_PROBE_BYTES
        self.max_text = settings.MAX_TEXT_BYTES

    @contextmanager
    def open_stream(self, object_id: str) -> Iterator:
        """Open an object stream that is released on every exit path."""
        try:
            stream = self.repo.odb.stream(hex_to_bin(object_id))
        except (BadName, BadObject, ValueError) as e:
            raise ObjectAccessError(
                object_id, f"Cannot open object {object_id} ({type(e).__name__})"
            ) from e
        try:
            yield stream
        except BaseException:
            # Keep the original error if the pipe is broken as well
            try:
                _release(stream)
            except (OSError, ValueError) as e:
                logger.warning(f"Could not release stream of {object_id}: {e!r}")
            raise
        try:
            _release(stream)
        except (OSError, ValueError) as e:
            raise ObjectAccessError(object_id, f"Cannot read object {object_id}: {e}") from e

    def load(self, object_id: str, path: str) -> Tuple[FileSide, bytes]:
        """
        Load one blob.

        Returns the side metadata (id, path, size, content type) and the
        payload: empty for binary content, at most ``MAX_TEXT_BYTES`` for text.
        """
        with self.open_stream(object_id) as stream:
            size = stream.size
            try:
                probe = _read_up_to(stream, min(size, self.binary_probe))
                if is_binary(probe):
                    logger.debug(f"{path} ({object_id[:8]}) is binary, {size} bytes")
                    return FileSide(id=object_id, path=path, size=size, type=ContentType.BINARY), b""

                rest = _read_up_to(stream, max(0, min(size, self.max_text) - len(probe)))
            except (OSError, ValueError) as e:
                raise ObjectAccessError(object_id, f"Cannot read object {object_id}: {e}") from e

        if size > self.max_text:
            logger.debug(f"{path} truncated to {self.max_text} of {size} bytes")
        return FileSide(id=object_id, path=path, size=size, type=ContentType.TEXT), probe + rest
