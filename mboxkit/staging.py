"""Staging storage for Content-Length mailboxes.

A Content-Length header has to be written before the body it measures, and
the body's length is only known once it has been quoted.  ``MboxWriter``
therefore stages each body in a temporary unit, keyed by the envelope
address, while it counts bytes:

    writer = staging.open_writer(key)   # stage the body
    reader = staging.open_reader(key)   # copy it out after the header
    staging.remove(key)                 # release the unit

Any object with these three methods can be passed to ``MboxWriter``.
``FileStaging`` keeps units in temporary files (the default);
``MemoryStaging`` keeps them in memory and is handy for tests and small
messages.
"""

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Protocol

from mboxkit.dialect import MboxError

logger = logging.getLogger(__name__)


class StagingError(MboxError):
    """A staging operation failed.  ``operation`` and ``key`` say which."""

    def __init__(self, operation: str, key: str, message: str):
        super().__init__(f"staging {operation} failed for '{key}': {message}")
        self.operation = operation
        self.key = key


class Staging(Protocol):
    def open_writer(self, key: str) -> BinaryIO: ...

    def open_reader(self, key: str) -> BinaryIO: ...

    def remove(self, key: str) -> None: ...


def _file_prefix(key: str) -> str:
    """Temp-file prefix for *key*: letters and digits kept, everything else ``_``."""
    return "".join(c if c.isalnum() else "_" for c in key) + "_"


class FileStaging:
    """Stage bodies in temporary files under *base* (default: the system temp dir)."""

    def __init__(self, base: Path | str | None = None):
        self.base = Path(base) if base else Path(tempfile.gettempdir())
        self._names: dict[str, Path] = {}

    def open_writer(self, key: str) -> BinaryIO:
        try:
            self.base.mkdir(parents=True, exist_ok=True)
            fh = tempfile.NamedTemporaryFile(
                mode="wb", dir=self.base, prefix=_file_prefix(key), suffix=".txt", delete=False,
            )
        except OSError as exc:
            raise StagingError("open_writer", key, str(exc)) from exc
        self._names[key] = Path(fh.name)
        logger.debug("Staging %s in %s", key, fh.name)
        return fh

    def open_reader(self, key: str) -> BinaryIO:
        path = self._names.get(key)
        if path is None:
            raise StagingError("open_reader", key, "open_writer was not called first")
        try:
            return open(path, "rb")
        except OSError as exc:
            raise StagingError("open_reader", key, str(exc)) from exc

    def remove(self, key: str) -> None:
        path = self._names.pop(key, None)
        if path is None:
            raise StagingError("remove", key, "open_writer was not called first")
        try:
            os.remove(path)
        except OSError as exc:
            raise StagingError("remove", key, str(exc)) from exc
        logger.debug("Removed staging file %s", path)


class _StagedBuffer(io.BytesIO):
    """BytesIO whose contents survive ``close()``."""

    staged: bytes | None = None

    def close(self) -> None:
        if not self.closed:
            self.staged = self.getvalue()
        super().close()


class MemoryStaging:
    """Stage bodies in memory.  ``removed`` records every released key."""

    def __init__(self):
        self._buffers: dict[str, _StagedBuffer] = {}
        self.removed: list[str] = []

    def open_writer(self, key: str) -> BinaryIO:
        buf = _StagedBuffer()
        self._buffers[key] = buf
        return buf

    def open_reader(self, key: str) -> BinaryIO:
        buf = self._buffers.get(key)
        if buf is None:
            raise StagingError("open_reader", key, "open_writer was not called first")
        if buf.staged is None:
            return io.BytesIO(buf.getvalue())
        return io.BytesIO(buf.staged)

    def remove(self, key: str) -> None:
        if self._buffers.pop(key, None) is None:
            raise StagingError("remove", key, "open_writer was not called first")
        self.removed.append(key)

    def __contains__(self, key: str) -> bool:
        return key in self._buffers
