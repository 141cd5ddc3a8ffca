"""Whole-mailbox helpers built on the streaming reader and writer.

Usage::

    from mboxkit.mailbox import open_mbox, convert

    with open_mbox("archive.mbox") as (dialect, messages):
        for msg in messages:
            print(msg.parse_envelope().address, len(msg.content))

    with open("archive.mbox", "rb") as src, open("out.mbox", "wb") as dst:
        convert(src, dst, "mboxcl2")
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator

from mboxkit.config import get_staging_dir
from mboxkit.detect import detect_dialect
from mboxkit.dialect import Dialect
from mboxkit.envelope import Envelope, parse_from
from mboxkit.paths import home as _home
from mboxkit.reader import MboxReader
from mboxkit.staging import FileStaging, Staging
from mboxkit.writer import MboxWriter

logger = logging.getLogger(__name__)


@dataclass
class Message:
    envelope: str
    content: bytes

    def parse_envelope(self, strict: bool = False) -> Envelope:
        return parse_from(self.envelope, strict=strict)

    @property
    def headers(self) -> bytes:
        """Raw header block (everything before the first blank line)."""
        head, _, _ = self._split()
        return head

    @property
    def body(self) -> bytes:
        _, sep, rest = self._split()
        return rest if sep else b""

    def _split(self) -> tuple[bytes, bytes, bytes]:
        if self.content.startswith(b"\n"):
            return b"", b"\n", self.content[1:]
        head, sep, rest = self.content.partition(b"\n\n")
        if sep:
            return head + b"\n", sep, rest
        return self.content, b"", b""


def default_staging(mk_home: Path | None = None) -> FileStaging:
    """File-backed staging in the configured staging directory."""
    return FileStaging(get_staging_dir(_home(mk_home)))


def iter_messages(stream: BinaryIO, dialect: Dialect | str | None = None) -> Iterator[Message]:
    """Yield every message in *stream*.

    With no *dialect* the stream is classified first, which needs a
    seekable stream.
    """
    if dialect is None:
        dialect = detect_dialect(stream)
    for envelope, content in MboxReader(stream, dialect):
        yield Message(envelope, content)


def write_messages(
    stream: BinaryIO,
    messages: Iterable[Message],
    dialect: Dialect | str,
    staging: Staging | None = None,
) -> int:
    """Write *messages* to *stream* in *dialect*.  Returns the number written."""
    writer = MboxWriter(stream, dialect, staging if staging is not None else default_staging())
    count = 0
    for msg in messages:
        writer.write_mail(msg.envelope, msg.content)
        count += 1
    return count


def convert(
    src: BinaryIO,
    dst: BinaryIO,
    to_dialect: Dialect | str,
    from_dialect: Dialect | str | None = None,
    staging: Staging | None = None,
) -> int:
    """Re-encode the mailbox in *src* as *to_dialect* into *dst*.

    The source dialect is detected when *from_dialect* is None.  Returns the
    number of messages converted.
    """
    if from_dialect is None:
        from_dialect = detect_dialect(src)
    count = write_messages(dst, iter_messages(src, from_dialect), to_dialect, staging)
    logger.debug("Converted %d messages from %s to %s", count, from_dialect, to_dialect)
    return count


@contextmanager
def open_mbox(path: Path | str, dialect: Dialect | str | None = None):
    """Open the mailbox at *path*; yield ``(dialect, message iterator)``."""
    with open(path, "rb") as fh:
        resolved = Dialect.parse(dialect) if dialect is not None else detect_dialect(fh)
        yield resolved, iter_messages(fh, resolved)
