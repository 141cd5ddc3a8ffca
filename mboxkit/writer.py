"""Streaming mbox writer.

``MboxWriter.write_mail`` appends one message to the destination stream in
the session's dialect::

    writer = MboxWriter(fh, Dialect.CONTENT_LENGTH_QUOTED)
    writer.write_mail(Envelope("bubbles@bubbletown.com", ts), raw_message)

Original and Quoted messages are written in a single pass, followed by a
blank separator line.

The Content-Length dialects cannot be written in one pass: the header has
to declare the byte length of the body *after* quoting, and the destination
cannot be rewound to patch it in.  Header lines go straight to the
destination; the body is written to a staging unit (see
``mboxkit.staging``) keyed by the envelope address while its bytes are
counted; then ``Content-Length: N`` and the blank line are emitted and the
staged body is copied over.  The staging unit is closed and removed before
``write_mail`` returns, whether it succeeds or not.  Header lines written
before a staging failure are not rolled back.

The writer always terminates lines with ``\\n`` and never emits ``\\r``
of its own.
"""

import io
import logging
import re
import shutil
from typing import BinaryIO, Iterator

from mboxkit.dialect import Dialect
from mboxkit.envelope import Envelope, parse_from
from mboxkit.staging import FileStaging, Staging, StagingError

logger = logging.getLogger(__name__)

_ANY_QUOTED_FROM_RE = re.compile(rb"^>*From ")
_CONTENT_LENGTH_RE = re.compile(rb"^content-length:", re.IGNORECASE)


def _lines(mail: bytes | BinaryIO) -> Iterator[bytes]:
    """Yield the lines of *mail*, newline-terminating the last one if needed."""
    src = io.BytesIO(mail) if isinstance(mail, (bytes, bytearray)) else mail
    for line in src:
        if not line.endswith(b"\n"):
            line += b"\n"
        yield line


def _envelope_line(envelope: Envelope | str) -> tuple[bytes, str]:
    """Return ``(envelope line bytes, staging key)`` for *envelope*.

    A string may be a whole envelope line (as returned by
    ``MboxReader.next_message``) or just the text after ``From ``.
    """
    if isinstance(envelope, Envelope):
        line = envelope.to_line()
        key = envelope.address
    else:
        line = envelope.rstrip("\r\n")
        if not line.startswith("From "):
            line = f"From {line}"
        key = parse_from(line).address
    return line.encode("utf-8", errors="surrogateescape") + b"\n", key


def _is_body_boundary(line: bytes, allow_inner_space: bool) -> bool:
    """True for the blank line ending a header block.

    The unquoted variant does not accept a line holding spaces or tabs.
    """
    if len(line) > 2 or line.strip():
        return False
    if allow_inner_space:
        return True
    return b" " not in line and b"\t" not in line


class MboxWriter:
    """Write messages of one *dialect* to *stream* (a binary file object).

    *staging* is only used by the Content-Length dialects; it defaults to a
    ``FileStaging`` in the system temp directory.
    """

    def __init__(
        self,
        stream: BinaryIO,
        dialect: Dialect | str = Dialect.ORIGINAL,
        staging: Staging | None = None,
    ):
        self.dialect = Dialect.parse(dialect)
        self.staging = staging if staging is not None else FileStaging()
        self._out = stream

    def write_mail(self, envelope: Envelope | str, mail: bytes | BinaryIO) -> None:
        """Append one message (*mail* holds its headers and body)."""
        line, key = _envelope_line(envelope)
        if self.dialect is Dialect.ORIGINAL:
            self._write_single_pass(line, mail, self._quote_original)
        elif self.dialect is Dialect.QUOTED:
            self._write_single_pass(line, mail, self._quote_any)
        elif self.dialect is Dialect.CONTENT_LENGTH_QUOTED:
            self._write_content_length(line, key, mail, quote=True)
        else:
            self._write_content_length(line, key, mail, quote=False)

    @staticmethod
    def _quote_original(line: bytes) -> bytes:
        return b">" + line if line.startswith(b"From ") else line

    @staticmethod
    def _quote_any(line: bytes) -> bytes:
        return b">" + line if _ANY_QUOTED_FROM_RE.match(line) else line

    def _write_single_pass(self, envelope_line: bytes, mail, quote) -> None:
        self._out.write(envelope_line)
        for line in _lines(mail):
            self._out.write(quote(line))
        # Appended even after a blank last line; the reader strips exactly one.
        self._out.write(b"\n")

    # ------------------------------------------------------------------
    # Content-Length dialects
    # ------------------------------------------------------------------

    def _write_content_length(self, envelope_line: bytes, key: str, mail, quote: bool) -> None:
        tmp = None
        try:
            tmp = self._acquire("open_writer", key)
            self._out.write(envelope_line)
            count = self._stage_body(key, mail, tmp, quote)
            tmp.close()
            self._out.write(b"Content-Length: %d\n\n" % count)
            staged = self._acquire("open_reader", key)
            with staged:
                shutil.copyfileobj(staged, self._out)
        except BaseException:
            self._release(key, tmp, quiet=True)
            raise
        self._release(key, tmp)

    def _stage_body(self, key: str, mail, tmp: BinaryIO, quote: bool) -> int:
        """Copy headers to the destination and the body to *tmp*; return the body length."""
        in_header = True
        count = 0
        for line in _lines(mail):
            if quote:
                line = self._quote_any(line)
            if in_header:
                if _is_body_boundary(line, allow_inner_space=quote):
                    in_header = False
                elif not _CONTENT_LENGTH_RE.match(line):
                    # A Content-Length already present is replaced by ours.
                    self._out.write(line)
                continue
            try:
                tmp.write(line)
            except OSError as exc:
                raise StagingError("write", key, str(exc)) from exc
            count += len(line)
        return count

    def _acquire(self, operation: str, key: str) -> BinaryIO:
        try:
            return getattr(self.staging, operation)(key)
        except StagingError:
            raise
        except Exception as exc:
            raise StagingError(operation, key, str(exc)) from exc

    def _release(self, key: str, tmp: BinaryIO | None, quiet: bool = False) -> None:
        """Close and remove the staging unit for *key*.

        With *quiet*, failures are logged instead of raised so they do not
        mask the error already propagating.
        """
        try:
            try:
                if tmp is not None:
                    tmp.close()
            finally:
                self.staging.remove(key)
        except Exception as exc:
            if not quiet:
                if isinstance(exc, StagingError):
                    raise
                raise StagingError("remove", key, str(exc)) from exc
            logger.debug("Releasing staging unit for %s failed: %s", key, exc)
