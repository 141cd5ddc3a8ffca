"""Streaming mbox reader.

``MboxReader`` pulls one message at a time from a forward-only binary
stream::

    reader = MboxReader(fh, Dialect.QUOTED)
    while not reader.at_eof:
        buf = io.BytesIO()
        envelope = reader.next_message(buf)
        ...

or simply ``for envelope, content in reader: ...``.

Each call scans lines until the *next* envelope line, so that line has
already been consumed when the current message ends; it is kept as
look-ahead for the following call.  A shared line loop drives every dialect;
a per-dialect handler may take over a line (de-quoting it, or copying a
counted body straight from the stream) or decline it, in which case the line
is copied unchanged.

``Content-Length`` headers of the two Content-Length dialects are framing
and are consumed by the reader; ``MboxWriter`` regenerates them.
"""

import io
import logging
import re
from typing import BinaryIO, Callable, Iterator

from mboxkit.dialect import Dialect, MboxError

logger = logging.getLogger(__name__)

COPY_CHUNK = 64 * 1024

_QUOTED_FROM_RE = re.compile(rb"^>+From ")
_CONTENT_LENGTH_RE = re.compile(rb"^content-length:(.*)$", re.IGNORECASE)


class MalformedContentLength(MboxError):
    """A ``Content-Length`` header value is not a non-negative integer."""


class MailboxEOF(MboxError, EOFError):
    """``next_message`` was called after the last message was delivered."""


def decode_envelope(text: bytes) -> str:
    return text.decode("utf-8", errors="surrogateescape")


def _strip_eol(raw: bytes) -> bytes:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw


def parse_content_length(text: bytes) -> int | None:
    """Return the declared length if *text* is a Content-Length header line, else None.

    Raises ``MalformedContentLength`` for a header whose value is not a
    non-negative integer.
    """
    m = _CONTENT_LENGTH_RE.match(text)
    if not m:
        return None
    value = m.group(1).strip()
    try:
        size = int(value)
    except ValueError:
        raise MalformedContentLength(
            f"Failed to parse Content-Length: {value.decode('ascii', 'replace')!r}"
        ) from None
    if size < 0:
        raise MalformedContentLength(f"Negative Content-Length: {size}")
    return size


class _Message:
    """Per-call state: the output sink plus header/body tracking.

    With *hold_blank*, a blank line is held back until another line follows
    it, so the blank separator the writer puts after each message is not
    delivered as part of the message.
    """

    def __init__(self, sink: BinaryIO, hold_blank: bool):
        self.sink = sink
        self.in_header = True
        self.content_length = 0
        self._hold_blank = hold_blank
        self._held = b""

    def emit(self, data: bytes, blank: bool = False) -> None:
        if self._held:
            self.sink.write(self._held)
            self._held = b""
        if blank and self._hold_blank:
            self._held = data
            return
        self.sink.write(data)


class MboxReader:
    """Read messages of one *dialect* from *stream* (a binary file object)."""

    def __init__(self, stream: BinaryIO, dialect: Dialect | str = Dialect.ORIGINAL):
        self.dialect = Dialect.parse(dialect)
        self.at_eof = False
        self._stream = stream
        self._pending: bytes | None = None
        handlers: dict[Dialect, Callable[[bytes, bytes, _Message], bool]] = {
            Dialect.ORIGINAL: self._read_original,
            Dialect.QUOTED: self._read_quoted,
            Dialect.CONTENT_LENGTH_QUOTED: self._read_content_length_quoted,
            Dialect.CONTENT_LENGTH_UNQUOTED: self._read_content_length_unquoted,
        }
        self._handler = handlers[self.dialect]

    def next_message(self, sink: BinaryIO) -> str:
        """Write the next message's headers and body to *sink*; return its envelope line.

        The returned line has no terminator.  It is ``""`` only if the
        stream held data before any envelope line (or no data at all).
        After the last message ``at_eof`` is True, and a further call raises
        ``MailboxEOF``.  A body cut short by the end of the stream also just
        ends the mailbox.
        """
        if self.at_eof:
            raise MailboxEOF("No more messages in mailbox")

        msg = _Message(sink, hold_blank=not self.dialect.uses_content_length)
        envelope, self._pending = self._pending, None

        while True:
            raw = self._stream.readline()
            if not raw:
                self.at_eof = True
                break
            text = _strip_eol(raw)

            if text.startswith(b"From "):
                if envelope is not None:
                    self._pending = text
                    break
                envelope = text
                continue

            handled = self._handler(raw, text, msg)
            if not text:
                msg.in_header = False
            if self.at_eof:
                break
            if not handled:
                msg.emit(raw, blank=not text)

        return decode_envelope(envelope) if envelope is not None else ""

    def __iter__(self) -> Iterator[tuple[str, bytes]]:
        while not self.at_eof:
            buf = io.BytesIO()
            envelope = self.next_message(buf)
            content = buf.getvalue()
            if envelope or content:
                yield envelope, content

    # ------------------------------------------------------------------
    # Dialect handlers: return True if the line was consumed.
    # ------------------------------------------------------------------

    def _read_original(self, raw: bytes, text: bytes, msg: _Message) -> bool:
        return False

    def _read_quoted(self, raw: bytes, text: bytes, msg: _Message) -> bool:
        if _QUOTED_FROM_RE.match(text):
            msg.emit(raw[1:])
            return True
        return False

    def _read_content_length_quoted(self, raw: bytes, text: bytes, msg: _Message) -> bool:
        if self._read_content_length_header(raw, text, msg):
            if not msg.in_header:
                self._copy_counted_lines(msg)
            return True
        return self._read_quoted(raw, text, msg)

    def _read_content_length_unquoted(self, raw: bytes, text: bytes, msg: _Message) -> bool:
        if self._read_content_length_header(raw, text, msg):
            if not msg.in_header:
                self._copy_exact(msg)
            return True
        return False

    def _read_content_length_header(self, raw: bytes, text: bytes, msg: _Message) -> bool:
        """Consume the Content-Length header and the header/body blank line."""
        if not msg.in_header:
            return False
        size = parse_content_length(text)
        if size is not None:
            msg.content_length = size
            return True
        if not text:
            msg.emit(raw)
            msg.in_header = False
            return True
        return False

    def _copy_counted_lines(self, msg: _Message) -> None:
        remaining = msg.content_length
        while remaining > 0:
            raw = self._stream.readline()
            if not raw:
                logger.debug("Mailbox ended with %d body bytes outstanding", remaining)
                self.at_eof = True
                return
            remaining -= len(raw)
            msg.emit(raw[1:] if _QUOTED_FROM_RE.match(raw) else raw)

    def _copy_exact(self, msg: _Message) -> None:
        remaining = msg.content_length
        while remaining > 0:
            chunk = self._stream.read(min(remaining, COPY_CHUNK))
            if not chunk:
                logger.debug("Mailbox ended with %d body bytes outstanding", remaining)
                self.at_eof = True
                return
            remaining -= len(chunk)
            msg.emit(chunk)
