"""Best-effort mbox dialect detection.

``detect_dialect`` scans a seekable stream once and classifies it from three
pieces of evidence:

- a ``Content-Length:`` header inside a message header block;
- a body line of the form ``>From `` (any number of ``>``);
- the running byte count of the body, compared with the declared
  ``Content-Length`` so the end of a body is found even without a blank
  separator line.

A mailbox whose messages have no ambiguous body lines and no
``Content-Length`` header is indistinguishable between dialects and is
reported as ``Dialect.ORIGINAL``.  A mailbox with ``Content-Length`` headers
but no telling body line is reported as ``Dialect.CONTENT_LENGTH_QUOTED``.

The stream is rewound to its start before returning.
"""

import logging
import re
from typing import BinaryIO

from mboxkit.dialect import Dialect, MboxError

logger = logging.getLogger(__name__)

SNIFF_SIZE = 1024

_QUOTED_FROM_RE = re.compile(rb"^>+From ")
_CONTENT_LENGTH_RE = re.compile(rb"^Content-Length:")


class DetectionError(MboxError):
    """Raised when a stream cannot be classified (e.g. it is not text)."""


def line_feed_type(stream: BinaryIO) -> bool:
    """Return True if lines end in ``\\r\\n``, False if they end in ``\\n``.

    Only the first ``SNIFF_SIZE`` bytes are inspected.  The stream is left
    at an undefined position.
    """
    stream.seek(0)
    head = stream.read(SNIFF_SIZE)
    for byte in head:
        if byte == 0x0D:
            return True
        if byte == 0x0A:
            return False
    raise DetectionError(f"No line terminator in the first {SNIFF_SIZE} bytes; not an mbox?")


def _line_text(raw: bytes) -> bytes:
    """Strip the ``\\n`` and a single ``\\r`` preceding it."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw


def _content_length(line: bytes) -> int | None:
    _, _, value = line.partition(b":")
    try:
        return int(value.strip())
    except ValueError:
        return None


def detect_dialect(stream: BinaryIO) -> Dialect:
    """Classify the mailbox held by *stream*.

    Raises ``DetectionError`` for streams with no line terminator in their
    first KiB.  Seek failures propagate.
    """
    crlf = line_feed_type(stream)
    stream.seek(0)
    try:
        dialect = _scan(stream, crlf)
    finally:
        stream.seek(0)
    logger.debug("Detected mbox dialect %s (crlf=%s)", dialect, crlf)
    return dialect


def _scan(stream: BinaryIO, crlf: bool) -> Dialect:
    in_header = False
    has_quoted = False
    has_cl = False
    count = 0
    cl_len = 0
    finished_first = False

    for raw in iter(stream.readline, b""):
        text = _line_text(raw)
        # Matching happens on trimmed text; byte counting on the raw line.
        line = text.strip()

        if in_header and not line:
            in_header = False
            count = 0
            finished_first = True
            continue
        if not in_header and not has_cl and line.startswith(b"From "):
            in_header = True
        if not in_header and has_cl:
            count += len(text) + 1
            if crlf:
                count += 1

        if in_header and _CONTENT_LENGTH_RE.match(line):
            has_cl = True
            declared = _content_length(line)
            if declared is None:
                # Unparsable value: keep the previous length, skip the checks below.
                continue
            cl_len = declared

        if not in_header and _QUOTED_FROM_RE.match(line):
            has_quoted = True

        if has_quoted and has_cl:
            return Dialect.CONTENT_LENGTH_QUOTED
        if has_cl and not in_header and line.startswith(b"From "):
            return Dialect.CONTENT_LENGTH_UNQUOTED
        if not in_header and count == cl_len:
            # End of a counted body: whatever follows belongs to the next
            # message's header block.
            count = 0
            finished_first = True
            in_header = True
        if finished_first and not has_cl and has_quoted:
            return Dialect.QUOTED

    if has_cl and not has_quoted:
        # Could be either Content-Length dialect; prefer the quoted one.
        return Dialect.CONTENT_LENGTH_QUOTED
    return Dialect.ORIGINAL
