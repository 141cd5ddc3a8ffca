"""
mboxkit: streaming reader, writer and dialect detector for mbox mailboxes.
"""

from mboxkit.detect import DetectionError, detect_dialect
from mboxkit.dialect import Dialect, MboxError
from mboxkit.envelope import Envelope, EnvelopeError, build_from, parse_from
from mboxkit.reader import MailboxEOF, MalformedContentLength, MboxReader
from mboxkit.staging import FileStaging, MemoryStaging, Staging, StagingError
from mboxkit.writer import MboxWriter

__all__ = [
    "Dialect",
    "MboxError",
    "detect_dialect",
    "DetectionError",
    "Envelope",
    "EnvelopeError",
    "parse_from",
    "build_from",
    "MboxReader",
    "MailboxEOF",
    "MalformedContentLength",
    "MboxWriter",
    "Staging",
    "FileStaging",
    "MemoryStaging",
    "StagingError",
]
