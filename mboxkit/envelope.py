"""Envelope (``From_``) line codec.

Every message in an mbox starts with a line of the form::

    From <address> <weekday> <month> <day> <HH:MM:SS> <year> [extra]

e.g. ``From bubbles@bubbletown.com Mon Jul 04 14:23:45 2022``.  Parsing is
lenient: a line too short to hold a timestamp still yields its address, and
the timestamp is left as ``None`` (the zero value).
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime

from mboxkit.dialect import MboxError

logger = logging.getLogger(__name__)

# Documentation / strptime form of the timestamp.  Formatting and parsing are
# done by hand so that weekday and month names never depend on the locale.
TIME_FORMAT = "%a %b %d %H:%M:%S %Y"

ZERO_TIME = datetime(1, 1, 1)

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")


class EnvelopeError(MboxError):
    """Raised by ``parse_from(..., strict=True)`` when the timestamp is invalid.

    ``envelope`` holds what was parsed anyway: the address and the trailing
    text, with ``timestamp`` left as ``None``.
    """

    def __init__(self, message: str, envelope: "Envelope"):
        super().__init__(message)
        self.envelope = envelope


@dataclass
class Envelope:
    address: str
    timestamp: datetime | None = None
    extra: str = field(default="")

    def to_line(self) -> str:
        return build_from(self.address, self.timestamp, self.extra)

    @classmethod
    def from_line(cls, line: str, strict: bool = False) -> "Envelope":
        return parse_from(line, strict=strict)


def format_timestamp(ts: datetime | None) -> str:
    """Format *ts* as ``Mon Jul 04 14:23:45 2022``; ``None`` formats as the zero time."""
    if ts is None:
        ts = ZERO_TIME
    return (
        f"{_WEEKDAYS[ts.weekday()]} {_MONTHS[ts.month - 1]} {ts.day:02d} "
        f"{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d} {ts.year:04d}"
    )


def parse_timestamp(text: str) -> datetime:
    """Parse the five timestamp fields.  Raises ``ValueError`` on mismatch.

    The day may be zero- or space-padded (``Jul 04`` and ``Jul  4`` are both
    seen in the wild); the weekday name is checked but not cross-validated
    against the date.
    """
    parts = text.split()
    if len(parts) != 5:
        raise ValueError(f"expected 5 timestamp fields, got {len(parts)}: {text!r}")
    weekday, month, day, clock, year = parts
    if weekday not in _WEEKDAYS:
        raise ValueError(f"bad weekday {weekday!r}")
    if month not in _MONTHS:
        raise ValueError(f"bad month {month!r}")
    m = _CLOCK_RE.match(clock)
    if not m or not day.isdigit() or not year.isdigit():
        raise ValueError(f"bad timestamp {text!r}")
    hour, minute, second = (int(g) for g in m.groups())
    return datetime(int(year), _MONTHS.index(month) + 1, int(day), hour, minute, second)


def parse_from(line: str, strict: bool = False) -> Envelope:
    """Split an envelope line into address, timestamp and trailing text.

    A missing timestamp (fewer than five fields after the address) is not an
    error.  A timestamp that is present but malformed leaves ``timestamp`` as
    ``None``; with *strict* it raises ``EnvelopeError`` instead, whose
    ``envelope`` still carries the address and trailing text.
    """
    data = line.rstrip("\r\n")
    if data.startswith("From "):
        data = data[len("From "):]
    address, _, remainder = data.partition(" ")
    fields = remainder.split(None, 5)
    if len(fields) < 5:
        return Envelope(address=address)

    stamp = " ".join(fields[:5])
    extra = fields[5].strip() if len(fields) > 5 else ""
    try:
        timestamp = parse_timestamp(stamp)
    except ValueError as exc:
        partial = Envelope(address=address, extra=extra)
        if strict:
            raise EnvelopeError(f"Invalid envelope timestamp in {line!r}: {exc}", partial) from exc
        logger.debug("Envelope for %s has unparsable timestamp %r", address, stamp)
        return partial
    return Envelope(address=address, timestamp=timestamp, extra=extra)


def build_from(address: str, timestamp: datetime | None, extra: str = "") -> str:
    """Build an envelope line (without line terminator).

    The trailing separator is emitted even when *extra* is empty.
    """
    return f"From {address} {format_timestamp(timestamp)} {extra}"
