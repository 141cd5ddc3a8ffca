"""Mbox dialects and the error type shared by the reader, writer and detector.

No single canonical mbox format exists.  Four historical variants disagree
on how a body line starting with ``From `` is kept from being mistaken for
the envelope line of the next message:

- ``mboxo``: the original format.  Writers prefix ``>`` to bare ``From ``
  lines; readers never undo it, so the quoting is lossy.
- ``mboxrd``: any line matching ``>*From `` gains one ``>`` on write and
  loses one on read, which makes the quoting reversible.
- ``mboxcl``: ``mboxrd`` quoting plus a ``Content-Length`` header giving
  the byte length of the (already quoted) body.
- ``mboxcl2``: ``Content-Length`` only; bodies are stored verbatim.

A reader or writer session works in exactly one dialect.
"""

import enum


class MboxError(Exception):
    """Base class for every error raised by mboxkit."""


class Dialect(enum.Enum):
    ORIGINAL = "mboxo"
    QUOTED = "mboxrd"
    CONTENT_LENGTH_QUOTED = "mboxcl"
    CONTENT_LENGTH_UNQUOTED = "mboxcl2"

    @classmethod
    def parse(cls, name: "str | Dialect") -> "Dialect":
        """Resolve a dialect from its mbox name (``mboxrd``) or member name (``quoted``).

        Raises ``ValueError`` for anything else.
        """
        if isinstance(name, cls):
            return name
        key = name.strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown mbox dialect '{name}' (expected one of: {valid})")

    @property
    def uses_content_length(self) -> bool:
        return self in (Dialect.CONTENT_LENGTH_QUOTED, Dialect.CONTENT_LENGTH_UNQUOTED)

    @property
    def quotes_from(self) -> bool:
        """True if ``>From `` lines are de-quoted when read back."""
        return self in (Dialect.QUOTED, Dialect.CONTENT_LENGTH_QUOTED)

    def __str__(self) -> str:
        return self.value
