"""Tests for mboxkit/mailbox.py: whole-mailbox iteration, writing and conversion."""

import io

import pytest

from mboxkit.config import set_staging_dir
from mboxkit.dialect import Dialect
from mboxkit.mailbox import (
    Message,
    convert,
    default_staging,
    iter_messages,
    open_mbox,
    write_messages,
)
from mboxkit.reader import MboxReader

MESSAGES = [
    Message(
        "From bubbles@bubbletown.com Mon Jul 04 19:23:45 2022",
        b"From: bubbles@bubbletown.com\nSubject: To interpretation\n\n"
        b"Be happy!\n>From all of us.\n",
    ),
    Message(
        "From mrspam@corporate.corp.com Tue Jul 05 08:00:00 2022",
        b"From: mrspam@corporate.corp.com\nSubject: Offer\n\n"
        b"You won't believe these prices!\n\n>>From 1 cent\n\n",
    ),
    Message(
        "From nobody@nowhere.man Wed Jul 06 12:30:00 2022",
        b"From: nobody@nowhere.man\nSubject: Mysterious Jenkins\n\n",
    ),
]


def _round_trip(dialect, messages, staging) -> list[Message]:
    buf = io.BytesIO()
    assert write_messages(buf, messages, dialect, staging) == len(messages)
    buf.seek(0)
    return list(iter_messages(buf, dialect))


class TestMessage:
    def test_headers_and_body(self):
        msg = Message("From a", b"Subject: x\nTo: y\n\nbody\n\nmore\n")
        assert msg.headers == b"Subject: x\nTo: y\n"
        assert msg.body == b"body\n\nmore\n"

    def test_no_body(self):
        msg = Message("From a", b"Subject: x\n")
        assert msg.headers == b"Subject: x\n"
        assert msg.body == b""

    def test_no_headers(self):
        msg = Message("From a", b"\nonly body\n")
        assert msg.headers == b""
        assert msg.body == b"only body\n"

    def test_parse_envelope(self):
        env = MESSAGES[0].parse_envelope()
        assert env.address == "bubbles@bubbletown.com"
        assert env.timestamp.year == 2022


class TestRoundTrip:
    @pytest.mark.parametrize("dialect", list(Dialect))
    def test_messages_survive(self, dialect, staging):
        assert _round_trip(dialect, MESSAGES, staging) == MESSAGES

    @pytest.mark.parametrize(
        "dialect", [Dialect.QUOTED, Dialect.CONTENT_LENGTH_QUOTED, Dialect.CONTENT_LENGTH_UNQUOTED]
    )
    def test_bare_from_lines_survive(self, dialect, staging):
        msg = Message("From a@b.c", b"Subject: x\n\nFrom here\nto there\nFrom there\n")
        assert _round_trip(dialect, [msg], staging) == [msg]

    def test_original_quoting_is_lossy(self, staging):
        msg = Message("From a@b.c", b"Subject: x\n\nFrom here\n")
        [back] = _round_trip(Dialect.ORIGINAL, [msg], staging)
        assert back.content == b"Subject: x\n\n>From here\n"

    def test_detected_dialect(self, staging):
        buf = io.BytesIO()
        write_messages(buf, MESSAGES, Dialect.QUOTED, staging)
        buf.seek(0)
        assert list(iter_messages(buf)) == MESSAGES


class TestConvert:
    @pytest.mark.parametrize(
        "source, target",
        [
            (Dialect.QUOTED, Dialect.CONTENT_LENGTH_UNQUOTED),
            (Dialect.CONTENT_LENGTH_UNQUOTED, Dialect.CONTENT_LENGTH_QUOTED),
            (Dialect.CONTENT_LENGTH_QUOTED, Dialect.QUOTED),
        ],
    )
    def test_convert(self, source, target, staging):
        src = io.BytesIO()
        write_messages(src, MESSAGES, source, staging)
        src.seek(0)
        dst = io.BytesIO()
        assert convert(src, dst, target, source, staging) == len(MESSAGES)
        dst.seek(0)
        assert list(iter_messages(dst, target)) == MESSAGES

    def test_detects_source(self, staging):
        src = io.BytesIO()
        write_messages(src, MESSAGES, Dialect.CONTENT_LENGTH_QUOTED, staging)
        src.seek(0)
        dst = io.BytesIO()
        assert convert(src, dst, "mboxrd", staging=staging) == len(MESSAGES)
        dst.seek(0)
        assert [content for _, content in MboxReader(dst, Dialect.QUOTED)] == [
            m.content for m in MESSAGES
        ]


class TestOpenMbox:
    def test_detects_and_iterates(self, tmp_path, staging):
        path = tmp_path / "box.mbox"
        with open(path, "wb") as fh:
            write_messages(fh, MESSAGES, Dialect.QUOTED, staging)
        with open_mbox(path) as (dialect, messages):
            assert dialect is Dialect.QUOTED
            assert list(messages) == MESSAGES

    def test_explicit_dialect(self, tmp_path, staging):
        path = tmp_path / "box.mbox"
        with open(path, "wb") as fh:
            write_messages(fh, MESSAGES, Dialect.CONTENT_LENGTH_UNQUOTED, staging)
        with open_mbox(path, "mboxcl2") as (dialect, messages):
            assert dialect is Dialect.CONTENT_LENGTH_UNQUOTED
            assert [m.envelope for m in messages] == [m.envelope for m in MESSAGES]


class TestDefaultStaging:
    def test_uses_configured_dir(self, mk_home, tmp_path):
        set_staging_dir(mk_home, tmp_path / "spool")
        assert default_staging(mk_home).base == tmp_path / "spool"

    def test_write_messages_without_staging(self, mk_home, tmp_path):
        set_staging_dir(mk_home, tmp_path / "spool")
        buf = io.BytesIO()
        write_messages(buf, MESSAGES, Dialect.CONTENT_LENGTH_QUOTED)
        assert list((tmp_path / "spool").iterdir()) == []
        buf.seek(0)
        assert list(iter_messages(buf, Dialect.CONTENT_LENGTH_QUOTED)) == MESSAGES
