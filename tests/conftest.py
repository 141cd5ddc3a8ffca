"""Shared test fixtures for mboxkit tests."""

import os

import pytest

from mboxkit.staging import MemoryStaging


class BrokenStaging(MemoryStaging):
    """MemoryStaging that fails on demand and records every remove() call."""

    def __init__(self, break_writer=False, break_reader=False, break_write=False, break_remove=False):
        super().__init__()
        self.break_writer = break_writer
        self.break_reader = break_reader
        self.break_write = break_write
        self.break_remove = break_remove
        self.remove_calls: list[str] = []

    def open_writer(self, key):
        if self.break_writer:
            raise OSError("no space left on device")
        buf = super().open_writer(key)
        if self.break_write:
            def _fail(data):
                raise OSError("write failed")
            buf.write = _fail
        return buf

    def open_reader(self, key):
        if self.break_reader:
            raise OSError("staging file vanished")
        return super().open_reader(key)

    def remove(self, key):
        self.remove_calls.append(key)
        if self.break_remove:
            raise OSError("permission denied")
        super().remove(key)


@pytest.fixture
def mk_home(tmp_path):
    """Isolated mboxkit home; MBOXKIT_HOME points at it for the test."""
    home = tmp_path / "mk"
    home.mkdir()
    old_env = os.environ.get("MBOXKIT_HOME")
    os.environ["MBOXKIT_HOME"] = str(home)
    yield home
    if old_env is None:
        os.environ.pop("MBOXKIT_HOME", None)
    else:
        os.environ["MBOXKIT_HOME"] = old_env


@pytest.fixture
def staging():
    return MemoryStaging()


@pytest.fixture
def broken_staging():
    """Factory: ``broken_staging(break_reader=True)``."""
    return BrokenStaging
