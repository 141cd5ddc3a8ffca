"""Tests for mboxkit/config.py and mboxkit/paths.py."""

import tempfile
from pathlib import Path

import pytest
import yaml

from mboxkit.config import (
    get_config,
    get_default_dialect,
    get_staging_dir,
    set_default_dialect,
    set_staging_dir,
)
from mboxkit.dialect import Dialect
from mboxkit.paths import config_path, home


class TestPaths:
    def test_override_wins(self, mk_home, tmp_path):
        assert home(tmp_path / "other") == tmp_path / "other"

    def test_env_var(self, mk_home):
        assert home() == mk_home

    def test_default(self, monkeypatch):
        monkeypatch.delenv("MBOXKIT_HOME", raising=False)
        assert home() == Path.home() / ".mboxkit"

    def test_config_path(self, tmp_path):
        assert config_path(tmp_path) == tmp_path / "config.yaml"


class TestConfig:
    def test_empty_when_missing(self, mk_home):
        assert get_config(mk_home) == {}
        assert get_default_dialect(mk_home) is None
        assert get_staging_dir(mk_home) == Path(tempfile.gettempdir())

    def test_staging_dir(self, mk_home, tmp_path):
        set_staging_dir(mk_home, tmp_path / "staging")
        assert get_staging_dir(mk_home) == tmp_path / "staging"

    def test_default_dialect(self, mk_home):
        set_default_dialect(mk_home, "MBOXRD")
        assert get_default_dialect(mk_home) is Dialect.QUOTED
        assert yaml.safe_load(config_path(mk_home).read_text()) == {"default_dialect": "mboxrd"}

    def test_keys_preserved_across_writes(self, mk_home, tmp_path):
        set_staging_dir(mk_home, tmp_path)
        set_default_dialect(mk_home, Dialect.CONTENT_LENGTH_UNQUOTED)
        assert get_config(mk_home) == {
            "staging_dir": str(tmp_path),
            "default_dialect": "mboxcl2",
        }

    def test_creates_home(self, tmp_path):
        mk_home = tmp_path / "not" / "yet"
        set_default_dialect(mk_home, "mboxo")
        assert config_path(mk_home).is_file()

    def test_unknown_dialect_in_file(self, mk_home):
        config_path(mk_home).write_text("default_dialect: babyl\n")
        with pytest.raises(ValueError):
            get_default_dialect(mk_home)

    def test_empty_file(self, mk_home):
        config_path(mk_home).write_text("")
        assert get_config(mk_home) == {}
