"""Configuration management for mboxkit.

Global config lives in ``~/.mboxkit/config.yaml``:

    staging_dir: /var/tmp/mboxkit     # where FileStaging keeps temp files
    default_dialect: mboxrd           # used when detection is skipped

Both keys are optional.
"""

import tempfile
from pathlib import Path

import yaml

from mboxkit.dialect import Dialect
from mboxkit.paths import config_path


def _read(mk_home: Path) -> dict:
    """Read config.yaml, returning empty dict if missing."""
    cp = config_path(mk_home)
    if cp.exists():
        return yaml.safe_load(cp.read_text()) or {}
    return {}


def _write(mk_home: Path, data: dict) -> None:
    """Write config.yaml (creates parent dirs if needed)."""
    cp = config_path(mk_home)
    cp.parent.mkdir(parents=True, exist_ok=True)
    cp.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))


def get_config(mk_home: Path) -> dict:
    """Return the whole config dict (empty if no config file)."""
    return _read(mk_home)


# --- Staging directory ---

def get_staging_dir(mk_home: Path) -> Path:
    """Return the staging directory, falling back to the system temp dir."""
    val = _read(mk_home).get("staging_dir")
    return Path(val) if val else Path(tempfile.gettempdir())


def set_staging_dir(mk_home: Path, path: Path) -> None:
    data = _read(mk_home)
    data["staging_dir"] = str(path)
    _write(mk_home, data)


# --- Default dialect ---

def get_default_dialect(mk_home: Path) -> Dialect | None:
    """Return the configured default dialect, or None if not set.

    Raises ``ValueError`` if the config holds an unknown dialect name.
    """
    val = _read(mk_home).get("default_dialect")
    return Dialect.parse(val) if val else None


def set_default_dialect(mk_home: Path, dialect: Dialect | str) -> None:
    data = _read(mk_home)
    data["default_dialect"] = Dialect.parse(dialect).value
    _write(mk_home, data)
