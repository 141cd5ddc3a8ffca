"""Centralized path computations for mboxkit.

Settings live under a single home directory (``~/.mboxkit`` by default).
The ``MBOXKIT_HOME`` environment variable overrides the default for testing.
"""

import os
from pathlib import Path

_DEFAULT_HOME = Path.home() / ".mboxkit"


def home(override: Path | None = None) -> Path:
    """Return the mboxkit home directory.

    Resolution order:
    1. *override* argument (used in tests)
    2. ``MBOXKIT_HOME`` environment variable
    3. ``~/.mboxkit``
    """
    if override is not None:
        return override
    env = os.environ.get("MBOXKIT_HOME")
    if env:
        return Path(env)
    return _DEFAULT_HOME


def config_path(mk_home: Path) -> Path:
    return mk_home / "config.yaml"
