"""Terminal output for the mboxkit CLI, styled with click.style.

Status lines go to stdout, errors to stderr.
"""

import click


def success(msg: str) -> None:
    click.echo(click.style(" [*] ", fg="green") + msg)


def error(msg: str) -> None:
    """Red error prefix on stderr."""
    click.echo(click.style(" [x] ", fg="red") + msg, err=True)


def dim(msg: str) -> None:
    click.echo(click.style(msg, dim=True))


def count(n: int, noun: str = "message") -> str:
    """``1 message`` / ``3 messages``."""
    return f"{n} {noun}" if n == 1 else f"{n} {noun}s"


def message_row(index: int, envelope: str, size: int) -> str:
    """One row of ``mboxkit list``: index, envelope line, dimmed content size."""
    return f"{index:5d}  {envelope}  " + click.style(f"({size} bytes)", dim=True)


def get_version() -> str:
    """Get the mboxkit version from package metadata."""
    try:
        from importlib.metadata import version
        return version("mboxkit")
    except Exception:
        return "dev"
