"""mboxkit CLI entry point using Click.

Commands:
    mboxkit detect FILE...                          - print the dialect of each mailbox
    mboxkit list FILE [--type T]                    - list envelope lines
    mboxkit split FILE OUTDIR [--type T]            - write each message to OUTDIR/NNNN.eml
    mboxkit convert SRC DST --to T [--from T]       - re-encode a mailbox in another dialect
    mboxkit config set staging-dir <path>           - directory for Content-Length staging files
    mboxkit config set default-dialect <type>       - dialect to assume instead of detecting
    mboxkit config show                             - show the current configuration

Dialects are named mboxo, mboxrd, mboxcl and mboxcl2.
"""

import logging
from pathlib import Path

import click

from mboxkit import fmt
from mboxkit.dialect import Dialect, MboxError
from mboxkit.paths import home as _home

_DIALECT_NAMES = [d.value for d in Dialect]


def _get_home(ctx: click.Context) -> Path:
    """Resolve mboxkit home from context or default."""
    return _home(ctx.obj.get("home_override") if ctx.obj else None)


def _to_dialect(ctx: click.Context, param: click.Parameter, value: str | None) -> Dialect | None:
    return Dialect.parse(value) if value else None


_type_option = click.option(
    "--type", "dialect", type=click.Choice(_DIALECT_NAMES, case_sensitive=False),
    callback=_to_dialect, default=None,
    help="Mailbox dialect (default: configured default-dialect, else detected).",
)


def _resolve_dialect(ctx: click.Context, fh, dialect: Dialect | None) -> Dialect:
    from mboxkit.config import get_default_dialect
    from mboxkit.detect import detect_dialect

    if dialect is not None:
        return dialect
    configured = get_default_dialect(_get_home(ctx))
    if configured is not None:
        return configured
    return detect_dialect(fh)


@click.group()
@click.option(
    "--home", "home_override", type=click.Path(path_type=Path), default=None,
    envvar="MBOXKIT_HOME",
    help="Override mboxkit home directory (default: ~/.mboxkit).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(fmt.get_version(), prog_name="mboxkit")
@click.pass_context
def main(ctx: click.Context, home_override: Path | None, verbose: bool) -> None:
    """mboxkit - work with mbox mailboxes in any of the four dialects."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["home_override"] = home_override


# ──────────────────────────────────────────────────────────────
# mboxkit detect / list / split / convert
# ──────────────────────────────────────────────────────────────

@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def detect(files: tuple[Path, ...]) -> None:
    """Print the detected dialect of each mailbox."""
    from mboxkit.detect import detect_dialect

    failed = False
    for path in files:
        try:
            with open(path, "rb") as fh:
                dialect = detect_dialect(fh)
        except (MboxError, OSError) as exc:
            fmt.error(f"{path}: {exc}")
            failed = True
            continue
        click.echo(f"{path}: {dialect}")
    if failed:
        raise SystemExit(1)


@main.command("list")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@_type_option
@click.pass_context
def list_messages(ctx: click.Context, file: Path, dialect: Dialect | None) -> None:
    """List the envelope line of every message."""
    from mboxkit.mailbox import iter_messages

    count = 0
    try:
        with open(file, "rb") as fh:
            resolved = _resolve_dialect(ctx, fh, dialect)
            for msg in iter_messages(fh, resolved):
                count += 1
                click.echo(fmt.message_row(count, msg.envelope, len(msg.content)))
    except (MboxError, OSError, ValueError) as exc:
        fmt.error(str(exc))
        raise SystemExit(1)
    if not count:
        fmt.dim("(no messages)")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("outdir", type=click.Path(file_okay=False, path_type=Path))
@_type_option
@click.pass_context
def split(ctx: click.Context, file: Path, outdir: Path, dialect: Dialect | None) -> None:
    """Write each message of FILE to OUTDIR/NNNN.eml."""
    from mboxkit.mailbox import iter_messages

    outdir.mkdir(parents=True, exist_ok=True)
    count = 0
    try:
        with open(file, "rb") as fh:
            resolved = _resolve_dialect(ctx, fh, dialect)
            for msg in iter_messages(fh, resolved):
                count += 1
                (outdir / f"{count:04d}.eml").write_bytes(msg.content)
    except (MboxError, OSError, ValueError) as exc:
        fmt.error(str(exc))
        raise SystemExit(1)
    fmt.success(f"Wrote {fmt.count(count)} to {outdir}")


@main.command()
@click.argument("src", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("dst", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--to", "to_dialect", required=True, type=click.Choice(_DIALECT_NAMES, case_sensitive=False),
    callback=_to_dialect, help="Dialect to write.",
)
@click.option(
    "--from", "from_dialect", type=click.Choice(_DIALECT_NAMES, case_sensitive=False),
    callback=_to_dialect, default=None, help="Dialect of SRC (default: detected).",
)
@click.pass_context
def convert(
    ctx: click.Context,
    src: Path,
    dst: Path,
    to_dialect: Dialect,
    from_dialect: Dialect | None,
) -> None:
    """Re-encode mailbox SRC as DST in another dialect."""
    from mboxkit.mailbox import convert as _convert, default_staging

    if src.resolve() == dst.resolve():
        fmt.error("SRC and DST must be different files")
        raise SystemExit(1)
    try:
        with open(src, "rb") as fin, open(dst, "wb") as fout:
            resolved = _resolve_dialect(ctx, fin, from_dialect)
            count = _convert(fin, fout, to_dialect, resolved, default_staging(_get_home(ctx)))
    except (MboxError, OSError, ValueError) as exc:
        fmt.error(str(exc))
        raise SystemExit(1)
    fmt.success(f"Converted {fmt.count(count)} from {resolved} to {to_dialect}")


# ──────────────────────────────────────────────────────────────
# mboxkit config set / show
# ──────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.group("set")
def config_set() -> None:
    """Set a configuration value."""
    pass


@config_set.command("staging-dir")
@click.argument("path", type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def config_set_staging_dir(ctx: click.Context, path: Path) -> None:
    """Set the directory used for Content-Length staging files."""
    from mboxkit.config import set_staging_dir

    set_staging_dir(_get_home(ctx), path.resolve())
    click.echo(f"Staging dir set to: {path.resolve()}")


@config_set.command("default-dialect")
@click.argument("name", type=click.Choice(_DIALECT_NAMES, case_sensitive=False))
@click.pass_context
def config_set_default_dialect(ctx: click.Context, name: str) -> None:
    """Set the dialect assumed when --type is not given."""
    from mboxkit.config import set_default_dialect

    set_default_dialect(_get_home(ctx), name)
    click.echo(f"Default dialect set to: {Dialect.parse(name)}")


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the current configuration."""
    from mboxkit.config import get_default_dialect, get_staging_dir

    mk_home = _get_home(ctx)
    try:
        dialect = get_default_dialect(mk_home)
    except ValueError as exc:
        fmt.error(str(exc))
        raise SystemExit(1)
    click.echo(f"Staging dir:     {get_staging_dir(mk_home)}")
    click.echo(f"Default dialect: {dialect or '(detect)'}")
