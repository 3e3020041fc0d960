"""Typer application: global options and logging setup."""

from __future__ import annotations

import logging
import os
import sys

import typer

from sqsc_provisioner import __version__

app = typer.Typer(
    name="sqsc-provisioner",
    help="Provision SquareScale projects from a YAML description.",
    no_args_is_help=True,
    add_completion=False,
)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
_LEVEL_NAMES = ("CRITICAL", "DEBUG", "ERROR", "INFO", "WARNING")
_VERBOSITY = {1: logging.INFO, 2: logging.DEBUG}


def _requested_level(verbose: int) -> int | None:
    """``SQSC_LOG`` wins over ``-v``; ``None`` leaves logging untouched."""
    name = os.environ.get("SQSC_LOG", "").strip().upper()
    if not name:
        return _VERBOSITY.get(min(verbose, 2))
    if name not in _LEVEL_NAMES:
        sys.stderr.write(
            f"WARNING: invalid SQSC_LOG level '{name}', expected one of "
            f"{', '.join(_LEVEL_NAMES)}; defaulting to INFO\n"
        )
        return logging.INFO
    return logging.getLevelName(name)


def _configure_logging(verbose: int) -> None:
    level = _requested_level(verbose)
    if level is None:
        return
    # Third-party loggers stay at WARNING; only ours follows the flag.
    logging.basicConfig(
        level=logging.WARNING,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("sqsc_provisioner").setLevel(level)


def _print_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"sqsc-provisioner {__version__}")
    raise typer.Exit


@app.callback()
def main(
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Log more (-v info, -vv debug). SQSC_LOG overrides.",
    ),
    show_version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Print the version and exit.",
        callback=_print_version,
        is_eager=True,
    ),
) -> None:
    """Idempotent provisioning of SquareScale projects through the sqsc CLI."""
    del show_version
    _configure_logging(verbose)


# Commands attach themselves to ``app`` on import.
from sqsc_provisioner.cli import commands as _commands  # noqa: E402, F401
