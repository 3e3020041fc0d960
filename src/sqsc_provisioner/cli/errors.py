"""Turn provisioning failures into one-line stderr reports."""

from __future__ import annotations

import typer


def _describe(exc: Exception) -> list[str]:
    from sqsc_provisioner.config.loader import ConfigError
    from sqsc_provisioner.core.errors import PreconditionError, RunCanceled, RunError

    if isinstance(exc, ConfigError):
        return [f"Configuration error: {exc}"]
    if isinstance(exc, RunCanceled):
        return ["Provisioning canceled."]
    if isinstance(exc, RunError):
        lines = [f"Provisioning failed: {exc}"]
        counts = [f"{n} {outcome}" for outcome, n in exc.result.summary().items() if n]
        if counts:
            lines.append(f"  Partial result: {', '.join(counts)}.")
        return lines
    if isinstance(exc, PreconditionError):
        return [f"Precondition failed: {exc}"]
    return [f"Error: {exc}"]


def handle_error(exc: Exception, *, color: bool = True) -> int:
    """Report *exc* on stderr without a traceback; the exit code is always 1."""
    for line in _describe(exc):
        typer.secho(line, fg=typer.colors.RED if color else None, err=True)
    return 1
