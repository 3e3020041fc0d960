"""Run output rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import typer

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqsc_provisioner.engine.types import EnsureResult


class _OutcomeStyle(NamedTuple):
    color: str
    symbol: str
    done_verb: str
    dry_run_verb: str


OUTCOME_STYLES: dict[str, _OutcomeStyle] = {
    "created": _OutcomeStyle("green", "+", "Created", "Would be created"),
    "updated": _OutcomeStyle("yellow", "~", "Updated", "Would be updated"),
    "unchanged": _OutcomeStyle("bright_black", " ", "Up-to-date", "Up-to-date"),
}

_SUMMARY_COLORS = {"created": "green", "updated": "yellow", "unchanged": "bright_black"}


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


def _format_value(value: object) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if value is None:
        return "null"
    return str(value)


def format_result(result: EnsureResult, *, color: bool = True) -> str:
    """Render ``  ~ sqsc_service.web: Updated (memory: "256" -> "512")``."""
    style = styler(color)
    s = OUTCOME_STYLES[result.outcome.value]
    verb = s.dry_run_verb if result.dry_run else s.done_verb
    line = f"  {s.symbol} {result.address}: {verb}"
    if result.diff:
        changes = ", ".join(
            f"{k}: {_format_value(d['from'])} -> {_format_value(d['to'])}"
            for k, d in result.diff.items()
        )
        line += f" ({changes})"
    return style(line, fg=s.color)


def format_run_summary(
    summary: dict[str, int], *, color: bool = True, dry_run: bool = False
) -> str:
    """Render ``Provisioning complete! Resources: 2 created, 0 updated, 5 unchanged.``"""
    style = styler(color)
    title = "Dry run complete!" if dry_run else "Provisioning complete!"
    header = style(title, fg="green", bold=True)
    parts = []
    for outcome, fg in _SUMMARY_COLORS.items():
        n = summary.get(outcome, 0)
        text = f"{n} {outcome}"
        parts.append(style(text, fg=fg) if n and color else text)
    return f"{header} Resources: {', '.join(parts)}."


def format_urls(urls: list[str], *, color: bool = True) -> str:
    if not urls:
        return "No load balancer URL available yet."
    style = styler(color)
    return "\n".join(style(url, fg="cyan") for url in urls)


_SECRET_MARKERS = ("PASSWORD", "SECRET", "TOKEN")


def format_env(env: dict[str, str], *, color: bool = True) -> str:
    """Project environment as ``KEY=value`` lines; secret-looking values are masked."""
    style = styler(color)
    lines = [style("Environment:", bold=True)]
    for key in sorted(env):
        value = "********" if any(m in key.upper() for m in _SECRET_MARKERS) else env[key]
        lines.append(f"  {key}={value}")
    return "\n".join(lines)
