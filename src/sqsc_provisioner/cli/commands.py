"""CLI command implementations."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Literal

import typer

from sqsc_provisioner.cli import app
from sqsc_provisioner.cli.errors import handle_error

if TYPE_CHECKING:
    from sqsc_provisioner.config.schema import Config
    from sqsc_provisioner.engine.engine import Provisioner
    from sqsc_provisioner.engine.types import EnsureResult, RunResult

ConfigPath = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to the configuration file."),
]

ProjectName = Annotated[
    str | None,
    typer.Argument(help="Project name (overrides project.name from the configuration)."),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]

DEFAULT_CONFIG = Path("sqsc-provisioner.yaml")


def _use_color(no_color: bool) -> bool:
    """Determine whether to use color output."""
    return not (no_color or os.environ.get("NO_COLOR"))


def _provisioner(cfg: Config, *, dry_run: bool | None = None) -> Provisioner:
    from sqsc_provisioner.config import provisioner_from_config, runner_from_config

    runner = runner_from_config(cfg, dry_run=dry_run)
    return provisioner_from_config(cfg, runner=runner)


def _apply_with_progress(
    provisioner: Provisioner, cfg: Config, *, color: bool, wait: bool
) -> RunResult:
    """Run with a Rich progress bar, per-resource lines and dry-run echoes."""
    from rich.console import Console
    from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
    from rich.text import Text

    from sqsc_provisioner.cli.formatting import format_result, styler
    from sqsc_provisioner.config import has_services

    console = Console(no_color=not color, highlight=False)
    resources = cfg.resources
    style = styler(color)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Provisioning", total=len(resources))

        def on_echo(line: str) -> None:
            progress.console.print(Text.from_ansi(style(f"    $ {line}", fg="cyan")))

        def on_progress(
            address: str, event: Literal["start", "done"], result: EnsureResult | None
        ) -> None:
            if event == "start":
                progress.update(task, description=f"{address}: Checking...")
            elif event == "done" and result is not None:
                progress.console.print(Text.from_ansi(format_result(result, color=color)))
                progress.advance(task)

        provisioner.context.runner.on_echo(on_echo)
        provisioner.context.runner.preflight()
        result = provisioner.run(resources, progress=on_progress)

        if wait and has_services(cfg):
            progress.update(task, description="Waiting for containers...")
            provisioner.wait_for_services()

    return result


@app.command(name="apply")
def apply_cmd(
    project_name: ProjectName = None,
    config: ConfigPath = DEFAULT_CONFIG,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print mutating sqsc calls instead of running them."),
    ] = False,
    wait: Annotated[
        bool | None,
        typer.Option(
            "--wait/--no-wait",
            help="Wait for service containers to run (default: wait_for_services).",
        ),
    ] = None,
    no_color: NoColor = False,
) -> None:
    """Converge the project to the configuration, then print its URLs and environment."""
    from sqsc_provisioner.cli.formatting import format_env, format_run_summary, format_urls
    from sqsc_provisioner.config import load

    color = _use_color(no_color)
    try:
        cfg = load(config, project_name=project_name)
        provisioner = _provisioner(cfg, dry_run=True if dry_run else None)
        should_wait = cfg.wait_for_services if wait is None else wait
        result = _apply_with_progress(provisioner, cfg, color=color, wait=should_wait)
        urls = provisioner.load_balancer_urls() if cfg.network_rules or cfg.load_balancer else []
        env = provisioner.environment()
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    is_dry_run = provisioner.context.dry_run
    typer.echo()
    typer.echo(format_run_summary(result.summary(), color=color, dry_run=is_dry_run))
    if urls:
        typer.echo()
        typer.echo(format_urls(urls, color=color))
    if env:
        typer.echo()
        typer.echo(format_env(env, color=color))


@app.command()
def wait(
    project_name: ProjectName = None,
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Wait until the project schedules containers and every service runs."""
    from sqsc_provisioner.cli.formatting import styler
    from sqsc_provisioner.config import load

    color = _use_color(no_color)
    try:
        cfg = load(config, project_name=project_name)
        provisioner = _provisioner(cfg)
        provisioner.context.runner.preflight()
        provisioner.attach(cfg.project)
        provisioner.wait_until_schedulable()
        services = provisioner.wait_for_services()
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)(f"All containers ready ({len(services)} services).", fg="green"))


@app.command()
def urls(
    project_name: ProjectName = None,
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Print the load balancer URLs of the project."""
    from sqsc_provisioner.cli.formatting import format_urls
    from sqsc_provisioner.config import load

    color = _use_color(no_color)
    try:
        cfg = load(config, project_name=project_name)
        provisioner = _provisioner(cfg)
        provisioner.context.runner.preflight()
        provisioner.attach(cfg.project)
        found = provisioner.load_balancer_urls()
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_urls(found, color=color))


@app.command()
def validate(
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Validate the configuration file without calling sqsc."""
    from sqsc_provisioner.cli.formatting import styler
    from sqsc_provisioner.config import load
    from sqsc_provisioner.config.registry import default_registry

    color = _use_color(no_color)
    try:
        cfg = load(config)
        registry = default_registry()
        for r in cfg.resources:
            registry.handler_for(r)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    count = len(cfg.resources)
    typer.echo(styler(color)(f"Configuration is valid ({count} resources).", fg="green"))
