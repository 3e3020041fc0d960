"""YAML configuration loading and convenience provisioning API."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqsc_provisioner.config.loader import ConfigError, load_config
from sqsc_provisioner.config.registry import default_registry
from sqsc_provisioner.config.schema import Config, DockerDatabase, SqscSettings
from sqsc_provisioner.core.runner import SqscRunner
from sqsc_provisioner.engine.engine import Provisioner, ProgressCallback

if TYPE_CHECKING:
    from pathlib import Path

    from sqsc_provisioner.core.runner import EchoCallback, Executor
    from sqsc_provisioner.engine.readiness import RetryPolicy
    from sqsc_provisioner.engine.types import RunResult

__all__ = [
    "Config",
    "ConfigError",
    "DockerDatabase",
    "SqscSettings",
    "apply",
    "has_services",
    "load",
    "load_config",
    "provisioner_from_config",
    "runner_from_config",
]


def load(path: Path | str, *, project_name: str | None = None) -> Config:
    """Load a YAML configuration file."""
    return load_config(path, project_name=project_name)


def runner_from_config(
    config: Config,
    *,
    dry_run: bool | None = None,
    executor: Executor | None = None,
) -> SqscRunner:
    """Build a ``SqscRunner`` from the ``cli:`` settings of *config*."""
    settings = config.cli
    kwargs = {
        "binary": settings.binary,
        "token": settings.token,
        "endpoint": settings.endpoint,
        "required_version": settings.required_version,
        "dry_run": settings.dry_run if dry_run is None else dry_run,
    }
    if executor is not None:
        return SqscRunner.from_executor(executor, **kwargs)
    return SqscRunner.model_validate(kwargs)


def provisioner_from_config(
    config: Config,
    *,
    runner: SqscRunner | None = None,
    policy: RetryPolicy | None = None,
    echo: EchoCallback | None = None,
) -> Provisioner:
    """Build a ``Provisioner`` from a ``Config`` instance."""
    runner = runner or runner_from_config(config)
    if echo is not None:
        runner.on_echo(echo)
    return Provisioner(runner=runner, registry=default_registry(), policy=policy)


def apply(
    config: Config,
    *,
    runner: SqscRunner | None = None,
    policy: RetryPolicy | None = None,
    progress: ProgressCallback | None = None,
    echo: EchoCallback | None = None,
    wait: bool | None = None,
) -> RunResult:
    """Check preconditions and converge every configured resource.

    Then waits for service containers unless *wait* (default:
    ``config.wait_for_services``) is false.
    """
    provisioner = provisioner_from_config(config, runner=runner, policy=policy, echo=echo)
    provisioner.context.runner.preflight()
    result = provisioner.run(config.resources, progress=progress)
    if wait is None:
        wait = config.wait_for_services
    if wait and has_services(config):
        provisioner.wait_for_services()
    return result


def has_services(config: Config) -> bool:
    return bool(config.services) or config.docker_database is not None
