"""Readiness polling for projects and service containers."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from sqsc_provisioner.core.decoder import (
    ProjectStatus,
    ServiceRow,
    decode_project_status,
    decode_services,
)
from sqsc_provisioner.core.errors import NotReadyError, ProvisioningError

if TYPE_CHECKING:
    from sqsc_provisioner.core.project import ProjectHandle
    from sqsc_provisioner.core.runner import SqscRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL = 5.0


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-interval polling.

    ``max_attempts=None`` polls until the probe succeeds or raises something
    other than :class:`NotReadyError`.
    """

    interval: float = DEFAULT_INTERVAL
    max_attempts: int | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("interval must be >= 0")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def poll(self, probe: Callable[[], T], *, what: str) -> T:
        """Call *probe* until it returns, sleeping ``interval`` between attempts."""
        attempt = 0
        while True:
            attempt += 1
            try:
                return probe()
            except NotReadyError as exc:
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    raise ProvisioningError(
                        f"{what} not ready after {attempt} attempts: {exc}"
                    ) from exc
                logger.info("%s (attempt %d), retrying in %ss", exc, attempt, self.interval)
                self.sleep(self.interval)


def probe_project(runner: SqscRunner, project: ProjectHandle) -> ProjectStatus:
    """Single readiness check of the project cluster.

    Raises:
        ProvisioningError: The project reports an ``error`` status.
        NotReadyError: The project cannot schedule containers yet.
    """
    out = runner.read("project", "get", "-project-name", project.full_name)
    if out is None:
        raise NotReadyError(f"Project {project.name} is not visible yet")
    status = decode_project_status(out)
    if status.status == "error":
        raise ProvisioningError(f"{project.name} provisioning has encountered an error")
    if not status.schedulable:
        raise NotReadyError(f"Project {project.name} is not ready to schedule any containers yet")
    return status


def wait_for_project_scheduling(
    runner: SqscRunner, project: ProjectHandle, policy: RetryPolicy
) -> ProjectStatus | None:
    """Block until the project can schedule containers. Skipped in dry-run."""
    if runner.dry_run:
        logger.info("Dry run: not waiting for project %s", project.name)
        return None
    logger.info("Waiting for project %s to be able to schedule containers", project.name)
    status = policy.poll(lambda: probe_project(runner, project), what=f"Project {project.name}")
    logger.info("Project %s ready to schedule containers", project.name)
    return status


def probe_services(runner: SqscRunner, project: ProjectHandle) -> list[ServiceRow]:
    out = runner.read("service", "list", "-project-uuid", project.uuid)
    if out is None:
        raise NotReadyError(f"Services of {project.name} are not listable yet")
    services = decode_services(out)
    pending = [s.name for s in services if not s.ready]
    if pending:
        raise NotReadyError(f"Service container {', '.join(pending)} not ready")
    return services


def wait_for_services(
    runner: SqscRunner, project: ProjectHandle, policy: RetryPolicy
) -> list[ServiceRow]:
    """Block until every service runs its desired number of instances."""
    if runner.dry_run:
        logger.info("Dry run: not waiting for containers of %s", project.name)
        return []
    logger.info("Waiting for containers of %s to be running", project.name)
    services = policy.poll(
        lambda: probe_services(runner, project), what=f"Containers of {project.name}"
    )
    logger.info("All containers ready")
    return services
