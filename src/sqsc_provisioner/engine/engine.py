"""Idempotent provisioning engine."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal

from sqsc_provisioner.core.decoder import decode_env, decode_load_balancer
from sqsc_provisioner.core.errors import (
    DuplicateAddressError,
    PreconditionError,
    RunCanceled,
    RunError,
)
from sqsc_provisioner.engine.handlers import EngineContext
from sqsc_provisioner.engine.readiness import (
    RetryPolicy,
    wait_for_project_scheduling,
    wait_for_services,
)
from sqsc_provisioner.engine.types import EnsureResult, Outcome, RunResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqsc_provisioner.core.decoder import ProjectStatus, ServiceRow
    from sqsc_provisioner.core.project import ProjectHandle
    from sqsc_provisioner.core.runner import SqscRunner
    from sqsc_provisioner.engine.registry import ResourceTypeRegistry
    from sqsc_provisioner.resources.base import Resource
    from sqsc_provisioner.resources.project import ProjectResource

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, Literal["start", "done"], EnsureResult | None], None]


def _values_differ(desired: Any, observed: Any) -> bool:
    """Exact comparison; numbers are compared through their text form.

    The CLI only reports text, so ``4096`` and ``"4096"`` are the same value.
    """
    if isinstance(desired, int | float) and not isinstance(desired, bool):
        desired = str(desired)
    if isinstance(observed, int | float) and not isinstance(observed, bool):
        observed = str(observed)
    return desired != observed


class Provisioner:
    """Converges SquareScale resources one at a time through the sqsc CLI."""

    def __init__(
        self,
        *,
        runner: SqscRunner,
        registry: ResourceTypeRegistry,
        policy: RetryPolicy | None = None,
    ) -> None:
        self._registry = registry
        self._ctx = EngineContext(runner=runner, policy=policy or RetryPolicy())

    @property
    def context(self) -> EngineContext:
        return self._ctx

    @property
    def project(self) -> ProjectHandle | None:
        return self._ctx.project

    def ensure(self, resource: Resource) -> EnsureResult:
        """Read *resource*, then create or update it only if it differs.

        Returns the outcome; raises on any fatal error.
        """
        handler = self._registry.handler_for(resource)
        ctx = self._ctx
        address = resource.address

        observed = handler.read(ctx, resource)
        if observed is None:
            logger.info("%s is absent, creating", address)
            attrs = handler.create(ctx, resource)
            handler.after_ensure(ctx, resource, attrs)
            return EnsureResult(
                address=address,
                resource_type=resource.resource_type,
                outcome=Outcome.CREATED,
                dry_run=ctx.dry_run,
            )

        desired = handler.desired_attrs(ctx, resource, observed)
        diff = {
            k: {"from": observed.get(k), "to": v}
            for k, v in desired.items()
            if _values_differ(v, observed.get(k))
        }
        if not diff:
            logger.info("%s already up-to-date, skipping", address)
            handler.after_ensure(ctx, resource, observed)
            return EnsureResult(
                address=address,
                resource_type=resource.resource_type,
                outcome=Outcome.UNCHANGED,
                observed=observed,
            )

        logger.info("%s differs on %s, updating", address, ", ".join(sorted(diff)))
        attrs = handler.update(ctx, resource, observed, diff)
        handler.after_ensure(ctx, resource, attrs)
        return EnsureResult(
            address=address,
            resource_type=resource.resource_type,
            outcome=Outcome.UPDATED,
            observed=observed,
            diff=diff,
            dry_run=ctx.dry_run,
        )

    def run(
        self, resources: Sequence[Resource], *, progress: ProgressCallback | None = None
    ) -> RunResult:
        """Ensure *resources* in order, stopping at the first failure."""
        seen: set[str] = set()
        for r in resources:
            if r.address in seen:
                raise DuplicateAddressError(r.address)
            self._registry.handler_for(r)  # fail early if unknown
            seen.add(r.address)

        logger.info("Ensuring %d resources (dry_run=%s)", len(resources), self._ctx.dry_run)
        results: list[EnsureResult] = []
        address = ""
        try:
            for r in resources:
                address = r.address
                if progress:
                    progress(address, "start", None)
                if self._registry.handler_for(r).requires_schedulable:
                    self.wait_until_schedulable()
                result = self.ensure(r)
                results.append(result)
                if progress:
                    progress(address, "done", result)
        except KeyboardInterrupt as e:  # pragma: no cover
            raise RunCanceled("Provisioning canceled") from e
        except Exception as e:
            raise RunError(results=results, address=address, message=str(e)) from e

        return RunResult(results=results)

    # -- readiness & reporting -------------------------------------------

    def attach(self, project: ProjectResource) -> ProjectHandle:
        """Bind to an existing project without changing anything."""
        handler = self._registry.handler_for(project)
        observed = handler.read(self._ctx, project)
        if observed is None:
            raise PreconditionError(f"Project {project.full_name} does not exist")
        handler.after_ensure(self._ctx, project, observed)
        return self._ctx.require_project()

    def wait_until_schedulable(self) -> ProjectStatus | None:
        ctx = self._ctx
        return wait_for_project_scheduling(ctx.runner, ctx.require_project(), ctx.policy)

    def wait_for_services(self) -> list[ServiceRow]:
        ctx = self._ctx
        return wait_for_services(ctx.runner, ctx.require_project(), ctx.policy)

    def load_balancer_urls(self) -> list[str]:
        out = self._ctx.runner.read("lb", "list", *self._ctx.scope())
        return decode_load_balancer(out).urls if out else []

    def environment(self) -> dict[str, str]:
        """Project-wide environment variables as currently set."""
        out = self._ctx.runner.read("env", "get", *self._ctx.scope())
        return decode_env(out) if out else {}
