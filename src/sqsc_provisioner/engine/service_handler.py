"""Service handler: add containers and converge memory/CPU."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.decoder import decode_service_detail, decode_services
from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.service import ServiceResource

logger = logging.getLogger(__name__)

# Attributes ``sqsc service set`` can change on a running service.
_SETTABLE = ("memory", "cpu")


class ServiceHandler(ResourceHandler["ServiceResource"]):
    """Handler for containerized services."""

    requires_schedulable = True

    def _detail(self, ctx: EngineContext, name: str, attrs: list[str]) -> dict[str, Any]:
        out = ctx.runner.read("service", "show", *ctx.scope(), "-service", name)
        if out is None:
            return dict.fromkeys(attrs)
        detail = decode_service_detail(out, *attrs)
        return {attr: getattr(detail, attr) for attr in attrs}

    def read(self, ctx: EngineContext, desired: ServiceResource) -> dict[str, Any] | None:
        out = ctx.runner.read("service", "list", *ctx.scope())
        if out is None:
            return None
        row = next((s for s in decode_services(out) if s.name == desired.name), None)
        if row is None:
            return None
        attrs: dict[str, Any] = {"running": row.running, "instances": row.desired}
        compared = [a for a in _SETTABLE if getattr(desired, a) is not None]
        if compared:
            attrs.update(self._detail(ctx, desired.name, compared))
        return attrs

    def desired_attrs(
        self, ctx: EngineContext, desired: ServiceResource, observed: dict[str, Any]
    ) -> dict[str, Any]:
        _ = ctx, observed
        return {
            attr: str(getattr(desired, attr))
            for attr in _SETTABLE
            if getattr(desired, attr) is not None
        }

    def _set(self, ctx: EngineContext, desired: ServiceResource, attr: str, value: str) -> None:
        logger.info("Setting %s container %s to %s", desired.name, attr, value)
        ctx.runner.mutate(
            "service", "set", *ctx.scope(), "-service", desired.name, f"-{attr}", value
        )

    def create(self, ctx: EngineContext, desired: ServiceResource) -> dict[str, Any]:
        args = ["service", "add", *ctx.scope(), "-docker-image", desired.image]
        args += ["-service", desired.name, "-instances", str(desired.instances)]
        if desired.scheduling_groups:
            args += ["-scheduling-groups", ",".join(desired.scheduling_groups)]
        logger.info("Adding container service %s", desired.name)
        ctx.runner.mutate(*args)

        wanted = self.desired_attrs(ctx, desired, {})
        if wanted:
            current = {} if ctx.dry_run else self._detail(ctx, desired.name, list(wanted))
            for attr, value in wanted.items():
                if current.get(attr) != value:
                    self._set(ctx, desired, attr, value)
        return {"instances": desired.instances, **wanted}

    def update(
        self,
        ctx: EngineContext,
        desired: ServiceResource,
        observed: dict[str, Any],
        diff: dict[str, Any],
    ) -> dict[str, Any]:
        for attr in _SETTABLE:
            if attr in diff:
                self._set(ctx, desired, attr, diff[attr]["to"])
        return {**observed, **{k: d["to"] for k, d in diff.items()}}
