"""Load balancer handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.decoder import decode_load_balancer
from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.load_balancer import LoadBalancerResource


class LoadBalancerHandler(ResourceHandler["LoadBalancerResource"]):
    """Handler for the project load balancer. Always present, possibly disabled."""

    def read(self, ctx: EngineContext, desired: LoadBalancerResource) -> dict[str, Any] | None:
        out = ctx.runner.read("lb", "list", *ctx.scope())
        state = decode_load_balancer(out or "state: disabled")
        return {"enabled": state.enabled, "port": state.containers.get(desired.name)}

    def desired_attrs(
        self, ctx: EngineContext, desired: LoadBalancerResource, observed: dict[str, Any]
    ) -> dict[str, Any]:
        _ = ctx, observed
        return {"enabled": True, "port": desired.port}

    def update(
        self,
        ctx: EngineContext,
        desired: LoadBalancerResource,
        observed: dict[str, Any],
        diff: dict[str, Any],
    ) -> dict[str, Any]:
        _ = observed, diff
        ctx.runner.mutate(
            "lb", "set", *ctx.scope(), "-container", desired.name, "-port", str(desired.port)
        )
        return {"enabled": True, "port": desired.port}
