"""Network rule handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.decoder import decode_network_rules
from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.network_rule import NetworkRuleResource


class NetworkRuleHandler(ResourceHandler["NetworkRuleResource"]):
    """Handler for network rules. Rules are create-only."""

    def read(self, ctx: EngineContext, desired: NetworkRuleResource) -> dict[str, Any] | None:
        out = ctx.runner.read(
            "network-rule", "list", *ctx.scope(), "-service-name", desired.service
        )
        if out is None:
            return None
        rule = next((r for r in decode_network_rules(out) if r.name == desired.name), None)
        if rule is None:
            return None
        return {
            "internal_protocol": rule.internal_protocol,
            "internal_port": rule.internal_port,
            "external_protocol": rule.external_protocol,
        }

    def desired_attrs(
        self, ctx: EngineContext, desired: NetworkRuleResource, observed: dict[str, Any]
    ) -> dict[str, Any]:
        _ = ctx, observed
        return {
            "internal_protocol": desired.internal_protocol,
            "internal_port": desired.internal_port,
            "external_protocol": desired.external_protocol,
        }

    def create(self, ctx: EngineContext, desired: NetworkRuleResource) -> dict[str, Any]:
        args = ["network-rule", "create", *ctx.scope(), "-name", desired.name]
        args += ["-internal-protocol", desired.internal_protocol]
        args += ["-internal-port", str(desired.internal_port)]
        args += ["-external-protocol", desired.external_protocol]
        args += ["-service-name", desired.service]
        if desired.path is not None:
            args += ["-path", desired.path]
        ctx.runner.mutate(*args)
        return self.desired_attrs(ctx, desired, {})
