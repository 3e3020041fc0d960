"""External node handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.decoder import decode_external_nodes
from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.external_node import ExternalNodeResource

logger = logging.getLogger(__name__)


class ExternalNodeHandler(ResourceHandler["ExternalNodeResource"]):
    """Handler for external nodes. The public IP cannot be changed in place."""

    requires_schedulable = True

    def read(self, ctx: EngineContext, desired: ExternalNodeResource) -> dict[str, Any] | None:
        out = ctx.runner.read("external-node", "list", *ctx.scope())
        if out is None:
            return None
        node = next((n for n in decode_external_nodes(out) if n.name == desired.name), None)
        if node is None:
            return None
        return {"public_ip": node.public_ip}

    def desired_attrs(
        self, ctx: EngineContext, desired: ExternalNodeResource, observed: dict[str, Any]
    ) -> dict[str, Any]:
        _ = ctx, observed
        return {"public_ip": str(desired.public_ip)}

    def create(self, ctx: EngineContext, desired: ExternalNodeResource) -> dict[str, Any]:
        ip = str(desired.public_ip)
        logger.info("Creating external node %s with IP %s", desired.name, ip)
        ctx.runner.mutate(
            "external-node", "add", "-nowait", *ctx.scope(), "-public-ip", ip, desired.name
        )
        return {"public_ip": ip}
