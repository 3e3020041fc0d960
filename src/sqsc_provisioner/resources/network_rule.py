"""Network rule resource model."""

from __future__ import annotations

from typing import ClassVar, Literal

from pydantic import Field

from sqsc_provisioner.resources.base import Resource

Protocol = Literal["http", "https", "tcp"]


class NetworkRuleResource(Resource):
    """Exposes a service port through the project load balancer."""

    resource_type: ClassVar[str] = "sqsc_network_rule"

    service: str
    internal_protocol: Protocol = "http"
    internal_port: int = Field(ge=1, le=65535)
    external_protocol: Protocol = "http"
    path: str | None = None
