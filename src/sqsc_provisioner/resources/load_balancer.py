"""Load balancer resource model."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from sqsc_provisioner.resources.base import Resource


class LoadBalancerResource(Resource):
    """Legacy load balancer routing to one container port (``name`` is the container)."""

    resource_type: ClassVar[str] = "sqsc_load_balancer"

    port: int = Field(ge=1, le=65535)
