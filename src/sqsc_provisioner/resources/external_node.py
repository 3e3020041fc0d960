"""External node resource model."""

from __future__ import annotations

from ipaddress import IPv4Address
from typing import ClassVar

from pydantic import field_serializer

from sqsc_provisioner.resources.base import Resource


class ExternalNodeResource(Resource):
    """A node outside the cloud infrastructure (edge device, on-premise server).

    The public IP is create-only: a mismatch with the platform is a conflict.
    """

    resource_type: ClassVar[str] = "sqsc_external_node"

    public_ip: IPv4Address

    @field_serializer("public_ip")
    def _ip_str(self, ip: IPv4Address) -> str:
        return str(ip)
