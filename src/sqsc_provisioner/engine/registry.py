"""Dispatch from resource kinds to the handlers that converge them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.errors import UnknownResourceTypeError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqsc_provisioner.engine.handlers import ResourceHandler
    from sqsc_provisioner.resources.base import Resource


@dataclass(frozen=True)
class ResourceTypeRegistration:
    resource_type: str
    model: type[Resource]
    handler: ResourceHandler[Any]


class ResourceTypeRegistry:
    """Maps each ``resource_type`` to its model and handler, in registration order."""

    def __init__(self) -> None:
        self._by_type: dict[str, ResourceTypeRegistration] = {}

    def register(
        self, model: type[Resource], handler: ResourceHandler[Any]
    ) -> ResourceTypeRegistration:
        kind = getattr(model, "resource_type", None)
        if not isinstance(kind, str) or not kind:
            raise ValueError(f"{model.__name__} must define a non-empty classvar `resource_type`")
        if kind in self._by_type:
            raise ValueError(f"Resource type already registered: {kind}")
        registration = ResourceTypeRegistration(resource_type=kind, model=model, handler=handler)
        self._by_type[kind] = registration
        return registration

    def get(self, resource_type: str) -> ResourceTypeRegistration:
        registration = self._by_type.get(resource_type)
        if registration is None:
            raise UnknownResourceTypeError(resource_type)
        return registration

    def handler_for(self, resource: Resource) -> ResourceHandler[Any]:
        return self.get(resource.resource_type).handler

    def __contains__(self, resource_type: object) -> bool:
        return resource_type in self._by_type

    def __iter__(self) -> Iterator[ResourceTypeRegistration]:
        return iter(self._by_type.values())

    def __len__(self) -> int:
        return len(self._by_type)
