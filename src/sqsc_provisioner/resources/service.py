"""Service (container) resource model."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field, field_validator, model_validator

from sqsc_provisioner.resources.base import Resource
from sqsc_provisioner.resources.env_var import env_value


def service_name_from_image(image: str) -> str:
    """Service name the platform derives from a Docker image.

    ``squarescale/sqsc-demo-app:1.2`` -> ``sqsc-demo-app``
    """
    return image.rsplit("/", 1)[-1].split(":", 1)[0]


class ServiceResource(Resource):
    """A containerized service.

    ``memory`` and ``cpu`` are converged in place; the image, instance count
    and scheduling groups are only used when the service is created.
    """

    resource_type: ClassVar[str] = "sqsc_service"

    image: str = Field(min_length=1)
    instances: int = Field(default=1, ge=1)
    scheduling_groups: list[str] = Field(default_factory=list)
    memory: int | None = Field(default=None, ge=1)
    cpu: int | None = Field(default=None, ge=1)
    env: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name") and data.get("image"):
            data = {**data, "name": service_name_from_image(data["image"])}
        return data

    @field_validator("env", mode="before")
    @classmethod
    def _stringify_env(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {k: env_value(val) for k, val in v.items()}
        return v
