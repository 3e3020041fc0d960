"""Environment variable resource model."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field, computed_field, field_validator, model_validator

from sqsc_provisioner.resources.base import Resource


def env_value(v: Any) -> str:
    """Text form of a YAML scalar as the platform stores it (``true``, not ``True``)."""
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


class EnvVarResource(Resource):
    """A project-wide or service-scoped environment variable.

    The value comes from exactly one source:

    - ``value``: a literal
    - ``generate``: a random secret, created once and kept afterwards
    - ``value_from``: the current value of another project variable
    """

    resource_type: ClassVar[str] = "sqsc_env_var"

    name: str = Field(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    value: str | None = None
    generate: bool = False
    value_from: str | None = None
    service: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _stringify_value(cls, v: Any) -> Any:
        return v if v is None else env_value(v)

    @model_validator(mode="after")
    def _one_source(self) -> EnvVarResource:
        sources = [self.value is not None, self.generate, self.value_from is not None]
        if sum(sources) != 1:
            raise ValueError(
                f"env var '{self.name}' needs exactly one of value, generate, value_from"
            )
        if self.value_from is not None and self.service is not None:
            raise ValueError(f"env var '{self.name}': value_from is only supported project-wide")
        return self

    @computed_field
    @property
    def address(self) -> str:
        if self.service is not None:
            return f"{self.resource_type}.{self.service}.{self.name}"
        return f"{self.resource_type}.{self.name}"
