"""Project resource model."""

from __future__ import annotations

from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sqsc_provisioner.core.errors import PreconditionError
from sqsc_provisioner.core.project import normalize_project_name
from sqsc_provisioner.resources.base import Resource


class DatabaseSpec(BaseModel):
    """Managed (cloud provider) database attached to the project."""

    model_config = ConfigDict(extra="forbid")

    engine: str = "postgres"
    size: str = "small"
    version: str | None = None


class ProjectResource(Resource):
    """A SquareScale project and its infrastructure.

    Only existence and status are converged: a project in ``no_infra`` is
    provisioned, a project in ``error`` aborts the run.  Infrastructure
    attributes are used at creation time only.
    """

    resource_type: ClassVar[str] = "sqsc_project"

    organization: str | None = None
    provider: Literal["aws", "azure", "outscale"] = "aws"
    region: str = "eu-west-1"
    credential: str | None = None
    infra_type: Literal["single-node", "high-availability"] = "single-node"
    node_size: str = "small"
    node_count: int | None = Field(default=None, ge=1)
    root_disk_size: int | None = Field(default=None, ge=1)
    database: DatabaseSpec | None = None
    monitoring: Literal["netdata"] | None = None
    hybrid_cluster: bool = False
    # Infrastructure services exposed with a UI prefix, e.g. {"nomad": "n-ui"}.
    infra_services: dict[str, str] = Field(default_factory=dict)
    auto_confirm: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def _normalize_name(cls, v: object) -> object:
        if not isinstance(v, str):
            return v
        try:
            return normalize_project_name(v)
        except PreconditionError as exc:
            raise ValueError(str(exc)) from exc

    @property
    def full_name(self) -> str:
        if self.organization:
            return f"{self.organization}/{self.name}"
        return self.name
