"""Configuration models for YAML-based provisioning."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqsc_provisioner.core.runner import DEFAULT_ENDPOINT
from sqsc_provisioner.resources.base import Resource  # noqa: TC001 - Pydantic needs this at runtime
from sqsc_provisioner.resources.env_var import EnvVarResource, env_value
from sqsc_provisioner.resources.external_node import ExternalNodeResource
from sqsc_provisioner.resources.load_balancer import LoadBalancerResource
from sqsc_provisioner.resources.network_rule import (
    NetworkRuleResource,  # noqa: TC001 - Pydantic needs this at runtime
)
from sqsc_provisioner.resources.project import (
    ProjectResource,  # noqa: TC001 - Pydantic needs this at runtime
)
from sqsc_provisioner.resources.scheduling_group import (
    SchedulingGroupAssignmentResource,  # noqa: TC001 - Pydantic needs this at runtime
    SchedulingGroupResource,
)
from sqsc_provisioner.resources.service import ServiceResource
from sqsc_provisioner.resources.slackbot import SlackbotResource


class SqscSettings(BaseSettings):
    """sqsc CLI connection settings.

    Fields can be set via YAML (the ``cli:`` section) or environment
    variables with the ``SQSC_`` prefix.  Constructor kwargs take precedence.

    ``token`` is typically provided via ``SQSC_TOKEN`` rather than YAML to
    avoid committing secrets to version control.
    """

    model_config = SettingsConfigDict(env_prefix="SQSC_", env_ignore_empty=True)

    token: SecretStr | None = None
    endpoint: str = DEFAULT_ENDPOINT
    binary: str = "sqsc"
    required_version: str | None = None
    dry_run: bool = False

    @field_validator("required_version", mode="before")
    @classmethod
    def _version_text(cls, v: Any) -> Any:
        # ``required_version: 1.2`` is a float in YAML.
        return v if v is None or isinstance(v, str) else str(v)


class DockerDatabase(BaseModel):
    """Postgres running as a project container, wired through env vars.

    The password is generated once; every other ``*_PASSWORD`` variable
    copies it.
    """

    model_config = ConfigDict(extra="forbid")

    image: str = "postgres:10"
    user: str = "dbadmin"
    database: str = "dbmain"
    host: str = "postgres.service.consul"
    port: int = Field(default=5432, ge=1, le=65535)
    scheduling_groups: list[str] = Field(default_factory=list)

    def env_vars(self) -> list[EnvVarResource]:
        literal = {
            "POSTGRES_USER": self.user,
            "POSTGRES_DB": self.database,
            "DB_ENGINE": "postgres",
            "DB_HOST": self.host,
            "DB_PORT": str(self.port),
            "DB_USERNAME": self.user,
            "DB_NAME": self.database,
            "PROJECT_DB_USERNAME": self.user,
            "PROJECT_DB_NAME": self.database,
        }
        return [
            EnvVarResource(name="POSTGRES_PASSWORD", generate=True),
            *(EnvVarResource(name=k, value=v) for k, v in literal.items()),
            EnvVarResource(name="DB_PASSWORD", value_from="POSTGRES_PASSWORD"),
            EnvVarResource(name="PROJECT_DB_PASSWORD", value_from="POSTGRES_PASSWORD"),
        ]

    def service(self) -> ServiceResource:
        return ServiceResource(image=self.image, scheduling_groups=self.scheduling_groups)


def _none_to_list(v: Any) -> Any:
    return v if v is not None else []


def _env_entries(v: Any) -> Any:
    """Accept ``{KEY: value}`` / ``{KEY: {generate: true}}`` as well as a list."""
    if v is None:
        return []
    if isinstance(v, dict):
        return [
            {"name": k, **val} if isinstance(val, dict) else {"name": k, "value": env_value(val)}
            for k, val in v.items()
        ]
    return v


def _named(v: Any) -> Any:
    """Accept plain strings as ``{name: ...}`` entries."""
    if v is None:
        return []
    if isinstance(v, list):
        return [{"name": item} if isinstance(item, str) else item for item in v]
    return v


def _external_node_entries(v: Any) -> Any:
    """Accept ``name:ip`` strings as well as mappings."""
    if v is None:
        return []
    if isinstance(v, list):
        entries: list[Any] = []
        for item in v:
            if isinstance(item, str) and ":" in item:
                name, _, ip = item.partition(":")
                item = {"name": name, "public_ip": ip}
            entries.append(item)
        return entries
    return v


def _load_balancer_entry(v: Any) -> Any:
    if isinstance(v, dict) and "container" in v:
        v = {**v}
        v["name"] = v.pop("container")
    return v


def _slackbot_entry(v: Any) -> Any:
    if isinstance(v, str):
        return {"webhook": v}
    return v


class Config(BaseModel):
    """Provisioning configuration - validates YAML structure directly."""

    model_config = ConfigDict(extra="forbid")

    cli: SqscSettings = Field(default_factory=SqscSettings)
    project: ProjectResource
    slack_webhook: Annotated[SlackbotResource | None, BeforeValidator(_slackbot_entry)] = None
    env: Annotated[list[EnvVarResource], BeforeValidator(_env_entries)] = []
    docker_database: DockerDatabase | None = None
    scheduling_groups: Annotated[list[SchedulingGroupResource], BeforeValidator(_named)] = []
    external_nodes: Annotated[
        list[ExternalNodeResource], BeforeValidator(_external_node_entries)
    ] = []
    scheduling_group_assignments: Annotated[
        list[SchedulingGroupAssignmentResource], BeforeValidator(_none_to_list)
    ] = []
    services: Annotated[list[ServiceResource], BeforeValidator(_none_to_list)] = []
    network_rules: Annotated[list[NetworkRuleResource], BeforeValidator(_none_to_list)] = []
    load_balancer: Annotated[
        LoadBalancerResource | None, BeforeValidator(_load_balancer_entry)
    ] = None
    wait_for_services: bool = True
    config_dir: Path = Path()

    @model_validator(mode="after")
    def _project_wide_env_only(self) -> Config:
        scoped = [e.name for e in self.env if e.service is not None]
        if scoped:
            raise ValueError(
                f"env entries cannot be service-scoped ({', '.join(scoped)}); "
                "use services[].env instead"
            )
        return self

    @property
    def resources(self) -> list[Resource]:
        """All declared resources, in the order they must be ensured."""
        resources: list[Resource] = [self.project]
        if self.slack_webhook is not None:
            resources.append(self.slack_webhook)
        resources.extend(self.env)
        if self.docker_database is not None:
            resources.extend(self.docker_database.env_vars())
        resources.extend(self.scheduling_groups)
        resources.extend(self.external_nodes)
        resources.extend(self.scheduling_group_assignments)
        services = list(self.services)
        if self.docker_database is not None:
            services.insert(0, self.docker_database.service())
        for service in services:
            resources.append(service)
            resources.extend(
                EnvVarResource(name=k, value=v, service=service.name)
                for k, v in service.env.items()
            )
        resources.extend(self.network_rules)
        if self.load_balancer is not None:
            resources.append(self.load_balancer)
        return resources
