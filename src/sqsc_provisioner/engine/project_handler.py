"""Project handler: create, provision and bind the project handle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.decoder import ProjectRow, decode_project_list
from sqsc_provisioner.core.errors import PreconditionError, ProvisioningError
from sqsc_provisioner.core.project import ProjectHandle
from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.project import ProjectResource

logger = logging.getLogger(__name__)

# Stand-in UUID for a project that a dry run only pretended to create.
DRY_RUN_UUID = "00000000-0000-0000-0000-000000000000"


class ProjectHandler(ResourceHandler["ProjectResource"]):
    """Handler for SquareScale projects."""

    def _find(self, ctx: EngineContext, desired: ProjectResource) -> ProjectRow | None:
        out = ctx.runner.read("project", "list")
        if out is None:
            return None
        for row in decode_project_list(out):
            if row.name != desired.name:
                continue
            # A project with the same name may exist in another organization.
            if desired.organization and row.organization != desired.organization:
                continue
            return row
        return None

    def read(self, ctx: EngineContext, desired: ProjectResource) -> dict[str, Any] | None:
        row = self._find(ctx, desired)
        if row is None:
            return None
        if row.status == "error":
            raise ProvisioningError(f"{desired.name} provisioning has encountered an error")
        return {
            "uuid": row.uuid,
            "status": row.status,
            "provisioned": row.status != "no_infra",
        }

    def desired_attrs(
        self, ctx: EngineContext, desired: ProjectResource, observed: dict[str, Any]
    ) -> dict[str, Any]:
        _ = ctx, desired, observed
        return {"provisioned": True}

    def _create_args(self, desired: ProjectResource) -> list[str]:
        args = ["project", "create"]
        if desired.hybrid_cluster:
            args.append("-hybrid-cluster-enabled")
        if desired.monitoring:
            args += ["-monitoring", desired.monitoring]
        for service, prefix in desired.infra_services.items():
            args += [f"-{service}-enabled", f"-{service}-prefix", prefix]
        if desired.organization:
            args += ["-organization", desired.organization]
        if desired.auto_confirm:
            args.append("-yes")
        args += ["-provider", desired.provider, "-region", desired.region]
        args += ["-credential", desired.credential or ""]
        if desired.database is not None:
            args += ["-db-engine", desired.database.engine, "-db-size", desired.database.size]
            if desired.database.version:
                args += ["-db-version", desired.database.version]
        args += ["-infra-type", desired.infra_type]
        if desired.node_count is not None:
            args += ["-node-count", str(desired.node_count)]
        elif desired.infra_type == "single-node":
            args += ["-node-count", "1"]
        if desired.root_disk_size is not None:
            args += ["-root-disk-size", str(desired.root_disk_size)]
        args += ["-node-size", desired.node_size, "-project-name", desired.name]
        return args

    def create(self, ctx: EngineContext, desired: ProjectResource) -> dict[str, Any]:
        if not desired.credential:
            raise PreconditionError(
                "You need to set a cloud credential (project.credential or "
                "CLOUD_CREDENTIALS) to an existing IaaS credential in your account profile"
            )
        ctx.runner.mutate(*self._create_args(desired))
        attrs = self.read(ctx, desired)
        if attrs is not None:
            return attrs
        if ctx.dry_run:
            return {"uuid": DRY_RUN_UUID, "status": "no_infra", "provisioned": False}
        raise ProvisioningError(f"Project {desired.full_name} not listed after creation")

    def update(
        self,
        ctx: EngineContext,
        desired: ProjectResource,
        observed: dict[str, Any],
        diff: dict[str, Any],
    ) -> dict[str, Any]:
        _ = diff
        logger.info("%s starting provisioning", desired.name)
        ctx.runner.mutate("project", "provision", "-project-name", desired.full_name)
        return {**observed, "provisioned": True}

    def after_ensure(
        self, ctx: EngineContext, desired: ProjectResource, attrs: dict[str, Any]
    ) -> None:
        ctx.project = ProjectHandle(
            name=desired.name,
            uuid=attrs["uuid"],
            organization=desired.organization,
        )
