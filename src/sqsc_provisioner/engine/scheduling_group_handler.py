"""Scheduling group handlers (groups and node assignments)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.decoder import (
    ProjectDetails,
    decode_project_details,
    decode_scheduling_groups,
)
from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.scheduling_group import (
        SchedulingGroupAssignmentResource,
        SchedulingGroupResource,
    )

logger = logging.getLogger(__name__)

_CLUSTER_ROLE = "Cluster"


class SchedulingGroupHandler(ResourceHandler["SchedulingGroupResource"]):
    """Handler for scheduling groups. Groups only exist or not."""

    requires_schedulable = True

    def read(self, ctx: EngineContext, desired: SchedulingGroupResource) -> dict[str, Any] | None:
        out = ctx.runner.read("scheduling-group", "list", *ctx.scope())
        if out is None or desired.name not in decode_scheduling_groups(out):
            return None
        return {"name": desired.name}

    def create(self, ctx: EngineContext, desired: SchedulingGroupResource) -> dict[str, Any]:
        logger.info("Creating scheduling-group %s", desired.name)
        ctx.runner.mutate("scheduling-group", "add", *ctx.scope(), desired.name)
        return {"name": desired.name}


def select_nodes(desired: SchedulingGroupAssignmentResource, details: ProjectDetails) -> list[str]:
    """Node names the assignment asks for, in discovery order."""
    selected: list[str] = list(desired.nodes)
    if desired.cluster_nodes:
        for resource in details.compute_resources:
            if _CLUSTER_ROLE not in resource.tokens:
                continue
            if desired.instance_type is not None:
                matches = desired.instance_type in resource.tokens
                if matches == desired.exclude_instance_type:
                    continue
            selected.append(resource.name)
    if desired.external_nodes:
        selected.extend(details.external_nodes)
    return list(dict.fromkeys(selected))


class SchedulingGroupAssignmentHandler(ResourceHandler["SchedulingGroupAssignmentResource"]):
    """Handler adding nodes to a scheduling group. Never removes members."""

    requires_schedulable = True

    def read(
        self, ctx: EngineContext, desired: SchedulingGroupAssignmentResource
    ) -> dict[str, Any] | None:
        out = ctx.runner.read("project", "details", *ctx.scope())
        details = decode_project_details(out or "")
        members = details.scheduling_groups.get(desired.name, set())
        return {
            "members": sorted(members),
            "selected": select_nodes(desired, details),
        }

    def desired_attrs(
        self,
        ctx: EngineContext,
        desired: SchedulingGroupAssignmentResource,
        observed: dict[str, Any],
    ) -> dict[str, Any]:
        _ = ctx, desired
        return {"members": sorted({*observed["members"], *observed["selected"]})}

    def update(
        self,
        ctx: EngineContext,
        desired: SchedulingGroupAssignmentResource,
        observed: dict[str, Any],
        diff: dict[str, Any],
    ) -> dict[str, Any]:
        current = set(observed["members"])
        for node in observed["selected"]:
            if node in current:
                continue
            logger.info("Assigning %s to %s scheduling group", node, desired.name)
            ctx.runner.mutate("scheduling-group", "assign", *ctx.scope(), desired.name, node)
        return {**observed, "members": diff["members"]["to"]}
