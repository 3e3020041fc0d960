"""Scheduling group resource models."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from sqsc_provisioner.resources.base import Resource


class SchedulingGroupResource(Resource):
    """A named group of nodes services can be pinned to."""

    resource_type: ClassVar[str] = "sqsc_scheduling_group"


class SchedulingGroupAssignmentResource(Resource):
    """Membership of nodes in a scheduling group (``name`` is the group).

    Nodes are selected by any combination of:

    - ``nodes``: explicit node names
    - ``cluster_nodes``: compute resources with the ``Cluster`` role, narrowed
      to ``instance_type`` (or to every other type with
      ``exclude_instance_type``)
    - ``external_nodes``: every external node of the project
    """

    resource_type: ClassVar[str] = "sqsc_scheduling_group_assignment"

    nodes: list[str] = Field(default_factory=list)
    instance_type: str | None = None
    exclude_instance_type: bool = False
    cluster_nodes: bool = False
    external_nodes: bool = False
