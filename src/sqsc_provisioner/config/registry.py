"""Default resource type registry factory."""

from __future__ import annotations

from sqsc_provisioner.engine.env_var_handler import EnvVarHandler
from sqsc_provisioner.engine.external_node_handler import ExternalNodeHandler
from sqsc_provisioner.engine.load_balancer_handler import LoadBalancerHandler
from sqsc_provisioner.engine.network_rule_handler import NetworkRuleHandler
from sqsc_provisioner.engine.project_handler import ProjectHandler
from sqsc_provisioner.engine.registry import ResourceTypeRegistry
from sqsc_provisioner.engine.scheduling_group_handler import (
    SchedulingGroupAssignmentHandler,
    SchedulingGroupHandler,
)
from sqsc_provisioner.engine.service_handler import ServiceHandler
from sqsc_provisioner.engine.slackbot_handler import SlackbotHandler
from sqsc_provisioner.resources import (
    EnvVarResource,
    ExternalNodeResource,
    LoadBalancerResource,
    NetworkRuleResource,
    ProjectResource,
    SchedulingGroupAssignmentResource,
    SchedulingGroupResource,
    ServiceResource,
    SlackbotResource,
)


def default_registry() -> ResourceTypeRegistry:
    """Create a fresh registry with all built-in resource types and handlers."""
    registry = ResourceTypeRegistry()

    registry.register(ProjectResource, ProjectHandler())
    registry.register(SlackbotResource, SlackbotHandler())
    registry.register(EnvVarResource, EnvVarHandler())
    registry.register(SchedulingGroupResource, SchedulingGroupHandler())
    registry.register(SchedulingGroupAssignmentResource, SchedulingGroupAssignmentHandler())
    registry.register(ExternalNodeResource, ExternalNodeHandler())
    registry.register(ServiceResource, ServiceHandler())
    registry.register(NetworkRuleResource, NetworkRuleHandler())
    registry.register(LoadBalancerResource, LoadBalancerHandler())

    return registry
