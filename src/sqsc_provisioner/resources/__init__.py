"""SquareScale resource definitions."""

from sqsc_provisioner.resources.base import Resource
from sqsc_provisioner.resources.env_var import EnvVarResource
from sqsc_provisioner.resources.external_node import ExternalNodeResource
from sqsc_provisioner.resources.load_balancer import LoadBalancerResource
from sqsc_provisioner.resources.network_rule import NetworkRuleResource
from sqsc_provisioner.resources.project import DatabaseSpec, ProjectResource
from sqsc_provisioner.resources.scheduling_group import (
    SchedulingGroupAssignmentResource,
    SchedulingGroupResource,
)
from sqsc_provisioner.resources.service import ServiceResource, service_name_from_image
from sqsc_provisioner.resources.slackbot import SlackbotResource

__all__ = [
    "DatabaseSpec",
    "EnvVarResource",
    "ExternalNodeResource",
    "LoadBalancerResource",
    "NetworkRuleResource",
    "ProjectResource",
    "Resource",
    "SchedulingGroupAssignmentResource",
    "SchedulingGroupResource",
    "ServiceResource",
    "SlackbotResource",
    "service_name_from_image",
]
