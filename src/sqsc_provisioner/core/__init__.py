"""Core infrastructure components: CLI runner, output decoder, project handle."""

from sqsc_provisioner.core.project import ProjectHandle, normalize_project_name
from sqsc_provisioner.core.runner import CommandResult, SqscRunner

__all__ = ["CommandResult", "ProjectHandle", "SqscRunner", "normalize_project_name"]
