"""Idempotent provisioning engine for SquareScale resources."""

from sqsc_provisioner.core.errors import (
    CommandError,
    DuplicateAddressError,
    NotReadyError,
    ParseMismatchError,
    PreconditionError,
    ProvisionerError,
    ProvisioningError,
    ResourceConflictError,
    RunCanceled,
    RunError,
    UnknownResourceTypeError,
)
from sqsc_provisioner.engine.engine import Provisioner
from sqsc_provisioner.engine.handlers import EngineContext, ResourceHandler
from sqsc_provisioner.engine.readiness import RetryPolicy
from sqsc_provisioner.engine.registry import ResourceTypeRegistration, ResourceTypeRegistry
from sqsc_provisioner.engine.types import EnsureResult, Outcome, RunResult

__all__ = [
    "CommandError",
    "DuplicateAddressError",
    "EngineContext",
    "EnsureResult",
    "NotReadyError",
    "Outcome",
    "ParseMismatchError",
    "PreconditionError",
    "ProvisionerError",
    "Provisioner",
    "ProvisioningError",
    "ResourceConflictError",
    "ResourceHandler",
    "ResourceTypeRegistration",
    "ResourceTypeRegistry",
    "RetryPolicy",
    "RunCanceled",
    "RunError",
    "RunResult",
]
