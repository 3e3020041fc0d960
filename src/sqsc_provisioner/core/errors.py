"""Error taxonomy shared by the runner, decoder and engine."""

from __future__ import annotations

from typing import Any


class ProvisionerError(Exception):
    """Base exception for provisioner errors."""


class PreconditionError(ProvisionerError):
    """A requirement for running was not met (token, binary, version, name)."""


class ParseMismatchError(PreconditionError):
    """Raised when an expected field is missing from sqsc output."""

    def __init__(self, what: str, output: str) -> None:
        super().__init__(f"Unable to decode {what} from sqsc output: {output.strip()[:200]!r}")
        self.what = what
        self.output = output


class ResourceConflictError(PreconditionError):
    """A create-only attribute differs from what the platform reports."""

    def __init__(self, address: str, attribute: str, desired: Any, observed: Any) -> None:
        super().__init__(
            f"{address} already exists but {attribute} is {observed!r} "
            f"(configured {desired!r}); please check your configuration"
        )
        self.address = address
        self.attribute = attribute
        self.desired = desired
        self.observed = observed


class ProvisioningError(ProvisionerError):
    """The platform reported an error status for a resource."""


class CommandError(ProvisionerError):
    """A mutating sqsc invocation exited with a non-zero status."""

    def __init__(self, argv: list[str], returncode: int, stderr: str) -> None:
        detail = stderr.strip() or "no output"
        super().__init__(f"`{' '.join(argv)}` exited with status {returncode}: {detail}")
        self.argv = argv
        self.returncode = returncode
        self.stderr = stderr


class NotReadyError(ProvisionerError):
    """Transient: the resource is not ready yet. Retried by the poll loop."""


class UnknownResourceTypeError(ProvisionerError):
    """Raised when a resource type has no registration/handler."""

    def __init__(self, resource_type: str) -> None:
        super().__init__(f"Unknown resource type: {resource_type}")
        self.resource_type = resource_type


class DuplicateAddressError(ProvisionerError):
    """Raised when multiple desired resources share the same address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Duplicate resource address: {address}")
        self.address = address


class RunError(ProvisionerError):
    """Raised when a run fails mid-way through.

    Carries the partial result (what was ensured before the failure) so
    callers can inspect progress.  The original exception is chained via
    ``__cause__``.
    """

    def __init__(self, *, results: list[Any], address: str, message: str) -> None:
        from sqsc_provisioner.engine.types import RunResult

        self.result = RunResult(results=results)
        self.address = address
        super().__init__(f"Provisioning failed on {address}: {message}")


class RunCanceled(ProvisionerError):
    """Raised when a run is canceled (e.g., Ctrl-C)."""
