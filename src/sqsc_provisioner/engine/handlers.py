"""Engine-facing handler interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqsc_provisioner.core.errors import PreconditionError, ResourceConflictError
from sqsc_provisioner.engine.readiness import RetryPolicy
from sqsc_provisioner.resources.base import Resource

if TYPE_CHECKING:
    from sqsc_provisioner.core.project import ProjectHandle
    from sqsc_provisioner.core.runner import SqscRunner

R = TypeVar("R", bound=Resource)


@dataclass
class EngineContext:
    """Context passed to handlers.

    ``project`` is unset until the project resource has been ensured; the
    handle itself is immutable.  ``secrets`` holds values generated during
    this run so that dependent variables can reuse them.
    """

    runner: SqscRunner
    policy: RetryPolicy = field(default_factory=RetryPolicy)
    project: ProjectHandle | None = None
    secrets: dict[str, str] = field(default_factory=dict)

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def require_project(self) -> ProjectHandle:
        if self.project is None:
            raise PreconditionError("No project has been ensured yet in this run")
        return self.project

    def scope(self) -> list[str]:
        """CLI flags selecting the current project."""
        return ["-project-uuid", self.require_project().uuid]


class ResourceHandler(Generic[R]):
    """Base class for resource handlers.

    Handlers translate resources into sqsc invocations.  The engine always
    calls :meth:`read` first, then :meth:`create` when it returns ``None``,
    or :meth:`update` when :meth:`desired_attrs` differs from what was read.
    """

    # Wait for the project to be able to schedule containers first.
    requires_schedulable: ClassVar[bool] = False

    def read(self, ctx: EngineContext, desired: R) -> dict[str, Any] | None:
        """Read observed attributes. Return None if the resource is absent."""
        raise NotImplementedError

    def desired_attrs(
        self, ctx: EngineContext, desired: R, observed: dict[str, Any]
    ) -> dict[str, Any]:
        """Attributes to compare with *observed*, keyed like :meth:`read` output."""
        _ = ctx, observed
        return {}

    def create(self, ctx: EngineContext, desired: R) -> dict[str, Any]:
        """Create the resource. Return its attributes."""
        raise NotImplementedError

    def update(
        self,
        ctx: EngineContext,
        desired: R,
        observed: dict[str, Any],
        diff: dict[str, Any],
    ) -> dict[str, Any]:
        """Converge differing attributes in place. Return the new attributes.

        The default treats every compared attribute as create-only.
        """
        _ = ctx, observed
        attr, change = next(iter(diff.items()))
        raise ResourceConflictError(desired.address, attr, change["to"], change["from"])

    def after_ensure(self, ctx: EngineContext, desired: R, attrs: dict[str, Any]) -> None:
        """Hook run once the resource has converged."""
        _ = ctx, desired, attrs
