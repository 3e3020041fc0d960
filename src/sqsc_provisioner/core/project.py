"""Project handle - identifies the target project once it exists."""

from __future__ import annotations

import string

from pydantic import BaseModel, ConfigDict

from sqsc_provisioner.core.errors import PreconditionError

_PRINTABLE = frozenset(string.printable) - frozenset("\t\n\r\x0b\x0c")


def normalize_project_name(raw: str) -> str:
    """Lower-case *raw* and drop non-printable characters.

    Raises:
        PreconditionError: Nothing printable is left.
    """
    name = "".join(c for c in raw.lower() if c in _PRINTABLE)
    if not name:
        raise PreconditionError(f"{raw!r} is not a valid project name (non-printable characters)")
    return name


class ProjectHandle(BaseModel):
    """Name/UUID pair every project-scoped call is made against."""

    model_config = ConfigDict(frozen=True)

    name: str
    uuid: str
    organization: str | None = None

    @property
    def full_name(self) -> str:
        """``organization/name`` as accepted by ``-project-name``."""
        if self.organization:
            return f"{self.organization}/{self.name}"
        return self.name
