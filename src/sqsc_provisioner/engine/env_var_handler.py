"""Environment variable handler (project-wide and service-scoped)."""

from __future__ import annotations

import logging
import secrets
import string
from typing import TYPE_CHECKING, Any

from sqsc_provisioner.core.decoder import decode_env
from sqsc_provisioner.core.errors import PreconditionError
from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.env_var import EnvVarResource

logger = logging.getLogger(__name__)

_SECRET_ALPHABET = string.ascii_letters + string.digits
SECRET_LENGTH = 32


def generate_secret(length: int = SECRET_LENGTH) -> str:
    """Random alphanumeric secret (``pwgen 32 1`` equivalent)."""
    return "".join(secrets.choice(_SECRET_ALPHABET) for _ in range(length))


def _strip_output(out: str) -> str:
    # Command substitution semantics: only trailing newlines are dropped.
    return out.rstrip("\n")


class EnvVarHandler(ResourceHandler["EnvVarResource"]):
    """Handler for ``sqsc env`` variables.

    ``sqsc env get`` fails when a project variable is not set, which is read
    as "absent".  Service variables are read all at once and looked up.
    """

    def _read_project_var(self, ctx: EngineContext, key: str) -> str | None:
        out = ctx.runner.read("env", "get", *ctx.scope(), key)
        return None if out is None else _strip_output(out)

    def read(self, ctx: EngineContext, desired: EnvVarResource) -> dict[str, Any] | None:
        if desired.service is None:
            value = self._read_project_var(ctx, desired.name)
        else:
            out = ctx.runner.read("env", "get", *ctx.scope(), "-service", desired.service)
            value = decode_env(out).get(desired.name) if out is not None else None
        if value is None:
            return None
        return {"value": value}

    def _source_value(self, ctx: EngineContext, desired: EnvVarResource) -> str:
        source = desired.value_from
        assert source is not None
        if source in ctx.secrets:
            return ctx.secrets[source]
        value = self._read_project_var(ctx, source)
        if value is not None:
            return value
        if ctx.dry_run:
            return f"<value of {source}>"
        raise PreconditionError(f"env var '{desired.name}' copies '{source}', which is not set")

    def _value(
        self, ctx: EngineContext, desired: EnvVarResource, observed: dict[str, Any] | None
    ) -> str:
        if desired.value is not None:
            return desired.value
        if desired.value_from is not None:
            return self._source_value(ctx, desired)
        # Generated secrets are kept once they exist.
        if observed is not None:
            return str(observed["value"])
        return ctx.secrets.setdefault(desired.name, generate_secret())

    def desired_attrs(
        self, ctx: EngineContext, desired: EnvVarResource, observed: dict[str, Any]
    ) -> dict[str, Any]:
        return {"value": self._value(ctx, desired, observed)}

    def _set(self, ctx: EngineContext, desired: EnvVarResource, value: str) -> dict[str, Any]:
        service = ["-service", desired.service] if desired.service is not None else []
        ctx.runner.mutate("env", "set", *ctx.scope(), *service, desired.name, value)
        return {"value": value}

    def create(self, ctx: EngineContext, desired: EnvVarResource) -> dict[str, Any]:
        return self._set(ctx, desired, self._value(ctx, desired, None))

    def update(
        self,
        ctx: EngineContext,
        desired: EnvVarResource,
        observed: dict[str, Any],
        diff: dict[str, Any],
    ) -> dict[str, Any]:
        _ = observed
        return self._set(ctx, desired, diff["value"]["to"])
