"""YAML configuration file loader."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import dotenv_values
from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.constructor import SafeConstructor

from sqsc_provisioner.config.schema import Config
from sqsc_provisioner.core.errors import ProvisionerError

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqsc_provisioner.resources.base import Resource


class ConfigError(ProvisionerError):
    """Raised for configuration loading / validation errors."""


# Field name → environment variable.
_CLI_ENV_MAP: dict[str, str] = {
    "token": "SQSC_TOKEN",
    "endpoint": "SQSC_ENDPOINT",
    "binary": "SQSC_BIN",
    "required_version": "SQSC_REQUIRED_VERSION",
    "dry_run": "DRY_RUN",
}

_CLI_BOOL_FIELDS: frozenset[str] = frozenset({"dry_run"})

_PROJECT_ENV_MAP: dict[str, str] = {
    "organization": "ORGANIZATION",
    "provider": "CLOUD_PROVIDER",
    "region": "CLOUD_REGION",
    "credential": "CLOUD_CREDENTIALS",
    "node_size": "VM_SIZE",
    "infra_type": "INFRA_TYPE",
    "monitoring": "MONITORING",
}


def _to_bool(env_key: str, val: str) -> bool:
    """Interpret a flag variable.

    YAML booleans are honoured; any other non-empty value turns the flag on,
    the way ``DRY_RUN=1`` does in a shell.
    """
    lowered = val.strip().lower()
    if lowered in SafeConstructor.bool_values:
        return SafeConstructor.bool_values[lowered]
    logger.debug("%s=%r enables the flag", env_key, val)
    return True


def _resolve(
    raw: Mapping[str, Any],
    env_map: Mapping[str, str],
    dotenv_vals: Mapping[str, str | None],
    bool_fields: frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Resolve fields from YAML, env vars and ``.env`` values.

    Priority (highest wins): YAML value > env var > ``.env`` file.  An empty
    variable counts as unset, like ``${VAR:-default}`` in a shell.
    """
    resolved: dict[str, Any] = dict(raw)
    for field, env_key in env_map.items():
        val = raw.get(field)
        if val is None:
            val = os.environ.get(env_key) or dotenv_vals.get(env_key) or None
        if val is None:
            continue
        if field in bool_fields and isinstance(val, str):
            val = _to_bool(env_key, val)
        resolved[field] = val
    return resolved


def _dotenv(config_dir: Path) -> dict[str, str | None]:
    env_file = config_dir / ".env"
    return dotenv_values(env_file, encoding="utf-8-sig") if env_file.is_file() else {}


def _validate_unique_addresses(resources: list[Resource]) -> list[str]:
    seen: set[str] = set()
    errors: list[str] = []
    for r in resources:
        if r.address in seen:
            errors.append(f"Duplicate resource '{r.address}'")
        seen.add(r.address)
    return errors


def load_config(path: Path | str, *, project_name: str | None = None) -> Config:
    """Load a YAML configuration file and return a ``Config`` object.

    *project_name* overrides ``project.name`` (the CLI positional argument).

    Raises:
        ConfigError: On YAML parse errors, missing sections, or validation failures.
    """
    path = Path(path)

    try:
        raw = YAML(typ="safe").load(path)
    except Exception as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    dotenv_vals = _dotenv(path.parent)
    project = raw.get("project") or {}
    if not isinstance(project, dict):
        raise ConfigError("project must be a mapping")
    if project_name is not None:
        project = {**project, "name": project_name}
    if "slack_webhook" not in raw:
        webhook = os.environ.get("SLACK_WEB_HOOK") or dotenv_vals.get("SLACK_WEB_HOOK")
        if webhook:
            raw["slack_webhook"] = webhook

    try:
        raw["cli"] = _resolve(raw.get("cli") or {}, _CLI_ENV_MAP, dotenv_vals, _CLI_BOOL_FIELDS)
        raw["project"] = _resolve(project, _PROJECT_ENV_MAP, dotenv_vals)
        config = Config.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    config.config_dir = path.parent

    errors = _validate_unique_addresses(config.resources)
    if errors:
        raise ConfigError("\n".join(errors))

    logger.info("Loaded config from %s (%d resources)", path, len(config.resources))
    return config
