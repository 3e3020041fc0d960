"""Shared fixtures for unit tests."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pytest
from pydantic import SecretStr

from sqsc_provisioner.config import load
from sqsc_provisioner.core.runner import CommandResult, SqscRunner
from sqsc_provisioner.engine.readiness import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from sqsc_provisioner.config.schema import Config

_SQSC_ENV_VARS = (
    "SQSC_TOKEN",
    "SQSC_ENDPOINT",
    "SQSC_BIN",
    "SQSC_BINARY",
    "SQSC_REQUIRED_VERSION",
    "SQSC_DRY_RUN",
    "SQSC_LOG",
    "DRY_RUN",
    "ORGANIZATION",
    "CLOUD_PROVIDER",
    "CLOUD_REGION",
    "CLOUD_CREDENTIALS",
    "VM_SIZE",
    "INFRA_TYPE",
    "MONITORING",
    "SLACK_WEB_HOOK",
    "NO_COLOR",
)

MUTATIONS = frozenset(
    {
        ("project", "create"),
        ("project", "provision"),
        ("env", "set"),
        ("service", "add"),
        ("service", "set"),
        ("scheduling-group", "add"),
        ("scheduling-group", "assign"),
        ("external-node", "add"),
        ("network-rule", "create"),
        ("lb", "set"),
    }
)


def _table(columns: list[str], rows: list[list[str]]) -> str:
    widths = [
        max([len(col), *(len(row[i]) for row in rows)]) + 2 for i, col in enumerate(columns)
    ]
    lines = ["".join(c.ljust(w) for c, w in zip(columns, widths, strict=True)).rstrip()]
    for row in rows:
        lines.append("".join(c.ljust(w) for c, w in zip(row, widths, strict=True)).rstrip())
    return "\n".join(lines) + "\n"


def _opt(args: list[str], flag: str) -> str | None:
    if flag in args:
        return args[args.index(flag) + 1]
    return None


def _positional(args: list[str], flags_with_value: set[str]) -> list[str]:
    out: list[str] = []
    skip = False
    for a in args:
        if skip:
            skip = False
            continue
        if a in flags_with_value:
            skip = True
            continue
        if a.startswith("-"):
            continue
        out.append(a)
    return out


_VALUE_FLAGS = {
    "-project-uuid",
    "-project-name",
    "-service",
    "-service-name",
    "-docker-image",
    "-instances",
    "-scheduling-groups",
    "-memory",
    "-cpu",
    "-public-ip",
    "-name",
    "-internal-protocol",
    "-internal-port",
    "-external-protocol",
    "-path",
    "-container",
    "-port",
}


def _is_mutation(args: list[str]) -> bool:
    if tuple(args[:2]) in MUTATIONS:
        return True
    # ``project slackbot`` sets the webhook when given one, prints it otherwise.
    return args[:2] == ["project", "slackbot"] and bool(_positional(args[2:], _VALUE_FLAGS))


@dataclass
class FakeSqsc:
    """Stateful in-memory stand-in for the sqsc CLI, rendering its text formats.

    Used as the runner's executor: ``calls`` records every argv (binary
    stripped) and ``mutations`` only the state-changing ones.
    """

    version: str = "1.1.7"
    logged_in: bool = True
    login_ok: bool = True
    projects: dict[str, dict[str, Any]] = field(default_factory=dict)
    # Statuses returned by successive ``project get`` calls, then "ok".
    get_statuses: list[str] = field(default_factory=list)
    services: dict[str, dict[str, Any]] = field(default_factory=dict)
    # Number of ``service list`` calls reporting 0 running containers.
    pending_service_polls: int = 0
    project_env: dict[str, str] = field(default_factory=dict)
    service_env: dict[str, dict[str, str]] = field(default_factory=dict)
    groups: dict[str, set[str]] = field(default_factory=dict)
    compute: list[tuple[str, ...]] = field(default_factory=list)
    external_nodes: dict[str, str] = field(default_factory=dict)
    rules: list[dict[str, Any]] = field(default_factory=list)
    lb_enabled: bool = False
    lb_containers: dict[str, int] = field(default_factory=dict)
    lb_urls: list[str] = field(default_factory=list)
    slackbot: str = ""
    fail_on: set[tuple[str, str]] = field(default_factory=set)
    calls: list[list[str]] = field(default_factory=list)
    envs: list[dict[str, str]] = field(default_factory=list)
    _uuids: Any = field(default_factory=lambda: itertools.count(1), repr=False)

    @property
    def mutations(self) -> list[list[str]]:
        return [c for c in self.calls if _is_mutation(c)]

    def add_project(
        self, name: str, *, status: str = "ok", organization: str = "", uuid: str | None = None
    ) -> str:
        uuid = uuid or f"uuid-{next(self._uuids)}"
        self.projects[name] = {"uuid": uuid, "status": status, "organization": organization}
        return uuid

    def add_service(
        self, name: str, *, instances: int = 1, memory: str = "256", cpu: str = "100"
    ) -> None:
        self.services[name] = {
            "running": instances,
            "desired": instances,
            "memory": memory,
            "cpu": cpu,
        }

    def __call__(self, argv: list[str], env: dict[str, str]) -> CommandResult:
        args = argv[1:]
        self.calls.append(args)
        self.envs.append(env)
        if tuple(args[:2]) in self.fail_on:
            return CommandResult(1, "", f"{' '.join(args[:2])} failed")
        handler = getattr(self, "_cmd_" + "_".join(args[:2]).replace("-", "_"), None)
        rest = args[2:]
        if handler is None and args:
            handler = getattr(self, "_cmd_" + args[0].replace("-", "_"), None)
            rest = args[1:]
        if handler is None:
            return CommandResult(2, "", f"unknown command {args}")
        return handler(rest)

    # -- session --------------------------------------------------------------

    def _cmd_version(self, _args: list[str]) -> CommandResult:
        return CommandResult(0, f"sqsc version {self.version} (git abc1234)\n")

    def _cmd_status(self, _args: list[str]) -> CommandResult:
        if self.logged_in:
            return CommandResult(0, "Logged in as demo@example.com\n")
        return CommandResult(1, "", "not logged in")

    def _cmd_login(self, _args: list[str]) -> CommandResult:
        if self.login_ok:
            self.logged_in = True
            return CommandResult(0, "Successfully logged in\n")
        return CommandResult(1, "", "login failed")

    # -- projects -------------------------------------------------------------

    def _by_uuid(self, args: list[str]) -> dict[str, Any] | None:
        uuid = _opt(args, "-project-uuid")
        return next((p for p in self.projects.values() if p["uuid"] == uuid), None)

    def _cmd_project_list(self, _args: list[str]) -> CommandResult:
        rows = [
            [name, p["uuid"], p["organization"], p["status"]] for name, p in self.projects.items()
        ]
        return CommandResult(0, _table(["NAME", "UUID", "ORGANIZATION", "STATUS"], rows))

    def _cmd_project_create(self, args: list[str]) -> CommandResult:
        name = _opt(args, "-project-name")
        assert name is not None
        org = _opt(args, "-organization") or ""
        self.add_project(name, status="provisioning", organization=org)
        return CommandResult(0, f"Project {name} created\n")

    def _full_name(self, name: str) -> str:
        org = self.projects[name]["organization"]
        return f"{org}/{name}" if org else name

    def _project_by_full_name(self, full: str | None) -> dict[str, Any] | None:
        return next((p for n, p in self.projects.items() if self._full_name(n) == full), None)

    def _cmd_project_provision(self, args: list[str]) -> CommandResult:
        project = self._project_by_full_name(_opt(args, "-project-name"))
        if project is None:
            return CommandResult(1, "", "project not found")
        project["status"] = "provisioning"
        return CommandResult(0, "Provisioning started\n")

    def _cmd_project_get(self, args: list[str]) -> CommandResult:
        full = _opt(args, "-project-name")
        project = self._project_by_full_name(full)
        if project is None:
            return CommandResult(1, "", "project not found")
        status = self.get_statuses.pop(0) if self.get_statuses else "ok"
        nodes = "1/1" if status == "ok" else "0/1"
        text = (
            f"Name:       {full}\n"
            f"UUID:       {project['uuid']}\n"
            f"Status:     {status}\n"
            f"Nodes:      {nodes}\n"
            "\n"
            "Network policies\n"
            "Status: enabled\n"
        )
        return CommandResult(0, text)

    def _cmd_project_slackbot(self, args: list[str]) -> CommandResult:
        if self._by_uuid(args) is None:
            return CommandResult(1, "", "project not found")
        webhook = _positional(args, _VALUE_FLAGS)
        if webhook:
            self.slackbot = webhook[0]
            return CommandResult(0, "")
        return CommandResult(0, f"{self.slackbot}\n" if self.slackbot else "")

    def _cmd_project_details(self, args: list[str]) -> CommandResult:
        if self._by_uuid(args) is None:
            return CommandResult(1, "", "project not found")
        parts = ["Scheduling groups", "NAME  NODES"]
        parts += [f"{g}  {','.join(sorted(nodes))}".rstrip() for g, nodes in self.groups.items()]
        parts += ["", "Compute resources", "NAME  ROLES  INSTANCE TYPE"]
        parts += ["  ".join(row) for row in self.compute]
        parts += ["", "External nodes", "NAME  PUBLIC IP"]
        parts += [f"{n}  {ip}" for n, ip in self.external_nodes.items()]
        return CommandResult(0, "\n".join(parts) + "\n")

    # -- env ------------------------------------------------------------------

    def _cmd_env_get(self, args: list[str]) -> CommandResult:
        if self._by_uuid(args) is None:
            return CommandResult(1, "", "project not found")
        service = _opt(args, "-service")
        keys = _positional(args, _VALUE_FLAGS)
        if service is not None:
            env = self.service_env.get(service, {})
            return CommandResult(0, "".join(f"{k}={v}\n" for k, v in env.items()))
        if keys:
            if keys[0] not in self.project_env:
                return CommandResult(1, "", f"{keys[0]} not found")
            return CommandResult(0, f"{self.project_env[keys[0]]}\n")
        return CommandResult(0, "".join(f"{k}={v}\n" for k, v in self.project_env.items()))

    def _cmd_env_set(self, args: list[str]) -> CommandResult:
        key, value = _positional(args, _VALUE_FLAGS)
        service = _opt(args, "-service")
        if service is not None:
            self.service_env.setdefault(service, {})[key] = value
        else:
            self.project_env[key] = value
        return CommandResult(0, "")

    # -- services -------------------------------------------------------------

    def _cmd_service_list(self, args: list[str]) -> CommandResult:
        if self._by_uuid(args) is None:
            return CommandResult(1, "", "project not found")
        pending = self.pending_service_polls > 0
        if pending:
            self.pending_service_polls -= 1
        rows = [
            [name, f"{0 if pending else s['running']}/{s['desired']}", "docker"]
            for name, s in self.services.items()
        ]
        return CommandResult(0, _table(["NAME", "INSTANCES", "SOURCE"], rows))

    def _cmd_service_show(self, args: list[str]) -> CommandResult:
        s = self.services.get(_opt(args, "-service") or "")
        if s is None:
            return CommandResult(1, "", "service not found")
        return CommandResult(0, f"Memory: {s['memory']} MB\nCPU:    {s['cpu']} MHz\n")

    def _cmd_service_add(self, args: list[str]) -> CommandResult:
        image = _opt(args, "-docker-image") or ""
        name = _opt(args, "-service") or image.rsplit("/", 1)[-1].split(":", 1)[0]
        self.add_service(name, instances=int(_opt(args, "-instances") or 1))
        return CommandResult(0, "")

    def _cmd_service_set(self, args: list[str]) -> CommandResult:
        s = self.services[_opt(args, "-service") or ""]
        for attr in ("memory", "cpu"):
            value = _opt(args, f"-{attr}")
            if value is not None:
                s[attr] = value
        return CommandResult(0, "")

    # -- scheduling groups & nodes -------------------------------------------

    def _cmd_scheduling_group_list(self, _args: list[str]) -> CommandResult:
        return CommandResult(0, "".join(f"[{g}] {len(n)} nodes\n" for g, n in self.groups.items()))

    def _cmd_scheduling_group_add(self, args: list[str]) -> CommandResult:
        (name,) = _positional(args, _VALUE_FLAGS)
        self.groups.setdefault(name, set())
        return CommandResult(0, "")

    def _cmd_scheduling_group_assign(self, args: list[str]) -> CommandResult:
        group, node = _positional(args, _VALUE_FLAGS)
        self.groups[group].add(node)
        return CommandResult(0, "")

    def _cmd_external_node_list(self, _args: list[str]) -> CommandResult:
        rows = [[n, ip, "active"] for n, ip in self.external_nodes.items()]
        return CommandResult(0, _table(["NAME", "PUBLIC IP", "STATUS"], rows))

    def _cmd_external_node_add(self, args: list[str]) -> CommandResult:
        (name,) = _positional(args, _VALUE_FLAGS)
        self.external_nodes[name] = _opt(args, "-public-ip") or ""
        return CommandResult(0, "")

    # -- network ----------------------------------------------------------------

    def _cmd_network_rule_list(self, args: list[str]) -> CommandResult:
        service = _opt(args, "-service-name")
        lines = ["NAME  INTERNAL  EXTERNAL  PATH"]
        for r in self.rules:
            if r["service"] != service:
                continue
            line = f"{r['name']}  {r['internal']}  {r['external']}"
            if r["path"]:
                line += f"  {r['path']}"
            lines.append(line)
        return CommandResult(0, "\n".join(lines) + "\n")

    def _cmd_network_rule_create(self, args: list[str]) -> CommandResult:
        self.rules.append(
            {
                "name": _opt(args, "-name"),
                "service": _opt(args, "-service-name"),
                "internal": f"{_opt(args, '-internal-protocol')}/{_opt(args, '-internal-port')}",
                "external": f"{_opt(args, '-external-protocol')}/80",
                "path": _opt(args, "-path"),
            }
        )
        return CommandResult(0, "")

    def _cmd_lb_list(self, _args: list[str]) -> CommandResult:
        lines = [f"state: {'enabled' if self.lb_enabled else 'disabled'}"]
        lines += [f"[x] {c}:{p}" for c, p in self.lb_containers.items()]
        lines += [f"URL:  {u}" for u in self.lb_urls]
        return CommandResult(0, "\n".join(lines) + "\n")

    def _cmd_lb_set(self, args: list[str]) -> CommandResult:
        self.lb_enabled = True
        self.lb_containers = {_opt(args, "-container") or "": int(_opt(args, "-port") or 0)}
        return CommandResult(0, "")


@pytest.fixture(autouse=True)
def _clean_sqsc_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove sqsc-related env vars so unit tests don't leak host config."""
    for var in _SQSC_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_sqsc() -> FakeSqsc:
    return FakeSqsc()


@pytest.fixture
def make_runner(fake_sqsc: FakeSqsc) -> Callable[..., SqscRunner]:
    """Factory fixture: runner bound to ``fake_sqsc`` with a test token."""

    def _make(**kwargs: Any) -> SqscRunner:
        kwargs.setdefault("token", SecretStr("test-token"))
        return SqscRunner.from_executor(fake_sqsc, **kwargs)

    return _make


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def policy(sleeps: list[float]) -> RetryPolicy:
    """Retry policy recording its sleeps instead of sleeping."""
    return RetryPolicy(interval=5.0, max_attempts=10, sleep=sleeps.append)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory fixture: write YAML + optional .env, return loaded Config."""

    def _make(yaml_str: str, *, dotenv: str | None = None, **kwargs: Any) -> Config:
        (tmp_path / "config.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path / "config.yaml", **kwargs)

    return _make
