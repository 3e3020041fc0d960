"""Typed decoders for sqsc CLI output.

The sqsc CLI only speaks human-readable text: aligned tables (tabwriter
style), ``Key: value`` blocks and a few ad-hoc formats.  Every piece of
knowledge about those formats lives here; the rest of the package only sees
the frozen snapshots returned by the ``decode_*`` functions.

A decoder raises :class:`ParseMismatchError` when a field it needs is
missing, rather than returning an empty snapshot.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from sqsc_provisioner.core.errors import ParseMismatchError

# Columns in a tabwriter table are separated by at least two spaces, while a
# single space may appear inside a header ("Public IP").
_HEADER_CELL = re.compile(r"\S+(?: \S+)*")
_RATIO = re.compile(r"^(\d+)\s*/\s*(\d+)$")
_NUMBER = re.compile(r"\d+")
_GROUP_LINE = re.compile(r"^\[([^\]]+)\]")
_LB_CONTAINER = re.compile(r"^\[( |x|X)\]\s*([^:\s]+):(\d+)")


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Table:
    columns: list[str]
    rows: list[dict[str, str]]

    def column(self, *candidates: str) -> str | None:
        """Return the first column whose upper-cased name is in *candidates*."""
        wanted = {c.upper() for c in candidates}
        return next((c for c in self.columns if c in wanted), None)


@dataclass(frozen=True, slots=True)
class ProjectRow:
    name: str
    uuid: str
    organization: str
    status: str


@dataclass(frozen=True, slots=True)
class ProjectStatus:
    status: str
    available_nodes: int | None
    total_nodes: int | None

    @property
    def schedulable(self) -> bool:
        return self.status == "ok" and bool(self.available_nodes)


@dataclass(frozen=True, slots=True)
class ServiceRow:
    name: str
    running: int
    desired: int

    @property
    def ready(self) -> bool:
        return self.running == self.desired


@dataclass(frozen=True, slots=True)
class ServiceDetail:
    memory: str | None
    cpu: str | None


@dataclass(frozen=True, slots=True)
class ExternalNodeRow:
    name: str
    public_ip: str


@dataclass(frozen=True, slots=True)
class NetworkRuleRow:
    name: str
    internal_protocol: str
    internal_port: int
    external_protocol: str
    external_port: int
    path: str | None = None


@dataclass(frozen=True, slots=True)
class LoadBalancerState:
    enabled: bool
    containers: dict[str, int] = field(default_factory=dict)
    urls: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ComputeResource:
    name: str
    tokens: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ProjectDetails:
    scheduling_groups: dict[str, set[str]]
    compute_resources: list[ComputeResource]
    external_nodes: list[str]


# ---------------------------------------------------------------------------
# Generic primitives
# ---------------------------------------------------------------------------


def _non_blank(text: str) -> list[str]:
    return [line.rstrip() for line in text.splitlines() if line.strip()]


def parse_table(text: str) -> Table:
    """Decode an aligned table using the header's column offsets.

    Cells are sliced between consecutive header start offsets, so empty
    cells (e.g. a project without organization) are preserved.
    """
    lines = _non_blank(text)
    if not lines:
        return Table(columns=[], rows=[])
    header = lines[0]
    cells = list(_HEADER_CELL.finditer(header))
    columns = [m.group(0).upper() for m in cells]
    starts = [m.start() for m in cells]
    rows: list[dict[str, str]] = []
    for line in lines[1:]:
        row: dict[str, str] = {}
        for i, col in enumerate(columns):
            end = starts[i + 1] if i + 1 < len(starts) else None
            row[col] = line[starts[i] : end].strip()
        rows.append(row)
    return Table(columns=columns, rows=rows)


def parse_key_values(text: str, *, stop_at: str | None = None) -> dict[str, str]:
    """Decode ``Key: value`` lines, optionally stopping at a section title."""
    values: dict[str, str] = {}
    for line in _non_blank(text):
        if stop_at is not None and line.startswith(stop_at):
            break
        key, sep, value = line.partition(":")
        if not sep:
            continue
        values[key.strip()] = value.strip()
    return values


def _ratio(value: str) -> tuple[int, int] | None:
    m = _RATIO.match(value.strip())
    if m is None:
        return None
    return int(m.group(1)), int(m.group(2))


def _first_number(value: str | None) -> str | None:
    if value is None:
        return None
    m = _NUMBER.search(value)
    return m.group(0) if m else None


# ---------------------------------------------------------------------------
# Command-specific decoders
# ---------------------------------------------------------------------------


def decode_version(text: str) -> str:
    """Decode ``sqsc version`` output (``sqsc version 1.1.7 ...``)."""
    tokens = text.split()
    if len(tokens) < 3:
        raise ParseMismatchError("CLI version", text)
    return tokens[2]


def decode_project_list(text: str) -> list[ProjectRow]:
    table = parse_table(text)
    name_col = table.column("NAME")
    uuid_col = table.column("UUID")
    status_col = table.column("STATUS")
    if table.rows and (name_col is None or uuid_col is None or status_col is None):
        raise ParseMismatchError("project list columns (name, uuid, status)", text)
    org_col = table.column("ORGANIZATION", "ORG")
    return [
        ProjectRow(
            name=row[name_col],
            uuid=row[uuid_col],
            organization=row.get(org_col, "") if org_col else "",
            status=row[status_col],
        )
        for row in table.rows
        if name_col is not None and uuid_col is not None and status_col is not None
    ]


def decode_project_status(text: str) -> ProjectStatus:
    """Decode ``sqsc project get`` into status and node availability.

    Availability comes from ``Nodes`` (or ``Cluster`` on edge projects) as
    ``available/total``.
    """
    values = parse_key_values(text, stop_at="Network policies")
    status = values.get("Status")
    if not status:
        raise ParseMismatchError("project status", text)
    capacity = values.get("Nodes", values.get("Cluster", ""))
    parsed = _ratio(capacity)
    available, total = parsed if parsed else (None, None)
    return ProjectStatus(status=status, available_nodes=available, total_nodes=total)


def decode_services(text: str) -> list[ServiceRow]:
    table = parse_table(text)
    if not table.rows:
        return []
    if len(table.columns) < 2:
        raise ParseMismatchError("service list columns", text)
    name_col, count_col = table.columns[0], table.columns[1]
    services: list[ServiceRow] = []
    for row in table.rows:
        parsed = _ratio(row[count_col])
        if parsed is None:
            raise ParseMismatchError(f"instance count of service {row[name_col]!r}", text)
        services.append(ServiceRow(name=row[name_col], running=parsed[0], desired=parsed[1]))
    return services


_DETAIL_PREFIXES = {"memory": "Mem", "cpu": "CPU"}


def decode_service_detail(text: str, *required: str) -> ServiceDetail:
    """Decode ``sqsc service show``; each name in *required* must be reported."""
    values = parse_key_values(text)
    found = {
        attr: _first_number(next((v for k, v in values.items() if k.startswith(prefix)), None))
        for attr, prefix in _DETAIL_PREFIXES.items()
    }
    for attr in required:
        if found[attr] is None:
            raise ParseMismatchError(f"service {attr}", text)
    return ServiceDetail(**found)


def decode_env(text: str) -> dict[str, str]:
    """Decode ``KEY=value`` lines as printed by ``sqsc env get``."""
    env: dict[str, str] = {}
    for line in _non_blank(text):
        key, sep, value = line.partition("=")
        if sep:
            env[key.strip()] = value
    return env


def decode_scheduling_groups(text: str) -> list[str]:
    return [m.group(1) for line in _non_blank(text) if (m := _GROUP_LINE.match(line))]


def decode_external_nodes(text: str) -> list[ExternalNodeRow]:
    table = parse_table(text)
    if not table.rows:
        return []
    name_col = table.column("NAME")
    ip_col = next((c for c in table.columns if "IP" in c.split()), None)
    if name_col is None or ip_col is None:
        raise ParseMismatchError("external node list columns (name, ip)", text)
    return [ExternalNodeRow(name=row[name_col], public_ip=row[ip_col]) for row in table.rows]


def _protocol_port(value: str, text: str) -> tuple[str, int]:
    protocol, sep, port = value.partition("/")
    if not sep or not port.isdigit():
        raise ParseMismatchError(f"protocol/port in {value!r}", text)
    return protocol, int(port)


def decode_network_rules(text: str) -> list[NetworkRuleRow]:
    rules: list[NetworkRuleRow] = []
    for line in _non_blank(text):
        tokens = line.split()
        if tokens[0].upper() == "NAME":
            continue
        if len(tokens) < 3:
            raise ParseMismatchError("network rule", text)
        internal = _protocol_port(tokens[1], text)
        external = _protocol_port(tokens[2], text)
        rules.append(
            NetworkRuleRow(
                name=tokens[0],
                internal_protocol=internal[0],
                internal_port=internal[1],
                external_protocol=external[0],
                external_port=external[1],
                path=tokens[3] if len(tokens) > 3 else None,
            )
        )
    return rules


def decode_load_balancer(text: str) -> LoadBalancerState:
    """Decode ``sqsc lb list``: a ``state:`` line and ``[x] container:port`` entries."""
    lines = _non_blank(text)
    containers: dict[str, int] = {}
    enabled = True
    recognized = False
    for line in lines:
        if line.strip().startswith("state:"):
            recognized = True
            enabled = line.split(":", 1)[1].strip() != "disabled"
        m = _LB_CONTAINER.match(line.strip())
        if m is None:
            continue
        recognized = True
        if m.group(1) != " ":
            containers[m.group(2)] = int(m.group(3))
    if not recognized:
        raise ParseMismatchError("load balancer state or containers", text)
    urls = [line.split()[-1] for line in lines if "://" in line]
    return LoadBalancerState(enabled=enabled, containers=containers, urls=urls)


def _section(text: str, title: str) -> list[list[str]]:
    """Rows of a titled section in ``sqsc project details`` output."""
    rows: list[list[str]] = []
    inside = False
    started = False
    for raw in text.splitlines():
        line = raw.strip()
        if not inside:
            inside = line == title
            continue
        if not line:
            if started:
                break
            continue
        started = True
        if "NAME" in line.upper().split():
            continue
        rows.append(line.replace(",", " ").split())
    return rows


def decode_project_details(text: str) -> ProjectDetails:
    groups = {row[0]: set(row[1:]) for row in _section(text, "Scheduling groups")}
    compute = [
        ComputeResource(name=row[0], tokens=tuple(row[1:]))
        for row in _section(text, "Compute resources")
    ]
    external = [row[0] for row in _section(text, "External nodes")]
    return ProjectDetails(
        scheduling_groups=groups,
        compute_resources=compute,
        external_nodes=external,
    )
