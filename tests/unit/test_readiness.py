"""Tests for readiness polling."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from sqsc_provisioner.core.errors import NotReadyError, ProvisioningError
from sqsc_provisioner.core.project import ProjectHandle
from sqsc_provisioner.engine.readiness import (
    RetryPolicy,
    wait_for_project_scheduling,
    wait_for_services,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from conftest import FakeSqsc

    from sqsc_provisioner.core.runner import SqscRunner


@pytest.fixture
def project(fake_sqsc: FakeSqsc) -> ProjectHandle:
    uuid = fake_sqsc.add_project("demo")
    return ProjectHandle(name="demo", uuid=uuid)


def _get_calls(fake: FakeSqsc) -> int:
    return sum(1 for c in fake.calls if c[:2] == ["project", "get"])


class TestRetryPolicy:
    def test_rejects_negative_interval(self) -> None:
        with pytest.raises(ValueError, match="interval"):
            RetryPolicy(interval=-1)

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=0)

    def test_returns_first_success(self, sleeps: list[float]) -> None:
        policy = RetryPolicy(sleep=sleeps.append)
        assert policy.poll(lambda: 42, what="x") == 42
        assert sleeps == []

    def test_other_errors_propagate(self, sleeps: list[float]) -> None:
        policy = RetryPolicy(sleep=sleeps.append)

        def probe() -> None:
            raise KeyError("boom")

        with pytest.raises(KeyError):
            policy.poll(probe, what="x")
        assert sleeps == []

    def test_bounded_attempts(self, sleeps: list[float]) -> None:
        policy = RetryPolicy(interval=2.0, max_attempts=3, sleep=sleeps.append)

        def probe() -> None:
            raise NotReadyError("still pending")

        with pytest.raises(ProvisioningError, match="not ready after 3 attempts"):
            policy.poll(probe, what="Thing")
        assert sleeps == [2.0, 2.0]


class TestProjectScheduling:
    def test_pending_pending_ok(
        self,
        fake_sqsc: FakeSqsc,
        make_runner: Callable[..., SqscRunner],
        project: ProjectHandle,
        policy: RetryPolicy,
        sleeps: list[float],
    ) -> None:
        fake_sqsc.get_statuses = ["pending", "pending", "ok"]

        status = wait_for_project_scheduling(make_runner(), project, policy)

        assert status is not None
        assert status.status == "ok"
        assert _get_calls(fake_sqsc) == 3
        assert sleeps == [5.0, 5.0]

    def test_error_aborts_immediately(
        self,
        fake_sqsc: FakeSqsc,
        make_runner: Callable[..., SqscRunner],
        project: ProjectHandle,
        policy: RetryPolicy,
        sleeps: list[float],
    ) -> None:
        fake_sqsc.get_statuses = ["pending", "error", "ok"]

        with pytest.raises(ProvisioningError, match="encountered an error"):
            wait_for_project_scheduling(make_runner(), project, policy)

        assert _get_calls(fake_sqsc) == 2
        assert sleeps == [5.0]

    def test_uses_full_name(
        self,
        fake_sqsc: FakeSqsc,
        make_runner: Callable[..., SqscRunner],
        policy: RetryPolicy,
    ) -> None:
        uuid = fake_sqsc.add_project("edge", organization="acme")
        handle = ProjectHandle(name="edge", uuid=uuid, organization="acme")

        wait_for_project_scheduling(make_runner(), handle, policy)

        assert ["project", "get", "-project-name", "acme/edge"] in fake_sqsc.calls

    def test_skipped_in_dry_run(
        self,
        fake_sqsc: FakeSqsc,
        make_runner: Callable[..., SqscRunner],
        project: ProjectHandle,
        policy: RetryPolicy,
    ) -> None:
        fake_sqsc.get_statuses = ["pending"]
        assert wait_for_project_scheduling(make_runner(dry_run=True), project, policy) is None
        assert fake_sqsc.calls == []


class TestServices:
    def test_waits_until_running(
        self,
        fake_sqsc: FakeSqsc,
        make_runner: Callable[..., SqscRunner],
        project: ProjectHandle,
        policy: RetryPolicy,
        sleeps: list[float],
    ) -> None:
        fake_sqsc.add_service("web", instances=2)
        fake_sqsc.pending_service_polls = 2

        services = wait_for_services(make_runner(), project, policy)

        assert [(s.name, s.running) for s in services] == [("web", 2)]
        assert len(sleeps) == 2

    def test_skipped_in_dry_run(
        self,
        fake_sqsc: FakeSqsc,
        make_runner: Callable[..., SqscRunner],
        project: ProjectHandle,
        policy: RetryPolicy,
    ) -> None:
        assert wait_for_services(make_runner(dry_run=True), project, policy) == []
        assert fake_sqsc.calls == []
