from __future__ import annotations

from sqsc_provisioner.cli.formatting import (
    format_env,
    format_result,
    format_run_summary,
    format_urls,
)
from sqsc_provisioner.engine.types import EnsureResult, Outcome


def _result(outcome: Outcome, **kwargs: object) -> EnsureResult:
    return EnsureResult(
        address="sqsc_service.web",
        resource_type="sqsc_service",
        outcome=outcome,
        **kwargs,
    )


class TestFormatResult:
    def test_created(self) -> None:
        assert format_result(_result(Outcome.CREATED), color=False) == (
            "  + sqsc_service.web: Created"
        )

    def test_unchanged(self) -> None:
        assert format_result(_result(Outcome.UNCHANGED), color=False) == (
            "    sqsc_service.web: Up-to-date"
        )

    def test_updated_shows_diff(self) -> None:
        result = _result(Outcome.UPDATED, diff={"memory": {"from": "256", "to": "512"}})
        assert format_result(result, color=False) == (
            '  ~ sqsc_service.web: Updated (memory: "256" -> "512")'
        )

    def test_missing_value_rendered_as_null(self) -> None:
        result = _result(Outcome.UPDATED, diff={"cpu": {"from": None, "to": 200}})
        assert format_result(result, color=False).endswith("(cpu: null -> 200)")

    def test_dry_run_verbs(self) -> None:
        created = format_result(_result(Outcome.CREATED, dry_run=True), color=False)
        updated = format_result(_result(Outcome.UPDATED, dry_run=True), color=False)
        assert created.endswith("Would be created")
        assert updated.endswith("Would be updated")

    def test_color(self) -> None:
        assert "\x1b[" in format_result(_result(Outcome.CREATED), color=True)
        assert "\x1b[" not in format_result(_result(Outcome.CREATED), color=False)


class TestFormatRunSummary:
    def test_complete(self) -> None:
        text = format_run_summary({"created": 2, "updated": 1, "unchanged": 5}, color=False)
        assert text == "Provisioning complete! Resources: 2 created, 1 updated, 5 unchanged."

    def test_dry_run(self) -> None:
        text = format_run_summary({"created": 1}, color=False, dry_run=True)
        assert text == "Dry run complete! Resources: 1 created, 0 updated, 0 unchanged."

    def test_color(self) -> None:
        assert "\x1b[" in format_run_summary({"created": 1}, color=True)


class TestFormatUrls:
    def test_urls_one_per_line(self) -> None:
        urls = ["https://a.sqsc.io", "https://b.sqsc.io"]
        assert format_urls(urls, color=False) == "https://a.sqsc.io\nhttps://b.sqsc.io"

    def test_no_urls(self) -> None:
        assert format_urls([], color=False) == "No load balancer URL available yet."


class TestFormatEnv:
    def test_sorted_with_secrets_masked(self) -> None:
        env = {"NODE_ENV": "production", "POSTGRES_PASSWORD": "x1", "api_token": "t"}
        assert format_env(env, color=False) == (
            "Environment:\n"
            "  NODE_ENV=production\n"
            "  POSTGRES_PASSWORD=********\n"
            "  api_token=********"
        )
