"""Slack webhook handler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqsc_provisioner.engine.handlers import ResourceHandler

if TYPE_CHECKING:
    from sqsc_provisioner.engine.handlers import EngineContext
    from sqsc_provisioner.resources.slackbot import SlackbotResource


class SlackbotHandler(ResourceHandler["SlackbotResource"]):
    """Handler for the project's Slack notification webhook."""

    def read(self, ctx: EngineContext, desired: SlackbotResource) -> dict[str, Any] | None:
        _ = desired
        out = ctx.runner.read("project", "slackbot", *ctx.scope())
        webhook = (out or "").strip()
        if not webhook:
            return None
        return {"webhook": webhook}

    def desired_attrs(
        self, ctx: EngineContext, desired: SlackbotResource, observed: dict[str, Any]
    ) -> dict[str, Any]:
        _ = ctx, observed
        return {"webhook": desired.webhook}

    def create(self, ctx: EngineContext, desired: SlackbotResource) -> dict[str, Any]:
        ctx.runner.mutate("project", "slackbot", *ctx.scope(), desired.webhook)
        return {"webhook": desired.webhook}

    def update(
        self,
        ctx: EngineContext,
        desired: SlackbotResource,
        observed: dict[str, Any],
        diff: dict[str, Any],
    ) -> dict[str, Any]:
        _ = observed, diff
        return self.create(ctx, desired)
