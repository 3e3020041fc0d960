"""Slack notification webhook resource model."""

from __future__ import annotations

from typing import ClassVar, Literal

from pydantic import Field

from sqsc_provisioner.resources.base import Resource


class SlackbotResource(Resource):
    """Slack webhook receiving the project's notifications (singleton per project)."""

    resource_type: ClassVar[str] = "sqsc_slackbot"

    name: Literal["slackbot"] = "slackbot"
    webhook: str = Field(pattern=r"^https?://")
