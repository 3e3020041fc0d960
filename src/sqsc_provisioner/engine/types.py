"""Engine types (outcomes, per-resource results, run results)."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Outcome(str, Enum):
    UNCHANGED = "unchanged"
    CREATED = "created"
    UPDATED = "updated"


class EnsureResult(BaseModel):
    address: str
    resource_type: str
    outcome: Outcome
    observed: dict[str, Any] | None = None
    diff: dict[str, Any] | None = None
    dry_run: bool = False


class RunResult(BaseModel):
    results: list[EnsureResult] = Field(default_factory=list)

    def summary(self) -> dict[str, int]:
        counts = {o.value: 0 for o in Outcome}
        for r in self.results:
            counts[r.outcome.value] += 1
        return counts
