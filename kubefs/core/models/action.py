"""
Action and Receipt models — the contract with the command executor.

The core compiles manifest entities into Actions (one external command
each). The executor collaborator runs them and answers with Receipts.
Failures travel inside the Receipt; the executor never raises.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """One external command to run on behalf of an entity."""

    id: str                          # e.g. "deploy:svc:1"
    adapter: str = "shell"
    command: str
    cwd: str | None = None           # None = project root
    for_entity: str | None = None    # None = project-wide (context switch, compose)
    stream: bool = False             # inherit the terminal instead of capturing output


class Receipt(BaseModel):
    """Outcome of running one Action."""

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def diagnostics(self) -> str:
        """Everything the command printed, for surfacing a failure verbatim."""
        parts = [self.error or "", self.metadata.get("stdout", ""), self.output]
        return "\n".join(p for p in parts if p).strip()

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)
