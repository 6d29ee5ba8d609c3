"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation and self-documenting fields (Field) without coupling the
  core to any I/O library.
- The service under test returns ad-hoc JSON; these models are the stable
  shapes the rest of the harness reasons about.

Note:
- These models describe *what* was observed, not *how* it was fetched.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.domain.verdict import Verdict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProbeStep(BaseModel):
    """One HTTP exchange issued by the Request Driver.

    Holds the raw response (status, headers, parsed body) next to what was
    sent, so a run can be replayed by eye from its JSON export.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Step label, e.g. 'chat-store' or 'memory-search'.",
    )
    method: str = Field(
        ...,
        description="HTTP method.",
    )
    path: str = Field(
        ...,
        description="Request path relative to the base URL.",
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Query string parameters.",
    )
    payload: dict[str, Any] | None = Field(
        default=None,
        description="JSON body sent (if any).",
    )
    status_code: int | None = Field(
        default=None,
        description="HTTP status, absent on transport failure.",
    )
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Response headers.",
    )
    body: dict[str, Any] = Field(
        default_factory=dict,
        description="Parsed JSON body ({'raw': text} when not JSON).",
    )
    elapsed_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall time of the exchange in milliseconds.",
    )
    error: str | None = Field(
        default=None,
        description="Transport or HTTP error that aborted the run.",
    )

    @property
    def ok(self) -> bool:
        if self.error is not None or self.status_code is None:
            return False
        return 200 <= self.status_code < 300


class ProbeRun(BaseModel):
    """A Probe Run: the correlation id plus every exchange made for it."""

    run_id: str = Field(
        ...,
        min_length=1,
        description="Opaque per-run identifier, sent as userId.",
    )
    scenario: str = Field(
        ...,
        min_length=1,
        description="Scenario that produced the run.",
    )
    base_url: str = Field(
        ...,
        description="Base URL of the service under test.",
    )
    started_at: datetime = Field(
        default_factory=_utcnow,
        description="Start of the run (UTC).",
    )
    steps: list[ProbeStep] = Field(
        default_factory=list,
        description="Exchanges in the order they were issued.",
    )


class ChatReply(BaseModel):
    """Interpreted view of a study-buddy response."""

    success: bool | None = None
    content: str = ""
    memory_references: list[Any] = Field(default_factory=list)
    layers_used: list[Any] = Field(default_factory=list)
    optimizations_applied: list[Any] = Field(default_factory=list)
    conversation_id: str | None = None
    error: str | None = None


class MemoryListing(BaseModel):
    """Interpreted view of a memory search / student memories response."""

    success: bool | None = None
    memories: list[dict[str, Any]] = Field(default_factory=list)
    context_string: str = ""
    personal_facts: list[Any] = Field(default_factory=list)
    error: str | None = None

    @property
    def count(self) -> int:
        return len(self.memories)


class StoreReceipt(BaseModel):
    """Interpreted view of a memory store response."""

    success: bool | None = None
    message: str = ""
    memory_id: str | None = None
    error: str | None = None


class Check(BaseModel):
    """A labeled boolean judgment printed by the reporter."""

    label: str = Field(..., min_length=1)
    passed: bool | None = Field(
        default=None,
        description="None when the check could not be evaluated (run aborted).",
    )
    detail: str = ""


class ProbeOutcome(BaseModel):
    """What a run concluded: checks, verdict and free-form notes."""

    run: ProbeRun
    checks: list[Check] = Field(default_factory=list)
    verdict: Verdict = Verdict.FAILURE
    notes: list[str] = Field(default_factory=list)
    error: str | None = None

    def check(self, label: str) -> Check | None:
        for item in self.checks:
            if item.label == label:
                return item
        return None


class RouteResult(BaseModel):
    """Result of probing one application route."""

    model_config = ConfigDict(extra="ignore")

    route: str
    url: str
    status_code: int | None = None
    status_text: str = ""
    classification: str = Field(
        default="error",
        description="ok | missing | warn | error | custom-404 | no-custom-404",
    )
    title: str | None = Field(
        default=None,
        description="<title> of the page (only fetched for bogus routes).",
    )
    error: str | None = None


class SqlStatementResult(BaseModel):
    """Result of executing one administrative SQL statement."""

    statement: str
    ok: bool = False
    status_code: int | None = None
    error: str | None = None
