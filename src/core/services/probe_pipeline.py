"""Probe run orchestration.

This module holds the diagnostic scenarios (store, wait, recall, judge) and
the single entry point that runs one of them against the service. The CLI
only renders what comes back, which keeps printing and progress output out of
the core logic and lets tests drive a whole run through a mock transport.

Every scenario is strictly sequential: one request in flight, steps in the
order written, and a fixed wait between the store and the recall step. The
wait is a heuristic, not a synchronization barrier.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping

import httpx

from adapters.http_client import build_async_client
from adapters.memory_api import MemoryApiDriver
from core.config import AppSettings
from core.domain.errors import ProbeAborted
from core.domain.models import Check, ProbeOutcome, ProbeRun, ProbeStep
from core.domain.verdict import Verdict
from core.interfaces.driver import ProbeDriver
from core.services.interpreter import (
    has_memory_optimization,
    has_memory_references,
    interpret_chat,
    interpret_memories,
    interpret_store,
    is_memory_aware,
    memory_layer_active,
    mentions,
    preview,
    summarize_memories,
)

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

DEFAULT_QUESTION = "do you know my name?"


def generate_run_id(prefix: str, *, now: float | None = None) -> str:
    """`<prefix>-<epoch millis>`; unique per run as long as runs are >1 ms apart."""

    stamp = int((time.time() if now is None else now) * 1000)
    return f"{prefix}-{stamp}"


@dataclass
class ProbeRequest:
    """Parameters that control one probe run."""

    scenario: str = "quick"
    user_id: str | None = None
    name_token: str | None = None
    statement: str | None = None
    question: str = DEFAULT_QUESTION
    recall_delay_seconds: float | None = None


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    step: Callable[[ProbeStep], None] | None = None
    waiting: Callable[[float], None] | None = None
    warning: Callable[[str], None] | None = None


@dataclass
class PipelineResult:
    """Output of a pipeline invocation."""

    outcome: ProbeOutcome
    warnings: list[str] = field(default_factory=list)


@dataclass
class ScenarioContext:
    """Everything a scenario needs; scenarios append checks and notes here."""

    driver: ProbeDriver
    user_id: str
    token: str
    statement: str
    question: str
    delay: float
    memory_layer: int
    sleep: SleepFn
    hooks: PipelineHooks
    checks: list[Check] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    async def wait(self) -> None:
        if self.hooks.waiting:
            self.hooks.waiting(self.delay)
        await self.sleep(self.delay)

    def add_check(self, label: str, passed: bool | None, detail: str = "") -> bool:
        self.checks.append(Check(label=label, passed=passed, detail=detail))
        return bool(passed)


ScenarioFn = Callable[[ScenarioContext], Awaitable[Verdict]]


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    id_prefix: str
    run: ScenarioFn
    abort_notes: Mapping[str, str] = field(default_factory=dict)


async def _quick(ctx: ScenarioContext) -> Verdict:
    stored = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.statement, name="chat-store")).body)
    ctx.add_check("Store reply success", stored.success, preview(stored.content))

    await ctx.wait()

    recall = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.question, name="chat-recall")).body)
    recalled = ctx.add_check(f'Recall mentions "{ctx.token}"', mentions(recall.content, ctx.token), preview(recall.content))
    layer = ctx.add_check("Memory layer active", memory_layer_active(recall, ctx.memory_layer), f"layersUsed={recall.layers_used}")
    refs = ctx.add_check("Memory references", has_memory_references(recall), f"{len(recall.memory_references)} reference(s)")

    if recalled:
        ctx.notes.append("Memory storage and retrieval are functioning.")
    else:
        ctx.notes.extend(
            [
                "Memory system still needs work. Possible remaining issues:",
                "1. Migration incomplete",
                "2. RLS policies blocking access",
                "3. Memory context not being passed to the AI",
            ]
        )
    return Verdict.grade(recalled, progress=layer or refs)


async def _debug(ctx: ScenarioContext) -> Verdict:
    receipt = interpret_store((await ctx.driver.store_memory(user_id=ctx.user_id, content=ctx.statement)).body)
    stored = ctx.add_check("Memory storage", receipt.success, receipt.message or (receipt.error or ""))

    listing = interpret_memories((await ctx.driver.search_memories(user_id=ctx.user_id, query="my name")).body)
    found = ctx.add_check("Memory retrieval", listing.success is True and listing.count > 0, f"{listing.count} memories found")

    first = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.statement, name="chat-store")).body)
    ctx.add_check("Store reply success", first.success, preview(first.content))

    await ctx.wait()

    recall = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.question, name="chat-recall")).body)
    recalled = ctx.add_check(f'Recall mentions "{ctx.token}"', mentions(recall.content, ctx.token), preview(recall.content, 200))
    ctx.add_check("Memory context active", memory_layer_active(recall, ctx.memory_layer), f"layersUsed={recall.layers_used}")
    ctx.add_check("Memory references", has_memory_references(recall), f"{len(recall.memory_references)} reference(s)")
    ctx.add_check("Memory aware reply", is_memory_aware(recall))

    if not recalled:
        ctx.notes.extend(
            [
                "Memory is still not working. Possible causes:",
                "1. Memory not being stored in database",
                "2. Memory retrieval failing",
                "3. Memory context not being passed to AI",
                "4. AI not using the provided context",
            ]
        )
    return Verdict.grade(recalled, progress=stored and found)


async def _comprehensive(ctx: ScenarioContext) -> Verdict:
    access = interpret_memories(
        (await ctx.driver.list_student_memories(user_id=ctx.user_id, name="table-access")).body
    )
    if access.success is not True:
        ctx.add_check("Database accessible", False, access.error or "")
        ctx.notes.append("Database access is still failing.")
        return Verdict.FAILURE

    first = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.statement, name="chat-store")).body)
    ctx.add_check("Store reply success", first.success, preview(first.content))

    await ctx.wait()

    stored = interpret_memories(
        (await ctx.driver.list_student_memories(user_id=ctx.user_id, name="memory-verify")).body
    )
    recall = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.question, name="chat-recall")).body)

    db_accessible = ctx.add_check("Database accessible", stored.success is True, stored.error or "")
    has_stored = ctx.add_check("Memories stored", stored.count > 0, f"{stored.count} memories found")
    recalled = ctx.add_check(f'Recall mentions "{ctx.token}"', mentions(recall.content, ctx.token), preview(recall.content, 150))
    ctx.add_check("Memory layer active", memory_layer_active(recall, ctx.memory_layer), f"layersUsed={recall.layers_used}")

    if recalled:
        ctx.notes.append("Memory system is fully working.")
        return Verdict.SUCCESS
    if has_stored:
        ctx.notes.append("Memory is stored but not being used by the AI: context is not passed to the model.")
        return Verdict.PARTIAL
    if db_accessible:
        ctx.notes.append("Table is accessible but memory storage is failing: RLS or other permissions block inserts.")
        return Verdict.PARTIAL
    ctx.notes.append("conversation_memory may not exist or RLS is still blocking access.")
    return Verdict.FAILURE


async def _storage(ctx: ScenarioContext) -> Verdict:
    conversation_id = generate_run_id("test-conv")
    first = interpret_chat(
        (
            await ctx.driver.chat(
                user_id=ctx.user_id,
                message=ctx.statement,
                name="chat-store",
                conversation_id=conversation_id,
            )
        ).body
    )
    ctx.add_check("Store reply success", first.success, f"conversationId={first.conversation_id}")

    await ctx.wait()

    listing = interpret_memories((await ctx.driver.list_student_memories(user_id=ctx.user_id)).body)
    logger.info("Memories for %s: %s", ctx.user_id, summarize_memories(listing))
    recall = interpret_chat(
        (
            await ctx.driver.chat(
                user_id=ctx.user_id,
                message=ctx.question,
                name="chat-recall",
                conversation_id=first.conversation_id or conversation_id,
            )
        ).body
    )

    has_stored = ctx.add_check("Memory storage working", listing.count > 0, f"{listing.count} memories found")
    recalled = ctx.add_check("Memory recall working", mentions(recall.content, ctx.token), preview(recall.content))

    if not has_stored:
        ctx.notes.extend(
            [
                "Memory storage is failing. Possible causes:",
                '1. Table "conversation_memory" missing or wrong schema',
                "2. Database permissions/RLS policies blocking inserts",
                "3. storeMemory() throwing silent errors",
                "4. Database client configuration issues",
            ]
        )
    if has_stored and recalled:
        return Verdict.SUCCESS
    if has_stored or recalled:
        return Verdict.PARTIAL
    return Verdict.FAILURE


async def _diagnose(ctx: ScenarioContext) -> Verdict:
    health = await ctx.driver.ping_chat()
    ctx.add_check("Chat API reachable", True, f"HTTP {health.status_code}")

    first = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.statement, name="chat-store")).body)
    ctx.add_check("Store reply success", first.success, preview(first.content))

    await ctx.wait()

    recall = interpret_chat((await ctx.driver.chat(user_id=ctx.user_id, message=ctx.question, name="chat-recall")).body)
    listing = interpret_memories((await ctx.driver.list_student_memories(user_id=ctx.user_id)).body)

    has_stored = ctx.add_check("Memories found", listing.count > 0, f"{listing.count} memories found")
    recalled = ctx.add_check("Name recognition", mentions(recall.content, ctx.token), preview(recall.content, 150))
    ctx.add_check("Memory optimization applied", has_memory_optimization(recall), f"{recall.optimizations_applied}")
    ctx.add_check("Memory layer active", memory_layer_active(recall, ctx.memory_layer), f"layersUsed={recall.layers_used}")

    if not has_stored:
        ctx.notes.append("No memories found: the issue is memory storage.")
    elif not recalled:
        ctx.notes.append("Memories exist but the name is not recognized: the issue is retrieval/context.")
    elif not is_memory_aware(recall):
        ctx.notes.append("Both work but the AI ignores the context: the issue is prompt integration.")

    if has_stored and recalled:
        return Verdict.SUCCESS
    if has_stored or recalled:
        return Verdict.PARTIAL
    return Verdict.FAILURE


SCENARIOS: dict[str, Scenario] = {
    s.name: s
    for s in (
        Scenario(
            name="quick",
            description="chat store, wait, chat recall",
            id_prefix="quick-test",
            run=_quick,
        ),
        Scenario(
            name="debug",
            description="memory store + search, then chat store, wait, chat recall",
            id_prefix="debug-user",
            run=_debug,
        ),
        Scenario(
            name="comprehensive",
            description="table access, chat store, wait, verify stored, chat recall",
            id_prefix="comprehensive-test",
            run=_comprehensive,
            abort_notes={
                "table-access": "conversation_memory may not exist or RLS is blocking access.",
                "memory-verify": "Memory listing failed after the store step.",
            },
        ),
        Scenario(
            name="storage",
            description="chat store with conversation id, wait, list memories, recall in same conversation",
            id_prefix="debug-storage",
            run=_storage,
        ),
        Scenario(
            name="diagnose",
            description="reachability, chat store, wait, recall, list memories",
            id_prefix="diagnostic-user",
            run=_diagnose,
            abort_notes={"chat-health": "Study Buddy API not accessible."},
        ),
    )
}


def get_scenario(name: str) -> Scenario:
    try:
        return SCENARIOS[name.strip().lower()]
    except KeyError:
        known = ", ".join(sorted(SCENARIOS))
        raise ValueError(f"Unknown scenario {name!r} (expected one of: {known})") from None


async def run_probe(
    *,
    settings: AppSettings,
    request: ProbeRequest,
    hooks: PipelineHooks | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep: SleepFn | None = None,
) -> PipelineResult:
    hooks = hooks or PipelineHooks()
    warnings: list[str] = []
    scenario = get_scenario(request.scenario)

    token = (request.name_token or settings.name_token).strip()
    statement = request.statement or f"my name is {token}"
    delay = settings.recall_delay_seconds if request.recall_delay_seconds is None else request.recall_delay_seconds
    user_id = request.user_id or generate_run_id(scenario.id_prefix)

    if delay <= 0:
        message = "No wait between store and recall: the recall may race the write."
        warnings.append(message)
        if hooks.warning:
            hooks.warning(message)
    if not mentions(statement, token):
        message = f'Stored statement does not contain "{token}": recall checks will fail.'
        warnings.append(message)
        if hooks.warning:
            hooks.warning(message)

    run = ProbeRun(run_id=user_id, scenario=scenario.name, base_url=settings.base_url)
    logger.info("Probe run %s (%s) against %s", run.run_id, scenario.name, settings.base_url)

    verdict: Verdict
    error: str | None = None
    async with build_async_client(settings, transport=transport) as client:
        driver = MemoryApiDriver(client, chat_type=settings.chat_type, on_step=hooks.step)
        ctx = ScenarioContext(
            driver=driver,
            user_id=user_id,
            token=token,
            statement=statement,
            question=request.question,
            delay=delay,
            memory_layer=settings.memory_layer,
            sleep=sleep or asyncio.sleep,
            hooks=hooks,
        )
        try:
            verdict = await scenario.run(ctx)
        except ProbeAborted as exc:
            logger.error("Run %s aborted: %s", run.run_id, exc)
            verdict = Verdict.ABORTED
            error = str(exc)
            note = scenario.abort_notes.get(exc.step.name)
            if note:
                ctx.notes.append(note)

    run.steps = list(driver.steps)
    outcome = ProbeOutcome(
        run=run,
        checks=ctx.checks,
        verdict=verdict,
        notes=ctx.notes,
        error=error,
    )
    logger.info("Run %s finished: %s", run.run_id, verdict.value)
    return PipelineResult(outcome=outcome, warnings=warnings)
