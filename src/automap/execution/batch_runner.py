"""
Bounded, concurrent driver over the platform's event types.

Each event type runs its own strictly sequential remote sequence
(fetch → auto-map → create table → commit mapping) inside a semaphore slot.
Nothing is shared between event types, so a failure in one is logged and
recorded without touching the others.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from automap.adapters.platform_client import PlatformClient
from automap.canonical.event_type import EventType, EventTypeSummary
from automap.execution.config_executor import RunSettings
from automap.governance.policy import EventTypeFilter, MappingMode, resolve_target
from automap.observability.audit_logger import AuditLogger
from automap.observability.logger import RequestTimer, generate_request_id, log_event
from automap.pipeline.annotator import find_unmapped_fields
from automap.pipeline.traits import scrub_traits
from automap.router import build_commit_payload, remap_event_type
from automap.standards.rule_config import RuleConfig


class RunStatus:
    COMPLETED = "COMPLETED"
    DRY_RUN = "DRY_RUN"
    FAILED = "FAILED"


@dataclass
class EventTypeResult:
    name: str
    status: str
    step: Optional[str] = None
    error: Optional[str] = None
    summary: Dict[str, Any] = field(default_factory=dict)
    unmapped_fields: List[str] = field(default_factory=list)
    scrubbed: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status == RunStatus.FAILED


@dataclass
class BatchReport:
    action: str
    results: List[EventTypeResult] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return dict(Counter(r.status for r in self.results))

    @property
    def has_failures(self) -> bool:
        return any(r.failed for r in self.results)

    def failed_names(self) -> List[str]:
        return [r.name for r in self.results if r.failed]


class _StepTracker:
    def __init__(self):
        self.step = "start"


class BatchRunner:
    """
    Runs one action (remap, scrub traits, delete) over every selected event
    type with at most `settings.concurrency` event types in flight.
    """

    def __init__(
        self,
        client: PlatformClient,
        rules: RuleConfig,
        settings: RunSettings,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.client = client
        self.rules = rules
        self.settings = settings
        self.audit_logger = audit_logger or AuditLogger(user_id=settings.email or "anonymous")
        self.request_id = generate_request_id()

    # ------------------------------------------
    # Public actions
    # ------------------------------------------
    async def remap_all(self) -> BatchReport:
        return await self._run("REMAP", self._remap_one, self.settings.event_filter)

    async def scrub_traits_all(self) -> BatchReport:
        return await self._run("SCRUB_TRAITS", self._scrub_one, self.settings.event_filter)

    async def delete_all(self) -> BatchReport:
        return await self._run("DELETE", self._delete_one, self.settings.event_filter)

    # ------------------------------------------
    # Fan-out
    # ------------------------------------------
    async def _run(self, action: str, worker: Callable, event_filter: EventTypeFilter) -> BatchReport:
        timer = RequestTimer()

        await self.client.login()
        listing = await self.client.list_event_types()
        selected = event_filter.select(listing)

        chosen = {s.name for s in selected}
        for summary in listing:
            if summary.name not in chosen:
                log_event("EVENT_TYPE_SKIPPED", {
                    "request_id": self.request_id,
                    "action": action,
                    "event_type": summary.name,
                    "state": summary.state,
                }, level=logging.DEBUG)

        log_event("BATCH_STARTED", {
            "request_id": self.request_id,
            "action": action,
            "listed": len(listing),
            "selected": len(selected),
            "concurrency": self.settings.concurrency,
            "dry_run": self.settings.dry_run,
        })

        semaphore = asyncio.Semaphore(self.settings.concurrency)

        async def bounded(summary: EventTypeSummary) -> EventTypeResult:
            async with semaphore:
                return await self._isolated(action, summary, worker)

        results = await asyncio.gather(*(bounded(s) for s in selected))
        report = BatchReport(action=action, results=list(results))

        log_event("BATCH_COMPLETED", {
            "request_id": self.request_id,
            "action": action,
            "counts": report.counts,
            "failed": report.failed_names(),
            "duration_seconds": timer.duration(),
        })
        return report

    async def _isolated(
        self,
        action: str,
        summary: EventTypeSummary,
        worker: Callable[[EventTypeSummary, _StepTracker], Awaitable[EventTypeResult]],
    ) -> EventTypeResult:
        timer = RequestTimer()
        tracker = _StepTracker()

        log_event("EVENT_TYPE_STARTED", {
            "request_id": self.request_id,
            "action": action,
            "event_type": summary.name,
            "state": summary.state,
        })

        try:
            result = await worker(summary, tracker)
        except Exception as e:
            result = EventTypeResult(
                name=summary.name,
                status=RunStatus.FAILED,
                step=tracker.step,
                error=str(e),
            )
            result.duration_seconds = timer.duration()
            log_event("EVENT_TYPE_FAILED", {
                "request_id": self.request_id,
                "action": action,
                "event_type": summary.name,
                "step": tracker.step,
                "error": str(e),
                "duration_seconds": result.duration_seconds,
            }, level=logging.ERROR)
        else:
            result.duration_seconds = timer.duration()
            log_event("EVENT_TYPE_COMPLETED", {
                "request_id": self.request_id,
                "action": action,
                "event_type": summary.name,
                "status": result.status,
                "summary": result.summary,
                "duration_seconds": result.duration_seconds,
            })

        self.audit_logger.persist(self.audit_logger.build_record(
            request_id=self.request_id,
            action=action,
            event_type=summary.name,
            status=result.status,
            summary=result.summary,
            error=result.error,
        ))
        return result

    # ------------------------------------------
    # Workers
    # ------------------------------------------
    async def _remap_one(self, summary: EventTypeSummary, tracker: _StepTracker) -> EventTypeResult:
        name = summary.name

        tracker.step = "fetch"
        raw = await self.client.get_event_type(name)
        unmapped = find_unmapped_fields(EventType.from_dict(raw))

        tracker.step = "auto_map"
        auto_mapped = await self.client.run_auto_map(raw)

        tracker.step = "annotate"
        outcome = remap_event_type(auto_mapped, self.rules)
        schema, table = resolve_target(outcome.event_type.name, self.settings.target_schema)

        result = EventTypeResult(
            name=name,
            status=RunStatus.DRY_RUN if self.settings.dry_run else RunStatus.COMPLETED,
            summary={**outcome.summary, "schema": schema, "table": table},
            unmapped_fields=unmapped,
        )
        if self.settings.dry_run:
            return result

        if self.settings.create_table:
            tracker.step = "create_table"
            await self.client.create_table(schema, table, outcome.columns)

        tracker.step = "commit_mapping"
        await self.client.commit_mapping(
            outcome.event_type.name,
            build_commit_payload(outcome.event_type, schema, table, MappingMode.STRICT),
        )
        return result

    async def _scrub_one(self, summary: EventTypeSummary, tracker: _StepTracker) -> EventTypeResult:
        tracker.step = "fetch"
        event_type = EventType.from_dict(await self.client.get_event_type(summary.name))

        tracker.step = "scrub_traits"
        scrubbed = scrub_traits(event_type, self.rules)
        schema, table = self._existing_target(event_type)

        result = EventTypeResult(
            name=summary.name,
            status=RunStatus.DRY_RUN if self.settings.dry_run else RunStatus.COMPLETED,
            summary={"scrubbed": len(scrubbed), "schema": schema, "table": table},
            scrubbed=scrubbed,
        )
        if self.settings.dry_run:
            return result

        tracker.step = "commit_mapping"
        await self.client.commit_mapping(
            event_type.name,
            build_commit_payload(event_type, schema, table, MappingMode.STRICT),
        )
        return result

    async def _delete_one(self, summary: EventTypeSummary, tracker: _StepTracker) -> EventTypeResult:
        result = EventTypeResult(
            name=summary.name,
            status=RunStatus.DRY_RUN if self.settings.dry_run else RunStatus.COMPLETED,
        )
        if self.settings.dry_run:
            return result

        tracker.step = "delete"
        await self.client.delete_event_type(summary.name)
        return result

    def _existing_target(self, event_type: EventType):
        # Mapped event types keep the table they are already routed to
        mapping = event_type.mapping or {}
        if mapping.get("schema") and mapping.get("tableName"):
            return mapping["schema"], mapping["tableName"]
        return resolve_target(event_type.name, self.settings.target_schema)
