"""ScanOrchestrator — drives one scan end to end and owns all scan admission state.

Per-subject state machine::

    idle ──request──▶ running ──▶ completed ─┐
                         │                   ├──▶ idle (cooldown starts)
                         └──────▶ failed ────┘

Admission (all checked under one asyncio.Lock, in this order):
    unknown subject               → SubjectNotFound
    subject already running       → ScanInProgress
    inside cooldown window        → ScanCooldown
    bad scan type / sources       → InvalidScanRequest
    missing table / bad weights   → ConfigurationError
    connector slots exhausted     → SystemBusy (fail fast, never queued)

A rejected request changes no state. An admitted scan reserves one operation
slot per connector; each slot is released when its connector call finishes
or times out.

Stages run in a fixed order (collect → classify → merge → score →
recommend) and progress only moves forward. Connector failures and timeouts
are recorded as partial failures. If the caller is cancelled mid-collect,
connectors already in flight run to completion or timeout but their results
are discarded and no ScanResult is produced.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from saas_inventory.classification.manager import ClassificationTableManager
from saas_inventory.classification.table import ClassificationTable
from saas_inventory.config import AppConfig
from saas_inventory.connectors.base import ScanContext, SourceConnector
from saas_inventory.errors import (
    ConfigurationError,
    ConnectorFailure,
    InvalidScanRequest,
    ScanCooldown,
    ScanInProgress,
    SubjectNotFound,
    SystemBusy,
)
from saas_inventory.models.observation import RawObservation
from saas_inventory.models.scan import (
    AppScore,
    ScanProgress,
    ScanResult,
    ScanStage,
    ScanStatus,
    ScanType,
)
from saas_inventory.pipeline.merge import build_inventory, classify_signals, group_observations
from saas_inventory.recommendations import generate_critical_findings, generate_recommendations
from saas_inventory.scoring.app_score import score_inventory
from saas_inventory.scoring.composite import composite_score, grade_for
from saas_inventory.scoring.dimensions import compute_dimensions
from saas_inventory.subjects import Subject, SubjectDirectory

logger = logging.getLogger(__name__)

SCAN_TYPES: tuple[ScanType, ...] = ("quick", "comprehensive", "compliance", "custom")

# Percent reported on entering each stage.
STAGE_PERCENT: dict[ScanStage, int] = {
    "pending": 0,
    "collect": 10,
    "classify": 40,
    "merge": 60,
    "score": 75,
    "recommend": 90,
    "done": 100,
}


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class _SubjectState:
    status: ScanStatus = "idle"
    stage: ScanStage = "pending"
    percent: int = 0
    last_outcome: Literal["completed", "failed"] | None = None
    last_finished_at: datetime | None = None
    last_finished_clock: float | None = None


class ScanOrchestrator:
    def __init__(
        self,
        directory: SubjectDirectory,
        tables: ClassificationTableManager,
        config: AppConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._directory = directory
        self._tables = tables
        self._config = config
        self._clock = clock
        self._lock = asyncio.Lock()
        self._states: dict[str, _SubjectState] = {}
        self._active_operations = 0
        self._inflight: set[asyncio.Task] = set()

    @property
    def active_operations(self) -> int:
        return self._active_operations

    async def request_scan(
        self,
        subject_id: str,
        scan_type: ScanType = "comprehensive",
        sources: list[str] | None = None,
    ) -> ScanResult:
        """Run one scan for the subject and return its immutable ScanResult.

        Raises:
            SubjectNotFound, ScanInProgress, ScanCooldown, SystemBusy,
            InvalidScanRequest, ConfigurationError: request rejected, no state change.
            InternalInvariantViolation: the pipeline produced an inconsistent inventory.
        """
        async with self._lock:
            subject = self._directory.get(subject_id)
            if subject is None:
                raise SubjectNotFound(subject_id)

            state = self._states.get(subject_id) or _SubjectState()
            if state.status == "running":
                logger.info("Rejected scan for %s: already running", subject_id)
                raise ScanInProgress(subject_id)

            remaining = self._cooldown_remaining(state)
            if remaining > 0:
                logger.info("Rejected scan for %s: cooldown %.1fs remaining", subject_id, remaining)
                raise ScanCooldown(subject_id, remaining)

            connectors = self._select_connectors(subject, scan_type, sources)
            self._config.scoring.validate()
            table = self._tables.current

            limit = self._config.orchestrator.max_concurrent_operations
            needed = len(connectors)
            if needed > limit:
                raise ConfigurationError(
                    f"subject {subject_id} needs {needed} connectors but "
                    f"max_concurrent_operations is {limit}"
                )
            if self._active_operations + needed > limit:
                logger.info("Rejected scan for %s: system busy", subject_id)
                raise SystemBusy(self._active_operations, needed, limit)

            self._active_operations += needed
            self._states[subject_id] = state
            state.status = "running"
            state.stage = "pending"
            state.percent = 0
            logger.info(
                "Scan started for %s (%s, %d sources)", subject_id, scan_type, needed
            )

        outcome: Literal["completed", "failed"] = "failed"
        try:
            context = ScanContext(
                subject_id=subject_id, scan_type=scan_type, credential=subject.credential
            )
            result = await self._run(context, state, connectors, table)
            outcome = "completed"
            return result
        finally:
            self._finish(subject_id, state, outcome)

    def get_status(self, subject_id: str) -> ScanProgress:
        if self._directory.get(subject_id) is None:
            raise SubjectNotFound(subject_id)
        state = self._states.get(subject_id) or _SubjectState()
        return ScanProgress(
            subject_id=subject_id,
            status=state.status,
            stage=state.stage,
            percent=state.percent,
            last_outcome=state.last_outcome,
            last_finished_at=state.last_finished_at,
            cooldown_remaining_seconds=round(self._cooldown_remaining(state), 3),
        )

    async def _run(
        self,
        context: ScanContext,
        state: _SubjectState,
        connectors: list[SourceConnector],
        table: ClassificationTable,
    ) -> ScanResult:
        scoring = self._config.scoring

        self._advance(state, "collect")
        observations, failures = await self._collect(connectors, context)

        self._advance(state, "classify")
        grouped = group_observations(observations)
        classifications = classify_signals(grouped, table)

        self._advance(state, "merge")
        inventory = build_inventory(grouped, classifications, table)

        self._advance(state, "score")
        app_scores = tuple(
            AppScore(domain=domain, score=score)
            for domain, score in sorted(score_inventory(inventory, scoring).items())
        )
        dimensions = compute_dimensions(inventory, scoring, context.started_at)
        composite = composite_score(dimensions, scoring)

        self._advance(state, "recommend")
        recommendations = generate_recommendations(
            inventory, scoring, context.started_at, failures
        )
        findings = generate_critical_findings(inventory)

        result = ScanResult(
            subject_id=context.subject_id,
            scan_type=context.scan_type,
            scope_description=(
                f"{context.scan_type.capitalize()} scan of {len(inventory)} applications"
            ),
            inventory=inventory,
            app_scores=app_scores,
            dimension_scores=dimensions,
            composite_score=composite,
            grade=grade_for(composite),
            recommendations=tuple(recommendations),
            critical_findings=tuple(findings),
            sources_scanned=frozenset(c.source_id for c in connectors),
            partial_failures=frozenset(failures),
        )
        self._advance(state, "done")
        logger.info(
            "Scan completed for %s: %d apps, score %.1f (%s), %d partial failures",
            context.subject_id,
            len(inventory),
            composite,
            result.grade,
            len(failures),
        )
        return result

    async def _collect(
        self, connectors: list[SourceConnector], context: ScanContext
    ) -> tuple[list[RawObservation], set[str]]:
        tasks = [asyncio.create_task(self._run_connector(c, context)) for c in connectors]
        for task in tasks:
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

        # Shielded: cancelling the scan must not cancel connectors mid-call.
        outcomes = await asyncio.shield(asyncio.gather(*tasks))

        observations: list[RawObservation] = []
        failures: set[str] = set()
        for source_id, collected in outcomes:
            if collected is None:
                failures.add(source_id)
            else:
                observations.extend(collected)
        return observations, failures

    async def _run_connector(
        self, connector: SourceConnector, context: ScanContext
    ) -> tuple[str, list[RawObservation] | None]:
        source_id = connector.source_id
        timeout = self._config.orchestrator.connector_timeout_seconds
        try:
            collected = await asyncio.wait_for(_materialize(connector, context), timeout)
        except asyncio.TimeoutError:
            logger.warning("Connector %s timed out after %.1fs", source_id, timeout)
            return source_id, None
        except ConnectorFailure as exc:
            logger.warning("Connector %s failed: %s", source_id, exc.reason)
            return source_id, None
        except Exception:
            logger.exception("Connector %s raised unexpectedly", source_id)
            return source_id, None
        finally:
            self._active_operations -= 1
        logger.debug("Connector %s returned %d observations", source_id, len(collected))
        return source_id, collected

    def _select_connectors(
        self, subject: Subject, scan_type: ScanType, sources: list[str] | None
    ) -> list[SourceConnector]:
        if scan_type not in SCAN_TYPES:
            raise InvalidScanRequest(f"unknown scan type: {scan_type}")

        if scan_type == "custom":
            if not sources:
                raise InvalidScanRequest("custom scans must name at least one source")
            available = {c.source_id for c in subject.connectors}
            unknown = sorted(set(sources) - available)
            if unknown:
                raise InvalidScanRequest(f"unknown sources for {subject.subject_id}: {unknown}")
            return [c for c in subject.connectors if c.source_id in sources]

        if sources:
            raise InvalidScanRequest("sources may only be given for custom scans")
        if scan_type == "quick":
            return [c for c in subject.connectors if c.quick_capable]
        return list(subject.connectors)

    def _advance(self, state: _SubjectState, stage: ScanStage) -> None:
        percent = STAGE_PERCENT[stage]
        if percent < state.percent:
            return
        state.stage = stage
        state.percent = percent
        logger.debug("Scan stage %s (%d%%)", stage, percent)

    def _finish(
        self, subject_id: str, state: _SubjectState, outcome: Literal["completed", "failed"]
    ) -> None:
        state.last_outcome = outcome
        state.last_finished_at = _utcnow()
        state.last_finished_clock = self._clock()
        state.status = "idle"
        if outcome == "failed":
            logger.warning("Scan failed for %s at stage %s", subject_id, state.stage)

    def _cooldown_remaining(self, state: _SubjectState) -> float:
        if state.last_finished_clock is None:
            return 0.0
        elapsed = self._clock() - state.last_finished_clock
        return max(0.0, self._config.orchestrator.cooldown_seconds - elapsed)


async def _materialize(
    connector: SourceConnector, context: ScanContext
) -> list[RawObservation]:
    """Await the connector and drain its sequence, enforcing the observation contract."""
    collected = list(await connector.scan(context))
    for observation in collected:
        if not isinstance(observation, RawObservation):
            raise ConnectorFailure(
                connector.source_id, f"emitted {type(observation).__name__}, not RawObservation"
            )
        if observation.source_id != connector.source_id:
            raise ConnectorFailure(
                connector.source_id,
                f"emitted observation for foreign source {observation.source_id}",
            )
    return collected
