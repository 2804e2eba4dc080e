"""Finalization service - orchestrates scope, collection, computation and commit."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from finalization_engine.calculators.engine import FinalizationEngine
from finalization_engine.calculators.types import (
    FinalizationRecord,
    FinalizationSummary,
    LeaveTransaction,
)
from finalization_engine.errors import (
    CommitError,
    FinalizationNotFoundError,
    RequestValidationError,
)
from finalization_engine.services.data_collector import DataCollector
from finalization_engine.services.scope_resolver import ScopeResolver
from finalization_engine.services.state_machine import (
    FinalizationStage,
    FinalizationStateMachine,
)
from finalization_engine.services.store import FinalizationStore, FinalizationWriter

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Validation errors found"


@dataclass(frozen=True)
class FinalizationRequest:
    """One invocation of the engine."""

    company_id: UUID
    period_start: date
    period_end: date
    timekeeper_id: UUID
    department_id: UUID | None = None
    employee_ids: tuple[UUID, ...] = ()
    preview_only: bool = False

    @classmethod
    def build(
        cls,
        company_id: UUID | None,
        period_start: date | None,
        period_end: date | None,
        timekeeper_id: UUID | None,
        department_id: UUID | None = None,
        employee_ids: list[UUID] | None = None,
        preview_only: bool | None = False,
    ) -> FinalizationRequest:
        """Validate raw invocation fields.

        Raises:
            RequestValidationError: If a required field is missing or the
                period is inverted
        """
        required = {
            "companyId": company_id,
            "periodStart": period_start,
            "periodEnd": period_end,
            "timekeeperId": timekeeper_id,
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise RequestValidationError(missing)

        if period_end < period_start:
            raise RequestValidationError(
                ["periodEnd"], f"periodEnd {period_end} is before periodStart {period_start}"
            )

        return cls(
            company_id=company_id,
            period_start=period_start,
            period_end=period_end,
            timekeeper_id=timekeeper_id,
            department_id=department_id,
            employee_ids=tuple(employee_ids or ()),
            preview_only=bool(preview_only),
        )


@dataclass
class FinalizationOutcome:
    """What a run produced. success is False only for an aborted commit."""

    stage: FinalizationStage
    summary: FinalizationSummary
    preview: bool
    finalization_id: UUID | None = None
    leave_transactions_created: int = 0
    message: str | None = None
    # Side-write failures are logged, never returned to API callers.
    side_write_failures: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.stage == FinalizationStage.DONE

    @property
    def validation_errors(self) -> list[str]:
        return self.summary.validation_errors


class FinalizationService:
    """Runs period finalization for a company.

    Operations:
    - finalize: preview or commit one period/scope
    - reapply_side_writes: re-stamp timesheets and exceptions for a record
    - get_finalization / list_finalizations / list_leave_transactions
    """

    def __init__(self, store: FinalizationStore):
        self.store = store
        self.scope_resolver = ScopeResolver(store)
        self.data_collector = DataCollector(store)

    async def finalize(self, request: FinalizationRequest) -> FinalizationOutcome:
        """Compute a finalization and, unless previewing, persist it.

        Raises:
            ScopeEmptyError: If no employees are in scope
            CollectionError: If any read fails
            CommitError: If the finalization record cannot be written
        """
        employee_ids = await self.scope_resolver.resolve(
            company_id=request.company_id,
            timekeeper_id=request.timekeeper_id,
            department_id=request.department_id,
            employee_ids=list(request.employee_ids),
        )
        data = await self.data_collector.collect(
            employee_ids, request.period_start, request.period_end
        )

        state = FinalizationStateMachine()
        engine = FinalizationEngine(request.period_start, request.period_end)
        summary = engine.compute(request.company_id, data, request.department_id)

        state.transition_to(FinalizationStage.VALIDATING)
        next_stage = FinalizationStateMachine.next_after_validation(
            summary.has_errors, request.preview_only
        )
        state.transition_to(next_stage)

        if next_stage == FinalizationStage.DONE:
            logger.info(
                "Preview for company %s %s..%s: %d employees, %d validation errors",
                request.company_id,
                request.period_start,
                request.period_end,
                summary.total_employees,
                len(summary.validation_errors),
            )
            return FinalizationOutcome(stage=state.stage, summary=summary, preview=True)

        if next_stage == FinalizationStage.ABORTED:
            logger.info(
                "Finalization aborted for company %s %s..%s: %d validation errors",
                request.company_id,
                request.period_start,
                request.period_end,
                len(summary.validation_errors),
            )
            return FinalizationOutcome(stage=state.stage, summary=summary, preview=False)

        outcome = await self._commit(request, summary)
        state.transition_to(FinalizationStage.DONE)
        outcome.stage = state.stage
        return outcome

    async def _commit(
        self,
        request: FinalizationRequest,
        summary: FinalizationSummary,
    ) -> FinalizationOutcome:
        record = FinalizationRecord.from_summary(summary, finalized_by=request.timekeeper_id)
        failures: list[str] = []

        try:
            async with self.store.begin_commit() as writer:
                finalization_id = await writer.upsert_finalization(record)
                # Rows from an overwritten commit go with the old record.
                stale = await writer.clear_leave_transactions(finalization_id)
                if stale:
                    logger.info(
                        "Replacing %d leave transactions of %s", stale, finalization_id
                    )

                await self._side_write(
                    "timesheet sync",
                    writer,
                    failures,
                    lambda: writer.mark_timesheets_synced(
                        finalization_id,
                        record.employee_ids,
                        record.period_start,
                        record.period_end,
                    ),
                )
                await self._side_write(
                    "leave transactions",
                    writer,
                    failures,
                    lambda: writer.insert_leave_transactions(
                        finalization_id,
                        record.company_id,
                        record.period_start,
                        record.period_end,
                        summary.leave_transactions,
                    ),
                )
                created = await writer.sync_leave_transaction_count(finalization_id)
                await self._side_write(
                    "exception processing",
                    writer,
                    failures,
                    lambda: writer.mark_exceptions_processed(
                        record.employee_ids,
                        record.period_start,
                        record.period_end,
                    ),
                )
        except Exception as e:
            logger.exception(
                "Finalization commit failed for company %s %s..%s",
                request.company_id,
                request.period_start,
                request.period_end,
            )
            raise CommitError(
                request.company_id, request.period_start, request.period_end, e
            ) from e

        logger.info(
            "Finalized %s for company %s %s..%s: %d employees, %d leave transactions",
            finalization_id,
            request.company_id,
            request.period_start,
            request.period_end,
            summary.total_employees,
            created,
        )
        return FinalizationOutcome(
            stage=FinalizationStage.COMMITTING,
            summary=summary,
            preview=False,
            finalization_id=finalization_id,
            leave_transactions_created=created,
            message=(
                f"Finalized {summary.total_employees} employees with "
                f"{created} leave transactions"
            ),
            side_write_failures=failures,
        )

    async def _side_write(
        self,
        name: str,
        writer: FinalizationWriter,
        failures: list[str],
        operation: Callable[[], Awaitable[int]],
    ) -> int | None:
        """Run one dependent write in a savepoint; failure is logged, not raised."""
        try:
            async with writer.savepoint():
                count = await operation()
        except Exception:
            logger.warning(
                "Side write '%s' failed; finalization kept", name, exc_info=True
            )
            failures.append(name)
            return None

        logger.debug("Side write '%s' touched %d rows", name, count)
        return count

    async def reapply_side_writes(self, finalization_id: UUID) -> dict[str, int | None]:
        """Re-stamp timesheets and exceptions for an existing finalization.

        Both stamps are idempotent, so this is safe to run repeatedly. Leave
        transactions are rebuilt by committing the period again.

        Raises:
            FinalizationNotFoundError: If the record does not exist
        """
        record = await self.store.get_finalization(finalization_id)
        if record is None:
            raise FinalizationNotFoundError(finalization_id)

        failures: list[str] = []
        async with self.store.begin_commit() as writer:
            timesheets = await self._side_write(
                "timesheet sync",
                writer,
                failures,
                lambda: writer.mark_timesheets_synced(
                    finalization_id,
                    record.employee_ids,
                    record.period_start,
                    record.period_end,
                ),
            )
            exceptions = await self._side_write(
                "exception processing",
                writer,
                failures,
                lambda: writer.mark_exceptions_processed(
                    record.employee_ids,
                    record.period_start,
                    record.period_end,
                ),
            )
            leave_transactions = await writer.sync_leave_transaction_count(finalization_id)

        return {
            "timesheets_synced": timesheets,
            "exceptions_processed": exceptions,
            "leave_transactions": leave_transactions,
        }

    async def get_finalization(self, finalization_id: UUID) -> FinalizationRecord:
        record = await self.store.get_finalization(finalization_id)
        if record is None:
            raise FinalizationNotFoundError(finalization_id)
        return record

    async def list_finalizations(
        self,
        company_id: UUID,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> list[FinalizationRecord]:
        return await self.store.list_finalizations(company_id, period_start, period_end)

    async def list_leave_transactions(self, finalization_id: UUID) -> list[LeaveTransaction]:
        await self.get_finalization(finalization_id)
        return await self.store.list_leave_transactions(finalization_id)
