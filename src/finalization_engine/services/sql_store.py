"""SQLAlchemy implementation of the finalization store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from finalization_engine.calculators.types import (
    AttendanceException,
    EmployeeRef,
    FinalizationRecord,
    LeaveRequest,
    LeaveTransaction,
    SalaryRecord,
    TimeEntry,
)
from finalization_engine.models import (
    AttendanceException as AttendanceExceptionRow,
    Employee,
    EmployeeSalary,
    LeavePayrollTransaction,
    LeaveRequest as LeaveRequestRow,
    LeaveType as LeaveTypeRow,
    PeriodFinalization,
    TimeClockEntry,
    TimekeeperAssignment,
    TimesheetSubmission,
    scope_key_for,
)
from finalization_engine.services import row_mapping

FINALIZATION_KEY = ["company_id", "period_start", "period_end", "scope_key"]

# Columns overwritten when a finalization for the same key is committed again.
FINALIZATION_OVERWRITE = [
    "department_id",
    "finalized_by",
    "finalized_at",
    "status",
    "employee_count",
    "total_regular_hours",
    "total_overtime_hours",
    "absences_excused",
    "absences_unexcused",
    "leave_transactions_created",
    "employee_ids",
]


def _upsert_insert(session: AsyncSession) -> Any:
    """Return the dialect insert() that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Upsert not supported for dialect {dialect!r}")


class SqlAlchemyFinalizationWriter:
    """Commit-time writes sharing one session and transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        async with self.session.begin_nested():
            yield

    async def upsert_finalization(self, record: FinalizationRecord) -> UUID:
        scope_key = scope_key_for(record.department_id)
        insert_fn = _upsert_insert(self.session)

        stmt = insert_fn(PeriodFinalization).values(
            id=uuid4(),
            company_id=record.company_id,
            period_start=record.period_start,
            period_end=record.period_end,
            department_id=record.department_id,
            scope_key=scope_key,
            finalized_by=record.finalized_by,
            finalized_at=datetime.now(timezone.utc),
            status=record.status,
            employee_count=record.employee_count,
            total_regular_hours=record.total_regular_hours,
            total_overtime_hours=record.total_overtime_hours,
            absences_excused=record.absences_excused,
            absences_unexcused=record.absences_unexcused,
            leave_transactions_created=record.leave_transactions_created,
            employee_ids=[str(e) for e in record.employee_ids],
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=FINALIZATION_KEY,
            set_={col: stmt.excluded[col] for col in FINALIZATION_OVERWRITE},
        )
        await self.session.execute(stmt)

        # The id survives overwrites, so read it back by key.
        result = await self.session.execute(
            select(PeriodFinalization.id).where(
                PeriodFinalization.company_id == record.company_id,
                PeriodFinalization.period_start == record.period_start,
                PeriodFinalization.period_end == record.period_end,
                PeriodFinalization.scope_key == scope_key,
            )
        )
        return result.scalar_one()

    async def clear_leave_transactions(self, finalization_id: UUID) -> int:
        result = await self.session.execute(
            delete(LeavePayrollTransaction)
            .where(LeavePayrollTransaction.finalization_id == finalization_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def insert_leave_transactions(
        self,
        finalization_id: UUID,
        company_id: UUID,
        period_start: date,
        period_end: date,
        transactions: list[LeaveTransaction],
    ) -> int:
        if not transactions:
            return 0

        rows = [
            {
                "id": uuid4(),
                "finalization_id": finalization_id,
                "company_id": company_id,
                "employee_id": txn.employee_id,
                "leave_request_id": txn.leave_request_id,
                "leave_type_id": txn.leave_type_id,
                "period_start": period_start,
                "period_end": period_end,
                "days_in_period": txn.days_in_period,
                "daily_rate": txn.daily_rate,
                "payment_percentage": txn.payment_percentage,
                "gross_amount": txn.gross_amount,
                "net_amount": txn.net_amount,
                "deduction_amount": txn.deduction_amount,
                "transaction_type": txn.transaction_type.value,
                "currency": txn.currency,
            }
            for txn in transactions
        ]
        await self.session.execute(insert(LeavePayrollTransaction), rows)
        return len(rows)

    async def sync_leave_transaction_count(self, finalization_id: UUID) -> int:
        count = await self.session.scalar(
            select(func.count())
            .select_from(LeavePayrollTransaction)
            .where(LeavePayrollTransaction.finalization_id == finalization_id)
        )
        count = count or 0
        await self.session.execute(
            update(PeriodFinalization)
            .where(PeriodFinalization.id == finalization_id)
            .values(leave_transactions_created=count)
            .execution_options(synchronize_session=False)
        )
        return count

    async def mark_timesheets_synced(
        self,
        finalization_id: UUID,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> int:
        result = await self.session.execute(
            update(TimesheetSubmission)
            .where(
                TimesheetSubmission.employee_id.in_(employee_ids),
                TimesheetSubmission.period_start >= period_start,
                TimesheetSubmission.period_end <= period_end,
            )
            .values(
                payroll_synced=True,
                payroll_synced_at=datetime.now(timezone.utc),
                finalization_id=finalization_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    async def mark_exceptions_processed(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> int:
        result = await self.session.execute(
            update(AttendanceExceptionRow)
            .where(
                AttendanceExceptionRow.employee_id.in_(employee_ids),
                AttendanceExceptionRow.exception_date >= period_start,
                AttendanceExceptionRow.exception_date <= period_end,
            )
            .values(
                payroll_processed=True,
                payroll_processed_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


class SqlAlchemyFinalizationStore:
    """Finalization store backed by SQLAlchemy async sessions.

    Each read opens its own session so reads can be gathered concurrently.
    A commit runs in a single session and transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # ----- Employee directory -----

    async def employees_in_department(
        self, company_id: UUID, department_id: UUID
    ) -> list[UUID]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Employee.id).where(
                    Employee.company_id == company_id,
                    Employee.department_id == department_id,
                )
            )
            return list(result.scalars().all())

    async def employees_for_timekeeper(
        self, company_id: UUID, timekeeper_id: UUID
    ) -> list[UUID]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TimekeeperAssignment.employee_id).where(
                    TimekeeperAssignment.company_id == company_id,
                    TimekeeperAssignment.timekeeper_id == timekeeper_id,
                    TimekeeperAssignment.is_active.is_(True),
                )
            )
            return list(result.scalars().all())

    async def load_employees(self, employee_ids: list[UUID]) -> list[EmployeeRef]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Employee).where(Employee.id.in_(employee_ids))
            )
            return [row_mapping.employee_ref(row) for row in result.scalars().all()]

    # ----- Period data -----

    async def load_time_entries(
        self,
        employee_ids: list[UUID],
        clock_in_from: datetime,
        clock_in_to: datetime,
    ) -> list[TimeEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TimeClockEntry)
                .where(
                    TimeClockEntry.employee_id.in_(employee_ids),
                    TimeClockEntry.clock_in >= clock_in_from,
                    TimeClockEntry.clock_in <= clock_in_to,
                )
                .order_by(TimeClockEntry.clock_in)
            )
            return [row_mapping.time_entry(row) for row in result.scalars().all()]

    async def load_attendance_exceptions(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> list[AttendanceException]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(AttendanceExceptionRow).where(
                    AttendanceExceptionRow.employee_id.in_(employee_ids),
                    AttendanceExceptionRow.exception_date >= period_start,
                    AttendanceExceptionRow.exception_date <= period_end,
                )
            )
            return [
                row_mapping.attendance_exception(row) for row in result.scalars().all()
            ]

    async def load_approved_leave_requests(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> list[LeaveRequest]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(LeaveRequestRow)
                .options(joinedload(LeaveRequestRow.leave_type))
                .where(
                    LeaveRequestRow.employee_id.in_(employee_ids),
                    LeaveRequestRow.status == "approved",
                    LeaveRequestRow.start_date <= period_end,
                    LeaveRequestRow.end_date >= period_start,
                )
                .order_by(LeaveRequestRow.start_date)
            )
            return [row_mapping.leave_request(row) for row in result.scalars().all()]

    async def load_active_salaries(self, employee_ids: list[UUID]) -> list[SalaryRecord]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(EmployeeSalary)
                .where(
                    EmployeeSalary.employee_id.in_(employee_ids),
                    EmployeeSalary.end_date.is_(None),
                )
                .order_by(EmployeeSalary.start_date)
            )
            return [row_mapping.salary_record(row) for row in result.scalars().all()]

    # ----- Finalizations -----

    @asynccontextmanager
    async def begin_commit(self) -> AsyncIterator[SqlAlchemyFinalizationWriter]:
        async with self.session_factory() as session:
            async with session.begin():
                yield SqlAlchemyFinalizationWriter(session)

    async def get_finalization(self, finalization_id: UUID) -> FinalizationRecord | None:
        async with self.session_factory() as session:
            row = await session.get(PeriodFinalization, finalization_id)
            return row_mapping.finalization_record(row) if row is not None else None

    async def list_finalizations(
        self,
        company_id: UUID,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> list[FinalizationRecord]:
        query = select(PeriodFinalization).where(
            PeriodFinalization.company_id == company_id
        )
        if period_start is not None:
            query = query.where(PeriodFinalization.period_start >= period_start)
        if period_end is not None:
            query = query.where(PeriodFinalization.period_end <= period_end)
        query = query.order_by(PeriodFinalization.period_start.desc())

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [row_mapping.finalization_record(row) for row in result.scalars().all()]

    async def list_leave_transactions(
        self, finalization_id: UUID
    ) -> list[LeaveTransaction]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(LeavePayrollTransaction, LeaveTypeRow.name)
                .join(LeaveTypeRow, LeavePayrollTransaction.leave_type_id == LeaveTypeRow.id)
                .where(LeavePayrollTransaction.finalization_id == finalization_id)
                .order_by(LeavePayrollTransaction.employee_id)
            )
            return [
                row_mapping.leave_transaction(txn, name) for txn, name in result.all()
            ]
