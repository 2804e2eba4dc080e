"""Collaborator protocols for finalization reads and writes.

The engine never talks to the database directly. A FinalizationStore supplies
typed records for the reads, and a FinalizationWriter performs the commit
writes inside one unit of work.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from finalization_engine.calculators.types import (
    AttendanceException,
    EmployeeRef,
    FinalizationRecord,
    LeaveRequest,
    LeaveTransaction,
    SalaryRecord,
    TimeEntry,
)


class FinalizationWriter(Protocol):
    """Writes performed while committing one finalization.

    All calls share a single transaction. savepoint() scopes a nested
    transaction so one failing write can be rolled back on its own.
    """

    def savepoint(self) -> AbstractAsyncContextManager[None]:
        """Open a nested transaction."""
        ...

    async def upsert_finalization(self, record: FinalizationRecord) -> UUID:
        """Insert or overwrite the record for its (company, period, department) key.

        Returns the finalization id, which is stable across overwrites.
        """
        ...

    async def clear_leave_transactions(self, finalization_id: UUID) -> int:
        """Delete rows left by an earlier commit of this finalization.

        Returns the number of rows deleted.
        """
        ...

    async def insert_leave_transactions(
        self,
        finalization_id: UUID,
        company_id: UUID,
        period_start: date,
        period_end: date,
        transactions: list[LeaveTransaction],
    ) -> int:
        """Insert one row per transaction. Returns the number of rows inserted."""
        ...

    async def sync_leave_transaction_count(self, finalization_id: UUID) -> int:
        """Restamp leave_transactions_created with the rows actually stored.

        Returns the stamped count.
        """
        ...

    async def mark_timesheets_synced(
        self,
        finalization_id: UUID,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> int:
        """Flag timesheet submissions inside the period as synced to payroll."""
        ...

    async def mark_exceptions_processed(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> int:
        """Set payroll_processed on attendance exceptions dated inside the period."""
        ...


class FinalizationStore(Protocol):
    """Read and write access to the HR data the engine consumes."""

    # ----- Employee directory -----

    async def employees_in_department(
        self, company_id: UUID, department_id: UUID
    ) -> list[UUID]:
        ...

    async def employees_for_timekeeper(
        self, company_id: UUID, timekeeper_id: UUID
    ) -> list[UUID]:
        ...

    async def load_employees(self, employee_ids: list[UUID]) -> list[EmployeeRef]:
        ...

    # ----- Period data -----

    async def load_time_entries(
        self,
        employee_ids: list[UUID],
        clock_in_from: datetime,
        clock_in_to: datetime,
    ) -> list[TimeEntry]:
        """Entries whose clock-in falls in [clock_in_from, clock_in_to]."""
        ...

    async def load_attendance_exceptions(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> list[AttendanceException]:
        ...

    async def load_approved_leave_requests(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> list[LeaveRequest]:
        """Approved requests with start_date <= period_end and end_date >= period_start."""
        ...

    async def load_active_salaries(self, employee_ids: list[UUID]) -> list[SalaryRecord]:
        """Salary records without an end date."""
        ...

    # ----- Finalizations -----

    def begin_commit(self) -> AbstractAsyncContextManager[FinalizationWriter]:
        """Open the unit of work for a commit; commits on clean exit."""
        ...

    async def get_finalization(self, finalization_id: UUID) -> FinalizationRecord | None:
        ...

    async def list_finalizations(
        self,
        company_id: UUID,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> list[FinalizationRecord]:
        ...

    async def list_leave_transactions(
        self, finalization_id: UUID
    ) -> list[LeaveTransaction]:
        ...
