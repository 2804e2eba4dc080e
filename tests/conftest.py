"""Pytest fixtures for finalization engine tests."""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import date, datetime, time, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from finalization_engine.calculators.types import (
    AttendanceException,
    EmployeeRef,
    FinalizationRecord,
    LeaveRequest,
    LeaveTransaction,
    LeaveType,
    SalaryRecord,
    TimeEntry,
)
from finalization_engine.services.finalization_service import FinalizationService

# Monday 2024-01-01 through Sunday 2024-01-14
PERIOD_START = date(2024, 1, 1)
PERIOD_END = date(2024, 1, 14)


class InMemoryFinalizationWriter:
    """Writer over the in-memory store; savepoints snapshot and restore state."""

    def __init__(self, store: InMemoryFinalizationStore):
        self.store = store

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        snapshot = self.store.snapshot()
        try:
            yield
        except Exception:
            self.store.restore(snapshot)
            raise

    async def upsert_finalization(self, record: FinalizationRecord) -> UUID:
        self.store.record_write("upsert_finalization")
        existing = next(
            (
                r
                for r in self.store.finalizations.values()
                if (r.company_id, r.period_start, r.period_end, r.department_id)
                == (record.company_id, record.period_start, record.period_end, record.department_id)
            ),
            None,
        )
        finalization_id = existing.finalization_id if existing else uuid4()
        self.store.finalizations[finalization_id] = replace(
            record,
            finalization_id=finalization_id,
            finalized_at=datetime.now(timezone.utc),
            employee_ids=list(record.employee_ids),
        )
        return finalization_id

    async def clear_leave_transactions(self, finalization_id: UUID) -> int:
        self.store.record_write("clear_leave_transactions")
        return len(self.store.leave_transactions.pop(finalization_id, []))

    async def insert_leave_transactions(
        self,
        finalization_id: UUID,
        company_id: UUID,
        period_start: date,
        period_end: date,
        transactions: list[LeaveTransaction],
    ) -> int:
        self.store.record_write("insert_leave_transactions")
        self.store.leave_transactions.setdefault(finalization_id, []).extend(transactions)
        return len(transactions)

    async def sync_leave_transaction_count(self, finalization_id: UUID) -> int:
        self.store.record_write("sync_leave_transaction_count")
        count = len(self.store.leave_transactions.get(finalization_id, []))
        self.store.finalizations[finalization_id].leave_transactions_created = count
        return count

    async def mark_timesheets_synced(
        self,
        finalization_id: UUID,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> int:
        self.store.record_write("mark_timesheets_synced")
        touched = 0
        for sheet in self.store.timesheets:
            if (
                sheet["employee_id"] in employee_ids
                and sheet["period_start"] >= period_start
                and sheet["period_end"] <= period_end
            ):
                sheet["payroll_synced"] = True
                sheet["finalization_id"] = finalization_id
                touched += 1
        return touched

    async def mark_exceptions_processed(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> int:
        self.store.record_write("mark_exceptions_processed")
        touched = 0
        for exc in self.store.exceptions:
            if exc.employee_id in employee_ids and period_start <= exc.exception_date <= period_end:
                self.store.processed_exceptions.add(exc.exception_id)
                touched += 1
        return touched


class InMemoryFinalizationStore:
    """Store fake with failure injection and a record of every write."""

    def __init__(self, company_id: UUID, timekeeper_id: UUID):
        self.company_id = company_id
        self.timekeeper_id = timekeeper_id

        self.employees: dict[UUID, EmployeeRef] = {}
        self.departments: dict[UUID, list[UUID]] = {}
        self.assigned: list[UUID] = []
        self.time_entries: list[TimeEntry] = []
        self.exceptions: list[AttendanceException] = []
        self.leave_requests: list[LeaveRequest] = []
        self.salaries: list[SalaryRecord] = []

        self.finalizations: dict[UUID, FinalizationRecord] = {}
        self.leave_transactions: dict[UUID, list[LeaveTransaction]] = {}
        self.timesheets: list[dict] = []
        self.processed_exceptions: set[UUID] = set()

        self.fail_reads: dict[str, Exception] = {}
        self.fail_writes: dict[str, Exception] = {}
        self.writes: list[str] = []
        self.commits_started = 0
        self.time_entry_windows: list[tuple[datetime, datetime]] = []

    # ----- Seeding -----

    def add_employee(
        self,
        name: str,
        department_id: UUID | None = None,
        assigned: bool = True,
    ) -> UUID:
        employee_id = uuid4()
        self.employees[employee_id] = EmployeeRef(employee_id=employee_id, full_name=name)
        if department_id is not None:
            self.departments.setdefault(department_id, []).append(employee_id)
        if assigned:
            self.assigned.append(employee_id)
        return employee_id

    def add_time_entry(
        self,
        employee_id: UUID,
        day: date,
        regular: str | None = "8",
        overtime: str | None = "0",
        payable_regular: str | None = None,
        payable_overtime: str | None = None,
    ) -> TimeEntry:
        entry = TimeEntry(
            entry_id=uuid4(),
            employee_id=employee_id,
            clock_in=datetime.combine(day, time(9, 0)),
            regular_hours=Decimal(regular) if regular is not None else None,
            overtime_hours=Decimal(overtime) if overtime is not None else None,
            payable_regular_hours=Decimal(payable_regular) if payable_regular else None,
            payable_overtime_hours=Decimal(payable_overtime) if payable_overtime else None,
        )
        self.time_entries.append(entry)
        return entry

    def add_exception(
        self,
        employee_id: UUID,
        day: date,
        exception_type: str,
        status: str,
    ) -> AttendanceException:
        exc = AttendanceException(
            exception_id=uuid4(),
            employee_id=employee_id,
            exception_date=day,
            exception_type=exception_type,
            status=status,
        )
        self.exceptions.append(exc)
        return exc

    def add_leave(
        self,
        employee_id: UUID,
        start: date,
        end: date,
        name: str = "Annual Leave",
        is_paid: bool = True,
        payment_method: str | None = "full_pay",
        status: str = "approved",
    ) -> LeaveRequest:
        request = LeaveRequest(
            leave_request_id=uuid4(),
            employee_id=employee_id,
            start_date=start,
            end_date=end,
            status=status,
            leave_type=LeaveType(
                leave_type_id=uuid4(),
                name=name,
                is_paid=is_paid,
                payment_method=payment_method,
            ),
        )
        self.leave_requests.append(request)
        return request

    def add_salary(
        self,
        employee_id: UUID,
        amount: str,
        pay_frequency: str = "annual",
        start_date: date = date(2023, 1, 1),
        end_date: date | None = None,
    ) -> SalaryRecord:
        salary = SalaryRecord(
            employee_id=employee_id,
            base_salary=Decimal(amount),
            pay_frequency=pay_frequency,
            start_date=start_date,
            end_date=end_date,
        )
        self.salaries.append(salary)
        return salary

    def add_timesheet(self, employee_id: UUID, start: date, end: date) -> dict:
        sheet = {
            "employee_id": employee_id,
            "period_start": start,
            "period_end": end,
            "payroll_synced": False,
            "finalization_id": None,
        }
        self.timesheets.append(sheet)
        return sheet

    # ----- Transaction support -----

    def snapshot(self) -> tuple:
        return copy.deepcopy(
            (
                self.finalizations,
                self.leave_transactions,
                self.timesheets,
                self.processed_exceptions,
            )
        )

    def restore(self, snapshot: tuple) -> None:
        (
            self.finalizations,
            self.leave_transactions,
            self.timesheets,
            self.processed_exceptions,
        ) = snapshot

    def record_write(self, name: str) -> None:
        self.writes.append(name)
        if name in self.fail_writes:
            raise self.fail_writes[name]

    def _read(self, name: str) -> None:
        if name in self.fail_reads:
            raise self.fail_reads[name]

    # ----- Reads -----

    async def employees_in_department(self, company_id: UUID, department_id: UUID) -> list[UUID]:
        self._read("employees_in_department")
        return list(self.departments.get(department_id, []))

    async def employees_for_timekeeper(self, company_id: UUID, timekeeper_id: UUID) -> list[UUID]:
        self._read("employees_for_timekeeper")
        if timekeeper_id != self.timekeeper_id:
            return []
        return list(self.assigned)

    async def load_employees(self, employee_ids: list[UUID]) -> list[EmployeeRef]:
        self._read("load_employees")
        return [self.employees[e] for e in employee_ids if e in self.employees]

    async def load_time_entries(
        self,
        employee_ids: list[UUID],
        clock_in_from: datetime,
        clock_in_to: datetime,
    ) -> list[TimeEntry]:
        self._read("load_time_entries")
        self.time_entry_windows.append((clock_in_from, clock_in_to))
        return [
            e
            for e in self.time_entries
            if e.employee_id in employee_ids and clock_in_from <= e.clock_in <= clock_in_to
        ]

    async def load_attendance_exceptions(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> list[AttendanceException]:
        self._read("load_attendance_exceptions")
        return [
            e
            for e in self.exceptions
            if e.employee_id in employee_ids and period_start <= e.exception_date <= period_end
        ]

    async def load_approved_leave_requests(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> list[LeaveRequest]:
        self._read("load_approved_leave_requests")
        return [
            r
            for r in self.leave_requests
            if r.employee_id in employee_ids
            and r.status == "approved"
            and r.start_date <= period_end
            and r.end_date >= period_start
        ]

    async def load_active_salaries(self, employee_ids: list[UUID]) -> list[SalaryRecord]:
        self._read("load_active_salaries")
        active = [s for s in self.salaries if s.employee_id in employee_ids and s.end_date is None]
        return sorted(active, key=lambda s: s.start_date or date.min)

    # ----- Finalizations -----

    @asynccontextmanager
    async def begin_commit(self) -> AsyncIterator[InMemoryFinalizationWriter]:
        self.commits_started += 1
        snapshot = self.snapshot()
        try:
            yield InMemoryFinalizationWriter(self)
        except Exception:
            self.restore(snapshot)
            raise

    async def get_finalization(self, finalization_id: UUID) -> FinalizationRecord | None:
        return self.finalizations.get(finalization_id)

    async def list_finalizations(
        self,
        company_id: UUID,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> list[FinalizationRecord]:
        return [
            r
            for r in self.finalizations.values()
            if r.company_id == company_id
            and (period_start is None or r.period_start >= period_start)
            and (period_end is None or r.period_end <= period_end)
        ]

    async def list_leave_transactions(self, finalization_id: UUID) -> list[LeaveTransaction]:
        return list(self.leave_transactions.get(finalization_id, []))


@pytest.fixture
def company_id() -> UUID:
    return uuid4()


@pytest.fixture
def timekeeper_id() -> UUID:
    return uuid4()


@pytest.fixture
def store(company_id: UUID, timekeeper_id: UUID) -> InMemoryFinalizationStore:
    """Empty in-memory store."""
    return InMemoryFinalizationStore(company_id, timekeeper_id)


@pytest.fixture
def service(store: InMemoryFinalizationStore) -> FinalizationService:
    return FinalizationService(store)
