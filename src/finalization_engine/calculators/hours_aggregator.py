"""Per-employee hours and absence aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from finalization_engine.calculators.types import (
    AttendanceException,
    EmployeeRef,
    EmployeeSummary,
    TimeEntry,
)


@dataclass
class EmployeeAggregate:
    """Hours, absence counts and validation messages for one employee."""

    summary: EmployeeSummary
    validation_errors: list[str] = field(default_factory=list)


class HoursAggregator:
    """Reduces an employee's time entries and exceptions to summary figures.

    Absence classification:
    - excused: type excused_absence, or status approved
    - unexcused: type unexcused_absence, or type absent still pending
    The two tests are independent, so one exception can count in both.
    Any pending exception is also reported as unresolved for validation.
    """

    def aggregate(
        self,
        employee: EmployeeRef,
        time_entries: list[TimeEntry],
        exceptions: list[AttendanceException],
    ) -> EmployeeAggregate:
        regular = Decimal("0")
        overtime = Decimal("0")
        for entry in time_entries:
            regular += entry.effective_regular_hours
            overtime += entry.effective_overtime_hours

        excused = sum(1 for e in exceptions if e.is_excused)
        unexcused = sum(1 for e in exceptions if e.is_unexcused)
        pending = sum(1 for e in exceptions if e.is_pending)

        summary = EmployeeSummary(
            employee_id=employee.employee_id,
            name=employee.full_name,
            regular_hours=regular,
            overtime_hours=overtime,
            has_absences=(excused + unexcused) > 0,
            absences_excused=excused,
            absences_unexcused=unexcused,
            unresolved_exceptions=pending,
            time_entry_count=len(time_entries),
        )

        errors: list[str] = []
        if not time_entries and regular == 0:
            errors.append(f"{employee.full_name}: No time entries for period")
        if pending > 0:
            errors.append(f"{employee.full_name}: {pending} unresolved exceptions")

        return EmployeeAggregate(summary=summary, validation_errors=errors)
