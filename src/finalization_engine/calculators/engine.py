"""Finalization calculation engine - pure computation over collected data."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from finalization_engine.calculators.hours_aggregator import HoursAggregator
from finalization_engine.calculators.leave_calculator import LeavePayCalculator
from finalization_engine.calculators.types import (
    AttendanceException,
    EmployeeRef,
    FinalizationSummary,
    LeaveRequest,
    SalaryRecord,
    TimeEntry,
)


@dataclass
class CollectedData:
    """Everything the engine reads for one run, indexed by employee id."""

    employees: list[EmployeeRef]
    time_entries: dict[UUID, list[TimeEntry]] = field(default_factory=dict)
    exceptions: dict[UUID, list[AttendanceException]] = field(default_factory=dict)
    leave_requests: dict[UUID, list[LeaveRequest]] = field(default_factory=dict)
    salaries: dict[UUID, SalaryRecord] = field(default_factory=dict)


class FinalizationEngine:
    """Computes a finalization summary for one company, period and scope.

    Pipeline (stable order per employee):
    1) Sum payable regular/overtime hours
    2) Classify absences and count unresolved exceptions
    3) Price each overlapping approved leave request
    4) Accumulate company totals and validation messages

    No I/O happens here; employees do not depend on each other.
    """

    def __init__(self, period_start: date, period_end: date):
        self.period_start = period_start
        self.period_end = period_end
        self.hours_aggregator = HoursAggregator()
        self.leave_calculator = LeavePayCalculator(period_start, period_end)

    def compute(
        self,
        company_id: UUID,
        data: CollectedData,
        department_id: UUID | None = None,
    ) -> FinalizationSummary:
        summary = FinalizationSummary(
            company_id=company_id,
            period_start=self.period_start,
            period_end=self.period_end,
            department_id=department_id,
            total_employees=len(data.employees),
        )

        for employee in data.employees:
            emp_id = employee.employee_id
            aggregate = self.hours_aggregator.aggregate(
                employee,
                data.time_entries.get(emp_id, []),
                data.exceptions.get(emp_id, []),
            )
            row = aggregate.summary

            summary.total_regular_hours += row.regular_hours
            summary.total_overtime_hours += row.overtime_hours
            summary.absences_excused += row.absences_excused
            summary.absences_unexcused += row.absences_unexcused
            summary.employees.append(row)
            summary.validation_errors.extend(aggregate.validation_errors)

            summary.leave_transactions.extend(
                self.leave_calculator.calculate_all(
                    data.leave_requests.get(emp_id, []),
                    data.salaries,
                )
            )

        return summary
