"""Converts ORM rows into the typed records the engine computes on."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from finalization_engine.calculators import types
from finalization_engine.models import (
    AttendanceException,
    Employee,
    EmployeeSalary,
    LeavePayrollTransaction,
    LeaveRequest,
    LeaveType,
    PeriodFinalization,
    TimeClockEntry,
)


def _decimal(value: Decimal | float | int | None) -> Decimal | None:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def employee_ref(row: Employee) -> types.EmployeeRef:
    return types.EmployeeRef(employee_id=row.id, full_name=row.full_name)


def time_entry(row: TimeClockEntry) -> types.TimeEntry:
    return types.TimeEntry(
        entry_id=row.id,
        employee_id=row.employee_id,
        clock_in=row.clock_in,
        clock_out=row.clock_out,
        clock_in_override=row.clock_in_override,
        clock_out_override=row.clock_out_override,
        regular_hours=_decimal(row.regular_hours),
        overtime_hours=_decimal(row.overtime_hours),
        payable_regular_hours=_decimal(row.payable_regular_hours),
        payable_overtime_hours=_decimal(row.payable_overtime_hours),
        total_hours=_decimal(row.total_hours),
    )


def attendance_exception(row: AttendanceException) -> types.AttendanceException:
    return types.AttendanceException(
        exception_id=row.id,
        employee_id=row.employee_id,
        exception_date=row.exception_date,
        exception_type=row.exception_type,
        status=row.status,
    )


def leave_type(row: LeaveType) -> types.LeaveType:
    return types.LeaveType(
        leave_type_id=row.id,
        name=row.name,
        code=row.code,
        is_paid=bool(row.is_paid),
        payment_method=row.payment_method,
    )


def leave_request(row: LeaveRequest) -> types.LeaveRequest:
    return types.LeaveRequest(
        leave_request_id=row.id,
        employee_id=row.employee_id,
        start_date=row.start_date,
        end_date=row.end_date,
        status=row.status,
        leave_type=leave_type(row.leave_type),
    )


def salary_record(row: EmployeeSalary) -> types.SalaryRecord:
    return types.SalaryRecord(
        employee_id=row.employee_id,
        base_salary=_decimal(row.base_salary) or Decimal("0"),
        pay_frequency=row.pay_frequency,
        currency=row.currency,
        start_date=row.start_date,
        end_date=row.end_date,
    )


def finalization_record(row: PeriodFinalization) -> types.FinalizationRecord:
    return types.FinalizationRecord(
        finalization_id=row.id,
        company_id=row.company_id,
        period_start=row.period_start,
        period_end=row.period_end,
        department_id=row.department_id,
        finalized_by=row.finalized_by,
        finalized_at=row.finalized_at,
        status=row.status,
        employee_count=row.employee_count,
        total_regular_hours=_decimal(row.total_regular_hours) or Decimal("0"),
        total_overtime_hours=_decimal(row.total_overtime_hours) or Decimal("0"),
        absences_excused=row.absences_excused,
        absences_unexcused=row.absences_unexcused,
        leave_transactions_created=row.leave_transactions_created,
        employee_ids=[UUID(str(e)) for e in (row.employee_ids or [])],
    )


def leave_transaction(
    row: LeavePayrollTransaction, leave_type_name: str
) -> types.LeaveTransaction:
    return types.LeaveTransaction(
        employee_id=row.employee_id,
        leave_request_id=row.leave_request_id,
        leave_type_id=row.leave_type_id,
        leave_type_name=leave_type_name,
        days_in_period=row.days_in_period,
        daily_rate=_decimal(row.daily_rate) or Decimal("0"),
        payment_percentage=row.payment_percentage,
        gross_amount=_decimal(row.gross_amount) or Decimal("0"),
        net_amount=_decimal(row.net_amount) or Decimal("0"),
        deduction_amount=_decimal(row.deduction_amount) or Decimal("0"),
        transaction_type=types.TransactionType(row.transaction_type),
        currency=row.currency,
    )
