"""Type definitions for the finalization pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PayFrequency(str, Enum):
    """Salary pay frequencies."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    SEMI_MONTHLY = "semi-monthly"
    MONTHLY = "monthly"
    ANNUAL = "annual"


class PaymentMethod(str, Enum):
    """Leave type payment policies."""

    FULL_PAY = "full_pay"
    UNPAID = "unpaid"
    REDUCED_PAY = "reduced_pay"
    STATUTORY = "statutory"


class TransactionType(str, Enum):
    """Leave payroll transaction types."""

    PAID_LEAVE = "paid_leave"
    UNPAID_DEDUCTION = "unpaid_deduction"
    SICK_LEAVE_STATUTORY = "sick_leave_statutory"


class ExceptionStatus(str, Enum):
    """Attendance exception statuses the engine cares about."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ExceptionType(str, Enum):
    """Attendance exception types used for absence classification."""

    EXCUSED_ABSENCE = "excused_absence"
    UNEXCUSED_ABSENCE = "unexcused_absence"
    ABSENT = "absent"
    LATE = "late"
    EARLY_OUT = "early_out"


# ===== Inputs =====


@dataclass(frozen=True)
class EmployeeRef:
    """Employee identity as seen by the engine."""

    employee_id: UUID
    full_name: str


@dataclass(frozen=True)
class TimeEntry:
    """A punch-derived time record. Read-only here."""

    employee_id: UUID
    clock_in: datetime
    clock_out: datetime | None = None
    clock_in_override: datetime | None = None
    clock_out_override: datetime | None = None
    regular_hours: Decimal | None = None
    overtime_hours: Decimal | None = None
    payable_regular_hours: Decimal | None = None
    payable_overtime_hours: Decimal | None = None
    total_hours: Decimal | None = None
    entry_id: UUID | None = None

    @property
    def effective_regular_hours(self) -> Decimal:
        """Payable hours win over raw computed hours."""
        if self.payable_regular_hours is not None:
            return self.payable_regular_hours
        if self.regular_hours is not None:
            return self.regular_hours
        return Decimal("0")

    @property
    def effective_overtime_hours(self) -> Decimal:
        """Payable overtime wins over raw computed overtime."""
        if self.payable_overtime_hours is not None:
            return self.payable_overtime_hours
        if self.overtime_hours is not None:
            return self.overtime_hours
        return Decimal("0")


@dataclass(frozen=True)
class AttendanceException:
    """An attendance anomaly flagged for one employee on one date."""

    exception_id: UUID
    employee_id: UUID
    exception_date: date
    exception_type: str
    status: str

    @property
    def is_pending(self) -> bool:
        """Still awaiting a decision."""
        return self.status == ExceptionStatus.PENDING

    @property
    def is_excused(self) -> bool:
        """Excused by type, or by approval of any type."""
        return (
            self.exception_type == ExceptionType.EXCUSED_ABSENCE
            or self.status == ExceptionStatus.APPROVED
        )

    @property
    def is_unexcused(self) -> bool:
        """Unexcused by type, or an absence not yet decided."""
        return self.exception_type == ExceptionType.UNEXCUSED_ABSENCE or (
            self.exception_type == ExceptionType.ABSENT and self.is_pending
        )


@dataclass(frozen=True)
class LeaveType:
    """Leave type with its payment policy."""

    leave_type_id: UUID
    name: str
    code: str | None = None
    is_paid: bool = True
    payment_method: str | None = None


@dataclass(frozen=True)
class LeaveRequest:
    """An approved time-off request."""

    leave_request_id: UUID
    employee_id: UUID
    start_date: date
    end_date: date
    leave_type: LeaveType
    status: str = "approved"


@dataclass(frozen=True)
class SalaryRecord:
    """Active base salary for an employee."""

    employee_id: UUID
    base_salary: Decimal
    pay_frequency: str
    currency: str = "USD"
    start_date: date | None = None
    end_date: date | None = None


# ===== Outputs =====


@dataclass(frozen=True)
class LeaveTransaction:
    """Pay impact of one leave request inside the period."""

    employee_id: UUID
    leave_request_id: UUID
    leave_type_id: UUID
    leave_type_name: str
    days_in_period: int
    daily_rate: Decimal
    payment_percentage: int
    gross_amount: Decimal
    net_amount: Decimal
    deduction_amount: Decimal
    transaction_type: TransactionType
    currency: str = "USD"


@dataclass
class EmployeeSummary:
    """Per-employee row of the finalization summary."""

    employee_id: UUID
    name: str
    regular_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    has_absences: bool = False
    absences_excused: int = 0
    absences_unexcused: int = 0
    unresolved_exceptions: int = 0
    time_entry_count: int = 0


@dataclass
class FinalizationSummary:
    """Company-wide result of one finalization computation."""

    company_id: UUID
    period_start: date
    period_end: date
    department_id: UUID | None = None
    total_employees: int = 0
    total_regular_hours: Decimal = Decimal("0")
    total_overtime_hours: Decimal = Decimal("0")
    absences_excused: int = 0
    absences_unexcused: int = 0
    employees: list[EmployeeSummary] = field(default_factory=list)
    leave_transactions: list[LeaveTransaction] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)

    @property
    def leave_transactions_count(self) -> int:
        return len(self.leave_transactions)

    @property
    def total_leave_gross(self) -> Decimal:
        return sum((t.gross_amount for t in self.leave_transactions), Decimal("0"))

    @property
    def total_leave_net(self) -> Decimal:
        return sum((t.net_amount for t in self.leave_transactions), Decimal("0"))

    @property
    def total_leave_deductions(self) -> Decimal:
        return sum((t.deduction_amount for t in self.leave_transactions), Decimal("0"))

    @property
    def has_errors(self) -> bool:
        return len(self.validation_errors) > 0


@dataclass
class FinalizationRecord:
    """Persisted finalization totals; the unit of idempotent commit."""

    company_id: UUID
    period_start: date
    period_end: date
    finalized_by: UUID
    department_id: UUID | None = None
    finalization_id: UUID | None = None
    finalized_at: datetime | None = None
    status: str = "finalized"
    employee_count: int = 0
    total_regular_hours: Decimal = Decimal("0")
    total_overtime_hours: Decimal = Decimal("0")
    absences_excused: int = 0
    absences_unexcused: int = 0
    leave_transactions_created: int = 0
    employee_ids: list[UUID] = field(default_factory=list)

    @classmethod
    def from_summary(
        cls,
        summary: FinalizationSummary,
        finalized_by: UUID,
    ) -> FinalizationRecord:
        return cls(
            company_id=summary.company_id,
            period_start=summary.period_start,
            period_end=summary.period_end,
            department_id=summary.department_id,
            finalized_by=finalized_by,
            employee_count=summary.total_employees,
            total_regular_hours=summary.total_regular_hours,
            total_overtime_hours=summary.total_overtime_hours,
            absences_excused=summary.absences_excused,
            absences_unexcused=summary.absences_unexcused,
            leave_transactions_created=summary.leave_transactions_count,
            employee_ids=[e.employee_id for e in summary.employees],
        )
