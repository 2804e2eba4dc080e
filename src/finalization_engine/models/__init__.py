"""ORM models."""

from finalization_engine.models.base import Base, TimestampMixin
from finalization_engine.models.compensation import EmployeeSalary
from finalization_engine.models.finalization import (
    COMPANY_WIDE_SCOPE,
    PeriodFinalization,
    scope_key_for,
)
from finalization_engine.models.leave import LeavePayrollTransaction, LeaveRequest, LeaveType
from finalization_engine.models.organization import (
    Company,
    Department,
    Employee,
    TimekeeperAssignment,
)
from finalization_engine.models.time_attendance import (
    AttendanceException,
    TimeClockEntry,
    TimesheetSubmission,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Department",
    "Employee",
    "TimekeeperAssignment",
    "TimeClockEntry",
    "AttendanceException",
    "TimesheetSubmission",
    "LeaveType",
    "LeaveRequest",
    "LeavePayrollTransaction",
    "EmployeeSalary",
    "PeriodFinalization",
    "COMPANY_WIDE_SCOPE",
    "scope_key_for",
]
