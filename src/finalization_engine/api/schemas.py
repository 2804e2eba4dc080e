"""Pydantic schemas for API request/response models.

Field names follow the wire contract: camelCase on the wire, snake_case in
Python. Requests accept either spelling.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finalization_engine.calculators.types import (
    EmployeeSummary,
    FinalizationRecord,
    FinalizationSummary,
    LeaveTransaction,
)


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Request
# ============================================================================


class FinalizeRequest(CamelModel):
    """Body of POST /finalizations.

    Required fields are declared optional so that their absence is reported
    by the service as a single request validation error.
    """

    company_id: UUID | None = None
    period_start: date | None = None
    period_end: date | None = None
    department_id: UUID | None = None
    employee_ids: list[UUID] | None = None
    timekeeper_id: UUID | None = None
    preview_only: bool = False


# ============================================================================
# Summary
# ============================================================================


class EmployeeSummaryResponse(CamelModel):
    """Per-employee row."""

    id: UUID
    name: str
    regular_hours: Decimal
    overtime_hours: Decimal
    has_absences: bool
    absences_excused: int
    absences_unexcused: int
    unresolved_exceptions: int

    @classmethod
    def from_summary(cls, row: EmployeeSummary) -> EmployeeSummaryResponse:
        return cls(
            id=row.employee_id,
            name=row.name,
            regular_hours=row.regular_hours,
            overtime_hours=row.overtime_hours,
            has_absences=row.has_absences,
            absences_excused=row.absences_excused,
            absences_unexcused=row.absences_unexcused,
            unresolved_exceptions=row.unresolved_exceptions,
        )


class LeaveTransactionResponse(CamelModel):
    """Computed or persisted leave payroll transaction."""

    employee_id: UUID
    leave_request_id: UUID
    leave_type_id: UUID
    leave_type_name: str
    days: int
    daily_rate: Decimal
    payment_percentage: int
    gross_amount: Decimal
    net_amount: Decimal
    deduction_amount: Decimal
    transaction_type: str
    currency: str

    @classmethod
    def from_transaction(cls, txn: LeaveTransaction) -> LeaveTransactionResponse:
        return cls(
            employee_id=txn.employee_id,
            leave_request_id=txn.leave_request_id,
            leave_type_id=txn.leave_type_id,
            leave_type_name=txn.leave_type_name,
            days=txn.days_in_period,
            daily_rate=txn.daily_rate,
            payment_percentage=txn.payment_percentage,
            gross_amount=txn.gross_amount,
            net_amount=txn.net_amount,
            deduction_amount=txn.deduction_amount,
            transaction_type=txn.transaction_type.value,
            currency=txn.currency,
        )


class FinalizationSummaryResponse(CamelModel):
    """Company-wide finalization summary."""

    company_id: UUID
    period_start: date
    period_end: date
    department_id: UUID | None = None
    total_employees: int
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    absences_excused: int
    absences_unexcused: int
    leave_transactions_count: int
    total_leave_gross: Decimal
    total_leave_net: Decimal
    total_leave_deductions: Decimal
    employees: list[EmployeeSummaryResponse]
    leave_transactions: list[LeaveTransactionResponse]
    validation_errors: list[str]

    @classmethod
    def from_summary(cls, summary: FinalizationSummary) -> FinalizationSummaryResponse:
        return cls(
            company_id=summary.company_id,
            period_start=summary.period_start,
            period_end=summary.period_end,
            department_id=summary.department_id,
            total_employees=summary.total_employees,
            total_regular_hours=summary.total_regular_hours,
            total_overtime_hours=summary.total_overtime_hours,
            absences_excused=summary.absences_excused,
            absences_unexcused=summary.absences_unexcused,
            leave_transactions_count=summary.leave_transactions_count,
            total_leave_gross=summary.total_leave_gross,
            total_leave_net=summary.total_leave_net,
            total_leave_deductions=summary.total_leave_deductions,
            employees=[EmployeeSummaryResponse.from_summary(e) for e in summary.employees],
            leave_transactions=[
                LeaveTransactionResponse.from_transaction(t)
                for t in summary.leave_transactions
            ],
            validation_errors=list(summary.validation_errors),
        )


# ============================================================================
# Finalize responses
# ============================================================================


class PreviewResponse(CamelModel):
    """Preview success."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    success: bool = True
    preview: bool = True
    summary: FinalizationSummaryResponse


class ValidationFailedResponse(CamelModel):
    """Commit refused because of validation errors."""

    success: bool = False
    error: str
    validation_errors: list[str]
    summary: FinalizationSummaryResponse


class CommitResponse(CamelModel):
    """Commit success."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    success: bool = True
    finalization_id: UUID
    summary: FinalizationSummaryResponse
    message: str


class ErrorResponse(BaseModel):
    """Fatal error payload."""

    error: str


# ============================================================================
# Finalization records
# ============================================================================


class FinalizationRecordResponse(CamelModel):
    """Persisted finalization record."""

    id: UUID
    company_id: UUID
    period_start: date
    period_end: date
    department_id: UUID | None = None
    finalized_by: UUID
    finalized_at: datetime | None = None
    status: str
    employee_count: int
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    absences_excused: int
    absences_unexcused: int
    leave_transactions_created: int

    @classmethod
    def from_record(cls, record: FinalizationRecord) -> FinalizationRecordResponse:
        return cls(
            id=record.finalization_id,
            company_id=record.company_id,
            period_start=record.period_start,
            period_end=record.period_end,
            department_id=record.department_id,
            finalized_by=record.finalized_by,
            finalized_at=record.finalized_at,
            status=record.status,
            employee_count=record.employee_count,
            total_regular_hours=record.total_regular_hours,
            total_overtime_hours=record.total_overtime_hours,
            absences_excused=record.absences_excused,
            absences_unexcused=record.absences_unexcused,
            leave_transactions_created=record.leave_transactions_created,
        )


class FinalizationListResponse(CamelModel):
    """List of finalization records."""

    items: list[FinalizationRecordResponse]
    total: int


class LeaveTransactionListResponse(CamelModel):
    """Persisted leave transactions of one finalization."""

    finalization_id: UUID
    items: list[LeaveTransactionResponse]
    total: int


class RepairResponse(CamelModel):
    """Result of re-applying side writes."""

    finalization_id: UUID
    timesheets_synced: int | None = None
    exceptions_processed: int | None = None
    leave_transactions: int = Field(default=0)
