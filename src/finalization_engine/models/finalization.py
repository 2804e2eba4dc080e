"""Period finalization record."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from finalization_engine.models.base import Base, TimestampMixin

COMPANY_WIDE_SCOPE = "all"


def scope_key_for(department_id: UUID | None) -> str:
    """Non-null stand-in for the department so the unique key covers NULL."""
    return str(department_id) if department_id is not None else COMPANY_WIDE_SCOPE


class PeriodFinalization(Base, TimestampMixin):
    """Finalized time and attendance totals for a company, period and department.

    One row per (company_id, period_start, period_end, scope_key); a repeated
    commit overwrites the row in place and keeps its id.
    """

    __tablename__ = "period_finalizations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    department_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    scope_key: Mapped[str] = mapped_column(String, nullable=False)
    finalized_by: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    finalized_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="finalized")

    employee_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_regular_hours: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    total_overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    absences_excused: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    absences_unexcused: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    leave_transactions_created: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    # Employee ids in scope at commit time, used to re-apply side writes.
    employee_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint(
            "company_id",
            "period_start",
            "period_end",
            "scope_key",
            name="period_finalization_scope_unique",
        ),
        CheckConstraint("period_end >= period_start", name="period_finalization_dates_check"),
        CheckConstraint("status IN ('finalized')", name="period_finalization_status_check"),
    )
