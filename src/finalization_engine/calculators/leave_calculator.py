"""Leave pay calculation: business-day overlap, daily rate and payment policy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from finalization_engine.calculators.types import (
    LeaveRequest,
    LeaveTransaction,
    PayFrequency,
    PaymentMethod,
    SalaryRecord,
    TransactionType,
)

# Fixed business convention, independent of calendar or leap years.
WORKING_DAYS_PER_YEAR = Decimal("260")

ANNUALIZATION_FACTORS: dict[str, Decimal] = {
    PayFrequency.HOURLY.value: Decimal("2080"),
    PayFrequency.DAILY.value: Decimal("260"),
    PayFrequency.WEEKLY.value: Decimal("52"),
    PayFrequency.BI_WEEKLY.value: Decimal("26"),
    PayFrequency.SEMI_MONTHLY.value: Decimal("24"),
    PayFrequency.MONTHLY.value: Decimal("12"),
    PayFrequency.ANNUAL.value: Decimal("1"),
}
DEFAULT_ANNUALIZATION_FACTOR = ANNUALIZATION_FACTORS[PayFrequency.MONTHLY.value]

CENTS = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")


@dataclass(frozen=True)
class PaymentPolicy:
    """Resolved payment fraction for a leave type."""

    percentage: int
    transaction_type: TransactionType


def count_business_days(start: date, end: date) -> int:
    """Count Monday-Friday days in [start, end], inclusive."""
    if end < start:
        return 0

    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def effective_overlap(
    leave_start: date,
    leave_end: date,
    period_start: date,
    period_end: date,
) -> tuple[date, date]:
    """Clip a leave interval to the period."""
    return max(leave_start, period_start), min(leave_end, period_end)


def annualize_salary(base_salary: Decimal, pay_frequency: str | None) -> Decimal:
    """Convert a salary to an annual figure. Unknown frequencies count as monthly."""
    factor = ANNUALIZATION_FACTORS.get(pay_frequency or "", DEFAULT_ANNUALIZATION_FACTOR)
    return Decimal(base_salary) * factor


def daily_rate_for(salary: SalaryRecord | None) -> Decimal:
    """Daily rate = annual salary / 260. No active salary means a zero rate."""
    if salary is None:
        return Decimal("0")
    return annualize_salary(salary.base_salary, salary.pay_frequency) / WORKING_DAYS_PER_YEAR


def resolve_payment_policy(is_paid: bool, payment_method: str | None) -> PaymentPolicy:
    """Map a leave type's payment settings to a percentage and transaction type."""
    if not is_paid or payment_method == PaymentMethod.UNPAID:
        return PaymentPolicy(0, TransactionType.UNPAID_DEDUCTION)
    if payment_method == PaymentMethod.REDUCED_PAY:
        return PaymentPolicy(50, TransactionType.PAID_LEAVE)
    if payment_method == PaymentMethod.STATUTORY:
        return PaymentPolicy(66, TransactionType.SICK_LEAVE_STATUTORY)
    return PaymentPolicy(100, TransactionType.PAID_LEAVE)


class LeavePayCalculator:
    """Prices approved leave requests that overlap a finalization period.

    Amounts are rounded half-up to cents. Gross and net are rounded, and the
    deduction is derived as gross - net so the two always reconcile exactly.
    """

    def __init__(self, period_start: date, period_end: date):
        if period_end < period_start:
            raise ValueError(
                f"period_end {period_end} is before period_start {period_start}"
            )
        self.period_start = period_start
        self.period_end = period_end

    def calculate(
        self,
        leave_request: LeaveRequest,
        salary: SalaryRecord | None,
    ) -> LeaveTransaction | None:
        """Compute the leave transaction, or None when no business day overlaps."""
        start, end = effective_overlap(
            leave_request.start_date,
            leave_request.end_date,
            self.period_start,
            self.period_end,
        )
        days = count_business_days(start, end)
        if days == 0:
            return None

        leave_type = leave_request.leave_type
        policy = resolve_payment_policy(leave_type.is_paid, leave_type.payment_method)
        daily_rate = daily_rate_for(salary)

        gross = (Decimal(days) * daily_rate).quantize(CENTS, rounding=ROUND_HALF_UP)
        net = (gross * Decimal(policy.percentage) / Decimal("100")).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )
        deduction = gross - net

        return LeaveTransaction(
            employee_id=leave_request.employee_id,
            leave_request_id=leave_request.leave_request_id,
            leave_type_id=leave_type.leave_type_id,
            leave_type_name=leave_type.name,
            days_in_period=days,
            daily_rate=daily_rate.quantize(RATE_PRECISION, rounding=ROUND_HALF_UP),
            payment_percentage=policy.percentage,
            gross_amount=gross,
            net_amount=net,
            deduction_amount=deduction,
            transaction_type=policy.transaction_type,
            currency=salary.currency if salary is not None else "USD",
        )

    def calculate_all(
        self,
        leave_requests: list[LeaveRequest],
        salaries: dict[UUID, SalaryRecord],
    ) -> list[LeaveTransaction]:
        """Price every request; salaries is keyed by employee id."""
        transactions: list[LeaveTransaction] = []
        for request in leave_requests:
            txn = self.calculate(request, salaries.get(request.employee_id))
            if txn is not None:
                transactions.append(txn)
        return transactions
