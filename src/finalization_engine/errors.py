"""Exceptions raised by the finalization engine.

Business validation problems (missing punches, unresolved exceptions) are not
exceptions: they are accumulated on the summary and only block a commit.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID


class FinalizationError(Exception):
    """Base class for finalization failures."""


class RequestValidationError(FinalizationError):
    """Raised when required invocation fields are missing or malformed."""

    def __init__(self, missing_fields: list[str], detail: str | None = None):
        self.missing_fields = missing_fields
        msg = detail or "Missing required fields: " + ", ".join(missing_fields)
        super().__init__(msg)


class ScopeEmptyError(FinalizationError):
    """Raised when scope resolution yields no employees."""

    def __init__(
        self,
        company_id: UUID,
        department_id: UUID | None = None,
        timekeeper_id: UUID | None = None,
    ):
        self.company_id = company_id
        self.department_id = department_id
        self.timekeeper_id = timekeeper_id
        super().__init__("No employees found for finalization")


class CollectionError(FinalizationError):
    """Raised when a read from a collaborator store fails."""

    def __init__(self, source: str, cause: BaseException):
        self.source = source
        self.cause = cause
        super().__init__(f"Failed to load {source}: {cause}")


class CommitError(FinalizationError):
    """Raised when the finalization record cannot be written."""

    def __init__(
        self,
        company_id: UUID,
        period_start: date,
        period_end: date,
        cause: BaseException,
    ):
        self.company_id = company_id
        self.period_start = period_start
        self.period_end = period_end
        self.cause = cause
        super().__init__(
            f"Failed to save finalization for company {company_id} "
            f"({period_start} to {period_end}): {cause}"
        )


class FinalizationNotFoundError(FinalizationError):
    """Raised when a finalization record does not exist."""

    def __init__(self, finalization_id: UUID):
        self.finalization_id = finalization_id
        super().__init__(f"Finalization {finalization_id} not found")
