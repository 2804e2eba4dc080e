"""Period finalization API endpoints."""

import logging
from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status
from fastapi.responses import JSONResponse

from finalization_engine.api.dependencies import Service
from finalization_engine.api.schemas import (
    CommitResponse,
    ErrorResponse,
    FinalizationListResponse,
    FinalizationRecordResponse,
    FinalizationSummaryResponse,
    FinalizeRequest,
    LeaveTransactionListResponse,
    LeaveTransactionResponse,
    PreviewResponse,
    RepairResponse,
    ValidationFailedResponse,
)
from finalization_engine.services.finalization_service import (
    VALIDATION_FAILED,
    FinalizationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finalizations", tags=["finalizations"])


# ============================================================================
# Finalize
# ============================================================================


@router.post(
    "",
    response_model=PreviewResponse | CommitResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ValidationFailedResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def finalize_period(
    service: Service,
    payload: FinalizeRequest,
) -> PreviewResponse | CommitResponse | JSONResponse:
    """Preview or commit the time-and-attendance finalization of a period.

    A commit is refused with 422 while any validation error remains; the
    computed summary is returned so the caller can see what to fix.
    """
    request = FinalizationRequest.build(
        company_id=payload.company_id,
        period_start=payload.period_start,
        period_end=payload.period_end,
        timekeeper_id=payload.timekeeper_id,
        department_id=payload.department_id,
        employee_ids=payload.employee_ids,
        preview_only=payload.preview_only,
    )
    outcome = await service.finalize(request)
    summary = FinalizationSummaryResponse.from_summary(outcome.summary)

    if outcome.preview:
        return PreviewResponse(summary=summary)

    if not outcome.success:
        body = ValidationFailedResponse(
            error=VALIDATION_FAILED,
            validation_errors=outcome.validation_errors,
            summary=summary,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=body.model_dump(mode="json", by_alias=True),
        )

    if outcome.side_write_failures:
        logger.warning(
            "Finalization %s committed with failed side writes: %s",
            outcome.finalization_id,
            ", ".join(outcome.side_write_failures),
        )

    return CommitResponse(
        finalization_id=outcome.finalization_id,
        summary=summary,
        message=outcome.message or "",
    )


# ============================================================================
# Finalization records
# ============================================================================


@router.get(
    "",
    response_model=FinalizationListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_finalizations(
    service: Service,
    company_id: Annotated[UUID, Query(alias="companyId")],
    period_start: Annotated[date | None, Query(alias="periodStart")] = None,
    period_end: Annotated[date | None, Query(alias="periodEnd")] = None,
) -> FinalizationListResponse:
    """List finalization records of a company, newest period first."""
    records = await service.list_finalizations(company_id, period_start, period_end)
    items = [FinalizationRecordResponse.from_record(r) for r in records]
    return FinalizationListResponse(items=items, total=len(items))


@router.get(
    "/{finalization_id}",
    response_model=FinalizationRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_finalization(
    service: Service,
    finalization_id: Annotated[UUID, Path()],
) -> FinalizationRecordResponse:
    """Get one finalization record."""
    record = await service.get_finalization(finalization_id)
    return FinalizationRecordResponse.from_record(record)


@router.get(
    "/{finalization_id}/leave-transactions",
    response_model=LeaveTransactionListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_leave_transactions(
    service: Service,
    finalization_id: Annotated[UUID, Path()],
) -> LeaveTransactionListResponse:
    """List the leave payroll transactions written by a finalization."""
    transactions = await service.list_leave_transactions(finalization_id)
    items = [LeaveTransactionResponse.from_transaction(t) for t in transactions]
    return LeaveTransactionListResponse(
        finalization_id=finalization_id,
        items=items,
        total=len(items),
    )


@router.post(
    "/{finalization_id}/repair",
    response_model=RepairResponse,
    responses={404: {"model": ErrorResponse}},
)
async def repair_finalization(
    service: Service,
    finalization_id: Annotated[UUID, Path()],
) -> RepairResponse:
    """Re-apply timesheet and exception stamps for a committed finalization."""
    counts = await service.reapply_side_writes(finalization_id)
    return RepairResponse(finalization_id=finalization_id, **counts)
