"""Concurrent read stage of a finalization run."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable
from datetime import date, datetime, time
from typing import Any, TypeVar
from uuid import UUID

from finalization_engine.calculators.engine import CollectedData
from finalization_engine.calculators.types import EmployeeRef
from finalization_engine.errors import CollectionError
from finalization_engine.services.store import FinalizationStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

END_OF_DAY = time(23, 59, 59)


def period_bounds(period_start: date, period_end: date) -> tuple[datetime, datetime]:
    """Clock-in window: 00:00:00 of the first day to 23:59:59 of the last."""
    return datetime.combine(period_start, time.min), datetime.combine(period_end, END_OF_DAY)


class DataCollector:
    """Fetches everything a run needs and indexes it by employee id.

    The reads are independent and are issued concurrently. Any failure is
    fatal and surfaces as CollectionError before computation starts.
    """

    def __init__(self, store: FinalizationStore):
        self.store = store

    async def collect(
        self,
        employee_ids: list[UUID],
        period_start: date,
        period_end: date,
    ) -> CollectedData:
        clock_in_from, clock_in_to = period_bounds(period_start, period_end)

        employees, entries, exceptions, leave_requests, salaries = await asyncio.gather(
            self._read("employees", self.store.load_employees(employee_ids)),
            self._read(
                "time entries",
                self.store.load_time_entries(employee_ids, clock_in_from, clock_in_to),
            ),
            self._read(
                "attendance exceptions",
                self.store.load_attendance_exceptions(employee_ids, period_start, period_end),
            ),
            self._read(
                "leave requests",
                self.store.load_approved_leave_requests(
                    employee_ids, period_start, period_end
                ),
            ),
            self._read("salaries", self.store.load_active_salaries(employee_ids)),
        )

        names = {e.employee_id: e.full_name for e in employees}
        data = CollectedData(
            # Keep scope order; unknown ids still get a row so they are validated.
            employees=[
                EmployeeRef(employee_id=emp_id, full_name=names.get(emp_id, str(emp_id)))
                for emp_id in employee_ids
            ],
            time_entries=_group(entries),
            exceptions=_group(exceptions),
            leave_requests=_group(leave_requests),
            # Last one wins; the store returns salaries oldest first.
            salaries={s.employee_id: s for s in salaries},
        )

        logger.debug(
            "Collected %d time entries, %d exceptions, %d leave requests, "
            "%d salaries for %d employees",
            len(entries),
            len(exceptions),
            len(leave_requests),
            len(salaries),
            len(employee_ids),
        )
        return data

    async def _read(self, source: str, query: Awaitable[list[T]]) -> list[T]:
        try:
            return list(await query)
        except Exception as e:
            raise CollectionError(source, e) from e


def _group(records: list[Any]) -> dict[UUID, list[Any]]:
    grouped: dict[UUID, list[Any]] = defaultdict(list)
    for record in records:
        grouped[record.employee_id].append(record)
    return dict(grouped)
