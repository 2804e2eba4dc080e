"""Resolves which employees a finalization covers."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from uuid import UUID

from finalization_engine.errors import CollectionError, ScopeEmptyError
from finalization_engine.services.store import FinalizationStore

logger = logging.getLogger(__name__)


class ScopeResolver:
    """Determines the employee set for a run.

    Precedence:
    1. Explicit employee ids (used verbatim; department is ignored)
    2. All employees of the department in the company
    3. Employees assigned to the timekeeper
    """

    def __init__(self, store: FinalizationStore):
        self.store = store

    async def resolve(
        self,
        company_id: UUID,
        timekeeper_id: UUID,
        department_id: UUID | None = None,
        employee_ids: list[UUID] | None = None,
    ) -> list[UUID]:
        """Return the employee ids to process.

        Raises:
            ScopeEmptyError: If resolution yields no employees
            CollectionError: If the directory lookup fails
        """
        if employee_ids:
            resolved = list(dict.fromkeys(employee_ids))
            source = "explicit"
        elif department_id is not None:
            resolved = await self._lookup(
                "department employees",
                self.store.employees_in_department(company_id, department_id),
            )
            source = "department"
        else:
            resolved = await self._lookup(
                "timekeeper employees",
                self.store.employees_for_timekeeper(company_id, timekeeper_id),
            )
            source = "timekeeper"

        if not resolved:
            raise ScopeEmptyError(company_id, department_id, timekeeper_id)

        logger.info(
            "Resolved %d employees for company %s from %s scope",
            len(resolved),
            company_id,
            source,
        )
        return resolved

    async def _lookup(self, source: str, query: Awaitable[list[UUID]]) -> list[UUID]:
        try:
            return list(await query)
        except Exception as e:
            raise CollectionError(source, e) from e
