"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from finalization_engine.database import init_db
from finalization_engine.services.finalization_service import FinalizationService
from finalization_engine.services.sql_store import SqlAlchemyFinalizationStore
from finalization_engine.services.store import FinalizationStore


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_store() -> FinalizationStore:
    """Finalization store bound to the global session factory."""
    _, factory = init_db()
    return SqlAlchemyFinalizationStore(factory)


def get_finalization_service(
    store: Annotated[FinalizationStore, Depends(get_store)],
) -> FinalizationService:
    return FinalizationService(store)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[FinalizationService, Depends(get_finalization_service)]
