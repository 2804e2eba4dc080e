"""Finalization engine services."""

from finalization_engine.services.finalization_service import (
    FinalizationOutcome,
    FinalizationRequest,
    FinalizationService,
)
from finalization_engine.services.sql_store import SqlAlchemyFinalizationStore
from finalization_engine.services.state_machine import (
    FinalizationStage,
    FinalizationStateMachine,
    InvalidTransitionError,
)
from finalization_engine.services.store import FinalizationStore, FinalizationWriter

__all__ = [
    "FinalizationOutcome",
    "FinalizationRequest",
    "FinalizationService",
    "FinalizationStage",
    "FinalizationStateMachine",
    "FinalizationStore",
    "FinalizationWriter",
    "InvalidTransitionError",
    "SqlAlchemyFinalizationStore",
]
