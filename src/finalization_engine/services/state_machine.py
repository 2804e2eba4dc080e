"""Finalization run state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class FinalizationStage(str, Enum):
    """Stages of a single finalization run."""

    COMPUTING = "computing"
    VALIDATING = "validating"
    ABORTED = "aborted"
    COMMITTING = "committing"
    DONE = "done"


class InvalidTransitionError(Exception):
    """Raised when an invalid stage transition is attempted."""

    def __init__(self, from_stage: str, to_stage: str, reason: str | None = None):
        self.from_stage = from_stage
        self.to_stage = to_stage
        self.reason = reason
        msg = f"Invalid transition from '{from_stage}' to '{to_stage}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FinalizationStateMachine:
    """State machine for one finalization run.

    Allowed transitions:
    - computing → validating
    - validating → aborted (validation errors, commit mode)
    - validating → committing (clean, commit mode)
    - validating → done (preview mode, never writes)
    - committing → done
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        FinalizationStage.COMPUTING: [FinalizationStage.VALIDATING],
        FinalizationStage.VALIDATING: [
            FinalizationStage.ABORTED,
            FinalizationStage.COMMITTING,
            FinalizationStage.DONE,
        ],
        FinalizationStage.COMMITTING: [FinalizationStage.DONE],
        FinalizationStage.ABORTED: [],  # Terminal
        FinalizationStage.DONE: [],  # Terminal
    }

    TERMINAL = {FinalizationStage.ABORTED, FinalizationStage.DONE}

    def __init__(self, stage: str = FinalizationStage.COMPUTING):
        self.stage = FinalizationStage(stage)
        self.history: list[FinalizationStage] = [self.stage]

    @classmethod
    def can_transition(cls, from_stage: str, to_stage: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_stage, [])
        return to_stage in allowed

    @classmethod
    def validate_transition(cls, from_stage: str, to_stage: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_stage, to_stage):
            reason = "run already finished" if cls.is_terminal(from_stage) else None
            raise InvalidTransitionError(from_stage, to_stage, reason)

    @classmethod
    def is_terminal(cls, stage: str) -> bool:
        return stage in cls.TERMINAL

    @classmethod
    def next_after_validation(cls, has_errors: bool, preview_only: bool) -> FinalizationStage:
        """Decide where a run goes once validation results are known."""
        if preview_only:
            return FinalizationStage.DONE
        if has_errors:
            return FinalizationStage.ABORTED
        return FinalizationStage.COMMITTING

    def transition_to(self, to_stage: str) -> FinalizationStage:
        self.validate_transition(self.stage, to_stage)
        self.stage = FinalizationStage(to_stage)
        self.history.append(self.stage)
        return self.stage
