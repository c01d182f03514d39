"""
Decision Gates - Stage Outcomes & Phase Transitions
===================================================
Every stage call ends in one tagged outcome:

    Ok(value, summary)             → result written, run continues
    Degraded(placeholder, reason)  → placeholder written, warning logged, run continues
    Fatal(reason)                  → run aborts in the error phase

apply_outcome() is the only way a WorkflowState changes after a stage.
It is pure: it returns a new state and never touches the old one.

CRITICAL: Result slots are write-once. Only soft stages may degrade.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple, Union

from core.errors import ListingAgentError, StageFailure
from models.workflow import (
    SLOT_CONTENT,
    SLOT_ELIGIBILITY,
    SLOT_PLATFORMS,
    SLOT_PRICE_RANGE,
    SLOT_PRICE_VALIDATION,
    SLOT_PUBLISHING,
    SLOT_VISION,
    StepRecord,
    WorkflowPhase,
    WorkflowState,
)

# Stage names, in run order
STAGE_VISION = "vision_analysis"
STAGE_PRICE_VALIDATION = "price_validation"
STAGE_ELIGIBILITY = "eligibility_check"
STAGE_PLATFORMS = "platform_ranking"
STAGE_PRICE_RANGE = "price_optimization"
STAGE_CONTENT = "content_generation"
STAGE_PUBLISHING = "publishing"

STAGE_ORDER = (
    STAGE_VISION,
    STAGE_PRICE_VALIDATION,
    STAGE_ELIGIBILITY,
    STAGE_PLATFORMS,
    STAGE_PRICE_RANGE,
    STAGE_CONTENT,
    STAGE_PUBLISHING,
)

STAGE_NUMBER = {stage: i for i, stage in enumerate(STAGE_ORDER, 1)}

STAGE_SLOT = {
    STAGE_VISION: SLOT_VISION,
    STAGE_PRICE_VALIDATION: SLOT_PRICE_VALIDATION,
    STAGE_ELIGIBILITY: SLOT_ELIGIBILITY,
    STAGE_PLATFORMS: SLOT_PLATFORMS,
    STAGE_PRICE_RANGE: SLOT_PRICE_RANGE,
    STAGE_CONTENT: SLOT_CONTENT,
    STAGE_PUBLISHING: SLOT_PUBLISHING,
}

STAGE_PHASE = {
    STAGE_VISION: WorkflowPhase.ANALYSIS,
    STAGE_PRICE_VALIDATION: WorkflowPhase.PRICING,
    STAGE_ELIGIBILITY: WorkflowPhase.PRICING,
    STAGE_PLATFORMS: WorkflowPhase.PLATFORM_SELECTION,
    STAGE_PRICE_RANGE: WorkflowPhase.PLATFORM_SELECTION,
    STAGE_CONTENT: WorkflowPhase.OPTIMIZATION,
    STAGE_PUBLISHING: WorkflowPhase.PUBLISHING,
}

HARD = "hard"
SOFT = "soft"

STAGE_POLICY = {
    STAGE_VISION: HARD,
    STAGE_PRICE_VALIDATION: SOFT,
    STAGE_ELIGIBILITY: SOFT,
    STAGE_PLATFORMS: SOFT,
    STAGE_PRICE_RANGE: HARD,
    STAGE_CONTENT: HARD,
    STAGE_PUBLISHING: HARD,
}

CONTINUE = "continue"
ABORT = "abort"


@dataclass(frozen=True)
class Ok:
    value: Any
    summary: str = ""


@dataclass(frozen=True)
class Degraded:
    placeholder: Any
    reason: str
    failure: Optional[StageFailure] = None


@dataclass(frozen=True)
class Fatal:
    reason: str
    failure: Optional[StageFailure] = None


StageOutcome = Union[Ok, Degraded, Fatal]


class StateTransitionError(ListingAgentError):
    """Illegal state change (slot written twice, unknown stage)."""


def is_hard(stage: str) -> bool:
    return STAGE_POLICY.get(stage) == HARD


def enter_stage(state: WorkflowState, stage: str) -> WorkflowState:
    """State with the phase for stage. Returns the same object if the phase is unchanged."""
    if stage not in STAGE_PHASE:
        raise StateTransitionError(f"Unknown stage: {stage}")
    phase = STAGE_PHASE[stage]
    if state.phase == phase:
        return state
    return replace(state, phase=phase)


def _write_slot(state: WorkflowState, slot: str, value: Any) -> dict:
    if slot in state.results:
        raise StateTransitionError(f"Result slot '{slot}' already written")
    results = dict(state.results)
    results[slot] = value
    return results


def _targets_after(state: WorkflowState, stage: str, value: Any) -> Tuple[tuple, bool]:
    """The platform-ranking stage sets the targets, once."""
    if stage != STAGE_PLATFORMS or state.targets_locked:
        return state.target_platforms, state.targets_locked
    primary = getattr(value, "primary", None)
    if primary:
        return tuple(primary), True
    return state.target_platforms, True


def apply_outcome(
    state: WorkflowState,
    stage: str,
    outcome: StageOutcome,
    duration_ms: int,
) -> Tuple[WorkflowState, str]:
    """
    Folds one stage outcome into the state.

    Returns:
        (new_state, CONTINUE | ABORT)

    Raises:
        StateTransitionError: unknown stage or result slot written twice
    """
    if stage not in STAGE_SLOT:
        raise StateTransitionError(f"Unknown stage: {stage}")
    slot = STAGE_SLOT[stage]

    # Hard stages cannot degrade
    if isinstance(outcome, Degraded) and is_hard(stage):
        outcome = Fatal(reason=outcome.reason, failure=outcome.failure)

    if isinstance(outcome, Ok):
        targets, locked = _targets_after(state, stage, outcome.value)
        new_state = replace(
            state,
            results=_write_slot(state, slot, outcome.value),
            target_platforms=targets,
            targets_locked=locked,
            steps=state.steps + (StepRecord(stage, True, duration_ms, outcome.summary),),
        )
        return new_state, CONTINUE

    if isinstance(outcome, Degraded):
        targets, locked = _targets_after(state, stage, outcome.placeholder)
        new_state = replace(
            state,
            results=_write_slot(state, slot, outcome.placeholder),
            target_platforms=targets,
            targets_locked=locked,
            steps=state.steps + (StepRecord(stage, False, duration_ms, outcome.reason, degraded=True),),
            errors=state.errors + (f"{stage}: {outcome.reason}",),
        )
        return new_state, CONTINUE

    if isinstance(outcome, Fatal):
        new_state = replace(
            state,
            phase=WorkflowPhase.ERROR,
            steps=state.steps + (StepRecord(stage, False, duration_ms, outcome.reason),),
            errors=state.errors + (f"{stage}: {outcome.reason}",),
        )
        return new_state, ABORT

    raise StateTransitionError(f"Unknown outcome type: {type(outcome).__name__}")


def next_action_for(phase: WorkflowPhase, auto_publish: bool) -> Optional[str]:
    """Hint for the caller once the run has stopped."""
    if phase == WorkflowPhase.ERROR:
        return None
    if auto_publish and phase == WorkflowPhase.COMPLETED:
        return "workflow_complete"
    if phase == WorkflowPhase.PRICING:
        return "confirm_price_range"
    return "confirm_publishing"
