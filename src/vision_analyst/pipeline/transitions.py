"""
Run State Transitions
=====================

Allowed transitions between run states.

Transition Rules:
    IDLE      → SAMPLING
    SAMPLING  → ANALYZING | FAILED
    ANALYZING → COMPLETE  | FAILED

Nothing leaves COMPLETE or FAILED. A new analysis creates a new run.
"""

import logging
from typing import Dict, FrozenSet

from vision_analyst.errors import InvalidTransitionError
from vision_analyst.models.state import RunState


logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[RunState, FrozenSet[RunState]] = {
    RunState.IDLE: frozenset({RunState.SAMPLING}),
    RunState.SAMPLING: frozenset({RunState.ANALYZING, RunState.FAILED}),
    RunState.ANALYZING: frozenset({RunState.COMPLETE, RunState.FAILED}),
    RunState.COMPLETE: frozenset(),
    RunState.FAILED: frozenset(),
}


def can_transition(current: RunState, target: RunState) -> bool:
    """Check whether current → target is allowed."""
    return target in ALLOWED_TRANSITIONS[current]


def advance(current: RunState, target: RunState, run_id: str = "") -> RunState:
    """
    Validate and log a state transition.

    Args:
        current: State the run is in
        target: State to move to
        run_id: Run identifier for logging

    Returns:
        The target state

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Run {run_id}: transition {current.value} → {target.value} is not allowed"
        )

    if target is RunState.FAILED:
        logger.warning(f"Run {run_id}: {current.value} → {target.value}")
    else:
        logger.info(f"Run {run_id}: {current.value} → {target.value}")

    return target
