"""
Run State Models
================

Discrete states of one video analysis run.

Transitions:
    IDLE → SAMPLING → ANALYZING → COMPLETE
    SAMPLING → FAILED
    ANALYZING → FAILED

COMPLETE and FAILED are terminal. A new analysis starts a fresh run at IDLE.
"""

from enum import Enum


class RunState(str, Enum):
    """
    States of a video analysis run.

    Attributes:
        IDLE: Run created, nothing started
        SAMPLING: Extracting frames from the video
        ANALYZING: Sending frames through the sequential session
        COMPLETE: Final report produced
        FAILED: Run stopped on a terminal error
    """

    IDLE = "IDLE"
    SAMPLING = "SAMPLING"
    ANALYZING = "ANALYZING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETE, RunState.FAILED)
