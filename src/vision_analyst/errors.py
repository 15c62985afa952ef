"""
Error Taxonomy
==============

Exceptions raised by the analysis pipeline, and the mapping from a terminal
error to what the presentation layer should show.

Taxonomy:
    - MediaLoadError: source cannot be opened or parsed
    - MediaDecodeError: seek or frame capture failed mid-run
    - DeviceAccessError: camera could not be acquired (kind says why)
    - EmptyFrameSetError: sampling produced no frames
    - InferenceCallFailed: inference request failed (transport, service, timeout)
    - MalformedResponse: response received but failed schema validation
    - InvalidTransitionError: run state machine misuse
    - SessionStateError: sequential session used out of order or concurrently

Presentation mapping:
    describe_failure() distinguishes permission failures (offer a
    retry-permission action), empty results (explicit "no frames" message)
    and everything else (generic retry).
"""

from dataclasses import dataclass
from enum import Enum


class VisionAnalystError(Exception):
    """Base class for all pipeline errors."""
    pass


class MediaLoadError(VisionAnalystError):
    """Raised when a media source cannot be opened or its metadata read."""
    pass


class MediaDecodeError(VisionAnalystError):
    """Raised when seeking or capturing a frame fails mid-run."""
    pass


class DeviceErrorKind(str, Enum):
    """
    Classification of camera acquisition failures.

    Attributes:
        PERMISSION_DENIED: OS or user refused access to the device
        NOT_FOUND: No device at the requested index
        BUSY: Device exists but is held by another process
        UNSUPPORTED: No capture backend available in this environment
    """

    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    BUSY = "BUSY"
    UNSUPPORTED = "UNSUPPORTED"


class DeviceAccessError(VisionAnalystError):
    """Raised when a capture device cannot be acquired."""

    def __init__(self, kind: DeviceErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def __repr__(self) -> str:
        return f"DeviceAccessError({self.kind.value}, {str(self)!r})"


class EmptyFrameSetError(VisionAnalystError):
    """Raised when sampling yields zero frames."""
    pass


class InferenceCallFailed(VisionAnalystError):
    """Raised when an inference request fails."""
    pass


class MalformedResponse(VisionAnalystError):
    """Raised when an inference response fails structural validation."""
    pass


class InvalidTransitionError(VisionAnalystError):
    """Raised on a run-state transition the state machine does not allow."""
    pass


class SessionStateError(VisionAnalystError):
    """Raised when a sequential session is used against its contract."""
    pass


# =============================================================================
# Presentation Mapping
# =============================================================================

class FailureKind(str, Enum):
    """What kind of failure the user is looking at."""

    PERMISSION = "PERMISSION"
    EMPTY = "EMPTY"
    GENERIC = "GENERIC"


class RecoveryAction(str, Enum):
    """Action the presentation layer should offer."""

    RETRY_PERMISSION = "RETRY_PERMISSION"
    RETRY = "RETRY"


@dataclass(frozen=True, slots=True)
class FailureNotice:
    """User-facing description of a terminal failure."""

    kind: FailureKind
    message: str
    action: RecoveryAction


_DEVICE_MESSAGES = {
    DeviceErrorKind.PERMISSION_DENIED: (
        "Camera access was denied. Please allow camera access in your "
        "system settings to continue."
    ),
    DeviceErrorKind.NOT_FOUND: (
        "No camera found. Please ensure a camera is connected and "
        "recognized by your device."
    ),
    DeviceErrorKind.BUSY: (
        "Camera is currently in use by another application or OS permission "
        "is blocked. Please close other apps using the camera."
    ),
    DeviceErrorKind.UNSUPPORTED: (
        "Camera capture is not supported in this environment."
    ),
}

EMPTY_FRAMES_MESSAGE = "Could not extract any frames from the video."


def describe_failure(error: BaseException) -> FailureNotice:
    """
    Map a terminal error to the notice the presentation layer should show.

    Args:
        error: The error that ended the run

    Returns:
        FailureNotice with kind, message and recovery action
    """
    if isinstance(error, DeviceAccessError):
        kind = (
            FailureKind.PERMISSION
            if error.kind is DeviceErrorKind.PERMISSION_DENIED
            else FailureKind.GENERIC
        )
        action = (
            RecoveryAction.RETRY_PERMISSION
            if kind is FailureKind.PERMISSION
            else RecoveryAction.RETRY
        )
        return FailureNotice(kind=kind, message=_DEVICE_MESSAGES[error.kind], action=action)

    if isinstance(error, EmptyFrameSetError):
        return FailureNotice(
            kind=FailureKind.EMPTY,
            message=EMPTY_FRAMES_MESSAGE,
            action=RecoveryAction.RETRY,
        )

    message = str(error) or "Analysis failed. Please try again."
    return FailureNotice(kind=FailureKind.GENERIC, message=message, action=RecoveryAction.RETRY)
