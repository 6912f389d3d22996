"""
Structured errors for the recording lifecycle.

Every domain failure is a RecordingError: callers (SessionManager, tool handlers)
turn it into a `success: false` result instead of letting it cross the tool boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass
class RecordingError(Exception):
    """Recording failure with an actionable suggestion for the caller."""

    reason: str
    suggestion: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    code: ClassVar[str] = "recording_error"

    def __str__(self) -> str:
        return self.reason

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "code": self.code,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "details": self.details,
        }


class ConfigurationError(RecordingError):
    code = "configuration"


class InvalidIdentifierError(RecordingError):
    code = "invalid_identifier"


class SessionAlreadyActiveError(RecordingError):
    code = "session_already_active"


class SessionExistsError(RecordingError):
    code = "session_exists"


class TransitionInProgressError(RecordingError):
    code = "transition_in_progress"


class RecordingStartError(RecordingError):
    code = "recording_start_failed"


class RecordingFinalizeError(RecordingError):
    code = "recording_finalize_failed"


class NoActiveSessionError(RecordingError):
    code = "no_active_session"


class SessionActiveError(RecordingError):
    code = "session_active"


class SessionNotFoundError(RecordingError):
    code = "session_not_found"


class ArtifactsNotReadyError(RecordingError):
    code = "artifacts_not_ready"
