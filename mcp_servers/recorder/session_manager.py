"""Recording session state machine.

States:
- Idle: no active session
- Recording: exactly one active session (one live browser context)

History is append-only for the lifetime of the manager. A session's status and
duration are derived at read time, never stored.

Browser I/O (start_run / finish_run) runs outside the lock; the lock only guards
the active slot, the in-flight transition marker and the history list, so
status()/list() never wait on Playwright.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from .artifacts import ArtifactManifest, ArtifactStore, make_run_id
from .config import RecorderConfig
from .errors import (
    ArtifactsNotReadyError,
    NoActiveSessionError,
    RecordingError,
    SessionActiveError,
    SessionAlreadyActiveError,
    SessionExistsError,
    SessionNotFoundError,
    TransitionInProgressError,
)
from .run_artifacts import RecordingContext, RunArtifactsController

if TYPE_CHECKING:
    from playwright.sync_api import Browser

logger = logging.getLogger("mcp.recorder.session")

_MAX_RUN_ID_ATTEMPTS = 8


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat().replace("+00:00", "Z") if value is not None else None


def _millis(start: datetime, end: datetime) -> int:
    return max(0, int((end - start).total_seconds() * 1000))


@dataclass
class Session:
    project_id: str
    run_id: str
    start_time: datetime
    end_time: datetime | None = None
    artifacts: ArtifactManifest | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.project_id, self.run_id)


@dataclass
class _ActiveSession:
    session: Session
    ctx: RecordingContext


@dataclass
class OperationResult:
    """Outcome of a manager operation (`success: false` instead of raising)."""

    success: bool
    message: str
    project_id: str | None = None
    run_id: str | None = None
    artifacts: ArtifactManifest | None = None
    error: RecordingError | None = field(default=None, repr=False)

    @classmethod
    def failure(
        cls,
        error: RecordingError,
        *,
        message: str | None = None,
        project_id: str | None = None,
        run_id: str | None = None,
    ) -> OperationResult:
        return cls(
            success=False,
            message=message or error.reason,
            project_id=project_id,
            run_id=run_id,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.project_id is not None:
            out["projectId"] = self.project_id
        if self.run_id is not None:
            out["runId"] = self.run_id
        if self.artifacts is not None:
            out["artifacts"] = self.artifacts.to_dict()
        out["message"] = self.message
        return out


class SessionManager:
    """Owns the single active recording and the session history."""

    def __init__(
        self,
        config: RecorderConfig | None = None,
        *,
        store: ArtifactStore | None = None,
        controller: RunArtifactsController | None = None,
        clock: Callable[[], datetime] = _utcnow,
        run_id_factory: Callable[[], str] = make_run_id,
    ) -> None:
        self.config = config or RecorderConfig.from_env()
        self.store = store or ArtifactStore(self.config)
        self.controller = controller or RunArtifactsController(self.store)
        self._clock = clock
        self._run_id_factory = run_id_factory
        self._lock = threading.Lock()
        self._current: _ActiveSession | None = None
        self._transition: str | None = None
        self._history: list[Session] = []

    # ─────────────────────────────────────────────────────────────────────────
    # Internals (call with self._lock held)
    # ─────────────────────────────────────────────────────────────────────────

    def _find(self, project_id: str, run_id: str) -> Session | None:
        for entry in self._history:
            if entry.key == (project_id, run_id):
                return entry
        return None

    def _is_active(self, project_id: str, run_id: str) -> bool:
        return self._current is not None and self._current.session.key == (project_id, run_id)

    def _new_run_id(self, project_id: str) -> str:
        for _ in range(_MAX_RUN_ID_ATTEMPTS):
            candidate = self._run_id_factory()
            if self._find(project_id, candidate) is None:
                return candidate
        raise RuntimeError("run id generator keeps colliding with history")

    # ─────────────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────────────

    def start(self, browser: Browser, project_id: str, run_id: str | None = None) -> OperationResult:
        try:
            ArtifactStore.validate_id("projectId", project_id)
            if run_id is not None:
                ArtifactStore.validate_id("runId", run_id)
        except RecordingError as exc:
            return OperationResult.failure(
                exc,
                message=f"Failed to start recording session: {exc.reason}",
                project_id=project_id if isinstance(project_id, str) else None,
                run_id=run_id if isinstance(run_id, str) else "",
            )

        with self._lock:
            if self._current is not None:
                active = self._current.session
                err = SessionAlreadyActiveError(
                    reason=f"Recording session already active: {active.project_id}/{active.run_id}",
                    suggestion="Stop the active recording with browser_stop_recording first",
                    details={"projectId": active.project_id, "runId": active.run_id},
                )
                return OperationResult.failure(err, project_id=project_id, run_id=run_id or "")
            if self._transition is not None:
                err = TransitionInProgressError(
                    reason=f"Recording {self._transition} already in progress",
                    suggestion="Wait for the pending operation to finish, then retry",
                )
                return OperationResult.failure(err, project_id=project_id, run_id=run_id or "")
            if run_id is None:
                run_id = self._new_run_id(project_id)
            elif self._find(project_id, run_id) is not None:
                err = SessionExistsError(
                    reason=f"Recording session already exists: {project_id}/{run_id}",
                    suggestion="Use a new runId or omit it to generate one",
                    details={"projectId": project_id, "runId": run_id},
                )
                return OperationResult.failure(err, project_id=project_id, run_id=run_id)
            self._transition = "start"

        try:
            try:
                ctx = self.controller.start_run(browser, project_id, run_id)
            except RecordingError as exc:
                logger.warning("recording_start_failed project=%s run=%s error=%s", project_id, run_id, exc)
                return OperationResult.failure(
                    exc,
                    message=f"Failed to start recording session: {exc.reason}",
                    project_id=project_id,
                    run_id=run_id,
                )

            session = Session(project_id=project_id, run_id=run_id, start_time=self._clock())
            with self._lock:
                self._current = _ActiveSession(session=session, ctx=ctx)
                self._history.append(session)
        finally:
            with self._lock:
                self._transition = None

        return OperationResult(
            success=True,
            message=f"Recording session started: {project_id}/{run_id}",
            project_id=project_id,
            run_id=run_id,
        )

    def stop(self, *, force: bool = False) -> OperationResult:
        with self._lock:
            if self._current is None:
                if self._transition is not None:
                    err: RecordingError = TransitionInProgressError(
                        reason=f"Recording {self._transition} already in progress",
                        suggestion="Wait for the pending operation to finish, then retry",
                    )
                else:
                    err = NoActiveSessionError(
                        reason="No active recording session to stop",
                        suggestion="Start one with browser_start_recording",
                    )
                return OperationResult.failure(err)
            if self._transition is not None:
                err = TransitionInProgressError(
                    reason=f"Recording {self._transition} already in progress",
                    suggestion="Wait for the pending operation to finish, then retry",
                )
                return OperationResult.failure(err)
            active = self._current
            self._transition = "stop"

        session = active.session
        project_id, run_id = session.key
        try:
            try:
                manifest = self.controller.finish_run(active.ctx)
            except RecordingError as exc:
                if not force:
                    # Stay in Recording: the context may still be open and worth finalizing again.
                    logger.warning("recording_stop_failed project=%s run=%s error=%s", project_id, run_id, exc)
                    return OperationResult.failure(
                        exc,
                        message=f"Failed to stop recording session: {exc.reason}",
                        project_id=project_id,
                        run_id=run_id,
                    )
                self.controller.abort_run(active.ctx)
                with self._lock:
                    entry = self._find(project_id, run_id) or session
                    entry.end_time = max(self._clock(), entry.start_time)
                    self._current = None
                logger.warning("recording_abandoned project=%s run=%s error=%s", project_id, run_id, exc)
                return OperationResult.failure(
                    exc,
                    message=f"Recording session closed without artifacts: {project_id}/{run_id} ({exc.reason})",
                    project_id=project_id,
                    run_id=run_id,
                )

            with self._lock:
                entry = self._find(project_id, run_id) or session
                entry.end_time = max(self._clock(), entry.start_time)
                entry.artifacts = manifest
                self._current = None
        finally:
            with self._lock:
                self._transition = None

        logger.info("recording_stopped project=%s run=%s", project_id, run_id)
        return OperationResult(
            success=True,
            message=f"Recording session stopped: {project_id}/{run_id}",
            project_id=project_id,
            run_id=run_id,
            artifacts=manifest,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def status(self) -> dict[str, Any]:
        with self._lock:
            active = self._current
        if active is None:
            return {"isRecording": False}
        session = active.session
        return {
            "isRecording": True,
            "session": {
                "projectId": session.project_id,
                "runId": session.run_id,
                "startTime": _iso(session.start_time),
                "duration": _millis(session.start_time, self._clock()),
            },
        }

    def list(self, limit: Any = None) -> dict[str, Any]:
        limit_i = self.config.clamp_limit(limit)
        now = self._clock()
        with self._lock:
            total = len(self._history)
            recent = list(reversed(self._history[-limit_i:]))
            recordings = []
            for entry in recent:
                active = self._is_active(*entry.key)
                if entry.end_time is not None:
                    duration: int | None = _millis(entry.start_time, entry.end_time)
                elif active:
                    duration = _millis(entry.start_time, now)
                else:
                    duration = None
                recordings.append(
                    {
                        "projectId": entry.project_id,
                        "runId": entry.run_id,
                        "startTime": _iso(entry.start_time),
                        "endTime": _iso(entry.end_time),
                        "duration": duration,
                        "status": "active" if active else "completed",
                        "artifacts": entry.artifacts.to_dict() if entry.artifacts is not None else None,
                    }
                )
        return {"recordings": recordings, "total": total}

    def get_artifacts(self, project_id: str, run_id: str) -> OperationResult:
        try:
            ArtifactStore.validate_id("projectId", project_id)
            ArtifactStore.validate_id("runId", run_id)
        except RecordingError as exc:
            return OperationResult.failure(exc)

        with self._lock:
            if self._is_active(project_id, run_id):
                err: RecordingError = SessionActiveError(
                    reason="Recording session is still active. Stop the session to access artifacts.",
                    suggestion="Call browser_stop_recording, then retry",
                    details={"projectId": project_id, "runId": run_id},
                )
                return OperationResult.failure(err)
            entry = self._find(project_id, run_id)
            if entry is None:
                err = SessionNotFoundError(
                    reason=f"Recording session not found: {project_id}/{run_id}",
                    suggestion="Use browser_list_recordings to see known sessions",
                )
                return OperationResult.failure(err)
            manifest = entry.artifacts
        if manifest is None:
            err = ArtifactsNotReadyError(
                reason=f"Artifacts not available for session: {project_id}/{run_id}",
                suggestion="The session ended without a completed finalize; start a new recording",
            )
            return OperationResult.failure(err)
        return OperationResult(
            success=True,
            message=f"Artifacts retrieved for session: {project_id}/{run_id}",
            project_id=project_id,
            run_id=run_id,
            artifacts=manifest,
        )

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._current is not None
