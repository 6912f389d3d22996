"""
Recording tool handlers.

Thin adapters: argument checks -> SessionManager operation -> human-readable text.
The structured result shape is attached as `ToolResult.data`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..types import HandlerFunc, ToolResult

if TYPE_CHECKING:
    from ...artifacts import ArtifactManifest
    from ...config import RecorderConfig
    from ...launcher import BrowserLauncher
    from ...session_manager import OperationResult, SessionManager


def _minutes(duration_ms: int | None) -> str:
    if duration_ms is None:
        return "N/A"
    return f"{round(duration_ms / 60000, 2)} min"


def _failure(tool: str, prefix: str, result: OperationResult) -> ToolResult:
    suggestion = result.error.suggestion if result.error is not None else None
    return ToolResult.error(f"{prefix}: {result.message}", tool=tool, suggestion=suggestion, data=result.to_dict())


def _require_str(args: dict[str, Any], key: str, tool: str) -> str | ToolResult:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        return ToolResult.error(f"'{key}' is required and must be a non-empty string", tool=tool)
    return value.strip()


def _artifact_lines(manifest: ArtifactManifest, *, indent: str = "- ", video_missing: str = "N/A") -> list[str]:
    return [
        f"{indent}Video: {manifest.public_video_url or video_missing}",
        f"{indent}Network HAR: {manifest.public_har_url}",
        f"{indent}Trace: {manifest.public_trace_url}",
    ]


def recording_handlers(manager: SessionManager) -> dict[str, tuple[HandlerFunc, bool]]:
    """Build the recording handlers bound to one SessionManager."""

    def handle_start_recording(config: RecorderConfig, launcher: BrowserLauncher, args: dict[str, Any]) -> ToolResult:
        tool = "browser_start_recording"
        project_id = _require_str(args, "projectId", tool)
        if isinstance(project_id, ToolResult):
            return project_id
        run_id = args.get("runId")
        if run_id is not None and not isinstance(run_id, str):
            return ToolResult.error("'runId' must be a string", tool=tool)
        run_id = (run_id or "").strip() or None

        result = manager.start(launcher.browser, project_id, run_id)
        if not result.success:
            return _failure(tool, "Failed to start recording", result)

        size = f"{config.video_width}x{config.video_height}"
        text = "\n".join(
            [
                "Recording started successfully!",
                "",
                f"Project: {result.project_id}",
                f"Run ID: {result.run_id}",
                "",
                "Recording will capture:",
                f"- Video ({size})",
                "- Network requests (HAR)",
                "- Playwright traces",
                "",
                "Use browser_stop_recording to finish and get artifact URLs.",
            ]
        )
        return ToolResult.text(text, data=result.to_dict())

    def handle_stop_recording(config: RecorderConfig, launcher: BrowserLauncher, args: dict[str, Any]) -> ToolResult:
        tool = "browser_stop_recording"
        force = args.get("force", False)
        if not isinstance(force, bool):
            return ToolResult.error(
                "'force' must be a boolean",
                tool=tool,
                suggestion="Pass force=true only to abandon a recording whose finalize keeps failing",
            )
        result = manager.stop(force=force)
        if not result.success:
            return _failure(tool, "Failed to stop recording", result)

        lines = ["Recording stopped successfully!", "", f"Project: {result.project_id}", f"Run ID: {result.run_id}"]
        if result.artifacts is not None:
            lines += ["", "Artifacts:", *_artifact_lines(result.artifacts)]
        return ToolResult.text("\n".join(lines), data=result.to_dict())

    def handle_recording_status(config: RecorderConfig, launcher: BrowserLauncher, args: dict[str, Any]) -> ToolResult:
        status = manager.status()
        session = status.get("session")
        if not status.get("isRecording") or not isinstance(session, dict):
            return ToolResult.text("No active recording session", data=status)
        text = "\n".join(
            [
                "Recording in progress:",
                "",
                f"Project: {session['projectId']}",
                f"Run ID: {session['runId']}",
                f"Started: {session['startTime']}",
                f"Duration: {round(session['duration'] / 60000, 2)} minutes",
            ]
        )
        return ToolResult.text(text, data=status)

    def handle_list_recordings(config: RecorderConfig, launcher: BrowserLauncher, args: dict[str, Any]) -> ToolResult:
        result = manager.list(args.get("limit"))
        recordings = result["recordings"]
        if not recordings:
            return ToolResult.text("No recording sessions found", data=result)

        blocks: list[str] = []
        for rec in recordings:
            active = rec["status"] == "active"
            header = f"{'[ACTIVE]' if active else '[COMPLETED]'} {rec['projectId']}/{rec['runId']}"
            lines = [header, f"  Started: {rec['startTime']}", f"  Duration: {_minutes(rec['duration'])}"]
            if not active:
                artifacts = rec.get("artifacts")
                if artifacts:
                    lines += [
                        f"  Video: {artifacts.get('publicVideoUrl') or 'N/A'}",
                        f"  HAR: {artifacts.get('publicHarUrl')}",
                        f"  Trace: {artifacts.get('publicTraceUrl')}",
                    ]
                else:
                    lines.append("  Artifacts: Not available")
            blocks.append("\n".join(lines))

        text = f"Recording Sessions ({len(recordings)}/{result['total']}):\n\n" + "\n\n".join(blocks)
        return ToolResult.text(text, data=result)

    def handle_get_artifacts(config: RecorderConfig, launcher: BrowserLauncher, args: dict[str, Any]) -> ToolResult:
        tool = "browser_get_recording_artifacts"
        project_id = _require_str(args, "projectId", tool)
        if isinstance(project_id, ToolResult):
            return project_id
        run_id = _require_str(args, "runId", tool)
        if isinstance(run_id, ToolResult):
            return run_id

        result = manager.get_artifacts(project_id, run_id)
        if not result.success or result.artifacts is None:
            return _failure(tool, "Failed to get artifacts", result)

        manifest = result.artifacts
        lines = [
            f"Artifacts for {project_id}/{run_id}:",
            "",
            *_artifact_lines(manifest, video_missing="Not available"),
            "",
            "Local paths:",
            f"- Video: {manifest.video_path or 'Not available'}",
            f"- HAR: {manifest.har_path}",
            f"- Trace: {manifest.trace_path}",
        ]
        data = {"success": True, "artifacts": manifest.to_dict(), "message": result.message}
        return ToolResult.text("\n".join(lines), data=data)

    return {
        "browser_start_recording": (handle_start_recording, True),
        "browser_stop_recording": (handle_stop_recording, False),
        "browser_recording_status": (handle_recording_status, False),
        "browser_list_recordings": (handle_list_recordings, False),
        "browser_get_recording_artifacts": (handle_get_artifacts, False),
    }
