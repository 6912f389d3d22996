"""Start/finish protocol for one recording against Playwright.

finish_run() is an ordered, best-effort sequence:
1. video reconciliation (errors logged, never raised)
2. trace stop (raises RecordingFinalizeError)
3. context close, which also flushes the HAR (raises RecordingFinalizeError)

The video temp path is only valid while the context is open, so step 1 runs first.
Playwright may still relocate or delete the temp file while closing, hence
rename-then-copy.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .artifacts import ArtifactManifest, ArtifactStore
from .errors import RecordingFinalizeError, RecordingStartError

if TYPE_CHECKING:
    from playwright.sync_api import Browser, BrowserContext, Page

logger = logging.getLogger("mcp.recorder.run")


@dataclass
class RecordingContext:
    """Live Playwright resources for exactly one in-flight recording."""

    context: BrowserContext
    page: Page
    base_dir: Path
    har_path: Path
    trace_path: Path
    video_path: Path | None = None
    # Finalize progress, so a retried finish_run resumes at the failed step.
    trace_stopped: bool = False
    closed: bool = False


class RunArtifactsController:
    def __init__(self, store: ArtifactStore) -> None:
        self.store = store

    def _context_options(self, base_dir: Path, har_path: Path) -> dict[str, Any]:
        cfg = self.store.config
        return {
            "record_video_dir": str(base_dir),
            "record_video_size": {"width": cfg.video_width, "height": cfg.video_height},
            "record_har_path": str(har_path),
        }

    def start_run(self, browser: Browser, project_id: str, run_id: str) -> RecordingContext:
        try:
            base_dir = self.store.base_dir(project_id, run_id)
        except OSError as exc:
            raise RecordingStartError(
                reason=f"could not create artifact directory: {exc}",
                suggestion="Check MCP_RECORDING_ROOT points to a writable directory with free space",
                details={"projectId": project_id, "runId": run_id},
            ) from exc
        paths = self.store.paths(base_dir)

        context = None
        try:
            context = browser.new_context(**self._context_options(base_dir, paths.har_path))
            context.tracing.start(screenshots=True, snapshots=True)
            page = context.new_page()
        except Exception as exc:
            if context is not None:
                with suppress(Exception):
                    context.close()
            raise RecordingStartError(
                reason=f"could not create recording context: {exc}",
                suggestion="Check the browser is running and supports video/HAR recording, then retry start",
                details={"projectId": project_id, "runId": run_id},
            ) from exc

        logger.info("recording_started project=%s run=%s dir=%s", project_id, run_id, base_dir)
        return RecordingContext(
            context=context,
            page=page,
            base_dir=base_dir,
            har_path=paths.har_path,
            trace_path=paths.trace_path,
        )

    def _reconcile_video(self, ctx: RecordingContext) -> None:
        if ctx.video_path is not None and ctx.video_path.exists():
            return
        try:
            video = ctx.page.video
            if video is None:
                logger.info("video_missing dir=%s", ctx.base_dir)
                return
            raw = Path(video.path())
        except Exception as exc:
            logger.warning("video_path_unavailable dir=%s error=%s", ctx.base_dir, exc)
            return

        target = self.store.paths(ctx.base_dir).video_path
        if raw == target:
            ctx.video_path = target
            return
        try:
            raw.rename(target)
        except OSError as rename_exc:
            try:
                shutil.copyfile(raw, target)
            except OSError as copy_exc:
                logger.warning(
                    "video_reconcile_failed src=%s dst=%s rename=%s copy=%s", raw, target, rename_exc, copy_exc
                )
                return
        ctx.video_path = target

    def finish_run(self, ctx: RecordingContext) -> ArtifactManifest:
        if not ctx.closed:
            self._reconcile_video(ctx)

        if not ctx.trace_stopped:
            try:
                ctx.context.tracing.stop(path=str(ctx.trace_path))
            except Exception as exc:
                raise RecordingFinalizeError(
                    reason=f"failed to stop trace capture: {exc}",
                    suggestion="Retry stop; use force=true to abandon the recording",
                    details={"step": "trace_stop", "tracePath": str(ctx.trace_path)},
                ) from exc
            ctx.trace_stopped = True

        if not ctx.closed:
            try:
                ctx.context.close()
            except Exception as exc:
                raise RecordingFinalizeError(
                    reason=f"failed to close recording context: {exc}",
                    suggestion="Retry stop; use force=true to abandon the recording",
                    details={"step": "context_close", "harPath": str(ctx.har_path)},
                ) from exc
            ctx.closed = True

        manifest = self.store.build_manifest(
            video_path=ctx.video_path,
            har_path=ctx.har_path,
            trace_path=ctx.trace_path,
        )
        logger.info("recording_finalized dir=%s video=%s", ctx.base_dir, ctx.video_path is not None)
        return manifest

    def abort_run(self, ctx: RecordingContext) -> None:
        """Release the recording resources without producing a manifest."""
        if not ctx.trace_stopped:
            try:
                ctx.context.tracing.stop()
                ctx.trace_stopped = True
            except Exception as exc:
                logger.warning("abort_trace_stop_failed dir=%s error=%s", ctx.base_dir, exc)
        if not ctx.closed:
            try:
                ctx.context.close()
                ctx.closed = True
            except Exception as exc:
                logger.warning("abort_close_failed dir=%s error=%s", ctx.base_dir, exc)
