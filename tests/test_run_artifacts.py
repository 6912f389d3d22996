from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from mcp_servers.recorder.artifacts import ArtifactStore
from mcp_servers.recorder.config import RecorderConfig
from mcp_servers.recorder.errors import RecordingFinalizeError, RecordingStartError
from mcp_servers.recorder.run_artifacts import RunArtifactsController


def _controller(config: RecorderConfig) -> RunArtifactsController:
    return RunArtifactsController(ArtifactStore(config))


def test_start_run_requests_recording_context(recorder_config: RecorderConfig, fake_browser: Any) -> None:
    ctx = _controller(recorder_config).start_run(fake_browser, "p", "r")

    base = Path(recorder_config.storage_root) / "p" / "r"
    assert ctx.base_dir == base
    assert ctx.har_path == base / "network.har"
    assert ctx.trace_path == base / "trace.zip"
    assert ctx.video_path is None

    opts = fake_browser.contexts[0].options
    assert opts["record_video_dir"] == str(base)
    assert opts["record_video_size"] == {"width": 1280, "height": 720}
    assert opts["record_har_path"] == str(base / "network.har")
    assert fake_browser.contexts[0].tracing.start_kwargs == {"screenshots": True, "snapshots": True}


def test_start_run_wraps_collaborator_failure(recorder_config: RecorderConfig, fake_browser: Any) -> None:
    fake_browser.fail_new_context = True
    with pytest.raises(RecordingStartError) as excinfo:
        _controller(recorder_config).start_run(fake_browser, "p", "r")
    assert "Browser has been closed" in excinfo.value.reason
    # The directory may be left behind; creating it again is harmless.
    assert (Path(recorder_config.storage_root) / "p" / "r").is_dir()


def test_start_run_closes_context_when_page_creation_fails(recorder_config: RecorderConfig, make_browser: Any) -> None:
    browser = make_browser(page_fails=True)
    with pytest.raises(RecordingStartError):
        _controller(recorder_config).start_run(browser, "p", "r")
    assert browser.contexts[0].closed is True


def test_finish_run_moves_video_and_builds_manifest(recorder_config: RecorderConfig, fake_browser: Any) -> None:
    controller = _controller(recorder_config)
    ctx = controller.start_run(fake_browser, "p", "r")
    raw_video = Path(ctx.page.video.path())

    manifest = controller.finish_run(ctx)

    base = Path(recorder_config.storage_root) / "p" / "r"
    assert manifest.video_path == str(base / "video.webm")
    assert (base / "video.webm").exists()
    assert not raw_video.exists()
    assert (base / "trace.zip").exists()
    assert (base / "network.har").exists()
    assert manifest.public_video_url == "https://videos.example.test/p/r/video.webm"
    assert manifest.public_har_url == "https://videos.example.test/p/r/network.har"
    assert manifest.public_trace_url == "https://videos.example.test/p/r/trace.zip"
    assert fake_browser.contexts[0].closed is True


def test_finish_run_copies_when_rename_fails(
    recorder_config: RecorderConfig, fake_browser: Any, monkeypatch: pytest.MonkeyPatch
) -> None:
    controller = _controller(recorder_config)
    ctx = controller.start_run(fake_browser, "p", "r")

    def _no_rename(self: Path, target: Any) -> Path:
        raise OSError("cross-device link")

    monkeypatch.setattr(Path, "rename", _no_rename)
    manifest = controller.finish_run(ctx)
    assert manifest.video_path is not None
    assert Path(manifest.video_path).read_bytes().endswith(b"webm")


def test_finish_run_without_video_track(recorder_config: RecorderConfig, make_browser: Any) -> None:
    browser = make_browser(with_video=False)
    controller = _controller(recorder_config)
    manifest = controller.finish_run(controller.start_run(browser, "p", "r"))
    assert manifest.video_path is None
    assert manifest.public_video_url is None
    assert manifest.har_path.endswith("network.har")
    assert manifest.trace_path.endswith("trace.zip")


def test_finish_run_survives_video_that_vanished(recorder_config: RecorderConfig, fake_browser: Any) -> None:
    controller = _controller(recorder_config)
    ctx = controller.start_run(fake_browser, "p", "r")
    # The engine already relocated/deleted the temp file: both rename and copy fail.
    Path(ctx.page.video.path()).unlink()

    manifest = controller.finish_run(ctx)
    assert manifest.video_path is None
    assert manifest.public_trace_url.endswith("/p/r/trace.zip")


def test_finish_run_survives_unresolvable_video_path(recorder_config: RecorderConfig, make_browser: Any) -> None:
    browser = make_browser(video_path_fails=True)
    controller = _controller(recorder_config)
    manifest = controller.finish_run(controller.start_run(browser, "p", "r"))
    assert manifest.video_path is None
    assert browser.contexts[0].closed is True


def test_trace_stop_failure_raises_and_retry_resumes(recorder_config: RecorderConfig, make_browser: Any) -> None:
    browser = make_browser(stop_failures=1)
    controller = _controller(recorder_config)
    ctx = controller.start_run(browser, "p", "r")

    with pytest.raises(RecordingFinalizeError) as excinfo:
        controller.finish_run(ctx)
    assert excinfo.value.details["step"] == "trace_stop"
    assert browser.contexts[0].closed is False

    manifest = controller.finish_run(ctx)
    assert manifest.video_path is not None
    assert browser.contexts[0].closed is True


def test_close_failure_does_not_stop_trace_twice(recorder_config: RecorderConfig, make_browser: Any) -> None:
    browser = make_browser(close_failures=1)
    controller = _controller(recorder_config)
    ctx = controller.start_run(browser, "p", "r")

    with pytest.raises(RecordingFinalizeError) as excinfo:
        controller.finish_run(ctx)
    assert excinfo.value.details["step"] == "context_close"

    controller.finish_run(ctx)
    context = browser.contexts[0]
    assert len(context.tracing.stop_paths) == 1
    assert context.close_calls == 2


def test_abort_run_never_raises(recorder_config: RecorderConfig, make_browser: Any) -> None:
    browser = make_browser(stop_failures=5, close_failures=5)
    controller = _controller(recorder_config)
    ctx = controller.start_run(browser, "p", "r")
    controller.abort_run(ctx)
    assert ctx.trace_stopped is False
    assert ctx.closed is False


def test_video_size_follows_config(tmp_path: Path, fake_browser: Any) -> None:
    config = RecorderConfig(storage_root=str(tmp_path), video_width=640, video_height=480)
    _controller(config).start_run(fake_browser, "p", "r")
    assert fake_browser.contexts[0].options["record_video_size"] == {"width": 640, "height": 480}
