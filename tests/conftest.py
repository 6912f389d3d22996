from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any

import pytest

from mcp_servers.recorder.config import RecorderConfig
from mcp_servers.recorder.session_manager import SessionManager

PUBLIC_BASE = "https://videos.example.test"

_video_ids = itertools.count(1)


class _FakeVideo:
    def __init__(self, path: Path, *, fail_path: bool = False) -> None:
        self._path = path
        self._fail_path = fail_path

    def path(self) -> str:
        if self._fail_path:
            raise RuntimeError("Path is not available when connecting remotely")
        return str(self._path)


class _FakePage:
    def __init__(self, video: _FakeVideo | None) -> None:
        self.video = video


class _FakeTracing:
    def __init__(self, *, stop_failures: int = 0) -> None:
        self.start_kwargs: dict[str, Any] | None = None
        self.stop_paths: list[str | None] = []
        self._stop_failures = stop_failures

    def start(self, **kwargs: Any) -> None:
        self.start_kwargs = kwargs

    def stop(self, path: str | None = None) -> None:
        if self._stop_failures > 0:
            self._stop_failures -= 1
            raise RuntimeError("Must start tracing before stopping")
        if path:
            Path(path).write_bytes(b"PK\x03\x04trace")
        self.stop_paths.append(path)


class _FakeContext:
    def __init__(
        self,
        options: dict[str, Any],
        *,
        with_video: bool = True,
        video_path_fails: bool = False,
        stop_failures: int = 0,
        close_failures: int = 0,
        page_fails: bool = False,
    ) -> None:
        self.options = options
        self.tracing = _FakeTracing(stop_failures=stop_failures)
        self.closed = False
        self.close_calls = 0
        self.pages: list[_FakePage] = []
        self._with_video = with_video
        self._video_path_fails = video_path_fails
        self._close_failures = close_failures
        self._page_fails = page_fails

    def new_page(self) -> _FakePage:
        if self._page_fails:
            raise RuntimeError("Target page, context or browser has been closed")
        video = None
        if self._with_video:
            # Playwright writes to a random temp name inside record_video_dir.
            raw = Path(self.options["record_video_dir"]) / f"{next(_video_ids):032x}.webm"
            raw.write_bytes(b"\x1aE\xdf\xa3webm")
            video = _FakeVideo(raw, fail_path=self._video_path_fails)
        page = _FakePage(video)
        self.pages.append(page)
        return page

    def close(self) -> None:
        self.close_calls += 1
        if self._close_failures > 0:
            self._close_failures -= 1
            raise RuntimeError("context close timed out")
        Path(self.options["record_har_path"]).write_text('{"log": {"entries": []}}', encoding="utf-8")
        self.closed = True


class _FakeBrowser:
    def __init__(self, **context_behaviour: Any) -> None:
        self.contexts: list[_FakeContext] = []
        self.context_behaviour = context_behaviour
        self.fail_new_context = False

    def new_context(self, **options: Any) -> _FakeContext:
        if self.fail_new_context:
            raise RuntimeError("Browser has been closed")
        ctx = _FakeContext(options, **self.context_behaviour)
        self.contexts.append(ctx)
        return ctx

    def is_connected(self) -> bool:
        return True


@pytest.fixture
def fake_browser() -> _FakeBrowser:
    return _FakeBrowser()


@pytest.fixture
def make_browser() -> Any:
    """Factory for fake browsers with custom context behaviour."""
    return _FakeBrowser


@pytest.fixture
def recorder_config(tmp_path: Path) -> RecorderConfig:
    return RecorderConfig(storage_root=str(tmp_path / "data"), public_base_url=PUBLIC_BASE)


@pytest.fixture
def manager(recorder_config: RecorderConfig) -> SessionManager:
    return SessionManager(recorder_config)
