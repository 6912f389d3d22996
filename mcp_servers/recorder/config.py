from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

DEFAULT_STORAGE_ROOT = "/data"
DEFAULT_PUBLIC_BASE_URL = "https://videos.qabot.app"
SUPPORTED_ENGINES = ("chromium", "firefox", "webkit")


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _parse_bool(raw: str | None, default: bool) -> bool:
    value = (raw or "").strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(raw: str | None, default: int) -> int:
    try:
        return int((raw or "").strip())
    except ValueError:
        return default


def parse_video_size(raw: str | None) -> tuple[int, int]:
    """Parse `WIDTHxHEIGHT` (e.g. `1280x720`)."""
    value = (raw or "").strip().lower()
    if not value:
        return 1280, 720
    parts = value.split("x")
    if len(parts) != 2:
        raise ConfigurationError(
            reason=f"invalid video size: {raw!r}",
            suggestion="Use WIDTHxHEIGHT, e.g. MCP_RECORDING_VIDEO_SIZE=1280x720",
        )
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ConfigurationError(
            reason=f"invalid video size: {raw!r}",
            suggestion="Use WIDTHxHEIGHT, e.g. MCP_RECORDING_VIDEO_SIZE=1280x720",
        ) from exc
    if width <= 0 or height <= 0:
        raise ConfigurationError(reason=f"video size must be positive: {raw!r}", suggestion="Use e.g. 1280x720")
    return width, height


@dataclass
class RecorderConfig:
    storage_root: str = DEFAULT_STORAGE_ROOT
    public_base_url: str = DEFAULT_PUBLIC_BASE_URL
    video_width: int = 1280
    video_height: int = 720
    list_default_limit: int = 10
    list_max_limit: int = 100
    browser_name: str = "chromium"
    mode: str = "launch"
    headless: bool = True
    cdp_url: str = "http://127.0.0.1:9222"

    @staticmethod
    def normalize_mode(raw: str | None) -> str:
        mode = (raw or "").strip().lower()
        if mode in {"attach", "connect", "cdp"}:
            return "attach"
        return "launch"

    @staticmethod
    def normalize_engine(raw: str | None) -> str:
        engine = (raw or "").strip().lower()
        if engine in {"chrome", "chromium", ""}:
            return "chromium"
        if engine in SUPPORTED_ENGINES:
            return engine
        raise ConfigurationError(
            reason=f"unsupported browser engine: {raw!r}",
            suggestion="Set MCP_BROWSER_ENGINE to chromium, firefox or webkit",
        )

    @classmethod
    def from_env(cls) -> RecorderConfig:
        root = expand_path(os.environ.get("MCP_RECORDING_ROOT", DEFAULT_STORAGE_ROOT))
        public = (os.environ.get("MCP_RECORDING_PUBLIC_URL") or DEFAULT_PUBLIC_BASE_URL).strip().rstrip("/")
        width, height = parse_video_size(os.environ.get("MCP_RECORDING_VIDEO_SIZE"))
        list_max = max(1, _parse_int(os.environ.get("MCP_RECORDING_LIST_MAX"), 100))
        list_default = _parse_int(os.environ.get("MCP_RECORDING_LIST_LIMIT"), 10)
        list_default = max(1, min(list_default, list_max))
        return cls(
            storage_root=root,
            public_base_url=public,
            video_width=width,
            video_height=height,
            list_default_limit=list_default,
            list_max_limit=list_max,
            browser_name=cls.normalize_engine(os.environ.get("MCP_BROWSER_ENGINE")),
            mode=cls.normalize_mode(os.environ.get("MCP_BROWSER_MODE")),
            headless=_parse_bool(os.environ.get("MCP_BROWSER_HEADLESS"), True),
            cdp_url=(os.environ.get("MCP_BROWSER_CDP_URL") or "http://127.0.0.1:9222").strip(),
        )

    def clamp_limit(self, raw: object) -> int:
        """Clamp a caller-supplied list limit into `1..list_max_limit`."""
        if raw is None or isinstance(raw, bool):
            return self.list_default_limit
        try:
            limit = int(raw)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            return self.list_default_limit
        return max(1, min(limit, self.list_max_limit))
