"""Artifact layout for recordings.

Each recording owns one directory `<storage_root>/<projectId>/<runId>/` holding
`video.webm`, `network.har` and `trace.zip`. Public URLs mirror that layout under
a fixed base URL.
"""

from __future__ import annotations

import logging
import random
import re
import string
import time
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any

from .config import RecorderConfig
from .errors import ConfigurationError, InvalidIdentifierError

logger = logging.getLogger("mcp.recorder.artifacts")

VIDEO_FILENAME = "video.webm"
HAR_FILENAME = "network.har"
TRACE_FILENAME = "trace.zip"

_ID_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]{0,127}")
_RUN_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def make_run_id() -> str:
    """Generate `run_<epoch-millis>_<9 base36 chars>`."""
    suffix = "".join(random.choices(_RUN_SUFFIX_ALPHABET, k=9))
    return f"run_{int(time.time() * 1000)}_{suffix}"


@dataclass(frozen=True)
class ArtifactPaths:
    video_path: Path
    har_path: Path
    trace_path: Path


@dataclass(frozen=True)
class ArtifactManifest:
    """Local paths and public URLs produced by one finalize."""

    har_path: str
    trace_path: str
    public_har_url: str
    public_trace_url: str
    video_path: str | None = None
    public_video_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "videoPath": self.video_path,
            "harPath": self.har_path,
            "tracePath": self.trace_path,
            "publicVideoUrl": self.public_video_url,
            "publicHarUrl": self.public_har_url,
            "publicTraceUrl": self.public_trace_url,
        }


class ArtifactStore:
    def __init__(self, config: RecorderConfig | None = None) -> None:
        self.config = config or RecorderConfig.from_env()
        self.storage_root = Path(self.config.storage_root)
        self.public_base_url = self.config.public_base_url.rstrip("/")

    @staticmethod
    def validate_id(kind: str, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise InvalidIdentifierError(
                reason=f"{kind} must be a non-empty string",
                suggestion=f"Pass {kind} as letters, digits, '.', '_' or '-'",
                details={"field": kind},
            )
        if not _ID_RE.fullmatch(value):
            raise InvalidIdentifierError(
                reason=f"invalid {kind}: {value!r}",
                suggestion=f"{kind} must start with a letter or digit and use only letters, digits, '.', '_' or '-' (max 128 chars)",
                details={"field": kind},
            )
        return value

    def base_dir(self, project_id: str, run_id: str) -> Path:
        """Return (and create) the directory for one run."""
        project_id = self.validate_id("projectId", project_id)
        run_id = self.validate_id("runId", run_id)
        path = self.storage_root / project_id / run_id
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("artifact_dir path=%s", path)
        return path

    @staticmethod
    def paths(base_dir: Path) -> ArtifactPaths:
        return ArtifactPaths(
            video_path=base_dir / VIDEO_FILENAME,
            har_path=base_dir / HAR_FILENAME,
            trace_path=base_dir / TRACE_FILENAME,
        )

    def public_url(self, local_path: str | PurePath) -> str:
        path = PurePath(local_path)
        try:
            rel = path.relative_to(self.storage_root)
        except ValueError as exc:
            raise ConfigurationError(
                reason=f"path is outside the recording storage root: {path}",
                suggestion="Check MCP_RECORDING_ROOT matches the directory recordings are written to",
                details={"storageRoot": str(self.storage_root)},
            ) from exc
        return f"{self.public_base_url}/{rel.as_posix()}"

    def build_manifest(
        self,
        *,
        har_path: str | PurePath,
        trace_path: str | PurePath,
        video_path: str | PurePath | None = None,
    ) -> ArtifactManifest:
        return ArtifactManifest(
            video_path=str(video_path) if video_path is not None else None,
            har_path=str(har_path),
            trace_path=str(trace_path),
            public_video_url=self.public_url(video_path) if video_path is not None else None,
            public_har_url=self.public_url(har_path),
            public_trace_url=self.public_url(trace_path),
        )
