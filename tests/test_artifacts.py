from __future__ import annotations

import re
from pathlib import Path

import pytest

from mcp_servers.recorder.artifacts import ArtifactStore, make_run_id
from mcp_servers.recorder.config import RecorderConfig
from mcp_servers.recorder.errors import ConfigurationError, InvalidIdentifierError


def _store(tmp_path: Path, public: str = "https://videos.example.test") -> ArtifactStore:
    return ArtifactStore(RecorderConfig(storage_root=str(tmp_path / "data"), public_base_url=public))


def test_base_dir_is_deterministic_and_idempotent(tmp_path: Path) -> None:
    store = _store(tmp_path)
    first = store.base_dir("shop", "run-1")
    second = store.base_dir("shop", "run-1")
    assert first == second == tmp_path / "data" / "shop" / "run-1"
    assert first.is_dir()


def test_paths_use_fixed_filenames(tmp_path: Path) -> None:
    store = _store(tmp_path)
    paths = store.paths(store.base_dir("p", "r"))
    assert paths.video_path.name == "video.webm"
    assert paths.har_path.name == "network.har"
    assert paths.trace_path.name == "trace.zip"
    assert paths.har_path.parent == tmp_path / "data" / "p" / "r"


def test_public_url_maps_storage_root_prefix(tmp_path: Path) -> None:
    store = _store(tmp_path, public="https://videos.example.test/")
    local = tmp_path / "data" / "p" / "r" / "trace.zip"
    assert store.public_url(local) == "https://videos.example.test/p/r/trace.zip"
    assert store.public_url(str(local)) == "https://videos.example.test/p/r/trace.zip"


def test_public_url_rejects_paths_outside_root(tmp_path: Path) -> None:
    store = _store(tmp_path)
    with pytest.raises(ConfigurationError):
        store.public_url(tmp_path / "elsewhere" / "video.webm")
    # A sibling directory sharing the root as a string prefix is still outside.
    with pytest.raises(ConfigurationError):
        store.public_url(tmp_path / "data-old" / "p" / "r" / "video.webm")


@pytest.mark.parametrize("bad", ["", "../etc", "a/b", "..", ".hidden", "x\ny", "a b", "é"])
def test_validate_id_rejects_unsafe_values(tmp_path: Path, bad: str) -> None:
    store = _store(tmp_path)
    with pytest.raises(InvalidIdentifierError):
        store.base_dir(bad, "r")
    assert not (tmp_path / "data").exists() or not any((tmp_path / "data").iterdir())


def test_validate_id_accepts_common_ids() -> None:
    for ok in ("shop", "proj_1", "run-2024.01.01", "A" * 128):
        assert ArtifactStore.validate_id("projectId", ok) == ok
    with pytest.raises(InvalidIdentifierError):
        ArtifactStore.validate_id("projectId", "A" * 129)
    with pytest.raises(InvalidIdentifierError):
        ArtifactStore.validate_id("runId", None)


def test_build_manifest_without_video(tmp_path: Path) -> None:
    store = _store(tmp_path)
    paths = store.paths(store.base_dir("p", "r"))
    manifest = store.build_manifest(har_path=paths.har_path, trace_path=paths.trace_path)
    assert manifest.video_path is None
    assert manifest.public_video_url is None
    assert manifest.public_har_url == "https://videos.example.test/p/r/network.har"
    as_dict = manifest.to_dict()
    assert as_dict["videoPath"] is None
    assert as_dict["harPath"] == str(paths.har_path)
    assert as_dict["publicTraceUrl"] == "https://videos.example.test/p/r/trace.zip"


def test_make_run_id_format_and_uniqueness() -> None:
    ids = {make_run_id() for _ in range(50)}
    assert len(ids) == 50
    for run_id in ids:
        assert re.fullmatch(r"run_\d{13}_[a-z0-9]{9}", run_id)
        ArtifactStore.validate_id("runId", run_id)
