from pathlib import Path

import pytest

from saga.data import paths


def test_get_definitions_path_base_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(paths.DATA_DIR_ENV, str(tmp_path / "ignored"))
    assert paths.get_definitions_path(tmp_path) == tmp_path


def test_get_definitions_path_honors_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(paths.DATA_DIR_ENV, str(tmp_path))
    assert paths.get_definitions_path() == tmp_path


def test_get_definitions_path_source_repo_exists(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(paths.DATA_DIR_ENV, raising=False)
    definitions_path = paths.get_definitions_path()
    assert definitions_path.name == "definitions"
    assert (definitions_path / "story.json").exists()
    assert (definitions_path / "powers.json").exists()
