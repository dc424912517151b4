from __future__ import annotations

from pathlib import Path

import pytest

from rejudge.config import RUNTIME_DIR_ENV, default_runtime_dir


def test_runtime_dir_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(RUNTIME_DIR_ENV, str(tmp_path / "runtime"))
    assert default_runtime_dir() == tmp_path / "runtime"


def test_runtime_dir_defaults_to_user_data_dir(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(RUNTIME_DIR_ENV, raising=False)
    path = default_runtime_dir()
    assert path.name == "rejudge"
