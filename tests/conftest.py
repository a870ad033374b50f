from __future__ import annotations

import os
import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from pipeshell.config import Settings
from pipeshell.session import ShellSession

ScriptFactory = Callable[[str, str], Path]


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("HISTFILE", raising=False)
    monkeypatch.delenv("PIPESHELL_HISTORY_FILE", raising=False)
    monkeypatch.delenv("PIPESHELL_PROMPT", raising=False)
    monkeypatch.delenv("PIPESHELL_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def bin_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    directory = tmp_path / "bin"
    directory.mkdir()
    monkeypatch.setenv("PATH", f"{directory}{os.pathsep}{os.environ.get('PATH', '')}")
    return directory


@pytest.fixture
def make_script(bin_dir: Path) -> ScriptFactory:
    def _make(name: str, body: str) -> Path:
        path = bin_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _make


@pytest.fixture
def session() -> ShellSession:
    return ShellSession(Settings())
