"""
Shared fixtures for gitosu tests.

Tests run the real git executable with a throwaway HOME, no system/global
config and a fixed identity.
"""

import os
import zipfile
from pathlib import Path

import pytest

from gitosu.infra.git_client import GitClient


@pytest.fixture(autouse=True)
def isolated_git(monkeypatch, tmp_path):
    """Keep git and gitosu away from the developer's own configuration."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "gitosu tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@gitosu.invalid")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "gitosu tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@gitosu.invalid")
    for key in list(os.environ):
        if key.startswith("GITOSU_"):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def git():
    return GitClient()


@pytest.fixture
def repos_root(tmp_path):
    root = tmp_path / "repos"
    root.mkdir()
    return root


@pytest.fixture
def exports_dir(tmp_path):
    exports = tmp_path / "exports"
    exports.mkdir()
    return exports


@pytest.fixture
def make_archive(exports_dir):
    """Factory writing a zip export: make_archive(name, {"a.txt": b"..."})."""
    def _make(name, files=None, directory=None):
        path = Path(directory or exports_dir) / name
        with zipfile.ZipFile(path, "w") as zf:
            for entry, data in (files or {}).items():
                if isinstance(data, str):
                    data = data.encode("utf-8")
                zf.writestr(entry, data)
        return path
    return _make
