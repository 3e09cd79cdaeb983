"""
Tests for content replacement.
"""

import logging

import pytest

from gitosu.domain.archive import ExportArchive
from gitosu.exit_codes import ArchiveError, EmptyArchiveError, ExtractionError
from gitosu.services.content_service import replace_content


def _files(root):
    return sorted(
        p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()
    )


@pytest.fixture
def repo(tmp_path):
    path = tmp_path / "repo"
    (path / "map" / "old").mkdir(parents=True)
    (path / "map" / "stale.txt").write_text("from the previous export")
    (path / "map" / "old" / "gone.txt").write_text("gone")
    (path / "README.md").write_text("keep me")
    return path


class TestReplaceContent:
    """Tests for replace_content."""

    def test_map_mirrors_archive(self, repo, make_archive):
        archive = make_archive("m.osz", {"a.txt": b"\x00\x01a", "sub/b.txt": "bee"})

        result = replace_content(repo, ExportArchive.from_path(archive))

        assert result.files_written == 2
        assert result.skipped == []
        assert _files(repo / "map") == ["a.txt", "sub/b.txt"]
        assert (repo / "map" / "a.txt").read_bytes() == b"\x00\x01a"
        assert (repo / "map" / "sub" / "b.txt").read_text() == "bee"
        # Outside map/ is left alone
        assert (repo / "README.md").read_text() == "keep me"
        assert not (repo / "map" / "old").exists()

    def test_creates_missing_map(self, tmp_path, make_archive):
        repo = tmp_path / "fresh"
        repo.mkdir()
        archive = make_archive("m.osz", {"a.txt": "a"})

        replace_content(repo, ExportArchive.from_path(archive))

        assert _files(repo / "map") == ["a.txt"]

    def test_directory_entries(self, repo, make_archive):
        archive = make_archive("m.osz", {"sb/": b"", "sb/bg.png": b"png", "empty/": b""})

        result = replace_content(repo, ExportArchive.from_path(archive))

        assert result.directories_created == 2
        assert (repo / "map" / "empty").is_dir()
        assert _files(repo / "map") == ["sb/bg.png"]

    def test_empty_archive_leaves_map_untouched(self, repo, make_archive):
        archive = make_archive("empty.osz", {})
        before = _files(repo / "map")

        with pytest.raises(EmptyArchiveError):
            replace_content(repo, ExportArchive.from_path(archive))

        assert _files(repo / "map") == before

    def test_invalid_archive_leaves_map_untouched(self, repo, tmp_path):
        archive = tmp_path / "broken.osz"
        archive.write_bytes(b"PK but not really")
        before = _files(repo / "map")

        with pytest.raises(ArchiveError):
            replace_content(repo, ExportArchive.from_path(archive))

        assert _files(repo / "map") == before

    def test_escaping_entries_are_skipped(self, repo, make_archive, caplog):
        archive = make_archive("m.osz", {
            "../evil.txt": "evil",
            "/abs.txt": "abs",
            "fine.txt": "fine",
        })

        with caplog.at_level(logging.WARNING, logger="gitosu"):
            result = replace_content(repo, ExportArchive.from_path(archive))

        assert result.skipped == ["../evil.txt", "/abs.txt"]
        assert result.files_written == 1
        assert _files(repo / "map") == ["fine.txt"]
        assert not (repo / "evil.txt").exists()
        assert "forbidden" in caplog.text

    def test_write_failure_aborts_without_rollback(self, repo, make_archive):
        # a.txt is written as a file, then needed as a directory
        archive = make_archive("m.osz", {"a.txt": "a", "a.txt/b.txt": "b"})

        with pytest.raises(ExtractionError):
            replace_content(repo, ExportArchive.from_path(archive))

        # Earlier entries stay on disk; old content is already gone
        assert (repo / "map" / "a.txt").read_text() == "a"
        assert not (repo / "map" / "stale.txt").exists()
