"""
Tests for export event classification and the import worker.
"""

import logging
import threading
import time
from pathlib import Path

import pytest

from gitosu.exit_codes import ImportFailedError, ArchiveError
from gitosu.watcher import (
    ExportEventHandler,
    ExportWatcher,
    ImportQueue,
    ImportWorker,
    is_archive_path,
)


class Event:
    """Minimal stand-in for watchdog events."""

    def __init__(self, src, dest=None, is_directory=False):
        self.src_path = str(src)
        self.dest_path = str(dest) if dest else None
        self.is_directory = is_directory


def _drain(imports):
    items = []
    while len(imports):
        items.append(imports.get(timeout=1))
    return items


class TestIsArchivePath:

    def test_existing_osz(self, make_archive):
        assert is_archive_path(make_archive("m.osz"))

    def test_other_extension(self, exports_dir):
        path = exports_dir / "notes.txt"
        path.write_text("x")
        assert not is_archive_path(path)

    def test_missing_file(self, exports_dir):
        assert not is_archive_path(exports_dir / "gone.osz")

    def test_directory(self, exports_dir):
        (exports_dir / "dir.osz").mkdir()
        assert not is_archive_path(exports_dir / "dir.osz")


class TestExportEventHandler:
    """Tests for ExportEventHandler classification."""

    @pytest.fixture
    def imports(self):
        return ImportQueue()

    @pytest.fixture
    def handler(self, imports):
        return ExportEventHandler(imports)

    def test_created_archive_is_queued(self, handler, imports, make_archive):
        path = make_archive("Artist - Song (Author).osz")
        handler.on_created(Event(path))
        assert _drain(imports) == [path]

    def test_created_other_files_are_ignored(self, handler, imports, exports_dir):
        other = exports_dir / "m.osz.part"
        other.write_text("partial")
        handler.on_created(Event(other))
        handler.on_created(Event(exports_dir / "sub.osz", is_directory=True))
        assert len(imports) == 0

    def test_rename_destination_is_queued(self, handler, imports, exports_dir, make_archive):
        path = make_archive("m.osz")
        handler.on_moved(Event(exports_dir / "m.tmp", dest=path))
        assert _drain(imports) == [path]

    def test_rename_away_is_ignored(self, handler, imports, exports_dir, make_archive):
        source = make_archive("m.osz")
        dest = exports_dir / "m.bak"
        source.rename(dest)
        handler.on_moved(Event(source, dest=dest))
        assert len(imports) == 0

    def test_duplicate_events_collapse_while_pending(self, handler, imports, make_archive):
        path = make_archive("m.osz")
        handler.on_created(Event(path))
        handler.on_moved(Event(path.with_suffix(".tmp"), dest=path))
        handler.on_created(Event(path))
        assert _drain(imports) == [path]

    def test_events_during_import_are_dropped(self, handler, imports, make_archive):
        path = make_archive("m.osz", {"a.txt": "a"})
        handler.on_created(Event(path))
        assert imports.get(timeout=1) == path

        handler.on_moved(Event(path.with_suffix(".tmp"), dest=path))
        assert len(imports) == 0

        imports.done(path)
        assert len(imports) == 0

    def test_reexport_during_import_is_queued_after_done(self, handler, imports, make_archive):
        path = make_archive("m.osz", {"a.txt": "a"})
        handler.on_created(Event(path))
        assert imports.get(timeout=1) == path

        make_archive("m.osz", {"a.txt": "a", "b.txt": "new difficulty"})
        handler.on_created(Event(path))
        assert len(imports) == 0

        imports.done(path)
        assert _drain(imports) == [path]

    def test_path_can_be_queued_again_after_done(self, handler, imports, make_archive):
        path = make_archive("m.osz")
        handler.on_created(Event(path))
        assert imports.get(timeout=1) == path
        imports.done(path)

        handler.on_created(Event(path))
        assert imports.get(timeout=1) == path

    def test_custom_extension(self, imports, make_archive):
        handler = ExportEventHandler(imports, extension=".zip")
        handler.on_created(Event(make_archive("m.osz")))
        zipped = make_archive("m.zip")
        handler.on_created(Event(zipped))
        assert _drain(imports) == [zipped]


class TestImportWorker:
    """Tests for the sequential import worker."""

    def test_processes_in_order_and_survives_failures(self, tmp_path):
        seen = []

        def importer(path):
            seen.append(path.name)
            if path.name == "bad.osz":
                raise ImportFailedError("Import of bad.osz failed") from ArchiveError("broken")

        imports = ImportQueue()
        for name in ["one.osz", "bad.osz", "two.osz"]:
            imports.put(tmp_path / name)
        imports.close()

        worker = ImportWorker(imports, importer)
        worker.run()

        assert seen == ["one.osz", "bad.osz", "two.osz"]
        assert worker.completed == 2
        assert worker.failed == 1

    def test_duplicate_event_during_import_imports_once(self, make_archive):
        path = make_archive("m.osz", {"a.txt": "a"})
        imports = ImportQueue()
        seen = []

        def importer(archive):
            seen.append(archive)
            imports.put(archive)
            if len(seen) == 1:
                imports.close()

        imports.put(path)
        ImportWorker(imports, importer).run()

        assert seen == [path]
        assert len(imports) == 0

    def test_unexpected_errors_are_logged(self, tmp_path, caplog):
        def importer(path):
            raise RuntimeError("boom")

        worker = ImportWorker(ImportQueue(), importer)
        assert worker.process(tmp_path / "x.osz") is False
        assert worker.failed == 1
        assert "boom" in caplog.text

    def test_failure_logs_cause_chain(self, tmp_path, caplog):
        def importer(path):
            raise ImportFailedError("Import of x.osz failed") from ArchiveError("x.osz is empty")

        worker = ImportWorker(ImportQueue(), importer)
        worker.process(tmp_path / "x.osz")
        assert "Import of x.osz failed: x.osz is empty" in caplog.text


class TestExportWatcher:
    """Integration test with a real watchdog observer."""

    def test_imports_archive_renamed_into_place(self, exports_dir, make_archive):
        imported = []
        done = threading.Event()

        def importer(path):
            imported.append(path)
            done.set()

        watcher = ExportWatcher(exports_dir, importer)
        watcher.start()
        try:
            time.sleep(0.2)
            partial = make_archive("Artist - Song (Author).osz.tmp", {"a.txt": "a"})
            final = exports_dir / "Artist - Song (Author).osz"
            partial.rename(final)
            assert done.wait(10), "archive was never imported"
        finally:
            watcher.stop(timeout=10)

        assert Path(imported[0]).name == "Artist - Song (Author).osz"
        assert watcher.is_watching is False

    def test_start_leaves_announcement_to_caller(self, exports_dir, caplog):
        caplog.set_level(logging.DEBUG, logger="gitosu")
        watcher = ExportWatcher(exports_dir, lambda path: None)

        watcher.start()
        watcher.stop(timeout=10)

        assert "now monitoring" not in caplog.text
        assert "Observer scheduled" in caplog.text
