"""
File system watcher for the exports directory.

watchdog delivers raw notifications on its observer thread. The handler
reduces them to "an archive now exists at P" and puts P on a queue; a single
worker thread drains the queue and imports one archive at a time, so two
imports never touch the same repository concurrently.
"""

import logging
import queue
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Set, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exit_codes import ImportFailedError
from .services.name_resolver import DEFAULT_EXTENSION

logger = logging.getLogger(__name__)

Importer = Callable[[Path], object]

_STOP = object()


def is_archive_path(path: Path, extension: str = DEFAULT_EXTENSION) -> bool:
    """True for existing files named ``*<extension>``."""
    return bool(path.name) and path.suffix == extension and path.is_file()


def _signature(path: Path) -> Optional[Tuple[int, int]]:
    try:
        stat = path.stat()
    except OSError:
        return None
    return stat.st_mtime_ns, stat.st_size


class ImportQueue:
    """
    FIFO of archive paths waiting to be imported.

    A path that is already waiting, or being imported, is not queued again.
    This absorbs the bursts some platforms emit for a single save (created +
    moved, or duplicate rename notifications). An event seen during the
    import of its path is replayed by ``done`` only if the file changed since
    the import picked it up.
    """

    def __init__(self):
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._pending: Set[Path] = set()
        self._active: Dict[Path, Optional[Tuple[int, int]]] = {}
        self._touched: Set[Path] = set()
        self._lock = threading.Lock()

    def put(self, path: Path) -> bool:
        """Queue ``path``; returns False if it was already waiting or running."""
        with self._lock:
            if path in self._active:
                self._touched.add(path)
                return False
            if path in self._pending:
                return False
            self._pending.add(path)
        self._queue.put(path)
        return True

    def get(self, timeout: Optional[float] = None) -> object:
        """Take the next path and mark it running until ``done`` is called."""
        item = self._queue.get(timeout=timeout)
        if isinstance(item, Path):
            with self._lock:
                self._pending.discard(item)
                self._active[item] = _signature(item)
        return item

    def done(self, path: Path) -> None:
        """Release ``path``, re-queueing it if it was re-exported meanwhile."""
        with self._lock:
            seen = self._active.pop(path, None)
            touched = path in self._touched
            self._touched.discard(path)
        if touched and _signature(path) not in (None, seen):
            logger.debug(f"{path.name} changed during its import, queueing again")
            self.put(path)

    def close(self) -> None:
        """Wake the worker so it can exit."""
        self._queue.put(_STOP)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


class ExportEventHandler(FileSystemEventHandler):
    """Classifies watchdog events in the exports directory."""

    def __init__(self, imports: ImportQueue, extension: str = DEFAULT_EXTENSION):
        """Initialize event handler.

        Args:
            imports: Queue to feed archive paths into
            extension: Archive extension including the dot
        """
        super().__init__()
        self.imports = imports
        self.extension = extension

    def _offer(self, raw_path) -> None:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path)
        if not is_archive_path(path, self.extension):
            return
        if self.imports.put(path):
            logger.debug(f"Queued {path.name}")
        else:
            logger.debug(f"{path.name} already queued or importing, ignoring duplicate event")

    def on_created(self, event: FileSystemEvent):
        """Handle file creation."""
        if event.is_directory:
            return
        self._offer(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Handle rename into place; only the destination matters."""
        if event.is_directory:
            return
        dest = getattr(event, "dest_path", None)
        if dest:
            self._offer(dest)


class ImportWorker(threading.Thread):
    """Sequential consumer of an ImportQueue."""

    def __init__(self, imports: ImportQueue, importer: Importer):
        super().__init__(name="gitosu-import-worker", daemon=True)
        self.imports = imports
        self.importer = importer
        self.completed = 0
        self.failed = 0

    def process(self, path: Path) -> bool:
        """Import one archive, logging instead of raising on failure."""
        try:
            self.importer(path)
        except ImportFailedError as e:
            self.failed += 1
            logger.error(f"[x] Import failed! {e.cause_chain()}")
            return False
        except Exception:
            # Keep the worker alive for the next export
            self.failed += 1
            logger.exception(f"[x] Unexpected error while importing {path.name}")
            return False
        self.completed += 1
        logger.info("Import completed! Don't forget to push!")
        return True

    def run(self):
        while True:
            item = self.imports.get()
            if item is _STOP:
                break
            try:
                self.process(item)
            finally:
                self.imports.done(item)


class ExportWatcher:
    """Watches the exports directory and imports new archives."""

    def __init__(
        self,
        exports_dir: Path,
        importer: Importer,
        extension: str = DEFAULT_EXTENSION,
        recursive: bool = False,
    ):
        """Initialize export watcher.

        Args:
            exports_dir: Directory the editor exports into
            importer: Called with each archive path, e.g. run_import
            extension: Archive extension including the dot
            recursive: Also watch subdirectories
        """
        self.exports_dir = Path(exports_dir)
        self.recursive = recursive
        self.imports = ImportQueue()
        self.handler = ExportEventHandler(self.imports, extension)
        self.worker = ImportWorker(self.imports, importer)
        self.observer = Observer()
        self.is_watching = False

    def start(self):
        """Start watching the exports directory."""
        if self.is_watching:
            return
        self.observer.schedule(self.handler, str(self.exports_dir), recursive=self.recursive)
        self.worker.start()
        self.observer.start()
        self.is_watching = True
        logger.debug(f"Observer scheduled on {self.exports_dir} (recursive={self.recursive})")

    def stop(self, timeout: Optional[float] = None):
        """Stop watching; the worker finishes the queued imports first."""
        if not self.is_watching:
            return
        self.observer.stop()
        self.observer.join(timeout)
        self.imports.close()
        self.worker.join(timeout)
        self.is_watching = False
        logger.info("Stopped watching exports")

    def run(self, stop_event: Optional[threading.Event] = None, poll: float = 1.0):
        """Block until ``stop_event`` is set or Ctrl+C is pressed."""
        stop_event = stop_event or threading.Event()
        self.start()
        try:
            while not stop_event.is_set():
                stop_event.wait(poll)
        except KeyboardInterrupt:
            logger.info("Stopping export watcher...")
        finally:
            self.stop()
