"""
Content replacement for gitosu.

The ``map`` directory of a project repository mirrors the latest export.
It is removed and re-extracted from scratch on every import so that files
dropped from the map never linger.
"""

import logging
import shutil
import zlib
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from ..domain.archive import ExportArchive
from ..exit_codes import EmptyArchiveError, ExtractionError
from ..infra.archive_reader import ArchiveReader
from .repository_service import CONTENT_DIRECTORY

logger = logging.getLogger(__name__)


@dataclass
class ReplaceResult:
    """Result of a content replacement."""
    files_written: int = 0
    directories_created: int = 0
    skipped: List[str] = field(default_factory=list)


def replace_content(repository_path: Path, archive: ExportArchive) -> ReplaceResult:
    """
    Replace ``repository_path/map`` with the contents of ``archive``.

    The archive is validated before anything is deleted: an unreadable or
    empty archive leaves the current map untouched. Once extraction starts
    there is no rollback; an I/O error leaves whatever was already written.

    Raises:
        ArchiveError: archive cannot be opened
        EmptyArchiveError: archive has no entries
        ExtractionError: an entry could not be written
    """
    target = Path(repository_path) / CONTENT_DIRECTORY
    result = ReplaceResult()

    with ArchiveReader(archive) as reader:
        entries = reader.entries()
        if not entries:
            raise EmptyArchiveError(f"Exported archive {archive.file_name} is empty")

        # Removing everything in the map directory
        if target.exists():
            try:
                shutil.rmtree(target)
            except OSError as e:
                raise ExtractionError(f"Failed to clear the map directory: {e}") from e

        try:
            target.mkdir(parents=True)
        except OSError as e:
            raise ExtractionError(f"Failed to create the map directory: {e}") from e

        for entry in entries:
            if not entry.is_safe:
                logger.warning(f"Map archive contains forbidden file {entry.name!r}, skipping")
                result.skipped.append(entry.name)
                continue

            destination = target.joinpath(*entry.relative_path.parts)

            if entry.is_dir:
                try:
                    destination.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise ExtractionError(f"Failed to create directory {entry.name}: {e}") from e
                result.directories_created += 1
                continue

            logger.debug(f"copying {entry.relative_path} into {destination}")
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                with reader.open(entry) as source, open(destination, 'wb') as sink:
                    shutil.copyfileobj(source, sink)
            except (OSError, zipfile.BadZipFile, zlib.error, EOFError,
                    NotImplementedError, RuntimeError) as e:
                # NotImplementedError: unsupported compression, RuntimeError: encrypted entry
                raise ExtractionError(f"Failed to write {entry.name}: {e}") from e
            result.files_written += 1

    return result
