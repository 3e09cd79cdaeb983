"""
Archive access for gitosu.

Exports are plain zip containers. ArchiveReader exposes them as a
random-access list of ArchiveEntry objects and streams entry bytes on
demand; nothing is extracted implicitly.
"""

import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import BinaryIO, List, Optional

from ..domain.archive import ArchiveEntry, ExportArchive
from ..exit_codes import ArchiveError

logger = logging.getLogger(__name__)


def enclosed_name(name: str) -> Optional[PurePosixPath]:
    """
    Return the entry's path relative to the extraction root.

    Returns None for names that would land outside it: absolute paths,
    drive letters, ``..`` components and embedded NUL bytes.
    """
    if not name or '\0' in name:
        return None

    normalised = name.replace('\\', '/')
    if normalised.startswith('/'):
        return None

    parts = []
    for part in normalised.split('/'):
        if part in ('', '.'):
            continue
        if part == '..':
            return None
        if not parts and len(part) >= 2 and part[1] == ':' and part[0].isalpha():
            # C:foo style drive prefix
            return None
        parts.append(part)

    if not parts:
        return None
    return PurePosixPath(*parts)


class ArchiveReader:
    """
    Context manager over a zip export.

    Example:
        with ArchiveReader(archive) as reader:
            for entry in reader.entries():
                with reader.open(entry) as stream:
                    ...
    """

    def __init__(self, archive: ExportArchive):
        self.archive = archive
        self._zip: Optional[zipfile.ZipFile] = None
        self._entries: Optional[List[ArchiveEntry]] = None

    def __enter__(self) -> "ArchiveReader":
        try:
            self._zip = zipfile.ZipFile(self.archive.path)
        except zipfile.BadZipFile as e:
            raise ArchiveError(f"{self.archive.file_name} is not a valid zip archive: {e}") from e
        except OSError as e:
            raise ArchiveError(f"Failed to open {self.archive.file_name}: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def entries(self) -> List[ArchiveEntry]:
        """Entries in archive order."""
        if self._zip is None:
            raise RuntimeError("ArchiveReader used outside of a with block")
        if self._entries is None:
            self._entries = [
                ArchiveEntry(
                    name=info.filename,
                    relative_path=enclosed_name(info.filename),
                    is_dir=info.is_dir(),
                    size=info.file_size,
                    index=index,
                )
                for index, info in enumerate(self._zip.infolist())
            ]
        return self._entries

    def __len__(self) -> int:
        return len(self.entries())

    def open(self, entry: ArchiveEntry) -> BinaryIO:
        """Open a decompressing stream for ``entry``."""
        if self._zip is None:
            raise RuntimeError("ArchiveReader used outside of a with block")
        return self._zip.open(self._zip.infolist()[entry.index])
