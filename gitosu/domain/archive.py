"""
Archive domain objects for gitosu.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ExportArchive:
    """An export produced by the editor. Read once, never modified."""
    path: Path

    @property
    def file_name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, path) -> "ExportArchive":
        return cls(path=Path(path))

    def to_dict(self) -> Dict[str, Any]:
        return {'path': str(self.path), 'file_name': self.file_name}


@dataclass(frozen=True)
class ArchiveEntry:
    """
    One member of an export archive.

    ``relative_path`` is None when the stored name would escape the
    extraction root; such entries are skipped on import.
    """
    name: str
    relative_path: Optional[PurePosixPath]
    is_dir: bool = False
    size: int = 0
    index: int = 0

    @property
    def is_safe(self) -> bool:
        return self.relative_path is not None
