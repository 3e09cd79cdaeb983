"""
Domain layer for gitosu.

Contains pure domain objects with no I/O or side effects:
- ExportArchive / ArchiveEntry: the input of an import
- ImportState / ImportResult: progress and outcome of an import
"""

from .archive import ExportArchive, ArchiveEntry
from .operation import (
    ImportState,
    ImportResult,
    INITIAL_COMMIT_MESSAGE,
    UPDATE_COMMIT_MESSAGE,
)

__all__ = [
    'ExportArchive',
    'ArchiveEntry',
    'ImportState',
    'ImportResult',
    'INITIAL_COMMIT_MESSAGE',
    'UPDATE_COMMIT_MESSAGE',
]
