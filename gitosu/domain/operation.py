"""
Import result domain objects for gitosu.

An import walks a fixed sequence of states; ImportResult records how far it
got and what it produced, and serializes for JSONL output.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class ImportState(Enum):
    """Pipeline state of a single import."""
    START = "start"
    NAME_RESOLVED = "name_resolved"
    REPOSITORY_READY = "repository_ready"
    CONTENT_REPLACED = "content_replaced"
    COMMITTED = "committed"
    FAILED = "failed"


INITIAL_COMMIT_MESSAGE = "new project"
UPDATE_COMMIT_MESSAGE = "content update"


@dataclass
class ImportResult:
    """
    Details of one import of an export archive.

    ``commits`` lists created commit ids oldest first: one entry for a
    regular import, two (initial, update) when the repository was new.
    """
    archive_path: str
    project: Optional[str] = None
    repository_path: Optional[str] = None
    is_new_repository: bool = False
    state: ImportState = ImportState.START
    failed_state: Optional[ImportState] = None
    commits: List[str] = field(default_factory=list)
    files_written: int = 0
    skipped_entries: List[str] = field(default_factory=list)
    kept_archive: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state == ImportState.COMMITTED

    @property
    def head(self) -> Optional[str]:
        return self.commits[-1] if self.commits else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'archive': self.archive_path,
            'project': self.project,
            'repository': self.repository_path,
            'new_repository': self.is_new_repository,
            'state': self.state.value,
            'commits': list(self.commits),
            'files_written': self.files_written,
        }
        if self.skipped_entries:
            result['skipped_entries'] = list(self.skipped_entries)
        if self.kept_archive:
            result['kept_archive'] = self.kept_archive
        if self.failed_state:
            result['failed_state'] = self.failed_state.value
        if self.error:
            result['error'] = self.error
        return result
