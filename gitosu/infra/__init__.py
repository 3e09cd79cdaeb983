"""
Infrastructure layer for gitosu.

Contains abstractions for external systems:
- GitClient: Git command execution
- ArchiveReader: zip export access

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitCommit
from .archive_reader import ArchiveReader, enclosed_name

__all__ = [
    'GitClient',
    'GitCommit',
    'ArchiveReader',
    'enclosed_name',
]
