"""
Service layer for gitosu.

Contains the import pipeline and the steps it composes:
- resolve_project_name: archive file name -> project identifier
- ensure_repository: open or bootstrap the project repository
- replace_content: swap map/ for the archive contents
- stage_and_commit: record the working tree as a commit
- ImportService / run_import: the whole pipeline

Services are the primary API for commands to use.
"""

from .name_resolver import resolve_project_name, duplicate_number, validate_project_name
from .repository_service import ensure_repository
from .content_service import replace_content, ReplaceResult
from .commit_service import stage_and_commit
from .import_service import ImportService, ImportOptions, run_import

__all__ = [
    'resolve_project_name',
    'duplicate_number',
    'validate_project_name',
    'ensure_repository',
    'replace_content',
    'ReplaceResult',
    'stage_and_commit',
    'ImportService',
    'ImportOptions',
    'run_import',
]
