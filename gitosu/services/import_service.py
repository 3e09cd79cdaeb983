"""
Import service for gitosu.

Turns one export archive into commits in its project repository:

    resolve name -> ensure repository -> replace map/ -> [keep archive] -> commit

A repository created by the import gets two commits (``new project`` and
``content update``); an existing one gets exactly one.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generator, Optional

from ..config import load_config, resolve_repositories_directory
from ..domain.archive import ExportArchive
from ..domain.operation import ImportResult, ImportState, UPDATE_COMMIT_MESSAGE
from ..exit_codes import ArchiveError, GitosuError, ImportFailedError
from ..infra.git_client import GitClient
from .commit_service import stage_and_commit
from .content_service import replace_content
from .name_resolver import DEFAULT_EXTENSION, duplicate_number, resolve_project_name
from .repository_service import ensure_repository

logger = logging.getLogger(__name__)


@dataclass
class ImportOptions:
    """Options for import operation."""
    repositories_root: Path
    keep_latest_osz: bool = False
    archive_extension: str = DEFAULT_EXTENSION

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        repositories_root: Path,
        keep_latest_osz: Optional[bool] = None,
    ) -> "ImportOptions":
        general = config.get('general', {})
        if keep_latest_osz is None:
            keep_latest_osz = bool(general.get('keep_latest_osz', False))
        return cls(
            repositories_root=Path(repositories_root),
            keep_latest_osz=keep_latest_osz,
            archive_extension=general.get('archive_extension', DEFAULT_EXTENSION),
        )


class ImportService:
    """
    Service for importing exports into project repositories.

    Example:
        service = ImportService(options=ImportOptions(repositories_root=root))

        for progress in service.import_archive(path):
            print(progress)  # "Using map repository ..."

        result = service.last_result
        print(f"Created {len(result.commits)} commits")
    """

    def __init__(
        self,
        options: ImportOptions,
        git_client: Optional[GitClient] = None,
    ):
        """
        Initialize ImportService.

        Args:
            options: Import options
            git_client: GitClient instance (creates new if None)
        """
        self.options = options
        self.git = git_client or GitClient()
        self.last_result: Optional[ImportResult] = None

    def import_archive(
        self,
        path: Path,
        project_name: Optional[str] = None,
    ) -> Generator[str, None, ImportResult]:
        """
        Import an export archive.

        Args:
            path: Archive to import
            project_name: Explicit project (repository) name

        Yields:
            Progress messages

        Returns:
            ImportResult for the run

        Raises:
            ImportFailedError: wrapping the error that aborted the import
        """
        archive = ExportArchive.from_path(path)
        result = ImportResult(archive_path=str(archive.path))
        self.last_result = result

        try:
            yield f"Importing {archive.file_name}..."
            if not archive.path.is_file():
                raise ArchiveError(f"Archive not found: {archive.path}")

            extension = self.options.archive_extension
            result.project = resolve_project_name(archive.file_name, project_name, extension)
            result.state = ImportState.NAME_RESOLVED
            number = duplicate_number(archive.file_name, extension)
            if project_name is None and number is not None:
                logger.debug(f"{archive.file_name} is duplicate export #{number}")
            yield f"Using map repository {result.project}"

            repo_path, is_new = ensure_repository(
                self.options.repositories_root, result.project, self.git
            )
            result.repository_path = str(repo_path)
            result.is_new_repository = is_new
            if is_new:
                result.commits.append(self.git.head_commit(repo_path))
                yield f"Created map repository at {repo_path}"
            result.state = ImportState.REPOSITORY_READY

            yield "Importing files..."
            replaced = replace_content(repo_path, archive)
            result.files_written = replaced.files_written
            result.skipped_entries = list(replaced.skipped)
            result.state = ImportState.CONTENT_REPLACED

            if self.options.keep_latest_osz:
                kept = repo_path / f"{result.project}{extension}"
                try:
                    shutil.copyfile(archive.path, kept)
                except OSError as e:
                    raise ArchiveError(f"Failed to copy the latest {extension}: {e}") from e
                result.kept_archive = str(kept)

            yield "Committing changes..."
            commit = stage_and_commit(repo_path, UPDATE_COMMIT_MESSAGE, is_initial=False, git=self.git)
            result.commits.append(commit)
            result.state = ImportState.COMMITTED

        except GitosuError as e:
            failed_state = result.state
            result.failed_state = failed_state
            result.state = ImportState.FAILED
            result.error = str(e)
            raise ImportFailedError(
                f"Import of {archive.file_name} failed",
                state=failed_state,
                result=result,
                exit_code=e.exit_code,
            ) from e

        return result


def run_import(
    path: Path,
    project_name: Optional[str] = None,
    options: Optional[ImportOptions] = None,
    git_client: Optional[GitClient] = None,
) -> ImportResult:
    """
    Import one archive, logging progress.

    The single entry point used by the watcher and the ``import`` command.
    Without ``options`` the configured repositories directory is used.

    Raises:
        ImportFailedError: the import was aborted
        ConfigError: no options given and the configured repositories
            directory does not exist
    """
    if options is None:
        config = load_config()
        options = ImportOptions.from_config(config, resolve_repositories_directory(config))

    service = ImportService(options, git_client=git_client)
    generator = service.import_archive(Path(path), project_name)
    while True:
        try:
            message = next(generator)
        except StopIteration as stop:
            return stop.value
        logger.info(message)
