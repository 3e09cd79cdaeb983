"""
Project repository management for gitosu.

Each project lives in its own git repository under the repositories root.
The first import for a project bootstraps the repository with a README and
an empty ``map`` directory and records the initial commit.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from ..domain.operation import INITIAL_COMMIT_MESSAGE
from ..exit_codes import CommitError, GitCommandError, RepositoryError
from ..infra.git_client import GitClient
from .commit_service import stage_and_commit

logger = logging.getLogger(__name__)

CONTENT_DIRECTORY = "map"
README_NAME = "README.md"

README_TEMPLATE = """\
# {map_name}

This repository tracks the history of the osu! beatmap **{map_name}**.

Every commit is an export of the map taken from the editor and imported by
gitosu. The `map` directory is replaced wholesale on every import, so do not
edit files inside it by hand: your changes will be lost on the next export.
Everything outside `map` is yours.
"""


def render_readme(name: str) -> str:
    return README_TEMPLATE.replace("{map_name}", name)


def open_repository(repo_path: Path, git: Optional[GitClient] = None) -> Path:
    """
    Open an existing project repository.

    Raises:
        RepositoryError: the directory is not the root of a git working
            tree, or has no commit (a bootstrap that never finished)
    """
    git = git or GitClient()

    if not repo_path.is_dir():
        raise RepositoryError(f"{repo_path} exists but is not a directory")

    toplevel = git.toplevel(repo_path)
    if toplevel is None or toplevel.resolve() != repo_path.resolve():
        raise RepositoryError(f"Failed to open repository: {repo_path} is not a git repository")

    if git.head_commit(repo_path) is None:
        raise RepositoryError(
            f"Repository {repo_path} has no commits; it was probably left behind "
            "by an interrupted bootstrap. Remove it and import again."
        )

    return repo_path


def bootstrap_repository(repo_path: Path, name: str, git: Optional[GitClient] = None) -> str:
    """
    Create a new project repository with its scaffold and initial commit.

    A failure leaves the directory on disk without a commit; open_repository
    refuses such a directory on the next attempt.

    Returns:
        Id of the initial commit
    """
    git = git or GitClient()

    logger.info(f"Initializing map repository at {repo_path}")
    try:
        repo_path.mkdir()
        git.init(repo_path)
        (repo_path / README_NAME).write_text(render_readme(name), encoding="utf-8")
        (repo_path / CONTENT_DIRECTORY).mkdir()
    except (OSError, GitCommandError) as e:
        raise RepositoryError(f"Failed to init repository {repo_path}") from e

    try:
        return stage_and_commit(repo_path, INITIAL_COMMIT_MESSAGE, is_initial=True, git=git)
    except CommitError as e:
        raise RepositoryError(f"Failed to create initial commit in {repo_path}") from e


def ensure_repository(
    root: Path,
    name: str,
    git: Optional[GitClient] = None,
) -> Tuple[Path, bool]:
    """
    Return the repository for project ``name``, creating it if needed.

    Args:
        root: Repositories root directory
        name: Validated project identifier
        git: GitClient to use

    Returns:
        (repository path, whether it was created by this call)

    Raises:
        RepositoryError: the repository cannot be opened or created
    """
    git = git or GitClient()
    repo_path = Path(root) / name

    try:
        exists = repo_path.exists() or repo_path.is_symlink()
    except OSError as e:
        raise RepositoryError(f"Cannot access {repo_path}: {e}") from e

    if exists:
        return open_repository(repo_path, git), False

    bootstrap_repository(repo_path, name, git)
    return repo_path, True
