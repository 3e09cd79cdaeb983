"""
Commit orchestration for gitosu.

Every commit is a plain linear append: stage everything, write the tree,
create a commit on top of HEAD (or with no parent for the initial one) and
move HEAD. Nothing is merged, rebased or amended.
"""

import logging
from pathlib import Path
from typing import Optional

from ..exit_codes import CommitError, GitCommandError
from ..infra.git_client import GitClient

logger = logging.getLogger(__name__)


def stage_and_commit(
    repository_path: Path,
    message: str,
    is_initial: bool,
    git: Optional[GitClient] = None,
) -> str:
    """
    Stage the whole working tree and commit it.

    Args:
        repository_path: Repository working tree
        message: Commit message
        is_initial: Create a root commit (zero parents)
        git: GitClient to use

    Returns:
        Id of the new commit

    Raises:
        CommitError: staging, tree writing, committing or moving HEAD failed
    """
    git = git or GitClient()

    try:
        git.add_all(repository_path)
        tree = git.write_tree(repository_path)
    except GitCommandError as e:
        raise CommitError(f"Failed to stage changes in {repository_path}") from e

    parents = []
    if not is_initial:
        head = git.head_commit(repository_path)
        if head is None:
            raise CommitError(f"{repository_path} has no commit to build on")
        parents.append(head)

    try:
        commit = git.commit_tree(repository_path, tree, message, parents)
    except GitCommandError as e:
        # Usually a missing user.name / user.email
        raise CommitError(f"Failed to create commit in {repository_path}") from e

    try:
        git.update_head(repository_path, commit, old=parents[0] if parents else None)
    except GitCommandError as e:
        raise CommitError(f"Failed to advance HEAD in {repository_path}") from e

    logger.debug(f"Committed {commit[:10]} ({message!r}) in {repository_path}")
    return commit
