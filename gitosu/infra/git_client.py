"""
Git client infrastructure for gitosu.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Only local plumbing is exposed: init, add, write-tree, commit-tree,
update-ref and rev-parse, plus log/ls-tree for inspection.
"""

import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union
import logging

from ..exit_codes import GitCommandError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class GitCommit:
    """A git commit with metadata."""
    hash: str
    date: datetime
    author: str
    email: str
    message: str
    parents: Tuple[str, ...] = ()


class GitClient:
    """
    Abstraction over git commands.

    Commands are passed as argument lists, so paths and messages with
    spaces or parentheses never go through a shell.

    Example:
        client = GitClient()
        client.init("/path/to/repo")
        tree = client.write_tree("/path/to/repo")
    """

    def __init__(self, timeout: int = 120, executable: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 120)
            executable: git binary to invoke
        """
        self.timeout = timeout
        self.executable = executable

    def _run(
        self,
        args: Sequence[str],
        cwd: PathLike,
        check: bool = True,
    ) -> Tuple[str, int]:
        """
        Run a git command.

        Args:
            args: Arguments after ``git``
            cwd: Working directory
            check: Raise GitCommandError on non-zero exit

        Returns:
            Tuple of (stripped stdout, returncode)

        git prints paths as UTF-8 regardless of the locale.
        """
        cmd = [self.executable, *args]
        logger.debug(f"Running {' '.join(cmd)} in {cwd}")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(args, -1, f"timed out after {self.timeout}s") from e
        except OSError as e:
            raise GitCommandError(args, -1, str(e)) from e

        if check and result.returncode != 0:
            raise GitCommandError(args, result.returncode, result.stderr)

        return result.stdout.strip(), result.returncode

    def toplevel(self, path: PathLike) -> Optional[Path]:
        """Return the working tree root containing ``path`` or None."""
        output, code = self._run(["rev-parse", "--show-toplevel"], cwd=path, check=False)
        if code == 0 and output:
            return Path(output)
        return None

    def init(self, path: PathLike) -> None:
        """Create an empty repository in ``path``."""
        self._run(["init", "--quiet"], cwd=path)

    def add_all(self, path: PathLike) -> None:
        """Stage additions, modifications and deletions across the work tree."""
        self._run(["add", "--all", "--", "."], cwd=path)

    def write_tree(self, path: PathLike) -> str:
        """Write the index to a tree object and return its id."""
        output, _ = self._run(["write-tree"], cwd=path)
        return output

    def head_commit(self, path: PathLike) -> Optional[str]:
        """Return the commit HEAD points at, or None on an unborn branch."""
        output, code = self._run(
            ["rev-parse", "--verify", "--quiet", "HEAD^{commit}"], cwd=path, check=False
        )
        if code == 0 and output:
            return output
        return None

    def commit_tree(self, path: PathLike, tree: str, message: str, parents: Sequence[str] = ()) -> str:
        """
        Create a commit object for ``tree``.

        Author and committer come from git's own configuration; git fails
        here when no identity can be resolved.
        """
        args = ["commit-tree", tree]
        for parent in parents:
            args += ["-p", parent]
        args += ["-m", message]
        output, _ = self._run(args, cwd=path)
        return output

    def update_head(self, path: PathLike, commit: str, old: Optional[str] = None) -> None:
        """Point HEAD (and the branch it references) at ``commit``."""
        args = ["update-ref", "HEAD", commit]
        if old:
            args.append(old)
        self._run(args, cwd=path)

    def tracked_files(self, path: PathLike, ref: str = "HEAD") -> List[str]:
        """List files recorded in ``ref``'s tree."""
        output, _ = self._run(["ls-tree", "-r", "-z", "--name-only", ref], cwd=path)
        return [name for name in output.split('\0') if name]

    def log(self, path: PathLike, limit: int = 50) -> List[GitCommit]:
        """
        Get commit log, newest first.

        Args:
            path: Path to git repository
            limit: Maximum commits to return

        Returns:
            List of GitCommit objects
        """
        output, code = self._run(
            ["log", "--format=%H|%P|%aI|%an|%ae|%s", "-n", str(limit)],
            cwd=path,
            check=False,
        )
        if code != 0 or not output:
            return []

        commits = []
        for line in output.split('\n'):
            parts = line.split('|', 5)
            if len(parts) < 6:
                continue

            commit_hash, parents, date_str, author, email, message = (p.strip() for p in parts)
            try:
                date = datetime.fromisoformat(date_str.replace('Z', '+00:00'))
            except ValueError:
                date = datetime.now()

            commits.append(GitCommit(
                hash=commit_hash,
                date=date,
                author=author,
                email=email,
                message=message,
                parents=tuple(parents.split()),
            ))

        return commits
