"""
Standard exit codes and error taxonomy for gitosu.

Following Unix/POSIX conventions for command-line tools. Every error the
import pipeline raises carries the exit code the CLI should terminate with.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
CONFIG_ERROR = 66        # Configuration error (missing directories, bad file)
PERMISSION_ERROR = 67    # Insufficient permissions
DATA_ERROR = 70          # Bad archive or project name
ENVIRONMENT_ERROR = 72   # Repository could not be opened, created or committed to
IMPORT_FAILED = 73       # An import was aborted
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ValueError': DATA_ERROR,
    'BadZipFile': DATA_ERROR,
    'ConfigError': CONFIG_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    exit_code = getattr(exc, 'exit_code', None)
    if isinstance(exit_code, int):
        return exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class GitosuError(CommandError):
    """Base class for everything the import pipeline raises."""
    default_exit_code = GENERAL_ERROR

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message, exit_code if exit_code is not None else self.default_exit_code)


# Input errors ----------------------------------------------------------------

class ArchiveError(GitosuError):
    """Archive is missing, unreadable or not a valid container."""
    default_exit_code = DATA_ERROR


class EmptyArchiveError(ArchiveError):
    """Archive has no entries; importing it would erase the map."""


class ExtractionError(ArchiveError):
    """Writing an archive entry to disk failed mid-import."""


class InvalidProjectNameError(GitosuError):
    """Project identifier cannot be used as a repository directory name."""
    default_exit_code = DATA_ERROR


# Environment errors ----------------------------------------------------------

class GitCommandError(GitosuError):
    """A git invocation exited non-zero or timed out."""
    default_exit_code = ENVIRONMENT_ERROR

    def __init__(self, args, returncode: int, stderr: str = ""):
        self.git_args = list(args)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"git {' '.join(self.git_args)} failed with exit code {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)


class RepositoryError(GitosuError):
    """Project repository could not be opened or bootstrapped."""
    default_exit_code = ENVIRONMENT_ERROR


class CommitError(GitosuError):
    """Staging or committing failed (missing identity, broken index, ...)."""
    default_exit_code = ENVIRONMENT_ERROR


# Pipeline --------------------------------------------------------------------

class ImportFailedError(GitosuError):
    """
    Tagged error surfaced by the import pipeline.

    ``state`` is the pipeline state the failure happened in, ``result`` the
    partial ImportResult, and ``__cause__`` the underlying error.
    """
    default_exit_code = IMPORT_FAILED

    def __init__(self, message: str, state=None, result=None, exit_code: Optional[int] = None):
        super().__init__(message, exit_code)
        self.state = state
        self.result = result

    def cause_chain(self) -> str:
        """Render the error and its causes as ``a: b: c``."""
        parts = []
        exc: Optional[BaseException] = self
        while exc is not None:
            parts.append(str(exc))
            exc = exc.__cause__
        return ": ".join(parts)
