"""
Project name resolution.

The editor names exports ``Artist - Title (Mapper).osz`` and, when that file
already exists, ``Artist - Title (Mapper) (2).osz`` and so on. Both must land
in the same repository, so the duplicate number is dropped.
"""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional

from ..exit_codes import InvalidProjectNameError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".osz"

# Single path component limit on common filesystems
MAX_NAME_BYTES = 255


@lru_cache(maxsize=None)
def _export_pattern(extension: str) -> "re.Pattern[str]":
    return re.compile(r"^(.+? \(.+?\))(?: \((\d+)\))?" + re.escape(extension) + r"$")


def validate_project_name(name: str) -> str:
    """
    Ensure ``name`` is usable as a single directory name.

    Raises:
        InvalidProjectNameError: empty, ``.``/``..``, longer than
            MAX_NAME_BYTES in UTF-8, or containing a path separator or NUL byte
    """
    if not name or not name.strip():
        raise InvalidProjectNameError("Project name is empty")
    if name in ('.', '..'):
        raise InvalidProjectNameError(f"Project name {name!r} is not allowed")
    if any(ch in name for ch in ('/', '\\', '\0')):
        raise InvalidProjectNameError(
            f"Project name {name!r} contains a path separator"
        )
    if len(name.encode("utf-8", errors="surrogateescape")) > MAX_NAME_BYTES:
        raise InvalidProjectNameError(
            f"Project name is longer than {MAX_NAME_BYTES} bytes"
        )
    return name


def duplicate_number(file_name: str, extension: str = DEFAULT_EXTENSION) -> Optional[int]:
    """Return N for ``... (N).osz`` duplicate exports, None otherwise."""
    match = _export_pattern(extension).match(file_name)
    if match and match.group(2):
        return int(match.group(2))
    return None


def resolve_project_name(
    file_name: str,
    override: Optional[str] = None,
    extension: str = DEFAULT_EXTENSION,
) -> str:
    """
    Derive the project identifier for an export.

    Args:
        file_name: Archive file name (not a full path)
        override: Explicit project name; returned as-is when given
        extension: Archive extension including the dot

    Returns:
        Project identifier

    Raises:
        InvalidProjectNameError: if the result is not a safe directory name
    """
    if override is not None:
        return validate_project_name(override)

    match = _export_pattern(extension).match(file_name)
    if match:
        return validate_project_name(match.group(1))

    # Not the editor's naming scheme, use the file name without extension
    if file_name.endswith(extension):
        name = file_name[:-len(extension)]
    else:
        name = Path(file_name).stem
    logger.debug(f"{file_name} does not follow the export naming scheme, using {name!r}")
    return validate_project_name(name)
