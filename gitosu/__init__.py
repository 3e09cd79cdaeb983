"""
gitosu - Automatically converts osu! exports into git commits.

Every export the editor writes into the exports directory is imported into
its own repository under the repositories directory: the ``map`` folder is
replaced with the archive contents and the change is committed.

Quick Start:
    from pathlib import Path
    from gitosu import ImportOptions, run_import

    options = ImportOptions(repositories_root=Path("~/maps").expanduser())
    result = run_import(Path("Artist - Title (Mapper).osz"), options=options)
    print(result.project, result.commits)

Domain Objects:
    ExportArchive - An export to import
    ImportResult - What an import did

Services:
    ImportService - The import pipeline
    ExportWatcher - Imports every new export in a directory
"""

__version__ = "0.1.0"

from .domain import ExportArchive, ImportResult, ImportState
from .exit_codes import GitosuError, ImportFailedError
from .services import ImportOptions, ImportService, run_import, resolve_project_name

__all__ = [
    "__version__",
    "ExportArchive",
    "ImportResult",
    "ImportState",
    "GitosuError",
    "ImportFailedError",
    "ImportOptions",
    "ImportService",
    "run_import",
    "resolve_project_name",
]
