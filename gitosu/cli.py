#!/usr/bin/env python3

import signal
import sys
import threading
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from gitosu import __version__
from gitosu.config import configure_logging, load_config, resolve_directories
from gitosu.exit_codes import CommandError, ConfigError, ImportFailedError, get_exit_code_for_exception
from gitosu.output import emit, emit_error
from gitosu.services.import_service import ImportOptions, run_import
from gitosu.infra.git_client import GitClient
from gitosu.watcher import ExportWatcher


class Context:
    """Resolved settings shared by all subcommands."""

    def __init__(self, config, exports_dir: Path, repositories_dir: Path, keep_latest_osz: Optional[bool]):
        self.config = config
        self.exports_dir = exports_dir
        self.repositories_dir = repositories_dir
        self.options = ImportOptions.from_config(config, repositories_dir, keep_latest_osz)
        self.git = GitClient(timeout=int(config.get('git', {}).get('timeout_seconds', 120)))

    def run_import(self, path: Path, project_name=None):
        return run_import(path, project_name, options=self.options, git_client=self.git)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option('--exports', '-e', type=click.Path(file_okay=False),
              help='Exports directory (default: current directory)')
@click.option('--repositories', '-r', type=click.Path(file_okay=False),
              help='Repositories directory (default: current directory)')
@click.option('--keep-latest-osz', '-k', is_flag=True,
              help='Keep and commit the latest .osz in the root of the repository. '
                   'This will at least double the size of the repository.')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, exports, repositories, keep_latest_osz, debug):
    """gitosu - Automatically converts osu! exports into git commits.

    Without a subcommand, watches the exports directory and imports every
    new .osz into <repositories>/<map name>.
    """
    config = load_config()
    configure_logging(config, debug=debug)

    try:
        exports_dir, repositories_dir = resolve_directories(config, exports, repositories)
    except ConfigError as e:
        emit_error(str(e), type="config_error")
        ctx.exit(e.exit_code)

    ctx.obj = Context(config, exports_dir, repositories_dir, keep_latest_osz or None)

    if ctx.invoked_subcommand is None:
        ctx.invoke(watch_handler)


@cli.command('watch')
@click.pass_obj
def watch_handler(obj: Context):
    """Watch the exports directory and import new archives."""
    watcher = ExportWatcher(
        obj.exports_dir,
        importer=obj.run_import,
        extension=obj.options.archive_extension,
        recursive=bool(obj.config.get('watch', {}).get('recursive', False)),
    )

    stop_event = threading.Event()

    def _signal_handler(signum, frame):
        stop_event.set()

    signal.signal(signal.SIGTERM, _signal_handler)

    Console(stderr=True).print(
        f"[magenta]gitosu[/magenta] is now monitoring [magenta]{escape(str(obj.exports_dir))}[/magenta]!",
        highlight=False,
    )
    watcher.run(stop_event)


@cli.command('import')
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--use-repository', 'use_repository', metavar='NAME',
              help='Override target repository name')
@click.option('--json', 'output_json', is_flag=True, help='Output result as JSONL')
@click.pass_obj
def import_handler(obj: Context, file: Path, use_repository, output_json):
    """Manually import an .osz FILE."""
    try:
        result = obj.run_import(file, use_repository)
    except ImportFailedError as e:
        emit_error(
            e.cause_chain(),
            type="import_failed",
            context=e.result.to_dict() if e.result else None,
            as_json=output_json,
        )
        sys.exit(e.exit_code)
    except (CommandError, OSError) as e:
        emit_error(str(e), as_json=output_json)
        sys.exit(get_exit_code_for_exception(e))

    emit(result, as_json=output_json)
    if not output_json:
        Console(stderr=True).print("[green]Import completed![/green] Don't forget to push!")


def main():
    cli()

if __name__ == "__main__":
    main()
