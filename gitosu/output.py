"""
Output module for gitosu.

Provides consistent output formatting for commands:
- JSONL (--json): one JSON object per line, for piping
- Pretty (default): human-readable summary using Rich

Usage:
    from gitosu.output import emit, emit_error

    emit(result, as_json=True)
    emit_error("Import failed", type="import_failed", context={"archive": path})
"""

import json
import sys
from typing import Any, Dict, Optional

from rich.console import Console
from rich.table import Table
from rich import box
from rich.markup import escape


def _to_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, 'to_dict'):
        return item.to_dict()
    if isinstance(item, dict):
        return item
    return {'value': str(item)}


def emit(item: Any, as_json: bool = False, console: Optional[Console] = None) -> None:
    """
    Emit an import result (or any to_dict() object).

    Args:
        item: Item to emit
        as_json: If True output a JSONL record, else a Rich table
        console: Console to render to (stdout by default)
    """
    data = _to_dict(item)
    if as_json:
        print(json.dumps(data, ensure_ascii=False), flush=True)
        return

    console = console or Console()
    table = Table(show_header=False, box=box.SIMPLE)
    table.add_column("key", style="cyan")
    table.add_column("value")
    for key, value in data.items():
        table.add_row(key, _format_value(value))
    console.print(table)


def _format_value(value: Any, max_len: int = 80) -> str:
    """Format a value for table display."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, list):
        s = ', '.join(str(v)[:12] for v in value[:3])
        if len(value) > 3:
            s += f' (+{len(value) - 3} more)'
        return s

    s = str(value)
    if len(s) > max_len:
        return s[:max_len-3] + '...'
    return s


def emit_error(
    error: str,
    type: str = "error",
    context: Optional[Dict[str, Any]] = None,
    as_json: bool = False,
) -> None:
    """
    Emit error to stderr, as JSON or as a red one-liner.

    Args:
        error: Error message
        type: Error type (e.g., "import_failed", "config_error")
        context: Additional context dict
    """
    if not as_json:
        Console(stderr=True).print(f"[red]\\[x][/red] {escape(error)}", highlight=False)
        return

    obj = {
        'error': error,
        'type': type
    }
    if context:
        obj['context'] = context

    print(json.dumps(obj, ensure_ascii=False), file=sys.stderr, flush=True)
