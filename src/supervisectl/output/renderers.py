"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from supervisectl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from supervisectl.services.result import ReportedIssue, ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    renderer = _OP_RENDERERS.get(result.op, _render_generic)
    if result.ok or renderer in _FAILURE_AWARE:
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    if result.ok:
        label = Text("OK", style="sv.ok")
    else:
        label = Text("ERROR", style="sv.error")
    console.print(label, Text(f"  {result.op}", style="sv.op"), sep="")


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="sv.key")
    v = Text(str(value), style="sv.path" if key == "source" else "")
    console.print(k, v, sep="")


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="sv.error")
    op = Text(f"  {result.op}", style="sv.op")
    console.print(label, op, Text(": "), Text(msg), sep="")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


def _issue_location(issue: ReportedIssue) -> str:
    where = f"{issue.directive}.{issue.path}" if issue.path else issue.directive
    if issue.location is not None:
        where = f"{where} ({issue.location})"
    return where


# ── Validation ────────────────────────────────────────────────────────


def _render_validate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render validation results: objects built, then issues."""
    if "objects" not in result.data:
        _render_error(result, console, verbose=verbose)
        return

    d = result.data
    _status_line(console, result)
    _field(console, "source", d.get("source", ""))
    _field(console, "entries", d.get("entries", 0))

    objects = d.get("objects", [])
    if objects and (verbose or result.ok):
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("#", justify="right")
        table.add_column("Directive", style="sv.directive")
        table.add_column("Variant", justify="right")
        table.add_column("Kind", style="sv.type")
        for obj in objects:
            value = obj.get("value")
            kind = value.get("kind", "") if isinstance(value, dict) else type(value).__name__
            table.add_row(
                str(obj.get("index", "")),
                str(obj.get("directive", "")),
                str(obj.get("variant", "")),
                str(kind),
            )
        console.print(table)
        if verbose:
            for obj in objects:
                console.print(f"  [sv.directive]{obj['directive']}[/sv.directive]")
                console.print(f"    {_json.dumps(obj.get('value'), separators=(',', ':'))}")

    issues = result.issues
    for issue in issues:
        where = escape(_issue_location(issue))
        console.print(
            f"  [sv.code]{issue.code}[/sv.code] [sv.path]{where}[/sv.path]: {escape(issue.message)}"
        )
        if verbose:
            for k, v in issue.detail.items():
                console.print(f"    {k}: {v}")

    if issues:
        console.print(f"\n{len(issues)} issue(s)")


# ── Schema ────────────────────────────────────────────────────────────


def _render_schema(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render directive schemas, one block per directive."""
    directives = result.data.get("directives", [])
    single = len(directives) == 1

    if not single and not verbose:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Directive", style="sv.directive")
        table.add_column("Variants", justify="right")
        for entry in directives:
            table.add_row(entry["name"], str(len(entry["variants"])))
        console.print(table)
        console.print(f"\n{result.data.get('count', len(directives))} directives")
        return

    for entry in directives:
        console.print(f"[sv.directive]{entry['name']}[/sv.directive]")
        for var in entry["variants"]:
            signature = var["signature"] or "(no fields)"
            console.print(f"  {var['index']}: [sv.type]{signature}[/sv.type]")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "validate": _render_validate,
    "describe_schema": _render_schema,
}

# Renderers that present partial results of a failed operation themselves.
_FAILURE_AWARE = frozenset({_render_validate})
