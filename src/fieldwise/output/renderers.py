"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console backed by StringIO; the caller
extracts the text with ``get_output(console)``.  Renderers are picked by
``result.op`` in :func:`render_result`, with a generic key-value
fallback for anything else.

Cells are built from ``Text`` objects: paths and messages routinely
contain square brackets that Rich would otherwise read as markup.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from fieldwise.output.console import create_console, get_output, style_for_kind

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from fieldwise.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    if result.op == "repair":
        return str(result.data.get("repaired", ""))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="fw.ok")
    op = Text(f"  {result.op}", style="fw.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="fw.key")
    v = Text(str(value), style="fw.path" if key in ("file", "path") else "")
    console.print(k, v, end="")
    console.print()


def _issue_table(errors: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Path", style="fw.path", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Message")
    for err in errors:
        kind = str(err.get("kind", ""))
        table.add_row(
            Text(str(err.get("path", ""))),
            Text(kind, style=style_for_kind(kind)),
            Text(str(err.get("message", ""))),
        )
    return table


def _value_block(console: Console, value: Any) -> None:
    console.print(Text("  value:", style="fw.key"))
    console.print(Syntax(json.dumps(value, indent=2, ensure_ascii=False), "json"))


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="fw.error")
    op = Text(f"  {result.op}", style="fw.op")
    console.print(label, op, Text(": "), Text(msg))

    errors = result.data.get("errors") or []
    if errors:
        console.print(_issue_table(errors))

    if result.op == "stream" and "steps" in result.data:
        _render_steps(result, console, verbose=verbose)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            if k != "errors":
                console.print(Text(f"    {k}: {v}"))


# ── Operation renderers ───────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a successful check: the file, its type, and the value when verbose."""
    _status_line(console, result)
    _field(console, "file", result.data.get("file", ""))
    _field(console, "type", result.data.get("type", ""))
    if verbose and result.data.get("value") is not None:
        _value_block(console, result.data["value"])


def _render_repair(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render repaired JSON followed by what is still missing."""
    d = result.data
    _status_line(console, result)
    _field(console, "file", d.get("file", ""))
    _field(console, "complete", d.get("complete", False))
    opened = d.get("open") or []
    if opened:
        _field(console, "open", ", ".join(p or "$" for p in opened))
    console.print(Syntax(str(d.get("repaired", "")), "json", word_wrap=True))

    incomplete = d.get("incomplete", [])
    if incomplete:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Path", style="fw.path", no_wrap=True)
        table.add_column("Reason", style="fw.pending")
        for item in incomplete:
            table.add_row(Text(str(item.get("path", ""))), Text(str(item.get("reason", ""))))
        console.print(table)


def _render_steps(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    steps = result.data.get("steps", [])
    shown = steps if verbose else [s for s in steps if s.get("complete")] or steps[-1:]
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Bytes", justify="right")
    table.add_column("Complete")
    table.add_column("Waiting for", style="fw.pending")
    table.add_column("Errors", justify="right")
    for step in shown:
        waiting = step.get("waiting_for") or []
        table.add_row(
            Text(str(step.get("bytes", 0))),
            Text("yes" if step.get("complete") else "no"),
            Text(", ".join(waiting) if waiting else "-"),
            Text(str(step.get("errors", 0))),
        )
    console.print(table)


def _render_stream(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a stream replay: one table row per chunk when verbose."""
    d = result.data
    _status_line(console, result)
    _field(console, "file", d.get("file", ""))
    _field(console, "chunks", len(d.get("steps", [])))
    _field(console, "completed_at", d.get("completed_at"))
    _render_steps(result, console, verbose=verbose)
    if verbose and d.get("value") is not None:
        _value_block(console, d["value"])


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "check": _render_check,
    "repair": _render_repair,
    "stream": _render_stream,
}
