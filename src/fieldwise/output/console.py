"""Rich Console factory and theme for fieldwise output.

Consoles render into a StringIO buffer so renderers keep the
``format_result() -> str`` contract.  Rich drops color codes on its own
when the output is not a terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FIELDWISE_THEME = Theme(
    {
        "fw.ok": "bold green",
        "fw.error": "bold red",
        "fw.warning": "bold yellow",
        "fw.op": "bold cyan",
        "fw.key": "dim",
        "fw.path": "bold blue",
        "fw.kind": "magenta",
        "fw.pending": "yellow",
    }
)

_KIND_STYLES: dict[str, str] = {
    "required": "fw.warning",
    "constraint": "fw.warning",
    "decode_error": "fw.error",
    "internal": "fw.error",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width for stable output.
    """
    return Console(
        file=StringIO(),
        theme=FIELDWISE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for an error kind."""
    return _KIND_STYLES.get(kind, "fw.kind")
