"""Path segments and their dotted rendering.

A path is a tuple of segments. Field segments are names; collection
elements use ``"[i]"``. Rendering joins field segments with ``.`` and
attaches index segments without a separator: ``items[1].id``.
"""

from __future__ import annotations

from collections.abc import Iterable

Path = tuple[str, ...]


def index_segment(index: int) -> str:
    """Return the path segment for a collection element."""
    return f"[{index}]"


def is_index_segment(segment: str) -> bool:
    return segment.startswith("[") and segment.endswith("]")


def join_path(segments: Iterable[str]) -> str:
    """Render *segments* as a dotted path string."""
    parts: list[str] = []
    for segment in segments:
        if parts and not is_index_segment(segment):
            parts.append(".")
        parts.append(segment)
    return "".join(parts)


def ancestors(path: Path) -> Iterable[Path]:
    """Yield *path* and every proper prefix of it, longest first."""
    for end in range(len(path), -1, -1):
        yield path[:end]
