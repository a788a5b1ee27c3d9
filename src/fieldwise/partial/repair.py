"""Repair of truncated JSON into the nearest syntactically valid document.

The repairer walks the input once, copying complete tokens and
synthesizing the minimal closure where the input stops:

* an unterminated string is closed (a dangling escape is dropped);
* a number at end of input is trimmed of a trailing ``.``, ``e`` or sign;
* a partial ``true``/``false``/``null`` is completed;
* an object key without a value is dropped;
* every open object and array is closed.

Each synthesized closure below the root is recorded as an
:class:`IncompleteField` against its wire path, inner subtrees before
the containers around them.  Containers left open are also listed in
``open_paths``; the root is only ever listed there, as ``()``.
Trailing commas are tolerated.  An unexpected character is treated as
the end of the input.
"""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass

from fieldwise.domain.partial import IncompleteField, PartialState
from fieldwise.domain.paths import Path, index_segment
from fieldwise.domain.types import TruncationReason

_WHITESPACE = " \t\r\n"
_NUMBER_CHARS = frozenset("0123456789+-.eE")
_NUMBER_TAIL = ".eE+-"
_KEYWORDS = ("true", "false", "null")


@dataclass(frozen=True)
class RepairResult:
    """Repaired JSON text plus the completeness report."""

    text: str
    state: PartialState

    @property
    def data(self) -> bytes:
        return self.text.encode("utf-8", "surrogatepass")


def decode_prefix(data: bytes | bytearray | str) -> str:
    """Decode UTF-8 *data*, dropping an incomplete trailing code point.

    Raises:
        UnicodeDecodeError: *data* contains invalid UTF-8 before its end.
    """
    if isinstance(data, str):
        return data
    return codecs.getincrementaldecoder("utf-8")().decode(bytes(data), final=False)


def _is_high_surrogate(hex_digits: str) -> bool:
    try:
        return 0xD800 <= int(hex_digits, 16) <= 0xDBFF
    except ValueError:
        return False


def _trim_partial_escape(literal: str) -> str:
    """Drop an escape sequence cut off at the end of *literal*.

    A complete high surrogate at the very end is dropped too; its low
    half has not arrived yet.
    """
    i, n = 0, len(literal)
    while i < n:
        if literal[i] != "\\":
            i += 1
            continue
        if i + 1 >= n:
            return literal[:i]
        if literal[i + 1] == "u":
            if i + 6 > n or (i + 6 == n and _is_high_surrogate(literal[i + 2 : i + 6])):
                return literal[:i]
            i += 6
            continue
        i += 2
    return literal


def _decode_key(literal: str) -> str:
    try:
        return json.loads(f'"{literal}"', strict=False)
    except json.JSONDecodeError:
        return literal


class _Repairer:
    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._halted = False
        self._out: list[str] = []
        self._incomplete: list[IncompleteField] = []
        self._open: list[Path] = []

    def repair(self) -> RepairResult:
        self._skip_ws()
        if self._at_end():
            self._out.append("null")
            self._mark((), TruncationReason.VALUE_MISSING)
        else:
            self._value(())
        return RepairResult(
            text="".join(self._out),
            state=PartialState(
                incomplete_fields=tuple(self._incomplete), open_paths=tuple(self._open)
            ),
        )

    # --- cursor helpers ---

    def _at_end(self) -> bool:
        return self._halted or self._pos >= len(self._text)

    def _skip_ws(self) -> None:
        text, n = self._text, len(self._text)
        while self._pos < n and text[self._pos] in _WHITESPACE:
            self._pos += 1

    def _mark(self, path: Path, reason: TruncationReason) -> None:
        if not path:
            # A cut-off root has no member path of its own.
            self._open.append(path)
            return
        self._incomplete.append(IncompleteField(path=path, reason=reason))

    def _close(self, path: Path, reason: TruncationReason) -> None:
        """Record a container still open at the end of the input."""
        self._open.append(path)
        if path:
            self._mark(path, reason)

    def _halt(self, path: Path) -> None:
        self._out.append("null")
        self._mark(path, TruncationReason.VALUE_MISSING)
        self._halted = True

    # --- grammar ---

    def _value(self, path: Path) -> None:
        ch = self._text[self._pos]
        if ch == "{":
            self._object(path)
        elif ch == "[":
            self._array(path)
        elif ch == '"':
            self._string(path)
        elif ch == "-" or "0" <= ch <= "9":
            self._number(path)
        elif ch in "tfn":
            self._keyword(path)
        else:
            self._halt(path)

    def _object(self, path: Path) -> None:
        self._pos += 1
        self._out.append("{")
        members = 0
        while True:
            self._skip_ws()
            if self._at_end():
                self._close(path, TruncationReason.OBJECT_TRUNCATED)
                break
            ch = self._text[self._pos]
            if ch == "}":
                self._pos += 1
                break
            if ch == ",":
                self._pos += 1
                continue
            if ch != '"':
                self._halted = True
                self._close(path, TruncationReason.OBJECT_TRUNCATED)
                break

            literal, complete = self._scan_string()
            key_path = (*path, _decode_key(literal))
            if not complete:
                if literal:
                    self._mark(key_path, TruncationReason.KEY_TRUNCATED)
                self._close(path, TruncationReason.OBJECT_TRUNCATED)
                break
            self._skip_ws()
            if not self._at_end() and self._text[self._pos] == ":":
                self._pos += 1
                self._skip_ws()
            else:
                self._halted = self._halted or self._pos < len(self._text)
            if self._at_end():
                self._mark(key_path, TruncationReason.VALUE_MISSING)
                self._close(path, TruncationReason.OBJECT_TRUNCATED)
                break

            if members:
                self._out.append(",")
            self._out.append(f'"{literal}":')
            self._value(key_path)
            members += 1
        self._out.append("}")

    def _array(self, path: Path) -> None:
        self._pos += 1
        self._out.append("[")
        index = 0
        while True:
            self._skip_ws()
            if self._at_end():
                self._close(path, TruncationReason.ARRAY_TRUNCATED)
                break
            ch = self._text[self._pos]
            if ch == "]":
                self._pos += 1
                break
            if ch == ",":
                self._pos += 1
                continue
            if index:
                self._out.append(",")
            self._value((*path, index_segment(index)))
            index += 1
        self._out.append("]")

    def _scan_string(self) -> tuple[str, bool]:
        """Consume a string token; return its raw literal and completeness."""
        text, n = self._text, len(self._text)
        self._pos += 1
        start = self._pos
        while self._pos < n:
            ch = text[self._pos]
            if ch == "\\":
                self._pos += 2
                continue
            if ch == '"':
                literal = text[start : self._pos]
                self._pos += 1
                return literal, True
            self._pos += 1
        self._pos = n
        return _trim_partial_escape(text[start:]), False

    def _string(self, path: Path) -> None:
        literal, complete = self._scan_string()
        self._out.append(f'"{literal}"')
        if not complete:
            self._mark(path, TruncationReason.STRING_TRUNCATED)

    def _number(self, path: Path) -> None:
        text, n = self._text, len(self._text)
        start = self._pos
        while self._pos < n and text[self._pos] in _NUMBER_CHARS:
            self._pos += 1
        token = text[start : self._pos]
        if self._pos < n:
            self._out.append(token)
            return
        # More digits may still arrive.
        token = token.rstrip(_NUMBER_TAIL)
        self._out.append(token or "null")
        self._mark(path, TruncationReason.VALUE_MISSING)

    def _keyword(self, path: Path) -> None:
        text, n = self._text, len(self._text)
        remaining = n - self._pos
        for word in _KEYWORDS:
            if text.startswith(word, self._pos):
                self._out.append(word)
                self._pos += len(word)
                return
            if remaining < len(word) and word.startswith(text[self._pos :]):
                self._out.append(word)
                self._pos = n
                self._mark(path, TruncationReason.VALUE_MISSING)
                return
        self._halt(path)


def repair_json(data: bytes | bytearray | str) -> RepairResult:
    """Repair possibly-truncated JSON *data*.

    Raises:
        UnicodeDecodeError: *data* is not valid UTF-8.
    """
    return _Repairer(decode_prefix(data)).repair()
