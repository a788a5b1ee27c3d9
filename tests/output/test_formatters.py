"""Tests for output formatting across JSON, quiet, and Rich modes."""

from __future__ import annotations

import json

from fieldwise.output.formatters import OutputSettings, format_result
from fieldwise.output.renderers import render_quiet, render_result
from fieldwise.services.result import ServiceError, ServiceResult

CHECK_OK = ServiceResult(
    ok=True,
    op="check",
    data={"type": "Person", "file": "p.json", "value": {"name": "Ada"}, "errors": [], "count": 0},
)

CHECK_FAILED = ServiceResult(
    ok=False,
    op="check",
    data={
        "errors": [
            {"path": "items[0].id", "kind": "required", "message": "required field"},
        ]
    },
    error=ServiceError(code="VALIDATION_FAILED", message="1 validation error(s) in p.json"),
)

REPAIR_OK = ServiceResult(
    ok=True,
    op="repair",
    data={
        "file": "p.json",
        "repaired": '{"a":[1]}',
        "complete": False,
        "incomplete": [
            {"path": "a", "reason": "array_truncated"},
        ],
        "open": ["a", ""],
    },
)


class TestFormatResult:
    def test_json_wins(self) -> None:
        out = format_result(CHECK_OK, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(out)["data"]["type"] == "Person"

    def test_quiet(self) -> None:
        assert format_result(CHECK_OK, settings=OutputSettings(quiet=True)) == "OK: check"

    def test_default_is_rich(self) -> None:
        out = format_result(CHECK_OK)
        assert out.startswith("OK")
        assert "p.json" in out


class TestRenderQuiet:
    def test_error(self) -> None:
        assert render_quiet(CHECK_FAILED) == "ERROR: check: 1 validation error(s) in p.json"

    def test_repair_prints_document(self) -> None:
        assert render_quiet(REPAIR_OK) == '{"a":[1]}'


class TestRenderResult:
    def test_error_table_keeps_brackets(self) -> None:
        out = render_result(CHECK_FAILED)
        assert "ERROR" in out
        assert "items[0].id" in out
        assert "required field" in out

    def test_check_verbose_shows_value(self) -> None:
        assert '"name": "Ada"' in render_result(CHECK_OK, verbose=True)
        assert '"name"' not in render_result(CHECK_OK)

    def test_repair_open_root_rendered_as_dollar(self) -> None:
        out = render_result(REPAIR_OK)
        assert "array_truncated" in out
        assert "open:" in out
        assert "a, $" in out

    def test_unknown_op_falls_back_to_fields(self) -> None:
        out = render_result(ServiceResult(ok=True, op="other", data={"answer": 42}))
        assert "answer:" in out
        assert "42" in out
