"""Tests for DocumentService and target resolution."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from models import Cat, Dog, Location

from fieldwise import RuleRegistry
from fieldwise.services.documents import DocumentService, TargetError, load_target, parse_variants


class TestLoadTarget:
    def test_nested_qualname(self) -> None:
        assert load_target("models:Location") is Location

    @pytest.mark.parametrize(
        ("reference", "message"),
        [
            ("models.Location", "must look like 'module:Class'"),
            ("no_such_module_xyz:Thing", "cannot import"),
            ("models:Missing", "has no attribute"),
            ("models:ANIMALS", "is not a class"),
        ],
    )
    def test_errors(self, reference: str, message: str) -> None:
        with pytest.raises(TargetError, match=message):
            load_target(reference)


class TestParseVariants:
    def test_mapping(self) -> None:
        spec = parse_variants("species", ["cat=models:Cat", "dog=models:Dog"])
        assert spec.tag == "species"
        assert spec.resolve("cat") is Cat
        assert spec.resolve("dog") is Dog

    def test_malformed_pair(self) -> None:
        with pytest.raises(TargetError, match="tag=module:Class"):
            parse_variants("species", ["models:Cat"])

    def test_requires_variants(self) -> None:
        with pytest.raises(TargetError, match="at least one"):
            parse_variants("species", [])


class TestDocumentService:
    @pytest.fixture
    def service(self, registry: RuleRegistry) -> DocumentService:
        return DocumentService(registry=registry)

    def test_check_ok(self, service: DocumentService, write_json: Callable[..., Path]) -> None:
        result = service.check("models:Location", write_json({"city": "Oslo", "zip": "01234"}))
        assert result.ok
        assert result.data["value"] == {"city": "Oslo", "zip": "01234"}

    def test_check_reports_field_paths(
        self, service: DocumentService, write_json: Callable[..., Path]
    ) -> None:
        result = service.check("models:Location", write_json({"zip": "1"}))
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"
        issues = [(e["path"], e["kind"]) for e in result.data["errors"]]
        assert issues == [("zip_code", "constraint")]

    def test_check_decode_failure_has_no_value(
        self, service: DocumentService, write_json: Callable[..., Path]
    ) -> None:
        result = service.check("models:Location", write_json("[]"))
        assert result.data["value"] is None
        assert result.data["type"] is None

    def test_check_unreadable_file(self, service: DocumentService, tmp_path: Path) -> None:
        result = service.check("models:Location", tmp_path / "absent.json")
        assert result.error is not None
        assert result.error.code == "BAD_INPUT"

    def test_repair(self, service: DocumentService, write_json: Callable[..., Path]) -> None:
        result = service.repair(write_json('{"city": "Os'))
        assert result.data["repaired"] == '{"city":"Os"}'
        assert result.data["incomplete"][0] == {"path": "city", "reason": "string_truncated"}
        assert result.data["open"] == [""]

    def test_replay_empty_file(
        self, service: DocumentService, write_json: Callable[..., Path]
    ) -> None:
        result = service.replay("models:Location", write_json(""), chunk_size=4)
        assert not result.ok
        assert len(result.data["steps"]) == 1
        assert result.data["steps"][0]["bytes"] == 0

    def test_replay_invalid_when_complete(
        self, service: DocumentService, write_json: Callable[..., Path]
    ) -> None:
        result = service.replay("models:Location", write_json({"city": "Oslo"}), chunk_size=5)
        assert result.data["complete"] is True
        assert result.error is not None
        assert result.error.message == "validation failed"
        assert result.data["errors"][0]["kind"] == "required"
