"""Tests for the Validator façade: decode, validate, encode, and hooks."""

from __future__ import annotations

import pytest
from models import ANIMALS, Animal, Audit, BadDefault, Cat, Document, Envelope, Location, Person

from fieldwise import (
    ErrorKind,
    RuleDeclarationError,
    RuleRegistry,
    ValidationErrors,
    Validator,
    discriminator,
)
from fieldwise.plugins.hookspecs import hookimpl
from fieldwise.plugins.manager import PluginManager


class _Recorder:
    def __init__(self) -> None:
        self.decodes: list[tuple[str, bool, int]] = []
        self.completions: list[tuple[str, int]] = []

    @hookimpl
    def post_decode(self, type_name: str, ok: bool, error_count: int) -> None:
        self.decodes.append((type_name, ok, error_count))

    @hookimpl
    def post_stream_complete(self, type_name: str, buffer_size: int) -> None:
        self.completions.append((type_name, buffer_size))


class TestConstruction:
    def test_rejects_non_record_target(self, registry: RuleRegistry) -> None:
        with pytest.raises(RuleDeclarationError, match="not a dataclass record type"):
            Validator(int, registry=registry)

    def test_union_target_with_discriminator(self, registry: RuleRegistry) -> None:
        v = Validator(Animal, discriminator=discriminator("species", ANIMALS), registry=registry)
        assert v.type_name == "Animal"
        assert Cat in registry

    def test_rules_property(self, registry: RuleRegistry) -> None:
        assert "name" in Validator(Person, registry=registry).rules


class TestDecode:
    def test_valid_document(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).decode(
            b'{"name":"Ada","email":"ada@example.com","location":{"zip":"12345"}}'
        )
        assert result.ok
        assert result.value == Person(
            name="Ada", email="ada@example.com", location=Location(zip_code="12345")
        )

    def test_value_returned_with_errors(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).decode('{"name":"A","age":-1}')
        assert result.value.name == "A"
        assert {e.location for e in result.errors} == {"name", "age"}

    def test_invalid_json(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).decode(b'{"name":')
        assert result.value is None
        assert result.errors[0].kind is ErrorKind.DECODE_ERROR
        assert result.errors[0].message.startswith("invalid JSON")

    def test_root_must_be_object(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).decode(b"[1, 2]")
        assert result.value is None
        assert result.errors[0].message == "expected object, got array"

    def test_field_decode_error_withholds_value(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).decode(b'{"name":"Ada","age":"old"}')
        assert result.value is None
        assert result.errors_of(ErrorKind.DECODE_ERROR)[0].location == "age"

    def test_raise_for_errors(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).decode(b"{}")
        with pytest.raises(ValidationErrors) as exc_info:
            result.raise_for_errors()
        assert "name: required field" in str(exc_info.value)
        assert exc_info.value.kinds() == {ErrorKind.REQUIRED}

    def test_union_root(self, registry: RuleRegistry) -> None:
        v = Validator(Animal, discriminator=discriminator("species", ANIMALS), registry=registry)
        assert v.decode(b'{"species":"cat","name":"Tom"}').value == Cat(name="Tom")
        missing = v.decode(b'{"name":"Tom"}')
        assert missing.value is None
        assert missing.errors[0].kind is ErrorKind.DISCRIMINATOR_MISSING


class TestValidate:
    def test_applies_defaults_first(self, registry: RuleRegistry) -> None:
        person = Person(name="Ada")
        assert Validator(Person, registry=registry).validate(person) == ()

    def test_wrong_root_type(self, registry: RuleRegistry) -> None:
        errors = Validator(Person, registry=registry).validate(Location())
        assert [e.kind for e in errors] == [ErrorKind.TYPE_MISMATCH]
        assert errors[0].message == "expected Person, got Location"

    def test_apply_defaults_raises_for_bad_default(self, registry: RuleRegistry) -> None:
        with pytest.raises(ValidationErrors):
            Validator(BadDefault, registry=registry).apply_defaults(BadDefault())


class TestEncode:
    def test_flattened_and_excluded_fields(self, registry: RuleRegistry) -> None:
        doc = Document(title="T", audit=Audit(created_by="ada", revision=2), secret="s3cret")
        result = Validator(Document, registry=registry).encode(doc)
        assert result.ok
        assert result.data == b'{"title":"T","created_by":"ada","revision":2}'

    def test_blocks_on_validation_errors(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).encode(Person(name="A"))
        assert result.data is None
        assert result.errors[0].location == "name"

    def test_wrong_type(self, registry: RuleRegistry) -> None:
        result = Validator(Person, registry=registry).encode(Location())
        assert result.errors[0].kind is ErrorKind.TYPE_MISMATCH


class TestLifecycleHooks:
    @pytest.fixture
    def envelopes(self, registry: RuleRegistry) -> Validator[Envelope]:
        return Validator(Envelope, registry=registry)

    def test_before_decode_rewrites_raw(self, envelopes: Validator[Envelope]) -> None:
        result = envelopes.decode(b'{"type":"note","body":"hi"}')
        assert result.ok
        assert result.value.kind == "note"
        assert result.value.validated is True

    def test_before_decode_failure(self, envelopes: Validator[Envelope]) -> None:
        result = envelopes.decode(b'{"kind":"note","explode":true}')
        assert result.value is None
        assert result.errors[0].kind is ErrorKind.DECODE_ERROR
        assert "refusing to decode" in result.errors[0].message

    def test_after_validate_failure(self, envelopes: Validator[Envelope]) -> None:
        result = envelopes.decode(b'{"kind":"forbidden"}')
        assert result.value is not None
        assert result.errors[0].kind is ErrorKind.CONSTRAINT
        assert result.errors[0].message == "after_validate failed: kind is forbidden"

    def test_after_validate_skipped_on_errors(self, envelopes: Validator[Envelope]) -> None:
        result = envelopes.decode(b'{"body":"x"}')
        assert result.value.validated is False

    def test_before_encode_runs(self, envelopes: Validator[Envelope]) -> None:
        result = envelopes.encode(Envelope(kind="note", body="  hi  "))
        assert result.data == b'{"kind":"note","body":"hi"}'

    def test_after_encode_must_return_bytes(self, envelopes: Validator[Envelope]) -> None:
        result = envelopes.encode(Envelope(kind="text", body="x"))
        assert result.data is None
        assert result.errors[0].kind is ErrorKind.INTERNAL
        assert result.errors[0].message == "after_encode must return bytes, got str"


class TestPluginNotifications:
    def test_post_decode(self, registry: RuleRegistry) -> None:
        recorder = _Recorder()
        plugins = PluginManager(registry)
        plugins.register_plugin(recorder)
        v = Validator(Person, registry=registry, plugins=plugins)

        v.decode(b'{"name":"Ada"}')
        v.decode(b"not json")

        assert recorder.decodes == [("Person", True, 0), ("Person", False, 1)]

    def test_post_stream_complete(self, registry: RuleRegistry) -> None:
        recorder = _Recorder()
        plugins = PluginManager(registry)
        plugins.register_plugin(recorder)
        session = Validator(Person, registry=registry, plugins=plugins).stream()

        session.feed(b'{"name":')
        assert recorder.completions == []
        session.feed(b'"Ada"}')
        session.feed(b"\n")

        assert recorder.completions == [("Person", 14)]
