"""Tests for discriminated-union resolution in both directions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import pytest
from models import ANIMALS, Animal, Cat, Dog, Zoo

from fieldwise import ErrorKind, RuleRegistry, Validator, discriminator, rule, union


@pytest.fixture
def animals(registry: RuleRegistry) -> Validator[Animal]:
    return Validator(Animal, discriminator=discriminator("species", ANIMALS), registry=registry)


@pytest.fixture
def zoos(registry: RuleRegistry) -> Validator[Zoo]:
    return Validator(Zoo, registry=registry)


class TestTopLevelUnion:
    def test_decode_selects_variant(self, animals: Validator[Animal]) -> None:
        result = animals.decode(b'{"species":"dog","name":"Buddy","breed":"Lab"}')
        assert result.ok
        assert result.value == Dog(species="dog", name="Buddy", breed="Lab")

    def test_encoded_wire_form(self, animals: Validator[Animal]) -> None:
        dog = animals.decode(b'{"species":"dog","name":"Buddy","breed":"Lab"}').value
        encoded = animals.encode(dog)
        assert encoded.ok
        assert json.loads(encoded.data) == {"species": "dog", "name": "Buddy", "breed": "Lab"}

    @pytest.mark.parametrize(("tag", "variant"), sorted(ANIMALS.items()))
    def test_round_trip(self, animals: Validator[Animal], tag: str, variant: type) -> None:
        original = variant(name="Pip")
        encoded = animals.encode(original)
        assert encoded.ok
        assert json.loads(encoded.data)["species"] == tag

        decoded = animals.decode(encoded.data)
        assert decoded.ok
        assert type(decoded.value) is variant
        assert decoded.value == original
        assert decoded.value.species == tag

    def test_invalid_tag(self, animals: Validator[Animal]) -> None:
        result = animals.decode(b'{"species":"fish","name":"Nemo"}')
        (error,) = result.errors
        assert error.kind is ErrorKind.DISCRIMINATOR_INVALID
        assert error.message == (
            "invalid discriminator value 'fish', expected one of: [cat, dog, bird]"
        )
        assert error.path == ("species",)
        assert result.value is None

    def test_missing_tag(self, animals: Validator[Animal]) -> None:
        result = animals.decode(b'{"name":"Nemo"}')
        (error,) = result.errors
        assert error.kind is ErrorKind.DISCRIMINATOR_MISSING
        assert error.message == "discriminator field 'species' not found"

    def test_validate_tag_class_mismatch(self, animals: Validator[Animal]) -> None:
        errors = animals.validate(Dog(species="cat", name="Rex"))
        (error,) = errors
        assert error.kind is ErrorKind.TYPE_MISMATCH
        assert error.message == "type mismatch: expected Cat for discriminator 'cat', got Dog"

    def test_validate_zero_tag(self, animals: Validator[Animal]) -> None:
        errors = animals.validate(Cat(species="", name="Tom"))
        assert [e.kind for e in errors] == [ErrorKind.DISCRIMINATOR_MISSING]

    def test_validate_non_record(self, animals: Validator[Animal]) -> None:
        errors = animals.validate("dog")  # type: ignore[arg-type]
        assert [e.kind for e in errors] == [ErrorKind.TYPE_MISMATCH]


class TestNestedUnions:
    def test_list_of_variants(self, zoos: Validator[Zoo]) -> None:
        doc = {
            "name": "City Zoo",
            "animals": [
                {"species": "cat", "name": "Tom"},
                {"species": "dog", "name": "Rex", "breed": "Mutt"},
            ],
        }
        result = zoos.decode(json.dumps(doc))
        assert result.ok
        assert [type(a) for a in result.value.animals] == [Cat, Dog]

    def test_bad_element_leaves_placeholder(self, zoos: Validator[Zoo]) -> None:
        doc = {
            "animals": [
                {"species": "cat", "name": "Tom"},
                {"species": "fish", "name": "Nemo"},
            ],
        }
        result = zoos.decode(json.dumps(doc))
        (error,) = result.errors
        assert error.kind is ErrorKind.DISCRIMINATOR_INVALID
        assert error.location == "animals[1].species"
        assert result.value.animals[1] is None

    def test_variant_fields_validated(self, zoos: Validator[Zoo]) -> None:
        doc = {"animals": [{"species": "bird"}]}
        (error,) = zoos.decode(json.dumps(doc)).errors
        assert error.kind is ErrorKind.REQUIRED
        assert error.location == "animals[0].name"

    def test_single_and_mapping_positions(self, zoos: Validator[Zoo]) -> None:
        doc = {
            "animals": [{"species": "cat", "name": "Tom"}],
            "star": {"species": "bird", "name": "Polly", "can_talk": True},
            "keepers": {"ana": {"species": "dog", "name": "Rex"}},
        }
        result = zoos.decode(json.dumps(doc))
        assert result.ok
        assert result.value.star.can_talk is True
        assert isinstance(result.value.keepers["ana"], Dog)

    def test_non_object_variant(self, zoos: Validator[Zoo]) -> None:
        doc = {"animals": [{"species": "cat", "name": "Tom"}], "star": "Polly"}
        (error,) = zoos.decode(json.dumps(doc)).errors
        assert error.kind is ErrorKind.DECODE_ERROR
        assert error.message == "expected object, got string"

    def test_validate_checks_every_position(self, zoos: Validator[Zoo]) -> None:
        zoo = Zoo(animals=[Cat(name="Tom"), Dog(species="cat", name="Rex")])
        errors = zoos.validate(zoo)
        (error,) = errors
        assert error.kind is ErrorKind.TYPE_MISMATCH
        assert error.location == "animals[1]"


class TestAnyOf:
    def test_value_outside_union(self, registry: RuleRegistry) -> None:
        @dataclass
        class Box:
            content: Any = None

        registry.register(Box, {"content": rule(union(int, str))})
        validator = Validator(Box, registry=registry)
        assert validator.validate(Box(content="x")) == ()
        (error,) = validator.validate(Box(content=1.5))
        assert error.kind is ErrorKind.CONSTRAINT
        assert error.message == "value of type float is not one of: int, str"

    def test_parameterized_members(self, registry: RuleRegistry) -> None:
        @dataclass
        class Box:
            content: Any = None

        registry.register(Box, {"content": rule(union(list[int], str))})
        validator = Validator(Box, registry=registry)
        assert validator.validate(Box(content=[1, 2])) == ()
        assert validator.validate(Box(content="x")) == ()
        (error,) = validator.validate(Box(content=["a"]))
        assert error.kind is ErrorKind.CONSTRAINT
        assert error.message == "value of type list is not one of: list[int], str"
