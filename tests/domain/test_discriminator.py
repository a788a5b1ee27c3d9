"""Tests for DiscriminatorSpec."""

from __future__ import annotations

import pytest
from models import Bird, Cat, Dog

from fieldwise import DiscriminatorSpec, discriminator


class TestDiscriminatorSpec:
    def test_instances_normalize_to_classes(self) -> None:
        spec = discriminator("species", {"cat": Cat(), "dog": Dog})
        assert spec.mapping["cat"] is Cat
        assert spec.mapping["dog"] is Dog

    def test_resolve(self) -> None:
        spec = discriminator("species", {"cat": Cat, "dog": Dog})
        assert spec.resolve("dog") is Dog
        assert spec.resolve("fish") is None

    def test_unhashable_tag_resolves_to_none(self) -> None:
        spec = discriminator("species", {"cat": Cat})
        assert spec.resolve(["cat"]) is None

    def test_describe_tags_keeps_declaration_order(self) -> None:
        spec = discriminator("species", {"cat": Cat, "dog": Dog, "bird": Bird})
        assert spec.describe_tags() == "[cat, dog, bird]"
        assert spec.tags == ("cat", "dog", "bird")

    def test_variants_are_unique(self) -> None:
        spec = discriminator("kind", {"cat": Cat, "kitten": Cat, "dog": Dog})
        assert spec.variants == (Cat, Dog)

    def test_mapping_is_read_only(self) -> None:
        spec = discriminator("species", {"cat": Cat})
        with pytest.raises(TypeError):
            spec.mapping["dog"] = Dog  # type: ignore[index]

    def test_empty_tag_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            DiscriminatorSpec(tag="", mapping={"cat": Cat})

    def test_empty_mapping_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least one variant"):
            discriminator("species", {})
