"""DiscriminatorSpec — tag field plus the tag → concrete type mapping."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class DiscriminatorSpec:
    """Declares how a polymorphic value picks its concrete record type.

    Mapping values may be given either as the record class or as a
    prototype instance of it; both normalize to the class.  The mapping
    order is preserved and is the order reported in
    ``discriminator_invalid`` messages.
    """

    tag: str
    mapping: Mapping[Any, type]

    def __post_init__(self) -> None:
        if not self.tag:
            msg = "discriminator tag must be a non-empty field name"
            raise ValueError(msg)
        if not self.mapping:
            msg = f"discriminator '{self.tag}' needs at least one variant"
            raise ValueError(msg)
        normalized = {
            key: target if isinstance(target, type) else type(target)
            for key, target in self.mapping.items()
        }
        object.__setattr__(self, "mapping", MappingProxyType(normalized))

    @property
    def tags(self) -> tuple[Any, ...]:
        return tuple(self.mapping)

    @property
    def variants(self) -> tuple[type, ...]:
        return tuple(dict.fromkeys(self.mapping.values()))

    def resolve(self, tag_value: Any) -> type | None:
        """Return the concrete type for *tag_value*, or None if unknown."""
        if not isinstance(tag_value, Hashable):
            return None
        return self.mapping.get(tag_value)

    def describe_tags(self) -> str:
        return "[" + ", ".join(str(t) for t in self.mapping) + "]"


def discriminator(tag: str, mapping: Mapping[Any, Any]) -> DiscriminatorSpec:
    """Build a DiscriminatorSpec for a top-level polymorphic validator.

    Example::

        animals = Validator(
            Animal,
            discriminator=discriminator("species", {"cat": Cat, "dog": Dog}),
        )
    """
    return DiscriminatorSpec(tag=tag, mapping=mapping)
