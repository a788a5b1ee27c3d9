"""Record → JSON-compatible structure, using wire names.

Embedded records are flattened into their parent object and fields
whose wire name is ``"-"`` are omitted.  Polymorphic values serialize
through their actual concrete class.
"""

from __future__ import annotations

from typing import Any

from fieldwise.domain.types import ShapeKind
from fieldwise.engine.introspect import Shape, encode_leaf, is_record
from fieldwise.engine.registry import RuleRegistry


class SerializationError(ValueError):
    """A value could not be converted to JSON."""


class Serializer:
    """Converts records to plain dict/list/scalar trees."""

    def __init__(self, registry: RuleRegistry) -> None:
        self._registry = registry

    def record(self, instance: Any, _active: frozenset[int] = frozenset()) -> dict[str, Any]:
        if id(instance) in _active:
            msg = f"cycle detected at {type(instance).__qualname__}"
            raise SerializationError(msg)
        active = _active | {id(instance)}
        out: dict[str, Any] = {}
        for spec in self._registry.get(type(instance)).fields:
            value = getattr(instance, spec.name)
            if spec.embedded:
                if value is not None:
                    out.update(self.record(value, active))
                continue
            if spec.wire_name is None:
                continue
            out[spec.wire_name] = self.value(value, spec.shape, active)
        return out

    def value(self, value: Any, shape: Shape, _active: frozenset[int] = frozenset()) -> Any:
        if value is None:
            return None
        if is_record(value):
            return self.record(value, _active)
        if not shape.contains_records:
            try:
                return encode_leaf(shape.annotation, value)
            except (ValueError, TypeError) as exc:
                raise SerializationError(str(exc)) from exc
        inner = shape.inner if shape.inner is not None else shape
        match shape.kind:
            case ShapeKind.OPTIONAL:
                return self.value(value, inner, _active)
            case ShapeKind.SEQUENCE:
                return [self.value(item, inner, _active) for item in value]
            case ShapeKind.MAPPING:
                return {str(k): self.value(item, inner, _active) for k, item in value.items()}
            case _:
                msg = f"cannot serialize {type(value).__qualname__} as {shape.annotation!r}"
                raise SerializationError(msg)
