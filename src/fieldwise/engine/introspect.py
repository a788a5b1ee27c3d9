"""Annotation introspection: shapes, zero values, and leaf codecs.

Records are mutable ``@dataclass`` classes.  Everything that is not a
record, a collection of records, or a polymorphic position is a *leaf*
and is decoded/encoded as a whole by a pydantic ``TypeAdapter`` in
strict JSON mode, so ``"5"`` never silently becomes ``5``.
"""

from __future__ import annotations

import dataclasses
import functools
import json
import types
import typing
from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import TypeAdapter

from fieldwise.domain.discriminator import DiscriminatorSpec
from fieldwise.domain.errors import RuleDeclarationError
from fieldwise.domain.types import ShapeKind

_SEQUENCE_ORIGINS = (list, tuple, Sequence, MutableSequence)
_MAPPING_ORIGINS = (dict, Mapping, MutableMapping)
_SCALAR_ZEROS: dict[type, Any] = {str: "", int: 0, float: 0.0, bool: False, bytes: b""}


@dataclass(frozen=True)
class Shape:
    """Structural view of one annotation.

    ``inner`` is set for OPTIONAL, SEQUENCE and MAPPING shapes; ``record``
    for RECORD shapes; ``discriminator`` for POLYMORPHIC shapes.
    """

    kind: ShapeKind
    annotation: Any
    inner: Shape | None = None
    record: type | None = None
    discriminator: DiscriminatorSpec | None = None

    @property
    def contains_records(self) -> bool:
        """Whether the walker has to descend into this shape."""
        if self.kind in (ShapeKind.RECORD, ShapeKind.POLYMORPHIC):
            return True
        if self.inner is not None:
            return self.inner.contains_records
        return False

    @property
    def record_like(self) -> bool:
        """RECORD or POLYMORPHIC, looking through Optional."""
        if self.kind is ShapeKind.OPTIONAL and self.inner is not None:
            return self.inner.record_like
        return self.kind in (ShapeKind.RECORD, ShapeKind.POLYMORPHIC)

    def record_types(self) -> list[type]:
        """Every record type reachable from this shape."""
        if self.kind is ShapeKind.RECORD and self.record is not None:
            return [self.record]
        if self.kind is ShapeKind.POLYMORPHIC and self.discriminator is not None:
            return list(self.discriminator.variants)
        if self.inner is not None:
            return self.inner.record_types()
        return []


def is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def is_record(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _non_none_args(annotation: Any) -> tuple[Any, ...] | None:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return tuple(a for a in typing.get_args(annotation) if a is not type(None))
    return None


def unwrap_optional(annotation: Any) -> Any:
    """Strip one ``X | None`` layer; other annotations are returned as-is."""
    args = _non_none_args(annotation)
    if args is not None and len(args) == 1 and len(typing.get_args(annotation)) == 2:
        return args[0]
    return annotation


def shape_of(annotation: Any, discriminator: DiscriminatorSpec | None = None) -> Shape:
    """Classify *annotation*.

    When *discriminator* is given, the innermost position (after looking
    through Optional, sequences, and mapping values) becomes POLYMORPHIC.
    """
    if annotation is Any or annotation is object:
        if discriminator is not None:
            return Shape(ShapeKind.POLYMORPHIC, annotation, discriminator=discriminator)
        return Shape(ShapeKind.ANY, annotation)

    args = _non_none_args(annotation)
    if args is not None and len(args) < len(typing.get_args(annotation)):
        inner_annotation = args[0] if len(args) == 1 else typing.Union[args]  # noqa: UP007
        return Shape(
            ShapeKind.OPTIONAL, annotation, inner=shape_of(inner_annotation, discriminator)
        )

    origin = typing.get_origin(annotation)
    type_args = typing.get_args(annotation)
    if origin in _SEQUENCE_ORIGINS and type_args:
        if origin is tuple and not (len(type_args) == 2 and type_args[1] is Ellipsis):
            return Shape(ShapeKind.SCALAR, annotation)
        return Shape(ShapeKind.SEQUENCE, annotation, inner=shape_of(type_args[0], discriminator))
    if origin in _MAPPING_ORIGINS and len(type_args) == 2:
        return Shape(ShapeKind.MAPPING, annotation, inner=shape_of(type_args[1], discriminator))

    if discriminator is not None:
        return Shape(ShapeKind.POLYMORPHIC, annotation, discriminator=discriminator)
    if is_record_type(annotation):
        return Shape(ShapeKind.RECORD, annotation, record=annotation)
    return Shape(ShapeKind.SCALAR, annotation)


@functools.cache
def record_hints(record_type: type) -> dict[str, Any]:
    """Resolved field annotations of a dataclass."""
    try:
        return typing.get_type_hints(record_type)
    except NameError as exc:
        msg = f"cannot resolve annotations of {record_type.__qualname__}: {exc}"
        raise RuleDeclarationError(msg) from exc


def zero_value(shape: Shape, _building: frozenset[type] = frozenset()) -> Any:
    """The value a field holds before anything was decoded into it."""
    match shape.kind:
        case ShapeKind.SEQUENCE:
            return () if typing.get_origin(shape.annotation) is tuple else []
        case ShapeKind.MAPPING:
            return {}
        case ShapeKind.RECORD:
            assert shape.record is not None
            if shape.record in _building:
                return None
            return new_record(shape.record, _building)
        case ShapeKind.SCALAR:
            tp = typing.get_origin(shape.annotation) or shape.annotation
            if tp in _SCALAR_ZEROS:
                return _SCALAR_ZEROS[tp]
            if tp in (list, set, frozenset, dict):
                return tp()
            return None
        case _:
            return None


def new_record(record_type: type, _building: frozenset[type] = frozenset()) -> Any:
    """Allocate *record_type* with every undefaulted field at its zero value.

    Fields that declare a dataclass default keep it.
    """
    hints = record_hints(record_type)
    building = _building | {record_type}
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(record_type):
        if not f.init:
            continue
        if f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING:
            continue
        kwargs[f.name] = zero_value(shape_of(hints[f.name]), building)
    return record_type(**kwargs)


def is_zero(value: Any, _seen: frozenset[int] = frozenset()) -> bool:
    """Whether *value* counts as "not provided".

    Explicit zero/empty values and omitted fields are indistinguishable.
    A record is zero when every one of its fields is zero.
    """
    if value is None or value is False:
        return True
    if isinstance(value, Enum):
        return False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if is_record(value):
        if id(value) in _seen:
            return True
        seen = _seen | {id(value)}
        return all(is_zero(getattr(value, f.name), seen) for f in dataclasses.fields(value))
    return False


@functools.cache
def _adapter(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(annotation)


def decode_leaf(annotation: Any, raw: Any) -> Any:
    """Decode a JSON-compatible *raw* value into *annotation*.

    Raises:
        pydantic.ValidationError: *raw* is not a valid *annotation*.
    """
    if annotation is Any:
        return raw
    return _adapter(annotation).validate_json(json.dumps(raw), strict=True)


def encode_leaf(annotation: Any, value: Any) -> Any:
    """Convert a leaf value to its JSON-compatible form."""
    if value is None or type(value) in (str, int, float, bool):
        return value
    if annotation is Any:
        return _adapter(type(value)).dump_python(value, mode="json")
    return _adapter(annotation).dump_python(value, mode="json")


def conforms(annotation: Any, value: Any) -> bool:
    """Strict instance check of *value* against *annotation*."""
    if annotation is Any:
        return True
    try:
        _adapter(annotation).validate_python(value, strict=True)
    except (ValueError, TypeError):
        return False
    return True


def type_name(annotation: Any) -> str:
    return getattr(annotation, "__qualname__", None) or repr(annotation)


def json_kind(raw: Any) -> str:
    """JSON type name of an already-parsed value, for error messages."""
    if raw is None:
        return "null"
    if isinstance(raw, bool):
        return "boolean"
    if isinstance(raw, (int, float)):
        return "number"
    if isinstance(raw, str):
        return "string"
    if isinstance(raw, list):
        return "array"
    return "object"
