"""The processor pipeline: Decode, Defaults, Validate, UnionCheck.

Each processor sees one :class:`FieldContext` at a time.  ``Decode`` is
the only pre-descent processor; the rest run after the walker has
descended into the field's nested records.
"""

from __future__ import annotations

import copy
from typing import Any, ClassVar, get_origin

from pydantic import ValidationError as PydanticValidationError

from fieldwise.domain.paths import Path, index_segment, join_path
from fieldwise.domain.types import ErrorKind, ShapeKind
from fieldwise.engine.introspect import (
    Shape,
    conforms,
    decode_leaf,
    is_zero,
    json_kind,
    new_record,
    type_name,
    zero_value,
)
from fieldwise.engine.union import check_variant, polymorphic_positions, resolve_variant
from fieldwise.engine.walker import MISSING, FieldContext, WalkContext

_FAILED: Any = object()


class Processor:
    """Base class for one stage of the pipeline."""

    name: ClassVar[str] = "processor"
    pre_descent: ClassVar[bool] = False

    def prepare_record(
        self,
        ctx: WalkContext,
        record: Any,
        raw: dict[str, Any],
        path: Path,
        wire_path: Path,
    ) -> dict[str, Any] | None:
        """Inspect a record's raw object before its fields; None aborts it."""
        return raw

    def visit(self, field: FieldContext) -> None:
        raise NotImplementedError


def describe_pydantic_error(exc: PydanticValidationError) -> str:
    parts: list[str] = []
    for detail in exc.errors():
        segments = [index_segment(s) if isinstance(s, int) else str(s) for s in detail["loc"]]
        location = join_path(segments)
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


class Decode(Processor):
    """Merge raw JSON into the field, allocating nested records.

    A malformed value yields one ``decode_error`` for the field and
    nothing beneath it is decoded.  Other fields are unaffected.
    """

    name = "decode"
    pre_descent = True

    def prepare_record(
        self,
        ctx: WalkContext,
        record: Any,
        raw: dict[str, Any],
        path: Path,
        wire_path: Path,
    ) -> dict[str, Any] | None:
        hook = getattr(record, "before_decode", None)
        if not callable(hook):
            return raw
        try:
            prepared = hook(dict(raw))
        except Exception as exc:
            ctx.report(ErrorKind.DECODE_ERROR, f"before_decode failed: {exc}", path, wire_path)
            return None
        if not isinstance(prepared, dict):
            ctx.report(
                ErrorKind.DECODE_ERROR,
                f"before_decode must return a dict, got {type(prepared).__name__}",
                path,
                wire_path,
            )
            return None
        return prepared

    def visit(self, field: FieldContext) -> None:
        if field.raw is MISSING:
            return
        value = self._materialize(field, field.spec.shape, field.raw, field.path, field.wire_path)
        if value is _FAILED:
            field.decode_failed = True
            return
        field.assign(value)

    def _fail(self, ctx: WalkContext, message: str, path: Path, wire_path: Path) -> Any:
        ctx.report(ErrorKind.DECODE_ERROR, message, path, wire_path)
        return _FAILED

    def _materialize(
        self, field: FieldContext, shape: Shape, raw: Any, path: Path, wire_path: Path
    ) -> Any:
        ctx = field.walk
        if raw is None:
            if shape.kind in (ShapeKind.OPTIONAL, ShapeKind.ANY, ShapeKind.POLYMORPHIC):
                return None
            return zero_value(shape)

        match shape.kind:
            case ShapeKind.OPTIONAL:
                assert shape.inner is not None
                return self._materialize(field, shape.inner, raw, path, wire_path)
            case ShapeKind.ANY:
                return raw
            case ShapeKind.RECORD:
                assert shape.record is not None
                if not isinstance(raw, dict):
                    return self._fail(
                        ctx,
                        f"expected object for {type_name(shape.record)}, got {json_kind(raw)}",
                        path,
                        wire_path,
                    )
                return new_record(shape.record)
            case ShapeKind.POLYMORPHIC:
                assert shape.discriminator is not None
                if not isinstance(raw, dict):
                    msg = f"expected object, got {json_kind(raw)}"
                    return self._fail(ctx, msg, path, wire_path)
                variant = resolve_variant(ctx, shape.discriminator, raw, path, wire_path)
                if variant is None:
                    field.unresolved = True
                    return None
                return new_record(variant)
            case ShapeKind.SEQUENCE if shape.contains_records:
                assert shape.inner is not None
                if not isinstance(raw, list):
                    return self._fail(ctx, f"expected array, got {json_kind(raw)}", path, wire_path)
                items = [
                    self._materialize(
                        field,
                        shape.inner,
                        item,
                        (*path, index_segment(i)),
                        (*wire_path, index_segment(i)),
                    )
                    for i, item in enumerate(raw)
                ]
                if any(item is _FAILED for item in items):
                    return _FAILED
                return tuple(items) if isinstance(zero_value(shape), tuple) else items
            case ShapeKind.MAPPING if shape.contains_records:
                assert shape.inner is not None
                if not isinstance(raw, dict):
                    msg = f"expected object, got {json_kind(raw)}"
                    return self._fail(ctx, msg, path, wire_path)
                entries = {
                    key: self._materialize(
                        field, shape.inner, item, (*path, key), (*wire_path, key)
                    )
                    for key, item in raw.items()
                }
                if any(item is _FAILED for item in entries.values()):
                    return _FAILED
                return entries
            case _:
                try:
                    return decode_leaf(shape.annotation, raw)
                except PydanticValidationError as exc:
                    return self._fail(ctx, describe_pydantic_error(exc), path, wire_path)


class Defaults(Processor):
    """Assign declared defaults to fields that are still zero.

    Idempotent: a defaulted field is no longer zero, so a second run is a
    no-op.  A default whose type does not fit the field is an
    ``internal`` error and is not assigned.
    """

    name = "defaults"

    def visit(self, field: FieldContext) -> None:
        rule = field.spec.rule
        if rule is None or not rule.has_default or not is_zero(field.value):
            return
        fallback = rule.default
        if not conforms(field.spec.annotation, fallback):
            field.report(
                ErrorKind.INTERNAL,
                f"default value {fallback!r} does not match field type "
                f"{type_name(field.spec.annotation)}",
            )
            return
        field.assign(copy.deepcopy(fallback))


class Validate(Processor):
    """Required checks and rule validators."""

    name = "validate"

    def visit(self, field: FieldContext) -> None:
        rule = field.spec.rule
        if rule is None:
            return
        value = field.value
        if is_zero(value):
            if not rule.required or rule.has_default or field.unresolved:
                return
            # Absent from a record that is still arriving.
            if field.awaiting and field.raw is MISSING:
                return
            # Nested causes already surfaced for record-shaped fields.
            if field.spec.shape.record_like and field.nested_errors:
                return
            field.report(ErrorKind.REQUIRED, "required field")
            return
        for check in rule.validators:
            try:
                check(value)
            except (ValueError, TypeError) as exc:
                field.report(ErrorKind.CONSTRAINT, str(exc))


class UnionCheck(Processor):
    """Tag/type agreement for discriminated fields; ``anyOf`` membership."""

    name = "union_check"

    def visit(self, field: FieldContext) -> None:
        rule = field.spec.rule
        if rule is None:
            return
        spec = rule.discriminator
        if spec is not None:
            for instance, path, wire_path in polymorphic_positions(
                field.value, field.spec.shape, field.path, field.wire_path
            ):
                check_variant(field.walk, spec, instance, path, wire_path)
        allowed = rule.any_of
        value = field.value
        if allowed and not is_zero(value) and not any(_is_member(value, t) for t in allowed):
            names = ", ".join(_member_name(t) for t in allowed)
            field.report(
                ErrorKind.CONSTRAINT,
                f"value of type {type(value).__qualname__} is not one of: {names}",
            )


def _is_member(value: Any, member: Any) -> bool:
    """Class members are instance checks; parameterized ones validate strictly."""
    if isinstance(member, type) and get_origin(member) is None:
        return isinstance(value, member)
    return conforms(member, value)


def _member_name(member: Any) -> str:
    return type_name(member) if get_origin(member) is None else repr(member)


def full_pipeline() -> tuple[Processor, ...]:
    return (Decode(), Defaults(), Validate(), UnionCheck())


def check_pipeline() -> tuple[Processor, ...]:
    return (Defaults(), Validate(), UnionCheck())


def defaults_pipeline() -> tuple[Processor, ...]:
    return (Defaults(),)
