"""Discriminated-union resolution.

Decode direction: peek the tag in the raw object, pick the concrete
record type from the DiscriminatorSpec, and let the walker fully decode
a freshly allocated instance of it.

Check/encode direction: read the tag back from a concrete instance and
confirm it maps to that instance's actual class.

On the partial path a tag that has not fully arrived (or an absent tag
inside a still-open object) is never guessed at: resolution yields None
and a ``discriminator_incomplete`` entry is deferred instead of an error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from fieldwise.domain.discriminator import DiscriminatorSpec
from fieldwise.domain.partial import IncompleteField
from fieldwise.domain.paths import Path, index_segment
from fieldwise.domain.types import ErrorKind, ShapeKind, TruncationReason
from fieldwise.engine.introspect import Shape, is_record, is_zero
from fieldwise.engine.registry import FieldSpec, RuleRegistry
from fieldwise.engine.walker import WalkContext

logger = logging.getLogger(__name__)


def tag_field(registry: RuleRegistry, record_type: type, tag: str) -> FieldSpec | None:
    """The field of *record_type* that carries wire property *tag*."""
    ruleset = registry.get(record_type)
    found = ruleset.by_wire_name(tag)
    if found is not None:
        return found
    for spec in ruleset.fields:
        if spec.name == tag:
            return spec
    return None


def tag_pending(
    ctx: WalkContext, spec: DiscriminatorSpec, raw: dict[str, Any], wire_path: Path
) -> bool:
    """Whether the tag of the object at *wire_path* may still change."""
    if not ctx.partial:
        return False
    if ctx.pending((*wire_path, spec.tag)):
        return True
    return spec.tag not in raw and ctx.open(wire_path)


def resolve_variant(
    ctx: WalkContext,
    spec: DiscriminatorSpec,
    raw: dict[str, Any],
    path: Path,
    wire_path: Path,
) -> type | None:
    """Concrete type selected by the tag in *raw*, or None after reporting."""
    tag_path = (*path, spec.tag)
    tag_wire = (*wire_path, spec.tag)
    if tag_pending(ctx, spec, raw, wire_path):
        ctx.defer(IncompleteField(path=tag_wire, reason=TruncationReason.DISCRIMINATOR_INCOMPLETE))
        return None
    if spec.tag not in raw:
        ctx.report(
            ErrorKind.DISCRIMINATOR_MISSING,
            f"discriminator field '{spec.tag}' not found",
            tag_path,
            tag_wire,
        )
        return None
    tag_value = raw[spec.tag]
    variant = spec.resolve(tag_value)
    if variant is None:
        ctx.report(
            ErrorKind.DISCRIMINATOR_INVALID,
            f"invalid discriminator value '{tag_value}', expected one of: {spec.describe_tags()}",
            tag_path,
            tag_wire,
        )
        return None
    logger.debug("Resolved %s=%r to %s at %s", spec.tag, tag_value, variant.__qualname__, path)
    return variant


def check_variant(
    ctx: WalkContext,
    spec: DiscriminatorSpec,
    instance: Any,
    path: Path,
    wire_path: Path,
) -> None:
    """Confirm *instance*'s tag maps back to its own concrete class."""
    if not is_record(instance):
        ctx.report(
            ErrorKind.TYPE_MISMATCH,
            f"expected a record for discriminator '{spec.tag}', got {type(instance).__name__}",
            path,
            wire_path,
        )
        return
    actual = type(instance)
    carrier = tag_field(ctx.registry, actual, spec.tag)
    if carrier is None or is_zero(getattr(instance, carrier.name)):
        name = carrier.name if carrier is not None else spec.tag
        ctx.report(
            ErrorKind.DISCRIMINATOR_MISSING,
            f"discriminator field '{spec.tag}' not found",
            (*path, name),
            (*wire_path, spec.tag),
        )
        return
    tag_value = getattr(instance, carrier.name)
    expected = spec.resolve(tag_value)
    if expected is None:
        ctx.report(
            ErrorKind.DISCRIMINATOR_INVALID,
            f"invalid discriminator value '{tag_value}', expected one of: {spec.describe_tags()}",
            (*path, carrier.name),
            (*wire_path, spec.tag),
        )
    elif expected is not actual:
        ctx.report(
            ErrorKind.TYPE_MISMATCH,
            f"type mismatch: expected {expected.__qualname__} for discriminator "
            f"'{tag_value}', got {actual.__qualname__}",
            path,
            wire_path,
        )


def polymorphic_positions(
    value: Any, shape: Shape, path: Path, wire_path: Path
) -> Iterator[tuple[Any, Path, Path]]:
    """Yield ``(instance, path, wire_path)`` for every polymorphic slot in *value*.

    Empty slots (None placeholders) are skipped.
    """
    if value is None:
        return
    match shape.kind:
        case ShapeKind.POLYMORPHIC:
            yield value, path, wire_path
        case ShapeKind.OPTIONAL:
            assert shape.inner is not None
            yield from polymorphic_positions(value, shape.inner, path, wire_path)
        case ShapeKind.SEQUENCE:
            assert shape.inner is not None
            for i, item in enumerate(value):
                segment = index_segment(i)
                yield from polymorphic_positions(
                    item, shape.inner, (*path, segment), (*wire_path, segment)
                )
        case ShapeKind.MAPPING:
            assert shape.inner is not None
            for key, item in value.items():
                segment = str(key)
                yield from polymorphic_positions(
                    item, shape.inner, (*path, segment), (*wire_path, segment)
                )
