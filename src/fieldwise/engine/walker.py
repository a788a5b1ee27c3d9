"""Walker — the single recursive pass over a record and its TypeRuleSet.

For each field, in declaration order:

1. pre-descent processors run (Decode), materializing the field from
   its raw JSON and allocating nested records or resolved variants;
2. the walker descends into nested records, optional records, sequence
   elements (``[i]`` segments), mapping values, and polymorphic values,
   carrying the matching raw JSON along;
3. post-descent processors run (Defaults, Validate, UnionCheck) against
   the now fully materialized field value.

Ordering is therefore fixed per field and errors always describe the
final value.  Embedded records are walked in the parent's namespace:
same path, same raw object.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from fieldwise.config.models import EngineConfig
from fieldwise.domain.errors import ValidationError
from fieldwise.domain.partial import IncompleteField, PartialState
from fieldwise.domain.paths import Path, index_segment
from fieldwise.domain.types import ErrorKind, ShapeKind
from fieldwise.engine.introspect import Shape, is_record, json_kind, new_record
from fieldwise.engine.registry import FieldSpec, RuleRegistry

if TYPE_CHECKING:
    from fieldwise.engine.processors import Processor


class _Missing:
    """Marker for "no raw JSON for this position"."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass
class WalkContext:
    """Per-call state shared by every processor.

    Attributes:
        state: Completeness report of the repaired document on the partial
            path; None when decoding a complete document.
        deferred: Incompleteness discovered during the walk itself (a
            polymorphic element whose tag has not arrived yet).
    """

    registry: RuleRegistry
    config: EngineConfig = field(default_factory=EngineConfig)
    errors: list[ValidationError] = field(default_factory=list)
    state: PartialState | None = None
    deferred: list[IncompleteField] = field(default_factory=list)
    active: set[int] = field(default_factory=set)

    def report(self, kind: ErrorKind, message: str, path: Path, wire_path: Path) -> None:
        self.errors.append(
            ValidationError(path=path, message=message, kind=kind, wire_path=wire_path)
        )

    @property
    def partial(self) -> bool:
        return self.state is not None

    def pending(self, wire_path: Path) -> bool:
        """Whether the value at *wire_path* itself was cut off; ancestors excluded."""
        return self.state is not None and self.state.marks(wire_path)

    def open(self, wire_path: Path) -> bool:
        """Whether the container at *wire_path* may still receive members."""
        return self.state is not None and self.state.is_open(wire_path)

    def defer(self, entry: IncompleteField) -> None:
        self.deferred.append(entry)

    def has_errors(self, kind: ErrorKind) -> bool:
        return any(e.kind is kind for e in self.errors)


@dataclass
class FieldContext:
    """One field of one record, as seen by the processors.

    ``awaiting`` is set on the partial path when the owning record may
    still receive members: its object is open, or it is itself absent
    from an owner that is awaiting.
    """

    walk: WalkContext
    owner: Any
    spec: FieldSpec
    path: Path
    wire_path: Path
    raw: Any = MISSING
    decode_failed: bool = False
    unresolved: bool = False
    nested_errors: bool = False
    awaiting: bool = False

    @property
    def value(self) -> Any:
        return getattr(self.owner, self.spec.name)

    def assign(self, value: Any) -> None:
        setattr(self.owner, self.spec.name, value)

    def report(self, kind: ErrorKind, message: str) -> None:
        self.walk.report(kind, message, self.path, self.wire_path)


def lookup_raw(raw: Any, spec: FieldSpec) -> Any:
    """Raw JSON for *spec*, looked up by wire name only."""
    if raw is MISSING or spec.wire_name is None:
        return MISSING
    return raw.get(spec.wire_name, MISSING)


class Walker:
    """Runs an ordered processor pipeline in one traversal."""

    def __init__(self, processors: Sequence[Processor]) -> None:
        self._processors = tuple(processors)
        self._pre = tuple(p for p in self._processors if p.pre_descent)
        self._post = tuple(p for p in self._processors if not p.pre_descent)

    def walk(
        self,
        ctx: WalkContext,
        record: Any,
        path: Path = (),
        wire_path: Path = (),
        raw: Any = MISSING,
        awaiting: bool = False,
    ) -> None:
        """Apply the pipeline to *record* and everything reachable from it.

        *awaiting* tells whether the record holding this one may still
        receive members on the partial path.
        """
        key = id(record)
        if key in ctx.active:
            return
        if len(path) > ctx.config.max_depth:
            ctx.report(
                ErrorKind.INTERNAL,
                f"maximum depth {ctx.config.max_depth} exceeded",
                path,
                wire_path,
            )
            return
        awaiting = ctx.open(wire_path) or (awaiting and raw is MISSING)
        if raw is not MISSING:
            if not isinstance(raw, dict):
                ctx.report(
                    ErrorKind.DECODE_ERROR,
                    f"expected object, got {json_kind(raw)}",
                    path,
                    wire_path,
                )
                return
            for processor in self._processors:
                prepared = processor.prepare_record(ctx, record, raw, path, wire_path)
                if prepared is None:
                    return
                raw = prepared

        ruleset = ctx.registry.get(type(record))
        ctx.active.add(key)
        try:
            for spec in ruleset.fields:
                if spec.embedded:
                    self._walk_embedded(ctx, record, spec, path, wire_path, raw, awaiting)
                    continue
                self._walk_field(
                    FieldContext(
                        walk=ctx,
                        owner=record,
                        spec=spec,
                        path=(*path, spec.name),
                        wire_path=(*wire_path, spec.wire_segment),
                        raw=lookup_raw(raw, spec),
                        awaiting=awaiting,
                    )
                )
        finally:
            ctx.active.discard(key)

    def _walk_embedded(
        self,
        ctx: WalkContext,
        record: Any,
        spec: FieldSpec,
        path: Path,
        wire_path: Path,
        raw: Any,
        awaiting: bool,
    ) -> None:
        child = getattr(record, spec.name)
        if child is None:
            assert spec.shape.record is not None
            child = new_record(spec.shape.record)
            setattr(record, spec.name, child)
        self.walk(ctx, child, path, wire_path, raw, awaiting)

    def _walk_field(self, field_ctx: FieldContext) -> None:
        for processor in self._pre:
            processor.visit(field_ctx)
        if field_ctx.decode_failed:
            return
        ctx = field_ctx.walk
        before = len(ctx.errors)
        self._descend(
            ctx,
            field_ctx.value,
            field_ctx.spec.shape,
            field_ctx.path,
            field_ctx.wire_path,
            field_ctx.raw,
            field_ctx.awaiting,
        )
        field_ctx.nested_errors = len(ctx.errors) > before
        for processor in self._post:
            processor.visit(field_ctx)

    def _descend(
        self,
        ctx: WalkContext,
        value: Any,
        shape: Shape,
        path: Path,
        wire_path: Path,
        raw: Any,
        awaiting: bool,
    ) -> None:
        if value is None or not shape.contains_records:
            return
        if raw is None:
            raw = MISSING
        match shape.kind:
            case ShapeKind.OPTIONAL:
                assert shape.inner is not None
                self._descend(ctx, value, shape.inner, path, wire_path, raw, awaiting)
            case ShapeKind.RECORD | ShapeKind.POLYMORPHIC:
                if is_record(value):
                    self.walk(ctx, value, path, wire_path, raw, awaiting)
            case ShapeKind.SEQUENCE:
                assert shape.inner is not None
                items = raw if isinstance(raw, list) else None
                for i, item in enumerate(value):
                    segment = index_segment(i)
                    item_raw = items[i] if items is not None and i < len(items) else MISSING
                    self._descend(
                        ctx,
                        item,
                        shape.inner,
                        (*path, segment),
                        (*wire_path, segment),
                        item_raw,
                        awaiting,
                    )
            case ShapeKind.MAPPING:
                assert shape.inner is not None
                entries = raw if isinstance(raw, dict) else None
                for key, item in value.items():
                    segment = str(key)
                    item_raw = entries.get(segment, MISSING) if entries is not None else MISSING
                    self._descend(
                        ctx,
                        item,
                        shape.inner,
                        (*path, segment),
                        (*wire_path, segment),
                        item_raw,
                        awaiting,
                    )
