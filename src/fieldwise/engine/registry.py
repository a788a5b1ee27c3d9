"""RuleRegistry — per-type rule discovery with a process-wide cache.

Rule sources, highest precedence first:

1. Explicit registration: ``registry.register(User, {"email": rule(...)})``
   or the ``register_rules`` plugin hook.
2. A record-level accessor ``field_<name>`` on the record class.
3. A type-level accessor ``field_<snake_case(TypeName)>`` on the field's
   value type (Optional is looked through).  Lets an enum-like type ship
   one reusable rule that any owning record may still override.

Accessors may be staticmethods, classmethods, plain methods (invoked on
a zero instance), or ``FieldRule`` class attributes.

Lifecycle: a TypeRuleSet is computed once per type and then read many
times.  ``get()`` takes a re-entrant lock only on a cache miss.  While a
type is being built its entry lives in a private in-progress table, so
self- and mutually-referential records resolve to the entry under
construction instead of recursing, and other threads never observe a
half-built set.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import re
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from fieldwise.domain.errors import RuleDeclarationError
from fieldwise.domain.rules import FieldRule
from fieldwise.domain.types import ShapeKind
from fieldwise.engine.introspect import (
    Shape,
    is_record_type,
    new_record,
    record_hints,
    shape_of,
    unwrap_optional,
)

logger = logging.getLogger(__name__)

WIRE_KEY = "wire"
EMBEDDED_KEY = "embedded"
EXCLUDED = "-"


@dataclass(frozen=True)
class FieldSpec:
    """Everything the walker needs to know about one declared field."""

    name: str
    wire_name: str | None
    annotation: Any
    shape: Shape
    rule: FieldRule | None = None
    embedded: bool = False

    @property
    def wire_segment(self) -> str:
        return self.wire_name or self.name


class TypeRuleSet(Mapping[str, FieldRule]):
    """Field name → FieldRule for one record type, plus ordered FieldSpecs.

    Only fields that carry a rule appear as mapping keys; :attr:`fields`
    lists every declared field in declaration order.
    """

    def __init__(self, record_type: type) -> None:
        self.record_type = record_type
        self._rules: dict[str, FieldRule] = {}
        self._fields: tuple[FieldSpec, ...] = ()
        self._by_wire: dict[str, FieldSpec] = {}

    def _populate(self, fields: list[FieldSpec]) -> None:
        self._fields = tuple(fields)
        self._rules = {f.name: f.rule for f in fields if f.rule is not None}
        self._by_wire = {f.wire_name: f for f in fields if f.wire_name is not None}

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return self._fields

    def field(self, name: str) -> FieldSpec:
        for spec in self._fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def by_wire_name(self, wire_name: str) -> FieldSpec | None:
        return self._by_wire.get(wire_name)

    def __getitem__(self, name: str) -> FieldRule:
        return self._rules[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"TypeRuleSet({self.record_type.__qualname__}, rules={list(self._rules)})"


def snake_case(name: str) -> str:
    """``OrderStatus`` → ``order_status``; ``HTTPStatus`` → ``http_status``."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def _zero_instance(owner: type) -> Any:
    if is_record_type(owner):
        return new_record(owner)
    members = getattr(owner, "__members__", None)
    if members:
        return next(iter(members.values()))
    return owner()


def _invoke_accessor(owner: type, accessor_name: str) -> FieldRule | None:
    raw = inspect.getattr_static(owner, accessor_name, None)
    if raw is None:
        return None
    qualified = f"{owner.__qualname__}.{accessor_name}"
    if isinstance(raw, FieldRule):
        return raw
    try:
        if isinstance(raw, (staticmethod, classmethod)):
            result = getattr(owner, accessor_name)()
        elif inspect.isfunction(raw):
            result = raw(_zero_instance(owner))
        else:
            msg = f"{qualified} must be a method or a FieldRule, got {type(raw).__name__}"
            raise RuleDeclarationError(msg)
    except TypeError as exc:
        if isinstance(exc, RuleDeclarationError):
            raise
        msg = f"{qualified} must be callable without arguments: {exc}"
        raise RuleDeclarationError(msg) from exc
    if not isinstance(result, FieldRule):
        msg = f"{qualified} returned {type(result).__name__}, expected FieldRule"
        raise RuleDeclarationError(msg)
    return result


def record_level_rule(record_type: type, field_name: str) -> FieldRule | None:
    return _invoke_accessor(record_type, f"field_{field_name}")


def type_level_rule(annotation: Any) -> FieldRule | None:
    value_type = unwrap_optional(annotation)
    if not isinstance(value_type, type) or value_type.__module__ == "builtins":
        return None
    return _invoke_accessor(value_type, f"field_{snake_case(value_type.__name__)}")


class RuleRegistry:
    """Compute-once cache of TypeRuleSets keyed by record type."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._cache: dict[type, TypeRuleSet] = {}
        self._building: dict[type, TypeRuleSet] = {}
        self._explicit: dict[type, dict[str, FieldRule]] = {}

    def register(self, record_type: type, rules: Mapping[str, FieldRule]) -> None:
        """Attach explicit rules to *record_type*, overriding accessors.

        May be called repeatedly; later registrations win per field.
        Invalidates any cached rule set for *record_type*.
        """
        if not is_record_type(record_type):
            msg = f"{record_type!r} is not a dataclass record type"
            raise RuleDeclarationError(msg)
        if not isinstance(rules, Mapping):
            msg = f"rules for {record_type.__qualname__} must be a mapping of field name to rule"
            raise RuleDeclarationError(msg)
        declared = {f.name for f in dataclasses.fields(record_type)}
        for name, field_rule in rules.items():
            if name not in declared:
                msg = f"{record_type.__qualname__} has no field named {name!r}"
                raise RuleDeclarationError(msg)
            if not isinstance(field_rule, FieldRule):
                msg = f"rule for {record_type.__qualname__}.{name} is not a FieldRule"
                raise RuleDeclarationError(msg)
        with self._lock:
            self._explicit.setdefault(record_type, {}).update(rules)
            self._cache.pop(record_type, None)
        logger.debug("Registered %d explicit rules for %s", len(rules), record_type.__qualname__)

    def get(self, record_type: type) -> TypeRuleSet:
        """Return the TypeRuleSet for *record_type*, building it on first use."""
        cached = self._cache.get(record_type)
        if cached is not None:
            return cached
        with self._lock:
            for table in (self._cache, self._building):
                if record_type in table:
                    return table[record_type]
            ruleset = TypeRuleSet(record_type)
            self._building[record_type] = ruleset
            try:
                nested = self._build(ruleset)
                for child in nested:
                    self.get(child)
            finally:
                del self._building[record_type]
            self._cache[record_type] = ruleset
            return ruleset

    def invalidate(self, record_type: type | None = None) -> None:
        """Drop cached rule sets (all of them when *record_type* is None)."""
        with self._lock:
            if record_type is None:
                self._cache.clear()
            else:
                self._cache.pop(record_type, None)

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._cache

    def _build(self, ruleset: TypeRuleSet) -> list[type]:
        record_type = ruleset.record_type
        if not is_record_type(record_type):
            msg = f"{record_type!r} is not a dataclass record type"
            raise RuleDeclarationError(msg)
        if record_type.__dataclass_params__.frozen:  # type: ignore[attr-defined]
            msg = f"{record_type.__qualname__} is frozen; records must be mutable dataclasses"
            raise RuleDeclarationError(msg)

        hints = record_hints(record_type)
        explicit = self._explicit.get(record_type, {})
        fields: list[FieldSpec] = []
        nested: list[type] = []
        for f in dataclasses.fields(record_type):
            annotation = hints[f.name]
            field_rule = (
                explicit.get(f.name)
                or record_level_rule(record_type, f.name)
                or type_level_rule(annotation)
            )
            shape = shape_of(annotation, field_rule.discriminator if field_rule else None)
            wire = f.metadata.get(WIRE_KEY, f.name)
            embedded = bool(f.metadata.get(EMBEDDED_KEY, False))
            if embedded and shape.kind is not ShapeKind.RECORD:
                msg = f"{record_type.__qualname__}.{f.name} is embedded but not a record"
                raise RuleDeclarationError(msg)
            fields.append(
                FieldSpec(
                    name=f.name,
                    wire_name=None if wire == EXCLUDED else wire,
                    annotation=annotation,
                    shape=shape,
                    rule=field_rule,
                    embedded=embedded,
                )
            )
            nested.extend(shape.record_types())
        ruleset._populate(fields)
        logger.debug(
            "Built rules for %s: %d fields, %d rules",
            record_type.__qualname__,
            len(fields),
            len(ruleset),
        )
        return nested


default_registry = RuleRegistry()
"""Process-wide registry used when a Validator is not given one."""


def get_rules(record_type: type) -> TypeRuleSet:
    return default_registry.get(record_type)
