"""FieldRule and the option builders used to declare it.

A rule is assembled from options once, when its record type is first
registered, and is immutable afterwards::

    @dataclass
    class User:
        email: str = ""
        age: int = 0

        @staticmethod
        def field_email() -> FieldRule:
            return rule(required(), email(), description("Login address"))

        @staticmethod
        def field_age() -> FieldRule:
            return rule(minimum(0), maximum(150))

Validators are erased to ``Callable[[Any], None]`` here and signal a
failure by raising ``ValueError`` or ``TypeError``.  They only ever see
non-zero values; zero values are handled by the required/default logic.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fieldwise.domain.discriminator import DiscriminatorSpec
from fieldwise.domain.types import ConstraintKey

FieldValidator = Callable[[Any], None]

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
URL_PATTERN = r"^https?://[^\s/$.?#].[^\s]*$"


@dataclass(frozen=True)
class FieldRule:
    """Required flag, validators, and schema metadata for one field."""

    required: bool = False
    validators: tuple[FieldValidator, ...] = ()
    constraints: Mapping[ConstraintKey, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def has_default(self) -> bool:
        return ConstraintKey.DEFAULT in self.constraints

    @property
    def default(self) -> Any:
        return self.constraints.get(ConstraintKey.DEFAULT)

    @property
    def discriminator(self) -> DiscriminatorSpec | None:
        return self.constraints.get(ConstraintKey.DISCRIMINATOR)

    @property
    def any_of(self) -> tuple[Any, ...]:
        return self.constraints.get(ConstraintKey.ANY_OF, ())

    def get(self, key: ConstraintKey, default: Any = None) -> Any:
        return self.constraints.get(key, default)


class RuleBuilder:
    """Mutable accumulator that options write into before freezing."""

    def __init__(self) -> None:
        self.required = False
        self.validators: list[FieldValidator] = []
        self.constraints: dict[ConstraintKey, Any] = {}

    def constrain(self, key: ConstraintKey, value: Any) -> None:
        self.constraints[key] = value

    def check(self, fn: FieldValidator) -> None:
        self.validators.append(fn)

    def build(self) -> FieldRule:
        return FieldRule(
            required=self.required,
            validators=tuple(self.validators),
            constraints=MappingProxyType(dict(self.constraints)),
        )


Option = Callable[[RuleBuilder], None]


def rule(*options: Option) -> FieldRule:
    """Assemble a FieldRule from *options*, applied in order."""
    builder = RuleBuilder()
    for option in options:
        option(builder)
    return builder.build()


def _metadata(key: ConstraintKey, value: Any) -> Option:
    def apply(b: RuleBuilder) -> None:
        b.constrain(key, value)

    return apply


# --- Presence ---


def required() -> Option:
    def apply(b: RuleBuilder) -> None:
        b.required = True

    return apply


def default(value: Any) -> Option:
    """Value assigned when the field is still zero after decoding."""
    return _metadata(ConstraintKey.DEFAULT, value)


# --- Schema metadata (no validation effect) ---


def description(text: str) -> Option:
    return _metadata(ConstraintKey.DESCRIPTION, text)


def title(text: str) -> Option:
    return _metadata(ConstraintKey.TITLE, text)


def example(value: Any) -> Option:
    return _metadata(ConstraintKey.EXAMPLE, value)


def format_(name: str) -> Option:
    return _metadata(ConstraintKey.FORMAT, name)


def read_only() -> Option:
    return _metadata(ConstraintKey.READ_ONLY, True)


def write_only() -> Option:
    return _metadata(ConstraintKey.WRITE_ONLY, True)


def deprecated() -> Option:
    return _metadata(ConstraintKey.DEPRECATED, True)


def content_encoding(name: str) -> Option:
    return _metadata(ConstraintKey.CONTENT_ENCODING, name)


def content_media_type(name: str) -> Option:
    return _metadata(ConstraintKey.CONTENT_MEDIA_TYPE, name)


# --- Numeric bounds ---


def minimum(bound: float) -> Option:
    def check(value: Any) -> None:
        if value < bound:
            raise ValueError(f"value must be >= {bound}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MINIMUM, bound)
        b.check(check)

    return apply


def maximum(bound: float) -> Option:
    def check(value: Any) -> None:
        if value > bound:
            raise ValueError(f"value must be <= {bound}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MAXIMUM, bound)
        b.check(check)

    return apply


def exclusive_minimum(bound: float) -> Option:
    def check(value: Any) -> None:
        if value <= bound:
            raise ValueError(f"value must be > {bound}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.EXCLUSIVE_MINIMUM, bound)
        b.check(check)

    return apply


def exclusive_maximum(bound: float) -> Option:
    def check(value: Any) -> None:
        if value >= bound:
            raise ValueError(f"value must be < {bound}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.EXCLUSIVE_MAXIMUM, bound)
        b.check(check)

    return apply


def multiple_of(divisor: float) -> Option:
    if divisor == 0:
        msg = "multiple_of divisor must be non-zero"
        raise ValueError(msg)

    def check(value: Any) -> None:
        if isinstance(value, int) and isinstance(divisor, int):
            remainder: float = value % divisor
        else:
            remainder = math.remainder(value, divisor)
        if not math.isclose(remainder, 0.0, abs_tol=1e-9):
            raise ValueError(f"value must be a multiple of {divisor}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MULTIPLE_OF, divisor)
        b.check(check)

    return apply


# --- Strings ---


def min_len(length: int) -> Option:
    def check(value: Any) -> None:
        if len(value) < length:
            raise ValueError(f"length must be >= {length}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MIN_LENGTH, length)
        b.check(check)

    return apply


def max_len(length: int) -> Option:
    def check(value: Any) -> None:
        if len(value) > length:
            raise ValueError(f"length must be <= {length}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MAX_LENGTH, length)
        b.check(check)

    return apply


def pattern(regex: str) -> Option:
    """Value must contain a match for *regex* (``re.search`` semantics)."""
    compiled = re.compile(regex)

    def check(value: Any) -> None:
        if not compiled.search(value):
            raise ValueError(f"value does not match pattern {regex}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.PATTERN, regex)
        b.check(check)

    return apply


def _formatted(regex: str, format_name: str, message: str) -> Option:
    compiled = re.compile(regex)

    def check(value: Any) -> None:
        if not compiled.search(value):
            raise ValueError(message)

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.PATTERN, regex)
        b.constrain(ConstraintKey.FORMAT, format_name)
        b.check(check)

    return apply


def email() -> Option:
    return _formatted(EMAIL_PATTERN, "email", "invalid email format")


def url() -> Option:
    return _formatted(URL_PATTERN, "uri", "invalid URL format")


# --- Enumerations ---


def one_of(*allowed: Any) -> Option:
    values = list(allowed)

    def check(value: Any) -> None:
        if value not in values:
            raise ValueError(f"value must be one of {values}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.ENUM, tuple(values))
        b.check(check)

    return apply


def const(expected: Any) -> Option:
    def check(value: Any) -> None:
        if value != expected:
            raise ValueError(f"value must be {expected}")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.CONST, expected)
        b.check(check)

    return apply


# --- Collections ---


def min_items(count: int) -> Option:
    def check(value: Any) -> None:
        if len(value) < count:
            raise ValueError(f"must have at least {count} items")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MIN_ITEMS, count)
        b.check(check)

    return apply


def max_items(count: int) -> Option:
    def check(value: Any) -> None:
        if len(value) > count:
            raise ValueError(f"must have at most {count} items")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MAX_ITEMS, count)
        b.check(check)

    return apply


def unique_items() -> Option:
    def check(value: Any) -> None:
        seen: list[Any] = []
        for item in value:
            if item in seen:
                raise ValueError(f"duplicate item found: {item}")
            seen.append(item)

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.UNIQUE_ITEMS, True)
        b.check(check)

    return apply


def min_properties(count: int) -> Option:
    def check(value: Any) -> None:
        if len(value) < count:
            raise ValueError(f"must have at least {count} properties")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MIN_PROPERTIES, count)
        b.check(check)

    return apply


def max_properties(count: int) -> Option:
    def check(value: Any) -> None:
        if len(value) > count:
            raise ValueError(f"must have at most {count} properties")

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.MAX_PROPERTIES, count)
        b.check(check)

    return apply


# --- Polymorphism ---


def union(*types: Any) -> Option:
    """Value must match one of *types* (JSON-Schema ``anyOf``).

    Plain classes are instance checks; parameterized members such as
    ``list[int]`` are validated strictly.
    """

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.ANY_OF, tuple(types))

    return apply


def discriminated_union(tag: str, mapping: Mapping[Any, Any]) -> Option:
    """Resolve the field's concrete record type from the *tag* property.

    Applies to the field itself, to elements of a list field, and to
    values of a mapping field.
    """
    spec = DiscriminatorSpec(tag=tag, mapping=mapping)

    def apply(b: RuleBuilder) -> None:
        b.constrain(ConstraintKey.DISCRIMINATOR, spec)

    return apply


# --- Custom ---


def validate(fn: FieldValidator) -> Option:
    """Attach a custom validator; it raises ValueError/TypeError to reject."""

    def apply(b: RuleBuilder) -> None:
        b.check(fn)

    return apply
