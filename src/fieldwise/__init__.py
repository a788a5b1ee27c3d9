"""fieldwise — field-level validation, discriminated unions, and partial JSON.

Typical use::

    from dataclasses import dataclass
    from fieldwise import FieldRule, Validator, rule, required, min_len

    @dataclass
    class User:
        name: str = ""

        @staticmethod
        def field_name() -> FieldRule:
            return rule(required(), min_len(2))

    result = Validator(User).decode(b'{"name": "Ada"}')
"""

from fieldwise.domain.discriminator import DiscriminatorSpec, discriminator
from fieldwise.domain.errors import RuleDeclarationError, ValidationError, ValidationErrors
from fieldwise.domain.partial import IncompleteField, PartialState
from fieldwise.domain.results import DecodeResult, EncodeResult, PartialResult
from fieldwise.domain.rules import (
    FieldRule,
    const,
    content_encoding,
    content_media_type,
    default,
    deprecated,
    description,
    discriminated_union,
    email,
    example,
    exclusive_maximum,
    exclusive_minimum,
    format_,
    max_items,
    max_len,
    max_properties,
    maximum,
    min_items,
    min_len,
    min_properties,
    minimum,
    multiple_of,
    one_of,
    pattern,
    read_only,
    required,
    rule,
    title,
    union,
    unique_items,
    url,
    validate,
    write_only,
)
from fieldwise.domain.types import ConstraintKey, ErrorKind, TruncationReason
from fieldwise.engine.registry import RuleRegistry, TypeRuleSet, default_registry, get_rules
from fieldwise.partial.repair import RepairResult, repair_json
from fieldwise.partial.stream import StreamSession
from fieldwise.validator import Validator

__version__ = "0.4.0"

__all__ = [
    "ConstraintKey",
    "DecodeResult",
    "DiscriminatorSpec",
    "EncodeResult",
    "ErrorKind",
    "FieldRule",
    "IncompleteField",
    "PartialResult",
    "PartialState",
    "RepairResult",
    "RuleDeclarationError",
    "RuleRegistry",
    "StreamSession",
    "TruncationReason",
    "TypeRuleSet",
    "ValidationError",
    "ValidationErrors",
    "Validator",
    "const",
    "content_encoding",
    "content_media_type",
    "default",
    "default_registry",
    "deprecated",
    "description",
    "discriminated_union",
    "discriminator",
    "email",
    "example",
    "exclusive_maximum",
    "exclusive_minimum",
    "format_",
    "get_rules",
    "max_items",
    "max_len",
    "max_properties",
    "maximum",
    "min_items",
    "min_len",
    "min_properties",
    "minimum",
    "multiple_of",
    "one_of",
    "pattern",
    "read_only",
    "repair_json",
    "required",
    "rule",
    "title",
    "union",
    "unique_items",
    "url",
    "validate",
    "write_only",
]
