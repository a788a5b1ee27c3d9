"""Enumerations shared across the engine, partial decoder, and CLI."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification of a single validation failure."""

    REQUIRED = "required"
    CONSTRAINT = "constraint"
    DISCRIMINATOR_MISSING = "discriminator_missing"
    DISCRIMINATOR_INVALID = "discriminator_invalid"
    TYPE_MISMATCH = "type_mismatch"
    DECODE_ERROR = "decode_error"
    INTERNAL = "internal"


class TruncationReason(StrEnum):
    """Why a path of a partial document is not yet trustworthy."""

    STRING_TRUNCATED = "string_truncated"
    ARRAY_TRUNCATED = "array_truncated"
    OBJECT_TRUNCATED = "object_truncated"
    KEY_TRUNCATED = "key_truncated"
    VALUE_MISSING = "value_missing"
    DISCRIMINATOR_INCOMPLETE = "discriminator_incomplete"


class ConstraintKey(StrEnum):
    """Metadata keys recorded on a FieldRule.

    Values follow JSON-Schema keyword spelling so a schema generator can
    consume ``FieldRule.constraints`` without translation.
    """

    DESCRIPTION = "description"
    TITLE = "title"
    EXAMPLE = "example"
    FORMAT = "format"
    READ_ONLY = "readOnly"
    WRITE_ONLY = "writeOnly"
    DEPRECATED = "deprecated"
    DEFAULT = "default"
    CONST = "const"
    MINIMUM = "minimum"
    MAXIMUM = "maximum"
    EXCLUSIVE_MINIMUM = "exclusiveMinimum"
    EXCLUSIVE_MAXIMUM = "exclusiveMaximum"
    MULTIPLE_OF = "multipleOf"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    CONTENT_ENCODING = "contentEncoding"
    CONTENT_MEDIA_TYPE = "contentMediaType"
    MIN_ITEMS = "minItems"
    MAX_ITEMS = "maxItems"
    UNIQUE_ITEMS = "uniqueItems"
    MIN_PROPERTIES = "minProperties"
    MAX_PROPERTIES = "maxProperties"
    ENUM = "enum"
    ANY_OF = "anyOf"
    DISCRIMINATOR = "discriminator"


class ShapeKind(StrEnum):
    """Structural category of a field annotation, as seen by the walker."""

    SCALAR = "scalar"
    RECORD = "record"
    OPTIONAL = "optional"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    POLYMORPHIC = "polymorphic"
    ANY = "any"
