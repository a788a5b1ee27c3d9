"""Validator — the public entry point tying registry, walker, and repairer together.

A Validator is bound to one target record type, or to a top-level
discriminated union over several record types, and is safe to share
across threads: every call builds its own :class:`WalkContext`.

Lifecycle hooks are optional methods on the record instance:

* ``before_decode(raw: dict) -> dict`` — per record, before its fields
  are interpreted; a failure is a ``decode_error``.
* ``after_validate()`` — once on the root, only after full success; a
  failure is a ``constraint`` error.
* ``before_encode()`` / ``after_encode(data: bytes) -> bytes`` — around
  the encode direction; a failure is an ``internal`` error.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Generic, TypeVar

from fieldwise.config.models import EngineConfig
from fieldwise.domain.discriminator import DiscriminatorSpec
from fieldwise.domain.errors import RuleDeclarationError, ValidationError, ValidationErrors
from fieldwise.domain.partial import PartialState
from fieldwise.domain.results import DecodeResult, EncodeResult, PartialResult
from fieldwise.domain.types import ErrorKind
from fieldwise.engine.introspect import is_record, is_record_type, json_kind, new_record
from fieldwise.engine.processors import check_pipeline, defaults_pipeline, full_pipeline
from fieldwise.engine.registry import RuleRegistry, TypeRuleSet, default_registry
from fieldwise.engine.serialize import SerializationError, Serializer
from fieldwise.engine.union import check_variant, resolve_variant
from fieldwise.engine.walker import Walker, WalkContext
from fieldwise.partial.repair import repair_json
from fieldwise.partial.stream import CompletionCallback, StreamSession
from fieldwise.plugins.manager import PluginManager

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Validator(Generic[T]):
    """Decode, validate, and encode one record type.

    Args:
        target: The record type, or, with *discriminator*, the nominal
            type used only for naming the polymorphic family.
        discriminator: Makes the root polymorphic; see ``discriminator()``.
        registry: Rule cache to use; defaults to the process-wide one.
        config: Engine settings.
        plugins: Receives ``post_decode`` / ``post_stream_complete``.

    Raises:
        RuleDeclarationError: A reachable record type declares its rules
            incorrectly.
    """

    def __init__(
        self,
        target: type[T],
        *,
        discriminator: DiscriminatorSpec | None = None,
        registry: RuleRegistry | None = None,
        config: EngineConfig | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        if discriminator is None and not is_record_type(target):
            msg = f"{target!r} is not a dataclass record type; pass discriminator= for unions"
            raise RuleDeclarationError(msg)
        self.target = target
        self.discriminator = discriminator
        self._registry = registry if registry is not None else default_registry
        self._config = config or EngineConfig()
        self._plugins = plugins
        self._decoder = Walker(full_pipeline())
        self._checker = Walker(check_pipeline())
        self._defaulter = Walker(defaults_pipeline())
        self._serializer = Serializer(self._registry)
        for record_type in self._root_types():
            self._registry.get(record_type)

    @property
    def type_name(self) -> str:
        return getattr(self.target, "__qualname__", repr(self.target))

    @property
    def rules(self) -> TypeRuleSet:
        """Rule set of the target record type."""
        return self._registry.get(self.target)

    def _root_types(self) -> tuple[type, ...]:
        if self.discriminator is not None:
            return self.discriminator.variants
        return (self.target,)

    def _context(self, state: PartialState | None = None) -> WalkContext:
        return WalkContext(registry=self._registry, config=self._config, state=state)

    # --- validation ---

    def validate(self, obj: T) -> tuple[ValidationError, ...]:
        """Apply defaults to *obj* in place, then validate it.

        Returns every independent violation; an empty tuple means valid.
        """
        ctx = self._context()
        self._check_root(ctx, obj)
        if is_record(obj):
            self._checker.walk(ctx, obj)
        self._after_validate(ctx, obj)
        return tuple(ctx.errors)

    def apply_defaults(self, obj: T) -> T:
        """Fill zero fields that declare a default. Idempotent.

        Raises:
            ValidationErrors: A declared default does not fit its field.
        """
        ctx = self._context()
        self._defaulter.walk(ctx, obj)
        if ctx.errors:
            raise ValidationErrors(ctx.errors)
        return obj

    def _check_root(self, ctx: WalkContext, obj: Any) -> None:
        if self.discriminator is not None:
            check_variant(ctx, self.discriminator, obj, (), ())
        elif not isinstance(obj, self.target):
            ctx.report(
                ErrorKind.TYPE_MISMATCH,
                f"expected {self.type_name}, got {type(obj).__qualname__}",
                (),
                (),
            )

    def _after_validate(self, ctx: WalkContext, obj: Any) -> None:
        if ctx.errors:
            return
        self._run_hook(ctx, obj, "after_validate", ErrorKind.CONSTRAINT)

    @staticmethod
    def _run_hook(ctx: WalkContext, obj: Any, name: str, kind: ErrorKind, *args: Any) -> Any:
        hook = getattr(obj, name, None)
        if not callable(hook):
            return args[0] if args else None
        try:
            return hook(*args)
        except Exception as exc:
            ctx.report(kind, f"{name} failed: {exc}", (), ())
            return None

    # --- decode ---

    def decode(self, data: bytes | str) -> DecodeResult:
        """Decode a complete JSON document into a validated value.

        The value is returned alongside validation errors; it is withheld
        only when decoding itself failed.
        """
        try:
            raw = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            error = ValidationError(message=f"invalid JSON: {exc}", kind=ErrorKind.DECODE_ERROR)
            self._notify_decode(ok=False, error_count=1)
            return DecodeResult(errors=(error,))

        ctx = self._context()
        value = self._decode_into(ctx, raw)
        if ctx.has_errors(ErrorKind.DECODE_ERROR):
            value = None
        elif value is not None:
            self._after_validate(ctx, value)
        errors = tuple(ctx.errors)
        logger.debug("Decoded %s with %d errors", self.type_name, len(errors))
        self._notify_decode(ok=not errors, error_count=len(errors))
        return DecodeResult(value=value, errors=errors)

    def _decode_into(self, ctx: WalkContext, raw: Any) -> Any:
        if not isinstance(raw, dict):
            ctx.report(ErrorKind.DECODE_ERROR, f"expected object, got {json_kind(raw)}", (), ())
            return None
        if self.discriminator is not None:
            variant = resolve_variant(ctx, self.discriminator, raw, (), ())
            if variant is None:
                return None
        else:
            variant = self.target
        value = new_record(variant)
        self._decoder.walk(ctx, value, raw=raw)
        return value

    # --- partial decode ---

    def decode_partial(self, data: bytes | str) -> PartialResult:
        """Decode a possibly-truncated document.

        Errors under incomplete paths are filtered out here and only here.
        When a discriminator has not fully arrived, no concrete type is
        guessed: the value is None and the state leads with a
        ``discriminator_incomplete`` entry.
        """
        try:
            repaired = repair_json(data)
        except UnicodeDecodeError as exc:
            state = PartialState(open_paths=((),))
            error = ValidationError(message=f"invalid UTF-8: {exc}", kind=ErrorKind.DECODE_ERROR)
            return PartialResult(state=state, errors=(error,))

        state = repaired.state
        try:
            raw = json.loads(repaired.text, strict=self._config.strict_strings)
        except json.JSONDecodeError as exc:
            error = ValidationError(
                message=f"invalid JSON after repair: {exc}", kind=ErrorKind.DECODE_ERROR
            )
            return PartialResult(state=state, errors=(error,), repaired=repaired.text)

        if raw is None and state.is_open(()):
            raw = {}
        ctx = self._context(state)
        value = self._decode_into(ctx, raw)
        if ctx.deferred:
            state = state.with_prefix(ctx.deferred)
        errors = tuple(e for e in ctx.errors if not state.covers(e.wire_path))
        if value is not None and state.is_complete and not errors:
            self._after_validate(ctx, value)
            errors = tuple(ctx.errors)
        return PartialResult(value=value, state=state, errors=errors, repaired=repaired.text)

    def stream(self, on_complete: CompletionCallback | None = None) -> StreamSession:
        """Open a session that re-decodes its buffer on every chunk."""
        return StreamSession(self, on_complete)

    # --- encode ---

    def encode(self, obj: T) -> EncodeResult:
        """Check, default, validate, and serialize *obj* with wire names."""
        ctx = self._context()
        self._check_root(ctx, obj)
        if ctx.errors:
            return EncodeResult(errors=tuple(ctx.errors))
        self._run_hook(ctx, obj, "before_encode", ErrorKind.INTERNAL)
        if ctx.errors:
            return EncodeResult(errors=tuple(ctx.errors))
        self._checker.walk(ctx, obj)
        if ctx.errors:
            return EncodeResult(errors=tuple(ctx.errors))

        try:
            payload = self._serializer.record(obj)
            data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (SerializationError, TypeError, ValueError) as exc:
            ctx.report(ErrorKind.INTERNAL, f"serialization failed: {exc}", (), ())
            return EncodeResult(errors=tuple(ctx.errors))

        data = self._run_hook(ctx, obj, "after_encode", ErrorKind.INTERNAL, data)
        if ctx.errors:
            return EncodeResult(errors=tuple(ctx.errors))
        if not isinstance(data, bytes):
            ctx.report(
                ErrorKind.INTERNAL,
                f"after_encode must return bytes, got {type(data).__name__}",
                (),
                (),
            )
            return EncodeResult(errors=tuple(ctx.errors))
        return EncodeResult(data=data)

    # --- plugin notifications ---

    def _notify_decode(self, *, ok: bool, error_count: int) -> None:
        if self._plugins is not None:
            self._plugins.notify(
                "post_decode", type_name=self.type_name, ok=ok, error_count=error_count
            )

    def notify_stream_complete(self, buffer_size: int) -> None:
        if self._plugins is not None:
            self._plugins.notify(
                "post_stream_complete", type_name=self.type_name, buffer_size=buffer_size
            )
