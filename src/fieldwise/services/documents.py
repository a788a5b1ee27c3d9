"""DocumentService — check, repair, and stream-replay JSON files.

Targets are named ``module:Qualified.Name`` and imported on demand.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from fieldwise.config.models import EngineConfig
from fieldwise.domain.discriminator import DiscriminatorSpec
from fieldwise.domain.errors import RuleDeclarationError, ValidationError
from fieldwise.domain.paths import join_path
from fieldwise.domain.results import PartialResult
from fieldwise.engine.registry import RuleRegistry, default_registry
from fieldwise.engine.serialize import SerializationError, Serializer
from fieldwise.partial.repair import repair_json
from fieldwise.plugins.manager import PluginManager
from fieldwise.services.result import ServiceError, ServiceResult
from fieldwise.validator import Validator

logger = logging.getLogger(__name__)


class TargetError(ValueError):
    """A ``module:Class`` reference could not be resolved."""


def load_target(reference: str) -> type:
    """Import ``package.module:Outer.Inner`` and return the class."""
    module_name, sep, qualname = reference.partition(":")
    if not sep or not module_name or not qualname:
        msg = f"target must look like 'module:Class', got {reference!r}"
        raise TargetError(msg)
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"cannot import {module_name!r}: {exc}"
        raise TargetError(msg) from exc
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            msg = f"{module_name!r} has no attribute {qualname!r}"
            raise TargetError(msg) from exc
    if not isinstance(obj, type):
        msg = f"{reference!r} is not a class"
        raise TargetError(msg)
    return obj


def parse_variants(tag: str, variants: Iterable[str]) -> DiscriminatorSpec:
    """Build a DiscriminatorSpec from ``value=module:Class`` pairs."""
    mapping: dict[str, type] = {}
    for item in variants:
        value, sep, reference = item.partition("=")
        if not sep or not value:
            msg = f"variant must look like 'tag=module:Class', got {item!r}"
            raise TargetError(msg)
        mapping[value] = load_target(reference)
    if not mapping:
        msg = f"discriminator '{tag}' needs at least one --variant"
        raise TargetError(msg)
    return DiscriminatorSpec(tag=tag, mapping=mapping)


def _error_dicts(errors: Iterable[ValidationError]) -> list[dict[str, Any]]:
    return [
        {"path": e.location, "kind": str(e.kind), "message": e.message} for e in errors
    ]


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        msg = f"cannot read {path}: {exc.strerror or exc}"
        raise TargetError(msg) from exc


class DocumentService:
    """File-level operations used by the CLI commands."""

    def __init__(
        self,
        *,
        config: EngineConfig | None = None,
        registry: RuleRegistry | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._registry = registry if registry is not None else default_registry
        self._plugins = plugins

    def _validator(
        self, target: str, tag: str | None, variants: Iterable[str]
    ) -> Validator[Any]:
        target_type = load_target(target)
        spec = parse_variants(tag, variants) if tag else None
        return Validator(
            target_type,
            discriminator=spec,
            registry=self._registry,
            config=self._config,
            plugins=self._plugins,
        )

    def _wire_value(self, value: Any) -> Any:
        if value is None:
            return None
        try:
            return Serializer(self._registry).record(value)
        except SerializationError:
            logger.debug("Could not serialize decoded value", exc_info=True)
            return repr(value)

    def check(
        self,
        target: str,
        path: Path,
        *,
        tag: str | None = None,
        variants: Iterable[str] = (),
    ) -> ServiceResult:
        """Decode and validate the JSON document at *path*."""
        try:
            validator = self._validator(target, tag, variants)
            data = _read(path)
        except (TargetError, RuleDeclarationError) as exc:
            return ServiceResult(
                ok=False, op="check", error=ServiceError(code="BAD_INPUT", message=str(exc))
            )

        result = validator.decode(data)
        payload: dict[str, Any] = {
            "type": type(result.value).__qualname__ if result.value is not None else None,
            "file": str(path),
            "value": self._wire_value(result.value),
            "errors": _error_dicts(result.errors),
            "count": len(result.errors),
        }
        if result.ok:
            return ServiceResult(ok=True, op="check", data=payload)
        return ServiceResult(
            ok=False,
            op="check",
            data=payload,
            error=ServiceError(
                code="VALIDATION_FAILED",
                message=f"{len(result.errors)} validation error(s) in {path.name}",
                detail={"errors": payload["errors"]},
            ),
        )

    def repair(self, path: Path) -> ServiceResult:
        """Repair a truncated JSON document and report what is missing."""
        try:
            repaired = repair_json(_read(path))
        except (TargetError, UnicodeDecodeError) as exc:
            return ServiceResult(
                ok=False, op="repair", error=ServiceError(code="BAD_INPUT", message=str(exc))
            )
        return ServiceResult(
            ok=True,
            op="repair",
            data={
                "file": str(path),
                "repaired": repaired.text,
                "complete": repaired.state.is_complete,
                "incomplete": [
                    {"path": f.json_path, "reason": str(f.reason)}
                    for f in repaired.state.incomplete_fields
                ],
                "open": [join_path(p) for p in repaired.state.open_paths],
            },
        )

    def replay(
        self,
        target: str,
        path: Path,
        *,
        chunk_size: int,
        tag: str | None = None,
        variants: Iterable[str] = (),
    ) -> ServiceResult:
        """Feed *path* through a StreamSession in *chunk_size*-byte chunks."""
        try:
            validator = self._validator(target, tag, variants)
            data = _read(path)
        except (TargetError, RuleDeclarationError) as exc:
            return ServiceResult(
                ok=False, op="stream", error=ServiceError(code="BAD_INPUT", message=str(exc))
            )

        completed_at: list[int] = []
        session = validator.stream(on_complete=lambda _: completed_at.append(len(session.buffer)))
        steps: list[dict[str, Any]] = []
        last: PartialResult | None = None
        for offset in range(0, max(len(data), 1), chunk_size):
            last = session.feed(data[offset : offset + chunk_size])
            steps.append(
                {
                    "bytes": len(session.buffer),
                    "complete": last.is_complete,
                    "waiting_for": last.waiting_for(),
                    "errors": len(last.errors),
                }
            )

        assert last is not None
        payload: dict[str, Any] = {
            "file": str(path),
            "steps": steps,
            "complete": last.is_complete,
            "completed_at": completed_at[0] if completed_at else None,
            "value": self._wire_value(last.value),
            "errors": _error_dicts(last.errors),
        }
        if last.is_complete and last.ok:
            return ServiceResult(ok=True, op="stream", data=payload)
        reason = "stream ended incomplete" if not last.is_complete else "validation failed"
        return ServiceResult(
            ok=False,
            op="stream",
            data=payload,
            error=ServiceError(code="STREAM_FAILED", message=reason, detail={"steps": len(steps)}),
        )
