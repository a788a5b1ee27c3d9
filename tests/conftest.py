"""Shared pytest fixtures for fieldwise tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from fieldwise.engine.registry import RuleRegistry


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def registry() -> RuleRegistry:
    """A fresh rule registry, isolated from the process-wide default."""
    return RuleRegistry()


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run in an empty directory so no stray fieldwise.toml is discovered."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FIELDWISE_CONFIG", raising=False)


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[..., Path]:
    """Write a document into tmp_path; dicts are serialized, str/bytes kept verbatim."""

    def _write(content: Any, name: str = "doc.json") -> Path:
        path = tmp_path / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        elif isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return _write
