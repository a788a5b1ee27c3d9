"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, fieldwise.toml only contains
overrides.  A project needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """[engine] section — knobs read by the walker and the partial decoder."""

    model_config = {"frozen": True}

    strict_strings: bool = False
    """Reject raw control characters inside strings of repaired documents."""

    max_depth: int = Field(default=128, ge=1)
    """Nesting depth beyond which traversal stops with an ``internal`` error."""


class StreamConfig(BaseModel):
    """[stream] section — defaults for ``fieldwise stream``."""

    model_config = {"frozen": True}

    chunk_size: int = Field(default=16, ge=1)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    disabled: list[str] = Field(default_factory=list)


class FieldwiseConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    engine: EngineConfig = Field(default_factory=EngineConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
