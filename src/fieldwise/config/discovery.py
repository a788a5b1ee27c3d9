"""Config file discovery and loading.

Walk-up finder locates fieldwise.toml, similar to how git finds .git/.
Supports the FIELDWISE_CONFIG env var and the --config CLI flag.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from fieldwise.config.models import FieldwiseConfig

CONFIG_FILENAME = "fieldwise.toml"
CONFIG_ENV_VAR = "FIELDWISE_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for fieldwise.toml.

    FIELDWISE_CONFIG, when set, wins outright: it is returned if it names
    an existing file and None otherwise.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidate = Path(env_path)
        return candidate if candidate.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> FieldwiseConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns the default FieldwiseConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return FieldwiseConfig()

    data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    return FieldwiseConfig.model_validate(data)
