"""Config file discovery and loading.

Walk-up finder locates ``dwellguard.toml``, the way git finds ``.git/``.
``DWELLGUARD_CONFIG`` and ``--config`` override discovery.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dwellguard.config.models import DwellConfig

CONFIG_FILENAME = "dwellguard.toml"
CONFIG_ENV_VAR = "DWELLGUARD_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for dwellguard.toml.

    Returns the path to the config file, or None if not found.
    Checks DWELLGUARD_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> DwellConfig:
    """Load and validate config from a TOML file.

    Returns default DwellConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return DwellConfig()

    data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    return DwellConfig.model_validate(data)
