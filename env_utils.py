"""Shared helpers for reading token configuration from the environment."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


def load_env_file(path: str = ".env") -> None:
    """Seed token settings such as MCP_JWT_SECRET from a dotenv-style file.

    Accepts `KEY=VALUE` and `export KEY=VALUE` lines. Variables already set in
    the shell win over the file, so a one-off `TOKEN_ROLE=admin` still applies.
    """

    env_path = Path(path)
    if not env_path.exists():
        return

    logger.debug("Loading environment overrides from %s", env_path)
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export "):].strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)


def get_env(name: str, default: str, environ: Mapping[str, str] | None = None) -> str:
    """Return ``name`` from the environment, or ``default`` when unset or empty."""

    source = os.environ if environ is None else environ
    return source.get(name) or default


__all__ = ["ConfigurationError", "load_env_file", "get_env"]
