"""Run-time configuration for storycheck runs.

Resolves the base URL, bearer token and timeout from CLI overrides, then
environment variables, then an optional KEY=VALUE config file. The token has
no default: it must be supplied at run time and is never committed.
"""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

from storycheck.models import ClientConfig

DEFAULT_BASE_URL = "https://d3s5nxhwblsjbi.cloudfront.net"
DEFAULT_TIMEOUT_S = 30.0

ENV_BASE_URL = "STORY_API_BASE_URL"
ENV_TOKEN = "STORY_API_TOKEN"
ENV_TIMEOUT = "STORY_API_TIMEOUT"
ENV_CONFIG = "STORY_API_CONFIG"


class ConfigError(ValueError):
    """Raised when a usable ClientConfig cannot be built."""


def read_config_file(path: Path) -> dict[str, str]:
    """Read a dotenv-style KEY=VALUE file.

    Keys declared without a value are dropped. Raises ConfigError if the
    file does not exist.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def _first(*candidates: Optional[str]) -> Optional[str]:
    for c in candidates:
        if c and c.strip():
            return c.strip()
    return None


def load_config(
    base_url: Optional[str] = None,
    token: Optional[str] = None,
    timeout_s: Optional[float] = None,
    config_path: Optional[Path] = None,
    env: Optional[dict[str, str]] = None,
) -> ClientConfig:
    """Build a ClientConfig from overrides, environment and config file.

    Args:
        base_url: Explicit base URL (highest precedence).
        token: Explicit bearer token (highest precedence).
        timeout_s: Explicit request timeout in seconds.
        config_path: KEY=VALUE file; falls back to $STORY_API_CONFIG.
        env: Environment mapping, defaults to os.environ.

    Raises:
        ConfigError: no token is available, or the timeout is not a
            positive number.
    """
    env = os.environ if env is None else env

    file_values: dict[str, str] = {}
    path = config_path or (Path(env[ENV_CONFIG]) if env.get(ENV_CONFIG) else None)
    if path is not None:
        file_values = read_config_file(path)

    resolved_url = _first(base_url, env.get(ENV_BASE_URL), file_values.get(ENV_BASE_URL)) or DEFAULT_BASE_URL
    resolved_token = _first(token, env.get(ENV_TOKEN), file_values.get(ENV_TOKEN))
    if not resolved_token:
        raise ConfigError(
            f"No API token configured. Pass --token or set {ENV_TOKEN}."
        )

    if timeout_s is None:
        raw = _first(env.get(ENV_TIMEOUT), file_values.get(ENV_TIMEOUT))
        try:
            timeout_s = float(raw) if raw else DEFAULT_TIMEOUT_S
        except ValueError:
            raise ConfigError(f"Invalid timeout: {raw!r}") from None
    if not math.isfinite(timeout_s) or timeout_s <= 0:
        raise ConfigError(f"Timeout must be a positive number, got {timeout_s}")

    if not resolved_url.startswith(("http://", "https://")):
        raise ConfigError(f"Base URL must start with http:// or https://: {resolved_url}")

    return ClientConfig(base_url=resolved_url, token=resolved_token, timeout_s=timeout_s)
