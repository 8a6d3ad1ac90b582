"""Configuration hierarchy — merges sources in priority order.

Precedence (later overrides earlier):
  1. Package defaults
  2. Global config   (~/.mediacache/config.yaml)
  3. Project config   (./mediacache.yaml)
  4. Environment variables (DROPBOX_ACCESS_TOKEN, MEDIACACHE_*)
  5. Runtime arguments
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from mediacache.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".mediacache" / "config.yaml"
_PROJECT_CONFIG_NAME = "mediacache.yaml"

# Map of environment variables to config keys
_ENV_MAP: dict[str, str] = {
    "DROPBOX_ACCESS_TOKEN": "access_token",
    "MEDIACACHE_CACHE_ROOT": "cache_root",
    "MEDIACACHE_CHUNK_SIZE": "chunk_size",
    "MEDIACACHE_WRITE_QUEUE_DEPTH": "write_queue_depth",
    "MEDIACACHE_DRAIN_TIMEOUT": "drain_timeout",
    "MEDIACACHE_API_URL": "api_url",
    "MEDIACACHE_CONTENT_URL": "content_url",
    "MEDIACACHE_TIMEOUT": "timeout",
    "MEDIACACHE_READ_TIMEOUT": "read_timeout",
    "MEDIACACHE_LOG_LEVEL": "log_level",
    "MEDIACACHE_REGISTRY": "registry_path",
}

# Keys that should be parsed as specific types
_TYPE_MAP: dict[str, type] = {
    "chunk_size": int,
    "write_queue_depth": int,
    "drain_timeout": float,
    "timeout": float,
    "read_timeout": float,
}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Load and merge configuration from all sources.

    Returns a merged dict with the final resolved values.
    """
    config = get_defaults()

    # Layer 2: Global config
    global_cfg = _load_yaml_config(_GLOBAL_CONFIG_PATH)
    if global_cfg:
        config.update(global_cfg)

    # Layer 3: Project config (search from cwd upward)
    project_path = _find_project_config()
    if project_path:
        project_cfg = _load_yaml_config(project_path)
        if project_cfg:
            config.update(project_cfg)

    # Layer 4: Environment variables
    config.update(_load_env_vars())

    # Layer 5: Runtime arguments, only when explicitly set
    for key, value in runtime_overrides.items():
        if value is not None:
            config[key] = value

    return config


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Load a YAML config file if it exists."""
    if not path.exists() or not path.is_file():
        return None
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        if isinstance(data, dict):
            return data
        logger.warning("Config file %s is not a mapping, ignoring", path)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
    return None


def _find_project_config() -> Path | None:
    """Search for mediacache.yaml from cwd upward."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / _PROJECT_CONFIG_NAME
        if candidate.exists():
            return candidate
    return None


def _load_env_vars() -> dict[str, Any]:
    result: dict[str, Any] = {}
    for env_key, config_key in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        result[config_key] = _coerce_env_value(config_key, value)
    return result


def _coerce_env_value(key: str, value: str) -> Any:
    target_type = _TYPE_MAP.get(key)
    if target_type:
        try:
            return target_type(value)
        except (ValueError, TypeError):
            logger.warning(
                "Cannot convert env var for '%s' to %s: %s", key, target_type.__name__, value
            )
    return value
