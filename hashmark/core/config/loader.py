# hashmark/core/config/loader.py
"""
Configuration loader for hashmark.

Responsibilities:
- Load default config
- Load user config (optional)
- Expand ${ENV_VAR} placeholders
- Apply overrides (CLI flags)
- Validate via schema
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from hashmark.core.config.schema import HashmarkConfig
from hashmark.exceptions import ConfigError
from hashmark.logging.logger import get_logger
from hashmark.logging.tags import CONFIG

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
CONFIG_ENV_VAR = "HASHMARK_CONFIG"


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge `override` into `base`.
    Returns a new dict; does not mutate inputs.
    """
    merged: Dict[str, Any] = dict(base)
    for key, override_val in override.items():
        base_val = merged.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            merged[key] = _deep_merge(base_val, override_val)
        else:
            merged[key] = override_val
    return merged


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a YAML mapping at the top level: {path}")
    return _expand_env(data)


def _find_user_config_path(explicit_path: Optional[os.PathLike] = None) -> Optional[Path]:
    """
    Resolve the user config path.
    Priority:
      1. explicit path argument
      2. HASHMARK_CONFIG environment variable
      3. None (no user config)
    """
    if explicit_path is not None:
        return Path(explicit_path)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def load_config(
    user_config_path: Optional[os.PathLike] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> HashmarkConfig:
    """
    Load and validate hashmark configuration.

    Precedence (lowest first):
    - bundled defaults
    - user config file
    - overrides (None values are ignored, so unset CLI flags fall through)

    Required parameters are NOT checked here; call
    HashmarkConfig.validate_required() once all sources are merged.
    """
    logger.debug(f"{CONFIG} Loading default config from {DEFAULT_CONFIG_PATH}")
    cfg = _load_yaml(DEFAULT_CONFIG_PATH)

    user_path = _find_user_config_path(user_config_path)
    if user_path is not None:
        logger.debug(f"{CONFIG} Loading user config from {user_path}")
        cfg = _deep_merge(cfg, _load_yaml(user_path))

    if overrides:
        cfg = _deep_merge(cfg, {k: v for k, v in overrides.items() if v is not None})

    try:
        return HashmarkConfig.model_validate(cfg)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


__all__ = ["load_config", "DEFAULT_CONFIG_PATH", "CONFIG_ENV_VAR"]
