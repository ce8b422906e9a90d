from hashmark.core.config.loader import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, load_config
from hashmark.core.config.schema import HashmarkConfig, LoggingConfig

__all__ = [
    "HashmarkConfig",
    "LoggingConfig",
    "load_config",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
]
