"""Environment-backed configuration helpers and settings."""

from .errors import ConfigurationError
from .runtime import env_bool, env_choice, env_float, env_int, env_str, reset_default_values
from .settings import (
    CONTAINER_DETECTION_MODES,
    LISTENER_BACKENDS,
    ZapConfig,
    get_config,
    reset_config,
)

__all__ = [
    "CONTAINER_DETECTION_MODES",
    "ConfigurationError",
    "LISTENER_BACKENDS",
    "ZapConfig",
    "env_bool",
    "env_choice",
    "env_float",
    "env_int",
    "env_str",
    "get_config",
    "reset_config",
    "reset_default_values",
]
