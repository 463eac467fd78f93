"""
KOSHFLOW Client - Core

Configuration du client (YAML + variables d'environnement).
"""

from .interfaces import DEFAULT_BASE_URL, ClientConfig, IConfigLoader, RetrySettings
from .config_loader import ENV_OVERRIDES, ConfigError, ConfigLoader

__all__ = [
    "DEFAULT_BASE_URL",
    "ClientConfig",
    "RetrySettings",
    "IConfigLoader",
    "ConfigLoader",
    "ConfigError",
    "ENV_OVERRIDES",
]
