"""
KOSHFLOW Client - Config Loader Implementation
Charge la configuration depuis fichiers YAML et variables d'environnement.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from .interfaces import ClientConfig, IConfigLoader


class ConfigError(Exception):
    """Configuration absente ou invalide."""

    pass


# Variable d'environnement -> champ de ClientConfig
ENV_OVERRIDES: Dict[str, str] = {
    "KOSHFLOW_API_URL": "base_url",
    "KOSHFLOW_TOKEN_FILE": "token_file",
    "KOSHFLOW_TOKEN_KEY": "token_encryption_key",
    "KOSHFLOW_LOG_LEVEL": "log_level",
}


class ConfigLoader(IConfigLoader):
    """Chargement des configurations depuis fichiers YAML."""

    def __init__(
        self,
        configs_path: str = "config",
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.configs_path = Path(configs_path)
        self._environ = environ if environ is not None else os.environ

    def load(self, profile: str) -> ClientConfig:
        """
        Charge la config d'un profil.

        Args:
            profile: Nom du profil (fichier <profile>.yaml)

        Returns:
            ClientConfig validée

        Raises:
            ConfigError: Si fichier inexistant, YAML invalide ou valeurs invalides
        """
        if not profile or not profile.strip():
            raise ConfigError("Profile name cannot be empty")

        config_file = self.configs_path / f"{profile}.yaml"

        if not config_file.exists():
            raise ConfigError(f"Configuration not found for profile: {profile}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parsing error: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}")

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError("Configuration must be a YAML mapping")

        return self._build(raw)

    def default(self) -> ClientConfig:
        """Config par défaut, surchargée par l'environnement."""
        return self._build({})

    def _build(self, raw: Dict[str, Any]) -> ClientConfig:
        values = dict(raw)
        for env_name, field_name in ENV_OVERRIDES.items():
            env_value = self._environ.get(env_name)
            if env_value:
                values[field_name] = env_value

        try:
            return ClientConfig(**values)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")
