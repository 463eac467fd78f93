"""
KOSHFLOW Client - Core Interfaces
Configuration du client et contrat de chargement.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


DEFAULT_BASE_URL = "http://localhost:3001/api"


class RetrySettings(BaseModel):
    """Paramètres du retry côté appelant (backoff exponentiel)."""

    max_attempts: int = Field(default=4, ge=1, le=10)
    initial_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    exponential_base: float = Field(default=2.0, ge=1)


class ClientConfig(BaseModel):
    """Configuration complète du client API."""

    base_url: str = DEFAULT_BASE_URL
    login_path: str = "/login"
    connect_timeout: float = Field(default=10.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    token_file: Optional[str] = None
    token_encryption_key: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("base_url cannot be empty")
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL: {value}")
        return value.strip().rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in ("DEBUG", "INFO", "WARN", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return normalized


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigLoader(ABC):
    """Charge la configuration du client."""

    @abstractmethod
    def load(self, profile: str) -> ClientConfig:
        """
        Charge la config d'un profil (dev, staging, prod...).

        Raises:
            ConfigError: Si fichier absent, YAML invalide ou valeurs invalides
        """
        pass
