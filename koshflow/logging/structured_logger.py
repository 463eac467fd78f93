"""
KOSHFLOW Client - Logging - Structured Logger

Logger JSON structuré du client API.

Invariants:
    LOG_001: Format JSON structuré obligatoire
    LOG_002: Timestamp ISO 8601 UTC avec millisecondes
    LOG_003: Tokens et mots de passe JAMAIS en clair dans les logs
"""

import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .interfaces import (
    IStructuredLogger,
    ISensitiveMasker,
    LogConfig,
    LogEntry,
    LogLevel,
)
from .sensitive_masker import SensitiveMasker


class MissingRequiredFieldError(Exception):
    """Champ obligatoire manquant."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"Required field missing: {field_name}")


def _write_stderr(line: str) -> None:
    sys.stderr.write(line + "\n")


class StructuredLogger(IStructuredLogger):
    """
    Logger JSON structuré.

    Par défaut chaque entrée est écrite sur stderr; un output_handler
    personnalisé remplace cette sortie (tests, intégration applicative).
    Les entrées sont conservées en mémoire dans la limite de max_entries.

    Example:
        logger = StructuredLogger("koshflow.client")
        logger.set_default_company("company-123")
        logger.info("Login successful", email="demo@koshflow.com")
    """

    DEFAULT_MAX_ENTRIES: int = 1000

    def __init__(
        self,
        name: str,
        config: Optional[LogConfig] = None,
        masker: Optional[ISensitiveMasker] = None,
        output_handler: Optional[Callable[[str], None]] = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        """
        Args:
            name: Nom du logger (identifiant module)
            config: Configuration optionnelle
            masker: Masker pour données sensibles (LOG_003)
            output_handler: Handler de sortie (défaut: stderr)
            max_entries: Nombre max d'entrées conservées en mémoire

        Raises:
            ValueError: Si name vide
        """
        if not name or not name.strip():
            raise ValueError("Logger name cannot be empty")

        self._name = name.strip()
        self._config = config or LogConfig()
        self._masker = masker or SensitiveMasker()
        self._output_handler = output_handler or _write_stderr
        self._max_entries = max_entries
        self._entries: List[LogEntry] = []
        self._default_company_id: Optional[str] = self._config.default_company_id
        self._default_correlation_id: Optional[str] = self._config.default_correlation_id

    @property
    def name(self) -> str:
        """Retourne le nom du logger."""
        return self._name

    @property
    def config(self) -> LogConfig:
        """Retourne la configuration."""
        return self._config

    def set_default_company(self, company_id: Optional[str]) -> None:
        """Définit company_id par défaut (None pour l'effacer)."""
        self._default_company_id = company_id

    def set_default_correlation(self, correlation_id: Optional[str]) -> None:
        """Définit correlation_id par défaut."""
        self._default_correlation_id = correlation_id

    def log(
        self,
        level: LogLevel,
        message: str,
        correlation_id: Optional[str] = None,
        company_id: Optional[str] = None,
        **extra: Any,
    ) -> Optional[LogEntry]:
        """
        Crée une entrée de log structurée JSON.

        Processus:
            1. Vérifie niveau >= min_level
            2. Génère timestamp ISO 8601 UTC (LOG_002)
            3. Résout correlation_id et company_id
            4. Masque données sensibles dans extra (LOG_003)
            5. Écrit le JSON (LOG_001)

        Returns:
            LogEntry créé ou None si filtré

        Raises:
            MissingRequiredFieldError: Si message vide
        """
        if not self._should_log(level):
            return None

        if not message:
            raise MissingRequiredFieldError("message")

        resolved_correlation = correlation_id or self._default_correlation_id
        if not resolved_correlation:
            resolved_correlation = str(uuid.uuid4())

        masked_extra: Dict[str, Any] = {}
        if extra and self._config.include_extra:
            if self._config.mask_sensitive:
                masked_extra = self._masker.mask(dict(extra))
            else:
                masked_extra = dict(extra)

        entry = LogEntry(
            timestamp=self._generate_timestamp(),
            level=level,
            correlation_id=resolved_correlation,
            message=message,
            company_id=company_id or self._default_company_id,
            extra=masked_extra,
            logger_name=self._name,
        )

        self._entries.append(entry)
        if len(self._entries) > self._max_entries:
            del self._entries[: len(self._entries) - self._max_entries]

        self._output_handler(entry.to_json())

        return entry

    def _generate_timestamp(self) -> str:
        """
        LOG_002: Génère timestamp ISO 8601 UTC avec millisecondes.

        Format: 2024-12-04T14:30:00.123Z
        """
        now = datetime.now(timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    def _should_log(self, level: LogLevel) -> bool:
        return LogLevel.get_priority(level) >= LogLevel.get_priority(
            self._config.min_level
        )

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau DEBUG."""
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau INFO."""
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau WARN."""
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau ERROR."""
        return self.log(LogLevel.ERROR, message, **extra)

    def critical(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau CRITICAL."""
        return self.log(LogLevel.CRITICAL, message, **extra)

    def get_entries(self) -> List[LogEntry]:
        """
        Retourne les entrées de log capturées.

        Utile pour tests et débogage.
        """
        return list(self._entries)

    def clear_entries(self) -> None:
        """Efface les entrées capturées."""
        self._entries.clear()

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        """Filtre les entrées par niveau."""
        return [e for e in self._entries if e.level == level]

    def get_entries_by_correlation(self, correlation_id: str) -> List[LogEntry]:
        """Filtre les entrées par correlation_id."""
        return [e for e in self._entries if e.correlation_id == correlation_id]

    def with_context(
        self,
        correlation_id: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> "ContextualLogger":
        """
        Crée un logger avec contexte pré-défini.

        Un correlation_id est généré s'il n'est pas fourni, de sorte que
        toutes les lignes d'une même requête partagent le même identifiant.
        """
        return ContextualLogger(
            self,
            correlation_id=correlation_id
            or self._default_correlation_id
            or str(uuid.uuid4()),
            company_id=company_id or self._default_company_id,
        )


class ContextualLogger:
    """
    Logger avec contexte pré-défini.

    Wrapper qui fixe correlation_id et company_id pour
    éviter de les répéter à chaque appel.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        correlation_id: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> None:
        self._logger = logger
        self._correlation_id = correlation_id
        self._company_id = company_id

    @property
    def correlation_id(self) -> Optional[str]:
        """Retourne le correlation_id fixé."""
        return self._correlation_id

    def log(
        self, level: LogLevel, message: str, **extra: Any
    ) -> Optional[LogEntry]:
        """Log avec contexte."""
        return self._logger.log(
            level,
            message,
            correlation_id=self._correlation_id,
            company_id=self._company_id,
            **extra,
        )

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log DEBUG."""
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log INFO."""
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log WARN."""
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log ERROR."""
        return self.log(LogLevel.ERROR, message, **extra)
