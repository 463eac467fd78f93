"""
Tests unitaires: Logging - Structured Logger

Tests des invariants:
- LOG_001: Format JSON structuré obligatoire
- LOG_002: Timestamp ISO 8601 UTC avec millisecondes
- LOG_003: Tokens et mots de passe JAMAIS en clair dans les logs
"""

import json
import re
from datetime import datetime
from typing import List

import pytest

from koshflow.logging import (
    StructuredLogger,
    ContextualLogger,
    LogConfig,
    LogEntry,
    LogLevel,
    MissingRequiredFieldError,
    IStructuredLogger,
)


def make_logger(lines: List[str], **config_kwargs) -> StructuredLogger:
    return StructuredLogger("test", LogConfig(**config_kwargs), output_handler=lines.append)


class TestLOG001JsonFormat:
    """Tests LOG_001: Format JSON structuré obligatoire."""

    def test_LOG_001_implements_interface(self) -> None:
        """LOG_001: StructuredLogger implémente IStructuredLogger."""
        assert isinstance(StructuredLogger("test"), IStructuredLogger)

    def test_LOG_001_output_is_valid_json(self) -> None:
        """LOG_001: Chaque ligne émise est un objet JSON."""
        lines: List[str] = []
        logger = make_logger(lines)

        logger.info("Login successful", user_id="user-1")

        assert len(lines) == 1
        parsed = json.loads(lines[0])
        assert parsed["message"] == "Login successful"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test"
        assert parsed["extra"] == {"user_id": "user-1"}

    def test_LOG_001_company_id_included_when_set(self) -> None:
        """LOG_001: company_id présent après set_default_company."""
        lines: List[str] = []
        logger = make_logger(lines)
        logger.set_default_company("company-1")

        entry = logger.info("Session restored")

        assert entry is not None
        assert entry.company_id == "company-1"
        assert json.loads(lines[0])["company_id"] == "company-1"

    def test_LOG_001_company_id_omitted_before_login(self) -> None:
        """LOG_001: Sans société connue, pas de champ company_id."""
        lines: List[str] = []
        make_logger(lines).info("Anonymous request")

        assert "company_id" not in json.loads(lines[0])

    def test_LOG_001_correlation_id_generated(self) -> None:
        """LOG_001: correlation_id généré si absent."""
        logger = StructuredLogger("test", output_handler=lambda _: None)

        entry = logger.info("Message")

        assert entry is not None
        assert len(entry.correlation_id) == 36

    def test_LOG_001_empty_message_raises(self) -> None:
        """LOG_001: Message vide refusé."""
        logger = StructuredLogger("test", output_handler=lambda _: None)

        with pytest.raises(MissingRequiredFieldError):
            logger.info("")

    def test_LOG_001_empty_name_raises(self) -> None:
        """LOG_001: Nom de logger vide refusé."""
        with pytest.raises(ValueError):
            StructuredLogger("  ")

    def test_LOG_001_non_serializable_extra(self) -> None:
        """LOG_001: Valeurs non sérialisables converties en chaîne."""
        lines: List[str] = []
        make_logger(lines).info("Report requested", as_of=datetime(2026, 3, 31))

        assert json.loads(lines[0])["extra"]["as_of"] == "2026-03-31 00:00:00"


class TestLOG002Timestamp:
    """Tests LOG_002: Timestamp ISO 8601 UTC avec millisecondes."""

    def test_LOG_002_timestamp_format(self) -> None:
        """LOG_002: Format 2024-12-04T14:30:00.123Z."""
        logger = StructuredLogger("test", output_handler=lambda _: None)

        entry = logger.info("Message")

        assert entry is not None
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", entry.timestamp)


class TestLevelsAndFiltering:
    """Niveaux et filtrage."""

    def test_min_level_filters(self) -> None:
        """Les niveaux inférieurs à min_level sont ignorés."""
        lines: List[str] = []
        logger = make_logger(lines, min_level=LogLevel.WARN)

        assert logger.debug("debug") is None
        assert logger.info("info") is None
        assert logger.warn("warn") is not None
        assert logger.error("error") is not None
        assert logger.critical("critical") is not None
        assert len(lines) == 3

    def test_from_name_accepts_warning_alias(self) -> None:
        """WARNING est un alias de WARN."""
        assert LogLevel.from_name("warning") == LogLevel.WARN
        assert LogLevel.from_name("Debug") == LogLevel.DEBUG

    def test_from_name_unknown_raises(self) -> None:
        with pytest.raises(ValueError):
            LogLevel.from_name("verbose")

    def test_entries_filtered_by_level(self) -> None:
        logger = make_logger([])
        logger.info("one")
        logger.error("two")

        errors = logger.get_entries_by_level(LogLevel.ERROR)

        assert [e.message for e in errors] == ["two"]

    def test_max_entries_bounds_memory(self) -> None:
        """Seules les max_entries dernières entrées sont conservées."""
        logger = StructuredLogger("test", output_handler=lambda _: None, max_entries=3)

        for i in range(5):
            logger.info(f"message {i}")

        assert [e.message for e in logger.get_entries()] == ["message 2", "message 3", "message 4"]

    def test_clear_entries(self) -> None:
        logger = make_logger([])
        logger.info("one")

        logger.clear_entries()

        assert logger.get_entries() == []


class TestLOG003MaskingInLogger:
    """Tests LOG_003: Masquage appliqué aux champs extra."""

    def test_LOG_003_tokens_never_in_output(self) -> None:
        """LOG_003: Aucune valeur de token dans la sortie."""
        lines: List[str] = []
        logger = make_logger(lines)

        logger.info(
            "API request",
            headers={"Authorization": "Bearer eyJsecret"},
            refreshToken="r-secret",
        )

        assert "eyJsecret" not in lines[0]
        assert "r-secret" not in lines[0]

    def test_LOG_003_masking_can_be_disabled(self) -> None:
        """LOG_003: mask_sensitive=False conserve les valeurs (debug local)."""
        lines: List[str] = []
        logger = make_logger(lines, mask_sensitive=False)

        logger.info("debug", token="visible")

        assert json.loads(lines[0])["extra"]["token"] == "visible"


class TestContextualLogger:
    """Logger avec contexte fixé."""

    def test_with_context_shares_correlation_id(self) -> None:
        """Toutes les lignes d'un contexte partagent le correlation_id."""
        logger = make_logger([], min_level=LogLevel.DEBUG)
        ctx = logger.with_context()

        assert isinstance(ctx, ContextualLogger)
        first = ctx.debug("API request")
        second = ctx.info("API response")

        assert first is not None and second is not None
        assert first.correlation_id == second.correlation_id == ctx.correlation_id
        assert len(logger.get_entries_by_correlation(ctx.correlation_id)) == 2

    def test_with_context_explicit_values(self) -> None:
        logger = make_logger([])

        entry = logger.with_context("corr-1", "company-9").warn("Retrying")

        assert isinstance(entry, LogEntry)
        assert entry.correlation_id == "corr-1"
        assert entry.company_id == "company-9"
