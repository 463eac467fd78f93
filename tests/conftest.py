"""
KOSHFLOW Client - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from typing import List

import pytest

from koshflow.client import ApiClient
from koshflow.core import ClientConfig, RetrySettings
from koshflow.logging import LogConfig, LogLevel, StructuredLogger
from koshflow.session import TokenStore

from tests.fake_backend import FakeBackend


@pytest.fixture
def backend() -> FakeBackend:
    """Backend KoshFlow simulé."""
    return FakeBackend()


@pytest.fixture
def log_lines() -> List[str]:
    """Lignes JSON émises par le logger de test."""
    return []


@pytest.fixture
def logger(log_lines: List[str]) -> StructuredLogger:
    """Logger capturant toutes les lignes, niveau DEBUG."""
    return StructuredLogger(
        "koshflow.test",
        LogConfig(min_level=LogLevel.DEBUG),
        output_handler=log_lines.append,
    )


@pytest.fixture
def client_config() -> ClientConfig:
    """Config sans délai de backoff."""
    return ClientConfig(
        base_url="http://testserver/api",
        retry=RetrySettings(max_attempts=4, initial_delay=0.0, max_delay=0.0),
    )


@pytest.fixture
def client(backend: FakeBackend, client_config: ClientConfig, logger: StructuredLogger) -> ApiClient:
    """Client non authentifié branché sur le backend simulé."""
    return ApiClient(client_config, logger=logger, transport=backend.transport)


@pytest.fixture
def authed_client(backend: FakeBackend, client: ApiClient) -> ApiClient:
    """Client avec une paire valide déjà stockée."""
    client.token_store.set_tokens(backend.issue_pair())
    return client


@pytest.fixture
def token_store() -> TokenStore:
    """Store en mémoire vide."""
    return TokenStore()
