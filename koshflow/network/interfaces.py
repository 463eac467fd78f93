"""
KOSHFLOW Client - Network - Interfaces

Interfaces pour:
- Dispatch d'une requête HTTP (NET_001-005)
- Coordination du refresh de tokens (REFR_001-006)
- Retry côté appelant avec backoff (RETRY_001-004)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar

from ..session.interfaces import TokenPair

T = TypeVar("T")

# REFR_004: une requête est rejouée au plus une fois après refresh
MAX_AUTH_RETRIES: int = 1


class HttpMethod(Enum):
    """Méthodes HTTP utilisées par le backend."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class RefreshState(Enum):
    """États du coordinateur de refresh."""

    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class RequestAttempt:
    """
    Une tentative d'appel API.

    Invariant:
        REFR_004: retry_count vaut 0 ou 1
    """

    endpoint: str
    method: HttpMethod = HttpMethod.GET
    json: Any = None
    params: Optional[Dict[str, Any]] = None
    headers: Optional[Dict[str, str]] = None
    retry_count: int = 0
    authenticated: bool = True  # False: aucun header Authorization (refresh)

    def __post_init__(self) -> None:
        if not self.endpoint or not self.endpoint.startswith("/"):
            raise ValueError(f"Endpoint must start with '/': {self.endpoint!r}")
        if self.retry_count < 0 or self.retry_count > MAX_AUTH_RETRIES:
            raise ValueError(
                f"retry_count must be between 0 and {MAX_AUTH_RETRIES}, got {self.retry_count}"
            )

    @property
    def can_refresh(self) -> bool:
        """True si un 401 sur cette tentative peut déclencher un refresh."""
        return self.retry_count == 0

    def next_attempt(self) -> "RequestAttempt":
        """
        Retourne la tentative rejouée après refresh.

        Raises:
            ValueError: Si la tentative a déjà été rejouée (REFR_005)
        """
        return replace(self, retry_count=self.retry_count + 1)


@dataclass
class TimeoutConfig:
    """Timeouts appliqués au client HTTP."""

    connection_timeout: float = 10.0
    request_timeout: float = 30.0


@dataclass
class RetryConfig:
    """
    Configuration des retries côté appelant.

    max_attempts compte la première tentative: 4 = 1 appel + 3 retries.

    Invariants:
        RETRY_003: Backoff exponentiel plafonné par max_delay
        RETRY_004: Nombre de tentatives borné
    """

    max_attempts: int = 4
    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    # Exceptions hors ApiError considérées rejouables
    retryable_exceptions: tuple = field(
        default_factory=lambda: (ConnectionError, TimeoutError)
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be >= 0")
        if self.exponential_base < 1:
            raise ValueError(
                f"exponential_base must be >= 1, got {self.exponential_base}"
            )


@dataclass
class RetryResult:
    """Résultat d'une opération avec retry."""

    success: bool
    result: Optional[Any]
    attempts: int
    total_delay: float
    last_error: Optional[Exception]


class IRequestDispatcher(ABC):
    """Interface d'envoi d'une requête HTTP unique."""

    @abstractmethod
    async def dispatch(self, attempt: RequestAttempt, access_token: Optional[str] = None) -> Any:
        """
        Envoie une requête et décode la réponse JSON.

        Args:
            attempt: Tentative à envoyer
            access_token: Token Bearer (ignoré si attempt.authenticated est False)

        Returns:
            Corps JSON décodé (None si vide)

        Raises:
            NetworkError: Aucune réponse reçue
            ApiError: Réponse non-2xx
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Ferme les connexions HTTP."""
        pass


class IRefreshCoordinator(ABC):
    """Interface du refresh single-flight."""

    @property
    @abstractmethod
    def state(self) -> RefreshState:
        pass

    @abstractmethod
    async def refresh(self, stale_access_token: Optional[str] = None) -> TokenPair:
        """
        REFR_001/REFR_002: Obtient une nouvelle paire, un seul appel amont
        pour tous les appelants concurrents.

        Args:
            stale_access_token: Token qui a reçu le 401

        Returns:
            Nouvelle paire courante

        Raises:
            SessionExpiredError: Si le refresh échoue (REFR_006)
        """
        pass


class IRetryHandler(ABC):
    """Interface gestion retries."""

    @abstractmethod
    async def execute_with_retry(
        self,
        func: Callable[..., T],
        *args: Any,
        config: Optional[RetryConfig] = None,
        **kwargs: Any,
    ) -> RetryResult:
        """
        Exécute avec retry et backoff exponentiel.

        Returns:
            RetryResult avec succès/échec et détails
        """
        pass

    @abstractmethod
    def calculate_delay(
        self, attempt: int, config: RetryConfig, error: Optional[Exception] = None
    ) -> float:
        """
        Calcule délai backoff exponentiel.

        Args:
            attempt: Numéro de tentative (0-indexed)
            config: Configuration retry
            error: Erreur de la tentative (Retry-After)

        Returns:
            Délai en secondes
        """
        pass

    @abstractmethod
    def is_retryable(self, error: Exception, config: RetryConfig) -> bool:
        """
        Vérifie si erreur est retryable.

        Returns:
            True si retryable
        """
        pass
