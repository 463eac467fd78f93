"""
KOSHFLOW Client - Network - Retry Handler

Retry côté appelant avec backoff exponentiel.

Indépendant du cycle 401 → refresh: un 401 n'arrive ici qu'une fois le
refresh échoué, et il est terminal.

Invariants:
    RETRY_001: 4xx hors 429 = terminal, jamais rejoué
    RETRY_002: 429, 5xx et erreurs réseau sont rejouables
    RETRY_003: Backoff exponentiel plafonné par max_delay
    RETRY_004: Nombre de tentatives borné par configuration
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, Optional, TypeVar

from ..logging import StructuredLogger
from .errors import ApiError, RateLimitError
from .interfaces import IRetryHandler, RetryConfig, RetryResult

T = TypeVar("T")


class RetryHandler(IRetryHandler):
    """
    Gestion retries avec backoff exponentiel.

    Example:
        handler = RetryHandler(RetryConfig(max_attempts=4))
        contacts = await handler.call(client.request, "/contacts")
    """

    def __init__(
        self,
        default_config: Optional[RetryConfig] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        """
        Args:
            default_config: Configuration par défaut (optionnel)
            logger: Logger structuré
        """
        self._default_config = default_config or RetryConfig()
        self._logger = logger or StructuredLogger("koshflow.retry")
        self._retry_stats: Dict[str, int] = {
            "total_retries": 0,
            "successful_retries": 0,
            "failed_retries": 0,
        }

    @property
    def default_config(self) -> RetryConfig:
        return self._default_config

    async def execute_with_retry(
        self,
        func: Callable[..., T],
        *args: Any,
        config: Optional[RetryConfig] = None,
        **kwargs: Any,
    ) -> RetryResult:
        """
        Exécute func avec au plus max_attempts tentatives.

        Backoff: delay = min(initial * (base ^ attempt), max_delay)
        - Attempt 0: 1s
        - Attempt 1: 2s
        - Attempt 2: 4s

        Args:
            func: Fonction à exécuter (sync ou async)
            *args: Arguments positionnels
            config: Configuration retry optionnelle
            **kwargs: Arguments nommés

        Returns:
            RetryResult avec succès/échec et détails
        """
        retry_config = config or self._default_config
        last_error: Optional[Exception] = None
        total_delay: float = 0.0

        for attempt in range(retry_config.max_attempts):
            try:
                result = func(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result

                if attempt > 0:
                    self._retry_stats["successful_retries"] += 1

                return RetryResult(
                    success=True,
                    result=result,
                    attempts=attempt + 1,
                    total_delay=total_delay,
                    last_error=None,
                )

            except Exception as e:
                last_error = e

                # RETRY_001: terminal, échec immédiat
                if not self.is_retryable(e, retry_config):
                    return RetryResult(
                        success=False,
                        result=None,
                        attempts=attempt + 1,
                        total_delay=total_delay,
                        last_error=e,
                    )

                if attempt < retry_config.max_attempts - 1:
                    self._retry_stats["total_retries"] += 1
                    delay = self.calculate_delay(attempt, retry_config, e)
                    total_delay += delay
                    self._logger.warn(
                        "Retrying after retryable error",
                        attempt=attempt + 1,
                        max_attempts=retry_config.max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

        # RETRY_004: toutes les tentatives échouées
        self._retry_stats["failed_retries"] += 1

        return RetryResult(
            success=False,
            result=None,
            attempts=retry_config.max_attempts,
            total_delay=total_delay,
            last_error=last_error,
        )

    async def call(
        self,
        func: Callable[..., T],
        *args: Any,
        config: Optional[RetryConfig] = None,
        **kwargs: Any,
    ) -> Any:
        """
        Comme execute_with_retry mais retourne la valeur directement.

        Raises:
            Exception: La dernière erreur, inchangée
        """
        result = await self.execute_with_retry(func, *args, config=config, **kwargs)
        if not result.success and result.last_error is not None:
            raise result.last_error
        return result.result

    def calculate_delay(
        self, attempt: int, config: RetryConfig, error: Optional[Exception] = None
    ) -> float:
        """
        RETRY_003: Calcule délai backoff exponentiel.

        Formula: min(initial * (base ^ attempt), max_delay)
        Un Retry-After (429) relève le délai, toujours dans la limite max_delay.

        Args:
            attempt: Numéro de tentative (0-indexed)
            config: Configuration retry
            error: Erreur de la tentative

        Returns:
            Délai en secondes
        """
        delay = config.initial_delay * (config.exponential_base**attempt)
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            delay = max(delay, error.retry_after)
        return min(delay, config.max_delay)

    def is_retryable(self, error: Exception, config: RetryConfig) -> bool:
        """
        Vérifie si exception est retryable.

        - ApiError: selon sa catégorie (RETRY_001, RETRY_002)
        - Autres: si instance de config.retryable_exceptions
        """
        if isinstance(error, ApiError):
            return error.retryable
        return isinstance(error, config.retryable_exceptions)

    def get_retry_stats(self) -> Dict[str, int]:
        """
        Retourne les statistiques de retry.

        Returns:
            Dict avec total_retries, successful_retries, failed_retries
        """
        return dict(self._retry_stats)

    def reset_stats(self) -> None:
        """Remet les statistiques à zéro."""
        self._retry_stats = {
            "total_retries": 0,
            "successful_retries": 0,
            "failed_retries": 0,
        }
