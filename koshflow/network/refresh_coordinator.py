"""
KOSHFLOW Client - Network - Refresh Coordinator

Refresh single-flight des tokens.

Machine à états:

    IDLE --(401, refresh token présent, retry_count == 0)--> REFRESHING
    REFRESHING --(fin de l'appel amont, succès ou échec)--> IDLE

Pendant REFRESHING, tout nouvel appelant attend la même tâche en cours au
lieu de lancer un second appel /auth/refresh. Avec la rotation des refresh
tokens, deux appels concurrents s'invalideraient mutuellement.

Invariants:
    REFR_001: Un seul appel refresh amont quel que soit le nombre de 401
    REFR_002: Les appelants concurrents attendent le même refresh en cours
    REFR_003: Retour à IDLE à la fin du refresh, succès ou échec
    REFR_006: Échec refresh = effacement des tokens et session expirée
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, Optional

from ..logging import StructuredLogger
from ..session.interfaces import ITokenStore, TokenPair
from ..session.storage import TokenStorageError
from .errors import SessionExpiredError
from .interfaces import IRefreshCoordinator, RefreshState

RefreshFunc = Callable[[str], Awaitable[TokenPair]]
SessionExpiredCallback = Callable[[], Any]


class RefreshCoordinator(IRefreshCoordinator):
    """
    Coordinateur de refresh avec handle explicite de la tâche en cours.

    La tâche partagée n'est jamais annulée par l'annulation d'un appelant
    (asyncio.shield). L'état repasse à IDLE dans la tâche elle-même, avant
    que les appelants ne reprennent la main.

    Example:
        coordinator = RefreshCoordinator(token_store, refresh_func=call_refresh_endpoint)
        pair = await coordinator.refresh(stale_access_token=token_used)
    """

    def __init__(
        self,
        token_store: ITokenStore,
        refresh_func: RefreshFunc,
        logger: Optional[StructuredLogger] = None,
        on_session_expired: Optional[SessionExpiredCallback] = None,
    ) -> None:
        """
        Args:
            token_store: Store mis à jour après refresh
            refresh_func: Appel amont POST /auth/refresh (refresh token -> paire)
            logger: Logger structuré
            on_session_expired: Appelé (sync ou async) après un refresh échoué,
                typiquement la redirection vers l'écran de login
        """
        self._store = token_store
        self._refresh_func = refresh_func
        self._on_session_expired = on_session_expired
        self._logger = logger or StructuredLogger("koshflow.refresh")
        self._state = RefreshState.IDLE
        self._pending: Optional["asyncio.Task[TokenPair]"] = None
        self._stats: Dict[str, int] = {
            "refresh_calls": 0,
            "joined_waiters": 0,
            "failures": 0,
            "skipped_stale": 0,
        }

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def is_refreshing(self) -> bool:
        return self._state == RefreshState.REFRESHING

    async def refresh(self, stale_access_token: Optional[str] = None) -> TokenPair:
        """
        Obtient une paire fraîche.

        Cas traités:
            - REFRESHING: attache l'appelant à la tâche en cours (REFR_002)
            - IDLE et le token rejeté a déjà été remplacé par un refresh
              terminé: retourne la paire courante sans appel amont
            - IDLE sinon: démarre la tâche de refresh (REFR_001)

        Args:
            stale_access_token: Access token qui a reçu le 401

        Returns:
            Paire courante après refresh

        Raises:
            SessionExpiredError: Refresh impossible ou refusé (REFR_006)
        """
        if self._state == RefreshState.REFRESHING and self._pending is not None:
            self._stats["joined_waiters"] += 1
            self._logger.debug("Joining in-flight token refresh")
            return await asyncio.shield(self._pending)

        current = self._store.get_pair()
        if (
            stale_access_token is not None
            and current is not None
            and current.access_token != stale_access_token
        ):
            self._stats["skipped_stale"] += 1
            self._logger.debug("Access token already rotated, skipping refresh")
            return current

        self._state = RefreshState.REFRESHING
        self._pending = asyncio.ensure_future(self._run_refresh())
        return await asyncio.shield(self._pending)

    async def _run_refresh(self) -> TokenPair:
        """Corps de la tâche partagée. REFR_003: repasse à IDLE dans tous les cas."""
        try:
            return await self._perform_refresh()
        finally:
            self._state = RefreshState.IDLE
            self._pending = None

    async def _perform_refresh(self) -> TokenPair:
        refresh_token = self._store.refresh_token
        if not refresh_token:
            await self._teardown("no refresh token available")
            raise SessionExpiredError()

        self._stats["refresh_calls"] += 1
        self._logger.info("Refreshing access token")

        try:
            pair = await self._refresh_func(refresh_token)
        except Exception as e:
            await self._teardown(str(e), status=getattr(e, "status", None))
            raise SessionExpiredError() from e

        self._store.set_tokens(pair)
        self._logger.info("Access token refreshed")
        return pair

    async def _teardown(self, reason: str, status: Optional[int] = None) -> None:
        """
        REFR_006: efface la paire puis notifie l'expiration de session.

        Exécuté une seule fois par refresh échoué, quel que soit le nombre
        d'appelants en attente.
        """
        self._stats["failures"] += 1
        try:
            self._store.clear()
        except TokenStorageError as e:
            # La paire en mémoire est déjà effacée
            self._logger.error("Persisted tokens could not be cleared", reason=str(e))
        self._logger.error("Token refresh failed, session cleared", reason=reason, status=status)

        if self._on_session_expired is None:
            return
        try:
            outcome = self._on_session_expired()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self._logger.error("Session expired handler failed", reason=repr(e))

    def get_stats(self) -> Dict[str, int]:
        """
        Retourne les statistiques de refresh.

        Returns:
            Dict avec refresh_calls, joined_waiters, failures, skipped_stale
        """
        return dict(self._stats)

    def reset_stats(self) -> None:
        """Remet les statistiques à zéro."""
        for key in self._stats:
            self._stats[key] = 0
