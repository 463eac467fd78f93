"""
KOSHFLOW Client - API Client

Client API authentifié: dispatch, cycle 401 → refresh → rejeu unique,
retry avec backoff pour les endpoints métier.

Invariants:
    REFR_004: Requête rejouée au plus une fois après refresh
    REFR_005: 401 sur une requête déjà rejouée = erreur terminale
    REFR_006: Échec refresh = effacement des tokens et session expirée
"""

import inspect
from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from ..core.interfaces import ClientConfig
from ..logging import LogConfig, LogLevel, StructuredLogger
from ..network.dispatcher import RequestDispatcher
from ..network.errors import AuthorizationError, InvalidResponseError
from ..network.interfaces import (
    HttpMethod,
    IRequestDispatcher,
    RequestAttempt,
    RetryConfig,
    TimeoutConfig,
)
from ..network.refresh_coordinator import RefreshCoordinator
from ..network.retry_handler import RetryHandler
from ..session.interfaces import ITokenStorage, TokenPair
from ..session.storage import FileTokenStorage, MemoryTokenStorage
from ..session.token_store import TokenStore
from .models import LoginResult, Profile, RegistrationRequest, TwoFactorSetup
from .resources import (
    AccountsResource,
    ContactsResource,
    ProductsResource,
    ReportsResource,
    TaxesResource,
    TransactionsResource,
)

# Reçoit login_path; peut être sync ou async
SessionExpiredHandler = Callable[[str], Any]

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiClient:
    """
    Client de l'API KoshFlow.

    Chaque instance possède sa propre paire de tokens (TokenStore) et son
    propre coordinateur de refresh: deux clients d'un même processus ne
    partagent aucun état.

    Example:
        async with ApiClient(ConfigLoader().default()) as client:
            await client.login("demo@koshflow.com", "demo123")
            contacts = await client.contacts.list(search="Sharma")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        token_store: Optional[TokenStore] = None,
        dispatcher: Optional[IRequestDispatcher] = None,
        retry_handler: Optional[RetryHandler] = None,
        logger: Optional[StructuredLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            config: Configuration (défaut: ClientConfig())
            token_store: Store de tokens (défaut: selon config.token_file)
            dispatcher: Dispatcher HTTP (défaut: RequestDispatcher)
            retry_handler: Politique de retry (défaut: selon config.retry)
            logger: Logger structuré
            transport: Transport httpx pour le dispatcher par défaut (tests)
        """
        self._config = config or ClientConfig()
        self._logger = logger or StructuredLogger(
            "koshflow.client",
            LogConfig(min_level=LogLevel.from_name(self._config.log_level)),
        )
        self._store = token_store or TokenStore(self._build_storage())
        self._dispatcher = dispatcher or RequestDispatcher(
            self._config.base_url,
            TimeoutConfig(
                connection_timeout=self._config.connect_timeout,
                request_timeout=self._config.request_timeout,
            ),
            logger=self._logger,
            transport=transport,
        )
        self._retry = retry_handler or RetryHandler(
            RetryConfig(
                max_attempts=self._config.retry.max_attempts,
                initial_delay=self._config.retry.initial_delay,
                max_delay=self._config.retry.max_delay,
                exponential_base=self._config.retry.exponential_base,
            ),
            logger=self._logger,
        )
        self._refresh = RefreshCoordinator(
            self._store,
            self._call_refresh_endpoint,
            logger=self._logger,
            on_session_expired=self._notify_session_expired,
        )
        self._session_expired_handler: Optional[SessionExpiredHandler] = None

        self.contacts = ContactsResource(self)
        self.products = ProductsResource(self)
        self.transactions = TransactionsResource(self)
        self.taxes = TaxesResource(self)
        self.accounts = AccountsResource(self)
        self.reports = ReportsResource(self)

    def _build_storage(self) -> ITokenStorage:
        if self._config.token_file:
            return FileTokenStorage(
                self._config.token_file, self._config.token_encryption_key
            )
        return MemoryTokenStorage()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def token_store(self) -> TokenStore:
        return self._store

    @property
    def refresh_coordinator(self) -> RefreshCoordinator:
        return self._refresh

    @property
    def retry_handler(self) -> RetryHandler:
        return self._retry

    @property
    def logger(self) -> StructuredLogger:
        return self._logger

    def set_session_expired_handler(self, handler: Optional[SessionExpiredHandler]) -> None:
        """Définit l'action après expiration de session (redirection login)."""
        self._session_expired_handler = handler

    async def _notify_session_expired(self) -> None:
        self._logger.warn("Session expired", login_path=self._config.login_path)
        if self._session_expired_handler is None:
            return
        outcome = self._session_expired_handler(self._config.login_path)
        if inspect.isawaitable(outcome):
            await outcome

    # ══════════════════════════════════════════════════════════════════════
    # REQUÊTES
    # ══════════════════════════════════════════════════════════════════════

    async def request(
        self,
        endpoint: str,
        method: Union[str, HttpMethod] = HttpMethod.GET,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Envoie une requête avec au plus un cycle refresh + rejeu.

        Args:
            endpoint: Chemin relatif à base_url ("/contacts")
            method: Méthode HTTP
            json: Corps JSON
            params: Paramètres de query (None ignorés)
            headers: Headers supplémentaires (prioritaires)
            authenticated: False pour les endpoints sans Bearer (login...)

        Returns:
            Corps JSON décodé

        Raises:
            SessionExpiredError: Refresh échoué (REFR_006)
            AuthorizationError: 401 terminal (REFR_005)
            ApiError: Autres erreurs HTTP ou réseau
        """
        attempt = RequestAttempt(
            endpoint=endpoint,
            method=HttpMethod(method.upper()) if isinstance(method, str) else method,
            json=json,
            params=params,
            headers=headers,
            authenticated=authenticated,
        )
        return await self._send(attempt)

    async def _send(self, attempt: RequestAttempt) -> Any:
        access_token = self._store.access_token
        try:
            return await self._dispatcher.dispatch(attempt, access_token)
        except AuthorizationError:
            if not (
                attempt.authenticated
                and attempt.can_refresh
                and self._store.refresh_token
            ):
                raise

        pair = await self._refresh.refresh(stale_access_token=access_token)
        # REFR_004: rejeu unique; un nouveau 401 remonte tel quel (REFR_005)
        return await self._dispatcher.dispatch(attempt.next_attempt(), pair.access_token)

    async def request_with_retry(
        self,
        endpoint: str,
        method: Union[str, HttpMethod] = HttpMethod.GET,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        config: Optional[RetryConfig] = None,
    ) -> Any:
        """
        request() enveloppé dans la politique de retry (RETRY_001-004).

        Raises:
            ApiError: Dernière erreur, inchangée
        """
        return await self._retry.call(
            self.request,
            endpoint,
            method=method,
            json=json,
            params=params,
            headers=headers,
            config=config,
        )

    async def _call_refresh_endpoint(self, refresh_token: str) -> TokenPair:
        """POST /auth/refresh, sans Bearer. Lève si la réponse est invalide."""
        body = await self._dispatcher.dispatch(
            RequestAttempt(
                endpoint="/auth/refresh",
                method=HttpMethod.POST,
                json={"refreshToken": refresh_token},
                authenticated=False,
            )
        )
        return self._parse(TokenPair, body, "/auth/refresh")

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, endpoint: str) -> ModelT:
        """
        Valide un corps 2xx.

        Raises:
            InvalidResponseError: Corps non conforme au modèle attendu
        """
        try:
            return model.model_validate(data or {})
        except PydanticValidationError as e:
            raise InvalidResponseError(
                f"Unexpected response body from {endpoint}",
            ) from e

    # ══════════════════════════════════════════════════════════════════════
    # AUTH
    # ══════════════════════════════════════════════════════════════════════

    async def login(
        self, email: str, password: str, two_factor_code: Optional[str] = None
    ) -> LoginResult:
        """
        POST /auth/login. Stocke la paire si le backend en renvoie une.

        Returns:
            LoginResult (requires_2fa=True si un code est attendu)
        """
        payload: Dict[str, Any] = {"email": email, "password": password}
        if two_factor_code:
            payload["twoFactorCode"] = two_factor_code

        data = await self.request(
            "/auth/login", HttpMethod.POST, json=payload, authenticated=False
        )
        result = self._parse(LoginResult, data, "/auth/login")
        pair = result.token_pair()
        if pair is not None:
            self._store.set_tokens(pair)
        return result

    async def register(
        self, registration: Union[RegistrationRequest, Dict[str, Any]]
    ) -> LoginResult:
        """POST /auth/register. Stocke la paire renvoyée (login automatique)."""
        if not isinstance(registration, RegistrationRequest):
            registration = RegistrationRequest.model_validate(registration)

        data = await self.request(
            "/auth/register",
            HttpMethod.POST,
            json=registration.to_payload(),
            authenticated=False,
        )
        result = self._parse(LoginResult, data, "/auth/register")
        pair = result.token_pair()
        if pair is not None:
            self._store.set_tokens(pair)
        return result

    async def refresh_tokens(self) -> TokenPair:
        """Force un refresh (single-flight avec les refresh en cours)."""
        return await self._refresh.refresh()

    async def get_profile(self) -> Profile:
        """GET /auth/me."""
        data = await self.request("/auth/me")
        return self._parse(Profile, data, "/auth/me")

    async def logout(self) -> None:
        """
        POST /auth/logout, au mieux. Les tokens locaux sont effacés même si
        l'appel échoue; l'erreur est propagée à l'appelant.
        """
        try:
            if self._store.access_token:
                await self.request("/auth/logout", HttpMethod.POST)
        finally:
            self._store.clear()

    async def setup_2fa(self, password: str) -> TwoFactorSetup:
        data = await self.request("/auth/2fa/setup", HttpMethod.POST, json={"password": password})
        return self._parse(TwoFactorSetup, data, "/auth/2fa/setup")

    async def verify_2fa(self, code: str) -> Any:
        return await self.request("/auth/2fa/verify", HttpMethod.POST, json={"token": code})

    async def disable_2fa(self, code: str) -> Any:
        return await self.request("/auth/2fa/disable", HttpMethod.POST, json={"token": code})

    async def change_password(self, current_password: str, new_password: str) -> Any:
        return await self.request(
            "/auth/change-password",
            HttpMethod.POST,
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    # ══════════════════════════════════════════════════════════════════════
    # CYCLE DE VIE
    # ══════════════════════════════════════════════════════════════════════

    async def aclose(self) -> None:
        await self._dispatcher.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
