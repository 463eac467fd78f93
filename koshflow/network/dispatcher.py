"""
KOSHFLOW Client - Network - Request Dispatcher

Envoi d'une requête HTTP unique avec injection du token Bearer.

Invariants:
    NET_001: Header Authorization Bearer injecté si un token est présent
    NET_002: Content-Type application/json sur chaque requête
    NET_003: Erreur réseau distincte des erreurs HTTP
    NET_004: Toute réponse non-2xx devient une erreur avec status, code, details
"""

from typing import Any, Dict, Optional

import httpx

from ..logging import StructuredLogger
from .errors import InvalidResponseError, NetworkError, error_from_response
from .interfaces import IRequestDispatcher, RequestAttempt, TimeoutConfig


class RequestDispatcher(IRequestDispatcher):
    """
    Dispatcher HTTP basé sur httpx.AsyncClient.

    Aucun retry à ce niveau: le cycle 401 → refresh → rejeu est piloté par
    ApiClient, le retry avec backoff par RetryHandler.

    Example:
        async with RequestDispatcher("http://localhost:3001/api") as dispatcher:
            profile = await dispatcher.dispatch(RequestAttempt("/auth/me"), token)
    """

    DEFAULT_HEADERS: Dict[str, str] = {
        "Content-Type": "application/json",  # NET_002
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        timeout_config: Optional[TimeoutConfig] = None,
        logger: Optional[StructuredLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url: URL de base de l'API (ex: http://localhost:3001/api)
            timeout_config: Timeouts connexion / requête
            logger: Logger structuré
            transport: Transport httpx (MockTransport pour tests)

        Raises:
            ValueError: Si base_url vide
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")

        self._base_url = base_url.strip().rstrip("/")
        self._timeouts = timeout_config or TimeoutConfig()
        self._logger = logger or StructuredLogger("koshflow.dispatcher")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                self._timeouts.request_timeout,
                connect=self._timeouts.connection_timeout,
            ),
            transport=transport,
        )
        self._request_count = 0

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def request_count(self) -> int:
        """Nombre de requêtes envoyées (réponse reçue ou non)."""
        return self._request_count

    def build_url(self, endpoint: str) -> str:
        return f"{self._base_url}{endpoint}"

    def build_headers(
        self, attempt: RequestAttempt, access_token: Optional[str] = None
    ) -> Dict[str, str]:
        """
        Construit les headers: défauts, Bearer puis surcharges de l'appelant.

        NET_001: Authorization seulement si token présent et requête authentifiée.
        """
        headers = dict(self.DEFAULT_HEADERS)
        if attempt.authenticated and access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        if attempt.headers:
            headers.update(attempt.headers)
        return headers

    async def dispatch(self, attempt: RequestAttempt, access_token: Optional[str] = None) -> Any:
        """
        Envoie la requête et décode le JSON.

        Returns:
            Corps JSON (None si réponse vide)

        Raises:
            NetworkError: Aucune réponse (NET_003)
            ApiError: Réponse non-2xx (NET_004)
            InvalidResponseError: Corps 2xx non JSON
        """
        url = self.build_url(attempt.endpoint)
        headers = self.build_headers(attempt, access_token)
        log = self._logger.with_context()
        method = attempt.method.value

        log.debug(
            "API request",
            method=method,
            url=url,
            retry_count=attempt.retry_count,
            headers=headers,
        )

        self._request_count += 1
        try:
            response = await self._client.request(
                method,
                url,
                json=attempt.json,
                params=self._clean_params(attempt.params),
                headers=headers,
            )
        except httpx.TransportError as e:
            log.error("API request failed", method=method, url=url, reason=repr(e))
            raise NetworkError(cause=repr(e)) from e

        log.debug("API response", method=method, url=url, status=response.status_code)

        if not response.is_success:
            error = error_from_response(
                response.status_code,
                response.reason_phrase,
                self._decode_body(response),
                response.headers,
            )
            log.warn(
                "API error response",
                method=method,
                url=url,
                status=error.status,
                kind=error.kind.value,
                code=error.code,
            )
            raise error

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            raise InvalidResponseError(
                f"Invalid JSON in response from {attempt.endpoint}",
                status=response.status_code,
            )

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Retire les filtres None (équivalent des paramètres non renseignés)."""
        if not params:
            return None
        cleaned = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            cleaned[key] = value
        return cleaned or None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RequestDispatcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
