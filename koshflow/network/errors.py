"""
KOSHFLOW Client - Network - Errors

Taxonomie des erreurs du client API.

Toute erreur porte un champ status (None pour une erreur réseau) et un
ErrorKind qui détermine si l'appelant peut la rejouer.

Invariants:
    NET_003: Erreur réseau distincte des erreurs HTTP
    NET_004: Toute réponse non-2xx devient une erreur avec status, code, details
    NET_005: Message par défaut dérivé de la ligne de statut HTTP
    RETRY_001: 4xx hors 429 = terminal, jamais rejoué
    RETRY_002: 429, 5xx et erreurs réseau sont rejouables
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type


class ErrorKind(Enum):
    """Catégories d'erreurs exposées à l'appelant."""

    NETWORK = "network"
    BAD_REQUEST = "bad_request"
    AUTHORIZATION = "authorization"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    CLIENT = "client"
    INVALID_RESPONSE = "invalid_response"


# RETRY_002
RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.RATE_LIMIT, ErrorKind.SERVER})

NETWORK_ERROR_MESSAGE = (
    "Network error. Please check your connection and ensure the backend server is running."
)
SESSION_EXPIRED_MESSAGE = "Session expired. Please login again."


@dataclass(frozen=True)
class FieldError:
    """Erreur de validation sur un champ, telle que renvoyée par le backend."""

    field: str
    message: str
    value: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldError":
        return cls(
            field=str(data.get("field", "")),
            message=str(data.get("message", "")),
            value=data.get("value"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"field": self.field, "message": self.message}
        if self.value is not None:
            result["value"] = self.value
        return result


class ApiError(Exception):
    """
    Erreur d'un appel API.

    Attributes:
        message: Message lisible (corps de réponse ou ligne de statut)
        status: Code HTTP, None si aucune réponse reçue
        code: Code applicatif renvoyé par le backend
        details: Erreurs par champ, transmises telles quelles
        kind: Catégorie (détermine retryable)
    """

    default_kind: ErrorKind = ErrorKind.CLIENT

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[List[FieldError]] = None,
        kind: Optional[ErrorKind] = None,
    ) -> None:
        self.message = message
        self.status = status
        self.code = code
        self.details: List[FieldError] = list(details or [])
        self.kind = kind or self.default_kind
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """RETRY_001/RETRY_002: True si l'appelant peut rejouer l'opération."""
        return self.kind in RETRYABLE_KINDS

    def field_errors(self) -> Dict[str, str]:
        """Mapping champ -> message (dernier message si doublon)."""
        return {d.field: d.message for d in self.details}

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "kind": self.kind.value,
            "status": self.status,
            "message": self.message,
        }
        if self.code:
            result["code"] = self.code
        if self.details:
            result["details"] = [d.to_dict() for d in self.details]
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, message={self.message!r})"


class NetworkError(ApiError):
    """NET_003: Aucune réponse reçue (connexion refusée, timeout, DNS...)."""

    default_kind = ErrorKind.NETWORK

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE, cause: Optional[str] = None) -> None:
        self.cause = cause
        super().__init__(message, status=None)


class BadRequestError(ApiError):
    default_kind = ErrorKind.BAD_REQUEST


class AuthorizationError(ApiError):
    """401 terminal: rejeu déjà effectué ou aucun refresh token."""

    default_kind = ErrorKind.AUTHORIZATION


class SessionExpiredError(AuthorizationError):
    """Le refresh a échoué: la session locale a été détruite."""

    def __init__(self, message: str = SESSION_EXPIRED_MESSAGE, code: Optional[str] = None) -> None:
        super().__init__(message, status=401, code=code or "SESSION_EXPIRED")


class PermissionDeniedError(ApiError):
    default_kind = ErrorKind.FORBIDDEN


class NotFoundError(ApiError):
    default_kind = ErrorKind.NOT_FOUND


class ConflictError(ApiError):
    default_kind = ErrorKind.CONFLICT


class ValidationError(ApiError):
    """4xx avec erreurs par champ (details)."""

    default_kind = ErrorKind.VALIDATION


class RateLimitError(ApiError):
    """429: rejouable, éventuellement après Retry-After secondes."""

    default_kind = ErrorKind.RATE_LIMIT

    def __init__(self, *args: Any, retry_after: Optional[float] = None, **kwargs: Any) -> None:
        self.retry_after = retry_after
        super().__init__(*args, **kwargs)


class ServerError(ApiError):
    default_kind = ErrorKind.SERVER


class InvalidResponseError(ApiError):
    """Réponse 2xx dont le corps n'est pas du JSON ou pas le modèle attendu."""

    default_kind = ErrorKind.INVALID_RESPONSE


ERROR_CLASSES: Dict[ErrorKind, Type[ApiError]] = {
    ErrorKind.BAD_REQUEST: BadRequestError,
    ErrorKind.AUTHORIZATION: AuthorizationError,
    ErrorKind.FORBIDDEN: PermissionDeniedError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.SERVER: ServerError,
    ErrorKind.CLIENT: ApiError,
}


def classify_status(status: int, has_details: bool = False) -> ErrorKind:
    """
    Catégorise un statut HTTP d'erreur.

    Args:
        status: Code HTTP (non-2xx)
        has_details: True si le corps contient des erreurs par champ

    Returns:
        ErrorKind correspondant
    """
    if status >= 500:
        return ErrorKind.SERVER
    if status == 401:
        return ErrorKind.AUTHORIZATION
    if status == 403:
        return ErrorKind.FORBIDDEN
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 409:
        return ErrorKind.CONFLICT
    if status == 429:
        return ErrorKind.RATE_LIMIT
    if status == 422:
        return ErrorKind.VALIDATION
    if 400 <= status < 500 and has_details:
        return ErrorKind.VALIDATION
    if status == 400:
        return ErrorKind.BAD_REQUEST
    return ErrorKind.CLIENT


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After en secondes; les dates HTTP sont ignorées."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def error_from_response(
    status: int,
    reason: str,
    body: Any,
    headers: Optional[Mapping[str, str]] = None,
) -> ApiError:
    """
    NET_004/NET_005: Construit l'erreur typée d'une réponse non-2xx.

    Args:
        status: Code HTTP
        reason: Phrase de statut ("Unprocessable Entity")
        body: Corps JSON décodé, ou None si absent / non JSON
        headers: Headers de réponse (Retry-After)

    Returns:
        Instance de la sous-classe d'ApiError correspondant au statut
    """
    payload: Mapping[str, Any] = body if isinstance(body, Mapping) else {}

    raw_details = payload.get("details")
    details: List[FieldError] = []
    if isinstance(raw_details, list):
        details = [FieldError.from_dict(d) for d in raw_details if isinstance(d, Mapping)]

    message = payload.get("message") or payload.get("error")
    if not message or not isinstance(message, str):
        message = f"HTTP {status}: {reason}" if reason else f"HTTP {status}"

    code = payload.get("code")
    kind = classify_status(status, has_details=bool(details))
    error_class = ERROR_CLASSES[kind]

    kwargs: Dict[str, Any] = {
        "status": status,
        "code": str(code) if code is not None else None,
        "details": details,
        "kind": kind,
    }
    if error_class is RateLimitError:
        kwargs["retry_after"] = parse_retry_after((headers or {}).get("retry-after"))

    return error_class(message, **kwargs)
