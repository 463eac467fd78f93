"""
KOSHFLOW Client - Network

Module réseau du client API avec:
- Dispatch HTTP avec token Bearer (NET_001-005)
- Refresh single-flight des tokens (REFR_001-006)
- Retry avec backoff exponentiel (RETRY_001-004)
"""

from .interfaces import (
    MAX_AUTH_RETRIES,
    # Enums
    HttpMethod,
    RefreshState,
    # Data classes
    RequestAttempt,
    TimeoutConfig,
    RetryConfig,
    RetryResult,
    # Interfaces
    IRequestDispatcher,
    IRefreshCoordinator,
    IRetryHandler,
)
from .errors import (
    ErrorKind,
    FieldError,
    ApiError,
    NetworkError,
    BadRequestError,
    AuthorizationError,
    SessionExpiredError,
    PermissionDeniedError,
    NotFoundError,
    ConflictError,
    ValidationError,
    RateLimitError,
    ServerError,
    InvalidResponseError,
    classify_status,
    error_from_response,
)
from .dispatcher import RequestDispatcher
from .refresh_coordinator import RefreshCoordinator
from .retry_handler import RetryHandler

__all__ = [
    "MAX_AUTH_RETRIES",
    # Enums
    "HttpMethod",
    "RefreshState",
    "ErrorKind",
    # Data classes
    "RequestAttempt",
    "TimeoutConfig",
    "RetryConfig",
    "RetryResult",
    "FieldError",
    # Interfaces
    "IRequestDispatcher",
    "IRefreshCoordinator",
    "IRetryHandler",
    # Implementations
    "RequestDispatcher",
    "RefreshCoordinator",
    "RetryHandler",
    # Functions
    "classify_status",
    "error_from_response",
    # Exceptions
    "ApiError",
    "NetworkError",
    "BadRequestError",
    "AuthorizationError",
    "SessionExpiredError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "RateLimitError",
    "ServerError",
    "InvalidResponseError",
]
