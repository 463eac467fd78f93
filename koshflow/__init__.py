"""
KOSHFLOW Client

Client Python de l'API KoshFlow: paire de tokens, refresh single-flight,
retry avec backoff et session utilisateur.
"""

from .client import ApiClient, AuthSession
from .core import ClientConfig, ConfigLoader

__version__ = "0.1.0"

__all__ = [
    "ApiClient",
    "AuthSession",
    "ClientConfig",
    "ConfigLoader",
    "__version__",
]
