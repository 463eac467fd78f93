"""
KOSHFLOW Client - Session

Paire de tokens courante et stockage durable.

Invariants couverts:
- SESS_001: Une seule paire de tokens courante par instance client
- SESS_002: Remplacement atomique de la paire, jamais partiel
- SESS_003: Token None efface aussi la valeur persistée
- SESS_004: Tokens persistés sous les clés 'token' et 'refreshToken'
- SESS_005: Tokens opaques, aucune validation côté client
"""

from .interfaces import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    # Data classes
    TokenPair,
    # Interfaces
    ITokenStorage,
    ITokenStore,
)
from .storage import (
    MemoryTokenStorage,
    FileTokenStorage,
    TokenStorageError,
)
from .token_store import TokenStore

__all__ = [
    "ACCESS_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
    # Data classes
    "TokenPair",
    # Interfaces
    "ITokenStorage",
    "ITokenStore",
    # Implementations
    "MemoryTokenStorage",
    "FileTokenStorage",
    "TokenStore",
    # Exceptions
    "TokenStorageError",
]
