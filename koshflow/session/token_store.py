"""
KOSHFLOW Client - Session - Token Store

Source de vérité de la paire de tokens d'une instance client,
répliquée dans un stockage durable.

Invariants:
    SESS_001: Une seule paire de tokens courante par instance client
    SESS_002: Remplacement atomique de la paire, jamais partiel
    SESS_003: Token None efface aussi la valeur persistée
    SESS_004: Tokens persistés sous les clés 'token' et 'refreshToken'
"""

from typing import Optional

from .interfaces import (
    ACCESS_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    ITokenStorage,
    ITokenStore,
    TokenPair,
)
from .storage import MemoryTokenStorage


class TokenStore(ITokenStore):
    """
    Paire de tokens courante, injectable.

    Chaque ApiClient possède son propre TokenStore: plusieurs sessions
    isolées peuvent coexister dans un même processus.

    Les valeurs persistées sont relues à la construction, ce qui permet de
    reprendre une session après redémarrage.

    Example:
        store = TokenStore(FileTokenStorage("~/.koshflow/session.json"))
        store.set_tokens(TokenPair(access_token="a", refresh_token="r"))
        store.access_token  # "a"
    """

    def __init__(self, storage: Optional[ITokenStorage] = None) -> None:
        """
        Args:
            storage: Stockage durable (défaut: mémoire)
        """
        self._storage = storage or MemoryTokenStorage()
        self._access_token: Optional[str] = self._storage.get(ACCESS_TOKEN_KEY)
        self._refresh_token: Optional[str] = self._storage.get(REFRESH_TOKEN_KEY)

    @property
    def storage(self) -> ITokenStorage:
        return self._storage

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._refresh_token

    def set_access_token(self, token: Optional[str]) -> None:
        """
        Stocke ou efface l'access token.

        SESS_003: None (ou chaîne vide) supprime aussi la valeur persistée.
        """
        token = token or None
        self._access_token = token
        self._storage.update({ACCESS_TOKEN_KEY: token})

    def set_refresh_token(self, token: Optional[str]) -> None:
        """Stocke ou efface le refresh token (même contrat que l'access token)."""
        token = token or None
        self._refresh_token = token
        self._storage.update({REFRESH_TOKEN_KEY: token})

    def set_tokens(self, pair: TokenPair) -> None:
        """SESS_002: Remplace la paire entière, en mémoire puis en stockage."""
        self._access_token = pair.access_token
        self._refresh_token = pair.refresh_token
        self._storage.update(
            {
                ACCESS_TOKEN_KEY: pair.access_token,
                REFRESH_TOKEN_KEY: pair.refresh_token,
            }
        )

    def clear(self) -> None:
        """Efface les deux tokens (logout, échec de refresh)."""
        self._access_token = None
        self._refresh_token = None
        self._storage.update({ACCESS_TOKEN_KEY: None, REFRESH_TOKEN_KEY: None})

    def get_pair(self) -> Optional[TokenPair]:
        """Retourne la paire courante, ou None si incomplète."""
        if not self._access_token or not self._refresh_token:
            return None
        return TokenPair(
            access_token=self._access_token, refresh_token=self._refresh_token
        )

    def has_session(self) -> bool:
        """True si les deux tokens sont présents."""
        return self.get_pair() is not None
