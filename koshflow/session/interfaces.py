"""
KOSHFLOW Client - Session - Interfaces

Paire de tokens et contrats de stockage.

Invariants:
    SESS_001: Une seule paire de tokens courante par instance client
    SESS_002: Remplacement atomique de la paire, jamais partiel
    SESS_003: Token None efface aussi la valeur persistée
    SESS_004: Tokens persistés sous les clés 'token' et 'refreshToken'
    SESS_005: Tokens opaques, aucune validation côté client
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# SESS_004: clés de stockage durable
ACCESS_TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refreshToken"


class TokenPair(BaseModel):
    """
    Paire access/refresh renvoyée par login, register et refresh.

    Immuable: une mise à jour remplace la paire entière (SESS_002).
    Les valeurs sont opaques (SESS_005).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(alias="accessToken", min_length=1)
    refresh_token: str = Field(alias="refreshToken", min_length=1)


class ITokenStorage(ABC):
    """Stockage clé/valeur durable, hors mémoire du processus."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Retourne la valeur ou None si absente."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Écrit une valeur."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Supprime une clé (sans erreur si absente)."""
        pass

    def update(self, values: Dict[str, Optional[str]]) -> None:
        """
        Écrit plusieurs clés; None supprime la clé.

        Les backends capables d'une écriture unique surchargent cette méthode.
        """
        for key, value in values.items():
            if value is None:
                self.delete(key)
            else:
                self.set(key, value)


class ITokenStore(ABC):
    """Source de vérité de la paire de tokens courante."""

    @property
    @abstractmethod
    def access_token(self) -> Optional[str]:
        pass

    @property
    @abstractmethod
    def refresh_token(self) -> Optional[str]:
        pass

    @abstractmethod
    def set_access_token(self, token: Optional[str]) -> None:
        """Stocke ou efface (None) l'access token, mémoire et stockage."""
        pass

    @abstractmethod
    def set_refresh_token(self, token: Optional[str]) -> None:
        """Stocke ou efface (None) le refresh token, mémoire et stockage."""
        pass

    @abstractmethod
    def set_tokens(self, pair: TokenPair) -> None:
        """SESS_002: Remplace la paire complète."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Efface les deux tokens."""
        pass

    @abstractmethod
    def get_pair(self) -> Optional[TokenPair]:
        """Paire courante, None si l'un des deux tokens manque."""
        pass

    @abstractmethod
    def has_session(self) -> bool:
        """True si les deux tokens sont présents."""
        pass
