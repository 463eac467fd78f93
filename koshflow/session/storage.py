"""
KOSHFLOW Client - Session - Token Storage

Backends de stockage durable pour la paire de tokens.

- MemoryTokenStorage: dict en mémoire (tests, scripts ponctuels)
- FileTokenStorage: fichier JSON, réécriture atomique, chiffrement
  Fernet optionnel au repos
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from .interfaces import ITokenStorage


class TokenStorageError(Exception):
    """Erreur de lecture/écriture du stockage des tokens."""

    pass


class MemoryTokenStorage(ITokenStorage):
    """Stockage en mémoire. Ne survit pas au processus."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        """Copie du contenu (pour tests)."""
        return dict(self._data)


class FileTokenStorage(ITokenStorage):
    """
    Stockage dans un fichier JSON.

    Chaque écriture remplace le fichier via un fichier temporaire du même
    répertoire puis os.replace, de sorte qu'un lecteur ne voit jamais un
    fichier à moitié écrit. Avec une clé Fernet, le contenu est chiffré.

    Example:
        key = Fernet.generate_key()
        storage = FileTokenStorage("~/.koshflow/session.json", encryption_key=key)
        storage.set("token", "eyJ...")
    """

    def __init__(
        self,
        path: Union[str, Path],
        encryption_key: Optional[Union[str, bytes]] = None,
    ) -> None:
        """
        Args:
            path: Chemin du fichier de session
            encryption_key: Clé Fernet (urlsafe base64) pour chiffrer au repos

        Raises:
            TokenStorageError: Si la clé de chiffrement est invalide
        """
        self._path = Path(path).expanduser()
        self._fernet: Optional[Fernet] = None
        if encryption_key:
            try:
                self._fernet = Fernet(encryption_key)
            except (ValueError, TypeError) as e:
                raise TokenStorageError(f"Invalid encryption key: {e}")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def encrypted(self) -> bool:
        return self._fernet is not None

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        if data.get(key) == value:
            return
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key not in data:
            return
        del data[key]
        self._write(data)

    def update(self, values: Dict[str, Optional[str]]) -> None:
        """Applique toutes les modifications en une seule réécriture du fichier."""
        data = self._read()
        changed = dict(data)
        for key, value in values.items():
            if value is None:
                changed.pop(key, None)
            else:
                changed[key] = value
        if changed != data:
            self._write(changed)

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}

        try:
            raw = self._path.read_bytes()
        except OSError as e:
            raise TokenStorageError(f"Cannot read token file {self._path}: {e}")

        if not raw:
            return {}

        if self._fernet is not None:
            try:
                raw = self._fernet.decrypt(raw)
            except InvalidToken:
                raise TokenStorageError(
                    f"Token file {self._path} cannot be decrypted with the configured key"
                )

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise TokenStorageError(f"Corrupted token file {self._path}: {e}")

        if not isinstance(data, dict):
            raise TokenStorageError(f"Corrupted token file {self._path}: not an object")

        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: Dict[str, str]) -> None:
        payload = json.dumps(data, sort_keys=True).encode("utf-8")
        if self._fernet is not None:
            payload = self._fernet.encrypt(payload)

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".tokens-", dir=str(self._path.parent)
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(payload)
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self._path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise TokenStorageError(f"Cannot write token file {self._path}: {e}")
