"""
KOSHFLOW Client - Client - Auth Session

État de session utilisateur au-dessus d'ApiClient: utilisateur courant,
société, dernière erreur.

Invariants:
    SESS_006: Les deux tokens présents au démarrage = vérification du profil
"""

from typing import Any, Dict, Optional, Union

from ..network.errors import ApiError
from .api_client import ApiClient
from .models import Company, LoginResult, RegistrationRequest, TwoFactorSetup, User


class AuthSession:
    """
    Façade de session.

    Les erreurs des opérations sont enregistrées dans `error` puis propagées,
    sauf logout (toujours silencieux) et restore (retourne False).

    Example:
        session = AuthSession(client)
        if not await session.restore():
            await session.login("demo@koshflow.com", "demo123")
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._logger = client.logger
        self._user: Optional[User] = None
        self._company: Optional[Company] = None
        self._error: Optional[str] = None

    @property
    def client(self) -> ApiClient:
        return self._client

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def company(self) -> Optional[Company]:
        return self._company

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None and self._client.token_store.has_session()

    @property
    def is_2fa_enabled(self) -> bool:
        return self._user is not None and self._user.is_two_factor_enabled

    def _reset(self) -> None:
        self._user = None
        self._company = None

    async def restore(self) -> bool:
        """
        Reprend une session persistée en vérifiant le profil.

        Returns:
            True si la session est valide
        """
        self._error = None
        if not self._client.token_store.has_session():
            return False

        try:
            profile = await self._client.get_profile()
        except ApiError as e:
            self._logger.warn("Stored session rejected", reason=e.message, status=e.status)
            self._client.token_store.clear()
            self._reset()
            self._error = e.message or "Session expired"
            return False

        self._user = profile.user
        self._company = profile.company
        self._logger.info("Session restored", user_id=profile.user.id)
        return True

    async def login(
        self, email: str, password: str, two_factor_code: Optional[str] = None
    ) -> LoginResult:
        """
        Raises:
            ApiError: Identifiants refusés ou erreur réseau
        """
        self._error = None
        try:
            result = await self._client.login(email, password, two_factor_code)
        except ApiError as e:
            self._error = e.message or "Login failed"
            self._logger.warn("Login failed", email=email, status=e.status)
            raise

        if result.requires_2fa:
            self._logger.info("Login requires two-factor code", email=email)
            return result

        self._user = result.user
        self._company = result.company
        self._logger.info("Login successful", user_id=result.user.id if result.user else None)
        return result

    async def register(
        self, registration: Union[RegistrationRequest, Dict[str, Any]]
    ) -> LoginResult:
        self._error = None
        try:
            result = await self._client.register(registration)
        except ApiError as e:
            self._error = e.message or "Registration failed"
            self._logger.warn("Registration failed", status=e.status)
            raise

        self._user = result.user
        self._company = result.company
        self._logger.info("Registration successful", user_id=result.user.id if result.user else None)
        return result

    async def logout(self) -> None:
        """Déconnexion au mieux: l'état local est toujours effacé."""
        try:
            await self._client.logout()
        except ApiError as e:
            self._logger.warn("Logout call failed", reason=e.message, status=e.status)
        finally:
            self._reset()
            self._error = None
        self._logger.info("Logged out")

    async def reload_profile(self) -> None:
        """Recharge /auth/me. En cas d'échec, déconnecte."""
        self._error = None
        try:
            profile = await self._client.get_profile()
        except ApiError as e:
            await self.logout()
            # logout() remet error à None
            self._error = e.message or "Session expired"
            return

        self._user = profile.user
        self._company = profile.company

    async def change_password(self, current_password: str, new_password: str) -> None:
        self._error = None
        try:
            await self._client.change_password(current_password, new_password)
        except ApiError as e:
            self._error = e.message or "Password change failed"
            raise
        self._logger.info("Password changed")

    async def setup_2fa(self, password: str) -> TwoFactorSetup:
        self._error = None
        try:
            return await self._client.setup_2fa(password)
        except ApiError as e:
            self._error = e.message or "2FA setup failed"
            raise

    async def verify_2fa(self, code: str) -> None:
        self._error = None
        try:
            await self._client.verify_2fa(code)
        except ApiError as e:
            self._error = e.message or "2FA verification failed"
            raise
        self._logger.info("Two-factor authentication enabled")
        await self.reload_profile()

    async def disable_2fa(self, code: str) -> None:
        self._error = None
        try:
            await self._client.disable_2fa(code)
        except ApiError as e:
            self._error = e.message or "2FA disable failed"
            raise
        self._logger.info("Two-factor authentication disabled")
        await self.reload_profile()
