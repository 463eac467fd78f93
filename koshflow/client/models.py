"""
KOSHFLOW Client - Client - Models

Modèles des payloads d'authentification, avec les alias camelCase du backend.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..session.interfaces import TokenPair


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    VIEWER = "VIEWER"
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"


class User(_WireModel):
    id: str
    name: str
    email: str
    role: UserRole = UserRole.VIEWER
    company_id: Optional[str] = Field(default=None, alias="companyId")
    last_login: Optional[str] = Field(default=None, alias="lastLogin")
    is_two_factor_enabled: bool = Field(default=False, alias="isTwoFactorEnabled")
    is_active: bool = Field(default=True, alias="isActive")


class Company(_WireModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None


class Profile(_WireModel):
    """Réponse de GET /auth/me."""

    user: User
    company: Optional[Company] = None


class LoginResult(_WireModel):
    """
    Réponse de /auth/login et /auth/register.

    Avec requires_2fa, le backend ne renvoie pas de tokens: le login doit
    être rejoué avec le code à usage unique.
    """

    user: Optional[User] = None
    company: Optional[Company] = None
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    message: Optional[str] = None
    requires_2fa: bool = Field(default=False, alias="requires2FA")

    def token_pair(self) -> Optional[TokenPair]:
        """Paire de tokens si les deux sont présents."""
        if not self.access_token or not self.refresh_token:
            return None
        return TokenPair(access_token=self.access_token, refresh_token=self.refresh_token)


class RegistrationRequest(_WireModel):
    """Inscription d'une société et de son administrateur."""

    company_name: str = Field(alias="companyName", min_length=1)
    company_email: str = Field(alias="companyEmail", min_length=3)
    admin_name: str = Field(alias="adminName", min_length=1)
    admin_email: str = Field(alias="adminEmail", min_length=3)
    password: str = Field(min_length=6)
    phone: Optional[str] = None
    gstin: Optional[str] = None
    pan: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class TwoFactorSetup(_WireModel):
    """Réponse de /auth/2fa/setup."""

    secret: str
    qr_code: Optional[str] = Field(default=None, alias="qrCode")
    manual_entry_key: Optional[str] = Field(default=None, alias="manualEntryKey")
