"""
KOSHFLOW Client - Client

Client API authentifié et session utilisateur:
- ApiClient: requêtes, cycle 401 → refresh → rejeu (REFR_004-006)
- Resources: contacts, produits, transactions, taxes, comptes, rapports
- AuthSession: login, logout, restauration de session (SESS_006)
"""

from .models import (
    UserRole,
    User,
    Company,
    Profile,
    LoginResult,
    RegistrationRequest,
    TwoFactorSetup,
)
from .resources import (
    Resource,
    CrudResource,
    ContactsResource,
    ProductsResource,
    TransactionsResource,
    TaxesResource,
    AccountsResource,
    ReportsResource,
)
from .api_client import ApiClient
from .auth_session import AuthSession

__all__ = [
    # Models
    "UserRole",
    "User",
    "Company",
    "Profile",
    "LoginResult",
    "RegistrationRequest",
    "TwoFactorSetup",
    # Resources
    "Resource",
    "CrudResource",
    "ContactsResource",
    "ProductsResource",
    "TransactionsResource",
    "TaxesResource",
    "AccountsResource",
    "ReportsResource",
    # Implementations
    "ApiClient",
    "AuthSession",
]
