"""
KOSHFLOW Client - Fake Backend

Reproduit le contrat du backend KoshFlow au-dessus de httpx.MockTransport:
access tokens JWT (PyJWT), rotation des refresh tokens à chaque
/auth/refresh, réponses scriptées par endpoint.
"""

import asyncio
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

import httpx
import jwt

from koshflow.session import TokenPair
API_PREFIX = "/api"
JWT_SECRET = "test-secret-for-fake-backend"
DEMO_EMAIL = "demo@koshflow.com"
DEMO_PASSWORD = "demo123"
TWO_FACTOR_CODE = "123456"


class FakeBackend:
    """Backend KoshFlow en mémoire."""

    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {
            DEMO_EMAIL: {
                "id": "user-1",
                "name": "Demo Admin",
                "email": DEMO_EMAIL,
                "role": "ADMIN",
                "companyId": "company-1",
                "isTwoFactorEnabled": False,
                "isActive": True,
                "password": DEMO_PASSWORD,
            }
        }
        self.company: Dict[str, Any] = {
            "id": "company-1",
            "name": "KoshFlow Demo Pvt Ltd",
            "email": "accounts@koshflow.com",
            "gstin": "27AAAAA0000A1Z5",
        }
        self.valid_access: Set[str] = set()
        self.valid_refresh: Dict[str, str] = {}  # refresh token -> email
        self.refresh_delay: float = 0.0
        self.fail_refresh: bool = False
        self.refresh_calls: int = 0
        self.requests: List[httpx.Request] = []
        self._scripted: Dict[Tuple[str, str], List[Any]] = {}

    # ── Contrôle des tests ──────────────────────────────────────────────────

    def issue_pair(self, email: str = DEMO_EMAIL) -> TokenPair:
        """Émet une paire valide pour un utilisateur."""
        user = self.users[email]
        access = jwt.encode(
            {
                "sub": user["id"],
                "email": email,
                "jti": str(uuid.uuid4()),
                "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
            },
            JWT_SECRET,
            algorithm="HS256",
        )
        refresh = str(uuid.uuid4())
        self.valid_access.add(access)
        self.valid_refresh[refresh] = email
        return TokenPair(access_token=access, refresh_token=refresh)

    def expire_access_tokens(self) -> None:
        """Tous les access tokens émis deviennent invalides (401)."""
        self.valid_access.clear()

    def script(self, method: str, path: str, *responses: Any) -> None:
        """
        Réponses imposées pour un endpoint, consommées dans l'ordre.

        Chaque réponse est un statut (int), un tuple (statut, corps[, headers])
        ou une exception httpx levée par le transport.
        """
        self._scripted.setdefault((method.upper(), path), []).extend(responses)

    def calls_to(self, path: str, method: Optional[str] = None) -> List[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.url.path == API_PREFIX + path and (method is None or r.method == method)
        ]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ── Transport ───────────────────────────────────────────────────────────

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        body = json.loads(request.content) if request.content else None

        scripted = self._scripted.get((request.method, path))
        if scripted:
            return self._scripted_response(scripted.pop(0), request)

        if path == "/auth/login":
            return self._login(body or {})
        if path == "/auth/register":
            return self._register(body or {})
        if path == "/auth/refresh":
            return await self._refresh(body or {})

        email = self._authenticate(request)
        if email is None:
            header = request.headers.get("authorization")
            message = "Access token required" if not header else "Invalid or expired token"
            return httpx.Response(401, json={"error": message})

        if path == "/auth/me":
            return httpx.Response(200, json=self._profile(email))
        if path == "/auth/logout":
            for token, owner in list(self.valid_refresh.items()):
                if owner == email:
                    del self.valid_refresh[token]
            return httpx.Response(200, json={"message": "Logged out successfully"})
        if path == "/auth/2fa/setup":
            if (body or {}).get("password") != self.users[email]["password"]:
                return httpx.Response(400, json={"error": "Invalid password"})
            return httpx.Response(
                200,
                json={"secret": "JBSWY3DPEHPK3PXP", "qrCode": "data:image/png;base64,AAA", "manualEntryKey": "JBSW Y3DP"},
            )
        if path in ("/auth/2fa/verify", "/auth/2fa/disable"):
            if (body or {}).get("token") != TWO_FACTOR_CODE:
                return httpx.Response(400, json={"error": "Invalid 2FA code"})
            self.users[email]["isTwoFactorEnabled"] = path.endswith("verify")
            return httpx.Response(200, json={"message": "OK"})
        if path == "/auth/change-password":
            if (body or {}).get("currentPassword") != self.users[email]["password"]:
                return httpx.Response(400, json={"error": "Current password is incorrect"})
            self.users[email]["password"] = body["newPassword"]
            return httpx.Response(200, json={"message": "Password changed successfully"})

        return httpx.Response(
            200,
            json={
                "method": request.method,
                "path": path,
                "params": dict(request.url.params),
                "json": body,
            },
        )

    def _scripted_response(self, item: Any, request: httpx.Request) -> httpx.Response:
        if isinstance(item, Exception):
            raise item
        if isinstance(item, int):
            return httpx.Response(item, json={"error": f"Scripted {item}"} if item >= 400 else {})
        status, payload, *rest = item
        headers = rest[0] if rest else None
        if payload is None:
            return httpx.Response(status, headers=headers)
        if isinstance(payload, (bytes, str)):
            return httpx.Response(status, content=payload, headers=headers)
        return httpx.Response(status, json=payload, headers=headers)

    def _authenticate(self, request: httpx.Request) -> Optional[str]:
        header = request.headers.get("authorization", "")
        if not header.startswith("Bearer "):
            return None
        token = header[len("Bearer "):]
        if token not in self.valid_access:
            return None
        try:
            claims = jwt.decode(token, JWT_SECRET, algorithms=["HS256"])
        except jwt.InvalidTokenError:
            return None
        return claims["email"]

    def _public_user(self, email: str) -> Dict[str, Any]:
        return {k: v for k, v in self.users[email].items() if k != "password"}

    def _profile(self, email: str) -> Dict[str, Any]:
        return {"user": self._public_user(email), "company": dict(self.company)}

    def _login(self, body: Dict[str, Any]) -> httpx.Response:
        user = self.users.get(body.get("email", ""))
        if user is None or user["password"] != body.get("password"):
            return httpx.Response(401, json={"error": "Invalid credentials"})
        if user["isTwoFactorEnabled"]:
            code = body.get("twoFactorCode")
            if not code:
                return httpx.Response(
                    200, json={"requires2FA": True, "message": "Two-factor code required"}
                )
            if code != TWO_FACTOR_CODE:
                return httpx.Response(401, json={"error": "Invalid 2FA code"})
        pair = self.issue_pair(user["email"])
        return httpx.Response(
            200,
            json={
                **self._profile(user["email"]),
                "accessToken": pair.access_token,
                "refreshToken": pair.refresh_token,
                "message": "Login successful",
            },
        )

    def _register(self, body: Dict[str, Any]) -> httpx.Response:
        if len(body.get("password", "")) < 6:
            return httpx.Response(
                400,
                json={
                    "error": "Validation failed",
                    "details": [{"field": "password", "message": "Password too short"}],
                },
            )
        email = body.get("adminEmail", "")
        if email in self.users:
            return httpx.Response(409, json={"error": "User already exists"})
        self.users[email] = {
            "id": f"user-{len(self.users) + 1}",
            "name": body.get("adminName"),
            "email": email,
            "role": "ADMIN",
            "companyId": "company-2",
            "isTwoFactorEnabled": False,
            "isActive": True,
            "password": body["password"],
        }
        pair = self.issue_pair(email)
        return httpx.Response(
            201,
            json={
                "user": self._public_user(email),
                "company": {"id": "company-2", "name": body.get("companyName")},
                "accessToken": pair.access_token,
                "refreshToken": pair.refresh_token,
            },
        )

    async def _refresh(self, body: Dict[str, Any]) -> httpx.Response:
        self.refresh_calls += 1
        if self.refresh_delay:
            await asyncio.sleep(self.refresh_delay)
        token = body.get("refreshToken")
        if self.fail_refresh or token not in self.valid_refresh:
            return httpx.Response(401, json={"error": "Invalid refresh token"})
        # Rotation: l'ancien refresh token est révoqué
        email = self.valid_refresh.pop(token)
        pair = self.issue_pair(email)
        return httpx.Response(
            200, json={"accessToken": pair.access_token, "refreshToken": pair.refresh_token}
        )
