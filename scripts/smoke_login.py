#!/usr/bin/env python3
"""
KOSHFLOW Client - Smoke Login
Vérifie login, profil et refresh contre un backend en cours d'exécution.

Usage:
    KOSHFLOW_API_URL=http://localhost:3001/api python scripts/smoke_login.py
"""

import asyncio
import os
import sys

from koshflow.client import ApiClient, AuthSession
from koshflow.core import ConfigLoader
from koshflow.network import ApiError

DEMO_EMAIL = os.environ.get("KOSHFLOW_DEMO_EMAIL", "demo@koshflow.com")
DEMO_PASSWORD = os.environ.get("KOSHFLOW_DEMO_PASSWORD", "demo123")


async def run() -> int:
    config = ConfigLoader().default()
    print(f"Backend: {config.base_url}")

    async with ApiClient(config) as client:
        session = AuthSession(client)
        try:
            result = await session.login(DEMO_EMAIL, DEMO_PASSWORD)
        except ApiError as e:
            print(f"✗ Login failed: {e.message} (status={e.status})")
            return 1

        if result.requires_2fa:
            print("! Two-factor code required, stopping here")
            return 0
        print(f"✓ Logged in as {session.user.name} ({session.company.name if session.company else '-'})")

        await client.refresh_tokens()
        print("✓ Token refresh OK")

        profile = await client.get_profile()
        print(f"✓ Profile OK: {profile.user.email}")

        await session.logout()
        print("✓ Logged out")
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
