# ==============================================================================
# TEST HELPERS
# ==============================================================================
# Request helpers shared by the HTTP test modules
# ==============================================================================

from __future__ import annotations

from typing import Dict, Tuple
from uuid import uuid4

from httpx import AsyncClient


async def register_user(client: AsyncClient, **overrides) -> Tuple[str, Dict[str, str], dict]:
    """
    Register a fresh user.

    Returns:
        Tuple of (user_id, auth headers, registration payload)
    """
    payload = {
        "email": f"user_{uuid4().hex[:8]}@example.com",
        "password": "SecurePass123",
        "firstName": "Sample",
        "lastName": "User",
    }
    payload.update(overrides)

    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, f"Failed to register: {response.text}"

    body = response.json()
    headers = {"Authorization": f"Bearer {body['token']}"}
    return body["user"]["id"], headers, payload
