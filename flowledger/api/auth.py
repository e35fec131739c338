"""Authentication and user endpoints."""

import logging
from typing import Any, Dict, Optional

from flowledger.api.client import ApiClient
from flowledger.session import SessionManager

logger = logging.getLogger(__name__)


def _start_session(session: SessionManager, res: Dict[str, Any]) -> None:
    session.set_session(
        token=res["access_token"],
        user=res.get("user") or {},
        preferences=res.get("preferences"),
        expires_in_seconds=res.get("expires_in"),
    )


async def register(
    client: ApiClient, session: SessionManager, username: str, password: str, email: str
) -> Dict[str, Any]:
    """POST /auth/register and start the returned session."""
    res = await client.post("/auth/register", {"username": username, "password": password, "email": email})
    _start_session(session, res)
    logger.info(f"Registered and signed in as {username}")
    return res


async def login(client: ApiClient, session: SessionManager, username: str, password: str) -> Dict[str, Any]:
    """POST /auth/login and start the returned session."""
    res = await client.post("/auth/login", {"username": username, "password": password})
    _start_session(session, res)
    logger.info(f"Signed in as {username}")
    return res


def logout(session: SessionManager) -> None:
    session.clear_session()


async def get_me(client: ApiClient) -> Dict[str, Any]:
    return await client.get("/users/me")


async def update_preferences(
    client: ApiClient,
    payload: Dict[str, Any],
    idempotency_key: Optional[str] = None,
    session: Optional[SessionManager] = None,
) -> Dict[str, Any]:
    """PATCH /users/me/preferences; mirrors the result into the session if given."""
    res = await client.patch("/users/me/preferences", payload, idempotency_key=idempotency_key)
    if session is not None and isinstance(res, dict):
        session.update_preferences(res)
    return res
