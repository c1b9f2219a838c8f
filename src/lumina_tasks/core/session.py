# src/lumina_tasks/core/session.py

"""
Local mock sign-in.

There is no account backend: a "login" waits a short simulated delay and then
mints a fresh User. The password is accepted but never checked or stored.
"""

from __future__ import annotations

import asyncio
import logging

from .models import User, new_id

logger = logging.getLogger(__name__)


async def mock_authenticate(
    email: str,
    password: str,
    *,
    name: str | None = None,
    sign_up: bool = False,
    delay_seconds: float = 0.8,
) -> User:
    email = (email or "").strip()
    if not email:
        raise ValueError("email is required")
    if not password:
        raise ValueError("password is required")

    if delay_seconds > 0:
        await asyncio.sleep(delay_seconds)

    if sign_up:
        display = (name or "").strip() or None
    else:
        display = email.split("@")[0] or None

    user = User(id=new_id(), email=email, name=display)
    logger.info("Signed in user id=%s sign_up=%s", user.id, sign_up)
    return user
