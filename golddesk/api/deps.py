from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from golddesk.db.models import User
from golddesk.db.session import get_session
from golddesk.errors import Unauthorized
from golddesk.services.notifications import OutboundQueue
from golddesk.slip.client import SlipVerifier, get_verifier


async def current_user(
    x_user_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Caller identity as forwarded by the upstream auth layer."""
    raw = (x_user_id or "").strip()
    if not raw.isdigit():
        raise Unauthorized()
    user = await session.get(User, int(raw))
    if user is None:
        raise Unauthorized()
    return user


def get_slip_verifier() -> SlipVerifier:
    return get_verifier()


def get_outbox() -> OutboundQueue:
    return OutboundQueue()
