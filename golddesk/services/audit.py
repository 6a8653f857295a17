from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from golddesk.db.models import AuditLog
from golddesk.utils.time import utc_now_naive


async def log_audit(
    session: AsyncSession,
    *,
    actor: str,
    action: str,
    target_type: str,
    target_id: Optional[int] = None,
    meta: Optional[str] = None,
) -> None:
    """Stage an audit row in the caller's transaction (flushed, not committed)."""
    entry = AuditLog(
        actor=actor,
        action=action,
        target_type=target_type,
        target_id=target_id,
        meta=meta,
        created_at=utc_now_naive(),
    )
    session.add(entry)
    await session.flush()
