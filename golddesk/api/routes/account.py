from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from golddesk.api.deps import current_user
from golddesk.config import settings
from golddesk.db.models import User
from golddesk.db.session import get_session
from golddesk.errors import NoLimitConfigured
from golddesk.services.deposits import get_balance, get_limit_status, recent_deposits
from golddesk.utils.money import money_str
from golddesk.utils.time import to_local_iso

router = APIRouter(prefix="/api", tags=["account"])


@router.get("/user/balance")
async def user_balance(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_session),
) -> Dict[str, Any]:
    return {"balance": money_str(await get_balance(session, user.id))}


@router.get("/user/deposit-limit")
async def user_deposit_limit(
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        status = await get_limit_status(session, user.id)
    except NoLimitConfigured as e:
        return JSONResponse({**e.body(), "status": 404}, status_code=404)
    return {
        "id": status.limit_id,
        "name": status.name,
        "dailyLimit": money_str(status.daily_limit),
        "todayTotal": money_str(status.today_total),
        "remaining": money_str(status.remaining),
    }


@router.get("/deposits/recent")
async def deposits_recent(
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(current_user),
    session: AsyncSession = Depends(get_session),
) -> List[Dict[str, Any]]:
    rows = await recent_deposits(session, user.id, limit=limit)
    return [
        {
            "id": p.id,
            "amount": money_str(p.amount),
            "verifiedAt": to_local_iso(p.created_at, settings.tz),
            "status": p.status,
            "transRef": p.trans_ref,
        }
        for p in rows
    ]
