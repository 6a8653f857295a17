from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from golddesk.config import settings
from golddesk.db.models import DepositLimit, PaymentTransaction, User, UserBalance
from golddesk.errors import DepositLimitExceeded, NoLimitConfigured, SettlementError, SlipAlreadyUsed
from golddesk.services.audit import log_audit
from golddesk.utils.money import baht
from golddesk.utils.time import local_midnight_utc, utc_now_naive

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_NAME_COMPLETED = "ชำระเงินสำเร็จ"
METHOD_BANK = "BANK"
PRODUCT_DETAIL_TRANSFER = "เติมเงินผ่านการโอนเงิน"


@dataclass
class LimitStatus:
    limit_id: int
    name: str
    daily_limit: Decimal
    today_total: Decimal

    @property
    def remaining(self) -> Decimal:
        return max(self.daily_limit - self.today_total, Decimal("0"))


async def is_slip_used(session: AsyncSession, trans_ref: str) -> bool:
    found = await session.scalar(
        select(PaymentTransaction.id).where(PaymentTransaction.trans_ref == trans_ref).limit(1)
    )
    return found is not None


async def ensure_slip_unused(session: AsyncSession, trans_ref: str) -> None:
    if await is_slip_used(session, trans_ref):
        raise SlipAlreadyUsed()


async def get_user_limit(session: AsyncSession, user_id: int) -> Optional[DepositLimit]:
    row = await session.execute(
        select(DepositLimit)
        .join(User, User.deposit_limit_id == DepositLimit.id)
        .where(User.id == user_id)
        .limit(1)
    )
    return row.scalars().first()


async def today_deposit_total(
    session: AsyncSession,
    user_id: int,
    *,
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> Decimal:
    since = local_midnight_utc(tz_name or settings.tz, now)
    total = await session.scalar(
        select(func.coalesce(func.sum(PaymentTransaction.amount), 0)).where(
            PaymentTransaction.user_id == user_id,
            PaymentTransaction.created_at >= since,
        )
    )
    return Decimal(str(total or 0))


async def get_limit_status(
    session: AsyncSession,
    user_id: int,
    *,
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> LimitStatus:
    limit = await get_user_limit(session, user_id)
    if limit is None:
        raise NoLimitConfigured()
    total = await today_deposit_total(session, user_id, now=now, tz_name=tz_name)
    return LimitStatus(
        limit_id=limit.id,
        name=limit.name,
        daily_limit=Decimal(limit.daily_limit),
        today_total=total,
    )


async def check_deposit_limit(
    session: AsyncSession,
    user_id: int,
    amount: Decimal,
    *,
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> LimitStatus:
    """Raise unless today's total plus `amount` stays within the user's daily limit.

    Advisory only: it reads committed deposits, so two different slips settled
    at the same moment can each pass and together overshoot the ceiling.
    """
    status = await get_limit_status(session, user_id, now=now, tz_name=tz_name)
    if status.today_total + amount > status.daily_limit:
        logger.info(
            "deposit limit exceeded",
            extra={"extra": {
                "user_id": user_id,
                "amount": str(amount),
                "today_total": str(status.today_total),
                "daily_limit": str(status.daily_limit),
            }},
        )
        raise DepositLimitExceeded(f"Deposit would exceed daily limit of {baht(status.daily_limit)}")
    return status


async def settle_deposit(
    session: AsyncSession,
    *,
    user_id: int,
    trans_ref: str,
    amount: Decimal,
) -> PaymentTransaction:
    """Record the payment and credit the balance in one transaction.

    The UNIQUE constraint on trans_ref decides concurrent duplicates: the
    loser's insert fails, everything is rolled back and SlipAlreadyUsed is
    raised.
    """
    now = utc_now_naive()
    payment = PaymentTransaction(
        trans_ref=trans_ref,
        user_id=user_id,
        status=STATUS_COMPLETED,
        status_name=STATUS_NAME_COMPLETED,
        method=METHOD_BANK,
        amount=amount,
        total=amount,
        merchant_id="",
        order_no=trans_ref,
        ref_no=trans_ref,
        product_detail=PRODUCT_DETAIL_TRANSFER,
        payment_date=now,
        created_at=now,
        updated_at=now,
    )
    try:
        session.add(payment)
        await session.flush()

        res = await session.execute(
            update(UserBalance)
            .where(UserBalance.user_id == user_id)
            .values(balance=UserBalance.balance + amount, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if (res.rowcount or 0) != 1:
            raise SettlementError(f"balance row missing for user {user_id}")

        await log_audit(
            session,
            actor="user",
            action="deposit_settled",
            target_type="payment_transaction",
            target_id=payment.id,
            meta=json.dumps({"trans_ref": trans_ref, "amount": str(amount), "user_id": user_id}),
        )
        await session.commit()
    except IntegrityError:
        await session.rollback()
        if await is_slip_used(session, trans_ref):
            logger.info("settlement lost duplicate race", extra={"extra": {"trans_ref": trans_ref, "user_id": user_id}})
            raise SlipAlreadyUsed()
        raise
    except BaseException:
        await session.rollback()
        raise

    logger.info(
        "deposit settled",
        extra={"extra": {"payment_id": payment.id, "user_id": user_id, "trans_ref": trans_ref, "amount": str(amount)}},
    )
    return payment


async def get_balance(session: AsyncSession, user_id: int) -> Decimal:
    bal = await session.scalar(select(UserBalance.balance).where(UserBalance.user_id == user_id))
    return Decimal(bal or 0)


async def recent_deposits(session: AsyncSession, user_id: int, *, limit: int = 10) -> List[PaymentTransaction]:
    rows = await session.execute(
        select(PaymentTransaction)
        .where(PaymentTransaction.user_id == user_id)
        .order_by(desc(PaymentTransaction.created_at), desc(PaymentTransaction.id))
        .limit(limit)
    )
    return list(rows.scalars().all())
