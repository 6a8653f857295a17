"""Deposit-by-slip pipeline.

Stages run in a fixed order: image checks, provider verification, receiver
identity, duplicate use, daily limit, settlement, notification. The receiver
is checked before anything touches the user's limit, and duplicate use before
the limit so a replayed slip is never counted against the ceiling. Every stage
before settlement either passes or raises a DepositRejected without side
effects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from golddesk.config import ExpectedReceiver, settings
from golddesk.db.session import session_scope
from golddesk.errors import InvalidPayload
from golddesk.services.deposits import check_deposit_limit, ensure_slip_unused, settle_deposit
from golddesk.services.notifications import DepositEvent, OutboundQueue
from golddesk.services.receiver import validate_receiver
from golddesk.slip.client import SlipVerifier, check_image
from golddesk.utils.correlation import get_correlation_id

logger = logging.getLogger(__name__)


@dataclass
class Depositor:
    user_id: int
    display_name: str


@dataclass
class DepositResult:
    payment_id: int
    trans_ref: str
    amount: Decimal


async def verify_and_settle(
    depositor: Depositor,
    content: Optional[bytes],
    content_type: Optional[str],
    *,
    verifier: SlipVerifier,
    outbox: OutboundQueue,
    claimed_amount: Optional[Decimal] = None,
    expected: Optional[ExpectedReceiver] = None,
) -> DepositResult:
    if content is None:
        raise InvalidPayload()
    check_image(content, content_type)

    slip = await verifier.verify(content)
    log_ctx = {"cid": get_correlation_id(), "user_id": depositor.user_id, "trans_ref": slip.trans_ref}

    validate_receiver(slip, expected or settings.expected_receiver)

    # The provider's amount is authoritative; the claimed one is only logged
    if claimed_amount is not None and claimed_amount != slip.amount:
        logger.info(
            "claimed amount differs from verified amount",
            extra={"extra": {**log_ctx, "claimed": str(claimed_amount), "verified": str(slip.amount)}},
        )

    async with session_scope() as session:
        await ensure_slip_unused(session, slip.trans_ref)
        await check_deposit_limit(session, depositor.user_id, slip.amount)

    async with session_scope() as session:
        payment = await settle_deposit(
            session,
            user_id=depositor.user_id,
            trans_ref=slip.trans_ref,
            amount=slip.amount,
        )

    outbox.publish(DepositEvent(user_name=depositor.display_name, amount=slip.amount, trans_ref=slip.trans_ref))
    logger.info("slip deposit accepted", extra={"extra": {**log_ctx, "amount": str(slip.amount)}})
    return DepositResult(payment_id=payment.id, trans_ref=slip.trans_ref, amount=slip.amount)
