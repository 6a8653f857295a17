from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from golddesk.api.deps import current_user, get_outbox, get_slip_verifier
from golddesk.config import settings
from golddesk.db.models import User
from golddesk.errors import DepositRejected, ImageTooLarge, InvalidPayload
from golddesk.services.notifications import OutboundQueue
from golddesk.services.verification import Depositor, verify_and_settle
from golddesk.slip.client import SlipVerifier
from golddesk.utils.correlation import get_correlation_id
from golddesk.utils.money import money_str

router = APIRouter(prefix="/api", tags=["deposits"])
logger = logging.getLogger(__name__)


def _parse_claimed(raw: Optional[str]) -> Optional[Decimal]:
    if raw is None or not raw.strip():
        return None
    try:
        val = Decimal(raw.strip().replace(",", ""))
    except InvalidOperation:
        return None
    return val if val.is_finite() else None


def _reject(err: DepositRejected) -> JSONResponse:
    return JSONResponse(err.body(), status_code=err.status_code)


@router.post("/verify-slip")
async def verify_slip(
    background_tasks: BackgroundTasks,
    slip: Optional[UploadFile] = File(default=None),
    amount: Optional[str] = Form(default=None),
    user: User = Depends(current_user),
    verifier: SlipVerifier = Depends(get_slip_verifier),
    outbox: OutboundQueue = Depends(get_outbox),
) -> JSONResponse:
    try:
        if slip is None:
            raise InvalidPayload()
        # Skip reading the body when the multipart part already reports its size
        if slip.size is not None and slip.size > settings.max_slip_bytes:
            raise ImageTooLarge()
        content = await slip.read()

        result = await verify_and_settle(
            Depositor(user_id=user.id, display_name=user.display_name),
            content,
            slip.content_type,
            verifier=verifier,
            outbox=outbox,
            claimed_amount=_parse_claimed(amount),
        )
    except DepositRejected as e:
        logger.info(
            "slip rejected",
            extra={"extra": {"cid": get_correlation_id(), "user_id": user.id, "reason": e.code}},
        )
        return _reject(e)
    except Exception:
        logger.exception("Error verifying slip", extra={"extra": {"cid": get_correlation_id(), "user_id": user.id}})
        return JSONResponse({"status": 500, "message": "server_error"}, status_code=500)

    background_tasks.add_task(outbox.drain)
    return JSONResponse(
        {
            "status": 200,
            "message": "success",
            "transRef": result.trans_ref,
            "amount": money_str(result.amount),
        }
    )
