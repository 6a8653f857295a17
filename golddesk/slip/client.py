from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import httpx

from golddesk.config import settings
from golddesk.errors import ImageTooLarge, InvalidImage, InvalidSlip, VerificationTimeout

logger = logging.getLogger(__name__)


@dataclass
class SlipParty:
    """One side (sender or receiver) of a verified transfer."""

    name_th: Optional[str] = None
    name_en: Optional[str] = None
    bank_id: Optional[str] = None
    bank_name: Optional[str] = None
    account_type: Optional[str] = None  # BANKAC | TOKEN | DUMMY
    account: Optional[str] = None
    proxy_type: Optional[str] = None  # NATID | MSISDN | EWALLETID | EMAIL | BILLERID
    proxy_account: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: Any) -> Optional["SlipParty"]:
        if not isinstance(raw, dict):
            return None
        bank = raw.get("bank") or {}
        account = raw.get("account")
        if not isinstance(account, dict):
            return None
        name = account.get("name") or {}
        bank_ac = account.get("bank") or {}
        proxy = account.get("proxy") or {}
        return cls(
            name_th=name.get("th"),
            name_en=name.get("en"),
            bank_id=bank.get("id"),
            bank_name=bank.get("name") or bank.get("short"),
            account_type=bank_ac.get("type"),
            account=bank_ac.get("account"),
            proxy_type=proxy.get("type"),
            proxy_account=proxy.get("account"),
        )


@dataclass
class VerifiedSlip:
    trans_ref: str
    amount: Decimal
    date: Optional[str] = None
    sender: Optional[SlipParty] = None
    receiver: Optional[SlipParty] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "VerifiedSlip":
        trans_ref = str(data.get("transRef") or "").strip()
        if not trans_ref:
            raise InvalidSlip()
        try:
            amount = Decimal(str((data.get("amount") or {})["amount"]))
        except (KeyError, TypeError, InvalidOperation):
            raise InvalidSlip()
        if not amount.is_finite() or amount <= 0:
            raise InvalidSlip()
        return cls(
            trans_ref=trans_ref,
            amount=amount,
            date=data.get("date"),
            sender=SlipParty.from_payload(data.get("sender")),
            receiver=SlipParty.from_payload(data.get("receiver")),
            raw=data,
        )


def check_image(content: Optional[bytes], content_type: Optional[str], *, max_bytes: Optional[int] = None) -> None:
    """Reject oversized or non-image uploads before anything leaves the process."""
    limit = max_bytes if max_bytes is not None else settings.max_slip_bytes
    if len(content or b"") > limit:
        raise ImageTooLarge()
    if not (content_type or "").lower().startswith("image/"):
        raise InvalidImage()


class SlipVerifier:
    """EasySlip verification API. One call per submission, no retries."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            transport=transport,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    async def verify(self, content: bytes) -> VerifiedSlip:
        image = base64.b64encode(content).decode("ascii")
        try:
            resp = await self._client.post(self.api_url, json={"image": image}, headers=self._headers())
        except httpx.TimeoutException as e:
            logger.warning("slip verify timed out", extra={"extra": {"err": str(e)}})
            raise VerificationTimeout()
        except httpx.HTTPError as e:
            logger.error("slip verify transport error: %s", e)
            raise InvalidSlip()

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.error(
                "EasySlip API error",
                extra={"extra": {"status": resp.status_code, "body": resp.text[:500]}},
            )
            raise InvalidSlip()

        try:
            body = resp.json()
        except ValueError:
            logger.error("EasySlip API returned non-JSON body")
            raise InvalidSlip()

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict) or not data:
            raise InvalidSlip(details=(body or {}).get("message") if isinstance(body, dict) else None)
        return VerifiedSlip.from_payload(data)

    async def aclose(self) -> None:
        await self._client.aclose()


_shared: Optional[SlipVerifier] = None


def get_verifier() -> SlipVerifier:
    global _shared
    if _shared is None:
        _shared = SlipVerifier(
            settings.easyslip_api_url,
            settings.easyslip_api_key,
            timeout=settings.easyslip_timeout_seconds,
        )
    return _shared


async def aclose_shared() -> None:
    global _shared
    if _shared is not None:
        try:
            await _shared.aclose()
        finally:
            _shared = None
