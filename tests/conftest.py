from __future__ import annotations

import json
import os
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Optional

# Settings are read at import time; pin the environment before golddesk loads
os.environ["APP_ENV"] = "test"
os.environ["TZ"] = "Asia/Bangkok"
os.environ["LOG_TO_FILE"] = "0"
os.environ["EASYSLIP_API_KEY"] = "test-easyslip-key"
os.environ["MERCHANT_NAME_TH"] = "บจก. โกลด์เดสก์"
os.environ["MERCHANT_NAME_EN"] = "GOLDDESK CO"
os.environ["MERCHANT_ACCOUNT"] = "XXX-X-XX730-5"
os.environ["MERCHANT_ACCOUNT_TYPE"] = "BANKAC"
os.environ.pop("TELEGRAM_BOT_TOKEN", None)
os.environ.pop("LOG_CHAT_ID", None)

import httpx
import pytest
from sqlalchemy import create_engine, pool, select
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from golddesk.db.base import Base
from golddesk.db.models import DepositLimit, PaymentTransaction, User, UserBalance
from golddesk.db.session import session_scope, use_engine
from golddesk.services.notifications import DepositEvent
from golddesk.slip.client import SlipVerifier


MERCHANT_RECEIVER = {
    "bank": {"id": "004", "name": "ธนาคารกสิกรไทย", "short": "KBANK"},
    "account": {
        "name": {"th": "บจก. โกลด์เดสก์", "en": "GOLDDESK CO"},
        "bank": {"type": "BANKAC", "account": "XXX-X-XX730-5"},
    },
}


def slip_payload(
    trans_ref: str = "016104102507BTF07042",
    amount: Any = 1000,
    receiver: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "status": 200,
        "data": {
            "payload": "00000000000000000000000000000000000000000000000000000000000",
            "transRef": trans_ref,
            "date": "2026-10-18T10:15:00+07:00",
            "countryCode": "TH",
            "amount": {"amount": amount, "local": {"amount": 0, "currency": ""}},
            "fee": 0,
            "sender": {
                "bank": {"id": "014", "name": "ธนาคารไทยพาณิชย์", "short": "SCB"},
                "account": {
                    "name": {"th": "นาย ทดสอบ ระบบ", "en": "MR. TEST SYSTEM"},
                    "bank": {"type": "BANKAC", "account": "XXX-X-X1234-X"},
                },
            },
            "receiver": receiver if receiver is not None else json.loads(json.dumps(MERCHANT_RECEIVER)),
        },
    }


class FakeProvider:
    """Stands in for the EasySlip endpoint through httpx.MockTransport."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None) -> None:
        self.requests: List[httpx.Request] = []
        self._responder = responder or (lambda request: httpx.Response(200, json=slip_payload()))

    def respond_with(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self._responder = responder

    def respond_json(self, body: Dict[str, Any], status_code: int = 200) -> None:
        self._responder = lambda request: httpx.Response(status_code, json=body)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    def verifier(self) -> SlipVerifier:
        return SlipVerifier(
            "https://easyslip.test/api/v1/verify",
            "test-easyslip-key",
            timeout=2.0,
            transport=httpx.MockTransport(self._handle),
        )


class RecordingSink:
    def __init__(self, fail: bool = False) -> None:
        self.events: List[DepositEvent] = []
        self.fail = fail

    async def send(self, event: DepositEvent) -> bool:
        if self.fail:
            raise RuntimeError("telegram down")
        self.events.append(event)
        return True


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def db_engine(tmp_path) -> Iterator[AsyncEngine]:
    path = tmp_path / "golddesk.db"
    # Schema through a plain sync engine so no event loop is needed here
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    # NullPool: every checkout opens a fresh aiosqlite connection in the running loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=pool.NullPool)
    use_engine(engine)
    yield engine
    engine.sync_engine.dispose()


async def seed_user(
    *,
    email: str = "buyer@example.com",
    name: Optional[str] = "Somchai",
    daily_limit: Optional[Decimal] = Decimal("50000"),
    balance: Optional[Decimal] = Decimal("0"),
) -> int:
    async with session_scope() as session:
        limit_id = None
        if daily_limit is not None:
            tier = DepositLimit(name="standard", daily_limit=daily_limit)
            session.add(tier)
            await session.flush()
            limit_id = tier.id
        user = User(email=email, name=name, deposit_limit_id=limit_id)
        session.add(user)
        await session.flush()
        if balance is not None:
            session.add(UserBalance(user_id=user.id, balance=balance))
        await session.commit()
        return user.id


async def read_balance(user_id: int) -> Decimal:
    async with session_scope() as session:
        bal = await session.scalar(select(UserBalance.balance).where(UserBalance.user_id == user_id))
        return Decimal(str(bal))


async def payment_refs(user_id: Optional[int] = None) -> List[str]:
    async with session_scope() as session:
        stmt = select(PaymentTransaction.trans_ref).order_by(PaymentTransaction.id)
        if user_id is not None:
            stmt = stmt.where(PaymentTransaction.user_id == user_id)
        return list((await session.execute(stmt)).scalars().all())
