from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Protocol

from aiogram import Bot

from golddesk.config import settings
from golddesk.utils.money import baht

logger = logging.getLogger(__name__)

_bot_singleton: Optional[Bot] = None
_bot_lock = asyncio.Lock()


@dataclass(frozen=True)
class DepositEvent:
    user_name: str
    amount: Decimal
    trans_ref: str


class NotificationSink(Protocol):
    async def send(self, event: DepositEvent) -> bool: ...


async def _get_bot() -> Optional[Bot]:
    global _bot_singleton
    if _bot_singleton is not None:
        return _bot_singleton
    async with _bot_lock:
        if _bot_singleton is not None:
            return _bot_singleton
        token = (settings.telegram_bot_token or "").strip()
        if not token:
            logger.warning("notify: TELEGRAM_BOT_TOKEN missing; notifications disabled")
            return None
        _bot_singleton = Bot(token=token)
        return _bot_singleton


def deposit_text(event: DepositEvent) -> str:
    return (
        "💰 New deposit\n"
        f"User: {event.user_name}\n"
        f"Amount: {baht(event.amount)}\n"
        f"Ref: {event.trans_ref}"
    )


class TelegramSink:
    """Posts deposit events to LOG_CHAT_ID. Returns False instead of raising."""

    async def send(self, event: DepositEvent) -> bool:
        chat_id = settings.log_chat_id_int()
        if chat_id is None:
            if settings.log_chat_id:
                logger.warning("notify: invalid LOG_CHAT_ID: %s", settings.log_chat_id)
            return False
        bot = await _get_bot()
        if bot is None:
            return False
        try:
            await bot.send_message(chat_id=chat_id, text=deposit_text(event), disable_web_page_preview=True)
            return True
        except Exception as e:
            logger.warning("notify deposit failed", extra={"extra": {"trans_ref": event.trans_ref, "err": str(e)}})
            return False


class OutboundQueue:
    """Per-request outbox: events are collected during the pipeline and
    delivered after the response has been produced."""

    def __init__(self, sink: Optional[NotificationSink] = None) -> None:
        self.sink: NotificationSink = sink or TelegramSink()
        self.pending: List[DepositEvent] = []

    def publish(self, event: DepositEvent) -> None:
        self.pending.append(event)

    async def drain(self) -> int:
        """Deliver pending events once each; failures are logged, never retried."""
        sent = 0
        events, self.pending = self.pending, []
        for event in events:
            try:
                if await self.sink.send(event):
                    sent += 1
            except Exception:
                logger.exception("notification sink raised", extra={"extra": {"trans_ref": event.trans_ref}})
        return sent


async def aclose_bot() -> None:
    global _bot_singleton
    if _bot_singleton is not None:
        try:
            await _bot_singleton.session.close()
        finally:
            _bot_singleton = None
