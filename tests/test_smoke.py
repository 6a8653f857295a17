from __future__ import annotations

import asyncio
import types
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from golddesk.utils.money import baht, money_str
from golddesk.utils.time import local_midnight_utc

ROOT = Path(__file__).resolve().parents[1]


def test_healthcheck_import() -> None:
    import golddesk.healthcheck as hc
    assert isinstance(hc, types.ModuleType)


def test_env_example_keys_present() -> None:
    example = (ROOT / ".env.example").read_text(encoding="utf-8")
    for key in [
        "DB_URL",
        "EASYSLIP_API_KEY",
        "MERCHANT_NAME_TH",
        "MERCHANT_NAME_EN",
        "MERCHANT_ACCOUNT",
        "MERCHANT_ACCOUNT_TYPE",
        "TELEGRAM_BOT_TOKEN",
        "LOG_CHAT_ID",
        "TZ",
    ]:
        assert key in example


def test_migration_declares_unique_trans_ref() -> None:
    versions = ROOT / "golddesk" / "db" / "migrations" / "versions"
    src = "".join(p.read_text(encoding="utf-8") for p in versions.glob("*.py"))
    assert 'sa.UniqueConstraint("trans_ref"' in src


def test_local_midnight_bangkok() -> None:
    # 2026-10-18 20:30 UTC is 03:30 on the 19th in Bangkok (UTC+7)
    now = datetime(2026, 10, 18, 20, 30)
    assert local_midnight_utc("Asia/Bangkok", now) == datetime(2026, 10, 18, 17, 0)
    # 2026-10-18 10:00 UTC is 17:00 on the 18th in Bangkok
    assert local_midnight_utc("Asia/Bangkok", datetime(2026, 10, 18, 10, 0)) == datetime(2026, 10, 17, 17, 0)


def test_money_formatting() -> None:
    assert baht(Decimal("50000")) == "฿50,000"
    assert baht(Decimal("1234.5")) == "฿1,234.50"
    assert money_str(Decimal("10")) == "10.00"
    assert money_str(None) == "0.00"


def test_healthcheck_disposes_engine_when_db_unreachable(monkeypatch: pytest.MonkeyPatch) -> None:
    import golddesk.healthcheck as hc

    disposed = []

    class _DeadEngine:
        def connect(self):
            raise ConnectionRefusedError("db down")

        async def dispose(self) -> None:
            disposed.append(True)

    monkeypatch.setenv("DB_URL", "mysql+asyncmy://user:pass@db:3306/golddesk")
    monkeypatch.setattr(hc, "create_async_engine", lambda *a, **kw: _DeadEngine())

    assert asyncio.run(hc._check_db()) is False
    assert disposed == [True]
