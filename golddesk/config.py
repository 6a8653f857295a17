from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load .env in non-production environments only
if os.getenv("APP_ENV", "production").lower() != "production":
    load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ExpectedReceiver:
    """Merchant account every verified slip must be paid to."""

    name_th: str
    name_en: str
    account: str
    account_type: str = "BANKAC"


def _expected_receiver() -> ExpectedReceiver:
    return ExpectedReceiver(
        name_th=os.getenv("MERCHANT_NAME_TH", ""),
        name_en=os.getenv("MERCHANT_NAME_EN", ""),
        account=os.getenv("MERCHANT_ACCOUNT", ""),
        account_type=os.getenv("MERCHANT_ACCOUNT_TYPE", "BANKAC"),
    )


@dataclass
class Settings:
    app_env: str = os.getenv("APP_ENV", "production")
    # Operator local time; "today" for deposit limits starts at midnight here
    tz: str = os.getenv("TZ", "Asia/Bangkok")

    db_url: str = os.getenv("DB_URL", "")

    easyslip_api_url: str = os.getenv("EASYSLIP_API_URL", "https://developer.easyslip.com/api/v1/verify")
    easyslip_api_key: str = os.getenv("EASYSLIP_API_KEY", "")
    easyslip_timeout_seconds: float = _float_env("EASYSLIP_TIMEOUT_SECONDS", 15.0)
    max_slip_bytes: int = _int_env("MAX_SLIP_BYTES", 10 * 1024 * 1024)

    expected_receiver: ExpectedReceiver = field(default_factory=_expected_receiver)

    telegram_bot_token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    log_chat_id: str = os.getenv("LOG_CHAT_ID", "")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = _int_env("PORT", 3000)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    def log_chat_id_int(self) -> Optional[int]:
        raw = (self.log_chat_id or "").strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None


settings = Settings()
