from __future__ import annotations

import copy
from decimal import Decimal

import pytest

from conftest import MERCHANT_RECEIVER
from golddesk.config import ExpectedReceiver, settings
from golddesk.errors import InvalidReceiver
from golddesk.services.receiver import receiver_matches, validate_receiver
from golddesk.slip.client import SlipParty, VerifiedSlip

EXPECTED = ExpectedReceiver(name_th="บจก. โกลด์เดสก์", name_en="GOLDDESK CO", account="XXX-X-XX730-5")


def _slip(receiver: dict | None, amount: str = "1000") -> VerifiedSlip:
    return VerifiedSlip(
        trans_ref="REF-1",
        amount=Decimal(amount),
        receiver=SlipParty.from_payload(receiver) if receiver is not None else None,
    )


def _receiver(**changes: str) -> dict:
    r = copy.deepcopy(MERCHANT_RECEIVER)
    acc = r["account"]
    if "th" in changes:
        acc["name"]["th"] = changes["th"]
    if "en" in changes:
        acc["name"]["en"] = changes["en"]
    if "type" in changes:
        acc["bank"]["type"] = changes["type"]
    if "account" in changes:
        acc["bank"]["account"] = changes["account"]
    return r


def test_settings_receiver_comes_from_environment() -> None:
    assert settings.expected_receiver == EXPECTED


def test_exact_merchant_identity_passes() -> None:
    validate_receiver(_slip(_receiver()), EXPECTED)


@pytest.mark.parametrize(
    "changes",
    [
        {"th": "บจก. อื่น"},
        {"en": "OTHER MERCHANT"},
        {"type": "TOKEN"},
        {"account": "XXX-X-XX999-9"},
    ],
)
@pytest.mark.parametrize("amount", ["0.01", "1000", "999999"])
def test_any_identity_mismatch_is_rejected(changes: dict, amount: str) -> None:
    with pytest.raises(InvalidReceiver) as exc:
        validate_receiver(_slip(_receiver(**changes), amount=amount), EXPECTED)
    assert exc.value.code == "invalid_receiver"
    assert exc.value.details == "Transfer must be to the correct account only"


def test_proxy_only_receiver_is_rejected() -> None:
    receiver = {
        "bank": {"id": "004"},
        "account": {
            "name": {"th": "บจก. โกลด์เดสก์", "en": "GOLDDESK CO"},
            "proxy": {"type": "MSISDN", "account": "XXX-XXX-1234"},
        },
    }
    assert receiver_matches(_slip(receiver), EXPECTED) is False


def test_missing_receiver_is_rejected() -> None:
    assert receiver_matches(_slip(None), EXPECTED) is False


def test_unconfigured_merchant_rejects_everything() -> None:
    blank = ExpectedReceiver(name_th="", name_en="", account="")
    assert receiver_matches(_slip(_receiver()), blank) is False
