from __future__ import annotations

from golddesk.config import ExpectedReceiver
from golddesk.errors import InvalidReceiver
from golddesk.slip.client import VerifiedSlip


def receiver_matches(slip: VerifiedSlip, expected: ExpectedReceiver) -> bool:
    receiver = slip.receiver
    if receiver is None:
        return False
    # Names in both languages must match
    if receiver.name_th != expected.name_th or receiver.name_en != expected.name_en:
        return False
    # Account type and number must match
    if receiver.account_type != expected.account_type or receiver.account != expected.account:
        return False
    return True


def validate_receiver(slip: VerifiedSlip, expected: ExpectedReceiver) -> None:
    if not receiver_matches(slip, expected):
        raise InvalidReceiver()
