"""Deposit rejection taxonomy.

Every error carries the machine-readable ``code`` returned to the client as
``message``, an optional human-readable ``details`` and the HTTP status the
route layer responds with. Rejections raised before settlement leave no side
effects behind.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ApiError(Exception):
    code: str = "error"
    status_code: int = 400
    default_details: Optional[str] = None

    def __init__(self, details: Optional[str] = None) -> None:
        self.details = details if details is not None else self.default_details
        super().__init__(self.details or self.code)

    def body(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status_code, "message": self.code}
        if self.details:
            out["details"] = self.details
        return out


class Unauthorized(ApiError):
    code = "unauthorized"
    status_code = 401


class DepositRejected(ApiError):
    code = "rejected"


# Input errors: decided locally, before any network call
class InvalidPayload(DepositRejected):
    code = "invalid_payload"


class ImageTooLarge(DepositRejected):
    code = "image_size_too_large"


class InvalidImage(DepositRejected):
    code = "invalid_image"


# Provider errors
class InvalidSlip(DepositRejected):
    code = "invalid_slip"


class VerificationTimeout(DepositRejected):
    """Provider did not answer in time; the slip may still be valid."""

    code = "verification_timeout"
    status_code = 503
    default_details = "Slip verification is temporarily unavailable, please try again"


# Business-rule rejections
class InvalidReceiver(DepositRejected):
    code = "invalid_receiver"
    default_details = "Transfer must be to the correct account only"


class SlipAlreadyUsed(DepositRejected):
    code = "slip_already_used"
    default_details = "This transfer slip has already been used"


class NoLimitConfigured(DepositRejected):
    code = "no_limit_configured"
    default_details = "No deposit limit set for user"


class DepositLimitExceeded(DepositRejected):
    code = "deposit_limit_exceeded"


class SettlementError(RuntimeError):
    """Settlement could not complete; the transaction was rolled back."""
