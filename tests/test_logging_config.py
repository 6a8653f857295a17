from __future__ import annotations

import base64
import json
import logging

import pytest

from golddesk.logging_config import JsonFormatter, _sanitize_obj, _sanitize_str, setup_logging
from golddesk.utils.correlation import clear_correlation_id, set_correlation_id


def test_sanitize_authorization_bearer_masked() -> None:
    s = "Authorization: Bearer ABCDEFGHIJKLMNOP"
    out = _sanitize_str(s)
    assert "Bearer [REDACTED]" in out
    assert "ABCDEFGHIJKLMNOP" not in out


def test_sanitize_api_key_kv_masked() -> None:
    s = '{"api_key":"sk_live_abc.def","other":"x"}'
    out = _sanitize_str(s)
    assert '"api_key":"[REDACTED]"' in out


def test_sanitize_base64_image_in_body() -> None:
    image = base64.b64encode(b"\x89PNG" * 200).decode()
    out = _sanitize_str(json.dumps({"image": image}))
    assert image not in out
    assert "[IMAGE" in out


def test_sanitize_nested_objects() -> None:
    obj = {
        "authorization": "Authorization: Bearer VERYSECRETTOKEN",
        "nested": [
            {"easyslip_api_key": "abc123456"},
            {"image": "A" * 500},
        ],
    }
    out = _sanitize_obj(obj)
    assert out["nested"][0]["easyslip_api_key"] == "***3456"
    assert out["nested"][1]["image"] == "[IMAGE 500 chars]"
    assert "[REDACTED]" in out["authorization"]


def test_json_formatter_includes_correlation_id_and_extra() -> None:
    set_correlation_id("cid-123")
    try:
        record = logging.LogRecord("golddesk.test", logging.INFO, __file__, 1, "deposit settled", None, None)
        record.extra = {"trans_ref": "REF-1", "token": "secret-token-value"}
        payload = json.loads(JsonFormatter().format(record))
    finally:
        clear_correlation_id()
    assert payload["cid"] == "cid-123"
    assert payload["trans_ref"] == "REF-1"
    assert payload["token"] == "***alue"


def test_httpx_logger_level_warning_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("LOG_TO_FILE", "0")
    setup_logging()
    logger = logging.getLogger("httpx")
    assert logger.level == logging.WARNING or logger.getEffectiveLevel() == logging.WARNING
