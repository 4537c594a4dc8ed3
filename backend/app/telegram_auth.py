from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelegramValidation:
    ok: bool
    user: dict[str, Any] | None = None


def build_check_string(fields: list[tuple[str, str]]) -> str:
    return "\n".join(f"{key}={value}" for key, value in sorted(fields) if key != "hash")


def sign_init_data_fields(fields: list[tuple[str, str]], bot_token: str) -> str:
    secret_key = hashlib.sha256(bot_token.encode("utf-8")).digest()
    return hmac.new(
        secret_key,
        build_check_string(fields).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_init_data(init_data: str, bot_token: str) -> TelegramValidation:
    if not bot_token or not init_data:
        return TelegramValidation(ok=False)

    fields = parse_qsl(init_data, keep_blank_values=True)
    received_hash = next((value for key, value in fields if key == "hash"), "")
    if not received_hash:
        return TelegramValidation(ok=False)

    expected_hash = sign_init_data_fields(fields, bot_token)
    if not hmac.compare_digest(expected_hash, received_hash):
        logger.warning("Rejected Telegram initData with a bad hash")
        return TelegramValidation(ok=False)

    user: dict[str, Any] | None = None
    raw_user = next((value for key, value in fields if key == "user"), None)
    if raw_user:
        try:
            parsed = json.loads(raw_user)
        except ValueError:
            parsed = None
        user = parsed if isinstance(parsed, dict) else None
    return TelegramValidation(ok=True, user=user)
