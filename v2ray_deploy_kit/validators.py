"""
validators
----------

운영자 입력값(UUID, 봇 토큰, 채널/채팅 ID, URL)의 형식을 검사한다.

전부 정규식 기반의 느슨한 검사이며, 실패 시 FormatError 를 던진다.
프롬프트 쪽에서 이를 잡아 같은 질문을 다시 묻는다.
"""

from __future__ import annotations

import re
from typing import List

from .exceptions import FormatError


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)
BOT_TOKEN_PATTERN = re.compile(r"^[0-9]{8,10}:[a-zA-Z0-9_-]{35}$")
NUMERIC_ID_PATTERN = re.compile(r"^-?[0-9]+$")

TELEGRAM_URL_PATTERN = re.compile(r"^https?://t\.me/[a-zA-Z0-9_]+$")
GENERIC_URL_PATTERN = re.compile(
    r"^https?://[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}(/[a-zA-Z0-9._~:/?#\[\]@!$&'()*+,;=-]*)?$"
)


def validate_uuid(value: str) -> str:
    if not UUID_PATTERN.match(value):
        raise FormatError(f"UUID 형식이 올바르지 않습니다: {value}")
    return value


def validate_bot_token(value: str) -> str:
    # 토큰 자체는 에러 메시지에 남기지 않는다.
    if not BOT_TOKEN_PATTERN.match(value):
        raise FormatError("Telegram Bot Token 형식이 올바르지 않습니다 (<8-10자리 숫자>:<35자>)")
    return value


def parse_id_list(value: str) -> List[str]:
    """
    쉼표로 구분된 ID 문자열을 리스트로 바꾼다.
    각 항목은 앞뒤 공백을 제거하고, 비어 있는 항목은 버린다.
    """
    return [p.strip() for p in value.split(",") if p.strip()]


def _validate_id_list(value: str, label: str) -> List[str]:
    ids = parse_id_list(value)
    if not ids:
        raise FormatError(f"{label} 를 하나 이상 입력해야 합니다.")
    for item in ids:
        if not NUMERIC_ID_PATTERN.match(item):
            raise FormatError(f"{label} 형식이 올바르지 않습니다: {item}")
    return ids


def validate_channel_id(value: str) -> List[str]:
    """
    채널 ID 목록 검증. 하나라도 잘못되면 전체를 거부한다.
    채널 ID 는 보통 -100... 으로 시작하지만 양수 ID 도 허용한다.
    """
    return _validate_id_list(value, "Channel ID")


def validate_chat_id(value: str) -> List[str]:
    return _validate_id_list(value, "Chat ID")


def validate_url(value: str) -> str:
    if TELEGRAM_URL_PATTERN.match(value) or GENERIC_URL_PATTERN.match(value):
        return value
    raise FormatError(
        f"URL 형식이 올바르지 않습니다: {value} "
        "(예: https://t.me/channel_name, https://example.com)"
    )
