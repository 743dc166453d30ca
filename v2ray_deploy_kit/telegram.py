"""
telegram
--------

Telegram Bot API 로 배포 결과를 전송한다.

수신자마다 sendMessage 를 한 번씩 순서대로 호출하고, 성공 개수를 집계한다.
개별 실패는 경고만 남기고 다음 수신자로 넘어간다. (재시도 없음)
배포 자체는 이미 끝난 상태이므로 전부 실패해도 예외를 던지지 않는다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import requests

from .config import ButtonLink, NotificationTarget
from .exceptions import NotificationError
from .logging_utils import get_logger


logger = get_logger(__name__)


DEFAULT_API_BASE = "https://api.telegram.org"

_KIND_LABELS = {
    "channel": "Telegram Channel",
    "chat": "Bot private message",
}


@dataclass
class FanOutResult:
    succeeded: int = 0
    attempted: int = 0
    failures: List[NotificationError] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.skipped or self.succeeded > 0


class TelegramNotifier:
    def __init__(
        self,
        bot_token: str,
        button: ButtonLink,
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout: Optional[float] = None,
    ) -> None:
        self._bot_token = bot_token
        self._button = button
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self._api_base}/bot{self._bot_token}/sendMessage"

    def build_payload(self, chat_id: str, message: str) -> dict:
        return {
            "chat_id": chat_id,
            "text": message,
            "parse_mode": "MARKDOWN",
            "disable_web_page_preview": True,
            "reply_markup": {
                "inline_keyboard": [
                    [{"text": self._button.display_name, "url": self._button.url}]
                ]
            },
        }

    def send_to_one(self, chat_id: str, message: str) -> None:
        """
        한 수신자에게 메시지를 보낸다. HTTP 200 이외에는 NotificationError.
        """
        payload = self.build_payload(chat_id, message)
        try:
            response = requests.post(self.endpoint, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            # 예외 메시지에 봇 토큰이 든 URL 이 섞일 수 있어 타입만 남긴다.
            raise NotificationError(chat_id, None, type(e).__name__) from e

        if response.status_code != 200:
            raise NotificationError(chat_id, response.status_code, response.text)

    def broadcast(self, target: NotificationTarget, message: str) -> FanOutResult:
        result = FanOutResult()

        if not target.enabled:
            logger.info("Telegram 알림 설정이 없어 전송을 건너뜁니다.")
            result.skipped = True
            return result

        logger.info("Telegram 전송 시작 (destination=%s)", target.destination.value)
        for kind, chat_id in target.recipients():
            label = _KIND_LABELS[kind]
            result.attempted += 1
            logger.info("전송 시도: %s (%s)", label, chat_id)
            try:
                self.send_to_one(chat_id, message)
            except NotificationError as e:
                result.failures.append(e)
                logger.warning("❌ %s 전송 실패: %s", label, e)
                continue
            result.succeeded += 1
            logger.info("✅ %s 전송 성공 (%s)", label, chat_id)

        if result.ok:
            logger.info(
                "Telegram 알림 완료 (%d/%d 성공)", result.succeeded, result.attempted
            )
        else:
            logger.warning("Telegram 알림이 모두 실패했습니다. 배포 자체는 성공했습니다.")
        return result
