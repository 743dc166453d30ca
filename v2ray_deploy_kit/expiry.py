"""
expiry
------

배포 유지 시간(예: "5h30m")을 초 단위로 바꾸고,
만료 시각을 미얀마 표준시(MST, UTC+06:30) 기준 12시간제 문자열로 만든다.

MST 는 서머타임이 없으므로 고정 오프셋 계산으로 충분하다.
"""

from __future__ import annotations

import re
import time
from typing import Optional


MST_OFFSET_SECONDS = 6 * 3600 + 30 * 60
EXPIRY_FALLBACK = "Time calculation failed. Displaying default duration."

_HOURS_RE = re.compile(r"(\d+)h")
_MINUTES_RE = re.compile(r"(\d+)m")


def parse_duration(text: str) -> int:
    total = 0
    hours = _HOURS_RE.search(text)
    if hours:
        total += int(hours.group(1)) * 3600
    minutes = _MINUTES_RE.search(text)
    if minutes:
        total += int(minutes.group(1)) * 60
    return total


def expiry_epoch(seconds: int, now: Optional[float] = None) -> int:
    """
    만료 시각을 MST 로 옮긴 epoch 초를 반환한다. (포맷 전 값)
    """
    if now is None:
        now = time.time()
    return int(now) + int(seconds) + MST_OFFSET_SECONDS


def compute_expiry(seconds: int, now: Optional[float] = None) -> str:
    try:
        shifted = expiry_epoch(seconds, now)
        label = time.strftime("%I:%M %p", time.gmtime(shifted))
    except (OverflowError, OSError, ValueError):
        return EXPIRY_FALLBACK
    if not label:
        return EXPIRY_FALLBACK
    return f"{label} (MST)"
