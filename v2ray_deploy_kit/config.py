from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from dotenv import load_dotenv


ENV_FILES_DEFAULT_ORDER = [".env", ".env.v2ray"]

# 선택지 테이블 (프롬프트 번호 순서 그대로)
REGIONS: List[Tuple[str, str]] = [
    ("us-central1", "Iowa, USA"),
    ("us-west1", "Oregon, USA"),
    ("us-east1", "South Carolina, USA"),
    ("southamerica-east1", "São Paulo, Brazil"),
    ("europe-west1", "Belgium"),
    ("europe-west4", "Netherlands"),
    ("asia-southeast1", "Singapore"),
    ("asia-southeast2", "Jakarta, Indonesia"),
    ("asia-northeast1", "Tokyo, Japan"),
    ("asia-east1", "Taiwan"),
    ("australia-southeast1", "Sydney, Australia"),
    ("me-west1", "Tel Aviv, Israel"),
    ("africa-south1", "Johannesburg, South Africa"),
]
CPU_OPTIONS: List[str] = ["1", "2", "4", "8"]
MEMORY_OPTIONS: List[str] = ["512Mi", "1Gi", "2Gi", "4Gi", "8Gi", "16Gi"]

# CPU 별 권장 메모리 범위 (Mi)
MEMORY_BANDS = {
    "1": (512, 2048),
    "2": (1024, 4096),
    "4": (2048, 8192),
    "8": (4096, 16384),
}

DEFAULT_BUTTON_NAME = "1101 Channel"
BUTTON_NAME_MAX = 20


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} 값이 숫자가 아닙니다: {raw!r}") from e


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} 값이 정수가 아닙니다: {raw!r}") from e


class MemoryBandPolicy(str, Enum):
    WARN = "warn"      # 경고 후 운영자가 계속 진행 여부 결정
    STRICT = "strict"  # 범위를 벗어나면 다시 선택
    OFF = "off"


@dataclass(frozen=True)
class KitSettings:
    """
    .env / .env.v2ray 및 환경변수에서 읽는 실행 설정.
    프롬프트 기본값과 외부 리소스 위치를 담는다.
    """

    deploy_duration: str = "5h"
    default_uuid: str = "5652a909-a0b4-48dd-ae29-972757489bf0"
    default_host_domain: str = "m.googleapis.com"
    default_channel_url: str = "https://t.me/zero_1101_tg"
    source_repo_url: str = "https://github.com/KaungSattKyaw/gcp-v2ray.git"
    work_dir: str = "gcp-v2ray"
    image_name: str = "gcp-v2ray-image"
    output_file: str = "deployment-info.txt"
    telegram_api_base: str = "https://api.telegram.org"
    telegram_timeout: Optional[float] = None
    command_timeout: Optional[float] = None
    memory_band_policy: MemoryBandPolicy = MemoryBandPolicy.WARN
    memory_reprompt_limit: int = 3

    @classmethod
    def from_env(cls) -> "KitSettings":
        defaults = cls()
        raw_policy = os.getenv("MEMORY_BAND_POLICY", defaults.memory_band_policy.value)
        try:
            policy = MemoryBandPolicy(raw_policy.strip().lower())
        except ValueError as e:
            raise ValueError(
                f"MEMORY_BAND_POLICY 값이 올바르지 않습니다: {raw_policy!r} (warn | strict | off 중 하나)"
            ) from e

        limit = _get_int("MEMORY_REPROMPT_LIMIT", defaults.memory_reprompt_limit)
        if limit < 1:
            raise ValueError(f"MEMORY_REPROMPT_LIMIT 는 1 이상이어야 합니다: {limit}")

        return cls(
            deploy_duration=os.getenv("DEPLOY_DURATION", defaults.deploy_duration),
            default_uuid=os.getenv("DEFAULT_UUID", defaults.default_uuid),
            default_host_domain=os.getenv("DEFAULT_HOST_DOMAIN", defaults.default_host_domain),
            default_channel_url=os.getenv("DEFAULT_CHANNEL_URL", defaults.default_channel_url),
            source_repo_url=os.getenv("SOURCE_REPO_URL", defaults.source_repo_url),
            work_dir=os.getenv("WORK_DIR", defaults.work_dir),
            image_name=os.getenv("IMAGE_NAME", defaults.image_name),
            output_file=os.getenv("OUTPUT_FILE", defaults.output_file),
            telegram_api_base=os.getenv("TELEGRAM_API_BASE", defaults.telegram_api_base).rstrip("/"),
            telegram_timeout=_get_float("TELEGRAM_TIMEOUT_SECONDS"),
            command_timeout=_get_float("COMMAND_TIMEOUT_SECONDS"),
            memory_band_policy=policy,
            memory_reprompt_limit=limit,
        )


def memory_to_mi(memory: str) -> int:
    m = re.fullmatch(r"(\d+)(Mi|Gi)", memory)
    if not m:
        raise ValueError(f"알 수 없는 메모리 표기입니다: {memory!r}")
    amount = int(m.group(1))
    return amount * 1024 if m.group(2) == "Gi" else amount


def memory_band_violation(cpu: str, memory: str) -> Optional[str]:
    """
    CPU 에 비해 메모리가 권장 범위를 벗어나면 "low" / "high", 범위 안이면 None.
    """
    low, high = MEMORY_BANDS[cpu]
    amount = memory_to_mi(memory)
    if amount < low:
        return "low"
    if amount > high:
        return "high"
    return None


def format_band(cpu: str) -> str:
    low, high = MEMORY_BANDS[cpu]

    def _fmt(mi: int) -> str:
        return f"{mi // 1024}Gi" if mi >= 1024 else f"{mi}Mi"

    return f"{_fmt(low)} - {_fmt(high)}"


class Destination(str, Enum):
    NONE = "none"
    CHANNEL = "channel"
    BOT = "bot"
    BOTH = "both"


@dataclass(frozen=True)
class NotificationTarget:
    destination: Destination = Destination.NONE
    channel_ids: Tuple[str, ...] = ()
    chat_ids: Tuple[str, ...] = ()

    @classmethod
    def none(cls) -> "NotificationTarget":
        return cls()

    @classmethod
    def channel(cls, ids: Sequence[str]) -> "NotificationTarget":
        return cls(Destination.CHANNEL, channel_ids=tuple(ids))

    @classmethod
    def bot(cls, ids: Sequence[str]) -> "NotificationTarget":
        return cls(Destination.BOT, chat_ids=tuple(ids))

    @classmethod
    def both(cls, channel_ids: Sequence[str], chat_ids: Sequence[str]) -> "NotificationTarget":
        return cls(Destination.BOTH, channel_ids=tuple(channel_ids), chat_ids=tuple(chat_ids))

    @property
    def enabled(self) -> bool:
        return self.destination is not Destination.NONE

    def recipients(self) -> Iterator[Tuple[str, str]]:
        """
        (종류, ID) 를 전송 순서대로 돌려준다. both 는 채널 먼저, 그 다음 채팅.
        """
        if self.destination in (Destination.CHANNEL, Destination.BOTH):
            for cid in self.channel_ids:
                yield "channel", cid
        if self.destination in (Destination.BOT, Destination.BOTH):
            for cid in self.chat_ids:
                yield "chat", cid


@dataclass(frozen=True)
class ButtonLink:
    url: str
    display_name: str

    @classmethod
    def from_url(cls, url: str) -> "ButtonLink":
        """
        URL 로부터 버튼 텍스트를 만든다.
        t.me 링크는 채널 이름, 그 외는 도메인(www. 제외)을 사용한다.
        """
        url = url.rstrip("/")
        if "t.me/" in url:
            name = url.split("t.me/", 1)[1].rstrip("/")
        else:
            name = url.split("://", 1)[-1].split("/", 1)[0].replace("www.", "")
        if not name:
            name = DEFAULT_BUTTON_NAME
        if len(name) > BUTTON_NAME_MAX:
            name = name[:17] + "..."
        return cls(url=url, display_name=name)


@dataclass(frozen=True)
class DeployConfig:
    region: str
    cpu: str
    memory: str
    service_name: str
    uuid: str
    host_domain: str
    notification: NotificationTarget = field(default_factory=NotificationTarget.none)
    bot_token: Optional[str] = None
    button: Optional[ButtonLink] = None


class ConfigBuilder:
    """
    프롬프트 단계마다 값을 채워 넣고, 마지막에 불변 DeployConfig 를 만든다.
    """

    def __init__(self) -> None:
        self.region: Optional[str] = None
        self.cpu: Optional[str] = None
        self.memory: Optional[str] = None
        self.service_name: Optional[str] = None
        self.uuid: Optional[str] = None
        self.host_domain: Optional[str] = None
        self.notification: NotificationTarget = NotificationTarget.none()
        self.bot_token: Optional[str] = None
        self.button: Optional[ButtonLink] = None

    def build(self) -> DeployConfig:
        missing: List[str] = []
        for name in ("region", "cpu", "memory", "service_name", "uuid", "host_domain"):
            if not getattr(self, name):
                missing.append(name)
        if self.notification.enabled:
            if not self.bot_token:
                missing.append("bot_token")
            if self.button is None:
                missing.append("button")
        if missing:
            raise ValueError("필수 설정값이 누락되었습니다: " + ", ".join(missing))

        if self.region not in {r for r, _ in REGIONS}:
            raise ValueError(f"지원하지 않는 리전입니다: {self.region}")
        if self.cpu not in CPU_OPTIONS:
            raise ValueError(f"지원하지 않는 CPU 값입니다: {self.cpu}")
        if self.memory not in MEMORY_OPTIONS:
            raise ValueError(f"지원하지 않는 메모리 값입니다: {self.memory}")

        return DeployConfig(
            region=self.region,  # type: ignore[arg-type]
            cpu=self.cpu,  # type: ignore[arg-type]
            memory=self.memory,  # type: ignore[arg-type]
            service_name=self.service_name,  # type: ignore[arg-type]
            uuid=self.uuid,  # type: ignore[arg-type]
            host_domain=self.host_domain,  # type: ignore[arg-type]
            notification=self.notification,
            bot_token=self.bot_token if self.notification.enabled else None,
            button=self.button if self.notification.enabled else None,
        )
