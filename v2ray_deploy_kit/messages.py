"""
messages
--------

배포 결과(DeploymentResult)를 콘솔용 평문 / Telegram 용 Markdown 메시지로 렌더링하고,
평문 버전을 deployment-info.txt 로 저장한다.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from .logging_utils import get_logger


logger = get_logger(__name__)


VLESS_WS_PATH = "%2Ftgkmks26381Mr"
SEPARATOR = "━" * 20


@dataclass(frozen=True)
class DeploymentResult:
    project_id: str
    service_name: str
    region: str
    cpu: str
    memory: str
    domain: str
    vless_link: str
    expiry_label: str
    duration: str
    service_url: str


def build_vless_link(uuid: str, host_domain: str, domain: str, service_name: str) -> str:
    return (
        f"vless://{uuid}@{host_domain}:443"
        f"?path={VLESS_WS_PATH}&security=tls&alpn=none&encryption=none"
        f"&host={domain}&type=ws&sni={domain}#{service_name}"
    )


_USAGE_STEPS = [
    "1. 🔗 configuration link ကို copy ကူးပါ။",
    "2. 📱 V2Ray client ကို ဖွင့်ပါ။",
    "3. 📥 clipboard မှ import လုပ်ပါ။",
    "4. ✅ ချိတ်ဆက်ပြီး စတင်အသုံးပြုပါ။ 🎉",
]


def render_console_message(result: DeploymentResult) -> str:
    lines: List[str] = [
        "🚀 GCP V2Ray Deployment Successful 🚀",
        f"⏳ ကြာချိန်: {result.duration}",
        f"⏱️ ကုန်ဆုံးမည့်အချိန်: {result.expiry_label}",
        SEPARATOR,
        "✨ Deployment Details:",
        f"• Project: {result.project_id}",
        f"• Service: {result.service_name}",
        f"• Region: {result.region}",
        f"• Resources: {result.cpu} CPU | {result.memory} RAM",
        f"• Domain: {result.domain}",
        "",
        "🔗 V2Ray Configuration Link:",
        result.vless_link,
        "",
        "📝 အသုံးပြုနည်း လမ်းညွှန်:",
        *_USAGE_STEPS,
        SEPARATOR,
    ]
    return "\n".join(lines)


def render_telegram_message(result: DeploymentResult) -> str:
    """
    Telegram legacy Markdown(parse_mode=MARKDOWN) 용 메시지.
    값은 전부 백틱으로 감싸서 서비스 이름의 '_' 등이 서식으로 해석되지 않게 한다.
    """
    lines: List[str] = [
        "🚀 *GCP V2Ray Deployment Successful* 🚀",
        SEPARATOR,
        f"⏳ *ကြာချိန်:* `{result.duration}`",
        f"⏱️ *ကုန်ဆုံးမည့်အချိန်:* `{result.expiry_label}`",
        SEPARATOR,
        "✨ *Deployment Details:*",
        f"• *Project:* `{result.project_id}`",
        f"• *Service:* `{result.service_name}`",
        f"• *Region:* `{result.region}`",
        f"• *Resources:* `{result.cpu} CPU | {result.memory} RAM`",
        f"• *Domain:* `{result.domain}`",
        "",
        "🔗 *V2Ray Configuration Link:*",
        f"`{result.vless_link}`",
        "",
        "📝 *အသုံးပြုနည်း လမ်းညွှန်:*",
        *_USAGE_STEPS,
        SEPARATOR,
    ]
    return "\n".join(lines)


def write_deployment_info(message: str, base_dir: str = ".", filename: str = "deployment-info.txt") -> str:
    """
    콘솔 메시지를 파일로 저장하고(매 실행마다 덮어씀) 저장 경로를 반환한다.
    """
    path = os.path.join(base_dir, filename)
    with open(path, "w", encoding="utf-8") as f:
        f.write(message + "\n")
    logger.info("배포 정보 저장: %s", path)
    return path
