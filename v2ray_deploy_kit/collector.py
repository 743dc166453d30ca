"""
collector
---------

운영자에게 순서대로 질문하여 DeployConfig 를 만든다.

region -> CPU -> memory -> Telegram 대상 -> service name -> UUID
-> (Telegram 사용 시) bot token, channel URL -> host domain

잘못된 입력은 click 의 value_proc 에서 BadParameter 로 바꿔
같은 질문을 다시 묻게 한다.
"""

from __future__ import annotations

from typing import Any, Callable, List

import click

from .config import (
    CPU_OPTIONS,
    MEMORY_OPTIONS,
    REGIONS,
    ButtonLink,
    ConfigBuilder,
    DeployConfig,
    KitSettings,
    MemoryBandPolicy,
    NotificationTarget,
    format_band,
    memory_band_violation,
)
from .exceptions import FormatError
from .logging_utils import get_logger
from .validators import (
    validate_bot_token,
    validate_channel_id,
    validate_chat_id,
    validate_url,
    validate_uuid,
)


logger = get_logger(__name__)

CHANNEL_ID_PROMPT = "Telegram Channel ID (여러 개면 쉼표로 구분, 예: -100...,-100...)"
CHAT_ID_PROMPT = "Chat ID (여러 개면 쉼표로 구분, 봇 개인 메시지용)"


def _as_param(validator: Callable[[str], Any]) -> Callable[[str], Any]:
    def _proc(value: str) -> Any:
        try:
            return validator(value.strip())
        except FormatError as e:
            raise click.BadParameter(str(e)) from e

    return _proc


def _non_empty(value: str) -> str:
    if not value.strip():
        raise FormatError("서비스 이름은 비워둘 수 없습니다.")
    return value.strip()


def _channel_url(value: str) -> str:
    return validate_url(value.rstrip("/"))


def _heading(title: str) -> None:
    click.echo()
    click.secho(f"[INFO] === {title} ===", fg="blue")


def _menu(title: str, options: List[str]) -> int:
    """
    번호 목록을 출력하고 1..N 중 하나를 입력받아 0 기반 인덱스로 돌려준다.
    """
    _heading(title)
    for idx, label in enumerate(options, start=1):
        click.echo(f"{idx}. {label}")
    click.echo()
    choice = click.prompt(
        f"선택 (1-{len(options)})",
        type=click.IntRange(1, len(options)),
    )
    return choice - 1


def select_region(builder: ConfigBuilder) -> None:
    labels = [f"{name} ({place})" for name, place in REGIONS]
    labels[0] += " - Default"
    idx = _menu(f"Region Selection ({len(REGIONS)} Regions)", labels)
    builder.region = REGIONS[idx][0]
    click.echo(f"[INFO] Selected region: {builder.region}")


def select_cpu(builder: ConfigBuilder) -> None:
    labels = [f"{c} CPU Core{'s' if c != '1' else ''}" for c in CPU_OPTIONS]
    labels[0] += " (Default)"
    idx = _menu("CPU Configuration", labels)
    builder.cpu = CPU_OPTIONS[idx]
    click.echo(f"[INFO] Selected CPU: {builder.cpu} core(s)")


def select_memory(builder: ConfigBuilder, settings: KitSettings) -> None:
    """
    CPU 대비 권장 범위를 벗어나면 정책에 따라 경고/재선택한다.
    재선택은 memory_reprompt_limit 회까지만 허용한다.
    """
    if builder.cpu is None:
        raise ValueError("메모리를 고르기 전에 CPU 를 먼저 선택해야 합니다.")
    cpu = builder.cpu
    policy = settings.memory_band_policy
    rejected = 0

    while True:
        _heading("Memory Configuration")
        click.echo(f"권장 메모리: {format_band(cpu)}")
        idx = _menu("Memory Options", list(MEMORY_OPTIONS))
        memory = MEMORY_OPTIONS[idx]

        violation = memory_band_violation(cpu, memory)
        if violation is None or policy is MemoryBandPolicy.OFF:
            break

        word = "낮을" if violation == "low" else "높을"
        click.secho(
            f"[WARNING] 메모리 설정({memory})이 {cpu} CPU 에 비해 너무 {word} 수 있습니다. "
            f"권장 범위: {format_band(cpu)}",
            fg="yellow",
        )
        logger.debug("메모리 권장 범위 벗어남: cpu=%s memory=%s (%s)", cpu, memory, violation)

        if policy is MemoryBandPolicy.WARN and click.confirm(
            "이 설정으로 계속 진행할까요?", default=False
        ):
            break

        rejected += 1
        if rejected >= settings.memory_reprompt_limit:
            raise click.ClickException(
                f"메모리 선택을 {settings.memory_reprompt_limit}회 다시 시도했지만 확정하지 못했습니다."
            )

    builder.memory = memory
    click.echo(f"[INFO] Selected Memory: {builder.memory}")


def select_telegram_destination(builder: ConfigBuilder) -> None:
    idx = _menu(
        "Telegram Notification Destination",
        [
            "Channel 로만 전송 (여러 채널 지원)",
            "Bot 개인 메시지로만 전송",
            "Channel 과 Bot 모두 전송",
            "Telegram 전송 없이 배포만 진행",
        ],
    )
    if idx == 0:
        builder.notification = NotificationTarget.channel(
            click.prompt(CHANNEL_ID_PROMPT, value_proc=_as_param(validate_channel_id))
        )
    elif idx == 1:
        builder.notification = NotificationTarget.bot(
            click.prompt(CHAT_ID_PROMPT, value_proc=_as_param(validate_chat_id))
        )
    elif idx == 2:
        channel_ids = click.prompt(CHANNEL_ID_PROMPT, value_proc=_as_param(validate_channel_id))
        chat_ids = click.prompt(CHAT_ID_PROMPT, value_proc=_as_param(validate_chat_id))
        builder.notification = NotificationTarget.both(channel_ids, chat_ids)
    else:
        builder.notification = NotificationTarget.none()


def get_channel_button(settings: KitSettings) -> ButtonLink:
    _heading("Channel URL Configuration (Telegram 버튼)")
    url = click.prompt(
        "Channel URL",
        default=settings.default_channel_url,
        value_proc=_as_param(_channel_url),
    )
    button = ButtonLink.from_url(url)
    click.echo(f"[INFO] Channel URL: {button.url}")
    click.echo(f"[INFO] Channel Name: {button.display_name}")
    return button


def get_user_input(builder: ConfigBuilder, settings: KitSettings) -> None:
    _heading("Service Configuration")

    builder.service_name = click.prompt("Service name", value_proc=_as_param(_non_empty))
    builder.uuid = click.prompt(
        "UUID",
        default=settings.default_uuid,
        value_proc=_as_param(validate_uuid),
    )

    if builder.notification.enabled:
        builder.bot_token = click.prompt(
            "Telegram Bot Token",
            hide_input=True,
            value_proc=_as_param(validate_bot_token),
        )
        builder.button = get_channel_button(settings)

    builder.host_domain = click.prompt(
        "Host domain",
        default=settings.default_host_domain,
        value_proc=lambda v: v.strip() or settings.default_host_domain,
    )


def collect_configuration(settings: KitSettings) -> DeployConfig:
    builder = ConfigBuilder()
    select_region(builder)
    select_cpu(builder)
    select_memory(builder, settings)
    select_telegram_destination(builder)
    get_user_input(builder, settings)
    return builder.build()


def confirm_deployment(summary: str) -> bool:
    click.echo()
    click.echo(summary)
    click.echo()
    return click.confirm("Proceed with deployment?", default=None)

