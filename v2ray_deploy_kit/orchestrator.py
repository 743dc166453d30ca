from __future__ import annotations

import os
from typing import Callable, List, Optional, Tuple

from .config import DeployConfig, KitSettings
from .expiry import compute_expiry, parse_duration
from .logging_utils import get_logger
from .messages import (
    DeploymentResult,
    build_vless_link,
    render_console_message,
    render_telegram_message,
    write_deployment_info,
)
from .subprocess_utils import CommandRunner, run_command
from .telegram import FanOutResult, TelegramNotifier
from . import (
    gcp_project,
    gcp_cloud_build,
    gcp_cloud_run,
    source_repo,
)


logger = get_logger(__name__)

NotifierFactory = Callable[[DeployConfig, KitSettings], TelegramNotifier]
Echo = Callable[[str], None]


def _check_notification_settings(cfg: DeployConfig) -> None:
    if not cfg.notification.enabled:
        return
    missing = [name for name in ("bot_token", "button") if getattr(cfg, name) is None]
    if missing:
        raise ValueError("Telegram 알림에 필요한 설정값이 누락되었습니다: " + ", ".join(missing))


def _default_notifier(cfg: DeployConfig, settings: KitSettings) -> TelegramNotifier:
    _check_notification_settings(cfg)
    return TelegramNotifier(
        cfg.bot_token,
        cfg.button,
        api_base=settings.telegram_api_base,
        timeout=settings.telegram_timeout,
    )


def render_plan(cfg: DeployConfig, settings: KitSettings, project_id: str, expiry_label: str) -> str:
    """
    배포 전 확인용 설정 요약. 실제 GCP 호출은 하지 않는다.
    """
    lines: List[str] = []
    lines.append("# Configuration summary")
    lines.append(f"- Project ID:    {project_id}")
    lines.append(f"- Region:        {cfg.region}")
    lines.append(f"- Service Name:  {cfg.service_name}")
    lines.append(f"- Host Domain:   {cfg.host_domain}")
    lines.append(f"- UUID:          {cfg.uuid}")
    lines.append(f"- CPU:           {cfg.cpu} core(s)")
    lines.append(f"- Memory:        {cfg.memory}")
    lines.append(f"- Duration:      {settings.deploy_duration}")
    lines.append(f"- Expires At:    {expiry_label}")

    target = cfg.notification
    if target.enabled:
        # 토큰은 앞 8자리만 노출
        lines.append(f"- Bot Token:     {(cfg.bot_token or '')[:8]}...")
        lines.append(f"- Destination:   {target.destination.value}")
        if target.channel_ids:
            lines.append(f"- Channel ID(s): {', '.join(target.channel_ids)}")
        if target.chat_ids:
            lines.append(f"- Chat ID(s):    {', '.join(target.chat_ids)}")
        if cfg.button is not None:
            lines.append(f"- Channel URL:   {cfg.button.url}")
            lines.append(f"- Button Text:   {cfg.button.display_name}")
    else:
        lines.append("- Telegram:      Not configured")

    return "\n".join(lines)


def run_deployment(
    cfg: DeployConfig,
    settings: KitSettings,
    *,
    base_dir: str = ".",
    runner: CommandRunner = run_command,
    notifier_factory: NotifierFactory = _default_notifier,
    echo: Echo = print,
    now: Optional[float] = None,
) -> Tuple[DeploymentResult, Optional[FanOutResult]]:
    """
    배포 파이프라인을 순서대로 실행한다.

    사전 조건 확인 -> API enable -> clone -> 이미지 빌드 -> Cloud Run 배포
    -> URL 조회 -> 메시지 생성/저장 -> Telegram 전송

    PrerequisiteError / ExternalToolError 는 그대로 전파되어 이후 단계를 중단한다.
    작업 디렉토리는 성공/실패와 관계없이 삭제된다.

    Returns:
        result: 배포 결과
        fan_out: Telegram 전송 집계 (알림 미설정이면 None)
    """
    _check_notification_settings(cfg)
    timeout = settings.command_timeout

    project_id = gcp_project.check_prerequisites(runner)

    logger.info(
        "Cloud Run 배포 시작: project=%s region=%s service=%s cpu=%s memory=%s",
        project_id,
        cfg.region,
        cfg.service_name,
        cfg.cpu,
        cfg.memory,
    )

    gcp_project.enable_required_apis(project_id, runner, timeout=timeout)

    workdir = os.path.join(base_dir, settings.work_dir)
    with source_repo.working_directory(workdir):
        source_repo.clone_repository(settings.source_repo_url, workdir, runner, timeout=timeout)
        image_url = gcp_cloud_build.build_image(
            project_id, settings.image_name, workdir, runner, timeout=timeout
        )
        gcp_cloud_run.deploy_service(cfg, image_url, runner, project_id=project_id, timeout=timeout)
        service_url = gcp_cloud_run.describe_service_url(
            cfg.service_name, cfg.region, runner, project_id=project_id, timeout=timeout
        )

    domain = gcp_cloud_run.strip_scheme(service_url)
    expiry_label = compute_expiry(parse_duration(settings.deploy_duration), now)

    result = DeploymentResult(
        project_id=project_id,
        service_name=cfg.service_name,
        region=cfg.region,
        cpu=cfg.cpu,
        memory=cfg.memory,
        domain=domain,
        vless_link=build_vless_link(cfg.uuid, cfg.host_domain, domain, cfg.service_name),
        expiry_label=expiry_label,
        duration=settings.deploy_duration,
        service_url=service_url,
    )

    console_message = render_console_message(result)
    write_deployment_info(console_message, base_dir=base_dir, filename=settings.output_file)
    echo(console_message)

    fan_out: Optional[FanOutResult] = None
    if cfg.notification.enabled:
        logger.info("배포 정보를 Telegram 으로 전송합니다.")
        notifier = notifier_factory(cfg, settings)
        fan_out = notifier.broadcast(cfg.notification, render_telegram_message(result))
    else:
        logger.info("Telegram 알림을 설정하지 않아 전송을 건너뜁니다.")

    logger.info("배포 완료: %s", service_url)
    return result, fan_out
