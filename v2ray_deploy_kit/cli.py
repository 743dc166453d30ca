import sys
from dataclasses import replace
from typing import Optional

import click

from .collector import collect_configuration, confirm_deployment
from .config import KitSettings, load_env_files
from .exceptions import ExternalToolError, PrerequisiteError
from .expiry import compute_expiry, parse_duration
from .logging_utils import setup_logging, get_logger
from .orchestrator import render_plan, run_deployment
from . import gcp_project


logger = get_logger(__name__)


@click.group()
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리). .env/.env.v2ray 와 deployment-info.txt 위치.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다. (-vv 는 HTTP 연결 로그까지 출력)",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """GCP Cloud Run V2Ray 배포 + Telegram 알림 CLI"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose


def _load_settings_from_ctx(ctx: click.Context) -> KitSettings:
    base_dir: str = ctx.obj["chdir"]
    load_env_files(base_dir)
    settings = KitSettings.from_env()
    logger.debug("Settings loaded: %s", settings)
    return settings


@main.command(name="deploy")
@click.option(
    "-o",
    "--output",
    "output",
    type=str,
    default=None,
    help="배포 정보를 저장할 파일 이름 (기본: OUTPUT_FILE 또는 deployment-info.txt)",
)
@click.pass_context
def deploy(ctx: click.Context, output: Optional[str]) -> None:
    """설정을 대화형으로 입력받아 Cloud Run 에 V2Ray 를 배포하고 Telegram 으로 알림"""
    try:
        settings = _load_settings_from_ctx(ctx)
    except Exception as e:  # noqa: BLE001
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    if output:
        settings = replace(settings, output_file=output)

    base_dir: str = ctx.obj["chdir"]

    click.secho("[INFO] === GCP Cloud Run V2Ray Deployment ===", fg="blue")

    # 입력을 받기 전에 gcloud/git/프로젝트부터 확인한다.
    try:
        project_id = gcp_project.check_prerequisites()
    except PrerequisiteError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    cfg = collect_configuration(settings)

    expiry_label = compute_expiry(parse_duration(settings.deploy_duration))
    if not confirm_deployment(render_plan(cfg, settings, project_id, expiry_label)):
        click.echo("[INFO] 사용자가 배포를 취소했습니다.")
        return

    try:
        result, fan_out = run_deployment(cfg, settings, base_dir=base_dir, echo=click.echo)
    except (PrerequisiteError, ExternalToolError) as e:
        logger.debug("배포 파이프라인 중단", exc_info=True)
        click.echo(f"[ERROR] 배포 실패: {e}", err=True)
        sys.exit(1)
    except Exception as e:  # noqa: BLE001
        logger.exception("배포 중 오류 발생")
        click.echo(f"[ERROR] 배포 실패: {e}", err=True)
        sys.exit(1)

    if fan_out is not None and not fan_out.ok:
        click.echo(
            "[WARNING] Telegram 알림이 모두 실패했습니다. 배포는 정상적으로 완료되었습니다.",
            err=True,
        )

    click.echo(f"[INFO] 배포 완료. Service URL: {result.service_url}")
    click.echo(f"[INFO] 배포 정보 저장 위치: {settings.output_file}")


@main.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """
    배포 전 사전 조건(gcloud/git 설치, 활성 프로젝트)만 점검한다.
    (실제 리소스 생성/변경은 하지 않는다)
    """
    try:
        settings = _load_settings_from_ctx(ctx)
    except Exception as e:  # noqa: BLE001
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    try:
        project_id = gcp_project.check_prerequisites()
    except PrerequisiteError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    lines = [
        "# Deploy pre-check",
        f"- project: {project_id}",
        f"- required APIs: {', '.join(gcp_project.REQUIRED_APIS)}",
        f"- source repo: {settings.source_repo_url}",
        f"- memory band policy: {settings.memory_band_policy.value}",
        "- 상태: 배포 가능",
    ]
    click.echo("\n".join(lines))


@main.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """
    현재 디렉토리에 env 템플릿(env.v2ray.example)을 복사하는 초기화.
    """
    import os
    from importlib import resources

    base_dir: str = ctx.obj["chdir"]
    name = "env.v2ray.example"

    target = os.path.join(base_dir, name)
    if os.path.exists(target):
        click.echo(f"{name} 이(가) 이미 존재하여 건너뜀")
        return
    try:
        with resources.files("v2ray_deploy_kit.examples").joinpath(name).open("r", encoding="utf-8") as src, open(
            target, "w", encoding="utf-8"
        ) as dst:
            dst.write(src.read())
        click.echo(f"{name} 템플릿을 생성했습니다.")
    except FileNotFoundError:
        click.echo(f"템플릿 {name} 을(를) 패키지에서 찾을 수 없습니다.", err=True)
        sys.exit(1)
