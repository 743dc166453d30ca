"""
gcp_cloud_run
-------------

Cloud Run 서비스 배포 및 배포된 서비스 URL 조회를 담당하는 모듈.
"""

from __future__ import annotations

from typing import Optional

from .config import DeployConfig
from .exceptions import ExternalToolError
from .logging_utils import get_logger
from .subprocess_utils import CommandRunner, run_command


logger = get_logger(__name__)


def deploy_service(
    cfg: DeployConfig,
    image_url: str,
    runner: CommandRunner = run_command,
    *,
    project_id: Optional[str] = None,
    timeout: Optional[float] = None,
) -> None:
    """
    이미지를 Cloud Run 관리형 서비스로 배포한다. (인증 없이 공개)
    """
    logger.info(
        "Cloud Run 서비스 배포: service=%s region=%s cpu=%s memory=%s",
        cfg.service_name,
        cfg.region,
        cfg.cpu,
        cfg.memory,
    )
    cmd = [
        "gcloud",
        "run",
        "deploy",
        cfg.service_name,
        "--image",
        image_url,
        "--platform",
        "managed",
        "--region",
        cfg.region,
        "--allow-unauthenticated",
        "--cpu",
        cfg.cpu,
        "--memory",
        cfg.memory,
        "--quiet",
    ]
    if project_id:
        cmd.append(f"--project={project_id}")
    runner(cmd, timeout=timeout, stream_output=True)


def describe_service_url(
    service_name: str,
    region: str,
    runner: CommandRunner = run_command,
    *,
    project_id: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    cmd = [
        "gcloud",
        "run",
        "services",
        "describe",
        service_name,
        "--region",
        region,
        "--format",
        "value(status.url)",
        "--quiet",
    ]
    if project_id:
        cmd.append(f"--project={project_id}")
    result = runner(cmd, timeout=timeout)
    url = result.stdout.strip()
    if not url:
        raise ExternalToolError(
            f"배포된 서비스 URL 을 조회하지 못했습니다: {service_name} ({region})",
            cmd=cmd,
            returncode=result.returncode,
        )
    logger.info("서비스 URL: %s", url)
    return url


def strip_scheme(url: str) -> str:
    for prefix in ("https://", "http://"):
        if url.startswith(prefix):
            url = url[len(prefix):]
            break
    return url.rstrip("/")
