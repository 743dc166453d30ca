"""
gcp_cloud_build
---------------

clone 한 소스로 Cloud Build 이미지 빌드를 수행하는 모듈.
"""

from __future__ import annotations

from typing import Optional

from .logging_utils import get_logger
from .subprocess_utils import CommandRunner, run_command


logger = get_logger(__name__)


def image_url_for(project_id: str, image_name: str) -> str:
    return f"gcr.io/{project_id}/{image_name}"


def build_image(
    project_id: str,
    image_name: str,
    context_dir: str,
    runner: CommandRunner = run_command,
    *,
    timeout: Optional[float] = None,
) -> str:
    """
    `gcloud builds submit` 로 이미지를 빌드/푸시하고 이미지 URL 을 반환한다.
    빌드 로그가 길기 때문에 출력을 그대로 흘린다.
    """
    image_url = image_url_for(project_id, image_name)
    logger.info("컨테이너 이미지 빌드: %s (context=%s)", image_url, context_dir)

    cmd = [
        "gcloud",
        "builds",
        "submit",
        "--tag",
        image_url,
        f"--project={project_id}",
        "--quiet",
    ]
    runner(cmd, cwd=context_dir, timeout=timeout, stream_output=True)

    logger.info("이미지 빌드 완료: %s", image_url)
    return image_url
