"""
gcp_project
-----------

배포 전 사전 조건(gcloud/git 설치, 활성 프로젝트) 확인과
필수 API enable 을 담당하는 모듈.
"""

from __future__ import annotations

import shutil
from typing import Callable, List, Optional

from .exceptions import PrerequisiteError
from .logging_utils import get_logger
from .subprocess_utils import CommandRunner, run_command


logger = get_logger(__name__)


REQUIRED_TOOLS = ["gcloud", "git"]

REQUIRED_APIS = [
    "cloudbuild.googleapis.com",
    "run.googleapis.com",
    "iam.googleapis.com",
]


def get_active_project(runner: CommandRunner = run_command) -> Optional[str]:
    """
    `gcloud config get-value project` 결과를 돌려준다. 설정되지 않았으면 None.
    """
    result = runner(["gcloud", "config", "get-value", "project"], check=False)
    if result.returncode != 0:
        logger.debug("gcloud config get-value 실패 (exit=%s)", result.returncode)
        return None
    value = result.stdout.strip()
    if not value or value == "(unset)":
        return None
    return value


def check_prerequisites(
    runner: CommandRunner = run_command,
    which: Optional[Callable[[str], Optional[str]]] = None,
) -> str:
    """
    필수 CLI 와 활성 프로젝트를 확인하고 프로젝트 ID 를 반환한다.
    외부 리소스를 변경하기 전에 호출해야 한다.
    """
    logger.info("사전 조건 확인 중...")
    which = which or shutil.which

    missing: List[str] = [tool for tool in REQUIRED_TOOLS if which(tool) is None]
    if "gcloud" in missing:
        raise PrerequisiteError("gcloud CLI 가 설치되어 있지 않습니다. Google Cloud SDK 를 설치하세요.")
    if missing:
        raise PrerequisiteError(f"{', '.join(missing)} 이(가) 설치되어 있지 않습니다.")

    project_id = get_active_project(runner)
    if not project_id:
        raise PrerequisiteError(
            "설정된 프로젝트가 없습니다. 다음을 실행하세요: gcloud config set project PROJECT_ID"
        )

    logger.info("활성 프로젝트: %s", project_id)
    return project_id


def enable_required_apis(
    project_id: str,
    runner: CommandRunner = run_command,
    *,
    timeout: Optional[float] = None,
) -> None:
    logger.info("필수 API 활성화: %s", REQUIRED_APIS)
    cmd = [
        "gcloud",
        "services",
        "enable",
        *REQUIRED_APIS,
        f"--project={project_id}",
        "--quiet",
    ]
    runner(cmd, timeout=timeout, spinner_message="필수 API 활성화 중")
