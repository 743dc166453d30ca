"""
pytest 설정:

로컬 환경에 설치된 다른 버전의 v2ray_deploy_kit 가 먼저 import 되지 않도록
repo root 를 sys.path 최상단에 고정하고, 공용 fixture 를 정의한다.
"""

from __future__ import annotations

import os
import sys
from typing import Callable, Dict, List, Optional

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_SETTINGS_ENV = [
    "DEPLOY_DURATION",
    "DEFAULT_UUID",
    "DEFAULT_HOST_DOMAIN",
    "DEFAULT_CHANNEL_URL",
    "SOURCE_REPO_URL",
    "WORK_DIR",
    "IMAGE_NAME",
    "OUTPUT_FILE",
    "TELEGRAM_API_BASE",
    "TELEGRAM_TIMEOUT_SECONDS",
    "COMMAND_TIMEOUT_SECONDS",
    "MEMORY_BAND_POLICY",
    "MEMORY_REPROMPT_LIMIT",
]


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # 개발자 셸에 남은 값이 테스트에 섞이지 않게 한다.
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


class FakeRunner:
    """
    gcloud/git 호출을 기록하고, 명령 앞부분에 따라 미리 정한 결과를 돌려준다.
    """

    def __init__(
        self,
        project: str = "test-project",
        service_url: str = "https://v2ray-abc123-uc.a.run.app",
        fail_on: Optional[str] = None,
        on_call: Optional[Callable[[List[str], dict], None]] = None,
    ) -> None:
        self.project = project
        self.service_url = service_url
        self.fail_on = fail_on
        self.on_call = on_call
        self.calls: List[List[str]] = []
        self.kwargs: List[Dict[str, object]] = []

    def __call__(self, cmd, **kwargs):  # noqa: ANN001
        from v2ray_deploy_kit.exceptions import ExternalToolError
        from v2ray_deploy_kit.subprocess_utils import RunResult

        cmd = list(cmd)
        self.calls.append(cmd)
        self.kwargs.append(kwargs)
        if self.on_call is not None:
            self.on_call(cmd, kwargs)

        joined = " ".join(cmd)
        if self.fail_on and joined.startswith(self.fail_on):
            raise ExternalToolError(f"명령 실행 실패: {joined} (exit=1)", cmd=cmd, returncode=1)
        if joined.startswith("gcloud config get-value project"):
            return RunResult(0, self.project + "\n", "")
        if joined.startswith("gcloud run services describe"):
            return RunResult(0, self.service_url + "\n", "")
        return RunResult(0, "", "")

    def commands(self) -> List[str]:
        return [" ".join(c[:3]) for c in self.calls]


@pytest.fixture
def make_runner():  # noqa: ANN201
    return FakeRunner


@pytest.fixture
def all_tools(monkeypatch: pytest.MonkeyPatch) -> None:
    from v2ray_deploy_kit import gcp_project

    monkeypatch.setattr(gcp_project.shutil, "which", lambda name: f"/usr/bin/{name}")
