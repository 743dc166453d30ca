"""
exceptions
----------

배포 킷 전역에서 사용하는 예외 계층.

- FormatError        : 사용자 입력 형식 오류 (프롬프트에서 재입력으로 복구)
- PrerequisiteError  : gcloud/git 미설치, 프로젝트 미설정 등 (치명적)
- ExternalToolError  : gcloud/git 명령이 0 이 아닌 코드로 종료 (치명적)
- NotificationError  : Telegram 전송 실패 (broadcast 단계에서 집계만 함)
"""

from __future__ import annotations

from typing import Optional, Sequence


class DeployKitError(Exception):
    """v2ray_deploy_kit 에서 발생시키는 모든 예외의 베이스."""


class FormatError(DeployKitError, ValueError):
    pass


class PrerequisiteError(DeployKitError, RuntimeError):
    pass


class ExternalToolError(DeployKitError, RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        cmd: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd) if cmd is not None else []
        self.returncode = returncode


class NotificationError(DeployKitError):
    def __init__(self, chat_id: str, status_code: Optional[int], body: str) -> None:
        self.chat_id = chat_id
        self.status_code = status_code
        self.body = body
        status = f"HTTP {status_code}" if status_code is not None else "전송 오류"
        super().__init__(f"Telegram 전송 실패 ({chat_id}, {status}): {body}")
