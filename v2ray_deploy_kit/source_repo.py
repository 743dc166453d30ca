"""
source_repo
-----------

V2Ray 서버 소스를 로컬 작업 디렉토리로 clone 한다.

작업 디렉토리는 실행 한 번이 독점하며, working_directory() 블록을 벗어나면
정상 종료든 예외든 항상 삭제된다.
"""

from __future__ import annotations

import os
import shutil
from contextlib import contextmanager
from typing import Iterator, Optional

from .exceptions import ExternalToolError
from .logging_utils import get_logger
from .subprocess_utils import CommandRunner, run_command


logger = get_logger(__name__)


def remove_workdir(path: str) -> None:
    if os.path.isdir(path):
        logger.info("작업 디렉토리 정리: %s", path)
        shutil.rmtree(path)


@contextmanager
def working_directory(path: str) -> Iterator[str]:
    # 이전 실행에서 남은 디렉토리가 있으면 먼저 지운다.
    remove_workdir(path)
    try:
        yield path
    finally:
        remove_workdir(path)


def clone_repository(
    repo_url: str,
    dest: str,
    runner: CommandRunner = run_command,
    *,
    timeout: Optional[float] = None,
) -> None:
    logger.info("저장소 clone: %s -> %s", repo_url, dest)
    try:
        runner(["git", "clone", repo_url, dest], timeout=timeout, spinner_message="저장소 clone 중")
    except ExternalToolError as e:
        raise ExternalToolError(
            f"저장소 clone 에 실패했습니다. 저장소가 Public 인지 확인하세요: {repo_url}",
            cmd=e.cmd,
            returncode=e.returncode,
        ) from e
