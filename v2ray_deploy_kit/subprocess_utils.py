from __future__ import annotations

import os
import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from textwrap import shorten
from typing import Callable, Mapping, Sequence

from .exceptions import ExternalToolError, PrerequisiteError
from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


# gcloud/git 호출을 대신할 수 있는 collaborator 시그니처.
# 테스트에서는 가짜 runner 를 주입한다.
CommandRunner = Callable[..., RunResult]


_BRAILLE_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]


def _is_tty(stream) -> bool:  # noqa: ANN001
    try:
        return bool(getattr(stream, "isatty") and stream.isatty())
    except Exception:  # noqa: BLE001
        return False


def _progress_enabled_from_env() -> bool:
    raw = os.getenv("CLI_SHOW_PROGRESS")
    if raw is None:
        return True
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _format_elapsed(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:0.1f}s"
    minutes = int(seconds // 60)
    sec = int(seconds % 60)
    return f"{minutes}m{sec:02d}s"


class Spinner:
    """
    간단한 CLI 스피너(메시지 + 경과시간).

    stderr 에만 출력하여 stdout 로그와 섞이지 않게 한다.
    출력을 그대로 흘리는 stream 모드에서는 사용하지 않는다.
    """

    def __init__(self, message: str, *, stream=None, interval: float = 0.12) -> None:  # noqa: ANN001
        self._message = message
        self._stream = stream if stream is not None else sys.stderr
        self._interval = max(float(interval), 0.02)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_len = 0

    def start(self) -> None:
        if self._thread is not None:
            return
        started = time.monotonic()

        def _run() -> None:
            idx = 0
            while not self._stop.is_set():
                frame = _BRAILLE_FRAMES[idx % len(_BRAILLE_FRAMES)]
                text = f"{frame} {self._message}  {_format_elapsed(time.monotonic() - started)}"
                self._last_len = max(self._last_len, len(text))
                self._stream.write("\r" + text)
                self._stream.flush()
                idx += 1
                time.sleep(self._interval)

        self._thread = threading.Thread(target=_run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        if self._last_len > 0:
            self._stream.write("\r" + (" " * self._last_len) + "\r")
            self._stream.flush()

    def __enter__(self) -> "Spinner":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.stop()


def _failure(cmd: Sequence[str], returncode: int, stdout: str, stderr: str) -> ExternalToolError:
    detail = ""
    if stderr.strip():
        detail = "\nstderr:\n" + shorten(stderr.strip(), width=2000)
    elif stdout.strip():
        detail = "\nstdout:\n" + shorten(stdout.strip(), width=2000)
    return ExternalToolError(
        f"명령 실행 실패: {' '.join(cmd)} (exit={returncode}){detail}",
        cmd=cmd,
        returncode=returncode,
    )


def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
    stream_output: bool = False,
    check: bool = True,
    spinner_message: str | None = None,
    show_progress: bool | None = None,
) -> RunResult:
    """
    subprocess 실행 공통 유틸.

    - stream_output=False: stdout/stderr 캡처, TTY 면 스피너 표시
    - stream_output=True : 출력(stderr 포함)을 실시간으로 터미널에 흘린다
      (gcloud builds submit 처럼 오래 걸리는 명령용)
    - check=True 이면 0 이 아닌 종료 코드에서 ExternalToolError 를 던진다.
    """
    logger.info("명령 실행: %s", " ".join(cmd))
    run_env = dict(env) if env is not None else None

    if stream_output:
        try:
            proc = subprocess.Popen(  # noqa: S603
                list(cmd),
                cwd=cwd,
                env=run_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except FileNotFoundError as e:
            raise PrerequisiteError(
                f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (gcloud/git 이 설치되어 있는지 확인하세요)"
            ) from e

        out_lines: list[str] = []
        deadline = None if timeout is None else time.monotonic() + float(timeout)
        q: queue.Queue[str | None] = queue.Queue()

        def _reader() -> None:
            try:
                assert proc.stdout is not None
                for line in proc.stdout:
                    q.put(line)
            finally:
                q.put(None)

        reader_thread = threading.Thread(target=_reader, daemon=True)
        reader_thread.start()

        try:
            while True:
                now = time.monotonic()
                if deadline is not None and now >= deadline:
                    raise subprocess.TimeoutExpired(list(cmd), timeout)

                get_timeout = 0.1 if deadline is None else min(0.1, max(deadline - now, 0.0))
                try:
                    item = q.get(timeout=get_timeout)
                except queue.Empty:
                    continue
                if item is None:
                    break

                out_lines.append(item)
                sys.stdout.write(item)
                sys.stdout.flush()

            reader_thread.join(timeout=1.0)
            wait_timeout = None if deadline is None else max(deadline - time.monotonic(), 0.0)
            returncode = proc.wait(timeout=wait_timeout)
        except subprocess.TimeoutExpired as e:
            # kill 후 wait 까지 해야 좀비 프로세스가 남지 않는다.
            proc.kill()
            proc.wait()
            raise ExternalToolError(
                f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}",
                cmd=cmd,
            ) from e
        finally:
            if proc.stdout is not None:
                proc.stdout.close()

        stdout = "".join(out_lines)
        if check and returncode != 0:
            raise _failure(cmd, returncode, stdout, "")
        return RunResult(returncode=returncode, stdout=stdout, stderr="")

    effective_show = show_progress if show_progress is not None else _progress_enabled_from_env()
    spinner: Spinner | None = None
    if effective_show and _is_tty(sys.stderr):
        spinner = Spinner(spinner_message or shorten(" ".join(cmd), width=72, placeholder="…"))
        spinner.start()

    try:
        result = subprocess.run(  # noqa: S603
            list(cmd),
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=run_env,
        )
    except FileNotFoundError as e:
        raise PrerequisiteError(
            f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (gcloud/git 이 설치되어 있는지 확인하세요)"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(
            f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}",
            cmd=cmd,
        ) from e
    finally:
        if spinner is not None:
            spinner.stop()

    stdout = result.stdout or ""
    stderr = result.stderr or ""
    if stdout:
        logger.debug("명령 stdout: %s", shorten(stdout.strip(), width=2000))
    if stderr:
        logger.debug("명령 stderr: %s", shorten(stderr.strip(), width=2000))

    if check and result.returncode != 0:
        raise _failure(cmd, result.returncode, stdout, stderr)
    return RunResult(returncode=result.returncode, stdout=stdout, stderr=stderr)
