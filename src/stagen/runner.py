"""Run external commands and return their trimmed standard output."""

from __future__ import annotations

import shlex
import subprocess  # noqa: S404
from typing import TYPE_CHECKING, Protocol

from stagen.exceptions import GitCommandError
from stagen.logging import logger

if TYPE_CHECKING:
    from pathlib import Path


class CommandRunner(Protocol):
    """Anything that runs ``cmd *args`` inside ``cwd`` and returns its trimmed stdout."""

    def __call__(self, cwd: Path, cmd: str, *args: str) -> str: ...


def run_command(cwd: Path, cmd: str, *args: str, timeout: float | None = None) -> str:
    """Run a command synchronously inside ``cwd``.

    Args:
        cwd (Path): working directory of the command
        cmd (str): the executable to launch
        *args (str): its arguments
        timeout (float | None): seconds before the command is killed; None waits forever

    Raises:
        GitCommandError: if the command cannot be launched, times out or exits non-zero.

    Returns:
        str: standard output with leading and trailing whitespace stripped
    """
    argv = [cmd, *args]
    command = shlex.join(argv)
    logger.debug("run_command", command=command, cwd=str(cwd))
    try:
        out = subprocess.run(  # noqa: S603
            argv,
            cwd=str(cwd),
            text=True,
            encoding="utf-8",
            errors="replace",
            capture_output=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        raise GitCommandError(
            command=command,
            returncode=e.returncode,
            stdout=e.stdout or "",
            stderr=e.stderr or "",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise GitCommandError(
            command=command,
            returncode=-1,
            stdout="",
            stderr=f"timed out after {timeout} seconds",
        ) from e
    except OSError as e:
        raise GitCommandError(command=command, returncode=-1, stdout="", stderr=str(e)) from e
    return out.stdout.strip()


class SubprocessRunner:
    """Production :class:`CommandRunner` backed by :func:`run_command`."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def __call__(self, cwd: Path, cmd: str, *args: str) -> str:
        return run_command(cwd, cmd, *args, timeout=self.timeout)
