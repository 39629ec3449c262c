"""Subprocess execution with Result-based error handling.

Every external collaborator (the build tool, ssh, rsync) is invoked through
these two functions. Commands are always argument lists, never shell strings.

Usage:
    result = run(["ssh", "deploy@example.com", "true"], cwd=Path("."))
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from rd.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run", "run_silent"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never started).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def _execute(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None,
    timeout: float | None,
    *,
    capture: bool,
) -> Result[str, ProcessError]:
    """Run ``cmd`` once; the single place this package starts processes."""

    def failed(returncode: int, stdout: str = "", stderr: str = "") -> Err[ProcessError]:
        return Err(ProcessError(tuple(cmd), returncode, stdout, stderr))

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=capture,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return failed(-1, partial, f"Command timed out after {timeout}s")
    except OSError as e:
        return failed(-1, stderr=str(e))

    stdout = proc.stdout or ""
    if proc.returncode != 0:
        return failed(proc.returncode, stdout, proc.stderr or "")
    return Ok(stdout)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its captured stdout.

    Used for remote queries whose answer is parsed (``yes``/``no``, link
    targets, directory listings).

    Returns:
        Ok(stdout) on success, Err(ProcessError) with stderr on failure.
    """
    return _execute(cmd, cwd, env, timeout, capture=True)


def run_silent(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[None, ProcessError]:
    """Execute a command with output streaming to the terminal.

    Used for the build tool and for transfers, whose progress the user
    should see. Nothing is captured, so on failure only the exit code is
    known.
    """
    return _execute(cmd, cwd, env, timeout, capture=False).map(lambda _: None)
