"""ssh + rsync transport.

Remote operations run as a single ``ssh`` invocation each. The remote
command line is built with ``shlex`` so configured paths and shared names
are always passed as quoted words, never as shell syntax.

Symlink replacement assumes GNU coreutils on the target (``mv -T``).
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from rd.core.config import RemoteConfig
from rd.core.result import Err, Ok, Result
from rd.output.console import ConsoleProtocol, Style
from rd.platform.process import ProcessError, run, run_silent

from .base import RemoteError

__all__ = ["SshRemote", "remote_script"]

_SSH_TIMEOUT_SECONDS = 5 * 60.0
_RSYNC_TIMEOUT_SECONDS = 60 * 60.0

_TEMP_LINK_SUFFIX = ".rd-tmp"


def remote_script(*commands: Sequence[str]) -> str:
    """Join argument lists into one ``&&``-chained, fully quoted command line."""
    return " && ".join(shlex.join(list(cmd)) for cmd in commands)


def _test_script(flag: str, path: PurePosixPath) -> str:
    quoted = shlex.quote(str(path))
    return f"if [ {flag} {quoted} ]; then echo yes; else echo no; fi"


class SshRemote:
    """Target host reached over ssh; transfers go through rsync."""

    def __init__(
        self,
        config: RemoteConfig,
        *,
        console: ConsoleProtocol,
        cwd: Path,
        dry_run: bool = False,
    ) -> None:
        self._config = config
        self._console = console
        self._cwd = cwd
        self._dry_run = dry_run

    def describe(self) -> str:
        return self._config.destination

    # -- command composition ------------------------------------------------

    def _ssh_base(self) -> list[str]:
        cmd = ["ssh"]
        if self._config.port != 22:
            cmd += ["-p", str(self._config.port)]
        cmd += list(self._config.ssh_options)
        return cmd

    def ssh_command(self, script: str) -> list[str]:
        return [*self._ssh_base(), self._config.destination, script]

    def rsync_command(
        self,
        source: str,
        destination: PurePosixPath,
        *,
        exclude: Sequence[str] = (),
    ) -> list[str]:
        cmd = ["rsync", "-avz", "--protect-args"]
        cmd += [f"--exclude={pattern}" for pattern in exclude]
        base = self._ssh_base()
        if base != ["ssh"]:
            cmd += ["-e", shlex.join(base)]
        cmd += [source, f"{self._config.destination}:{destination}"]
        return cmd

    # -- execution ------------------------------------------------------------

    def _error(self, error: ProcessError, what: str) -> RemoteError:
        detail = error.stderr.strip()
        message = f"{what} failed on {self.describe()} (exit {error.returncode})"
        if detail:
            message += f": {detail}"
        hint = None
        if error.returncode == 255:
            hint = f"Check ssh access: ssh {self.describe()} true"
        return RemoteError(kind="command_failed", message=message, hint=hint)

    def _execute(self, script: str, what: str) -> Result[None, RemoteError]:
        """Run a mutating remote command (skipped in dry-run mode)."""
        self._console.print(f"ssh {self.describe()} {script}", Style.DIM)
        if self._dry_run:
            return Ok(None)
        result = run(self.ssh_command(script), cwd=self._cwd, timeout=_SSH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(self._error(result.error, what))
        return Ok(None)

    def _query(self, script: str, what: str) -> Result[str, RemoteError]:
        """Run a read-only remote command; also executed in dry-run mode."""
        result = run(self.ssh_command(script), cwd=self._cwd, timeout=_SSH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(self._error(result.error, what))
        return Ok(result.value)

    def _transfer(self, cmd: list[str], what: str) -> Result[None, RemoteError]:
        self._console.print(shlex.join(cmd), Style.DIM)
        if self._dry_run:
            return Ok(None)
        result = run_silent(cmd, cwd=self._cwd, timeout=_RSYNC_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                RemoteError(
                    kind="transfer_failed",
                    message=f"{what} failed (exit {result.error.returncode})",
                    hint="rsync must be installed locally and on the target",
                )
            )
        return Ok(None)

    # -- operations -----------------------------------------------------------

    def create_directories(self, paths: Sequence[PurePosixPath]) -> Result[None, RemoteError]:
        if not paths:
            return Ok(None)
        script = remote_script(["mkdir", "-p", "--", *(str(p) for p in paths)])
        return self._execute(script, "mkdir")

    def exists(self, path: PurePosixPath) -> Result[bool, RemoteError]:
        return self._query(_test_script("-e", path), "existence check").map(
            lambda out: out.strip() == "yes"
        )

    def is_file(self, path: PurePosixPath) -> Result[bool, RemoteError]:
        return self._query(_test_script("-f", path), "file check").map(
            lambda out: out.strip() == "yes"
        )

    def read_symlink(self, path: PurePosixPath) -> Result[str | None, RemoteError]:
        quoted = shlex.quote(str(path))
        script = f"if [ -L {quoted} ]; then readlink -- {quoted}; fi"
        return self._query(script, "readlink").map(lambda out: out.strip() or None)

    def replace_symlink(self, target: str, link_path: PurePosixPath) -> Result[None, RemoteError]:
        # ln -sfn alone unlinks then creates; the rename makes the swap atomic.
        temp = f"{link_path}{_TEMP_LINK_SUFFIX}"
        script = remote_script(
            ["ln", "-sfn", "--", target, temp],
            ["mv", "-Tf", "--", temp, str(link_path)],
        )
        return self._execute(script, "symlink")

    def list_directories(self, root: PurePosixPath) -> Result[list[str], RemoteError]:
        quoted = shlex.quote(str(root))
        script = f"if [ -d {quoted} ]; then find {quoted} -mindepth 1 -maxdepth 1 -type d; fi"

        def names(out: str) -> list[str]:
            return sorted(PurePosixPath(line).name for line in out.splitlines() if line.strip())

        return self._query(script, "listing").map(names)

    def remove_trees(self, paths: Sequence[PurePosixPath]) -> Result[None, RemoteError]:
        if not paths:
            return Ok(None)
        script = remote_script(["rm", "-rf", "--", *(str(p) for p in paths)])
        return self._execute(script, "rm")

    def upload_tree(
        self,
        local_dir: Path,
        remote_dir: PurePosixPath,
        *,
        exclude: Sequence[str] = (),
    ) -> Result[None, RemoteError]:
        # Trailing slash on the source: copy its contents, not the directory.
        source = f"{local_dir}/"
        cmd = self.rsync_command(source, remote_dir, exclude=exclude)
        return self._transfer(cmd, f"upload of {local_dir}")

    def upload_file(self, local_file: Path, remote_path: PurePosixPath) -> Result[None, RemoteError]:
        cmd = self.rsync_command(str(local_file), remote_path)
        return self._transfer(cmd, f"upload of {local_file}")
