from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from rd.core.result import Err, Ok, Result
from rd.output.console import Style
from rd.platform.process import run_silent
from rd.services.base import BaseService

_BUILD_TIMEOUT_SECONDS = 30 * 60.0

# -----------------------------------------------------------------------------
# Error Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BuildError:
    """Error from the local build."""

    kind: Literal["command_failed", "output_missing"]
    message: str
    hint: str | None = None


class BuildService(BaseService):
    """Run the application's build tool in the project directory."""

    @property
    def output_dir(self) -> Path:
        return self._cwd / self._config.build.output_dir

    def build(self, *, dry_run: bool = False) -> Result[Path, BuildError]:
        """Install dependencies and build; no retry on failure.

        Returns:
            Ok(path to the build output directory)
        """
        self._console.info("Building application...")
        for command in self._config.build.commands:
            cmd = list(command)
            self._console.print(" ".join(cmd), Style.DIM)
            if dry_run:
                continue
            result = run_silent(cmd, cwd=self._cwd, timeout=_BUILD_TIMEOUT_SECONDS)
            if isinstance(result, Err):
                return Err(
                    BuildError(
                        kind="command_failed",
                        message=f"{' '.join(cmd)} failed (exit {result.error.returncode})",
                        hint=result.error.stderr or None,
                    )
                )

        output = self.output_dir
        if not dry_run and not output.is_dir():
            return Err(
                BuildError(
                    kind="output_missing",
                    message=f"build finished but {self._config.build.output_dir}/ was not produced",
                    hint="Check build.output_dir in deploy.toml",
                )
            )

        self._console.success("Build complete")
        return Ok(output)
