from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Literal

from rd.core.config import DeployConfig
from rd.core.result import Err, Ok, Result
from rd.output.console import ConsoleProtocol
from rd.remote.base import RemoteProtocol
from rd.services.base import BaseService

# -----------------------------------------------------------------------------
# Error Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InitError:
    """Error from remote initialization."""

    kind: Literal["remote_failed"]
    message: str
    hint: str | None = None


def base_directories(config: DeployConfig) -> list[PurePosixPath]:
    """Directories every deploy root needs.

    File-kind shared resources are not listed: they appear on the first
    sync that finds them locally.
    """
    layout = config.layout
    dirs = [layout.releases_path, layout.shared_path]
    dirs += [layout.shared_item(item.name) for item in config.shared_directories]
    return dirs


class InitService(BaseService):
    """Create the releases/ and shared/ layout on the target. Never deletes."""

    def __init__(
        self,
        *,
        config: DeployConfig,
        console: ConsoleProtocol,
        cwd: Path,
        remote: RemoteProtocol,
    ) -> None:
        super().__init__(config=config, console=console, cwd=cwd)
        self._remote = remote

    def run(self) -> Result[list[PurePosixPath], InitError]:
        self._console.info("Initializing remote directory structure...")
        self._console.info(f"Target: {self._remote.describe()}:{self._config.remote.path}")

        dirs = base_directories(self._config)
        result = self._remote.create_directories(dirs)
        if isinstance(result, Err):
            return Err(
                InitError(
                    kind="remote_failed",
                    message=result.error.message,
                    hint=result.error.hint,
                )
            )

        self._console.success("Directory structure initialized")
        self._console.newline()
        self._console.print("Created directories:")
        for path in dirs:
            self._console.print(f"  - {path}/")

        files = [item.name for item in self._config.shared if not item.is_directory]
        if files:
            self._console.newline()
            self._console.print(
                f"Note: files ({', '.join(files)}) will be created during first deployment"
            )
        self._console.newline()
        self._console.info("Server is ready for deployments")
        return Ok(dirs)
