from __future__ import annotations

from pathlib import Path

from rd.core.config import DeployConfig
from rd.output.console import ConsoleProtocol


class BaseService:
    """Common wiring shared by the stage services.

    ``cwd`` is the local project directory: build commands run there and
    local paths (build output, static assets, shared sources, env files)
    are resolved against it.
    """

    def __init__(
        self,
        *,
        config: DeployConfig,
        console: ConsoleProtocol,
        cwd: Path,
    ) -> None:
        self._config = config
        self._console = console
        self._cwd = cwd
