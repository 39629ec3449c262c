from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from rd.core.config import (
    DEFAULT_CONFIG_FILE,
    DeployConfig,
    load_config,
    load_config_or_default,
    resolve_environment,
)
from rd.core.errors import ErrorCode
from rd.core.result import Err
from rd.output.console import ConsoleProtocol, RichConsole
from rd.remote import RemoteProtocol, open_remote


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options given before the command name."""

    config_path: Path | None = None
    environment: str | None = None
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: DeployConfig
    environment: str
    console: ConsoleProtocol
    cwd: Path
    dry_run: bool = False

    def remote(self) -> RemoteProtocol:
        return open_remote(
            self.config.remote,
            console=self.console,
            cwd=self.cwd,
            dry_run=self.dry_run,
        )


def build_context(options: GlobalOptions | None = None) -> CLIContext:
    """Load config and resolve the environment once for this invocation."""
    options = options or GlobalOptions()
    console = RichConsole()
    cwd = Path.cwd()

    if options.config_path is not None:
        config_result = load_config(options.config_path)
    else:
        config_result = load_config_or_default(cwd / DEFAULT_CONFIG_FILE)
    if isinstance(config_result, Err):
        error = config_result.error
        console.error(f"invalid configuration: {error.message}")
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    config = config_result.value

    env_result = resolve_environment(config, override=options.environment, environ=os.environ)
    if isinstance(env_result, Err):
        console.error(env_result.error.message)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    return CLIContext(
        config=config,
        environment=env_result.value,
        console=console,
        cwd=cwd,
        dry_run=options.dry_run,
    )
