"""Deploy commands - upload a release and switch to it."""

from __future__ import annotations

import typer

from rd.cli.commands._helpers import options_of
from rd.cli.commands.build_cmd import run_build
from rd.cli.context import CLIContext, build_context
from rd.core.errors import ErrorCode
from rd.core.result import Err
from rd.output.console import Style
from rd.services.deploy import DeployService, DeployStage


def run_deploy(cli: CLIContext, *, build_planned: bool = False) -> None:
    service = DeployService(
        config=cli.config,
        console=cli.console,
        cwd=cli.cwd,
        remote=cli.remote(),
        environment=cli.environment,
        dry_run=cli.dry_run,
    )
    result = service.deploy(build_planned=build_planned)
    if not isinstance(result, Err):
        return

    error = result.error
    cli.console.error(error.message)
    if error.hint:
        cli.console.print(f"hint: {error.hint}", Style.DIM)
    if error.stage not in (DeployStage.idle, DeployStage.build_verified):
        # Nothing is rolled back; say how far the target got.
        cli.console.print(
            f"deploy stopped after stage '{error.stage}'; remote state left as-is",
            Style.DIM,
        )
    raise typer.Exit(code=int(ErrorCode.FAILURE))


def deploy(ctx: typer.Context) -> None:
    """Deploy existing build to server (skips build step)."""
    run_deploy(build_context(options_of(ctx)))


def all_(ctx: typer.Context) -> None:
    """Build and deploy."""
    cli = build_context(options_of(ctx))
    run_build(cli)
    cli.console.newline()
    run_deploy(cli, build_planned=cli.dry_run)
