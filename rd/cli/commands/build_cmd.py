"""Build command - run the local build only."""

from __future__ import annotations

import typer

from rd.cli.commands._helpers import exit_on_error, options_of
from rd.cli.context import CLIContext, build_context
from rd.services.build import BuildService


def run_build(cli: CLIContext) -> None:
    cli.console.info("Running build step...")
    cli.console.newline()
    service = BuildService(config=cli.config, console=cli.console, cwd=cli.cwd)
    exit_on_error(service.build(dry_run=cli.dry_run), cli)
    cli.console.newline()
    cli.console.success("Build completed successfully!")


def build(ctx: typer.Context) -> None:
    """Build the application locally only."""
    cli = build_context(options_of(ctx))
    run_build(cli)
    cli.console.newline()
    cli.console.print(f"Build artifacts are in the '{cli.config.build.output_dir}/' directory")
    cli.console.print("Run 'rd deploy' to deploy to server")
