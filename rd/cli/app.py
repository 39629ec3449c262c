from __future__ import annotations

import os
from pathlib import Path

import click
import typer
from typer.core import TyperGroup

from rd import __version__
from rd.cli.commands.build_cmd import build
from rd.cli.commands.deploy_cmd import all_, deploy
from rd.cli.commands.init_cmd import init
from rd.cli.context import GlobalOptions
from rd.core.config import (
    DEFAULT_CONFIG_FILE,
    DeployConfig,
    load_config_or_default,
    resolve_environment,
)
from rd.core.errors import ErrorCode
from rd.core.result import Ok
from rd.output.console import ConsoleProtocol, RichConsole
from rd.services.layout import folder_structure_lines, usage_lines


def _print_usage(
    console: ConsoleProtocol,
    config: DeployConfig | None = None,
    environment: str | None = None,
) -> None:
    console.print("rd - release-based deployment")
    console.newline()
    for line in usage_lines():
        console.print(line)
    if config is not None:
        console.newline()
        for line in folder_structure_lines(config, environment or config.release.environment):
            console.print(line)


class _CommandGroup(TyperGroup):
    """Reject unknown commands with usage text and exit status 1."""

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        name = args[0] if args else ""
        if name and not name.startswith("-") and self.get_command(ctx, name) is None:
            console = RichConsole()
            console.error(f"Invalid command: {name}")
            console.newline()
            _print_usage(console)
            ctx.exit(int(ErrorCode.FAILURE))
        return super().resolve_command(ctx, args)


app = typer.Typer(
    cls=_CommandGroup,
    add_completion=False,
    invoke_without_command=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(init)
app.command()(build)
app.command()(deploy)
app.command("all")(all_)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Config file (default: ./{DEFAULT_CONFIG_FILE})",
        show_default=False,
    ),
    env: str | None = typer.Option(
        None,
        "--env",
        help="Environment name (overrides NODE_ENV and deploy.toml)",
        show_default=False,
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without modifying"),
) -> None:
    """Build, upload and switch releases of a web application."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ErrorCode.OK))

    ctx.obj = GlobalOptions(config_path=config, environment=env, dry_run=dry_run)

    if ctx.invoked_subcommand is None:
        console = RichConsole()
        loaded = load_config_or_default(config or Path.cwd() / DEFAULT_CONFIG_FILE)
        shown = loaded.value if isinstance(loaded, Ok) else DeployConfig()
        environment = resolve_environment(shown, override=env, environ=os.environ)
        _print_usage(console, shown, environment.unwrap_or(None))
        raise typer.Exit(code=int(ErrorCode.FAILURE))


def main() -> None:
    app()
