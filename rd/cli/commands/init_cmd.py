"""Init command - create the remote directory layout."""

from __future__ import annotations

import typer

from rd.cli.commands._helpers import exit_on_error, options_of
from rd.cli.context import build_context
from rd.services.init import InitService


def init(ctx: typer.Context) -> None:
    """Initialize remote directory structure (first-time setup)."""
    cli = build_context(options_of(ctx))
    service = InitService(
        config=cli.config,
        console=cli.console,
        cwd=cli.cwd,
        remote=cli.remote(),
    )
    exit_on_error(service.run(), cli)
