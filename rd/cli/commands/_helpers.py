"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import typer

from rd.core.errors import ErrorCode
from rd.core.result import Err, Result
from rd.output.console import Style

if TYPE_CHECKING:
    from rd.cli.context import CLIContext, GlobalOptions


T = TypeVar("T")
E = TypeVar("E")


def options_of(ctx: typer.Context) -> GlobalOptions | None:
    from rd.cli.context import GlobalOptions

    obj = ctx.obj
    return obj if isinstance(obj, GlobalOptions) else None


def exit_on_error[T, E](
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.FAILURE,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
