from __future__ import annotations

from pathlib import Path

import click
import pytest
import typer

from rd.cli.context import CLIContext
from rd.core.config import DeployConfig, RemoteConfig, Transport
from rd.core.errors import ErrorCode
from rd.core.result import Err, Ok, Result
from rd.output.console import MockConsole
from rd.services.deploy import DeployError, DeployStage


def _ctx(tmp_path: Path) -> CLIContext:
    return CLIContext(
        config=DeployConfig(remote=RemoteConfig(path=str(tmp_path / "srv"), transport=Transport.local)),
        environment="production",
        console=MockConsole(),
        cwd=tmp_path,
    )


def _patch_deploy(monkeypatch: pytest.MonkeyPatch, result: Result[object, DeployError]) -> None:
    import rd.cli.commands.deploy_cmd as deploy_cmd

    class FakeDeployService:
        def __init__(self, **_: object) -> None:
            pass

        def deploy(self, *, build_planned: bool = False) -> Result[object, DeployError]:
            return result

    monkeypatch.setattr(deploy_cmd, "DeployService", FakeDeployService)


def test_deploy_reports_stage_on_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import rd.cli.commands.deploy_cmd as deploy_cmd

    ctx = _ctx(tmp_path)
    monkeypatch.setattr(deploy_cmd, "build_context", lambda _options: ctx)
    _patch_deploy(
        monkeypatch,
        Err(
            DeployError(
                kind="transfer_failed",
                message="upload of build failed (exit 23)",
                stage=DeployStage.dirs_prepared,
                hint="rsync must be installed locally and on the target",
            )
        ),
    )

    with pytest.raises(typer.Exit) as exc:
        deploy_cmd.deploy(typer.Context(click.Command("rd")))

    assert exc.value.exit_code == int(ErrorCode.FAILURE)
    console = ctx.console
    assert isinstance(console, MockConsole)
    assert console.messages[0] == "==> ✗ Error: upload of build failed (exit 23)"
    assert console.find("hint: rsync must be installed")
    assert console.find("stopped after stage 'dirs_prepared'")


def test_deploy_before_remote_has_no_stage_note(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import rd.cli.commands.deploy_cmd as deploy_cmd

    ctx = _ctx(tmp_path)
    monkeypatch.setattr(deploy_cmd, "build_context", lambda _options: ctx)
    _patch_deploy(
        monkeypatch,
        Err(DeployError(kind="build_missing", message="Build directory not found: build/")),
    )

    with pytest.raises(typer.Exit):
        deploy_cmd.deploy(typer.Context(click.Command("rd")))

    assert isinstance(ctx.console, MockConsole)
    assert not ctx.console.find("stopped after stage")


def test_deploy_success(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import rd.cli.commands.deploy_cmd as deploy_cmd

    ctx = _ctx(tmp_path)
    monkeypatch.setattr(deploy_cmd, "build_context", lambda _options: ctx)
    _patch_deploy(monkeypatch, Ok(None))

    deploy_cmd.deploy(typer.Context(click.Command("rd")))

    assert isinstance(ctx.console, MockConsole)
    assert not ctx.console.has_error()
