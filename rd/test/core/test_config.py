"""Tests for rd.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from rd.core.config import (
    DeployConfig,
    ReleaseConfig,
    RemoteConfig,
    SharedKind,
    SharedResource,
    Transport,
    load_config,
    load_config_or_default,
    resolve_environment,
    validate_config,
)
from rd.core.result import Err, Ok


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "deploy.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    def test_match_original_layout(self) -> None:
        config = DeployConfig()
        assert config.remote.host == "example.com"
        assert config.remote.path == "/home/domains/example.com"
        assert config.remote.transport == Transport.ssh
        assert config.release.keep == 10
        assert config.release.environment == "production"
        assert config.shared_names == ("content", "uploads")
        assert config.build.commands == (("npm", "install"), ("npm", "run", "build"))

    def test_frozen(self) -> None:
        config = DeployConfig()
        with pytest.raises(AttributeError):
            config.release = ReleaseConfig(keep=1)  # type: ignore[misc]

    def test_defaults_validate(self) -> None:
        assert isinstance(validate_config(DeployConfig()), Ok)


class TestDerived:
    def test_layout_paths(self) -> None:
        config = DeployConfig(remote=RemoteConfig(path="/srv/app"))
        assert str(config.layout.releases_path) == "/srv/app/releases"
        assert str(config.layout.current_path) == "/srv/app/current"
        assert str(config.layout.shared_path) == "/srv/app/shared"

    def test_transfer_excludes_include_shared_names(self) -> None:
        config = DeployConfig(
            shared=(SharedResource("content"), SharedResource("db.sqlite", SharedKind.file))
        )
        excludes = config.transfer_excludes
        assert excludes[:4] == (".git", "node_modules", ".svelte-kit", ".claude")
        assert "content" in excludes
        assert "db.sqlite" in excludes

    def test_overlay_excludes_are_anchored(self) -> None:
        config = DeployConfig(shared=(SharedResource("uploads"),))
        assert config.overlay_excludes == ("/uploads", "/.env")

    def test_shared_directories_skip_files(self) -> None:
        config = DeployConfig(
            shared=(SharedResource("uploads"), SharedResource("db.sqlite", SharedKind.file))
        )
        assert [item.name for item in config.shared_directories] == ["uploads"]

    def test_destination(self) -> None:
        assert RemoteConfig(user="deploy", host="h").destination == "deploy@h"
        assert RemoteConfig(user="", host="h").destination == "h"


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
[remote]
user = "deploy"
host = "app.example.org"
path = "/var/www/app"
port = 2222
ssh_options = ["-o", "BatchMode=yes"]

[release]
keep = 3
environment = "staging"

[build]
commands = [["make", "dist"]]
output_dir = "dist"
static_dir = "public"

[upload]
exclude = [".git"]

[[shared]]
name = "uploads"

[[shared]]
name = "db.sqlite"
kind = "file"
""",
        )

        result = load_config(path)

        assert isinstance(result, Ok)
        config = result.value
        assert config.remote.destination == "deploy@app.example.org"
        assert config.remote.port == 2222
        assert config.remote.ssh_options == ("-o", "BatchMode=yes")
        assert config.release.keep == 3
        assert config.release.environment == "staging"
        assert config.build.commands == (("make", "dist"),)
        assert config.build.output_dir == "dist"
        assert config.build.static_dir == "public"
        assert config.upload.exclude == (".git",)
        assert config.shared == (
            SharedResource("uploads", SharedKind.directory),
            SharedResource("db.sqlite", SharedKind.file),
        )

    def test_partial_file_uses_defaults(self, tmp_path: Path) -> None:
        path = _write(tmp_path, '[remote]\nhost = "h.example"\n')

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.remote.host == "h.example"
        assert result.value.release.keep == 10
        assert result.value.shared_names == ("content", "uploads")

    def test_local_transport(self, tmp_path: Path) -> None:
        path = _write(tmp_path, '[remote]\ntransport = "local"\npath = "/srv/app"\n')
        result = load_config(path)
        assert isinstance(result, Ok)
        assert result.value.remote.transport == Transport.local

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")
        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_invalid_toml(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "[remote\nhost="))
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_unknown_kind(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, '[[shared]]\nname = "x"\nkind = "socket"\n'))
        assert isinstance(result, Err)
        assert "unknown kind" in result.error.message

    def test_unknown_transport(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, '[remote]\ntransport = "ftp"\n'))
        assert isinstance(result, Err)
        assert "unknown transport" in result.error.message

    def test_keep_must_be_int(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, '[release]\nkeep = "ten"\n'))
        assert isinstance(result, Err)

    def test_bad_build_command(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, '[build]\ncommands = ["npm run build"]\n'))
        assert isinstance(result, Err)

    @pytest.mark.parametrize(
        ("content", "fragment"),
        [
            ('[remote]\nport = "2222"\n', "'port' must be an integer"),
            ("[remote]\nport = true\n", "'port' must be an integer"),
            ("[remote]\ntransport = 1\n", "'transport' must be a string"),
            ('[remote]\nssh_options = "-o BatchMode=yes"\n', "'ssh_options' must be a list"),
            ("[release]\nenvironment = 3\n", "'environment' must be a string"),
            ("[build]\noutput_dir = 7\n", "'output_dir' must be a string"),
            ("[build]\nstatic_dir = false\n", "'static_dir' must be a string"),
            ('[[shared]]\nname = "x"\nkind = 1\n', "'kind' must be a string"),
            ('remote = "deploy@host"\n', "[remote] must be a table"),
        ],
    )
    def test_wrong_types_are_rejected(self, tmp_path: Path, content: str, fragment: str) -> None:
        result = load_config(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert fragment in result.error.message

    @pytest.mark.parametrize(
        ("content", "fragment"),
        [
            ("[remote]\nport = 0\n", "remote.port out of range"),
            ("[remote]\nport = 70000\n", "remote.port out of range"),
            ('[build]\noutput_dir = ""\n', "build.output_dir must not be empty"),
            ('[release]\nenvironment = ""\n', "environment name must not be empty"),
            ('[release]\nenvironment_variable = ""\n', "environment_variable must not be empty"),
        ],
    )
    def test_explicit_values_reach_validation(
        self, tmp_path: Path, content: str, fragment: str
    ) -> None:
        result = load_config(_write(tmp_path, content))
        assert isinstance(result, Err)
        assert fragment in result.error.message

    def test_or_default_without_file(self, tmp_path: Path) -> None:
        result = load_config_or_default(tmp_path / "deploy.toml")
        assert result == Ok(DeployConfig())

    def test_or_default_with_invalid_file_is_error(self, tmp_path: Path) -> None:
        result = load_config_or_default(_write(tmp_path, "[release]\nkeep = 0\n"))
        assert isinstance(result, Err)


class TestValidation:
    @pytest.mark.parametrize(
        ("config", "fragment"),
        [
            (DeployConfig(remote=RemoteConfig(host="")), "remote.host"),
            (DeployConfig(remote=RemoteConfig(path="")), "remote.path"),
            (DeployConfig(remote=RemoteConfig(path="srv/app")), "absolute"),
            (DeployConfig(remote=RemoteConfig(path="/")), "filesystem root"),
            (DeployConfig(release=ReleaseConfig(keep=0)), "positive"),
            (DeployConfig(release=ReleaseConfig(keep=-3)), "positive"),
            (
                DeployConfig(shared=(SharedResource("uploads"), SharedResource("uploads"))),
                "duplicate",
            ),
            (DeployConfig(shared=(SharedResource(""),)), "empty"),
            (DeployConfig(shared=(SharedResource("a/b"),)), "single path component"),
            (DeployConfig(shared=(SharedResource(".."),)), "not allowed"),
            (DeployConfig(shared=(SharedResource(".env"),)), "environment file"),
        ],
    )
    def test_rejects(self, config: DeployConfig, fragment: str) -> None:
        result = validate_config(config)
        assert isinstance(result, Err)
        assert fragment in result.error.message

    def test_file_path_is_attached(self, tmp_path: Path) -> None:
        path = _write(tmp_path, '[remote]\nhost = ""\n')
        result = load_config(path)
        assert isinstance(result, Err)
        assert result.error.path == path


class TestResolveEnvironment:
    def test_default(self) -> None:
        assert resolve_environment(DeployConfig(), environ={}) == Ok("production")

    def test_environment_variable(self) -> None:
        result = resolve_environment(DeployConfig(), environ={"NODE_ENV": "staging"})
        assert result == Ok("staging")

    def test_custom_variable_name(self) -> None:
        config = DeployConfig(release=ReleaseConfig(environment_variable="APP_ENV"))
        result = resolve_environment(config, environ={"APP_ENV": "qa", "NODE_ENV": "x"})
        assert result == Ok("qa")

    def test_override_wins(self) -> None:
        result = resolve_environment(
            DeployConfig(), override="preview", environ={"NODE_ENV": "staging"}
        )
        assert result == Ok("preview")

    def test_configured_fallback(self) -> None:
        config = DeployConfig(release=ReleaseConfig(environment="development"))
        assert resolve_environment(config, environ={}) == Ok("development")

    def test_rejects_path_like_names(self) -> None:
        result = resolve_environment(DeployConfig(), override="../etc")
        assert isinstance(result, Err)
