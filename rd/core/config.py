"""Typed configuration loading and validation.

This module provides dataclasses for the deploy.toml structure. A config
is built once at startup and passed explicitly to every service; nothing
reads settings from module globals.

Example deploy.toml::

    [remote]
    user = "deploy"
    host = "example.com"
    path = "/home/domains/example.com"

    [release]
    keep = 10

    [[shared]]
    name = "uploads"

    [[shared]]
    name = "db.sqlite"
    kind = "file"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath

from .release import RemoteLayout
from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_str_list,
    get_table,
    get_table_list,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_ENVIRONMENT",
    "BuildConfig",
    "ConfigError",
    "DeployConfig",
    "ReleaseConfig",
    "RemoteConfig",
    "SharedKind",
    "SharedResource",
    "Transport",
    "UploadConfig",
    "load_config",
    "load_config_or_default",
    "resolve_environment",
    "validate_config",
]

DEFAULT_CONFIG_FILE = "deploy.toml"
DEFAULT_ENVIRONMENT = "production"
DEFAULT_ENVIRONMENT_VARIABLE = "NODE_ENV"
DEFAULT_KEEP_RELEASES = 10
DEFAULT_SSH_PORT = 22

DEFAULT_BUILD_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("npm", "install"),
    ("npm", "run", "build"),
)
DEFAULT_EXCLUDES: tuple[str, ...] = (".git", "node_modules", ".svelte-kit", ".claude")


class Transport(StrEnum):
    ssh = "ssh"
    local = "local"


class SharedKind(StrEnum):
    directory = "directory"
    file = "file"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded, parsed or validated."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class SharedResource:
    """A path persisted across releases under shared/ and linked into each."""

    name: str
    kind: SharedKind = SharedKind.directory

    @property
    def is_directory(self) -> bool:
        return self.kind == SharedKind.directory


@dataclass(frozen=True, slots=True)
class RemoteConfig:
    """Target host and deploy root.

    With ``transport = "local"`` the deploy root is a directory on this
    machine and user/host are only used for display.
    """

    user: str = "user"
    host: str = "example.com"
    path: str = "/home/domains/example.com"
    transport: Transport = Transport.ssh
    port: int = DEFAULT_SSH_PORT
    ssh_options: tuple[str, ...] = ()

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    keep: int = DEFAULT_KEEP_RELEASES
    environment: str = DEFAULT_ENVIRONMENT
    environment_variable: str = DEFAULT_ENVIRONMENT_VARIABLE


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Local build collaborator and the directories it produces."""

    commands: tuple[tuple[str, ...], ...] = DEFAULT_BUILD_COMMANDS
    output_dir: str = "build"
    static_dir: str = "static"


@dataclass(frozen=True, slots=True)
class UploadConfig:
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES


def _default_shared() -> tuple[SharedResource, ...]:
    return (SharedResource("content"), SharedResource("uploads"))


@dataclass(frozen=True, slots=True)
class DeployConfig:
    """Main configuration container."""

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    shared: tuple[SharedResource, ...] = field(default_factory=_default_shared)

    @property
    def layout(self) -> RemoteLayout:
        return RemoteLayout(PurePosixPath(self.remote.path))

    @property
    def shared_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.shared)

    @property
    def shared_directories(self) -> tuple[SharedResource, ...]:
        return tuple(item for item in self.shared if item.is_directory)

    @property
    def overlay_excludes(self) -> tuple[str, ...]:
        """Top-level release entries the static overlay must not replace.

        They are symlinks into shared/; the leading slash anchors each
        pattern to the release root, as rsync does.
        """
        return tuple(f"/{name}" for name in (*self.shared_names, ".env"))

    @property
    def transfer_excludes(self) -> tuple[str, ...]:
        """Patterns kept out of the artifact mirror.

        Shared content is always excluded: it lives under shared/ and is
        linked into the release, never copied into it.
        """
        out = list(self.upload.exclude)
        for name in self.shared_names:
            if name not in out:
                out.append(name)
        return tuple(out)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> DeployConfig:
        """Create DeployConfig from a mapping (parsed TOML).

        Raises:
            ValueError: On values of the wrong type or unknown enum members.
        """
        remote = _table_or_empty(data, "remote")
        release = _table_or_empty(data, "release")
        build = _table_or_empty(data, "build")
        upload = _table_or_empty(data, "upload")

        defaults = cls()

        transport_raw = _str_or_default(remote, "transport", str(Transport.ssh))
        try:
            transport = Transport(transport_raw)
        except ValueError:
            raise ValueError(f"unknown transport '{transport_raw}' (expected ssh | local)") from None

        return cls(
            remote=RemoteConfig(
                user=_str_or_default(remote, "user", defaults.remote.user),
                host=_str_or_default(remote, "host", defaults.remote.host),
                path=_str_or_default(remote, "path", defaults.remote.path),
                transport=transport,
                port=_int_or_default(remote, "port", DEFAULT_SSH_PORT),
                ssh_options=_str_list_or_empty(remote, "ssh_options"),
            ),
            release=ReleaseConfig(
                keep=_int_or_default(release, "keep", DEFAULT_KEEP_RELEASES),
                environment=_str_or_default(release, "environment", DEFAULT_ENVIRONMENT),
                environment_variable=_str_or_default(
                    release, "environment_variable", DEFAULT_ENVIRONMENT_VARIABLE
                ),
            ),
            build=BuildConfig(
                commands=_parse_commands(build),
                output_dir=_str_or_default(build, "output_dir", defaults.build.output_dir),
                static_dir=_str_or_default(build, "static_dir", defaults.build.static_dir),
            ),
            upload=UploadConfig(
                exclude=_parse_excludes(upload),
            ),
            shared=_parse_shared(data),
        )


def _table_or_empty(data: Mapping[str, object], key: str) -> StrDict:
    if key not in data:
        return {}
    table = get_table(data, key)
    if table is None:
        raise ValueError(f"[{key}] must be a table")
    return table


def _str_or_default(table: Mapping[str, object], key: str, default: str) -> str:
    # An explicit empty string is kept so validation can reject it.
    if key not in table:
        return default
    value = table[key]
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value.strip()


def _str_list_or_empty(table: Mapping[str, object], key: str) -> tuple[str, ...]:
    if key not in table:
        return ()
    values = get_str_list(table, key)
    if values is None:
        raise ValueError(f"'{key}' must be a list of strings")
    return tuple(values)


def _int_or_default(table: Mapping[str, object], key: str, default: int) -> int:
    if key not in table:
        return default
    value = table[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' must be an integer")
    return value


def _parse_commands(build: Mapping[str, object]) -> tuple[tuple[str, ...], ...]:
    if "commands" not in build:
        return DEFAULT_BUILD_COMMANDS
    raw = build["commands"]
    if not isinstance(raw, list):
        raise ValueError("build.commands must be a list of argument lists")
    commands: list[tuple[str, ...]] = []
    for entry in raw:
        if not isinstance(entry, list) or not entry:
            raise ValueError("each build command must be a non-empty list of strings")
        if not all(isinstance(arg, str) for arg in entry):
            raise ValueError("each build command must be a non-empty list of strings")
        commands.append(tuple(str(arg) for arg in entry))
    return tuple(commands)


def _parse_excludes(upload: Mapping[str, object]) -> tuple[str, ...]:
    if "exclude" not in upload:
        return DEFAULT_EXCLUDES
    excludes = get_str_list(upload, "exclude")
    if excludes is None:
        raise ValueError("upload.exclude must be a list of strings")
    return tuple(excludes)


def _parse_shared(data: Mapping[str, object]) -> tuple[SharedResource, ...]:
    if "shared" not in data:
        return _default_shared()
    entries = get_table_list(data, "shared")
    if entries is None:
        raise ValueError("shared must be an array of tables ([[shared]])")

    out: list[SharedResource] = []
    for entry in entries:
        name = entry.get("name")
        if not isinstance(name, str):
            raise ValueError("every [[shared]] entry needs a string 'name'")
        kind_raw = _str_or_default(entry, "kind", str(SharedKind.directory))
        try:
            kind = SharedKind(kind_raw)
        except ValueError:
            raise ValueError(f"shared '{name}': unknown kind '{kind_raw}' (expected directory | file)") from None
        out.append(SharedResource(name=name.strip(), kind=kind))
    return tuple(out)


def _shared_name_problem(name: str) -> str | None:
    if not name:
        return "shared resource name is empty"
    if name in (".", ".."):
        return f"shared resource name '{name}' is not allowed"
    if "/" in name or "\\" in name:
        return f"shared resource '{name}' must be a single path component"
    if name == ".env":
        return "shared resource '.env' collides with the environment file link"
    return None


def validate_config(config: DeployConfig, path: Path | None = None) -> Result[DeployConfig, ConfigError]:
    """Reject configurations that would produce a broken remote layout.

    Returns the first problem found.
    """
    problems: list[str] = []

    remote = config.remote
    if not remote.host:
        problems.append("remote.host must not be empty")
    if not remote.path:
        problems.append("remote.path must not be empty")
    elif not remote.path.startswith("/"):
        problems.append(f"remote.path must be absolute: {remote.path}")
    elif PurePosixPath(remote.path) == PurePosixPath("/"):
        problems.append("remote.path must not be the filesystem root")
    if not 0 < remote.port < 65536:
        problems.append(f"remote.port out of range: {remote.port}")

    if config.release.keep < 1:
        problems.append(f"release.keep must be a positive integer (got {config.release.keep})")
    if not config.release.environment_variable:
        problems.append("release.environment_variable must not be empty")
    env_problem = _environment_problem(config.release.environment)
    if env_problem:
        problems.append(env_problem)

    if not config.build.commands:
        problems.append("build.commands must not be empty")
    if not config.build.output_dir:
        problems.append("build.output_dir must not be empty")

    seen: set[str] = set()
    for item in config.shared:
        problem = _shared_name_problem(item.name)
        if problem:
            problems.append(problem)
            continue
        if item.name in seen:
            problems.append(f"duplicate shared resource: {item.name}")
        seen.add(item.name)

    if problems:
        return Err(ConfigError(problems[0], path=path))
    return Ok(config)


def _environment_problem(environment: str) -> str | None:
    if not environment:
        return "environment name must not be empty"
    if "/" in environment or environment in (".", ".."):
        return f"invalid environment name: {environment}"
    return None


def resolve_environment(
    config: DeployConfig,
    *,
    override: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> Result[str, ConfigError]:
    """Resolve the environment name once per invocation.

    Precedence: explicit override, then the configured environment
    variable (``NODE_ENV`` by default), then ``release.environment``.
    """
    if override:
        candidate = override.strip()
    else:
        env_value = (environ or {}).get(config.release.environment_variable, "").strip()
        candidate = env_value or config.release.environment

    problem = _environment_problem(candidate)
    if problem:
        return Err(ConfigError(problem))
    return Ok(candidate)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[DeployConfig, ConfigError]:
    """Load, parse and validate configuration from a TOML file.

    Args:
        path: Path to deploy.toml

    Returns:
        Ok(DeployConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        config = DeployConfig.from_dict(result.value)
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
    return validate_config(config, path)


def load_config_or_default(path: Path) -> Result[DeployConfig, ConfigError]:
    """Load config from file, or use the built-in defaults if it doesn't exist.

    A file that exists but is invalid is still an error.
    """
    if not path.exists():
        return validate_config(DeployConfig())
    return load_config(path)
