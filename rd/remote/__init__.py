"""Deploy target transports."""

from __future__ import annotations

from pathlib import Path

from rd.core.config import RemoteConfig, Transport
from rd.output.console import ConsoleProtocol

from .base import RemoteError, RemoteProtocol
from .local import LocalRemote
from .ssh import SshRemote

__all__ = [
    "LocalRemote",
    "RemoteError",
    "RemoteProtocol",
    "SshRemote",
    "open_remote",
]


def open_remote(
    config: RemoteConfig,
    *,
    console: ConsoleProtocol,
    cwd: Path,
    dry_run: bool = False,
) -> RemoteProtocol:
    """Return the transport selected by ``remote.transport``."""
    if config.transport == Transport.local:
        return LocalRemote(console=console, dry_run=dry_run)
    return SshRemote(config, console=console, cwd=cwd, dry_run=dry_run)
