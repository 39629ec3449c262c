"""Typed remote-execution interface.

Services never compose shell text themselves. They call the operations
below with paths, and each transport is responsible for passing those
paths safely (quoted for ssh, as plain arguments for the local filesystem).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Literal, Protocol

from rd.core.result import Result

__all__ = ["RemoteError", "RemoteProtocol"]


@dataclass(frozen=True, slots=True)
class RemoteError:
    """Error from an operation on the deploy target."""

    kind: Literal["command_failed", "transfer_failed", "io_failed"]
    message: str
    hint: str | None = None


class RemoteProtocol(Protocol):
    """Operations the deploy pipeline needs from the target host."""

    def describe(self) -> str:
        """Short human-readable target name, e.g. ``deploy@example.com``."""
        ...

    def create_directories(self, paths: Sequence[PurePosixPath]) -> Result[None, RemoteError]:
        """Create directories (and parents); existing ones are left alone."""
        ...

    def exists(self, path: PurePosixPath) -> Result[bool, RemoteError]: ...

    def is_file(self, path: PurePosixPath) -> Result[bool, RemoteError]:
        """True if ``path`` resolves to a regular file."""
        ...

    def read_symlink(self, path: PurePosixPath) -> Result[str | None, RemoteError]:
        """Return the link target of ``path``, or None if it is not a symlink."""
        ...

    def replace_symlink(self, target: str, link_path: PurePosixPath) -> Result[None, RemoteError]:
        """Point ``link_path`` at ``target`` with a single rename.

        Readers resolving ``link_path`` see either the old or the new
        target, never a missing link.
        """
        ...

    def list_directories(self, root: PurePosixPath) -> Result[list[str], RemoteError]:
        """Names of the real (non-symlink) directories directly under ``root``.

        A missing ``root`` yields an empty list.
        """
        ...

    def remove_trees(self, paths: Sequence[PurePosixPath]) -> Result[None, RemoteError]: ...

    def upload_tree(
        self,
        local_dir: Path,
        remote_dir: PurePosixPath,
        *,
        exclude: Sequence[str] = (),
    ) -> Result[None, RemoteError]:
        """Mirror the contents of ``local_dir`` into ``remote_dir``.

        Files already present remotely are overwritten; files that exist
        only remotely are kept.
        """
        ...

    def upload_file(self, local_file: Path, remote_path: PurePosixPath) -> Result[None, RemoteError]: ...
