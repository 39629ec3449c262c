"""Local filesystem transport.

Applies the same operations as the ssh transport to a deploy root on this
machine (``transport = "local"``): useful when the deploy runs on the
application host itself, and as the fast path in tests.
"""

from __future__ import annotations

import fnmatch
import os
import shutil
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from rd.core.result import Err, Ok, Result
from rd.output.console import ConsoleProtocol, Style

from .base import RemoteError

__all__ = ["LocalRemote"]

_TEMP_LINK_SUFFIX = ".rd-tmp"


def _excluded(name: str, patterns: Sequence[str], *, top: bool) -> bool:
    # rsync rules: a plain pattern matches the basename at any depth, a
    # leading slash anchors it to the root of the transfer.
    for pattern in patterns:
        if pattern.startswith("/"):
            if top and fnmatch.fnmatch(name, pattern[1:]):
                return True
        elif fnmatch.fnmatch(name, pattern):
            return True
    return False


def _io_error(what: str, error: OSError) -> RemoteError:
    return RemoteError(kind="io_failed", message=f"{what} failed: {error}")


def _copy_entry(src: Path, dst: Path) -> None:
    if dst.is_symlink() or (dst.exists() and not dst.is_dir()):
        dst.unlink()
    if src.is_symlink():
        os.symlink(os.readlink(src), dst)
    else:
        shutil.copy2(src, dst)


def _mirror(src_dir: Path, dst_dir: Path, exclude: Sequence[str], *, top: bool = True) -> None:
    dst_dir.mkdir(parents=True, exist_ok=True)
    for entry in sorted(src_dir.iterdir()):
        if _excluded(entry.name, exclude, top=top):
            continue
        target = dst_dir / entry.name
        if entry.is_dir() and not entry.is_symlink():
            if target.is_symlink() or (target.exists() and not target.is_dir()):
                target.unlink()
            _mirror(entry, target, exclude, top=False)
        else:
            _copy_entry(entry, target)


class LocalRemote:
    """Deploy root on the local filesystem."""

    def __init__(self, *, console: ConsoleProtocol, dry_run: bool = False) -> None:
        self._console = console
        self._dry_run = dry_run

    def describe(self) -> str:
        return "local"

    def _announce(self, line: str) -> bool:
        """Print the operation; return True if it should actually run."""
        self._console.print(line, Style.DIM)
        return not self._dry_run

    def create_directories(self, paths: Sequence[PurePosixPath]) -> Result[None, RemoteError]:
        if not paths or not self._announce("mkdir -p " + " ".join(str(p) for p in paths)):
            return Ok(None)
        try:
            for path in paths:
                Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(_io_error("mkdir", e))
        return Ok(None)

    def exists(self, path: PurePosixPath) -> Result[bool, RemoteError]:
        return Ok(Path(path).exists())

    def is_file(self, path: PurePosixPath) -> Result[bool, RemoteError]:
        return Ok(Path(path).is_file())

    def read_symlink(self, path: PurePosixPath) -> Result[str | None, RemoteError]:
        p = Path(path)
        if not p.is_symlink():
            return Ok(None)
        try:
            return Ok(os.readlink(p))
        except OSError as e:
            return Err(_io_error("readlink", e))

    def replace_symlink(self, target: str, link_path: PurePosixPath) -> Result[None, RemoteError]:
        if not self._announce(f"ln -sfn {target} {link_path}"):
            return Ok(None)
        link = Path(link_path)
        temp = link.with_name(link.name + _TEMP_LINK_SUFFIX)
        try:
            if temp.is_symlink() or temp.exists():
                temp.unlink()
            os.symlink(target, temp)
            os.replace(temp, link)
        except OSError as e:
            if temp.is_symlink():
                temp.unlink()
            return Err(_io_error(f"symlink {link_path}", e))
        return Ok(None)

    def list_directories(self, root: PurePosixPath) -> Result[list[str], RemoteError]:
        if not Path(root).is_dir():
            return Ok([])
        try:
            with os.scandir(root) as entries:
                names = [e.name for e in entries if e.is_dir(follow_symlinks=False)]
        except OSError as e:
            return Err(_io_error(f"listing {root}", e))
        return Ok(sorted(names))

    def remove_trees(self, paths: Sequence[PurePosixPath]) -> Result[None, RemoteError]:
        if not paths or not self._announce("rm -rf " + " ".join(str(p) for p in paths)):
            return Ok(None)
        try:
            for path in paths:
                p = Path(path)
                if p.is_symlink() or p.is_file():
                    p.unlink()
                elif p.exists():
                    shutil.rmtree(p)
        except OSError as e:
            return Err(_io_error("rm", e))
        return Ok(None)

    def upload_tree(
        self,
        local_dir: Path,
        remote_dir: PurePosixPath,
        *,
        exclude: Sequence[str] = (),
    ) -> Result[None, RemoteError]:
        if not self._announce(f"copy {local_dir}/ -> {remote_dir}/"):
            return Ok(None)
        try:
            _mirror(local_dir, Path(remote_dir), exclude)
        except OSError as e:
            return Err(
                RemoteError(kind="transfer_failed", message=f"copy of {local_dir} failed: {e}")
            )
        return Ok(None)

    def upload_file(self, local_file: Path, remote_path: PurePosixPath) -> Result[None, RemoteError]:
        if not self._announce(f"copy {local_file} -> {remote_path}"):
            return Ok(None)
        try:
            _copy_entry(local_file, Path(remote_path))
        except OSError as e:
            return Err(
                RemoteError(kind="transfer_failed", message=f"copy of {local_file} failed: {e}")
            )
        return Ok(None)
