"""Release identifiers and the remote directory layout.

A release is named by the wall-clock time it was allocated, formatted as
``YYYYMMDDHHMMSS``. Fourteen fixed-width digits sort lexicographically in
chronological order, which is what retention pruning relies on.

Remote layout under the deploy path::

    current -> releases/<id>
    releases/<id>/<shared name> -> ../../shared/<shared name>
    releases/<id>/.env -> ../../shared/.env.<environment>
    shared/
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath

__all__ = [
    "RELEASE_ID_FORMAT",
    "ReleaseId",
    "RemoteLayout",
    "env_file_name",
]

RELEASE_ID_FORMAT = "%Y%m%d%H%M%S"

_RELEASE_ID_RE = re.compile(r"^[0-9]{14}$")


@dataclass(frozen=True, slots=True, order=True)
class ReleaseId:
    """Timestamp identifier of one release directory."""

    value: str

    @classmethod
    def now(cls, clock: Callable[[], datetime] = datetime.now) -> ReleaseId:
        return cls(clock().strftime(RELEASE_ID_FORMAT))

    @classmethod
    def parse(cls, text: str) -> ReleaseId | None:
        """Return a ReleaseId if ``text`` is a canonical identifier, else None."""
        if not _RELEASE_ID_RE.match(text):
            return None
        try:
            datetime.strptime(text, RELEASE_ID_FORMAT)
        except ValueError:
            return None
        return cls(text)

    def __str__(self) -> str:
        return self.value


def env_file_name(environment: str) -> str:
    """Name of the shared environment file, e.g. ``.env.production``."""
    return f".env.{environment}"


@dataclass(frozen=True, slots=True)
class RemoteLayout:
    """Path math for the deploy root on the target host."""

    root: PurePosixPath

    @property
    def releases_path(self) -> PurePosixPath:
        return self.root / "releases"

    @property
    def current_path(self) -> PurePosixPath:
        return self.root / "current"

    @property
    def shared_path(self) -> PurePosixPath:
        return self.root / "shared"

    def release_path(self, release: ReleaseId) -> PurePosixPath:
        return self.releases_path / release.value

    def shared_item(self, name: str) -> PurePosixPath:
        return self.shared_path / name

    # Link targets are relative so the tree can be moved or mounted elsewhere.

    @staticmethod
    def current_link_target(release: ReleaseId) -> str:
        return f"releases/{release.value}"

    @staticmethod
    def shared_link_target(name: str) -> str:
        return f"../../shared/{name}"
