"""Release lifecycle.

One deploy is a strictly linear pipeline; each step must succeed before the
next one starts and nothing is retried::

    idle -> build_verified -> dirs_prepared -> artifacts_uploaded
         -> shared_synced -> symlinks_linked -> env_linked
         -> cut_over -> pruned -> done

The cut-over (repointing ``current``) is the only user-visible step. A
failure before it leaves the running release untouched; the partially
written release directory stays on the target and is eventually removed by
retention pruning.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import Literal

from rd.core.config import DeployConfig, SharedResource
from rd.core.release import ReleaseId, env_file_name
from rd.core.result import Err, Ok, Result
from rd.output.console import ConsoleProtocol
from rd.remote.base import RemoteError, RemoteProtocol
from rd.services.base import BaseService
from rd.services.init import base_directories


class DeployStage(StrEnum):
    idle = "idle"
    build_verified = "build_verified"
    dirs_prepared = "dirs_prepared"
    artifacts_uploaded = "artifacts_uploaded"
    shared_synced = "shared_synced"
    symlinks_linked = "symlinks_linked"
    env_linked = "env_linked"
    cut_over = "cut_over"
    pruned = "pruned"
    done = "done"


# -----------------------------------------------------------------------------
# Error Types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DeployError:
    """Error from a deploy.

    ``stage`` is the last stage that completed before the failure.
    """

    kind: Literal["build_missing", "release_exists", "remote_failed", "transfer_failed"]
    message: str
    stage: DeployStage = DeployStage.idle
    hint: str | None = None


@dataclass(slots=True)
class DeployReport:
    release: ReleaseId
    release_path: PurePosixPath
    environment: str
    synced_shared: list[str] = field(default_factory=list)
    skipped_shared: list[str] = field(default_factory=list)
    env_linked: bool = False
    kept: list[ReleaseId] = field(default_factory=list)
    pruned: list[ReleaseId] = field(default_factory=list)


def select_pruned(
    releases: list[ReleaseId],
    *,
    keep: int,
    current: ReleaseId | None,
) -> list[ReleaseId]:
    """Return the releases retention should delete, oldest first.

    Keeps the ``keep`` newest identifiers. The release ``current`` points at
    is never returned, even if clock skew ranks it outside the window.
    """
    ordered = sorted(releases, reverse=True)
    doomed = [r for r in ordered[keep:] if r != current]
    return sorted(doomed)


def _current_release(target: str | None) -> ReleaseId | None:
    # Accepts both relative (releases/<id>) and absolute link targets.
    if not target:
        return None
    return ReleaseId.parse(PurePosixPath(target.rstrip("/")).name)


class DeployService(BaseService):
    """Upload a build as a new release and switch ``current`` to it."""

    def __init__(
        self,
        *,
        config: DeployConfig,
        console: ConsoleProtocol,
        cwd: Path,
        remote: RemoteProtocol,
        environment: str,
        clock: Callable[[], datetime] = datetime.now,
        dry_run: bool = False,
    ) -> None:
        super().__init__(config=config, console=console, cwd=cwd)
        self._remote = remote
        self._environment = environment
        self._clock = clock
        self._dry_run = dry_run
        self._stage = DeployStage.idle

    @property
    def stage(self) -> DeployStage:
        return self._stage

    @property
    def build_dir(self) -> Path:
        return self._cwd / self._config.build.output_dir

    def _fail(
        self,
        kind: Literal["build_missing", "release_exists", "remote_failed", "transfer_failed"],
        message: str,
        hint: str | None = None,
    ) -> Err[DeployError]:
        return Err(DeployError(kind=kind, message=message, stage=self._stage, hint=hint))

    def _lift(self, error: RemoteError) -> Err[DeployError]:
        kind: Literal["remote_failed", "transfer_failed"] = (
            "transfer_failed" if error.kind == "transfer_failed" else "remote_failed"
        )
        return self._fail(kind, error.message, error.hint)

    def deploy(self, *, build_planned: bool = False) -> Result[DeployReport, DeployError]:
        """Run the release pipeline.

        ``build_planned`` is set when a dry-run build preceded this call: the
        output directory was never produced, so the plan continues without it.
        """
        self._stage = DeployStage.idle
        if not self.build_dir.is_dir():
            if not (self._dry_run and build_planned):
                return self._fail(
                    "build_missing",
                    f"Build directory not found: {self._config.build.output_dir}/",
                    hint="Run 'rd build' first",
                )
            self._console.info(
                f"{self._config.build.output_dir}/ not built yet (dry run); planning upload anyway"
            )
        self._stage = DeployStage.build_verified

        release = ReleaseId.now(self._clock)
        layout = self._config.layout
        report = DeployReport(
            release=release,
            release_path=layout.release_path(release),
            environment=self._environment,
        )

        self._console.info(f"Starting deployment to {self._remote.describe()}")
        self._console.info(f"Release: {release}")
        self._console.newline()

        steps: list[tuple[Callable[[DeployReport], Result[None, DeployError]], DeployStage]] = [
            (self._prepare_directories, DeployStage.dirs_prepared),
            (self._upload_artifacts, DeployStage.artifacts_uploaded),
            (self._sync_shared, DeployStage.shared_synced),
            (self._link_shared, DeployStage.symlinks_linked),
            (self._link_environment, DeployStage.env_linked),
            (self._cut_over, DeployStage.cut_over),
            (self._prune, DeployStage.pruned),
        ]
        for step, reached in steps:
            result = step(report)
            if isinstance(result, Err):
                return result
            self._stage = reached

        self._print_summary(report)
        self._stage = DeployStage.done
        return Ok(report)

    # -- steps ----------------------------------------------------------------

    def _prepare_directories(self, report: DeployReport) -> Result[None, DeployError]:
        self._console.info("Creating directory structure on remote server...")
        created = self._remote.create_directories(base_directories(self._config))
        if isinstance(created, Err):
            return self._lift(created.error)

        exists = self._remote.exists(report.release_path)
        if isinstance(exists, Err):
            return self._lift(exists.error)
        if exists.value:
            return self._fail(
                "release_exists",
                f"Release directory already exists: {report.release_path}",
                hint="Another deploy used the same timestamp; retry in a second",
            )
        self._console.success("Directory structure created")
        return Ok(None)

    def _upload_artifacts(self, report: DeployReport) -> Result[None, DeployError]:
        self._console.info(f"Uploading application files to {report.release_path}...")
        uploaded = self._remote.upload_tree(
            self.build_dir,
            report.release_path,
            exclude=self._config.transfer_excludes,
        )
        if isinstance(uploaded, Err):
            return self._lift(uploaded.error)
        self._console.success("Application files uploaded")

        static_dir = self._cwd / self._config.build.static_dir
        if not static_dir.is_dir():
            self._console.info(f"Skipping static files ({self._config.build.static_dir}/ not found)")
            return Ok(None)

        self._console.info("Uploading static files (overwriting duplicates)...")
        overlaid = self._remote.upload_tree(
            static_dir,
            report.release_path,
            exclude=self._config.overlay_excludes,
        )
        if isinstance(overlaid, Err):
            return self._lift(overlaid.error)
        self._console.success("Static files uploaded")
        return Ok(None)

    def _sync_one(self, item: SharedResource) -> Result[bool, DeployError]:
        local = self._cwd / item.name
        remote_path = self._config.layout.shared_item(item.name)

        if item.is_directory and local.is_dir():
            result = self._remote.upload_tree(local, remote_path)
        elif not item.is_directory and local.is_file():
            result = self._remote.upload_file(local, remote_path)
        elif local.exists():
            self._console.warning(f"Skipping {item.name} (local path is not a {item.kind})")
            return Ok(False)
        else:
            self._console.info(f"Skipping {item.name} (not found locally)")
            return Ok(False)

        if isinstance(result, Err):
            return self._lift(result.error)
        self._console.success(f"Synced {item.name}")
        return Ok(True)

    def _sync_shared(self, report: DeployReport) -> Result[None, DeployError]:
        self._console.info("Syncing shared directories...")
        for item in self._config.shared:
            synced = self._sync_one(item)
            if isinstance(synced, Err):
                return synced
            if synced.value:
                report.synced_shared.append(item.name)
            else:
                report.skipped_shared.append(item.name)
        return Ok(None)

    def _link_shared(self, report: DeployReport) -> Result[None, DeployError]:
        self._console.info("Creating symlinks for shared directories...")
        layout = self._config.layout
        for item in self._config.shared:
            linked = self._remote.replace_symlink(
                layout.shared_link_target(item.name),
                report.release_path / item.name,
            )
            if isinstance(linked, Err):
                return self._lift(linked.error)
            self._console.success(f"Symlinked {item.name}")
        return Ok(None)

    def _link_environment(self, report: DeployReport) -> Result[None, DeployError]:
        name = env_file_name(self._environment)
        layout = self._config.layout
        shared_env = layout.shared_item(name)

        self._console.info(f"Managing environment file for: {self._environment}")
        local_env = self._cwd / name
        synced = local_env.is_file()
        if synced:
            self._console.info(f"Syncing {name} to shared folder...")
            uploaded = self._remote.upload_file(local_env, shared_env)
            if isinstance(uploaded, Err):
                return self._lift(uploaded.error)
            self._console.success("Environment file synced")
        else:
            self._console.info(f"No local {name} found, skipping sync")

        present = self._remote.is_file(shared_env)
        if isinstance(present, Err):
            return self._lift(present.error)
        # A dry run never uploads, so the synced file is not there to find.
        if not present.value and not (self._dry_run and synced):
            self._console.info(f"No {name} found in shared folder, skipping symlink")
            return Ok(None)

        linked = self._remote.replace_symlink(
            layout.shared_link_target(name),
            report.release_path / ".env",
        )
        if isinstance(linked, Err):
            return self._lift(linked.error)
        report.env_linked = True
        self._console.success(f"Symlinked .env -> shared/{name}")
        return Ok(None)

    def _cut_over(self, report: DeployReport) -> Result[None, DeployError]:
        self._console.info("Updating current release symlink...")
        layout = self._config.layout
        switched = self._remote.replace_symlink(
            layout.current_link_target(report.release),
            layout.current_path,
        )
        if isinstance(switched, Err):
            return self._lift(switched.error)
        self._console.success(f"Current symlink updated to {report.release}")
        return Ok(None)

    def _prune(self, report: DeployReport) -> Result[None, DeployError]:
        keep = self._config.release.keep
        layout = self._config.layout
        self._console.info(f"Cleaning up old releases (keeping last {keep})...")

        listed = self._remote.list_directories(layout.releases_path)
        if isinstance(listed, Err):
            return self._lift(listed.error)
        current_target = self._remote.read_symlink(layout.current_path)
        if isinstance(current_target, Err):
            return self._lift(current_target.error)

        releases = [r for r in (ReleaseId.parse(name) for name in listed.value) if r is not None]
        doomed = select_pruned(releases, keep=keep, current=_current_release(current_target.value))

        removed = self._remote.remove_trees([layout.release_path(r) for r in doomed])
        if isinstance(removed, Err):
            return self._lift(removed.error)

        report.pruned = doomed
        report.kept = sorted((r for r in releases if r not in doomed), reverse=True)
        self._console.success(f"Old releases cleaned up ({len(report.kept)} releases kept)")
        return Ok(None)

    def _print_summary(self, report: DeployReport) -> None:
        rule = "=" * 41
        self._console.newline()
        self._console.print(rule)
        self._console.print("Deployment Summary")
        self._console.print(rule)
        self._console.print(f"Release:       {report.release}")
        self._console.print(f"Environment:   {report.environment}")
        self._console.print(f"Remote host:   {self._remote.describe()}")
        self._console.print(f"Deploy path:   {self._config.remote.path}")
        self._console.print(f"Shared paths:  {' '.join(self._config.shared_names)}")
        self._console.print(f"Releases kept: {len(report.kept)} (pruned {len(report.pruned)})")
        self._console.print(rule)
        self._console.success("Deployment complete!")
