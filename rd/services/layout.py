"""Usage text and the remote folder structure shown with it."""

from __future__ import annotations

from rd.core.config import DeployConfig
from rd.core.release import env_file_name

_COMMANDS = (
    ("init", "Initialize remote directory structure (first-time setup)"),
    ("build", "Build the application locally only"),
    ("deploy", "Deploy existing build to server (skips build step)"),
    ("all", "Build and deploy"),
)


def usage_lines(prog: str = "rd") -> list[str]:
    lines = [
        f"Usage: {prog} [OPTIONS] COMMAND",
        "",
        "Commands:",
    ]
    lines += [f"  {name:<7} - {help_text}" for name, help_text in _COMMANDS]
    lines += [
        "",
        "Examples:",
        f"  {prog} init     # Initialize remote server structure",
        f"  {prog} all      # Build and deploy",
        f"  {prog} build    # Build only",
        f"  {prog} deploy   # Deploy only",
    ]
    return lines


def folder_structure_lines(config: DeployConfig, environment: str) -> list[str]:
    env_file = env_file_name(environment)
    build_dir = config.build.output_dir
    lines = [
        "Remote Folder Structure:",
        "",
        f"{config.remote.path}/",
        "├── current -> releases/YYYYMMDDHHMMSS/    # Symlink to active release",
        "├── releases/",
        "│   ├── 20260103143022/                    # Current release",
        f"│   │   ├── <contents of {build_dir}/>",
        f"│   │   ├── .env -> ../../shared/{env_file}",
    ]
    lines += [f"│   │   ├── {item.name} -> ../../shared/{item.name}" for item in config.shared]
    lines += [
        "│   ├── 20260103120815/                    # Previous release",
        "│   └── 20260103101234/                    # Older release",
        "└── shared/",
        f"    ├── {env_file:<36}# Environment config",
    ]
    for item in config.shared:
        if item.is_directory:
            lines.append(f"    ├── {item.name}/")
        else:
            lines.append(f"    ├── {item.name:<36}# File")
    return lines
