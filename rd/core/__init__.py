"""Core domain types and logic."""

from .config import ConfigError, DeployConfig, SharedKind, SharedResource, load_config
from .errors import ErrorCode
from .release import ReleaseId, RemoteLayout
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "DeployConfig",
    "SharedKind",
    "SharedResource",
    "load_config",
    # errors
    "ErrorCode",
    # release
    "ReleaseId",
    "RemoteLayout",
    # result
    "Err",
    "Ok",
    "Result",
]
