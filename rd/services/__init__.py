"""Deploy stages."""

from .build import BuildError, BuildService
from .deploy import DeployError, DeployReport, DeployService, DeployStage
from .init import InitError, InitService

__all__ = [
    "BuildError",
    "BuildService",
    "DeployError",
    "DeployReport",
    "DeployService",
    "DeployStage",
    "InitError",
    "InitService",
]
