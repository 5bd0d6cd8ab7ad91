"""Service layer for container runtimes and tmux."""

from .apple_container import AppleContainerService
from .container_runtime import (
    ContainerRuntime,
    RuntimeKind,
    SandboxContainer,
    get_container_runtime,
)
from .docker_service import DockerService
from .exceptions import (
    ServiceError,
    ContainerError,
    NotInstalledError,
    DaemonNotRunningError,
    PermissionDeniedError,
    ContainerNotFoundError,
    ContainerAlreadyExistsError,
    ImageNotFoundError,
    CreateFailedError,
    StartFailedError,
    StopFailedError,
    RemoveFailedError,
    CommandFailedError,
    ContainerIOError,
    TmuxError,
    TmuxSessionNotFoundError,
)
from .tmux_service import TmuxService

__all__ = [
    "AppleContainerService",
    "ContainerRuntime",
    "RuntimeKind",
    "SandboxContainer",
    "get_container_runtime",
    "DockerService",
    "TmuxService",
    "ServiceError",
    "ContainerError",
    "NotInstalledError",
    "DaemonNotRunningError",
    "PermissionDeniedError",
    "ContainerNotFoundError",
    "ContainerAlreadyExistsError",
    "ImageNotFoundError",
    "CreateFailedError",
    "StartFailedError",
    "StopFailedError",
    "RemoveFailedError",
    "CommandFailedError",
    "ContainerIOError",
    "TmuxError",
    "TmuxSessionNotFoundError",
]
