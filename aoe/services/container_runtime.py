"""Runtime-agnostic container operations.

``ContainerRuntime`` is a closed choice between the supported runtimes: it
records which kind it is and forwards every operation to the backend built
for that kind. ``SandboxContainer`` binds a session's container name and
image to a runtime.
"""

import logging
from enum import Enum
from typing import Optional

from ..core.constants import DEFAULT_SANDBOX_IMAGE
from ..models.config import Config
from ..models.container import CommandOutput, ContainerConfig
from ..models.session import generate_container_name
from .apple_container import AppleContainerService
from .docker_service import DockerService

logger = logging.getLogger(__name__)


class RuntimeKind(str, Enum):
    """Supported container runtimes."""
    DOCKER = "docker"
    APPLE_CONTAINER = "apple_container"


BACKENDS = {
    RuntimeKind.DOCKER: DockerService,
    RuntimeKind.APPLE_CONTAINER: AppleContainerService,
}


class ContainerRuntime:
    """Container operations dispatched to the selected backend."""

    def __init__(self, kind: RuntimeKind = RuntimeKind.DOCKER, backend=None):
        """Initialize the runtime.

        Args:
            kind: Which runtime to use
            backend: Pre-built backend instance (defaults to a new one for ``kind``)
        """
        self.kind = RuntimeKind(kind)
        self.backend = backend if backend is not None else BACKENDS[self.kind]()

    @property
    def display_name(self) -> str:
        return "Docker" if self.kind == RuntimeKind.DOCKER else "Apple Container"

    def is_available(self) -> bool:
        return self.backend.is_available()

    def is_daemon_running(self) -> bool:
        return self.backend.is_daemon_running()

    def version(self) -> Optional[str]:
        return self.backend.version()

    def image_exists_locally(self, image: str) -> bool:
        return self.backend.image_exists_locally(image)

    def pull_image(self, image: str):
        self.backend.pull_image(image)

    def ensure_image(self, image: str):
        """Make an image available, pulling only when it is not present locally.

        Raises:
            ImageNotFoundError: If the image is absent and the pull fails
        """
        if self.image_exists_locally(image):
            logger.info(f"Using local image '{image}'")
            return
        self.pull_image(image)

    def ensure_named_volume(self, name: str):
        self.backend.ensure_named_volume(name)

    def does_container_exist(self, name: str) -> bool:
        return self.backend.does_container_exist(name)

    def is_container_running(self, name: str) -> bool:
        return self.backend.is_container_running(name)

    def create_container(self, name: str, image: str, config: ContainerConfig) -> str:
        return self.backend.create_container(name, image, config)

    def start_container(self, name: str):
        self.backend.start_container(name)

    def stop_container(self, name: str):
        self.backend.stop_container(name)

    def remove(self, name: str, force: bool = False):
        self.backend.remove(name, force)

    def exec(self, name: str, argv: list[str]) -> CommandOutput:
        return self.backend.exec(name, argv)

    def exec_command(self, name: str, options: str = "") -> str:
        return self.backend.exec_command(name, options)

    @staticmethod
    def default_sandbox_image() -> str:
        return DEFAULT_SANDBOX_IMAGE

    @staticmethod
    def effective_default_image(config: Optional[Config] = None) -> str:
        """Return the configured sandbox image, or the built-in default."""
        if config is not None and config.sandbox.default_image:
            return config.sandbox.default_image
        return DEFAULT_SANDBOX_IMAGE


def get_container_runtime(config: Optional[Config] = None) -> ContainerRuntime:
    """Select the runtime named in configuration, defaulting to Docker."""
    name = config.sandbox.container_runtime if config is not None else RuntimeKind.DOCKER.value
    try:
        kind = RuntimeKind(name)
    except ValueError:
        logger.warning(f"Unknown container runtime '{name}', using docker")
        kind = RuntimeKind.DOCKER
    return ContainerRuntime(kind)


class SandboxContainer:
    """The sandbox container belonging to one session."""

    def __init__(self, session_id: str, image: str, runtime: ContainerRuntime):
        self.name = generate_container_name(session_id)
        self.image = image
        self.runtime = runtime

    def exists(self) -> bool:
        return self.runtime.does_container_exist(self.name)

    def is_running(self) -> bool:
        return self.runtime.is_container_running(self.name)

    def create(self, config: ContainerConfig) -> str:
        return self.runtime.create_container(self.name, self.image, config)

    def start(self):
        self.runtime.start_container(self.name)

    def stop(self):
        self.runtime.stop_container(self.name)

    def remove(self, force: bool = True):
        self.runtime.remove(self.name, force)

    def exec(self, argv: list[str]) -> CommandOutput:
        return self.runtime.exec(self.name, argv)

    def exec_command(self, options: str = "") -> str:
        return self.runtime.exec_command(self.name, options)

    def ensure(self, config_factory) -> Optional[str]:
        """Bring the container to the running state.

        Args:
            config_factory: Callable returning the ContainerConfig, only
                invoked when the container has to be created

        Returns:
            The id of a newly created container, or None when an existing
            one was reused
        """
        if self.is_running():
            return None
        if self.exists():
            logger.info(f"Starting existing container {self.name}")
            self.start()
            return None

        self.runtime.ensure_image(self.image)
        config = config_factory()
        container_id = self.create(config)
        logger.info(f"Created container {self.name} ({container_id[:12]})")
        return container_id
