"""Docker backend for sandbox containers."""

import logging
import shutil
from typing import Optional

import docker
import docker.errors
from docker.models.containers import Container

from ..models.container import CommandOutput, ContainerConfig
from ..utils.text import json_pointer
from .exceptions import (
    CommandFailedError,
    ContainerAlreadyExistsError,
    ContainerError,
    ContainerNotFoundError,
    DaemonNotRunningError,
    ImageNotFoundError,
    PermissionDeniedError,
    RemoveFailedError,
    StartFailedError,
    StopFailedError,
    create_error_from_output,
    missing_container_error,
)

logger = logging.getLogger(__name__)

RUNNING_STATUS_POINTER = "/State/Status"


def connection_error(error: Exception) -> ContainerError:
    """Translate a client construction failure into a runtime error."""
    message = str(error).lower()
    if "permission denied" in message:
        return PermissionDeniedError()
    if (
        "connection refused" in message
        or "cannot connect" in message
        or "no such file or directory" in message
        or "error while fetching server api version" in message
    ):
        return DaemonNotRunningError()
    return CommandFailedError(f"Failed to connect to Docker: {error}")


class DockerService:
    """Docker operations through the Docker SDK."""

    binary = "docker"

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """Initialize Docker service.

        The client is created on first use so that availability probes work
        while the daemon is down.

        Args:
            client: Pre-built Docker client (defaults to ``docker.from_env()``)
        """
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            try:
                self._client = docker.from_env()
            except docker.errors.DockerException as e:
                raise connection_error(e) from e
        return self._client

    def is_available(self) -> bool:
        return shutil.which(self.binary) is not None

    def is_daemon_running(self) -> bool:
        try:
            self.client.ping()
            return True
        except Exception as e:
            logger.debug(f"Docker daemon check failed: {e}")
            return False

    def version(self) -> Optional[str]:
        """Return the daemon version string, or None when unreachable."""
        try:
            info = self.client.version()
        except Exception as e:
            logger.debug(f"Docker version check failed: {e}")
            return None
        return f"Docker version {info.get('Version', 'unknown')}"

    def image_exists_locally(self, image: str) -> bool:
        try:
            self.client.images.get(image)
            return True
        except docker.errors.ImageNotFound:
            return False
        except ContainerError as e:
            logger.debug(f"Image inspect skipped for {image}: {e}")
            return False
        except docker.errors.APIError as e:
            logger.debug(f"Image inspect failed for {image}: {e}")
            return False

    def pull_image(self, image: str):
        """Pull an image from its registry.

        Args:
            image: Image reference

        Raises:
            ImageNotFoundError: If the registry rejects the image
        """
        logger.info(f"Pulling Docker image '{image}'")
        try:
            self.client.images.pull(image)
        except docker.errors.APIError as e:
            raise ImageNotFoundError(f"{image}: {e}") from e

    def ensure_named_volume(self, name: str):
        """Create a named volume unless it already exists.

        Raises:
            CommandFailedError: If creation fails
        """
        try:
            self.client.volumes.get(name)
            return
        except docker.errors.NotFound:
            pass
        except docker.errors.APIError as e:
            logger.debug(f"Volume inspect failed for {name}: {e}")

        try:
            self.client.volumes.create(name=name)
        except docker.errors.APIError as e:
            raise CommandFailedError(f"Failed to create volume {name}: {e}") from e

    def _get_container(self, name: str) -> Container:
        try:
            return self.client.containers.get(name)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(name) from e

    def does_container_exist(self, name: str) -> bool:
        try:
            self.client.containers.get(name)
            return True
        except docker.errors.NotFound:
            return False
        except ContainerError as e:
            logger.debug(f"Container inspect skipped for {name}: {e}")
            return False
        except docker.errors.APIError as e:
            logger.debug(f"Container inspect failed for {name}: {e}")
            return False

    def is_container_running(self, name: str) -> bool:
        """Check whether the named container is running.

        Raises:
            CommandFailedError: If the daemon returns an unexpected error
        """
        try:
            container = self.client.containers.get(name)
        except docker.errors.NotFound:
            return False
        except docker.errors.APIError as e:
            raise CommandFailedError(str(e)) from e
        return json_pointer(container.attrs, RUNNING_STATUS_POINTER) == "running"

    def create_container(self, name: str, image: str, config: ContainerConfig) -> str:
        """Create and start a detached sandbox container.

        Args:
            name: Container name
            image: Image reference
            config: Mounts, environment and limits

        Returns:
            The new container id

        Raises:
            ContainerAlreadyExistsError: If a container with this name exists
            ImageNotFoundError: If the image is unavailable
            PermissionDeniedError: If the daemon refuses the user
            DaemonNotRunningError: If the daemon is unreachable
            CreateFailedError: For any other failure
        """
        if self.does_container_exist(name):
            raise ContainerAlreadyExistsError(name)

        volumes = [volume.to_spec() for volume in config.volumes]
        volumes.extend(f"{volume}:{path}" for volume, path in config.named_volumes)
        kwargs = {}
        if config.cpu_limit:
            kwargs["nano_cpus"] = int(float(config.cpu_limit) * 1_000_000_000)
        if config.memory_limit:
            kwargs["mem_limit"] = config.memory_limit

        logger.debug(f"Creating container {name} from {image}")
        try:
            container = self.client.containers.run(
                image,
                command=["sleep", "infinity"],
                name=name,
                detach=True,
                working_dir=config.working_dir,
                volumes=volumes,
                environment=[f"{key}={value}" for key, value in config.environment],
                **kwargs,
            )
        except docker.errors.ImageNotFound as e:
            raise ImageNotFoundError(image) from e
        except docker.errors.DockerException as e:
            raise create_error_from_output(str(e), image) from e
        return container.id

    def start_container(self, name: str):
        try:
            self._get_container(name).start()
        except ContainerNotFoundError as e:
            raise StartFailedError(f"No such container: {name}") from e
        except docker.errors.APIError as e:
            raise StartFailedError(str(e)) from e

    def stop_container(self, name: str):
        try:
            self._get_container(name).stop()
        except docker.errors.APIError as e:
            raise missing_container_error(str(e), name, StopFailedError) from e

    def remove(self, name: str, force: bool = False):
        try:
            self._get_container(name).remove(force=force)
        except docker.errors.APIError as e:
            raise missing_container_error(str(e), name, RemoveFailedError) from e

    def exec(self, name: str, argv: list[str]) -> CommandOutput:
        """Run a command in the container and collect its output."""
        container = self._get_container(name)
        try:
            result = container.exec_run(argv, demux=True)
        except docker.errors.APIError as e:
            raise CommandFailedError(str(e)) from e
        stdout, stderr = result.output or (None, None)
        return CommandOutput(
            returncode=result.exit_code,
            stdout=(stdout or b"").decode("utf-8", errors="replace"),
            stderr=(stderr or b"").decode("utf-8", errors="replace"),
        )

    def exec_command(self, name: str, options: str = "") -> str:
        """Return the interactive exec prefix used to launch agents."""
        parts = [self.binary, "exec", "-it"]
        if options.strip():
            parts.append(options.strip())
        parts.append(name)
        return " ".join(parts)
