"""Apple ``container`` CLI backend for sandbox containers."""

import json
import logging
import subprocess
from typing import Optional

from ..models.container import CommandOutput, ContainerConfig
from ..utils.text import json_pointer
from .exceptions import (
    CommandFailedError,
    ContainerAlreadyExistsError,
    ContainerIOError,
    ImageNotFoundError,
    NotInstalledError,
    RemoveFailedError,
    StartFailedError,
    StopFailedError,
    create_error_from_output,
    missing_container_error,
)

logger = logging.getLogger(__name__)

RUNNING_STATUS_POINTER = "/0/status"


class AppleContainerService:
    """Apple container operations through its command line tool."""

    binary = "container"

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run a container CLI command without checking its exit code.

        Raises:
            NotInstalledError: If the binary is missing
            ContainerIOError: If the binary cannot be executed
        """
        cmd = [self.binary] + args
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise NotInstalledError() from e
        except OSError as e:
            raise ContainerIOError(str(e)) from e

    def _succeeds(self, args: list[str]) -> bool:
        try:
            return self._run(args).returncode == 0
        except (NotInstalledError, ContainerIOError):
            return False

    def is_available(self) -> bool:
        return self._succeeds(["--version"])

    def is_daemon_running(self) -> bool:
        return self._succeeds(["system", "status"])

    def version(self) -> Optional[str]:
        try:
            result = self._run(["--version"])
        except (NotInstalledError, ContainerIOError):
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def image_exists_locally(self, image: str) -> bool:
        return self._succeeds(["image", "inspect", image])

    def pull_image(self, image: str):
        logger.info(f"Pulling container image '{image}'")
        result = self._run(["image", "pull", image])
        if result.returncode != 0:
            raise ImageNotFoundError(f"{image}: {result.stderr.strip()}")

    def ensure_named_volume(self, name: str):
        if self._run(["volume", "inspect", name]).returncode == 0:
            return
        result = self._run(["volume", "create", name])
        if result.returncode != 0:
            raise CommandFailedError(f"Failed to create volume {name}: {result.stderr.strip()}")

    def does_container_exist(self, name: str) -> bool:
        return self._succeeds(["logs", name])

    def is_container_running(self, name: str) -> bool:
        """Check whether the named container is running.

        Raises:
            CommandFailedError: If inspect output is not valid JSON
        """
        result = self._run(["inspect", name])
        if result.returncode != 0:
            return False
        try:
            document = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise CommandFailedError(f"Failed to parse inspect output: {e}") from e
        return json_pointer(document, RUNNING_STATUS_POINTER) == "running"

    def create_container(self, name: str, image: str, config: ContainerConfig) -> str:
        """Create and start a detached sandbox container.

        Read-only bind mounts are not supported by this runtime and are
        mounted read-write.

        Returns:
            The new container id
        """
        if self.does_container_exist(name):
            raise ContainerAlreadyExistsError(name)

        for volume in config.volumes:
            if volume.read_only:
                logger.warning(
                    f"Apple container does not support read-only mounts, "
                    f"mounting {volume.host_path} read-write"
                )

        result = self._run(config.run_args(name, image, read_only_mounts=False))
        if result.returncode != 0:
            raise create_error_from_output(result.stderr, image)
        return result.stdout.strip()

    def start_container(self, name: str):
        result = self._run(["start", name])
        if result.returncode != 0:
            raise StartFailedError(result.stderr.strip())

    def stop_container(self, name: str):
        result = self._run(["stop", name])
        if result.returncode != 0:
            raise missing_container_error(result.stderr, name, StopFailedError)

    def remove(self, name: str, force: bool = False):
        args = ["delete", "-f", name] if force else ["delete", name]
        result = self._run(args)
        if result.returncode != 0:
            raise missing_container_error(result.stderr, name, RemoveFailedError)

    def exec(self, name: str, argv: list[str]) -> CommandOutput:
        result = self._run(["exec", name] + argv)
        return CommandOutput(result.returncode, result.stdout, result.stderr)

    def exec_command(self, name: str, options: str = "") -> str:
        parts = [self.binary, "exec", "-it"]
        if options.strip():
            parts.append(options.strip())
        parts.append(name)
        return " ".join(parts)
