"""Custom exceptions for service layer."""

from typing import Optional


class ServiceError(Exception):
    """Base exception for all service-related errors."""

    pass


class ContainerError(ServiceError):
    """Exception raised for container runtime operations.

    Subclasses carry a user-facing message and, where the fix is known,
    a remediation hint appended on its own lines.
    """

    hint: Optional[str] = None

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.render())

    def render(self) -> str:
        return self.detail


class NotInstalledError(ContainerError):
    """Exception raised when the container CLI is missing."""

    hint = "Install Docker: https://docs.docker.com/get-docker/"

    def render(self) -> str:
        return f"Docker is not installed or not in PATH.\n{self.hint}"


class DaemonNotRunningError(ContainerError):
    """Exception raised when the container daemon is unreachable."""

    hint = "Start Docker Desktop or run: sudo systemctl start docker"

    def render(self) -> str:
        return f"Docker daemon is not running.\n{self.hint}"


class PermissionDeniedError(ContainerError):
    """Exception raised when the user may not talk to the daemon."""

    hint = (
        "On Linux, add your user to the docker group:\n"
        "sudo usermod -aG docker $USER\n"
        "Then log out and back in."
    )

    def render(self) -> str:
        return f"Docker permission denied.\n{self.hint}"


class ContainerNotFoundError(ContainerError):
    """Exception raised when a container is not found."""

    def render(self) -> str:
        return f"Container not found: {self.detail}"


class ContainerAlreadyExistsError(ContainerError):
    """Exception raised when creating a container whose name is taken."""

    def render(self) -> str:
        return f"Container already exists: {self.detail}"


class ImageNotFoundError(ContainerError):
    """Exception raised when an image cannot be found or pulled."""

    def render(self) -> str:
        return f"Docker image not found: {self.detail}"


class CreateFailedError(ContainerError):
    """Exception raised when container creation fails."""

    def render(self) -> str:
        return f"Failed to create container: {self.detail}"


class StartFailedError(ContainerError):
    """Exception raised when a stopped container fails to start."""

    def render(self) -> str:
        return f"Failed to start container: {self.detail}"


class StopFailedError(ContainerError):
    """Exception raised when a container fails to stop."""

    def render(self) -> str:
        return f"Failed to stop container: {self.detail}"


class RemoveFailedError(ContainerError):
    """Exception raised when a container cannot be removed."""

    def render(self) -> str:
        return f"Failed to remove container: {self.detail}"


class CommandFailedError(ContainerError):
    """Exception raised for other failed runtime commands."""

    def render(self) -> str:
        return f"Docker command failed: {self.detail}"


class ContainerIOError(ContainerError):
    """Exception raised when the runtime binary cannot be executed."""

    def render(self) -> str:
        return f"IO error: {self.detail}"


class TmuxError(ServiceError):
    """Exception raised for tmux operations."""

    pass


class TmuxSessionNotFoundError(TmuxError):
    """Exception raised when a tmux session does not exist."""

    pass


def create_error_from_output(output: str, image: str) -> ContainerError:
    """Map the failure text of a container create call to an error.

    Args:
        output: stderr or API error text reported by the runtime
        image: Image the container was created from

    Returns:
        The most specific matching error
    """
    lowered = output.lower()
    if "permission denied" in lowered:
        return PermissionDeniedError()
    if "cannot connect to the docker daemon" in lowered:
        return DaemonNotRunningError()
    if "no such image" in lowered or "unable to find image" in lowered:
        return ImageNotFoundError(image)
    return CreateFailedError(output.strip())


def missing_container_error(output: str, name: str, fallback: type) -> ContainerError:
    """Map stop/remove failure text, recognising a missing container."""
    if "no such container" in output.lower():
        return ContainerNotFoundError(name)
    return fallback(output.strip())
