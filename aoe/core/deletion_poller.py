"""Background teardown of sessions and their sandboxes."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models.session import Instance
from ..services.container_runtime import ContainerRuntime, SandboxContainer
from ..services.exceptions import ContainerError, ContainerNotFoundError, TmuxError
from ..services.tmux_service import TmuxService
from .workers import Worker

logger = logging.getLogger(__name__)


@dataclass
class DeletionRequest:
    instance: Instance
    delete_sandbox: bool


@dataclass
class DeletionResult:
    session_id: str
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


def delete_session(
    tmux: TmuxService, runtime: ContainerRuntime, instance: Instance, delete_sandbox: bool
) -> DeletionResult:
    """Kill a session's tmux session and optionally force-remove its sandbox.

    A sandbox that is already gone is not an error.
    """
    errors = []
    try:
        tmux.kill_session(instance.tmux_session_name)
    except TmuxError as e:
        logger.warning(f"Failed to kill session {instance.tmux_session_name}: {e}")
        errors.append(str(e))

    if delete_sandbox and instance.is_sandboxed():
        container = SandboxContainer(instance.id, instance.sandbox_info.image, runtime)
        try:
            container.remove(force=True)
        except ContainerNotFoundError:
            logger.debug(f"Sandbox for {instance.id} already removed")
        except ContainerError as e:
            logger.warning(f"Failed to remove sandbox for {instance.id}: {e}")
            errors.append(str(e))

    return DeletionResult(instance.id, error="; ".join(errors) or None)


class DeletionPoller:
    """Kills tmux sessions and force-removes sandbox containers off the render thread.

    Failures are reported in the result; the session is forgotten either way.
    """

    def __init__(self, runtime: ContainerRuntime):
        self.runtime = runtime
        self.tmux = TmuxService()
        self.worker: Worker[DeletionRequest, DeletionResult] = Worker(
            "deletion-poller", self._delete, self._failed
        )

    def _delete(self, request: DeletionRequest) -> DeletionResult:
        return delete_session(self.tmux, self.runtime, request.instance, request.delete_sandbox)

    def _failed(self, request: DeletionRequest, error: Exception) -> DeletionResult:
        return DeletionResult(request.instance.id, error=f"Failed to delete session: {error}")

    def request_deletion(self, instance: Instance, delete_sandbox: bool):
        self.worker.submit(DeletionRequest(instance.model_copy(deep=True), delete_sandbox))

    def try_recv_result(self) -> Optional[DeletionResult]:
        return self.worker.try_recv()

    def recv_result(self, timeout: Optional[float] = None) -> Optional[DeletionResult]:
        """Wait for the next finished deletion."""
        return self.worker.recv(timeout)

    def shutdown(self):
        self.worker.shutdown()
