"""Background creation of sandboxed sessions."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models.config import Config
from ..models.session import Instance
from ..services.container_runtime import ContainerRuntime
from ..services.exceptions import ServiceError
from ..services.tmux_service import TmuxService
from .launcher import SessionLauncher
from .workers import Worker

logger = logging.getLogger(__name__)


@dataclass
class CreationRequest:
    instance: Instance
    respawn: bool = False


@dataclass
class CreationResult:
    session_id: str
    instance: Optional[Instance] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


class CreationPoller:
    """Starts sessions whose sandbox setup may pull images or create containers.

    The worker gets its own tmux service and a private copy of each
    instance; the finished instance comes back in the result.
    """

    def __init__(self, runtime: ContainerRuntime, config: Optional[Config] = None):
        self.launcher = SessionLauncher(runtime, TmuxService(), config)
        self.worker: Worker[CreationRequest, CreationResult] = Worker(
            "creation-poller", self._create, self._failed
        )

    def _create(self, request: CreationRequest) -> CreationResult:
        instance = request.instance
        runtime = self.launcher.runtime
        if instance.is_sandboxed():
            if not runtime.is_available():
                return CreationResult(
                    instance.id,
                    error=f"{runtime.display_name} is not installed. "
                    f"Please install it to use sandbox mode.",
                )
            if not runtime.is_daemon_running():
                return CreationResult(
                    instance.id,
                    error=f"{runtime.display_name} daemon is not running. "
                    f"Please start it to use sandbox mode.",
                )

        try:
            if request.respawn and self.launcher.tmux.session_exists(instance.tmux_session_name):
                self.launcher.respawn(instance)
            else:
                self.launcher.start(instance)
        except ServiceError as e:
            return CreationResult(instance.id, error=str(e))
        logger.info(f"Created session {instance.tmux_session_name}")
        return CreationResult(instance.id, instance=instance)

    def _failed(self, request: CreationRequest, error: Exception) -> CreationResult:
        return CreationResult(request.instance.id, error=f"Failed to create session: {error}")

    def request_creation(self, instance: Instance, respawn: bool = False):
        """Queue a launch; with ``respawn`` an existing pane is restarted in place."""
        self.worker.submit(CreationRequest(instance.model_copy(deep=True), respawn))

    def try_recv_result(self) -> Optional[CreationResult]:
        return self.worker.try_recv()

    def shutdown(self):
        self.worker.shutdown()
