"""Background image pulls."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..services.container_runtime import ContainerRuntime
from ..services.exceptions import ContainerError
from .workers import Worker

logger = logging.getLogger(__name__)


@dataclass
class PullRequest:
    session_id: str
    image: str


@dataclass
class PullResult:
    session_id: str
    image: str
    success: bool
    error: Optional[str] = None


class ImagePuller:
    """Pulls sandbox images off the render thread.

    Requests are processed one at a time in arrival order; duplicate
    requests for the same image are pulled again.
    """

    def __init__(self, runtime: ContainerRuntime):
        self.runtime = runtime
        self.worker: Worker[PullRequest, PullResult] = Worker(
            "image-puller", self._pull, self._failed
        )

    def _pull(self, request: PullRequest) -> PullResult:
        try:
            self.runtime.pull_image(request.image)
        except ContainerError as e:
            return PullResult(request.session_id, request.image, False, f"Failed to pull image: {e}")
        logger.info(f"Pulled image {request.image} for session {request.session_id}")
        return PullResult(request.session_id, request.image, True)

    def _failed(self, request: PullRequest, error: Exception) -> PullResult:
        return PullResult(
            request.session_id, request.image, False, f"Failed to run image pull: {error}"
        )

    def request_pull(self, session_id: str, image: str):
        self.worker.submit(PullRequest(session_id, image))

    def try_recv_result(self) -> Optional[PullResult]:
        return self.worker.try_recv()

    def shutdown(self):
        self.worker.shutdown()
