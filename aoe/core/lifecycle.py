"""Session and pane lifecycle management.

The render loop calls ``SessionLifecycleManager.tick()`` periodically. Each
tick refreshes every session's status from tmux and collects whatever the
background workers have finished since the previous tick.

Status rules, applied in order on each poll:

- ``deleting`` is final and ``error`` sticks until the pane is respawned
- a session still being created by the creation worker stays ``starting``
- a missing tmux session or a dead pane is an ``error``
- for a short grace period after launch the session stays ``starting``
- otherwise the captured pane text is classified
"""

import logging
import time
from datetime import datetime
from typing import Callable, Dict, Optional

from ..models.config import Config
from ..models.session import Instance, Status
from ..services.container_runtime import get_container_runtime
from ..services.exceptions import TmuxError
from ..services.tmux_service import TmuxService
from .constants import CAPTURE_LINES, DELETION_SHUTDOWN_TIMEOUT, STARTING_GRACE_PERIOD
from .creation_poller import CreationPoller
from .deletion_poller import DeletionPoller, delete_session
from .image_puller import ImagePuller
from .launcher import SessionLauncher
from .startup import StartupState
from .status_detection import classify
from .summary_poller import SummaryPoller, SummaryResult
from .terminal import TerminalBackend

logger = logging.getLogger(__name__)


class SessionLifecycleManager:
    """Owns session instances and drives their status state machine."""

    def __init__(
        self,
        launcher: SessionLauncher,
        image_puller: Optional[ImagePuller] = None,
        summary_poller: Optional[SummaryPoller] = None,
        creation_poller: Optional[CreationPoller] = None,
        deletion_poller: Optional[DeletionPoller] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the manager.

        Args:
            launcher: Starts and respawns sessions
            image_puller: Worker for image pulls
            summary_poller: Worker for AI summaries
            creation_poller: Worker for sandboxed session creation and
                respawn; without one, sessions are launched synchronously
            deletion_poller: Worker for session teardown; without one,
                sessions are removed synchronously
            clock: Monotonic time source, shared with the launcher
        """
        self.launcher = launcher
        self.tmux = launcher.tmux
        self.runtime = launcher.runtime
        self.config = launcher.config
        self.image_puller = image_puller
        self.summary_poller = summary_poller
        self.creation_poller = creation_poller
        self.deletion_poller = deletion_poller
        self.clock = clock
        self.instances: Dict[str, Instance] = {}
        self.summaries: Dict[str, SummaryResult] = {}
        self._creating: set[str] = set()
        self._deleting: set[str] = set()

    @classmethod
    def from_config(cls, config: Config) -> 'SessionLifecycleManager':
        """Build a manager with all workers for the configured runtime."""
        runtime = get_container_runtime(config)
        launcher = SessionLauncher(runtime, TmuxService(), config)
        return cls(
            launcher,
            image_puller=ImagePuller(runtime),
            summary_poller=SummaryPoller(),
            creation_poller=CreationPoller(runtime, config),
            deletion_poller=DeletionPoller(runtime),
        )

    def startup(self, state: StartupState):
        """Perform per-process initialisation once."""
        state.run_once("session-cache", self.tmux.refresh_session_cache)
        state.run_once("runtime-probe", self._log_runtime)

    def _log_runtime(self):
        version = self.runtime.version()
        if version:
            logger.info(f"Container runtime: {version}")
        else:
            logger.info(f"{self.runtime.display_name} is not available")

    def get(self, session_id: str) -> Instance:
        return self.instances[session_id]

    def add_instance(self, instance: Instance):
        self.instances[instance.id] = instance

    def create_session(self, instance: Instance):
        """Register and launch a session.

        Sandboxed sessions go to the creation worker when one is configured.

        Raises:
            ServiceError: If a synchronous launch fails
        """
        self.add_instance(instance)
        if instance.is_sandboxed() and self.creation_poller is not None:
            instance.status = Status.STARTING
            self._creating.add(instance.id)
            self.creation_poller.request_creation(instance)
            return
        self.launcher.start(instance)

    def _set_error(self, instance: Instance, message: str):
        if instance.status != Status.ERROR:
            logger.warning(f"Session {instance.tmux_session_name}: {message}")
        instance.status = Status.ERROR
        instance.last_error = message

    def update_status(self, instance: Instance) -> Status:
        """Poll tmux once and update the instance's status."""
        if instance.status in (Status.DELETING, Status.ERROR):
            return instance.status
        if instance.id in self._creating:
            return instance.status

        name = instance.tmux_session_name
        if not self.tmux.session_exists(name):
            self._set_error(instance, "tmux session not found")
            return instance.status
        if self.tmux.is_pane_dead(name):
            self._set_error(instance, "agent process exited")
            return instance.status

        if (
            instance.status == Status.STARTING
            and instance.last_start_time is not None
            and self.clock() - instance.last_start_time < STARTING_GRACE_PERIOD
        ):
            return instance.status

        content = self.tmux.capture_pane(name, CAPTURE_LINES)
        instance.captured_output = content
        title = self.tmux.pane_title(name) if instance.tool == "gemini" else ""
        instance.status = classify(content, instance.tool, title)
        return instance.status

    def tick(self):
        """Refresh every session and collect finished background work."""
        for instance in list(self.instances.values()):
            self.update_status(instance)
        self.drain_results()

    def drain_results(self):
        if self.creation_poller is not None:
            while True:
                created = self.creation_poller.try_recv_result()
                if created is None:
                    break
                self._apply_creation(created)

        if self.image_puller is not None:
            while True:
                pulled = self.image_puller.try_recv_result()
                if pulled is None:
                    break
                instance = self.instances.get(pulled.session_id)
                if pulled.success:
                    logger.info(f"Image {pulled.image} ready for {pulled.session_id}")
                elif instance is not None:
                    instance.last_error = pulled.error

        if self.summary_poller is not None:
            while True:
                summary = self.summary_poller.try_recv_result()
                if summary is None:
                    break
                if summary.session_id in self.instances:
                    self.summaries[summary.session_id] = summary

        if self.deletion_poller is not None:
            while True:
                deleted = self.deletion_poller.try_recv_result()
                if deleted is None:
                    break
                self._apply_deletion(deleted)

    def _apply_creation(self, result):
        self._creating.discard(result.session_id)
        current = self.instances.get(result.session_id)
        if current is None or current.status == Status.DELETING:
            return
        if result.success:
            self.instances[result.session_id] = result.instance
            # the session was created by another tmux client
            self.tmux.refresh_session_cache()
        else:
            self._set_error(current, result.error)

    def mark_deleting(self, session_id: str):
        self.get(session_id).status = Status.DELETING

    def _apply_deletion(self, result):
        self._deleting.discard(result.session_id)
        if not result.success:
            logger.warning(f"Session {result.session_id} removed with errors: {result.error}")
        self._forget(result.session_id)

    def _forget(self, session_id: str):
        self.instances.pop(session_id, None)
        self.summaries.pop(session_id, None)

    def respawn(self, session_id: str):
        """Relaunch a session's agent, clearing an error status.

        Sandboxed sessions are relaunched by the creation worker, since the
        container may have to be started or recreated first.

        Raises:
            ServiceError: If a synchronous relaunch fails
        """
        instance = self.get(session_id)
        if instance.is_sandboxed() and self.creation_poller is not None:
            instance.status = Status.STARTING
            instance.last_error = None
            self._creating.add(instance.id)
            self.creation_poller.request_creation(instance, respawn=True)
            return
        if self.tmux.session_exists(instance.tmux_session_name):
            self.launcher.respawn(instance)
        else:
            self.launcher.start(instance)

    def remove(self, session_id: str, delete_sandbox: Optional[bool] = None):
        """Tear down a session and forget it.

        With a deletion worker the session stays ``deleting`` until the
        worker reports back; it is forgotten in ``drain_results``.

        Args:
            session_id: Session to remove
            delete_sandbox: Remove the sandbox container (defaults to the
                ``sandbox.auto_cleanup`` setting)
        """
        instance = self.get(session_id)
        instance.status = Status.DELETING
        if delete_sandbox is None:
            delete_sandbox = self.config.sandbox.auto_cleanup

        if self.deletion_poller is not None:
            if session_id not in self._deleting:
                self._deleting.add(session_id)
                self.deletion_poller.request_deletion(instance, delete_sandbox)
            return

        delete_session(self.tmux, self.runtime, instance, delete_sandbox)
        self._forget(session_id)

    def attach(self, session_id: str, terminal: TerminalBackend) -> bool:
        """Hand the terminal to the session's tmux client until it detaches.

        Failures are logged once the dashboard terminal has been restored.

        Returns:
            True if the attach succeeded
        """
        instance = self.get(session_id)
        name = instance.tmux_session_name
        try:
            terminal.run_detached(lambda: self.tmux.attach_session(name))
        except TmuxError as e:
            logger.warning(f"Failed to attach to {name}: {e}")
            return False
        finally:
            self.tmux.refresh_session_cache()
        instance.last_accessed_at = datetime.now()
        return True

    def request_image_pull(self, session_id: str) -> bool:
        """Pull a sandbox image in the background if it is missing locally.

        Returns:
            True if a pull was queued
        """
        instance = self.get(session_id)
        if self.image_puller is None or not instance.is_sandboxed():
            return False
        image = instance.sandbox_info.image
        if self.runtime.image_exists_locally(image):
            return False
        self.image_puller.request_pull(session_id, image)
        return True

    def request_summary(self, session_id: str) -> bool:
        if self.summary_poller is None:
            return False
        instance = self.get(session_id)
        return self.summary_poller.request_summary(session_id, instance.captured_output)

    def shutdown(self):
        """Stop the workers, first letting queued deletions finish."""
        while self._deleting and self.deletion_poller is not None:
            deleted = self.deletion_poller.recv_result(timeout=DELETION_SHUTDOWN_TIMEOUT)
            if deleted is None:
                logger.warning(f"Gave up waiting for {len(self._deleting)} session deletions")
                break
            self._apply_deletion(deleted)

        workers = (self.image_puller, self.summary_poller, self.creation_poller, self.deletion_poller)
        for worker in workers:
            if worker is not None:
                worker.shutdown()
