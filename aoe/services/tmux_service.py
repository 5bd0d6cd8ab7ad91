"""tmux service for session and pane operations."""

import logging
import os
import subprocess
import time
from typing import Callable, Optional, Set

from ..core.constants import CAPTURE_LINES, SESSION_CACHE_TTL
from .exceptions import TmuxError, TmuxSessionNotFoundError

logger = logging.getLogger(__name__)


class TmuxService:
    """Service for tmux operations with clean abstractions."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize tmux service.

        Args:
            clock: Monotonic time source used for the session cache
        """
        self._clock = clock
        self._sessions: Set[str] = set()
        self._cache_time: Optional[float] = None

    def _run_tmux_command(self, args: list[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a tmux command with proper error handling.

        Args:
            args: tmux command arguments
            check: Raise on a non-zero exit code

        Returns:
            Completed process result

        Raises:
            TmuxError: If the command fails or tmux is missing
        """
        cmd = ["tmux"] + args
        try:
            return subprocess.run(cmd, check=check, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.strip() if e.stderr else str(e)
            raise TmuxError(f"tmux command failed: {error_msg}") from e
        except OSError as e:
            raise TmuxError(f"Could not run tmux: {e}") from e

    def refresh_session_cache(self):
        """Reload the session list with a single list-sessions call."""
        try:
            result = self._run_tmux_command(
                ["list-sessions", "-F", "#{session_name}"], check=False
            )
        except TmuxError as e:
            logger.debug(f"Session cache refresh failed: {e}")
            result = None

        sessions = set()
        if result is not None and result.returncode == 0:
            sessions = {line.strip() for line in result.stdout.splitlines() if line.strip()}
        self._sessions = sessions
        self._cache_time = self._clock()

    def _cache_fresh(self) -> bool:
        return self._cache_time is not None and self._clock() - self._cache_time < SESSION_CACHE_TTL

    def session_exists(self, name: str) -> bool:
        if self._cache_fresh():
            return name in self._sessions
        try:
            return self._run_tmux_command(["has-session", "-t", name], check=False).returncode == 0
        except TmuxError:
            return False

    def create_session(self, name: str, working_dir: str, command: Optional[str] = None):
        """Create a detached session; a no-op when it already exists.

        Args:
            name: Session name
            working_dir: Start directory for the first pane
            command: Command for the first pane (defaults to the user's shell)
        """
        if self.session_exists(name):
            return
        args = ["new-session", "-d", "-s", name, "-c", working_dir]
        if command:
            args.append(command)
        logger.debug(f"Creating tmux session {name}: {command or '<shell>'}")
        self._run_tmux_command(args)
        self.set_remain_on_exit(name)
        self.refresh_session_cache()

    def set_remain_on_exit(self, name: str):
        """Keep the pane around after its process exits so death is observable."""
        self._run_tmux_command(["set-option", "-t", name, "remain-on-exit", "on"])

    def kill_session(self, name: str):
        if not self.session_exists(name):
            return
        self._run_tmux_command(["kill-session", "-t", name])
        self._sessions.discard(name)

    def attach_session(self, name: str):
        """Attach the controlling terminal to a session.

        Inside tmux the client is switched instead, falling back to
        attach-session when switching fails.

        Raises:
            TmuxSessionNotFoundError: If the session does not exist
            TmuxError: If attaching fails
        """
        if not self.session_exists(name):
            raise TmuxSessionNotFoundError(name)

        if os.environ.get("TMUX"):
            switched = subprocess.run(["tmux", "switch-client", "-t", name])
            if switched.returncode == 0:
                return

        result = subprocess.run(["tmux", "attach-session", "-t", name])
        if result.returncode != 0:
            raise TmuxError(f"Failed to attach to session {name}")

    def capture_pane(self, name: str, lines: int = CAPTURE_LINES) -> str:
        """Capture the last ``lines`` lines of a pane; empty on failure."""
        try:
            result = self._run_tmux_command(
                ["capture-pane", "-t", name, "-p", "-S", f"-{lines}"], check=False
            )
        except TmuxError:
            return ""
        return result.stdout if result.returncode == 0 else ""

    def pane_title(self, name: str) -> str:
        try:
            result = self._run_tmux_command(
                ["display-message", "-p", "-t", name, "#{pane_title}"], check=False
            )
        except TmuxError:
            return ""
        return result.stdout.strip() if result.returncode == 0 else ""

    def is_pane_dead(self, name: str) -> bool:
        """Report whether the pane's process has exited."""
        try:
            result = self._run_tmux_command(
                ["display-message", "-p", "-t", name, "#{pane_dead}"], check=False
            )
        except TmuxError:
            return False
        return result.returncode == 0 and result.stdout.strip() == "1"

    def respawn_pane(self, name: str, command: Optional[str] = None):
        """Restart the pane's process in place, killing it if still alive."""
        args = ["respawn-pane", "-k", "-t", name]
        if command:
            args.append(command)
        self._run_tmux_command(args)
