"""Background AI summaries of terminal sessions."""

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional

from .constants import SUMMARY_MAX_LINES, SUMMARY_MODEL, SUMMARY_SYSTEM_PROMPT
from .workers import Worker

logger = logging.getLogger(__name__)


@dataclass
class SummaryRequest:
    session_id: str
    terminal_output: str


@dataclass
class SummaryResult:
    session_id: str
    summary: str
    is_error: bool = False


def truncate_transcript(text: str, max_lines: int = SUMMARY_MAX_LINES) -> str:
    """Keep only the last ``max_lines`` lines of a transcript."""
    lines = text.splitlines()
    if len(lines) <= max_lines:
        return text
    return "\n".join(lines[-max_lines:])


def summarizer_command(binary: str = "claude") -> list[str]:
    return [binary, "-p", "--model", SUMMARY_MODEL, "--system-prompt", SUMMARY_SYSTEM_PROMPT]


def summarize(request: SummaryRequest, binary: str = "claude") -> SummaryResult:
    """Run the summarizer synchronously and wrap its output.

    Args:
        request: Session id and captured terminal text
        binary: Summarizer executable

    Returns:
        The summary, or an error result describing the failure
    """
    try:
        result = subprocess.run(
            summarizer_command(binary),
            input=truncate_transcript(request.terminal_output),
            capture_output=True,
            text=True,
        )
    except OSError as e:
        return SummaryResult(request.session_id, f"Could not run {binary}: {e}", is_error=True)

    if result.returncode != 0:
        return SummaryResult(
            request.session_id, f"Summary failed: {result.stderr.strip()}", is_error=True
        )
    return SummaryResult(request.session_id, result.stdout.strip())


class SummaryPoller:
    """Keeps at most one summary request in flight.

    A request made while another is outstanding is dropped rather than
    queued; the flag clears when the result is collected.
    """

    def __init__(self, binary: str = "claude"):
        self.binary = binary
        self.in_flight = False
        self.worker: Worker[SummaryRequest, SummaryResult] = Worker(
            "summary-poller", self._summarize, self._failed
        )

    def _summarize(self, request: SummaryRequest) -> SummaryResult:
        return summarize(request, self.binary)

    def _failed(self, request: SummaryRequest, error: Exception) -> SummaryResult:
        return SummaryResult(request.session_id, f"Summary failed: {error}", is_error=True)

    def request_summary(self, session_id: str, terminal_output: str) -> bool:
        """Queue a summary unless one is already running.

        Returns:
            True if the request was accepted
        """
        if self.in_flight:
            logger.debug(f"Summary already in flight, dropping request for {session_id}")
            return False
        self.worker.submit(SummaryRequest(session_id, terminal_output))
        self.in_flight = True
        return True

    def try_recv_result(self) -> Optional[SummaryResult]:
        result = self.worker.try_recv()
        if result is not None:
            self.in_flight = False
        return result

    def shutdown(self):
        self.worker.shutdown()
