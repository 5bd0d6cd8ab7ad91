"""One-time startup steps."""

import logging
from typing import Callable

logger = logging.getLogger(__name__)


class StartupState:
    """Records which startup steps have completed in this process.

    Create one per process and pass it to whatever performs startup work;
    a step that raises is not recorded and runs again on the next call.
    """

    def __init__(self):
        self._completed: set[str] = set()

    def run_once(self, step: str, action: Callable[[], None]) -> bool:
        """Run ``action`` unless ``step`` already completed.

        Returns:
            True if the action ran
        """
        if step in self._completed:
            return False
        logger.debug(f"Running startup step {step}")
        action()
        self._completed.add(step)
        return True
