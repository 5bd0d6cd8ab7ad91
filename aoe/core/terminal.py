"""Terminal ownership handoff between the dashboard and tmux.

All mode changes go through one ``TerminalBackend`` so that raw mode, the
alternate screen, mouse capture and the cursor are switched on the same
output handle and in a fixed order.
"""

import logging
import os
import select
import sys
import termios
import tty
from typing import Callable, Optional, TypeVar

from rich.console import Console

logger = logging.getLogger(__name__)

T = TypeVar("T")

# xterm button-event tracking with SGR encoding
MOUSE_CAPTURE_ON = "\x1b[?1000h\x1b[?1002h\x1b[?1006h"
MOUSE_CAPTURE_OFF = "\x1b[?1006l\x1b[?1002l\x1b[?1000l"


class TerminalBackend:
    """The dashboard's terminal: one console for output, one fd for input."""

    def __init__(self, console: Optional[Console] = None, input_fd: Optional[int] = None):
        self.console = console or Console()
        self.input_fd = input_fd if input_fd is not None else sys.stdin.fileno()
        self.needs_redraw = False
        self._saved_attrs = None

    def enable_raw_mode(self):
        if self._saved_attrs is not None:
            return
        self._saved_attrs = termios.tcgetattr(self.input_fd)
        tty.setraw(self.input_fd)

    def disable_raw_mode(self):
        if self._saved_attrs is None:
            return
        termios.tcsetattr(self.input_fd, termios.TCSADRAIN, self._saved_attrs)
        self._saved_attrs = None

    def enter_alternate_screen(self):
        self.console.set_alt_screen(True)

    def leave_alternate_screen(self):
        self.console.set_alt_screen(False)

    def enable_mouse_capture(self):
        self._write_control(MOUSE_CAPTURE_ON)

    def disable_mouse_capture(self):
        self._write_control(MOUSE_CAPTURE_OFF)

    def show_cursor(self):
        self.console.show_cursor(True)

    def hide_cursor(self):
        self.console.show_cursor(False)

    def flush(self):
        self.console.file.flush()

    def clear(self):
        self.console.clear()

    def _write_control(self, sequence: str):
        if self.console.is_terminal:
            self.console.file.write(sequence)

    def drain_input(self) -> int:
        """Discard input that queued up while another program owned the terminal.

        Returns:
            Number of bytes discarded
        """
        discarded = 0
        while select.select([self.input_fd], [], [], 0)[0]:
            chunk = os.read(self.input_fd, 1024)
            if not chunk:
                break
            discarded += len(chunk)
        if discarded:
            logger.debug(f"Discarded {discarded} bytes of stale input")
        return discarded

    def suspend(self):
        """Hand the terminal back in its normal state."""
        self.disable_raw_mode()
        self.leave_alternate_screen()
        self.disable_mouse_capture()
        self.show_cursor()
        self.flush()

    def resume(self):
        """Reclaim the terminal for the dashboard and force a full redraw."""
        self.enable_raw_mode()
        self.enter_alternate_screen()
        self.enable_mouse_capture()
        self.hide_cursor()
        self.flush()
        self.drain_input()
        self.clear()
        self.needs_redraw = True

    def run_detached(self, action: Callable[[], T]) -> T:
        """Run ``action`` with the terminal suspended, restoring it afterwards
        even when the action raises."""
        self.suspend()
        try:
            return action()
        finally:
            self.resume()
