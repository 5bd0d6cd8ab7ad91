"""Tests for the terminal handoff backend."""

import os
from unittest.mock import MagicMock, patch

import pytest

from aoe.core.terminal import MOUSE_CAPTURE_OFF, MOUSE_CAPTURE_ON, TerminalBackend

STEPS = [
    "enable_raw_mode",
    "disable_raw_mode",
    "enter_alternate_screen",
    "leave_alternate_screen",
    "enable_mouse_capture",
    "disable_mouse_capture",
    "show_cursor",
    "hide_cursor",
    "flush",
    "drain_input",
    "clear",
]


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    os.close(read_fd)
    os.close(write_fd)


@pytest.fixture
def console():
    console = MagicMock()
    console.is_terminal = True
    return console


def recording_backend(console, fd):
    """Backend whose terminal steps only record their order."""
    backend = TerminalBackend(console=console, input_fd=fd)
    calls = []
    for step in STEPS:
        setattr(backend, step, lambda step=step: calls.append(step))
    return backend, calls


class TestHandoff:
    """Test cases for the attach/detach sequence."""

    def test_run_detached_order(self, console, pipe):
        backend, calls = recording_backend(console, pipe[0])

        result = backend.run_detached(lambda: calls.append("attach") or "done")

        assert result == "done"
        assert calls == [
            "disable_raw_mode",
            "leave_alternate_screen",
            "disable_mouse_capture",
            "show_cursor",
            "flush",
            "attach",
            "enable_raw_mode",
            "enter_alternate_screen",
            "enable_mouse_capture",
            "hide_cursor",
            "flush",
            "drain_input",
            "clear",
        ]
        assert backend.needs_redraw

    def test_terminal_restored_when_action_fails(self, console, pipe):
        backend, calls = recording_backend(console, pipe[0])

        def fail():
            raise RuntimeError("attach failed")

        with pytest.raises(RuntimeError):
            backend.run_detached(fail)

        assert calls[-3:] == ["flush", "drain_input", "clear"]
        assert "enable_raw_mode" in calls


class TestTerminalBackend:
    """Test cases for individual terminal operations."""

    def test_drain_input_discards_pending_bytes(self, console, pipe):
        read_fd, write_fd = pipe
        os.write(write_fd, b"jjjq")
        backend = TerminalBackend(console=console, input_fd=read_fd)

        assert backend.drain_input() == 4
        assert backend.drain_input() == 0

    @patch('aoe.core.terminal.tty')
    @patch('aoe.core.terminal.termios')
    def test_raw_mode_round_trip(self, mock_termios, mock_tty, console, pipe):
        mock_termios.tcgetattr.return_value = ["saved"]
        backend = TerminalBackend(console=console, input_fd=pipe[0])

        backend.enable_raw_mode()
        backend.enable_raw_mode()
        mock_tty.setraw.assert_called_once_with(pipe[0])

        backend.disable_raw_mode()
        mock_termios.tcsetattr.assert_called_once_with(pipe[0], mock_termios.TCSADRAIN, ["saved"])

    @patch('aoe.core.terminal.termios')
    def test_disable_raw_mode_without_enable(self, mock_termios, console, pipe):
        TerminalBackend(console=console, input_fd=pipe[0]).disable_raw_mode()
        mock_termios.tcsetattr.assert_not_called()

    def test_mouse_capture_sequences(self, console, pipe):
        backend = TerminalBackend(console=console, input_fd=pipe[0])

        backend.enable_mouse_capture()
        backend.disable_mouse_capture()

        assert [c.args[0] for c in console.file.write.call_args_list] == [MOUSE_CAPTURE_ON, MOUSE_CAPTURE_OFF]

    def test_mouse_capture_skipped_when_not_a_terminal(self, console, pipe):
        console.is_terminal = False

        TerminalBackend(console=console, input_fd=pipe[0]).enable_mouse_capture()

        console.file.write.assert_not_called()

    def test_screen_and_cursor_use_console(self, console, pipe):
        backend = TerminalBackend(console=console, input_fd=pipe[0])

        backend.enter_alternate_screen()
        backend.hide_cursor()
        backend.leave_alternate_screen()
        backend.show_cursor()

        assert [c.args[0] for c in console.set_alt_screen.call_args_list] == [True, False]
        assert [c.args[0] for c in console.show_cursor.call_args_list] == [False, True]
