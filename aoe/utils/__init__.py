"""Utility modules for aoe."""

from .log_setup import configure_logging
from .text import sanitize_session_name, shell_escape, strip_ansi

__all__ = [
    'configure_logging',
    'sanitize_session_name',
    'shell_escape',
    'strip_ansi',
]
