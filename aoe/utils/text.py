"""Text helpers shared by the tmux and status detection layers."""

import re
from typing import Any, Optional

from ..core.constants import ID_PREFIX_LEN, SESSION_NAME_MAX_LEN

# CSI runs to the first ASCII letter, OSC runs to BEL
_CSI_RE = re.compile(r"\x1b\[[^A-Za-z]*[A-Za-z]?")
_OSC_RE = re.compile(r"\x1b\][^\x07]*\x07?")
_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_-]")


def strip_ansi(content: str) -> str:
    """Remove CSI and OSC escape sequences from captured pane text."""
    if "\x1b" not in content:
        return content
    return _CSI_RE.sub("", _OSC_RE.sub("", content))


def sanitize_session_name(name: str) -> str:
    """Make a title safe for use inside a tmux session name."""
    return _UNSAFE_NAME_RE.sub("_", name)[:SESSION_NAME_MAX_LEN]


def truncate_id(identifier: str, length: int = ID_PREFIX_LEN) -> str:
    return identifier[:length]


def shell_escape(value: str) -> str:
    """Quote a value for a double-quoted POSIX shell context."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("`", "\\`")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f'"{escaped}"'


def json_pointer(document: Any, pointer: str) -> Optional[Any]:
    """Resolve an RFC 6901 style pointer such as ``/0/status``.

    Returns None when any segment is missing.
    """
    current = document
    for raw in pointer.split("/")[1:]:
        part = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(current, list):
            if not part.isdigit() or int(part) >= len(current):
                return None
            current = current[int(part)]
        elif isinstance(current, dict):
            if part not in current:
                return None
            current = current[part]
        else:
            return None
    return current


def last_lines(content: str, count: int) -> str:
    """Return the last ``count`` non-empty lines joined by newlines."""
    lines = [line for line in content.splitlines() if line.strip()]
    return "\n".join(lines[-count:])
