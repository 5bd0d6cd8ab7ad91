"""Activity classification from captured pane text.

Each agent has an ordered list of rules; the first rule whose predicate
matches decides the status, and a session matching nothing is idle.
Spinner glyphs and interrupt hints always come before prompt markers so
that a busy agent whose scrollback still shows an old prompt reads as
running.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Optional

from ..models.session import Status
from ..utils.text import strip_ansi
from .constants import (
    PROMPT_MAX_LEN,
    PROMPT_WINDOW_LINES,
    SPINNER_CHARS,
    STATUS_WINDOW_LINES,
    VIBE_WINDOW_LINES,
)

logger = logging.getLogger(__name__)

SELECTION_PHRASES = ("enter to select", "esc to cancel")

CLAUDE_INTERRUPT_PHRASES = ("esc to interrupt", "ctrl+c to interrupt")
CLAUDE_PERMISSION_PROMPTS = (
    "Yes, allow once",
    "Yes, allow always",
    "Allow once",
    "Allow always",
    "❯ Yes",
    "❯ No",
    "Do you trust the files in this folder?",
)
CLAUDE_YES_NO_PROMPTS = ("(Y/n)", "(y/N)", "[Y/n]", "[y/N]")

OPENCODE_INTERRUPT_PHRASES = ("esc to interrupt", "esc interrupt")
OPENCODE_PERMISSION_PROMPTS = ("(y/n)", "[y/n]", "continue?", "proceed?", "approve", "allow")
OPENCODE_COMPLETION_PHRASES = (
    "complete",
    "done",
    "finished",
    "ready",
    "what would you like",
    "what else",
    "anything else",
    "how can i help",
    "let me know",
)

CODEX_RUNNING_PHRASES = ("esc to interrupt", "ctrl+c to interrupt", "working", "thinking")
CODEX_APPROVAL_PROMPTS = (
    "approve",
    "allow",
    "(y/n)",
    "[y/n]",
    "continue?",
    "proceed?",
    "execute?",
    "run command?",
)

VIBE_NAVIGATION_HINTS = ("↑↓ navigate", "enter select", "esc reject")
VIBE_APPROVAL_OPTIONS = ("yes and always allow", "no and tell the agent", "› 1.", "› 2.", "› 3.")
VIBE_ACTIVITY_WORDS = (
    "running",
    "reading",
    "writing",
    "executing",
    "processing",
    "generating",
    "thinking",
)

GEMINI_TITLES = (
    ("◇  ready", Status.IDLE),
    ("✋  action required", Status.WAITING),
    ("⏲  working…", Status.RUNNING),
    ("✦  ", Status.RUNNING),
)

NUMBERED_OPTIONS = ("1.", "2.", "3.")
_BOXED_PROMPT_RE = re.compile(r"^[│┃|]\s*>\s*[│┃|]?$")


@dataclass
class PaneText:
    """Captured pane content split into the views the rules inspect."""
    content: str
    lines: list[str] = field(init=False)
    non_empty: list[str] = field(init=False)
    window: str = field(init=False)
    window_lower: str = field(init=False)

    def __post_init__(self):
        self.lines = self.content.splitlines()
        self.non_empty = [line for line in self.lines if line.strip()]
        self.window = "\n".join(self.non_empty[-STATUS_WINDOW_LINES:])
        self.window_lower = self.window.lower()

    def prompt_lines(self) -> list[str]:
        """Last non-empty lines, newest first, without escapes or padding."""
        recent = self.non_empty[-PROMPT_WINDOW_LINES:]
        return [strip_ansi(line).strip() for line in reversed(recent)]


class Rule(NamedTuple):
    name: str
    status: Status
    matches: Callable[[PaneText], bool]


def _contains_any(text: str, needles) -> bool:
    return any(needle in text for needle in needles)


def has_spinner(text: PaneText) -> bool:
    return any(_contains_any(line, SPINNER_CHARS) for line in text.lines)


def has_numbered_cursor(text: PaneText) -> bool:
    """A selection cursor pointing at a numbered option, e.g. ``❯ 1. Yes``."""
    for line in text.lines:
        trimmed = line.strip()
        if trimmed.startswith("❯") and trimmed[1:].lstrip().startswith(NUMBERED_OPTIONS):
            return True
    return False


def has_inline_numbered_cursor(text: PaneText) -> bool:
    return any(
        "❯" in line and _contains_any(line, (" 1.", " 2.", " 3."))
        for line in text.lines
    )


def _is_typed_prompt(line: str) -> bool:
    return line.startswith("> ") and "esc" not in line.lower() and len(line) < PROMPT_MAX_LEN


def input_prompt(bare_prompts: tuple) -> Callable[[PaneText], bool]:
    """Build a predicate for an input prompt near the bottom of the pane."""
    def matches(text: PaneText) -> bool:
        return any(
            line in bare_prompts or _is_typed_prompt(line) for line in text.prompt_lines()
        )
    return matches


def window_contains(needles, lowercase: bool = True) -> Callable[[PaneText], bool]:
    def matches(text: PaneText) -> bool:
        return _contains_any(text.window_lower if lowercase else text.window, needles)
    return matches


def opencode_finished(text: PaneText) -> bool:
    """Completion wording together with a bare prompt awaiting input."""
    if not _contains_any(text.window_lower, OPENCODE_COMPLETION_PHRASES):
        return False
    return any(line in (">", ">>") for line in text.prompt_lines())


CLAUDE_RULES = (
    Rule("interrupt hint", Status.RUNNING, window_contains(CLAUDE_INTERRUPT_PHRASES)),
    Rule("spinner", Status.RUNNING, has_spinner),
    Rule("selection menu", Status.WAITING, window_contains(SELECTION_PHRASES)),
    Rule("permission prompt", Status.WAITING, window_contains(CLAUDE_PERMISSION_PROMPTS, lowercase=False)),
    Rule("numbered cursor", Status.WAITING, has_numbered_cursor),
    Rule("input prompt", Status.WAITING, input_prompt((">",))),
    Rule("yes/no prompt", Status.WAITING, window_contains(CLAUDE_YES_NO_PROMPTS, lowercase=False)),
)

OPENCODE_RULES = (
    Rule("interrupt hint", Status.RUNNING, window_contains(OPENCODE_INTERRUPT_PHRASES)),
    Rule("spinner", Status.RUNNING, has_spinner),
    Rule("selection menu", Status.WAITING, window_contains(SELECTION_PHRASES)),
    Rule("permission prompt", Status.WAITING, window_contains(OPENCODE_PERMISSION_PROMPTS)),
    Rule("numbered cursor", Status.WAITING, has_numbered_cursor),
    Rule("inline numbered cursor", Status.WAITING, has_inline_numbered_cursor),
    Rule("input prompt", Status.WAITING, input_prompt((">", ">>"))),
    Rule("finished", Status.WAITING, opencode_finished),
)

CODEX_RULES = (
    Rule("activity hint", Status.RUNNING, window_contains(CODEX_RUNNING_PHRASES)),
    Rule("spinner", Status.RUNNING, has_spinner),
    Rule("approval prompt", Status.WAITING, window_contains(CODEX_APPROVAL_PROMPTS)),
    Rule("selection menu", Status.WAITING, window_contains(SELECTION_PHRASES)),
    Rule("numbered cursor", Status.WAITING, has_numbered_cursor),
    Rule("input prompt", Status.WAITING, input_prompt((">", "codex>"))),
)


def _vibe_recent_text(text: PaneText) -> str:
    # The vibe TUI can render one character per line, so glue lines together
    return "".join(line.strip() for line in text.non_empty[-VIBE_WINDOW_LINES:])


def vibe_tool_warning(text: PaneText) -> bool:
    return "⚠" in text.window and "command" in text.window_lower


def vibe_selection_cursor(text: PaneText) -> bool:
    return any(
        line.strip().startswith("›") and len(line.strip()) > 1 for line in text.lines
    )


def vibe_spinner(text: PaneText) -> bool:
    return _contains_any(_vibe_recent_text(text), SPINNER_CHARS)


def vibe_activity(text: PaneText) -> bool:
    return _contains_any(_vibe_recent_text(text).lower(), VIBE_ACTIVITY_WORDS)


def vibe_trailing_ellipsis(text: PaneText) -> bool:
    return _vibe_recent_text(text).endswith(("…", "..."))


VIBE_RULES = (
    Rule("navigation hint", Status.WAITING, window_contains(VIBE_NAVIGATION_HINTS)),
    Rule("tool warning", Status.WAITING, vibe_tool_warning),
    Rule("approval option", Status.WAITING, window_contains(VIBE_APPROVAL_OPTIONS)),
    Rule("selection cursor", Status.WAITING, vibe_selection_cursor),
    Rule("spinner", Status.RUNNING, vibe_spinner),
    Rule("activity", Status.RUNNING, vibe_activity),
    Rule("trailing ellipsis", Status.RUNNING, vibe_trailing_ellipsis),
)

# Tools whose rules expect case-folded content
TOOL_RULES = {
    "claude": (CLAUDE_RULES, False),
    "opencode": (OPENCODE_RULES, True),
    "codex": (CODEX_RULES, True),
    "vibe": (VIBE_RULES, True),
}


def apply_rules(rules, text: PaneText) -> Status:
    for rule in rules:
        if rule.matches(text):
            return rule.status
    return Status.IDLE


def detect_tool(content: str) -> Optional[str]:
    """Guess which agent is running in a plain shell pane.

    Returns:
        ``"opencode"`` or ``"claude"`` when a fingerprint matches, else None
    """
    lowered = content.lower()
    if "tab switch agent" in lowered:
        return "opencode"
    if "esc to interrupt" in lowered or "claude code" in lowered:
        return "claude"
    for line in content.splitlines():
        if _BOXED_PROMPT_RE.match(strip_ansi(line).strip()):
            return "claude"
    return None


def detect_gemini_status(pane_title: str) -> Status:
    title = pane_title.lower()
    for prefix, status in GEMINI_TITLES:
        if title.startswith(prefix):
            return status
    logger.debug(f"Unknown gemini pane title {pane_title!r}, treating as running")
    return Status.RUNNING


def classify(content: str, tool: str, pane_title: str = "") -> Status:
    """Classify a pane's activity.

    Pure and deterministic: the same input always yields the same status,
    and unmatched input yields ``Status.IDLE``.

    Args:
        content: Raw captured pane text, escapes included
        tool: Agent name (``claude``, ``opencode``, ``codex``, ``vibe``,
            ``gemini`` or ``shell``); unknown names use the claude rules
        pane_title: Pane title, only consulted for gemini

    Returns:
        The classified status
    """
    if tool == "gemini":
        return detect_gemini_status(pane_title)
    if tool == "shell":
        tool = detect_tool(content) or "claude"

    rules, lowercase = TOOL_RULES.get(tool, TOOL_RULES["claude"])
    return apply_rules(rules, PaneText(content.lower() if lowercase else content))
