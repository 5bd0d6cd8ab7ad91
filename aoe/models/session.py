"""Session instance models."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.constants import (
    CONTAINER_PREFIX,
    DEFAULT_TOOL,
    FALLBACK_COMMAND,
    SESSION_PREFIX,
    TOOL_COMMANDS,
)
from ..utils.text import sanitize_session_name, truncate_id


class Status(str, Enum):
    """Observable activity state of a session."""
    RUNNING = "running"
    WAITING = "waiting"
    IDLE = "idle"
    ERROR = "error"
    STARTING = "starting"
    DELETING = "deleting"


def generate_session_id() -> str:
    return uuid.uuid4().hex[:16]


def generate_container_name(session_id: str) -> str:
    """Derive the sandbox container name from a session id."""
    return f"{CONTAINER_PREFIX}{truncate_id(session_id)}"


def generate_tmux_name(session_id: str, title: str) -> str:
    """Derive the tmux session name from a session id and title."""
    return f"{SESSION_PREFIX}{sanitize_session_name(title)}_{truncate_id(session_id)}"


class SandboxInfo(BaseModel):
    """Sandbox container attached to a session."""
    enabled: bool
    container_id: Optional[str] = None
    image: str
    container_name: str
    created_at: Optional[datetime] = None
    yolo_mode: Optional[bool] = None
    extra_env_keys: Optional[List[str]] = None
    extra_env_values: Optional[Dict[str, str]] = None
    custom_instruction: Optional[str] = None

    @classmethod
    def for_session(cls, session_id: str, image: str, yolo_mode: bool = False) -> 'SandboxInfo':
        """Create sandbox info whose container name follows the session id."""
        return cls(
            enabled=True,
            image=image,
            container_name=generate_container_name(session_id),
            yolo_mode=yolo_mode or None,
        )


class Instance(BaseModel):
    """A single agent session hosted in a tmux pane."""
    id: str = Field(default_factory=generate_session_id)
    title: str
    project_path: str
    tool: str = DEFAULT_TOOL
    command: str = ""
    status: Status = Status.IDLE
    created_at: datetime = Field(default_factory=datetime.now)
    last_accessed_at: Optional[datetime] = None
    sandbox_info: Optional[SandboxInfo] = None

    # Runtime state, never persisted
    captured_output: str = Field(default="", exclude=True)
    last_error: Optional[str] = Field(default=None, exclude=True)
    last_start_time: Optional[float] = Field(default=None, exclude=True)

    @property
    def tmux_session_name(self) -> str:
        return generate_tmux_name(self.id, self.title)

    def is_sandboxed(self) -> bool:
        return self.sandbox_info is not None and self.sandbox_info.enabled

    def is_yolo_mode(self) -> bool:
        return self.is_sandboxed() and bool(self.sandbox_info.yolo_mode)

    def get_tool_command(self) -> str:
        """Return the command that launches this session's agent."""
        if self.command:
            return self.command
        return TOOL_COMMANDS.get(self.tool, FALLBACK_COMMAND)
