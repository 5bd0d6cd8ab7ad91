"""Launching agent processes in tmux, optionally inside a sandbox."""

import logging
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from ..models.config import Config
from ..models.container import ContainerConfig, VolumeMount
from ..models.session import Instance, SandboxInfo, Status
from ..services.container_runtime import ContainerRuntime, SandboxContainer
from ..services.tmux_service import TmuxService
from ..utils.text import shell_escape
from .constants import (
    AUTH_VOLUMES,
    CONTAINER_HOME,
    DEFAULT_TERMINAL_ENV_VARS,
    DEFAULT_WORKDIR,
    RESTART_DELAY,
    TOOL_COMMANDS,
    YOLO_FLAGS,
)

logger = logging.getLogger(__name__)


def wrap_ignore_suspend(command: str) -> str:
    """Disable Ctrl-Z in the pane so the agent cannot be suspended by accident."""
    return f"bash -c 'stty susp undef; exec {command}'"


def resolve_env_value(value: str, environ: Mapping[str, str]) -> Optional[str]:
    """Resolve a configured environment value.

    ``$NAME`` reads the host variable (None when unset) and ``$$`` escapes a
    literal dollar sign.
    """
    if value.startswith("$$"):
        return "$" + value[2:]
    if value.startswith("$"):
        return environ.get(value[1:])
    return value


class SessionLauncher:
    """Builds launch commands and brings sessions up."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        tmux: TmuxService,
        config: Optional[Config] = None,
        clock: Callable[[], float] = time.monotonic,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
    ):
        self.runtime = runtime
        self.tmux = tmux
        self.config = config or Config()
        self.clock = clock
        self.environ = environ if environ is not None else os.environ
        self.home = home or Path.home()

    def collect_env_keys(self, sandbox: SandboxInfo) -> List[str]:
        keys = list(DEFAULT_TERMINAL_ENV_VARS)
        for key in self.config.sandbox.environment + (sandbox.extra_env_keys or []):
            if key not in keys:
                keys.append(key)
        return keys

    def collect_env_values(self, sandbox: SandboxInfo) -> List[Tuple[str, str]]:
        merged: Dict[str, str] = dict(self.config.sandbox.environment_values)
        merged.update(sandbox.extra_env_values or {})
        values = []
        for key, raw in merged.items():
            resolved = resolve_env_value(raw, self.environ)
            if resolved is not None:
                values.append((key, resolved))
        return values

    def forwarded_env(self, sandbox: SandboxInfo) -> List[Tuple[str, str]]:
        """Host variables that are set, followed by configured values."""
        pairs = [
            (key, self.environ[key]) for key in self.collect_env_keys(sandbox) if key in self.environ
        ]
        return pairs + self.collect_env_values(sandbox)

    def container_workdir(self, instance: Instance) -> str:
        return f"{DEFAULT_WORKDIR}/{Path(instance.project_path).name}"

    def build_container_config(self, instance: Instance) -> ContainerConfig:
        """Describe the sandbox container for an instance."""
        sandbox_config = self.config.sandbox
        workdir = self.container_workdir(instance)
        volumes = [VolumeMount(instance.project_path, workdir)]

        gitconfig = self.home / ".gitconfig"
        if gitconfig.exists():
            volumes.append(VolumeMount(str(gitconfig), f"{CONTAINER_HOME}/.gitconfig", True))

        if sandbox_config.mount_ssh:
            ssh_dir = self.home / ".ssh"
            if ssh_dir.exists():
                volumes.append(VolumeMount(str(ssh_dir), f"{CONTAINER_HOME}/.ssh", True))

        opencode_config = self.home / ".config" / "opencode"
        if opencode_config.exists():
            volumes.append(
                VolumeMount(str(opencode_config), f"{CONTAINER_HOME}/.config/opencode", True)
            )

        for spec in sandbox_config.extra_volumes:
            mount = VolumeMount.parse(spec)
            if mount is None:
                logger.warning(f"Ignoring malformed extra volume '{spec}'")
                continue
            volumes.append(mount)

        named_volumes = []
        if instance.tool in AUTH_VOLUMES:
            named_volumes.append(AUTH_VOLUMES[instance.tool])

        sandbox = instance.sandbox_info
        environment = [
            (key, self.environ[key]) for key in self.collect_env_keys(sandbox) if key in self.environ
        ]
        environment.append(("CLAUDE_CONFIG_DIR", f"{CONTAINER_HOME}/.claude"))
        environment.extend(self.collect_env_values(sandbox))
        if instance.tool == "opencode" and instance.is_yolo_mode():
            environment.append(("OPENCODE_PERMISSION", '{"*":"allow"}'))

        return ContainerConfig(
            working_dir=workdir,
            volumes=volumes,
            named_volumes=named_volumes,
            environment=environment,
            cpu_limit=sandbox_config.cpu_limit,
            memory_limit=sandbox_config.memory_limit,
        )

    def sandbox_container(self, instance: Instance) -> SandboxContainer:
        return SandboxContainer(instance.id, instance.sandbox_info.image, self.runtime)

    def ensure_container(self, instance: Instance) -> SandboxContainer:
        """Reuse, start or create the instance's sandbox container.

        Raises:
            ContainerError: If the container cannot be brought up
        """
        container = self.sandbox_container(instance)
        for volume_name, _ in self.build_container_config(instance).named_volumes:
            self.runtime.ensure_named_volume(volume_name)

        container_id = container.ensure(lambda: self.build_container_config(instance))
        if container_id is not None:
            instance.sandbox_info.container_id = container_id
            instance.sandbox_info.created_at = datetime.now()
        return container

    def agent_command(self, instance: Instance) -> str:
        """The agent invocation run inside a sandbox."""
        command = instance.get_tool_command()
        if instance.is_yolo_mode() and not instance.command and instance.tool in YOLO_FLAGS:
            command = f"{command} {YOLO_FLAGS[instance.tool]}"

        instruction = instance.sandbox_info.custom_instruction
        if instruction:
            if instance.tool == "claude":
                command = f"{command} --append-system-prompt {shell_escape(instruction)}"
            elif instance.tool == "codex":
                command = f"{command} --config developer_instructions={shell_escape(instruction)}"
        return command

    def exec_env_args(self, instance: Instance) -> str:
        return " ".join(
            f"-e {key}={shell_escape(value)}"
            for key, value in self.forwarded_env(instance.sandbox_info)
        )

    def build_launch_command(self, instance: Instance) -> Optional[str]:
        """Build the pane command; None means the user's default shell."""
        if instance.is_sandboxed():
            container = self.ensure_container(instance)
            options = f"-w {self.container_workdir(instance)} {self.exec_env_args(instance)}"
            exec_prefix = container.exec_command(options)
            return wrap_ignore_suspend(f"{exec_prefix} {self.agent_command(instance)}")

        if instance.command:
            return wrap_ignore_suspend(instance.command)
        if instance.tool in TOOL_COMMANDS:
            return wrap_ignore_suspend(instance.get_tool_command())
        return None

    def start(self, instance: Instance):
        """Create the tmux session for an instance and mark it starting.

        A session that already exists is left untouched.
        """
        name = instance.tmux_session_name
        if self.tmux.session_exists(name):
            return

        command = self.build_launch_command(instance)
        logger.debug(f"Launch command for {name}: {command or '<shell>'}")
        self.tmux.create_session(name, instance.project_path, command)
        instance.status = Status.STARTING
        instance.last_start_time = self.clock()
        instance.last_error = None

    def respawn(self, instance: Instance):
        """Restart a dead pane's process in the existing session."""
        command = self.build_launch_command(instance)
        self.tmux.respawn_pane(instance.tmux_session_name, command)
        instance.status = Status.STARTING
        instance.last_start_time = self.clock()
        instance.last_error = None

    def restart(self, instance: Instance):
        self.tmux.kill_session(instance.tmux_session_name)
        time.sleep(RESTART_DELAY)
        self.start(instance)
