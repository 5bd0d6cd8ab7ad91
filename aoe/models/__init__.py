"""Models for aoe."""

from .config import Config, SandboxConfig, WorktreeConfig
from .container import CommandOutput, ContainerConfig, VolumeMount
from .session import Instance, SandboxInfo, Status

__all__ = [
    'Config',
    'SandboxConfig',
    'WorktreeConfig',
    'CommandOutput',
    'ContainerConfig',
    'VolumeMount',
    'Instance',
    'SandboxInfo',
    'Status',
]
