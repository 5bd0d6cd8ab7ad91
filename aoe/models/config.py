"""Configuration models for aoe."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.constants import DEFAULT_SANDBOX_IMAGE


class SandboxConfig(BaseModel):
    """Sandbox container settings."""
    enabled_by_default: bool = False
    default_image: str = DEFAULT_SANDBOX_IMAGE
    container_runtime: str = "docker"  # docker or apple_container
    extra_volumes: List[str] = Field(default_factory=list)  # host:container[:ro]
    environment: List[str] = Field(default_factory=list)  # host variable names to forward
    environment_values: Dict[str, str] = Field(default_factory=dict)
    mount_ssh: bool = False
    auto_cleanup: bool = True
    cpu_limit: Optional[str] = None
    memory_limit: Optional[str] = None


class WorktreeConfig(BaseModel):
    """Git worktree settings."""
    enabled: bool = False
    path_template: str = "../{repo-name}-worktrees/{branch}"
    auto_cleanup: bool = True


class Config(BaseModel):
    """Top-level aoe configuration."""
    default_profile: str = "default"
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    worktree: WorktreeConfig = Field(default_factory=WorktreeConfig)
