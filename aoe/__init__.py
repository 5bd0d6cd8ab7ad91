"""aoe - Orchestrate AI coding-agent sessions in tmux and container sandboxes."""

__version__ = "0.1.0"

# Export main CLI for convenience
from .cli.main import cli

__all__ = ['cli']
