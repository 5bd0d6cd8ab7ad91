"""CLI commands for aoe."""
