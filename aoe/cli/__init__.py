"""Command line interface for aoe."""
