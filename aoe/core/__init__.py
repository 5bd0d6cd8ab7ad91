"""Core orchestration for aoe sessions.

Submodules are imported directly (``from aoe.core.lifecycle import ...``);
the models and services layers depend on ``aoe.core.constants``.
"""
