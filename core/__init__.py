"""Shared infrastructure for the SDK and the runner.

This package must NEVER import from ``botapi/`` or ``config``.
"""

from core.logger import BotLogger

__all__ = [
    "BotLogger",
]
