"""Core utilities for the throttle policy model."""

from throttle.core.config import settings
from throttle.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
]
