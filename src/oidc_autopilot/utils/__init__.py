"""
Utilities module - Common utility functions.
"""

from oidc_autopilot.utils.logging import (
    setup_logging,
    JsonFormatter,
    ModuleLogAdapter,
)

__all__ = [
    "setup_logging",
    "JsonFormatter",
    "ModuleLogAdapter",
]
