"""
Exceptions module - Custom exception hierarchy.

This module defines all custom exceptions used throughout OIDC Autopilot,
providing clear error types for different failure scenarios.
"""

from oidc_autopilot.exceptions.base import (
    AutopilotError,
    ConfigurationError,
)
from oidc_autopilot.exceptions.api import (
    ConformanceApiError,
    HttpStatusError,
    InvalidResponseError,
)
from oidc_autopilot.exceptions.browser import (
    BrowserError,
    BrowserLaunchError,
    BrowserNavigationError,
)
from oidc_autopilot.exceptions.action import (
    ActionError,
    ActionExecutionError,
)
from oidc_autopilot.exceptions.execution import (
    ExecutionError,
    ModuleExecutionError,
    StateTimeoutError,
    ExecutionStoppedError,
)

__all__ = [
    # Base exceptions
    "AutopilotError",
    "ConfigurationError",
    # API exceptions
    "ConformanceApiError",
    "HttpStatusError",
    "InvalidResponseError",
    # Browser exceptions
    "BrowserError",
    "BrowserLaunchError",
    "BrowserNavigationError",
    # Action exceptions
    "ActionError",
    "ActionExecutionError",
    # Execution exceptions
    "ExecutionError",
    "ModuleExecutionError",
    "StateTimeoutError",
    "ExecutionStoppedError",
]
