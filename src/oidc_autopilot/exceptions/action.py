"""
Action-related exceptions.
"""

from oidc_autopilot.exceptions.base import AutopilotError


class ActionError(AutopilotError):
    """Base exception for action-related errors."""
    pass


class ActionExecutionError(ActionError):
    """
    Error during action execution.
    
    Raised when a configured action is unknown (type ``UNKNOWN``) or when
    the underlying HTTP call or browser navigation fails.
    """
    
    def __init__(
        self,
        action_name: str,
        action_type: str,
        message: str,
        cause: BaseException | None = None,
    ):
        super().__init__(
            f"[{action_name}:{action_type}] {message}",
            {"action_name": action_name, "action_type": action_type},
        )
        self.action_name = action_name
        self.action_type = action_type
        self.cause = cause
