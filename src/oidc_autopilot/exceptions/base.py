"""
Base exceptions for OIDC Autopilot.
"""


class AutopilotError(Exception):
    """
    Base exception for all OIDC Autopilot errors.
    
    All custom exceptions inherit from this class, making it easy
    to catch any error from the library.
    
    Attributes:
        message: Human-readable error message
        details: Optional additional error details
    """
    
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def __str__(self) -> str:
        return self.message


class ConfigurationError(AutopilotError):
    """
    Error in configuration.
    
    Raised when there's an issue with settings, environment variables,
    or the plan configuration file.
    """
    pass
