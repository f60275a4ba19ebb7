"""
Conformance API exceptions.
"""

from oidc_autopilot.exceptions.base import AutopilotError


class ConformanceApiError(AutopilotError):
    """Base exception for errors talking to the conformance service."""
    
    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        super().__init__(message, {"status_code": status_code, "url": url})
        self.status_code = status_code
        self.url = url


class HttpStatusError(ConformanceApiError):
    """
    Unexpected HTTP status.
    
    Raised when the response status is outside the expected set.
    The message carries the status and the raw response body.
    """
    
    def __init__(self, status_code: int, body: str, url: str | None = None):
        super().__init__(f"HTTP {status_code}: {body}", status_code=status_code, url=url)
        self.body = body


class InvalidResponseError(ConformanceApiError):
    """
    Response body could not be decoded.
    
    Raised when a JSON body is required but the response is not JSON,
    or when it does not match the expected shape.
    """
    
    def __init__(self, message: str, raw_response: str | None = None, url: str | None = None):
        super().__init__(message, url=url)
        self.raw_response = raw_response[:500] if raw_response else None
