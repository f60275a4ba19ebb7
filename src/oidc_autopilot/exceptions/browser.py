"""
Browser-related exceptions.
"""

from oidc_autopilot.exceptions.base import AutopilotError


class BrowserError(AutopilotError):
    """Base exception for browser-related errors."""
    pass


class BrowserLaunchError(BrowserError):
    """
    Error launching the browser.
    
    Raised when the browser fails to start, which could be due to:
    - Missing browser binaries
    - Invalid browser options
    - Resource constraints
    """
    pass


class BrowserNavigationError(BrowserError):
    """
    Error during page navigation.
    
    Raised when the navigation capability fails, such as:
    - Invalid URL
    - Network error
    - Navigation timeout
    """
    
    def __init__(self, url: str, message: str, cause: BaseException | None = None):
        super().__init__(
            f"Browser navigation failed for {url}: {message}",
            {"url": url},
        )
        self.url = url
        self.cause = cause
