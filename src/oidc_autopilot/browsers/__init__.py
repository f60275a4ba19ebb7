"""
Browsers module - Browser automation implementations.
"""

from oidc_autopilot.browsers.playwright_browser import BrowserSession

__all__ = [
    "BrowserSession",
]
