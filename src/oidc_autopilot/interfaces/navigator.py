"""
Navigator Interface - The browser capability used by the execution engine.

The engine never drives pages directly; it only needs to open a URL,
follow redirects and learn where the browser ended up.

Example:
    >>> from oidc_autopilot.browsers import BrowserSession
    >>> navigator = BrowserSession(headless=True)
    >>> final_url = await navigator.navigate("https://rp.example/login")
    >>> await navigator.close()
"""

from abc import ABC, abstractmethod
from typing import Optional


class INavigator(ABC):
    """
    Abstract navigation capability.
    
    Implementations open lazily on the first navigate() call and must be
    safe to close() whether or not they were ever opened.
    """
    
    @abstractmethod
    async def navigate(self, url: str, wait_until: Optional[str] = None) -> str:
        """
        Navigate to a URL.
        
        Args:
            url: Target URL
            wait_until: Load state to wait for ("load", "domcontentloaded",
                "networkidle", "commit"); None uses the implementation default
            
        Returns:
            The final URL after redirects
            
        Raises:
            BrowserNavigationError: If navigation fails
        """
        pass
    
    @abstractmethod
    async def close(self) -> None:
        """Release the browser and all its resources."""
        pass
    
    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether a browser is currently running."""
        pass
