"""
Playwright Browser - Implementation of INavigator using Playwright.

One session belongs to one module execution: the browser is launched on
the first navigation and torn down when the module finishes.
"""

from typing import Any, Optional
import logging

from oidc_autopilot.interfaces.navigator import INavigator
from oidc_autopilot.exceptions.browser import (
    BrowserLaunchError,
    BrowserNavigationError,
)

logger = logging.getLogger(__name__)


class BrowserSession(INavigator):
    """
    Playwright-backed navigator.
    
    Example:
        >>> session = BrowserSession(headless=True)
        >>> final_url = await session.navigate("https://example.com")
        >>> await session.close()
    """
    
    def __init__(
        self,
        headless: bool = True,
        browser_type: str = "chromium",
        ignore_https_errors: bool = True,
        wait_until: str = "networkidle",
        navigation_timeout_ms: int = 30000,
    ):
        """Initialize the session (not launched yet)."""
        self._headless = headless
        self._browser_type = browser_type
        self._ignore_https_errors = ignore_https_errors
        self._wait_until = wait_until
        self._navigation_timeout_ms = navigation_timeout_ms
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Any = None
    
    @property
    def is_open(self) -> bool:
        """Check if the browser has been launched."""
        return self._browser is not None
    
    async def _launch(self) -> None:
        if self._browser:
            return
        try:
            from playwright.async_api import async_playwright
            
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self._browser_type)
            self._browser = await launcher.launch(headless=self._headless)
            self._context = await self._browser.new_context(
                ignore_https_errors=self._ignore_https_errors,
            )
            self._page = await self._context.new_page()
            
            logger.info(f"Launched {self._browser_type} browser (headless={self._headless})")
        except Exception as e:
            await self.close()
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e
    
    async def navigate(self, url: str, wait_until: Optional[str] = None) -> str:
        """Navigate to URL and return the final URL after redirects."""
        try:
            await self._launch()
            await self._page.goto(
                url,
                wait_until=wait_until or self._wait_until,
                timeout=self._navigation_timeout_ms,
            )
            return self._page.url
        except BrowserLaunchError:
            raise
        except Exception as e:
            raise BrowserNavigationError(url, str(e), cause=e) from e
    
    async def close(self) -> None:
        """Close the browser and cleanup."""
        was_open = self._browser is not None
        context, browser, playwright = self._context, self._browser, self._playwright
        self._context = self._page = self._browser = self._playwright = None
        
        # Each step runs even if an earlier one raised
        try:
            if context:
                await context.close()
        finally:
            try:
                if browser:
                    await browser.close()
            finally:
                if playwright:
                    await playwright.stop()
        
        if was_open:
            logger.info("Browser closed")
