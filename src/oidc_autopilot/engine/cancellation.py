"""
Stop signal shared between a plan execution and whoever may stop it.
"""

from typing import Optional
import asyncio


class StopSignal:
    """
    One-way stop flag with an awaitable sleep.
    
    Example:
        >>> signal = StopSignal()
        >>> stopped = await signal.wait(5)   # sleeps up to 5s, returns early on stop
        >>> signal.request("Stopped by user")
    """
    
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None
    
    @property
    def requested(self) -> bool:
        return self._event.is_set()
    
    def request(self, reason: str = "Stopped by user") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()
    
    async def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until a stop is requested or ``timeout`` elapses.
        
        Returns:
            True if a stop was requested
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
