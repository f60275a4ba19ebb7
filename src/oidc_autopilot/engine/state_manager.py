"""
State Manager - Poll a remote module until it reaches a terminal state.

Handles:
- Periodic status polling with timeout
- Once-only navigation when the module first waits for a browser
- Once-only execution of each configured action
- Variable capture from every remote payload
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional
import asyncio
import logging
import time

from oidc_autopilot.engine.cancellation import StopSignal
from oidc_autopilot.engine.context import ModuleContext
from oidc_autopilot.engine.types import TestResult, TestState
from oidc_autopilot.exceptions import ExecutionStoppedError, StateTimeoutError
from oidc_autopilot.interfaces.handlers import IStateHandlers

if TYPE_CHECKING:
    from oidc_autopilot.api.conformance import ConformanceApi

logger = logging.getLogger(__name__)


@dataclass
class TerminalState:
    """Final status and result of a polled module."""
    state: TestState
    result: TestResult


class StateManager:
    """
    Drive a registered module through its remote state machine.
    
    Example:
        >>> manager = StateManager(api, poll_interval=5, timeout=240)
        >>> terminal = await manager.poll_until_terminal(context, handlers)
        >>> terminal.result
        <TestResult.PASSED: 'PASSED'>
    """
    
    def __init__(
        self,
        api: "ConformanceApi",
        poll_interval: float,
        timeout: float,
        stop_signal: Optional[StopSignal] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the state manager.
        
        Args:
            api: Conformance API client
            poll_interval: Seconds between status polls
            timeout: Seconds before a non-terminal module is abandoned
            stop_signal: Optional signal that aborts polling
            clock: Monotonic clock, injectable for tests
        """
        self._api = api
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._stop = stop_signal
        self._clock = clock
    
    async def poll_until_terminal(
        self,
        context: ModuleContext,
        handlers: IStateHandlers,
    ) -> TerminalState:
        """
        Poll until FINISHED or INTERRUPTED.
        
        Raises:
            StateTimeoutError: If the timeout elapses first
            ExecutionStoppedError: If a stop is requested
        """
        log = context.log
        start = self._clock()
        
        while True:
            if self._stop is not None and self._stop.requested:
                raise ExecutionStoppedError(context.runner_id, context.last_state.value)
            
            if self._clock() - start > self._timeout:
                raise StateTimeoutError(
                    context.runner_id,
                    context.last_state.value,
                    int(self._timeout * 1000),
                )
            
            info = await self._api.get_module_info(context.runner_id)
            context.capture(info.model_dump(mode="json", by_alias=True, exclude_none=True))
            context.last_state = info.status
            log.info(f"Polling... Current state: {info.status.value}", extra={"state": info.status.value})
            
            if info.status == TestState.WAITING:
                await self._handle_waiting(context, handlers)
            
            if info.status.is_terminal:
                return TerminalState(info.status, info.result)
            
            await self._sleep()
    
    async def _handle_waiting(self, context: ModuleContext, handlers: IStateHandlers) -> None:
        log = context.log
        
        if not context.navigated:
            log.debug("Fetching runner information...")
            runner_info = await self._api.get_runner_info(context.runner_id)
            context.capture(runner_info.model_dump(mode="json", by_alias=True, exclude_none=True))
            
            url = runner_info.browser.select_url()
            if url is None:
                log.info(f"No browser URL found. {runner_info.browser.describe()}")
            else:
                log.info(f"Navigating to URL: {url}")
                context.capture(url)
                final_url = await handlers.navigate(url, context)
                context.capture(final_url)
                context.navigated = True
                log.info(f"Navigation completed for URL: {final_url}")
        
        if context.navigated and context.pending_actions():
            logs = await self._api.get_module_logs(context.runner_id)
            context.capture(logs)
            log.debug(f"Retrieved {len(logs)} log entries before running actions")
            await handlers.execute_actions(context)
    
    async def _sleep(self) -> None:
        if self._stop is not None:
            await self._stop.wait(self._poll_interval)
        else:
            await asyncio.sleep(self._poll_interval)
