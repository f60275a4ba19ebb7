"""
Runner - Execute the modules of a test plan, one after another.

Handles:
- Runner registration per module
- One browser session per module, always closed
- Abort-or-continue policy on module failure
- Stop requests with bounded, best-effort remote cleanup
- Aggregated execution summary
"""

from typing import TYPE_CHECKING, Callable, List, Optional
import asyncio
import logging

from oidc_autopilot.api.http_client import HttpClient
from oidc_autopilot.browsers.playwright_browser import BrowserSession
from oidc_autopilot.config.plan import ModuleConfig, PlanConfig
from oidc_autopilot.engine.actions import ActionExecutor
from oidc_autopilot.engine.cancellation import StopSignal
from oidc_autopilot.engine.context import ModuleContext
from oidc_autopilot.engine.state_manager import StateManager
from oidc_autopilot.engine.types import ExecutionSummary, ModuleResult, TestResult, TestState
from oidc_autopilot.exceptions import (
    ActionExecutionError,
    ExecutionStoppedError,
    ModuleExecutionError,
    StateTimeoutError,
)
from oidc_autopilot.interfaces.handlers import IStateHandlers
from oidc_autopilot.interfaces.navigator import INavigator
from oidc_autopilot.utils.logging import ModuleLogAdapter

if TYPE_CHECKING:
    from oidc_autopilot.api.conformance import ConformanceApi
    from oidc_autopilot.config.settings import Settings

logger = logging.getLogger(__name__)

NavigatorFactory = Callable[[], INavigator]


class ModuleDriver(IStateHandlers):
    """State handlers backed by a navigator and an action executor."""
    
    def __init__(self, navigator: INavigator, executor: ActionExecutor):
        self._navigator = navigator
        self._executor = executor
    
    async def navigate(self, url: str, context: ModuleContext) -> str:
        return await self._navigator.navigate(url)
    
    async def execute_actions(self, context: ModuleContext) -> None:
        for name in context.pending_actions():
            log = context.log.for_action(name)
            log.info("Executing action...")
            captured = await self._executor.execute_action(
                name, context.captured, context.variables, log
            )
            context.mark_executed(name, captured)
            log.info(f"Action completed (captured: {', '.join(sorted(captured)) or 'none'})")


class Runner:
    """
    Sequential plan executor.
    
    Example:
        >>> async with ConformanceApi(base_url, token) as api:
        ...     runner = Runner(api, poll_interval=5, timeout=240)
        ...     summary = await runner.execute_plan("plan-1", plan_config)
        >>> summary.passed
        2
    """
    
    def __init__(
        self,
        api: "ConformanceApi",
        poll_interval: float = 5.0,
        timeout: float = 240.0,
        headless: bool = True,
        navigator_factory: Optional[NavigatorFactory] = None,
        continue_on_error: bool = False,
        stop_signal: Optional[StopSignal] = None,
        cleanup_timeout: float = 10.0,
        action_client: Optional[HttpClient] = None,
    ):
        """
        Initialize the runner.
        
        Args:
            api: Conformance API client
            poll_interval: Seconds between status polls
            timeout: Seconds per module before it times out
            headless: Launch browsers headless (default navigator only)
            navigator_factory: Builds one navigator per module
            continue_on_error: Record a failed module and continue the plan
            stop_signal: Signal that interrupts the plan
            cleanup_timeout: Bound in seconds for remote cleanup after a stop
            action_client: HTTP client for API actions (created per plan if None)
        """
        self._api = api
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._navigator_factory = navigator_factory or (lambda: BrowserSession(headless=headless))
        self._continue_on_error = continue_on_error
        self._stop = stop_signal or StopSignal()
        self._cleanup_timeout = cleanup_timeout
        self._action_client = action_client
        self._cleanup_tasks: List[asyncio.Task] = []
    
    @classmethod
    def from_settings(
        cls,
        api: "ConformanceApi",
        settings: "Settings",
        stop_signal: Optional[StopSignal] = None,
    ) -> "Runner":
        """Build a runner from application settings."""
        browser = settings.browser
        
        def navigator_factory() -> INavigator:
            return BrowserSession(
                headless=browser.headless,
                browser_type=browser.browser_type,
                ignore_https_errors=browser.ignore_https_errors,
                wait_until=browser.wait_until,
                navigation_timeout_ms=browser.navigation_timeout_ms,
            )
        
        return cls(
            api,
            poll_interval=settings.runner.poll_interval,
            timeout=settings.runner.timeout,
            navigator_factory=navigator_factory,
            continue_on_error=settings.runner.continue_on_error,
            stop_signal=stop_signal,
            cleanup_timeout=settings.runner.cleanup_timeout,
        )
    
    @property
    def stop_signal(self) -> StopSignal:
        return self._stop
    
    async def execute_plan(self, plan_id: str, config: PlanConfig) -> ExecutionSummary:
        """
        Execute every module of the plan in configured order.
        
        Returns:
            Summary with one result per module
            
        Raises:
            ModuleExecutionError: A module failed and continue_on_error is off
            ConformanceApiError: Registering a module failed
        """
        summary = ExecutionSummary(plan_id=plan_id)
        client = self._action_client or HttpClient()
        owns_client = self._action_client is None
        
        try:
            for index, module in enumerate(config.modules):
                if self._stop.requested:
                    for remaining in config.modules[index:]:
                        summary.record(_interrupted(remaining.name))
                    break
                summary.record(await self._execute_module(plan_id, module, config, client))
        finally:
            if owns_client:
                await client.close()
            await self._drain_cleanup()
        
        logger.info(
            f"Plan {plan_id} finished: {summary.passed} passed, {summary.failed} failed, "
            f"{summary.interrupted} interrupted of {summary.total}"
        )
        return summary
    
    async def _execute_module(
        self,
        plan_id: str,
        module: ModuleConfig,
        config: PlanConfig,
        client: HttpClient,
    ) -> ModuleResult:
        log = ModuleLogAdapter.for_module(logger, module.name)
        context = ModuleContext(
            module_name=module.name,
            capture_vars=list(config.capture_vars),
            variables=dict(module.variables),
            actions=list(module.actions),
            log=log,
        )
        
        log.info("Registering...", extra={"state": TestState.CREATED.value})
        context.runner_id = await self._api.register_runner(
            plan_id, module.name, capture=context.capture_target
        )
        log.info(f"Registering... OK (ID: {context.runner_id})")
        log.debug(f"Correlation ID: {log.correlation_id}")
        
        navigator = self._navigator_factory()
        executor = ActionExecutor(
            config.actions,
            config.capture_vars,
            navigator=navigator,
            global_variables=config.variables,
            http_client=client,
        )
        state_manager = StateManager(self._api, self._poll_interval, self._timeout, self._stop)
        
        try:
            terminal = await state_manager.poll_until_terminal(context, ModuleDriver(navigator, executor))
        except ExecutionStoppedError:
            log.warning("Stop requested, interrupting module", extra={"state": TestState.INTERRUPTED.value})
            self._schedule_cleanup(context.runner_id, log)
            return _interrupted(module.name, context.runner_id, context.snapshot())
        except Exception as e:
            _log_failure(e, log)
            error = ModuleExecutionError(
                module.name, context.last_state.value, f"Module execution failed: {e}", cause=e
            )
            if not self._continue_on_error:
                raise error from e
            return ModuleResult(
                name=module.name,
                runner_id=context.runner_id,
                state=context.last_state,
                result=TestResult.FAILED,
                captured=context.snapshot(),
                error_message=str(error),
            )
        finally:
            await _close_navigator(navigator, log)
        
        log.info(
            f"Module execution completed: {terminal.result.value}",
            extra={"state": terminal.state.value, "result": terminal.result.value},
        )
        return ModuleResult(
            name=module.name,
            runner_id=context.runner_id,
            state=terminal.state,
            result=terminal.result,
            captured=context.snapshot(),
        )
    
    def _schedule_cleanup(self, runner_id: str, log: ModuleLogAdapter) -> None:
        self._cleanup_tasks.append(asyncio.create_task(self._cleanup_runner(runner_id, log)))
    
    async def _cleanup_runner(self, runner_id: str, log: ModuleLogAdapter) -> None:
        try:
            await self._api.delete_runner(runner_id)
            info = await self._api.get_module_info(runner_id)
            log.info(f"Remote runner {runner_id} stopped (status: {info.status.value})")
        except Exception as e:
            log.warning(f"Remote cleanup for runner {runner_id} failed: {e}")
    
    async def _drain_cleanup(self) -> None:
        tasks, self._cleanup_tasks = self._cleanup_tasks, []
        if not tasks:
            return
        _, pending = await asyncio.wait(tasks, timeout=self._cleanup_timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(f"Remote cleanup did not finish within {self._cleanup_timeout}s")


def _interrupted(name: str, runner_id: str = "", captured: Optional[dict] = None) -> ModuleResult:
    return ModuleResult(
        name=name,
        runner_id=runner_id,
        state=TestState.INTERRUPTED,
        result=TestResult.UNKNOWN,
        captured=dict(captured or {}),
        error_message="Stopped by user",
    )


def _log_failure(error: Exception, log: ModuleLogAdapter) -> None:
    if isinstance(error, StateTimeoutError):
        log.error(f"Timed out in state {error.last_state}", extra={"state": error.last_state})
    elif isinstance(error, ActionExecutionError):
        log.error(f"Action '{error.action_name}' failed: {error}")
    else:
        log.error(f"Module failed: {error}")


async def _close_navigator(navigator: INavigator, log: ModuleLogAdapter) -> None:
    try:
        await navigator.close()
    except Exception as e:
        log.warning(f"Failed to close browser session: {e}")
