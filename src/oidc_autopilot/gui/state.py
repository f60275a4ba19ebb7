"""
Dashboard State - Run state shared by the dashboard routes.

This module tracks:
- Whether a plan execution is in flight
- The bounded log line buffer fed to SSE subscribers
- One status card per module of the running plan
- The stop signal of the current run
"""

from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional
import asyncio
import json
import logging

from pydantic import BaseModel, ConfigDict, Field

from oidc_autopilot.config.plan import PlanConfig
from oidc_autopilot.config.settings import DEFAULT_SERVER
from oidc_autopilot.engine.cancellation import StopSignal
from oidc_autopilot.engine.types import ExecutionSummary
from oidc_autopilot.reporting.summary import summary_lines

logger = logging.getLogger(__name__)

LOG_LINE_CAP = 5000
PACKAGE_LOGGER = "oidc_autopilot"


class LaunchRequest(BaseModel):
    """Body of ``POST /api/launch``."""
    model_config = ConfigDict(populate_by_name=True)
    
    config_path: str = Field(..., min_length=1, alias="configPath")
    plan_id: str = Field(..., min_length=1, alias="planId")
    token: str = Field(..., min_length=1)
    server_url: str = Field(DEFAULT_SERVER, alias="serverUrl")
    poll_interval: float = Field(5.0, gt=0, alias="pollInterval")
    timeout: float = Field(240.0, gt=0)
    headless: bool = True


@dataclass
class ModuleCard:
    """Dashboard card for one module."""
    name: str
    status: str = "PENDING"
    result: str = ""
    last_message: str = "Waiting to start"
    
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["lastMessage"] = data.pop("last_message")
        return data


PlanExecutor = Callable[[LaunchRequest, PlanConfig, StopSignal], Awaitable[ExecutionSummary]]


def format_sse(data: Any, event: Optional[str] = None) -> str:
    """Encode one Server-Sent Events frame."""
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {json.dumps(data)}\n\n"


async def execute_plan(request: LaunchRequest, plan: PlanConfig, stop_signal: StopSignal) -> ExecutionSummary:
    """Run a plan against the conformance service with the launch parameters."""
    from oidc_autopilot.api.conformance import ConformanceApi
    from oidc_autopilot.config import get_settings
    from oidc_autopilot.engine.runner import Runner
    
    settings = get_settings().merge_with({
        "runner": {"poll_interval": request.poll_interval, "timeout": request.timeout},
        "browser": {"headless": request.headless},
    })
    async with ConformanceApi(
        base_url=request.server_url,
        token=request.token,
        timeout_s=settings.api.request_timeout_s,
    ) as api:
        runner = Runner.from_settings(api, settings, stop_signal=stop_signal)
        return await runner.execute_plan(request.plan_id, plan)


class DashboardLogHandler(logging.Handler):
    """Forward package log records to the dashboard feed."""
    
    def __init__(self, state: "DashboardState", level: int = logging.INFO):
        super().__init__(level)
        self._state = state
    
    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._state.add_line(
                {
                    "severity": record.levelname.lower(),
                    "message": record.getMessage(),
                    "moduleName": getattr(record, "module_name", None),
                    "actionName": getattr(record, "action_name", None),
                    "at": int(record.created * 1000),
                },
                state=getattr(record, "state", None),
                result=getattr(record, "result", None),
            )
        except Exception:
            self.handleError(record)


class DashboardState:
    """
    State of the dashboard's single plan execution slot.
    
    Example:
        >>> state = DashboardState()
        >>> state.launch(request, plan)     # schedules the run
        >>> state.stop()                    # True if a run was stopped
    """
    
    def __init__(self, executor: Optional[PlanExecutor] = None):
        self._executor = executor or execute_plan
        self.lines: Deque[Dict[str, Any]] = deque(maxlen=LOG_LINE_CAP)
        self.cards: List[ModuleCard] = []
        self.in_flight = False
        self.stopped_by_user = False
        self.outcome: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self._stop_signal: Optional[StopSignal] = None
        self._task: Optional[asyncio.Task] = None
        self._subscribers: List[asyncio.Queue] = []
    
    # =========================================================================
    # Subscribers
    # =========================================================================
    
    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue
    
    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)
    
    def _broadcast(self, frame: str) -> None:
        for queue in self._subscribers:
            queue.put_nowait(frame)
    
    # =========================================================================
    # Feed
    # =========================================================================
    
    def add_line(
        self,
        line: Dict[str, Any],
        state: Optional[str] = None,
        result: Optional[str] = None,
    ) -> None:
        """Append a log line and update the matching module card."""
        if self.stopped_by_user:
            return
        self.lines.append(line)
        self._broadcast(format_sse(line))
        
        card = self._find_card(line.get("moduleName"))
        if card is None:
            return
        card.last_message = line["message"]
        if state:
            card.status = state
        if result:
            card.result = result
        if state or result:
            self._broadcast(format_sse(card.to_dict(), "moduleUpdate"))
    
    def _find_card(self, name: Optional[str]) -> Optional[ModuleCard]:
        if not name:
            return None
        return next((card for card in self.cards if card.name == name), None)
    
    def health(self) -> Dict[str, Any]:
        return {
            "executionInFlight": self.in_flight,
            "lineCount": len(self.lines),
            "outcome": self.outcome,
            "error": self.error,
            "moduleCards": [card.to_dict() for card in self.cards],
        }
    
    # =========================================================================
    # Run control
    # =========================================================================
    
    def launch(self, request: LaunchRequest, plan: PlanConfig) -> asyncio.Task:
        """
        Reset the run state and start executing ``plan`` in the background.
        
        Raises:
            RuntimeError: If a run is already in flight
        """
        if self.in_flight:
            raise RuntimeError("A plan is already running")
        
        self.lines.clear()
        self.outcome = None
        self.error = None
        self.stopped_by_user = False
        self.in_flight = True
        self.cards = [ModuleCard(name=module.name) for module in plan.modules]
        self._broadcast(format_sse([card.to_dict() for card in self.cards], "moduleList"))
        
        self._stop_signal = StopSignal()
        self._task = asyncio.create_task(self._run(request, plan, self._stop_signal))
        return self._task
    
    def stop(self) -> bool:
        """
        Stop the in-flight run without waiting for it to wind down.
        
        Returns:
            False if nothing was running
        """
        if not self.in_flight:
            return False
        
        self.stopped_by_user = True
        self.in_flight = False
        self.error = "Stopped by user"
        if self._stop_signal is not None:
            self._stop_signal.request("Stopped by user")
        
        for card in self.cards:
            if card.status != "FINISHED":
                card.status = "INTERRUPTED"
                card.last_message = "Stopped by user"
        self._broadcast(format_sse({}, "stopped"))
        logger.info("Stop requested from dashboard")
        return True
    
    async def _run(self, request: LaunchRequest, plan: PlanConfig, stop_signal: StopSignal) -> None:
        handler = DashboardLogHandler(self)
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.addHandler(handler)
        if package_logger.level == logging.NOTSET:
            package_logger.setLevel(logging.INFO)
        
        try:
            logger.info(f'Targeting conformance host "{request.server_url}"')
            logger.info(f"Plan {request.plan_id}: {len(plan.modules)} module(s)")
            try:
                summary = await self._executor(request, plan, stop_signal)
            except Exception as e:
                if self.stopped_by_user:
                    return
                self.error = str(e)
                self.in_flight = False
                logger.error(str(e))
                return
            
            if self.stopped_by_user:
                return
            self._finish(summary)
        finally:
            package_logger.removeHandler(handler)
    
    def _finish(self, summary: ExecutionSummary) -> None:
        for module in summary.modules:
            card = self._find_card(module.name)
            if card is not None:
                card.status = module.state.value
                card.result = module.result.value
                card.last_message = module.error_message or module.result.value
        
        for line in summary_lines(summary):
            logger.info(line)
        
        self.outcome = summary.to_dict()
        self.in_flight = False
        self._broadcast(format_sse(self.outcome, "planDone"))
