"""
Module Context - Mutable state owned by one module execution.

Handles:
- Captured variables shared by polling, navigation and actions
- Once-only navigation flag
- Set of actions already executed
- Last observed remote state
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set
import logging

from oidc_autopilot.engine.capture import CaptureTarget, capture_from_object
from oidc_autopilot.engine.types import TestState
from oidc_autopilot.utils.logging import ModuleLogAdapter

logger = logging.getLogger(__name__)


@dataclass
class ModuleContext:
    """
    Execution state for a single module, passed by reference through the
    state manager and action handlers. Never shared between modules.
    
    Example:
        >>> ctx = ModuleContext("oidcc-server", capture_vars=["code"], actions=["send_cb"])
        >>> ctx.capture({"redirect_to": "https://rp/cb?code=abc"})
        >>> ctx.captured
        {'code': 'abc'}
        >>> ctx.pending_actions()
        ['send_cb']
    """
    module_name: str
    runner_id: str = ""
    capture_vars: List[str] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)
    actions: List[str] = field(default_factory=list)
    captured: Dict[str, str] = field(default_factory=dict)
    navigated: bool = False
    executed_actions: Set[str] = field(default_factory=set)
    last_state: TestState = TestState.CREATED
    log: Optional[ModuleLogAdapter] = field(default=None, repr=False)
    
    def __post_init__(self) -> None:
        if self.log is None:
            self.log = ModuleLogAdapter.for_module(logger, self.module_name)
    
    @property
    def capture_target(self) -> CaptureTarget:
        """Capture target writing straight into ``captured``."""
        return CaptureTarget(self.capture_vars, self.captured)
    
    def capture(self, value: Any) -> None:
        capture_from_object(value, self.capture_vars, self.captured)
    
    def pending_actions(self) -> List[str]:
        """Configured actions not yet executed, in configured order."""
        return [name for name in self.actions if name not in self.executed_actions]
    
    def mark_executed(self, action_name: str, newly_captured: Dict[str, str]) -> None:
        self.captured.update(newly_captured)
        self.executed_actions.add(action_name)
    
    def snapshot(self) -> Dict[str, str]:
        """Copy of the captured variables for the module result."""
        return dict(self.captured)
