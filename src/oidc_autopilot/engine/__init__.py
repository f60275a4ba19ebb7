"""
Execution engine - template/capture, actions, state polling and plan runner.

Only the dependency-free building blocks are re-exported here because the
API client imports them. Import the orchestration classes from their
modules:

    from oidc_autopilot.engine.runner import Runner
    from oidc_autopilot.engine.state_manager import StateManager
    from oidc_autopilot.engine.actions import ActionExecutor
"""

from oidc_autopilot.engine.types import (
    ExecutionSummary,
    ModuleResult,
    TestResult,
    TestState,
)
from oidc_autopilot.engine.template import apply_template
from oidc_autopilot.engine.capture import (
    CaptureTarget,
    capture_from_object,
    capture_from_url,
)
from oidc_autopilot.engine.cancellation import StopSignal
from oidc_autopilot.engine.context import ModuleContext

__all__ = [
    "ExecutionSummary",
    "ModuleResult",
    "TestResult",
    "TestState",
    "apply_template",
    "CaptureTarget",
    "capture_from_object",
    "capture_from_url",
    "StopSignal",
    "ModuleContext",
]
