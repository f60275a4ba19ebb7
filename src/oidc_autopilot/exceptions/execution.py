"""
Module execution exceptions.
"""

from oidc_autopilot.exceptions.base import AutopilotError


class ExecutionError(AutopilotError):
    """Base exception for module and plan execution errors."""
    pass


class ModuleExecutionError(ExecutionError):
    """
    A test module failed during its lifecycle.
    
    Carries the module name and the last state observed before the failure.
    """
    
    def __init__(
        self,
        module_name: str,
        state: str,
        message: str,
        cause: BaseException | None = None,
    ):
        super().__init__(
            f"[{module_name}] {message}",
            {"module_name": module_name, "state": state},
        )
        self.module_name = module_name
        self.state = state
        self.cause = cause


class StateTimeoutError(ExecutionError):
    """
    Polling did not reach a terminal state in time.
    
    Attributes:
        runner_id: Remote runner that was being polled
        last_state: Last state reported by the service
        timeout_ms: Configured timeout in milliseconds
    """
    
    def __init__(self, runner_id: str, last_state: str, timeout_ms: int):
        super().__init__(
            f"Module {runner_id} timed out after {timeout_ms}ms in state {last_state}",
            {"runner_id": runner_id, "last_state": last_state, "timeout_ms": timeout_ms},
        )
        self.runner_id = runner_id
        self.last_state = last_state
        self.timeout_ms = timeout_ms


class ExecutionStoppedError(ExecutionError):
    """Polling was abandoned because a stop was requested."""
    
    def __init__(self, runner_id: str, last_state: str):
        super().__init__(
            f"Module {runner_id} stopped in state {last_state}",
            {"runner_id": runner_id, "last_state": last_state},
        )
        self.runner_id = runner_id
        self.last_state = last_state
