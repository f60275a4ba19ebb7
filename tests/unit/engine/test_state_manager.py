"""
Tests for the polling state manager.
"""

import asyncio

import pytest

from oidc_autopilot.engine.cancellation import StopSignal
from oidc_autopilot.engine.context import ModuleContext
from oidc_autopilot.engine.state_manager import StateManager
from oidc_autopilot.engine.types import TestResult, TestState
from oidc_autopilot.exceptions import ExecutionStoppedError, StateTimeoutError
from oidc_autopilot.interfaces.handlers import IStateHandlers


# =============================================================================
# MOCK CLASSES
# =============================================================================

class RecordingHandlers(IStateHandlers):
    """Handlers that record calls and mark every pending action executed."""
    
    def __init__(self, final_url=None, captured=None):
        self.final_url = final_url
        self.captured = captured or {}
        self.navigations = []
        self.action_batches = []
    
    async def navigate(self, url, context):
        self.navigations.append(url)
        return self.final_url or url
    
    async def execute_actions(self, context):
        pending = context.pending_actions()
        self.action_batches.append(pending)
        for name in pending:
            context.mark_executed(name, dict(self.captured))


class StepClock:
    """Clock advancing a fixed step per reading."""
    
    def __init__(self, step):
        self.now = 0.0
        self.step = step
    
    def __call__(self):
        value = self.now
        self.now += self.step
        return value


WAITING = {"status": "WAITING", "result": None}
FINISHED_PASSED = {"status": "FINISHED", "result": "PASSED"}
BROWSER = {"browser": {"urls": ["https://op.example/authorize?state=abc"]}}


def make_manager(api, **kwargs):
    kwargs.setdefault("poll_interval", 0.001)
    kwargs.setdefault("timeout", 5)
    return StateManager(api, **kwargs)


class TestPolling:
    """Test the poll loop."""
    
    @pytest.mark.asyncio
    async def test_returns_terminal_state(self, fake_api_cls):
        """Test polling stops at FINISHED and reports the result."""
        api = fake_api_cls({"m": [{"status": "CREATED"}, {"status": "running"}, FINISHED_PASSED]})
        context = ModuleContext("m", runner_id="m")
        
        terminal = await make_manager(api).poll_until_terminal(context, RecordingHandlers())
        
        assert terminal.state == TestState.FINISHED
        assert terminal.result == TestResult.PASSED
        assert api.info_calls["m"] == 3
        assert context.last_state == TestState.FINISHED
    
    @pytest.mark.asyncio
    async def test_interrupted_is_terminal(self, fake_api_cls):
        """Test a remote INTERRUPTED ends polling."""
        api = fake_api_cls({"m": [{"status": "INTERRUPTED", "result": "FAILED"}]})
        terminal = await make_manager(api).poll_until_terminal(ModuleContext("m", runner_id="m"), RecordingHandlers())
        assert terminal.state == TestState.INTERRUPTED
        assert terminal.result == TestResult.FAILED
    
    @pytest.mark.asyncio
    async def test_unrecognized_values_normalized(self, fake_api_cls):
        """Test unknown status and result values decode defensively."""
        api = fake_api_cls({"m": [{"status": "bogus"}, {"status": "FINISHED", "result": "weird"}]})
        terminal = await make_manager(api).poll_until_terminal(ModuleContext("m", runner_id="m"), RecordingHandlers())
        assert terminal.result == TestResult.UNKNOWN
    
    @pytest.mark.asyncio
    async def test_status_payload_captured(self, fake_api_cls):
        """Test capture variables are harvested from status payloads."""
        api = fake_api_cls({"m": [{"status": "FINISHED", "result": "PASSED", "redirect_to": "https://rp/cb?code=xyz"}]})
        context = ModuleContext("m", runner_id="m", capture_vars=["code"])
        await make_manager(api).poll_until_terminal(context, RecordingHandlers())
        assert context.captured == {"code": "xyz"}


class TestWaitingState:
    """Test navigation and actions while WAITING."""
    
    @pytest.mark.asyncio
    async def test_navigates_once_across_waiting_polls(self, fake_api_cls):
        """Test navigation happens exactly once for repeated WAITING polls."""
        api = fake_api_cls({"m": [WAITING, WAITING, WAITING, FINISHED_PASSED]}, runner_info={"m": BROWSER})
        context = ModuleContext("m", runner_id="m", capture_vars=["state"])
        handlers = RecordingHandlers()
        
        await make_manager(api).poll_until_terminal(context, handlers)
        
        assert handlers.navigations == ["https://op.example/authorize?state=abc"]
        assert api.runner_info_calls["m"] == 1
        assert context.navigated is True
        assert context.captured["state"] == "abc"
    
    @pytest.mark.asyncio
    async def test_final_url_captured(self, fake_api_cls):
        """Test the post-redirect URL feeds capture."""
        api = fake_api_cls({"m": [WAITING, FINISHED_PASSED]}, runner_info={"m": BROWSER})
        context = ModuleContext("m", runner_id="m", capture_vars=["code"])
        await make_manager(api).poll_until_terminal(context, RecordingHandlers(final_url="https://rp/cb?code=c42"))
        assert context.captured["code"] == "c42"
    
    @pytest.mark.asyncio
    async def test_get_entry_used_when_no_direct_url(self, fake_api_cls):
        """Test the first GET entry of urlsWithMethod is used."""
        info = {"browser": {"urls": [], "urlsWithMethod": [
            {"url": "https://op/post", "method": "POST"},
            {"url": "https://op/get", "method": "get"},
        ]}}
        api = fake_api_cls({"m": [WAITING, FINISHED_PASSED]}, runner_info={"m": info})
        handlers = RecordingHandlers()
        await make_manager(api).poll_until_terminal(ModuleContext("m", runner_id="m"), handlers)
        assert handlers.navigations == ["https://op/get"]
    
    @pytest.mark.asyncio
    async def test_no_url_retries_on_next_waiting(self, fake_api_cls):
        """Test a WAITING poll without a URL does not mark navigation done."""
        api = fake_api_cls({"m": [WAITING, WAITING, FINISHED_PASSED]}, runner_info={"m": {"browser": {}}})
        context = ModuleContext("m", runner_id="m", actions=["a1"])
        handlers = RecordingHandlers()
        
        await make_manager(api).poll_until_terminal(context, handlers)
        
        assert handlers.navigations == []
        assert handlers.action_batches == []
        assert api.runner_info_calls["m"] == 2
        assert context.navigated is False
    
    @pytest.mark.asyncio
    async def test_actions_run_once_after_navigation(self, fake_api_cls):
        """Test each action executes once across WAITING polls."""
        api = fake_api_cls(
            {"m": [WAITING, WAITING, WAITING, FINISHED_PASSED]},
            runner_info={"m": BROWSER},
            logs={"m": [{"msg": "see https://rp/cb?code=from-log"}]},
        )
        context = ModuleContext("m", runner_id="m", capture_vars=["code"], actions=["a1", "a2"])
        handlers = RecordingHandlers(captured={"extra": "v"})
        
        await make_manager(api).poll_until_terminal(context, handlers)
        
        assert handlers.action_batches == [["a1", "a2"]]
        assert context.executed_actions == {"a1", "a2"}
        assert api.log_calls["m"] == 1
        assert context.captured["extra"] == "v"
    
    @pytest.mark.asyncio
    async def test_logs_captured_before_actions(self, fake_api_cls):
        """Test log entries feed capture before actions run."""
        api = fake_api_cls(
            {"m": [WAITING, FINISHED_PASSED]},
            runner_info={"m": BROWSER},
            logs={"m": [{"code": "from-log"}]},
        )
        context = ModuleContext("m", runner_id="m", capture_vars=["code"], actions=["a1"])
        seen = {}
        
        class Handlers(RecordingHandlers):
            async def execute_actions(self, ctx):
                seen.update(ctx.captured)
                await super().execute_actions(ctx)
        
        await make_manager(api).poll_until_terminal(context, Handlers())
        assert seen["code"] == "from-log"


class TestTimeoutAndStop:
    """Test loop exits other than terminal states."""
    
    @pytest.mark.asyncio
    async def test_timeout_raises_with_last_state(self, fake_api_cls):
        """Test a module stuck in RUNNING times out."""
        api = fake_api_cls({"m": [{"status": "RUNNING"}]})
        context = ModuleContext("m", runner_id="m")
        manager = make_manager(api, timeout=1, clock=StepClock(0.3))
        
        with pytest.raises(StateTimeoutError) as exc_info:
            await manager.poll_until_terminal(context, RecordingHandlers())
        
        error = exc_info.value
        assert error.runner_id == "m"
        assert error.last_state == "RUNNING"
        assert error.timeout_ms == 1000
        assert str(error) == "Module m timed out after 1000ms in state RUNNING"
    
    @pytest.mark.asyncio
    async def test_stop_before_first_poll(self, fake_api_cls):
        """Test a requested stop prevents any polling."""
        api = fake_api_cls({"m": [{"status": "RUNNING"}]})
        stop = StopSignal()
        stop.request()
        
        with pytest.raises(ExecutionStoppedError):
            await make_manager(api, stop_signal=stop).poll_until_terminal(ModuleContext("m", runner_id="m"), RecordingHandlers())
        assert api.info_calls["m"] == 0
    
    @pytest.mark.asyncio
    async def test_stop_wakes_poll_sleep(self, fake_api_cls):
        """Test a stop during the poll sleep ends the loop promptly."""
        api = fake_api_cls({"m": [{"status": "RUNNING"}]})
        stop = StopSignal()
        manager = make_manager(api, poll_interval=60, timeout=600, stop_signal=stop)
        
        task = asyncio.create_task(manager.poll_until_terminal(ModuleContext("m", runner_id="m"), RecordingHandlers()))
        await asyncio.sleep(0.05)
        stop.request()
        
        with pytest.raises(ExecutionStoppedError) as exc_info:
            await asyncio.wait_for(task, timeout=2)
        assert exc_info.value.last_state == "RUNNING"
        assert api.info_calls["m"] == 1
