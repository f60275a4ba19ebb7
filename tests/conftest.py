"""
Pytest configuration and fixtures.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional

import pytest

from oidc_autopilot.api.conformance import ModuleInfo, RunnerInfo
from oidc_autopilot.engine.capture import CaptureTarget
from oidc_autopilot.interfaces.navigator import INavigator


# =============================================================================
# FAKES
# =============================================================================

class FakeConformanceApi:
    """
    In-memory conformance service.

    ``scripts`` maps a module name to the status payloads returned by
    successive polls; the last payload repeats once the script runs out.
    Runner ids issued by ``register_runner`` resolve back to the module name,
    and an unregistered runner id is looked up as a module name directly.
    """

    def __init__(
        self,
        scripts: Dict[str, List[Dict[str, Any]]],
        runner_info: Optional[Dict[str, Dict[str, Any]]] = None,
        logs: Optional[Dict[str, List[Any]]] = None,
        register_error: Optional[Exception] = None,
    ):
        self.scripts = scripts
        self.runner_info = runner_info or {}
        self.logs = logs or {}
        self.register_error = register_error
        self.registered: List[str] = []
        self.deleted: List[str] = []
        self.info_calls: Dict[str, int] = defaultdict(int)
        self.runner_info_calls: Dict[str, int] = defaultdict(int)
        self.log_calls: Dict[str, int] = defaultdict(int)
        self._names: Dict[str, str] = {}

    def _name(self, runner_id: str) -> str:
        return self._names.get(runner_id, runner_id)

    async def register_runner(
        self,
        plan_id: str,
        test_name: str,
        capture: Optional[CaptureTarget] = None,
    ) -> str:
        if self.register_error is not None:
            raise self.register_error
        self.registered.append(test_name)
        runner_id = f"runner-{len(self.registered)}"
        self._names[runner_id] = test_name
        if capture is not None:
            capture.capture({"id": runner_id, "name": test_name})
        return runner_id

    async def get_module_info(self, runner_id: str, capture: Optional[CaptureTarget] = None) -> ModuleInfo:
        self.info_calls[runner_id] += 1
        script = self.scripts[self._name(runner_id)]
        payload = script[min(self.info_calls[runner_id], len(script)) - 1]
        return ModuleInfo.model_validate(payload)

    async def get_runner_info(self, runner_id: str, capture: Optional[CaptureTarget] = None) -> RunnerInfo:
        self.runner_info_calls[runner_id] += 1
        return RunnerInfo.model_validate(self.runner_info.get(self._name(runner_id), {}))

    async def get_module_logs(self, runner_id: str, capture: Optional[CaptureTarget] = None) -> List[Any]:
        self.log_calls[runner_id] += 1
        return list(self.logs.get(self._name(runner_id), []))

    async def delete_runner(self, runner_id: str) -> None:
        self.deleted.append(runner_id)


class FakeNavigator(INavigator):
    """Navigator that records visits instead of driving a browser."""

    def __init__(self, final_url: Optional[str] = None, error: Optional[Exception] = None):
        self.final_url = final_url
        self.error = error
        self.visits: List[str] = []
        self.wait_policies: List[Optional[str]] = []
        self.close_calls = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def navigate(self, url: str, wait_until: Optional[str] = None) -> str:
        if self.error is not None:
            raise self.error
        self._open = True
        self.visits.append(url)
        self.wait_policies.append(wait_until)
        return self.final_url or url

    async def close(self) -> None:
        self.close_calls += 1
        self._open = False


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def fake_api_cls():
    """Provide the in-memory conformance API class."""
    return FakeConformanceApi


@pytest.fixture
def fake_navigator_cls():
    """Provide the recording navigator class."""
    return FakeNavigator


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate settings from the developer's environment and files."""
    from oidc_autopilot.config import reset_settings

    for name in ("CONFORMANCE_PLAN_ID", "CONFORMANCE_TOKEN", "CONFORMANCE_SERVER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def plan_dict() -> Dict[str, Any]:
    """A plan with one API action, one browser action and two modules."""
    return {
        "capture_vars": ["code", "state"],
        "variables": {"client_id": "rp-client"},
        "actions": [
            {
                "type": "api",
                "name": "send_callback",
                "endpoint": "https://rp.example/cb?code={{code}}",
                "method": "post",
                "payload": {"code": "{{code}}", "client": "{{client_id}}"},
                "expected_status": [200],
            },
            {
                "type": "browser",
                "name": "open_login",
                "operation": "navigate",
                "url": "https://op.example/login?state={{state}}",
            },
        ],
        "modules": [
            {"name": "oidcc-server"},
            {"name": "oidcc-response-type-missing", "actions": ["send_callback"]},
        ],
    }
