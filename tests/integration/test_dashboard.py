"""
Tests for the dashboard HTTP routes.
"""

import json
import time

import pytest
from starlette.testclient import TestClient

from oidc_autopilot.engine.types import ExecutionSummary, ModuleResult, TestResult, TestState
from oidc_autopilot.gui.server import create_app
from oidc_autopilot.gui.state import DashboardState

PLAN = {"modules": [{"name": "oidcc-server"}, {"name": "oidcc-userinfo-get"}]}


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


async def waiting_executor(request, plan, stop_signal):
    await stop_signal.wait()
    return ExecutionSummary(plan_id=request.plan_id)


async def passing_executor(request, plan, stop_signal):
    summary = ExecutionSummary(plan_id=request.plan_id)
    for module in plan.modules:
        summary.record(ModuleResult(module.name, "r", TestState.FINISHED, TestResult.PASSED))
    return summary


@pytest.fixture
def config_root(tmp_path):
    (tmp_path / "basic.config.json").write_text(json.dumps(PLAN))
    (tmp_path / "empty.config.json").write_text(json.dumps({"modules": []}))
    (tmp_path / "broken.config.json").write_text("{")
    return tmp_path


def make_client(config_root, executor):
    state = DashboardState(executor=executor)
    return TestClient(create_app(state, config_root=config_root)), state


def launch_body(config="basic.config.json"):
    return {"configPath": config, "planId": "plan-1", "token": "tok"}


class TestPages:
    """Test read-only routes."""
    
    def test_index_lists_configs(self, config_root):
        """Test the launch page offers discovered configs."""
        client, _ = make_client(config_root, passing_executor)
        response = client.get("/")
        assert response.status_code == 200
        assert "basic.config.json" in response.text
    
    def test_configs(self, config_root):
        """Test config discovery endpoint."""
        client, _ = make_client(config_root, passing_executor)
        assert client.get("/api/configs").json() == {
            "files": ["basic.config.json", "broken.config.json", "empty.config.json"],
        }
    
    def test_health_idle(self, config_root):
        """Test the idle health payload."""
        client, _ = make_client(config_root, passing_executor)
        data = client.get("/api/health").json()
        assert data["executionInFlight"] is False
        assert data["moduleCards"] == []


class TestLaunch:
    """Test launching plans."""
    
    def test_launch_runs_to_completion(self, config_root):
        """Test a launched plan finishes and reports its outcome."""
        client, state = make_client(config_root, passing_executor)
        with client:
            response = client.post("/api/launch", json=launch_body())
            assert response.status_code == 202
            assert response.json() == {"accepted": True}
            assert wait_for(lambda: client.get("/api/health").json()["outcome"] is not None)
            
            data = client.get("/api/health").json()
            assert data["executionInFlight"] is False
            assert data["outcome"]["passed"] == 2
            assert [c["status"] for c in data["moduleCards"]] == ["FINISHED", "FINISHED"]
    
    @pytest.mark.parametrize("body, detail", [
        (launch_body("missing.config.json"), "Config file not found"),
        (launch_body("broken.config.json"), "is not valid"),
        (launch_body("empty.config.json"), "zero test modules"),
        ({"configPath": "basic.config.json"}, "Invalid launch request"),
    ])
    def test_launch_rejects_bad_input(self, config_root, body, detail):
        """Test invalid launches are rejected with 400."""
        client, state = make_client(config_root, passing_executor)
        response = client.post("/api/launch", json=body)
        assert response.status_code == 400
        assert detail in response.json()["detail"]
        assert state.in_flight is False
    
    def test_launch_while_running_conflicts(self, config_root):
        """Test a second launch is rejected with 409."""
        client, state = make_client(config_root, waiting_executor)
        with client:
            assert client.post("/api/launch", json=launch_body()).status_code == 202
            assert client.post("/api/launch", json=launch_body()).status_code == 409
            client.post("/api/stop")


class TestStop:
    """Test stopping plans."""
    
    def test_stop_idle_conflicts(self, config_root):
        """Test stop without a run is rejected with 409."""
        client, _ = make_client(config_root, waiting_executor)
        assert client.post("/api/stop").status_code == 409
    
    def test_stop_running_plan(self, config_root):
        """Test stop interrupts cards and returns immediately."""
        client, state = make_client(config_root, waiting_executor)
        with client:
            client.post("/api/launch", json=launch_body())
            response = client.post("/api/stop")
            assert response.status_code == 200
            assert response.json() == {"stopped": True}
            
            data = client.get("/api/health").json()
            assert data["executionInFlight"] is False
            assert data["error"] == "Stopped by user"
            assert {c["status"] for c in data["moduleCards"]} == {"INTERRUPTED"}
