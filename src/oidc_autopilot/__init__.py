"""
OIDC Autopilot - Automated runner for OpenID conformance test plans.

Registers each module of a plan with the conformance service, drives the
browser through the redirects the service asks for, runs configured
follow-up actions and reports the aggregated results.

Example:
    >>> from oidc_autopilot import ConformanceApi, Runner, load_plan_config
    >>> plan = load_plan_config("basic.config.json")
    >>> async with ConformanceApi(base_url, token) as api:
    ...     summary = await Runner(api).execute_plan("PLAN_ID", plan)
"""

__version__ = "0.1.0"

# Public API exports
from oidc_autopilot.api.conformance import ConformanceApi
from oidc_autopilot.config import Settings, PlanConfig, load_plan_config
from oidc_autopilot.engine.runner import Runner
from oidc_autopilot.engine.types import ExecutionSummary, ModuleResult, TestResult, TestState

__all__ = [
    "ConformanceApi",
    "Settings",
    "PlanConfig",
    "load_plan_config",
    "Runner",
    "ExecutionSummary",
    "ModuleResult",
    "TestResult",
    "TestState",
    "__version__",
]
