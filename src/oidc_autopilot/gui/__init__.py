"""
GUI module - Web dashboard for plan executions.

Usage:
    oidc-autopilot dashboard --port 3000
"""

from oidc_autopilot.gui.server import create_app, run_server
from oidc_autopilot.gui.state import DashboardState, LaunchRequest, ModuleCard

__all__ = [
    "create_app",
    "run_server",
    "DashboardState",
    "LaunchRequest",
    "ModuleCard",
]
