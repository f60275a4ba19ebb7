"""
API module - Clients for the remote conformance service.
"""

from oidc_autopilot.api.http_client import HttpClient
from oidc_autopilot.api.conformance import (
    ConformanceApi,
    ModuleInfo,
    RunnerInfo,
    BrowserTargets,
    MethodUrl,
)

__all__ = [
    "HttpClient",
    "ConformanceApi",
    "ModuleInfo",
    "RunnerInfo",
    "BrowserTargets",
    "MethodUrl",
]
