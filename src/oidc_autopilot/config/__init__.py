"""
Configuration module - Runtime settings and plan configuration.

Runtime settings use Pydantic, supporting environment variables,
YAML settings files and CLI arguments. Plan files describe what to run.

Usage:
    from oidc_autopilot.config import get_settings, load_plan_config
    
    # Get global settings (loaded once)
    settings = get_settings()
    
    # Load and validate a plan
    plan = load_plan_config("plans/basic.config.json")

Environment Variables:
    OIDC_AUTOPILOT__API__BASE_URL=https://www.certification.openid.net
    OIDC_AUTOPILOT__API__TOKEN=...
    OIDC_AUTOPILOT__RUNNER__POLL_INTERVAL=5
    OIDC_AUTOPILOT__BROWSER__HEADLESS=false
"""

from oidc_autopilot.config.settings import (
    Settings,
    ApiSettings,
    RunnerSettings,
    BrowserSettings,
    LoggingSettings,
    DashboardSettings,
    DEFAULT_SERVER,
)
from oidc_autopilot.config.plan import (
    PlanConfig,
    ModuleConfig,
    ActionConfig,
    ApiActionConfig,
    BrowserActionConfig,
)
from oidc_autopilot.config.loader import (
    ConfigLoader,
    load_config,
    load_plan_config,
    discover_config_files,
)

# Global settings singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).
    
    Settings are loaded once from environment variables and settings files.
    Call reset_settings() to reload.
    
    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Reset the global settings (forces reload on next get_settings())."""
    global _settings
    _settings = None


__all__ = [
    "Settings",
    "ApiSettings",
    "RunnerSettings",
    "BrowserSettings",
    "LoggingSettings",
    "DashboardSettings",
    "DEFAULT_SERVER",
    "PlanConfig",
    "ModuleConfig",
    "ActionConfig",
    "ApiActionConfig",
    "BrowserActionConfig",
    "ConfigLoader",
    "load_config",
    "load_plan_config",
    "discover_config_files",
    "get_settings",
    "reset_settings",
]
