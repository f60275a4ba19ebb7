"""
Settings - Pydantic models for type-safe configuration.

This module defines all runtime settings as Pydantic models,
providing validation, type hints, and automatic environment variable loading.

Example:
    >>> from oidc_autopilot.config import Settings, load_config
    >>> settings = load_config()  # Loads from env, yaml, and defaults
    >>> print(settings.runner.poll_interval)
    5.0
"""

from typing import Literal, Optional
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVER = "https://www.certification.openid.net"


class ApiSettings(BaseModel):
    """
    Conformance service connection settings.
    
    Attributes:
        base_url: Conformance server base URL
        token: Bearer token for the API
        plan_id: Default plan id when none is given on the command line
        request_timeout_s: Per-request timeout in seconds
    """
    base_url: str = DEFAULT_SERVER
    token: Optional[SecretStr] = None
    plan_id: Optional[str] = None
    request_timeout_s: float = Field(default=30.0, ge=1, le=600)


class RunnerSettings(BaseModel):
    """
    Plan execution settings.
    
    Attributes:
        poll_interval: Seconds between status polls
        timeout: Seconds a module may take to reach a terminal state
        continue_on_error: Record a failing module and move on instead of aborting the plan
        cleanup_timeout: Upper bound in seconds for remote cleanup after a stop
    """
    poll_interval: float = Field(default=5.0, gt=0)
    timeout: float = Field(default=240.0, gt=0)
    continue_on_error: bool = False
    cleanup_timeout: float = Field(default=10.0, gt=0)


class BrowserSettings(BaseModel):
    """
    Browser automation settings.
    
    Attributes:
        headless: Run browser in headless mode
        browser_type: Playwright browser to launch
        ignore_https_errors: Accept self-signed certificates on test endpoints
        wait_until: Default load state awaited after navigation
        navigation_timeout_ms: Timeout for a single navigation
    """
    headless: bool = True
    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    ignore_https_errors: bool = True
    wait_until: Literal["load", "domcontentloaded", "networkidle", "commit"] = "networkidle"
    navigation_timeout_ms: int = Field(default=30000, ge=1000, le=300000)


class LoggingSettings(BaseModel):
    """
    Logging configuration.
    
    Attributes:
        level: Log level
        file: Log file path (None for console only)
        json_format: Use JSON format for the log file
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None
    json_format: bool = False


class DashboardSettings(BaseModel):
    """Web dashboard settings."""
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    config_search_depth: int = Field(default=2, ge=0, le=10)


class Settings(BaseSettings):
    """
    Root settings container - single source of truth for runtime configuration.
    
    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to constructor
    2. Environment variables (prefixed with OIDC_AUTOPILOT__)
    3. Settings file (YAML)
    4. Default values
    """
    
    model_config = SettingsConfigDict(
        env_prefix="OIDC_AUTOPILOT__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
    
    api: ApiSettings = Field(default_factory=ApiSettings)
    runner: RunnerSettings = Field(default_factory=RunnerSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    
    debug: bool = False
    
    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.
        
        Args:
            overrides: Dictionary of values to override
            
        Returns:
            New Settings instance with overrides applied
        """
        merged = deep_merge(self.model_dump(), overrides)
        return Settings(**merged)


def deep_merge(base: dict, updates: dict) -> dict:
    """Recursively merge ``updates`` into ``base`` in place and return it."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base
