"""
Config Loader - Load runtime settings and plan configuration files.

Runtime settings merge YAML settings files, environment variables and
explicit overrides. Plan files are JSON (or YAML) documents validated
against the plan schema.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from oidc_autopilot.config.plan import PlanConfig
from oidc_autopilot.config.settings import Settings, deep_merge
from oidc_autopilot.exceptions import ConfigurationError

CONFIG_FILE_SUFFIX = ".config.json"
_SKIPPED_DIRS = {"node_modules", "dist", "build", "venv", "__pycache__"}


class ConfigLoader:
    """
    Settings loader that merges values from multiple sources.
    
    Priority order (highest to lowest):
    1. Explicit overrides passed to load()
    2. Environment variables
    3. Settings file
    4. Default values
    """
    
    DEFAULT_CONFIG_PATHS = [
        Path("autopilot.yaml"),
        Path("autopilot.yml"),
        Path.home() / ".config" / "oidc-autopilot" / "autopilot.yaml",
    ]
    
    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize the config loader.
        
        Args:
            config_path: Optional explicit path to a settings file
        """
        self.config_path = Path(config_path) if config_path else None
        self._file_config: Dict[str, Any] = {}
    
    def find_config_file(self) -> Optional[Path]:
        """
        Find the settings file to load.
        
        Returns:
            Path to settings file, or None if not found
        """
        if self.config_path and self.config_path.exists():
            return self.config_path
        
        for path in self.DEFAULT_CONFIG_PATHS:
            if path.exists():
                return path
        
        return None
    
    def load_yaml_config(self, path: Path) -> Dict[str, Any]:
        """
        Load settings from a YAML file.
        
        Args:
            path: Path to the YAML file
            
        Returns:
            Settings dictionary
        """
        with open(path, "r") as f:
            config = yaml.safe_load(f)
            return config if config else {}
    
    def load(
        self,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Settings:
        """
        Load settings from all sources.
        
        Args:
            env_file: Optional path to .env file
            overrides: Optional dictionary of values to override
            
        Returns:
            Complete Settings instance
        """
        if env_file:
            load_dotenv(env_file)
        else:
            for env_path in [Path(".env"), Path(".env.local")]:
                if env_path.exists():
                    load_dotenv(env_path)
                    break
        
        config_file = self.find_config_file()
        if config_file:
            self._file_config = self.load_yaml_config(config_file)
        
        try:
            # Environment beats the file, explicit overrides beat both
            env_values = Settings().model_dump(exclude_unset=True)
            settings = Settings(**deep_merge(dict(self._file_config), env_values))
            if overrides:
                settings = settings.merge_with(overrides)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {_format_errors(e)}")
        
        return settings


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> Settings:
    """
    Convenience function to load runtime settings.
    
    Args:
        config_path: Optional path to settings file
        env_file: Optional path to .env file
        **overrides: Keyword arguments to override settings
        
    Returns:
        Complete Settings instance
        
    Example:
        >>> settings = load_config()
        >>> settings = load_config(runner={"poll_interval": 2})
    """
    loader = ConfigLoader(config_path)
    return loader.load(env_file=env_file, overrides=overrides if overrides else None)


def load_plan_config(path: Union[str, Path]) -> PlanConfig:
    """
    Read and validate a plan configuration file.
    
    Args:
        path: JSON file, or YAML when the suffix is .yaml/.yml
        
    Returns:
        Validated PlanConfig
        
    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}")
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}")
    
    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(text)
        else:
            raw = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Config file {path} is not valid: {e}")
    
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain an object at the top level")
    
    try:
        return PlanConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid config file {path}: {_format_errors(e)}",
            {"errors": e.errors(include_url=False, include_context=False)},
        )


def discover_config_files(root: Union[str, Path, None] = None, max_depth: int = 2) -> List[str]:
    """
    Find ``*.config.json`` files below ``root``.
    
    Hidden directories and build/dependency folders are skipped.
    
    Returns:
        Sorted paths relative to ``root``
    """
    base = Path(root) if root else Path.cwd()
    found: List[str] = []
    
    def scan(directory: Path, depth: int) -> None:
        if depth > max_depth:
            return
        try:
            entries = list(os.scandir(directory))
        except OSError:
            return
        for entry in entries:
            if entry.name.startswith(".") or entry.name in _SKIPPED_DIRS:
                continue
            if entry.is_file() and entry.name.endswith(CONFIG_FILE_SUFFIX):
                found.append(Path(entry.path).relative_to(base).as_posix())
            elif entry.is_dir():
                scan(Path(entry.path), depth + 1)
    
    scan(base, 0)
    return sorted(found)


def _format_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)
