"""
Plan configuration schema.

A plan file lists the variables to capture, global template variables,
named actions and the test modules to run, in order:

    {
      "capture_vars": ["code", "state"],
      "variables": {"client_id": "rp-1"},
      "actions": [
        {"type": "api", "name": "send_cb", "endpoint": "https://rp/cb?code={{code}}", "method": "GET"},
        {"type": "browser", "name": "open_rp", "url": "https://rp/login?state={{state}}"}
      ],
      "modules": [{"name": "oidcc-server", "actions": ["send_cb"]}]
    }
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
WaitUntil = Literal["load", "domcontentloaded", "networkidle", "commit"]


class ApiActionConfig(BaseModel):
    """HTTP call issued while a module is WAITING."""
    type: Literal["api"] = "api"
    name: str = Field(min_length=1)
    endpoint: str = Field(min_length=1)
    method: HttpMethod = "POST"
    payload: Optional[Any] = None
    headers: Optional[Dict[str, str]] = None
    expected_status: Optional[List[int]] = None
    
    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class BrowserActionConfig(BaseModel):
    """Browser navigation issued while a module is WAITING."""
    type: Literal["browser"] = "browser"
    name: str = Field(min_length=1)
    operation: Literal["navigate"] = "navigate"
    url: str = Field(min_length=1)
    wait_for: WaitUntil = "networkidle"


ActionConfig = Annotated[
    Union[ApiActionConfig, BrowserActionConfig],
    Field(discriminator="type"),
]


class ModuleConfig(BaseModel):
    """One test module of the plan."""
    name: str = Field(min_length=1)
    variables: Dict[str, str] = Field(default_factory=dict)
    actions: List[str] = Field(default_factory=list)


class PlanConfig(BaseModel):
    """Complete plan configuration."""
    capture_vars: List[str] = Field(default_factory=list)
    variables: Dict[str, str] = Field(default_factory=dict)
    actions: List[ActionConfig] = Field(default_factory=list)
    modules: List[ModuleConfig] = Field(default_factory=list)
    
    @field_validator("capture_vars")
    @classmethod
    def _non_blank_capture_vars(cls, value: List[str]) -> List[str]:
        if any(not name.strip() for name in value):
            raise ValueError("capture variable names must not be blank")
        return value
    
    @model_validator(mode="after")
    def _check_references(self) -> "PlanConfig":
        action_names = [a.name for a in self.actions]
        duplicates = sorted({n for n in action_names if action_names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate action names: {', '.join(duplicates)}")
        
        module_names = [m.name for m in self.modules]
        duplicates = sorted({n for n in module_names if module_names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate module names: {', '.join(duplicates)}")
        
        known = set(action_names)
        for module in self.modules:
            missing = [name for name in module.actions if name not in known]
            if missing:
                raise ValueError(
                    f"module '{module.name}' references unknown actions: {', '.join(missing)}"
                )
        return self
