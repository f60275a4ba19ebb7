"""
Conformance API - Typed client for the remote certification service.

Only the endpoints the execution engine depends on are modelled:

    POST   /api/runner?plan=..&test=..   register a module run
    POST   /api/runner/{id}              start a configured run
    GET    /api/info/{id}                poll status/result
    GET    /api/runner/{id}              navigation targets
    GET    /api/log/{id}                 module log entries
    DELETE /api/runner/{id}              stop a run
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlencode
import json
import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from oidc_autopilot.api.http_client import HttpClient
from oidc_autopilot.engine.capture import CaptureTarget
from oidc_autopilot.engine.types import TestResult, TestState
from oidc_autopilot.exceptions import InvalidResponseError

logger = logging.getLogger(__name__)


class ModuleInfo(BaseModel):
    """Status payload of ``GET /api/info/{id}``."""
    model_config = ConfigDict(extra="allow")
    
    id: Optional[str] = None
    status: TestState = TestState.CREATED
    result: TestResult = TestResult.UNKNOWN
    redirect_to: Optional[str] = None
    browser: Optional[Dict[str, Any]] = None
    expose: Optional[List[Dict[str, Any]]] = None
    
    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> TestState:
        return TestState.parse(value)
    
    @field_validator("result", mode="before")
    @classmethod
    def _parse_result(cls, value: Any) -> TestResult:
        return TestResult.parse(value)
    
    @field_validator("id", "redirect_to", "browser", "expose", mode="before")
    @classmethod
    def _drop_malformed(cls, value: Any, info: Any) -> Any:
        expected = {"id": str, "redirect_to": str, "browser": dict, "expose": list}[info.field_name]
        if not isinstance(value, expected):
            return None
        if info.field_name == "expose":
            return [item for item in value if isinstance(item, dict)]
        return value


class MethodUrl(BaseModel):
    """URL tagged with the HTTP method the browser should use."""
    url: str = Field(min_length=1)
    method: str = "GET"
    
    @field_validator("method", mode="before")
    @classmethod
    def _default_method(cls, value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return "GET"


class BrowserTargets(BaseModel):
    """Navigation targets reported for a WAITING module."""
    urls: List[str] = Field(default_factory=list)
    urls_with_method: List[MethodUrl] = Field(default_factory=list, alias="urlsWithMethod")
    
    model_config = ConfigDict(populate_by_name=True)
    
    @field_validator("urls", mode="before")
    @classmethod
    def _string_urls(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str) and item]
    
    @field_validator("urls_with_method", mode="before")
    @classmethod
    def _method_entries(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [
            item for item in value
            if isinstance(item, dict) and isinstance(item.get("url"), str) and item["url"]
        ]
    
    def select_url(self) -> Optional[str]:
        """First direct URL, else the first GET entry of the method-tagged list."""
        if self.urls:
            return self.urls[0]
        for entry in self.urls_with_method:
            if entry.method.upper() == "GET":
                return entry.url
        return None
    
    def describe(self) -> str:
        urls = ", ".join(self.urls) if self.urls else "(empty)"
        with_method = (
            ", ".join(f"{e.method} {e.url}" for e in self.urls_with_method)
            if self.urls_with_method else "(empty)"
        )
        return f"urls={urls} urlsWithMethod={with_method}"


class RunnerInfo(BaseModel):
    """Payload of ``GET /api/runner/{id}``."""
    model_config = ConfigDict(extra="allow")
    
    id: Optional[str] = None
    status: TestState = TestState.CREATED
    browser: BrowserTargets = Field(default_factory=BrowserTargets)
    
    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> TestState:
        return TestState.parse(value)
    
    @field_validator("id", mode="before")
    @classmethod
    def _string_id(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None
    
    @field_validator("browser", mode="before")
    @classmethod
    def _browser_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}


class ConformanceApi:
    """
    Client for the conformance service used by the runner.
    
    Example:
        >>> async with ConformanceApi(base_url="https://www.certification.openid.net", token="...") as api:
        ...     runner_id = await api.register_runner("plan-1", "oidcc-server")
        ...     info = await api.get_module_info(runner_id)
    """
    
    def __init__(
        self,
        base_url: str,
        token: str,
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = HttpClient(
            base_url=base_url,
            token=token,
            timeout_s=timeout_s,
            transport=transport,
        )
    
    async def __aenter__(self) -> "ConformanceApi":
        return self
    
    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
    
    async def close(self) -> None:
        await self._client.close()
    
    async def register_runner(
        self,
        plan_id: str,
        test_name: str,
        capture: Optional[CaptureTarget] = None,
    ) -> str:
        """Register a module run and return its runner id."""
        url = self._client.build_url("api/runner") + "?" + urlencode(
            {"test": test_name, "plan": plan_id}
        )
        response = await self._client.request_json(
            url,
            "POST",
            [200, 201],
            headers=self._client.get_auth_headers(),
            capture=capture,
        )
        runner_id = response.get("id") if isinstance(response, dict) else None
        if not isinstance(runner_id, str) or not runner_id:
            raise InvalidResponseError(
                f"Register response for '{test_name}' has no runner id",
                raw_response=json.dumps(response),
                url=url,
            )
        return runner_id
    
    async def start_module(self, runner_id: str, capture: Optional[CaptureTarget] = None) -> None:
        """Start a configured runner."""
        await self._client.request_json(
            self._client.build_url(f"api/runner/{runner_id}"),
            "POST",
            [200, 201],
            headers=self._client.get_auth_headers(),
            capture=capture,
        )
    
    async def get_module_info(
        self,
        runner_id: str,
        capture: Optional[CaptureTarget] = None,
    ) -> ModuleInfo:
        """Poll status and result of a runner."""
        url = self._client.build_url(f"api/info/{runner_id}")
        headers = self._client.get_auth_headers()
        logger.debug(f"getModuleInfo request GET {url} headers={_mask(headers)}")
        
        response = await self._client.request_json(url, "GET", 200, headers=headers, capture=capture)
        logger.debug(f"getModuleInfo response {url}: {response}")
        
        return _validate(ModuleInfo, response, url)
    
    async def get_runner_info(
        self,
        runner_id: str,
        capture: Optional[CaptureTarget] = None,
    ) -> RunnerInfo:
        """Fetch navigation targets for a runner."""
        url = self._client.build_url(f"api/runner/{runner_id}")
        response = await self._client.request_json(
            url, "GET", 200, headers=self._client.get_auth_headers(), capture=capture
        )
        return _validate(RunnerInfo, response, url)
    
    async def get_module_logs(
        self,
        runner_id: str,
        capture: Optional[CaptureTarget] = None,
    ) -> List[Any]:
        """Fetch log entries; anything but a JSON array degrades to []."""
        response = await self._client.request_json(
            self._client.build_url(f"api/log/{runner_id}"),
            "GET",
            200,
            headers=self._client.get_auth_headers(),
            capture=capture,
        )
        return response if isinstance(response, list) else []
    
    async def delete_runner(self, runner_id: str) -> None:
        """Ask the service to stop a runner. The response body is ignored."""
        url = self._client.build_url(f"api/runner/{runner_id}")
        headers = self._client.get_auth_headers()
        logger.debug(f"deleteRunner request DELETE {url} headers={_mask(headers)}")
        try:
            await self._client.request_json(url, "DELETE", 200, headers=headers, allow_non_json=True)
        except Exception as e:
            logger.debug(f"deleteRunner error {url}: {e}")
            raise
        logger.debug(f"deleteRunner response {url}: success")


def _mask(headers: Dict[str, str]) -> Dict[str, str]:
    masked = dict(headers)
    if masked.get("Authorization", "").startswith("Bearer "):
        masked["Authorization"] = "Bearer ****"
    return masked


def _validate(model: type, payload: Any, url: str) -> Any:
    if not isinstance(payload, dict):
        raise InvalidResponseError(
            f"Expected a JSON object from {url}", raw_response=json.dumps(payload), url=url
        )
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidResponseError(f"Unexpected response shape from {url}: {e}", url=url) from e
