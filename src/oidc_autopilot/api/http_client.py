"""
HTTP Client - JSON requests with status checks and variable capture.
"""

from typing import Any, Dict, Iterable, Literal, Optional, Union
from urllib.parse import urljoin
import json
import logging

import httpx

from oidc_autopilot.engine.capture import CaptureTarget
from oidc_autopilot.exceptions import ConformanceApiError, HttpStatusError, InvalidResponseError

logger = logging.getLogger(__name__)

ExpectedStatus = Union[int, Iterable[int], Literal["ok"]]


class HttpClient:
    """
    Thin async wrapper around ``httpx.AsyncClient``.
    
    Example:
        >>> async with HttpClient(base_url="https://suite", token="t") as client:
        ...     data = await client.request_json(client.build_url("api/info/1"), "GET", 200)
    """
    
    def __init__(
        self,
        base_url: str = "",
        token: Optional[str] = None,
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.
        
        Args:
            base_url: Base URL used by build_url()
            token: Bearer token added to auth headers
            timeout_s: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(timeout=timeout_s, transport=transport)
    
    async def __aenter__(self) -> "HttpClient":
        return self
    
    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
    
    async def close(self) -> None:
        await self._client.aclose()
    
    def build_url(self, endpoint: str) -> str:
        """Resolve ``endpoint`` against the base URL."""
        if not self._base_url:
            raise ValueError("Base URL is required to build URL")
        return urljoin(self._base_url + "/", endpoint)
    
    def get_auth_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """JSON content type, caller headers, then the bearer token if any."""
        headers = {"Content-Type": "application/json"}
        if extra:
            headers.update(extra)
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers
    
    async def request_json(
        self,
        url: str,
        method: str,
        expected_status: ExpectedStatus,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        capture: Optional[CaptureTarget] = None,
        allow_non_json: bool = False,
    ) -> Any:
        """
        Issue a request and decode the JSON response.
        
        Args:
            url: Absolute request URL
            method: HTTP method
            expected_status: Accepted status code(s), or "ok" for any 2xx
            headers: Request headers
            body: JSON-serializable request body
            capture: Where to capture variables from the URL and response
            allow_non_json: Tolerate a non-JSON body (decoded as {})
            
        Returns:
            Parsed JSON, or {} for an empty body
            
        Raises:
            HttpStatusError: If the status is not accepted
            InvalidResponseError: If the body is not JSON and that is not allowed
            ConformanceApiError: If the request itself fails (connection, timeout)
        """
        try:
            response = await self._client.request(
                method,
                url,
                headers=headers,
                content=json.dumps(body) if body is not None else None,
            )
        except httpx.HTTPError as e:
            raise ConformanceApiError(
                f"Request {method} {url} failed: {str(e) or type(e).__name__}", url=url
            ) from e
        
        if not _status_ok(response.status_code, expected_status):
            raise HttpStatusError(response.status_code, response.text, url=url)
        
        text = response.text
        parsed: Any = {}
        if text:
            try:
                parsed = json.loads(text)
            except ValueError as e:
                if not allow_non_json:
                    raise InvalidResponseError(
                        f"Invalid JSON response: {e}", raw_response=text, url=url
                    )
                logger.debug(f"Non-JSON response from {url} tolerated")
        
        if capture is not None:
            capture.capture_url(url)
            if text and allow_non_json:
                capture.capture(text)
            capture.capture(parsed)
        
        return parsed


def _status_ok(status: int, expected: ExpectedStatus) -> bool:
    if expected == "ok":
        return 200 <= status < 300
    if isinstance(expected, int):
        return status == expected
    return status in set(expected)
