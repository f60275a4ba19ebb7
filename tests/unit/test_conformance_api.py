"""
Tests for the HTTP client and the conformance API client.
"""

import logging

import httpx
import pytest

from oidc_autopilot.api.conformance import BrowserTargets, ConformanceApi, ModuleInfo
from oidc_autopilot.api.http_client import HttpClient
from oidc_autopilot.engine.capture import CaptureTarget
from oidc_autopilot.engine.types import TestResult, TestState
from oidc_autopilot.exceptions import ConformanceApiError, HttpStatusError, InvalidResponseError

BASE = "https://conformance.example"


# =============================================================================
# HELPERS
# =============================================================================

class Recorder:
    """MockTransport handler returning canned responses by (method, path)."""
    
    def __init__(self, routes):
        self.routes = routes
        self.requests = []
    
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes[(request.method, request.url.path)]()


def make_api(routes):
    recorder = Recorder(routes)
    api = ConformanceApi(BASE, "tok-123", transport=httpx.MockTransport(recorder))
    return api, recorder


class TestHttpClient:
    """Test the JSON request helper."""
    
    def test_build_url(self):
        """Test endpoints resolve against the base URL."""
        client = HttpClient(base_url="https://x.example/base")
        assert client.build_url("api/runner") == "https://x.example/base/api/runner"
    
    def test_build_url_requires_base(self):
        """Test a missing base URL is an error."""
        with pytest.raises(ValueError):
            HttpClient().build_url("api/runner")
    
    def test_auth_headers(self):
        """Test content type, caller headers and bearer token."""
        headers = HttpClient(token="t").get_auth_headers({"X-A": "1"})
        assert headers == {"Content-Type": "application/json", "X-A": "1", "Authorization": "Bearer t"}
        assert "Authorization" not in HttpClient().get_auth_headers()
    
    @pytest.mark.asyncio
    async def test_empty_body_is_empty_object(self):
        """Test an empty 200 body decodes to {}."""
        client = HttpClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        assert await client.request_json("https://x/y", "GET", 200) == {}
        await client.close()
    
    @pytest.mark.asyncio
    async def test_non_json_rejected_by_default(self):
        """Test non-JSON raises unless tolerated."""
        client = HttpClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>")))
        with pytest.raises(InvalidResponseError):
            await client.request_json("https://x/y", "GET", 200)
        assert await client.request_json("https://x/y", "GET", 200, allow_non_json=True) == {}
        await client.close()
    
    @pytest.mark.asyncio
    async def test_expected_status_forms(self):
        """Test int, list and 'ok' expectations."""
        client = HttpClient(transport=httpx.MockTransport(lambda r: httpx.Response(201, json={"a": 1})))
        assert await client.request_json("https://x/y", "POST", [200, 201]) == {"a": 1}
        assert await client.request_json("https://x/y", "POST", "ok") == {"a": 1}
        with pytest.raises(HttpStatusError) as exc_info:
            await client.request_json("https://x/y", "POST", 200)
        assert exc_info.value.status_code == 201
        await client.close()
    
    @pytest.mark.asyncio
    async def test_capture_from_url_and_body(self):
        """Test the capture target sees the request URL and parsed body."""
        client = HttpClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"code": "c1"})))
        target = CaptureTarget(["code", "state"])
        await client.request_json("https://x/y?state=s1", "GET", 200, capture=target)
        await client.close()
        assert target.store == {"state": "s1", "code": "c1"}
    
    @pytest.mark.asyncio
    async def test_connection_error_wrapped(self):
        """Test transport failures surface as ConformanceApiError."""
        def refuse(request):
            raise httpx.ConnectError("All connection attempts failed", request=request)
        
        client = HttpClient(transport=httpx.MockTransport(refuse))
        with pytest.raises(ConformanceApiError) as exc_info:
            await client.request_json("https://x/y", "GET", 200)
        await client.close()
        assert str(exc_info.value) == "Request GET https://x/y failed: All connection attempts failed"
        assert exc_info.value.url == "https://x/y"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
    
    @pytest.mark.asyncio
    async def test_timeout_without_message(self):
        """Test an empty transport error message falls back to the error type."""
        def stall(request):
            raise httpx.ReadTimeout("", request=request)
        
        client = HttpClient(transport=httpx.MockTransport(stall))
        with pytest.raises(ConformanceApiError, match="failed: ReadTimeout"):
            await client.request_json("https://x/y", "POST", "ok", body={"a": 1})
        await client.close()


class TestConformanceApi:
    """Test the conformance endpoints."""
    
    @pytest.mark.asyncio
    async def test_register_runner(self):
        """Test registration posts plan and test name and returns the id."""
        api, recorder = make_api({("POST", "/api/runner"): lambda: httpx.Response(201, json={"id": "r-1"})})
        runner_id = await api.register_runner("plan-9", "oidcc-server")
        await api.close()
        
        request = recorder.requests[0]
        assert runner_id == "r-1"
        assert request.url.params["plan"] == "plan-9"
        assert request.url.params["test"] == "oidcc-server"
        assert request.headers["authorization"] == "Bearer tok-123"
    
    @pytest.mark.asyncio
    async def test_register_without_id(self):
        """Test a response without an id is invalid."""
        api, _ = make_api({("POST", "/api/runner"): lambda: httpx.Response(200, json={"name": "x"})})
        with pytest.raises(InvalidResponseError):
            await api.register_runner("p", "t")
        await api.close()
    
    @pytest.mark.asyncio
    async def test_register_http_error(self):
        """Test a rejected registration raises HttpStatusError."""
        api, _ = make_api({("POST", "/api/runner"): lambda: httpx.Response(401, text="bad token")})
        with pytest.raises(HttpStatusError) as exc_info:
            await api.register_runner("p", "t")
        await api.close()
        assert str(exc_info.value) == "HTTP 401: bad token"
    
    @pytest.mark.asyncio
    async def test_get_module_info_normalizes(self, caplog):
        """Test status/result decoding and masked debug logging."""
        api, _ = make_api({("GET", "/api/info/r-1"): lambda: httpx.Response(
            200, json={"id": "r-1", "status": "waiting", "result": "bogus", "browser": "nope", "extra": 1},
        )})
        with caplog.at_level(logging.DEBUG, logger="oidc_autopilot.api.conformance"):
            info = await api.get_module_info("r-1")
        await api.close()
        
        assert info.status == TestState.WAITING
        assert info.result == TestResult.UNKNOWN
        assert info.browser is None
        assert "tok-123" not in caplog.text
        assert "Bearer ****" in caplog.text
    
    @pytest.mark.asyncio
    async def test_get_runner_info_targets(self):
        """Test navigation targets are parsed with method defaults."""
        api, _ = make_api({("GET", "/api/runner/r-1"): lambda: httpx.Response(200, json={
            "id": "r-1",
            "browser": {"urls": [], "urlsWithMethod": [{"url": "https://op/a", "method": "POST"}, {"url": "https://op/b"}]},
        })})
        info = await api.get_runner_info("r-1")
        await api.close()
        
        assert info.browser.urls_with_method[1].method == "GET"
        assert info.browser.select_url() == "https://op/b"
    
    @pytest.mark.asyncio
    async def test_get_module_logs_non_list(self):
        """Test a non-array log payload degrades to []."""
        api, _ = make_api({("GET", "/api/log/r-1"): lambda: httpx.Response(200, json={"oops": True})})
        assert await api.get_module_logs("r-1") == []
        await api.close()
    
    @pytest.mark.asyncio
    async def test_start_module(self):
        """Test starting a configured runner."""
        api, recorder = make_api({("POST", "/api/runner/r-1"): lambda: httpx.Response(200, json={})})
        await api.start_module("r-1")
        await api.close()
        assert recorder.requests[0].method == "POST"
    
    @pytest.mark.asyncio
    async def test_delete_runner_tolerates_text(self):
        """Test DELETE accepts a non-JSON body."""
        api, recorder = make_api({("DELETE", "/api/runner/r-1"): lambda: httpx.Response(200, text="stopped")})
        await api.delete_runner("r-1")
        await api.close()
        assert recorder.requests[0].method == "DELETE"
    
    @pytest.mark.asyncio
    async def test_delete_runner_error_reraised(self):
        """Test DELETE failures propagate."""
        api, _ = make_api({("DELETE", "/api/runner/r-1"): lambda: httpx.Response(500, text="down")})
        with pytest.raises(HttpStatusError):
            await api.delete_runner("r-1")
        await api.close()


class TestBrowserTargets:
    """Test URL selection."""
    
    def test_direct_url_preferred(self):
        """Test the first direct URL wins."""
        targets = BrowserTargets.model_validate({"urls": ["https://a", "https://b"], "urlsWithMethod": [{"url": "https://c"}]})
        assert targets.select_url() == "https://a"
    
    def test_method_defaults_to_get(self):
        """Test an entry without a method is treated as GET and selected."""
        targets = BrowserTargets.model_validate({"urls": [], "urlsWithMethod": [{"url": "https://c"}]})
        assert targets.urls_with_method[0].method == "GET"
        assert targets.select_url() == "https://c"
    
    def test_method_case_and_blank(self):
        """Test lowercase and blank methods still resolve to GET entries."""
        targets = BrowserTargets.model_validate({
            "urlsWithMethod": [
                {"url": "https://post", "method": "POST"},
                {"url": "https://lower", "method": " get "},
            ],
        })
        assert targets.select_url() == "https://lower"
        
        blank = BrowserTargets.model_validate({"urlsWithMethod": [{"url": "https://blank", "method": "  "}]})
        assert blank.urls_with_method[0].method == "GET"
        assert blank.select_url() == "https://blank"
    
    def test_no_get_entry(self):
        """Test no selection when only non-GET entries exist."""
        targets = BrowserTargets.model_validate({"urlsWithMethod": [{"url": "https://c", "method": "POST"}]})
        assert targets.select_url() is None
        assert "POST https://c" in targets.describe()
    
    def test_malformed_entries_dropped(self):
        """Test non-string URLs and bad entries are ignored."""
        targets = BrowserTargets.model_validate({"urls": [1, "", "https://ok"], "urlsWithMethod": "bad"})
        assert targets.urls == ["https://ok"]
        assert targets.urls_with_method == []
    
    def test_module_info_defaults(self):
        """Test an empty payload decodes."""
        info = ModuleInfo.model_validate({})
        assert info.status == TestState.CREATED
        assert info.result == TestResult.UNKNOWN
