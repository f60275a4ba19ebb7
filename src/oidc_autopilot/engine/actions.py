"""
Action Executor - Run configured API and browser actions by name.
"""

from typing import Dict, Iterable, List, Mapping, Optional
import logging

from oidc_autopilot.api.http_client import HttpClient
from oidc_autopilot.config.plan import ActionConfig, ApiActionConfig, BrowserActionConfig
from oidc_autopilot.engine.capture import CaptureTarget, capture_from_object
from oidc_autopilot.engine.template import apply_template
from oidc_autopilot.exceptions import ActionExecutionError
from oidc_autopilot.interfaces.navigator import INavigator

logger = logging.getLogger(__name__)


class ActionExecutor:
    """
    Execute named actions against merged template variables.
    
    Variable precedence, lowest to highest: plan variables, module
    variables, captured variables.
    
    Example:
        >>> executor = ActionExecutor(plan.actions, plan.capture_vars, navigator=session)
        >>> new_vars = await executor.execute_action("send_cb", captured, {"client_id": "rp"})
    """
    
    def __init__(
        self,
        actions: Iterable[ActionConfig],
        capture_vars: Iterable[str],
        navigator: Optional[INavigator] = None,
        global_variables: Optional[Mapping[str, str]] = None,
        http_client: Optional[HttpClient] = None,
    ):
        self._actions: Dict[str, ActionConfig] = {a.name: a for a in actions}
        self._capture_vars: List[str] = list(capture_vars)
        self._navigator = navigator
        self._global_variables = dict(global_variables or {})
        self._client = http_client or HttpClient()
        self._owns_client = http_client is None
    
    async def close(self) -> None:
        if self._owns_client:
            await self._client.close()
    
    def merge_variables(
        self,
        captured: Mapping[str, str],
        module_variables: Mapping[str, str],
    ) -> Dict[str, str]:
        return {**self._global_variables, **module_variables, **captured}
    
    async def execute_action(
        self,
        name: str,
        captured: Mapping[str, str],
        module_variables: Mapping[str, str],
        log: Optional[logging.LoggerAdapter] = None,
    ) -> Dict[str, str]:
        """
        Execute an action and return the variables it captured.
        
        Args:
            name: Action name from the plan config
            captured: Variables captured so far for the module
            module_variables: The module's own variables
            log: Logger carrying module/action context
            
        Returns:
            Variables captured by this call only
            
        Raises:
            ActionExecutionError: If the action is unknown or fails
        """
        log = log or logging.LoggerAdapter(logger, {})
        action = self._actions.get(name)
        if action is None:
            raise ActionExecutionError(name, "UNKNOWN", f"Action '{name}' not found in config")
        
        variables = self.merge_variables(captured, module_variables)
        try:
            if isinstance(action, ApiActionConfig):
                return await self._execute_api_action(action, variables, log)
            elif isinstance(action, BrowserActionConfig):
                return await self._execute_browser_action(action, variables, log)
            else:
                raise TypeError(f"Unknown action type: {type(action).__name__}")
        except ActionExecutionError:
            raise
        except Exception as e:
            raise ActionExecutionError(
                name, action.type, f"Action execution failed: {e}", cause=e
            ) from e
    
    async def _execute_api_action(
        self,
        action: ApiActionConfig,
        variables: Dict[str, str],
        log: logging.LoggerAdapter,
    ) -> Dict[str, str]:
        endpoint = apply_template(action.endpoint, variables)
        payload = apply_template(action.payload, variables) if action.payload is not None else None
        headers = apply_template(action.headers, variables) if action.headers else None
        
        log.debug(f"{action.method} {endpoint}")
        target = CaptureTarget(self._capture_vars, {})
        await self._client.request_json(
            endpoint,
            action.method,
            action.expected_status or "ok",
            headers=self._client.get_auth_headers(headers),
            body=payload,
            capture=target,
            allow_non_json=True,
        )
        return target.store
    
    async def _execute_browser_action(
        self,
        action: BrowserActionConfig,
        variables: Dict[str, str],
        log: logging.LoggerAdapter,
    ) -> Dict[str, str]:
        if self._navigator is None:
            raise RuntimeError("Browser session not initialized for browser action")
        
        captured: Dict[str, str] = {}
        if action.operation == "navigate":
            url = apply_template(action.url, variables)
            log.debug(f"Navigating to {url}")
            final_url = await self._navigator.navigate(url, action.wait_for)
            capture_from_object(final_url, self._capture_vars, captured)
        else:
            raise ValueError(f"Unknown browser operation: {action.operation}")
        return captured
