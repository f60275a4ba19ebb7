"""
GUI Server - FastAPI dashboard for launching and watching plan executions.

Provides:
- Launch page with discovered plan configs
- Server-Sent Events log/module feed
- Launch and stop endpoints
- Health endpoint with the current run state
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import asyncio
import logging
import os

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import ValidationError

from oidc_autopilot.config.loader import discover_config_files, load_plan_config
from oidc_autopilot.config.settings import DEFAULT_SERVER
from oidc_autopilot.exceptions import ConfigurationError
from oidc_autopilot.gui.page import build_page
from oidc_autopilot.gui.state import DashboardState, LaunchRequest

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0


def create_app(
    state: Optional[DashboardState] = None,
    config_root: Union[str, Path, None] = None,
    search_depth: int = 2,
) -> FastAPI:
    """
    Create the FastAPI application.
    
    Args:
        state: Run state (a fresh one if None)
        config_root: Directory searched for plan configs and used to resolve launch paths
        search_depth: Directory depth for config discovery
        
    Returns:
        FastAPI application instance
    """
    state = state or DashboardState()
    root = Path(config_root) if config_root else Path.cwd()
    
    app = FastAPI(title="OIDC Autopilot", version="0.1.0")
    app.state.dashboard = state
    
    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        """Serve the launch page."""
        return build_page(
            discover_config_files(root, search_depth),
            plan_id=os.environ.get("CONFORMANCE_PLAN_ID"),
            server_url=os.environ.get("CONFORMANCE_SERVER", DEFAULT_SERVER),
        )
    
    @app.get("/api/health")
    async def health() -> Dict[str, Any]:
        return state.health()
    
    @app.get("/api/configs")
    async def configs() -> Dict[str, Any]:
        return {"files": discover_config_files(root, search_depth)}
    
    @app.get("/api/feed")
    async def feed() -> StreamingResponse:
        """Server-Sent Events stream of log lines and module events."""
        async def event_generator():
            queue = state.subscribe()
            try:
                yield ": connected\n\n"
                while True:
                    try:
                        yield await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                    except asyncio.TimeoutError:
                        yield ": keepalive\n\n"
            finally:
                state.unsubscribe(queue)
        
        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-store", "X-Accel-Buffering": "no"},
        )
    
    @app.post("/api/launch", status_code=202)
    async def launch(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        """Validate the plan config and start executing it in the background."""
        if state.in_flight:
            raise HTTPException(status_code=409, detail="A plan is already running")
        
        try:
            request = LaunchRequest.model_validate(payload)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][-1]) for err in e.errors())
            raise HTTPException(status_code=400, detail=f"Invalid launch request: {fields}")
        
        try:
            plan = load_plan_config(root / request.config_path)
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not plan.modules:
            raise HTTPException(status_code=400, detail="Config contains zero test modules.")
        
        state.launch(request, plan)
        logger.info(f"Launched plan {request.plan_id} from {request.config_path}")
        return {"accepted": True}
    
    @app.post("/api/stop")
    async def stop() -> Dict[str, Any]:
        if not state.stop():
            raise HTTPException(status_code=409, detail="No execution is currently running")
        return {"stopped": True}
    
    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 3000,
    config_root: Union[str, Path, None] = None,
    search_depth: int = 2,
    log_level: str = "warning",
) -> None:
    """
    Run the dashboard with uvicorn.
    
    Args:
        host: Host to bind to
        port: Port to bind to
        config_root: Directory searched for plan configs
        search_depth: Directory depth for config discovery
        log_level: uvicorn log level
    """
    import uvicorn
    
    app = create_app(config_root=config_root, search_depth=search_depth)
    logger.info(f"OIDC Autopilot dashboard at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=log_level)
