"""
OIDC Autopilot - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--plan-id, --token, etc.)
    2. Legacy environment variables (CONFORMANCE_PLAN_ID, CONFORMANCE_TOKEN, CONFORMANCE_SERVER)
    3. Environment variables (OIDC_AUTOPILOT__API__TOKEN, etc.)
    4. Settings file (autopilot.yaml)

Usage:
    oidc-autopilot run -c plans/basic.config.json -p PLAN_ID -t TOKEN
    oidc-autopilot validate plans/basic.config.json
    oidc-autopilot dashboard --port 3000
"""

from pathlib import Path
from typing import NoReturn, Optional
import asyncio
import logging
import signal

import typer
from dotenv import load_dotenv
from rich.console import Console

from oidc_autopilot.api.conformance import ConformanceApi
from oidc_autopilot.config import get_settings, load_plan_config
from oidc_autopilot.config.plan import PlanConfig
from oidc_autopilot.config.settings import Settings
from oidc_autopilot.engine.cancellation import StopSignal
from oidc_autopilot.engine.runner import Runner
from oidc_autopilot.engine.types import ExecutionSummary
from oidc_autopilot.exceptions import AutopilotError
from oidc_autopilot.reporting.summary import print_summary
from oidc_autopilot.utils.logging import setup_logging

# Create the CLI app
app = typer.Typer(
    name="oidc-autopilot",
    help="Automated OpenID conformance plan runner",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)


def _fail(message: str) -> NoReturn:
    console.print(f"[ERROR]: {message}", markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(1)


def _load_settings() -> Settings:
    try:
        return get_settings()
    except AutopilotError as e:
        _fail(str(e))


async def _run_plan(settings: Settings, plan_id: str, token: str, plan: PlanConfig) -> ExecutionSummary:
    stop_signal = StopSignal()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop_signal.request, "Interrupted")
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handlers
        pass

    try:
        async with ConformanceApi(
            base_url=settings.api.base_url,
            token=token,
            timeout_s=settings.api.request_timeout_s,
        ) as api:
            runner = Runner.from_settings(api, settings, stop_signal=stop_signal)
            return await runner.execute_plan(plan_id, plan)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Plan config file (*.config.json)"),
    plan_id: Optional[str] = typer.Option(None, "--plan-id", "-p", envvar="CONFORMANCE_PLAN_ID", help="Conformance plan ID"),
    base_url: Optional[str] = typer.Option(None, "--base-url", "-s", envvar="CONFORMANCE_SERVER", help="Conformance server URL"),
    token: Optional[str] = typer.Option(None, "--token", "-t", envvar="CONFORMANCE_TOKEN", help="API bearer token"),
    poll_interval: Optional[float] = typer.Option(None, "--poll-interval", help="Seconds between status polls"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds per module before timing out"),
    headless: Optional[bool] = typer.Option(None, "--headless/--no-headless", help="Run the browser headless"),
    continue_on_error: bool = typer.Option(False, "--continue-on-error", help="Record failing modules and keep going"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output"),
):
    """
    Execute every module of a plan config against the conformance service.

    Exits with status 1 on invalid input, on an aborted plan, or when any
    module failed or was interrupted.

    Examples:
        oidc-autopilot run -c basic.config.json -p abc123 -t $TOKEN
        oidc-autopilot run -c basic.config.json --no-headless --timeout 600
    """
    settings = _load_settings()
    setup_logging(
        "DEBUG" if verbose else settings.logging.level,
        settings.logging.file,
        settings.logging.json_format,
    )

    effective_plan_id = plan_id or settings.api.plan_id
    effective_token = token or (settings.api.token.get_secret_value() if settings.api.token else None)

    if config is None:
        _fail("A plan config file is required (--config)")
    if not effective_plan_id:
        _fail("A plan ID is required (--plan-id or CONFORMANCE_PLAN_ID)")
    if not effective_token:
        _fail("An API token is required (--token or CONFORMANCE_TOKEN)")
    if poll_interval is not None and poll_interval <= 0:
        _fail("--poll-interval must be a positive number")
    if timeout is not None and timeout <= 0:
        _fail("--timeout must be a positive number")

    try:
        plan = load_plan_config(config)
    except AutopilotError as e:
        _fail(str(e))
    if not plan.modules:
        _fail("No test modules found in configuration file.")

    overrides: dict = {"api": {}, "runner": {}, "browser": {}}
    if base_url:
        overrides["api"]["base_url"] = base_url
    if poll_interval is not None:
        overrides["runner"]["poll_interval"] = poll_interval
    if timeout is not None:
        overrides["runner"]["timeout"] = timeout
    if continue_on_error:
        overrides["runner"]["continue_on_error"] = True
    if headless is not None:
        overrides["browser"]["headless"] = headless
    settings = settings.merge_with(overrides)

    console.print(
        f"Running {len(plan.modules)} module(s) of plan {effective_plan_id} "
        f"against {settings.api.base_url}",
        markup=False,
        highlight=False,
    )

    try:
        summary = asyncio.run(_run_plan(settings, effective_plan_id, effective_token, plan))
    except Exception as e:
        logger.debug("Plan execution failed", exc_info=True)
        _fail(str(e) or type(e).__name__)

    print_summary(summary, console)
    if summary.has_failures:
        raise typer.Exit(1)


@app.command()
def validate(
    config: Path = typer.Argument(..., help="Plan config file to check"),
):
    """Check a plan config file without contacting the service."""
    try:
        plan = load_plan_config(config)
    except AutopilotError as e:
        _fail(str(e))

    console.print(
        f"{config}: OK ({len(plan.modules)} module(s), {len(plan.actions)} action(s), "
        f"{len(plan.capture_vars)} capture variable(s))",
        markup=False,
        highlight=False,
    )
    for module in plan.modules:
        actions = ", ".join(module.actions) if module.actions else "no actions"
        console.print(f"  - {module.name}: {actions}", markup=False, highlight=False)
    if not plan.modules:
        console.print("[yellow]Warning: no test modules defined[/yellow]")


@app.command()
def dashboard(
    host: Optional[str] = typer.Option(None, "--host", help="Host to bind to (use 0.0.0.0 for LAN)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to run the dashboard on"),
    root: Optional[Path] = typer.Option(None, "--root", help="Directory searched for plan configs"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output"),
):
    """
    Start the web dashboard.

    Examples:
        oidc-autopilot dashboard                  # http://127.0.0.1:3000
        oidc-autopilot dashboard --host 0.0.0.0   # Allow LAN access
    """
    from oidc_autopilot.gui.server import run_server

    settings = _load_settings()
    setup_logging("DEBUG" if verbose else settings.logging.level, settings.logging.file)

    effective_host = host or settings.dashboard.host
    effective_port = port or settings.dashboard.port
    console.print(f"OIDC Autopilot Dashboard -> http://{effective_host}:{effective_port}", markup=False)
    run_server(
        host=effective_host,
        port=effective_port,
        config_root=root,
        search_depth=settings.dashboard.config_search_depth,
        log_level="debug" if verbose else "warning",
    )


@app.command()
def version():
    """Show version information."""
    from oidc_autopilot import __version__
    console.print(f"[bold]OIDC Autopilot[/bold] v{__version__}")


def main() -> None:
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
