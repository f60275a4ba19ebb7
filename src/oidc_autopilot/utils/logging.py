"""
Logging utilities for OIDC Autopilot.
"""

import json
import logging
import time
from typing import Any, MutableMapping, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

# Record attributes carrying execution context
CONTEXT_FIELDS = ("correlation_id", "module_name", "action_name", "state")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> None:
    """
    Configure logging for the application.
    
    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        json_format: Use JSON format for the log file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    
    console = Console(stderr=True)
    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)
    
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        
        if json_format:
            formatter: logging.Formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
        
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including execution context when present."""
    
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                data[name] = value
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


class ModuleLogAdapter(logging.LoggerAdapter):
    """
    Logger adapter scoped to one module execution.
    
    Messages are prefixed with ``[module]`` or ``[module:action]`` and the
    context is attached to each record for structured consumers.
    
    Example:
        >>> log = ModuleLogAdapter.for_module(logger, "oidcc-server")
        >>> log.info("Registering...")               # [oidcc-server] Registering...
        >>> log.for_action("send_cb").info("done")   # [oidcc-server:send_cb] done
    """
    
    @classmethod
    def for_module(cls, logger: logging.Logger, module_name: str) -> "ModuleLogAdapter":
        correlation_id = f"{module_name}-{int(time.time() * 1000)}"
        return cls(logger, {"module_name": module_name, "correlation_id": correlation_id})
    
    @property
    def correlation_id(self) -> str:
        return self.extra.get("correlation_id", "")
    
    def for_action(self, action_name: str) -> "ModuleLogAdapter":
        return ModuleLogAdapter(self.logger, {**self.extra, "action_name": action_name})
    
    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        
        parts = [p for p in (extra.get("module_name"), extra.get("action_name")) if p]
        if parts:
            msg = f"[{':'.join(parts)}] {msg}"
        return msg, kwargs
