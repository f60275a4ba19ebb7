"""
State Handlers Interface - Hooks the state manager calls while WAITING.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from oidc_autopilot.engine.context import ModuleContext


class IStateHandlers(ABC):
    """
    Side effects triggered by the polling loop.
    
    The state manager decides *when* to navigate and to run actions;
    implementations decide *how*.
    """
    
    @abstractmethod
    async def navigate(self, url: str, context: "ModuleContext") -> str:
        """Open ``url`` in the module's browser and return the final URL."""
        pass
    
    @abstractmethod
    async def execute_actions(self, context: "ModuleContext") -> None:
        """
        Run the module's pending actions in configured order.
        
        Each action's captured variables are merged into the context and
        its name added to ``context.executed_actions``.
        """
        pass
