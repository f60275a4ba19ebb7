"""
Interfaces module - Abstract capabilities consumed by the execution engine.
"""

from oidc_autopilot.interfaces.navigator import INavigator
from oidc_autopilot.interfaces.handlers import IStateHandlers

__all__ = [
    "INavigator",
    "IStateHandlers",
]
