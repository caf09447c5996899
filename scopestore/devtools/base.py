"""
StoreDevTool Base Interface

Observer notified of every scope lifecycle and dispatch event.
Dev tools are for diagnostics only; their return values are ignored and
their exceptions propagate to whichever store operation triggered them.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.scope import Scope
    from ..errors import ActionRejection
    from ..schemas.events import ScopeEvent


class StoreDevTool(ABC):
    """
    Abstract interface for store observers.

    Implementations:
    - LoggingDevTool: Writes every notification to the log
    - RecordingDevTool: Keeps an in-memory history (testing)
    """

    @abstractmethod
    def on_create(self, scope: "Scope") -> None:
        """Called when a scope was created and registered."""
        pass

    @abstractmethod
    def on_change(self, scope: "Scope") -> None:
        """Called when a scope was locked, gained an action or changed state."""
        pass

    @abstractmethod
    def on_action(self, event: "ScopeEvent") -> None:
        """Called when an action in any scope resolved."""
        pass

    @abstractmethod
    def on_action_error(self, error: "ActionRejection") -> None:
        """Called when an action in any scope rejected."""
        pass
