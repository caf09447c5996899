"""
Recording Dev Tool

In-memory history of store notifications, for testing and inspection.
"""

from __future__ import annotations
from typing import Any, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .base import StoreDevTool


class DevToolEventKind(str, Enum):
    """Kinds of notifications a dev tool receives."""
    CREATE = "create"
    CHANGE = "change"
    ACTION = "action"
    ACTION_ERROR = "action_error"


@dataclass
class DevToolRecord:
    """Single recorded notification."""
    kind: DevToolEventKind
    scope_name: str
    payload: Any = None
    recorded_at: datetime = field(default_factory=datetime.utcnow)


class RecordingDevTool(StoreDevTool):
    """
    In-memory dev tool.

    WARNING: History grows without bound until clear() is called.
    """

    def __init__(self):
        self._records: List[DevToolRecord] = []

    def on_create(self, scope) -> None:
        self._records.append(DevToolRecord(
            kind=DevToolEventKind.CREATE,
            scope_name=scope.name,
            payload=scope.state,
        ))

    def on_change(self, scope) -> None:
        self._records.append(DevToolRecord(
            kind=DevToolEventKind.CHANGE,
            scope_name=scope.name,
            payload=scope.state,
        ))

    def on_action(self, event) -> None:
        self._records.append(DevToolRecord(
            kind=DevToolEventKind.ACTION,
            scope_name=event.scope_name,
            payload=event,
        ))

    def on_action_error(self, error) -> None:
        self._records.append(DevToolRecord(
            kind=DevToolEventKind.ACTION_ERROR,
            scope_name=error.scope_name,
            payload=error,
        ))

    def records(
        self,
        kind: Optional[DevToolEventKind] = None,
        scope_name: Optional[str] = None,
    ) -> List[DevToolRecord]:
        """Get recorded notifications, optionally filtered."""
        return [
            record for record in self._records
            if (kind is None or record.kind == kind)
            and (scope_name is None or record.scope_name == scope_name)
        ]

    def clear(self) -> None:
        """Clear all records (for testing)."""
        self._records.clear()
