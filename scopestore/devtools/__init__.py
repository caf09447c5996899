"""ScopeStore Dev Tools - Store observers for diagnostics."""

from .base import StoreDevTool
from .logging_tool import LoggingDevTool
from .recorder import RecordingDevTool, DevToolRecord, DevToolEventKind

__all__ = [
    "StoreDevTool",
    "LoggingDevTool",
    "RecordingDevTool",
    "DevToolRecord",
    "DevToolEventKind",
]
