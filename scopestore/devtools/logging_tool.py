"""
Logging Dev Tool

Writes every store notification through the standard logging module.
Installed on the default store when SCOPESTORE_DEBUG is enabled.
"""

from __future__ import annotations
from typing import Optional, Union
import logging

from .base import StoreDevTool
from ..config import get_config


logger = logging.getLogger(__name__)


class LoggingDevTool(StoreDevTool):
    """Logs scope creation, changes, actions and action errors."""

    def __init__(
        self,
        level: Optional[Union[int, str]] = None,
        log: Optional[logging.Logger] = None,
    ):
        if level is None:
            level = get_config().log_level
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                level = logging.INFO
        self.level = level
        self._log = log or logger

    def on_create(self, scope) -> None:
        self._log.log(
            self.level,
            f"[ScopeStore] created scope '{scope.name}' "
            f"(actions: {scope.support_actions}, locked: {scope.is_locked})",
        )

    def on_change(self, scope) -> None:
        self._log.log(
            self.level,
            f"[ScopeStore] scope '{scope.name}' changed "
            f"(actions: {len(scope.support_actions)}, locked: {scope.is_locked})",
        )

    def on_action(self, event) -> None:
        self._log.log(
            self.level,
            f"[ScopeStore] {event.scope_name}.{event.action_name}: "
            f"{event.old_state!r} -> {event.new_state!r}",
        )

    def on_action_error(self, error) -> None:
        # Rejections are logged one level above the configured one
        self._log.log(
            min(self.level + 10, logging.CRITICAL),
            f"[ScopeStore] {error.scope_name}.{error.action_name} rejected: "
            f"{error.reason!r}",
        )
