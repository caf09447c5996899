"""
ScopeStore Configuration Module

Centralized configuration from environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class StoreConfig:
    """Main configuration container."""
    root_scope_name: str = "rootScope"
    scope_prefix: str = "scope"
    listener_prefix: str = "listener"
    debug: bool = False
    log_level: str = "INFO"


def load_config() -> StoreConfig:
    """
    Load configuration from environment variables.

    Environment Variables:
        SCOPESTORE_ROOT_SCOPE: Name of the pre-created root scope (default: rootScope)
        SCOPESTORE_SCOPE_PREFIX: Prefix for generated scope names (default: scope)
        SCOPESTORE_LISTENER_PREFIX: Prefix for listener ids (default: listener)
        SCOPESTORE_DEBUG: Install a logging dev tool on the default store (default: false)
        SCOPESTORE_LOG_LEVEL: Level used by the logging dev tool (default: INFO)
    """
    return StoreConfig(
        root_scope_name=os.getenv("SCOPESTORE_ROOT_SCOPE", "rootScope"),
        scope_prefix=os.getenv("SCOPESTORE_SCOPE_PREFIX", "scope"),
        listener_prefix=os.getenv("SCOPESTORE_LISTENER_PREFIX", "listener"),
        debug=os.getenv("SCOPESTORE_DEBUG", "false").lower() in ("true", "1", "yes"),
        log_level=os.getenv("SCOPESTORE_LOG_LEVEL", "INFO").upper(),
    )


# Singleton config instance
_config: Optional[StoreConfig] = None


def get_config() -> StoreConfig:
    """Get the global configuration (lazy-loaded singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    global _config
    _config = None
