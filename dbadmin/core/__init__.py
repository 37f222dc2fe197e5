"""
Core module - Configuration and cross-cutting concerns.

This module provides:
- config.py         : Environment-based configuration management
- logging_config.py : Centralized logging setup
- exceptions.py     : Error hierarchy raised by transports
- events.py         : Structured warning events
"""
from dbadmin.core.config import get_settings, Settings
from dbadmin.core.logging_config import setup_logging, get_logger, LoggerMixin
from dbadmin.core.exceptions import (
    DbAdminException,
    AuthenticationError,
    NotAuthenticatedError,
    TransportError,
    UnsupportedDatabaseError,
)
from dbadmin.core.events import ClassificationWarning, CollectingWarningSink, WarningSink

__all__ = [
    "get_settings",
    "Settings",
    "setup_logging",
    "get_logger",
    "LoggerMixin",
    "DbAdminException",
    "AuthenticationError",
    "NotAuthenticatedError",
    "TransportError",
    "UnsupportedDatabaseError",
    "ClassificationWarning",
    "CollectingWarningSink",
    "WarningSink",
]
