# Storefront Auth Core Module
from .clock import Clock, system_clock
from .config import Settings, get_settings
from .database import (
    AppBase,
    SessionStoreBase,
    check_db_connection,
    create_engine,
    create_session_factory,
)
from .logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "Clock",
    "system_clock",
    "AppBase",
    "SessionStoreBase",
    "create_engine",
    "create_session_factory",
    "check_db_connection",
]
