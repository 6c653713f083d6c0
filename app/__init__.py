"""
App package - Application configuration and core utilities.
Contains settings, exceptions, and logging setup.
"""

from app.config import settings, Settings, Environment
from app.exceptions import StoreOpenError
from app.logging_config import setup_logging

__all__ = [
    "settings",
    "Settings",
    "Environment",
    "StoreOpenError",
    "setup_logging",
]
