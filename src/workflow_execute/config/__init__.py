"""Configuration package."""
from workflow_execute.config.settings import (
    Settings,
    get_encryption_key,
    get_settings,
    prepare_user_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "get_encryption_key",
    "get_settings",
    "prepare_user_settings",
    "reset_settings",
]
