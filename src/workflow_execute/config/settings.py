"""Configuration and settings management using pydantic-settings."""
import json
from pathlib import Path
from typing import Any

from cryptography.fernet import Fernet
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


USER_SETTINGS_FILE = "config"


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_EXECUTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")

    # User folder holds the settings file and the default database
    user_folder: Path = Field(
        default_factory=lambda: Path.home() / ".workflow-execute",
        description="Folder for user settings and local data",
    )

    # Database settings
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy async URL (defaults to SQLite in the user folder)",
    )

    # Credentials
    encryption_key: SecretStr | None = Field(
        default=None,
        description="Fernet key for stored credentials (read from the user settings file if unset)",
    )
    credentials_overwrite_data: str | None = Field(
        default=None,
        description='JSON object of credential fields forced per type: {"type": {"field": "value"}}',
    )

    # Execution
    entry_node_types: list[str] = Field(
        default_factory=lambda: ["n8n-nodes-base.start"],
        description="Node types accepted as the entry point of a headless run",
    )
    node_pack_entry_point: str = Field(
        default="workflow_execute.nodepacks",
        description="Entry point group node packs register under",
    )
    credential_types_entry_point: str = Field(
        default="workflow_execute.credentials",
        description="Entry point group credential types register under",
    )
    external_hook_files: str = Field(
        default="",
        description="Colon separated module paths exposing HOOKS",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the level is one logging understands."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {v}")
        return level

    @field_validator("entry_node_types")
    @classmethod
    def validate_entry_node_types(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("entry_node_types must not be empty")
        return v

    def get_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.user_folder / 'database.sqlite'}"

    def get_external_hook_modules(self) -> list[str]:
        return [path for path in self.external_hook_files.split(":") if path.strip()]


def prepare_user_settings(settings: Settings) -> dict[str, Any]:
    """
    Make sure the user folder and its settings file exist.

    A fresh settings file gets a newly generated encryption key. Returns the
    user settings.
    """
    settings.user_folder.mkdir(parents=True, exist_ok=True)
    settings_path = settings.user_folder / USER_SETTINGS_FILE

    if settings_path.exists():
        return json.loads(settings_path.read_text(encoding="utf-8"))

    user_settings = {"encryptionKey": Fernet.generate_key().decode()}
    settings_path.write_text(json.dumps(user_settings, indent=2), encoding="utf-8")
    return user_settings


def get_encryption_key(settings: Settings) -> str:
    """Encryption key from settings, else from the user settings file."""
    user_settings = prepare_user_settings(settings)
    if settings.encryption_key is not None:
        return settings.encryption_key.get_secret_value()

    key = user_settings.get("encryptionKey")
    if not key:
        raise ValueError(f"No encryption key found in {settings.user_folder / USER_SETTINGS_FILE}")
    return key


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
