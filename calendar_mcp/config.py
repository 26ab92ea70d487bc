"""
Configuration management for the calendar tool server.

Uses Pydantic Settings for type-safe configuration with .env file support.
Every variable is read with the CALENDAR_ prefix, e.g. CALENDAR_OAUTH_PATH.
"""
import json
import shutil
from datetime import tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_DEFAULT_CONFIG_DIR = Path.home() / ".calendar-mcp"

OAUTH_KEYS_FILENAME = "gcp-oauth.keys.json"
CREDENTIALS_FILENAME = "credentials.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="CALENDAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    config_dir: Path = Field(default=_DEFAULT_CONFIG_DIR)
    oauth_path: Optional[Path] = Field(default=None, description="OAuth client keys file")
    credentials_path: Optional[Path] = Field(default=None, description="Stored OAuth tokens file")

    # Calendar Settings
    default_timezone: str = Field(default="UTC", description="IANA zone attached to resolved times")
    search_candidate_limit: int = Field(default=100, ge=1, le=2500)

    # OAuth Settings
    oauth_callback_port: int = Field(default=3000)

    # API Settings
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8000)
    log_level: str = Field(default="INFO")

    @field_validator("default_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone: {value}")
        return value

    @model_validator(mode="after")
    def _fill_paths(self) -> "Settings":
        if self.oauth_path is None:
            self.oauth_path = self.config_dir / OAUTH_KEYS_FILENAME
        if self.credentials_path is None:
            self.credentials_path = self.config_dir / CREDENTIALS_FILENAME
        return self

    @property
    def tz(self) -> tzinfo:
        """The process-wide zone as a tzinfo."""
        return ZoneInfo(self.default_timezone)

    def import_local_oauth_keys(self, cwd: Optional[Path] = None) -> bool:
        """
        Copy a keys file found in the working directory into the config dir.

        Returns:
            True if a file was copied
        """
        local_path = (cwd or Path.cwd()) / OAUTH_KEYS_FILENAME
        if not local_path.exists() or local_path.resolve() == self.oauth_path.resolve():
            return False
        self.oauth_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(local_path, self.oauth_path)
        return True

    def oauth_client_config(self) -> Dict[str, Any]:
        """
        Load the OAuth client configuration.

        Returns:
            The parsed keys file, containing an "installed" or "web" section

        Raises:
            ValueError: If the file is missing, unreadable or has neither section
        """
        if not self.oauth_path.exists():
            raise ValueError(
                f"OAuth keys file not found. Place {OAUTH_KEYS_FILENAME} in the current "
                f"directory or at {self.oauth_path}"
            )
        try:
            config = json.loads(self.oauth_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse {self.oauth_path}: {e}")
        if not isinstance(config, dict) or not (config.get("installed") or config.get("web")):
            raise ValueError(
                'Invalid OAuth keys file format. File should contain either "installed" or "web" credentials.'
            )
        return config

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings/errors."""
        issues = []

        try:
            self.oauth_client_config()
        except ValueError as e:
            issues.append(str(e))

        if not self.config_dir.exists():
            try:
                self.config_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                issues.append(f"Cannot create config directory {self.config_dir}: {e}")

        return issues


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
