"""
Configuration settings for PromptBank.

Settings are read with Pydantic settings from ``PROMPTBANK_`` prefixed
environment variables and an optional ``.env`` file.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "promptbank"
DATA_FILE_NAME = "prompts.json"
LOG_FORMAT = "%(name)s:%(levelname)s:%(message)s"


def default_data_dir() -> Path:
    """Platform-conventional application data directory."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / APP_NAME
        return Path.home() / "AppData" / "Roaming" / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


class PromptBankSettings(BaseSettings):
    """
    Main configuration settings for PromptBank.

    Settings are loaded from multiple sources in order of preference:
    1. Environment variables (prefixed with PROMPTBANK_)
    2. A .env file in the working directory
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="PROMPTBANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Configuration
    data_dir: Path = Field(
        default_factory=default_data_dir,
        description="Directory holding the prompt data file"
    )

    data_file_name: str = Field(
        default=DATA_FILE_NAME,
        description="Name of the prompt data file"
    )

    # Integration Configuration
    agent_dir: Path = Field(
        default_factory=lambda: Path.home() / ".claude",
        description="Agent configuration directory prompts are installed into"
    )

    clipboard_command: Optional[str] = Field(
        default=None,
        description="Command that reads stdin into the clipboard"
    )

    # Import Configuration
    import_conflict_policy: str = Field(
        default="skip",
        description="Merge conflict policy for imports (skip, overwrite, rename)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    @field_validator("data_file_name")
    @classmethod
    def validate_data_file_name(cls, v: str) -> str:
        """Validate data file name."""
        v = v.strip()
        if not v or Path(v).name != v:
            raise ValueError(f"Invalid data file name '{v}'")
        return v

    @field_validator("import_conflict_policy")
    @classmethod
    def validate_import_conflict_policy(cls, v: str) -> str:
        """Validate import conflict policy."""
        valid_policies = {"skip", "overwrite", "rename"}
        v_lower = v.lower()
        if v_lower not in valid_policies:
            raise ValueError(f"Invalid conflict policy '{v}'. Valid policies: {', '.join(sorted(valid_policies))}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Valid levels: {', '.join(sorted(valid_levels))}")
        return v_upper

    @property
    def data_file(self) -> Path:
        """Path to the prompt data file."""
        return self.data_dir / self.data_file_name

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level

    def ensure_directories(self) -> None:
        """Ensure the data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a JSON friendly dictionary."""
        return self.model_dump(mode="json")


def get_settings() -> PromptBankSettings:
    """Get the current PromptBank settings."""
    return PromptBankSettings()


def setup_logging(settings: PromptBankSettings) -> None:
    """Configure root logging on stderr from settings."""
    level = getattr(logging, settings.effective_log_level)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(level)
