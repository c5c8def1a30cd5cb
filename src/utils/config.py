"""Centralized configuration management for Property Inventory.

This module provides application-level configuration from environment variables.

Features:
- Environment variable support via .env files
- Fallback priority: .env → hardcoded defaults
- Automatic .env.example generation from defaults
- Type-safe configuration using Pydantic

Usage:
    from utils.config import get_config

    config = get_config()
    client = BackendClient(
        url=config.backend.url,
        anon_key=config.backend.anon_key,
    )
"""

from __future__ import annotations

import sys
import threading
import tomllib
from logging import getLogger
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = getLogger(__name__)


def _read_pyproject() -> dict:
    """Read pyproject.toml and extract project metadata."""
    pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
            project = data.get("project", {})
            return {
                "name": project.get("name", "property-inventory"),
                "version": project.get("version", "?.?.?"),
            }
    except Exception as e:
        # Installed without the source tree: fall back to defaults
        logger.debug(f"Could not read pyproject.toml: {e}")
        return {"name": "property-inventory", "version": "?.?.?"}


# Read project metadata once at module load
_PROJECT_METADATA = _read_pyproject()


class BackendConfig(BaseSettings):
    """Hosted backend (REST, auth and storage) configuration."""

    url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the hosted backend project",
    )
    anon_key: str = Field(
        default="",
        description="Public (anon) API key sent with every request",
    )
    email: str | None = Field(
        default=None,
        description="Optional account email used to sign in at startup",
    )
    password: str | None = Field(
        default=None,
        description="Optional account password used to sign in at startup",
    )
    timeout: float = Field(
        default=30.0,
        description="HTTP timeout in seconds",
        gt=0,
    )
    max_retries: int = Field(
        default=3,
        description="Retries after the first attempt for transient failures (network errors and 5xx)",
        ge=1,
    )
    retry_backoff_base: float = Field(
        default=0.5,
        description="Base delay in seconds for exponential retry backoff",
        ge=0,
    )
    photo_bucket: str = Field(
        default="item-photos",
        description="Storage bucket holding item photos",
    )

    model_config = SettingsConfigDict(
        env_prefix="BACKEND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL and strip trailing slashes."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"backend url must start with http:// or https://, got: {v}")
        return v.rstrip("/")


class AnalyticsConfig(BaseSettings):
    """Valuation and warranty analytics configuration."""

    warranty_soon_days: int = Field(
        default=60,
        description="Warranties expiring within this many days count as expiring soon",
        ge=0,
    )
    days_per_month: float = Field(
        default=30.4375,
        description="Average month length used for straight-line depreciation",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


class AppConfig(BaseSettings):
    """Application-wide configuration."""

    name: str = Field(
        default_factory=lambda: _PROJECT_METADATA["name"],
        description="Application name (from pyproject.toml)",
    )
    version: str = Field(
        default_factory=lambda: _PROJECT_METADATA["version"],
        description="Application version (from pyproject.toml)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )
    log_to_file: bool = Field(
        default=True,
        description="Write rotating log files under <data_dir>/logs",
    )
    log_retention_count: int = Field(
        default=7,
        description="Number of log files to keep",
        ge=1,
    )

    # Project paths
    project_root: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent.parent,
        description="Project root directory",
    )
    data_dir: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent.parent / "data",
        description="Directory for logs and exports",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def user_data_dir(self) -> Path:
        """Get user data directory for writable files.

        Returns:
            Path to directory for logs and exports (created on access).
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir

    @property
    def user_agent(self) -> str:
        """HTTP User-Agent header sent to the backend."""
        return f"{self.name}/{self.version}"


class Config:
    """Main configuration container."""

    def __init__(self, write_env_example: bool = False) -> None:
        """Initialize configuration from environment and defaults.

        Args:
            write_env_example: Regenerate .env.example from field defaults.
        """
        self.app = AppConfig()
        self.backend = BackendConfig()
        self.analytics = AnalyticsConfig()

        if write_env_example:
            self.update_env_example()

    def update_env_example(self) -> Path | None:
        """Write .env.example with current default values.

        Returns:
            Path written, or None if the file could not be written.
        """
        env_example_path = self.app.project_root / ".env.example"

        lines = [
            "# Property Inventory - Environment Configuration",
            "# Copy this file to .env and customize the values",
            "#",
            "# Priority: .env > hardcoded defaults",
            "",
        ]

        sections: list[tuple[str, str, type[BaseSettings]]] = [
            ("Application Settings", "APP_", AppConfig),
            ("Backend Settings", "BACKEND_", BackendConfig),
            ("Analytics Settings", "ANALYTICS_", AnalyticsConfig),
        ]
        for title, prefix, section in sections:
            lines.extend(
                [
                    "# " + "=" * 76,
                    f"# {title}",
                    "# " + "=" * 76,
                    "",
                ]
            )
            for field_name, field_info in section.model_fields.items():
                if field_name in ("project_root", "data_dir"):
                    continue  # Computed paths

                if field_info.default_factory:
                    try:
                        default = field_info.default_factory()
                    except Exception:
                        default = None
                else:
                    default = field_info.default

                lines.append(f"# {field_info.description or ''}")
                env_var = f"{prefix}{field_name.upper()}"
                if default is None:
                    lines.append(f"# {env_var}=")
                else:
                    lines.append(f"# {env_var}={default}")
                lines.append("")

        try:
            env_example_path.parent.mkdir(parents=True, exist_ok=True)
            env_example_path.write_text("\n".join(lines), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write .env.example to {env_example_path}: {e}")
            return None
        return env_example_path

    def reload(self) -> None:
        """Reload configuration from environment variables."""
        self.__init__()

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(\n  app={self.app},\n  backend={self.backend},\n"
            f"  analytics={self.analytics}\n)"
        )


# Global configuration instance (singleton)
_config_instance: Config | None = None
_config_lock = threading.Lock()


def get_config(config: Config | None = None) -> Config:
    """Get the global configuration instance (lazy initialization).

    Args:
        config: Optional config instance to use instead of singleton.
                If provided, replaces the singleton.
                Useful for dependency injection.

    Returns:
        Global Config instance
    """
    global _config_instance  # noqa: PLW0603

    if config is not None:
        with _config_lock:
            _config_instance = config
        return _config_instance

    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = Config()

    assert _config_instance is not None
    return _config_instance


def reload_config() -> Config:
    """Reload configuration from environment.

    Returns:
        Reloaded Config instance
    """
    global _config_instance  # noqa: PLW0603
    with _config_lock:
        _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Reset the global config instance.

    Primarily for testing.
    """
    global _config_instance  # noqa: PLW0603
    with _config_lock:
        _config_instance = None


if __name__ == "__main__":  # pragma: no cover
    written = Config().update_env_example()
    sys.stdout.write(f"{written}\n")
