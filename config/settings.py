"""
Configuration settings for the merchant KYC onboarding form.
Uses pydantic-settings for environment variable management.
"""

import os
import tomllib
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Mode
    DEBUG: bool = Field(False, description="Enable debug mode")
    DEMO_MODE: bool = Field(True, description="Answer API calls from the in-memory demo backend")
    LOG_LEVEL: str = Field("INFO", description="Root logger level for the Streamlit app")

    # REST API Configuration
    API_BASE_URL: str = Field(
        "http://localhost:8080/api",
        description="Base URL of the onboarding REST API"
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(30.0, description="Timeout for a single API call")

    # Client-side state
    FORM_STATE_KEY: str = Field(
        "fundWithdrawForm",
        description="Session storage key holding the in-progress application"
    )


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def validate_settings(s: "Settings" = None) -> tuple[bool, list[str]]:
    """
    Validate the loaded settings.
    Returns (is_valid, list of invalid settings).
    """
    s = s or settings
    issues = []

    if not s.API_BASE_URL.startswith(("http://", "https://")):
        issues.append(f"API_BASE_URL must be an http(s) URL, got {s.API_BASE_URL!r}")

    if s.REQUEST_TIMEOUT_SECONDS <= 0:
        issues.append("REQUEST_TIMEOUT_SECONDS must be greater than zero")

    if not s.FORM_STATE_KEY.strip():
        issues.append("FORM_STATE_KEY must not be empty")

    if s.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        issues.append(f"LOG_LEVEL {s.LOG_LEVEL!r} is not a logging level")

    return len(issues) == 0, issues


# Load .env from project root
env_path = get_project_root() / ".env"
if env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(env_path)

# On Streamlit Cloud, secrets are in .streamlit/secrets.toml
# Copy them into os.environ so pydantic-settings can find them
secrets_path = get_project_root() / ".streamlit" / "secrets.toml"
if secrets_path.exists():
    with open(secrets_path, "rb") as f:
        for key, value in tomllib.load(f).items():
            if isinstance(value, str) and key not in os.environ:
                os.environ[key] = value

# Global settings instance
settings = Settings()
