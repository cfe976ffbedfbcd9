"""
Vroom Route API — Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by main.py; the binary path is handed to VroomService once
       at app construction and never read again from here.
When:  Loaded once at module import time.
"""

import os
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for a container where VROOM is
    installed at /usr/local/bin/vroom. Override VROOM_BINLOCATION anywhere else.
    """

    # ── VROOM ─────────────────────────────────────────────────────────────
    # What: Filesystem path to the VROOM executable
    # The process is started from this file's directory, so VROOM can find
    # any data files (e.g. libosrm datasets) it expects alongside itself.
    vroom_binlocation: str = Field(
        default="/usr/local/bin/vroom",
        description="Path to the VROOM routing binary",
    )

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs, or "*" for any origin
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # VROOM_BINLOCATION and vroom_binlocation both work
    }

    def validate_binary(self) -> None:
        """
        What:  Checks that the configured VROOM binary is usable.
        When:  Called during app startup (lifespan) to warn early.
        How:   Raises ValueError describing every problem found.

        Requests re-check the binary themselves, so a failure here is
        reported but does not stop the server.
        """
        errors = []
        binary = Path(self.vroom_binlocation)
        if not binary.exists():
            errors.append(f"VROOM_BINLOCATION '{binary}' does not exist")
        elif not os.access(binary, os.X_OK):
            errors.append(f"VROOM_BINLOCATION '{binary}' is not executable")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance used by the application factory
settings = Settings()
