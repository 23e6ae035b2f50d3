"""
config.py — Payout Planner application settings.

Usage:
    from payout_planner.config import settings
    print(settings.tax_year)

Never use FastAPI Depends() for settings — import directly as a module-level singleton.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Rate table ---
    # Selects the registered RateTable (see payout_planner.rates)
    tax_year: int = 2025

    # --- Optimizer ---
    optimizer_step: float = 1.0      # Ratio grid step in percentage points
    optimizer_workers: int = 1       # >1 evaluates the grid on a thread pool

    # --- CORS ---
    # Comma-separated list of allowed frontend origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # --- Application ---
    debug: bool = False
    app_version: str = "0.1.0"

    @property
    def cors_origins_list(self) -> List[str]:
        """Split comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Module-level singleton: import this throughout the codebase
settings = Settings()
