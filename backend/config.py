"""
Configuration management for the order lifecycle service.

Loads settings from .env via pydantic-settings.

Notes:
    - delivery_window_minutes is the policy used to stamp expected_delivery
      when an order goes out for delivery.
    - poll_interval_seconds is advertised to polling clients; it is a transport
      hint and never used for correctness decisions.
    - validate_production_settings() enforces strict CORS and a JWT secret in production.
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/orders.db"
    db_busy_timeout_seconds: float = 5.0
    sql_echo: bool = False

    # ── Order lifecycle ─────────────────────────────────────────────
    delivery_window_minutes: int = 30
    delivery_window_display_threshold_minutes: int = 30
    display_timezone: str = "UTC"

    # ── Polling ─────────────────────────────────────────────────────
    poll_interval_seconds: int = 2

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "order-lifecycle-api"
    jwt_access_ttl_minutes: int = 60

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174,http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup.
        """
        if self.delivery_window_minutes <= 0:
            raise ValueError("DELIVERY_WINDOW_MINUTES must be positive.")

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to verify actor access tokens."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if not self.jwt_secret:
                warnings.append("JWT_SECRET is empty (authenticated endpoints will fail)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
