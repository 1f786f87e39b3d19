"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with PLOTDESK_ prefix.

Learn: The websocket gateway and the REST API read the same jwt_secret,
so a token that works for one works for the other. There is exactly one
verification path for bearer tokens in this process.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via PLOTDESK_* env vars."""

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 30

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:5000",
    ]

    # Realtime
    ws_path: str = "/ws"
    reconnect_delay_seconds: float = 3.0

    model_config = {"env_prefix": "PLOTDESK_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure sensitive defaults are changed in non-development environments."""
        if (
            self.environment != "development"
            and self.jwt_secret == "change-me-in-production"
        ):
            raise ValueError(
                "PLOTDESK_JWT_SECRET must be set to a secure value in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton — import this everywhere
settings = Settings()
