"""Application configuration via environment variables."""

from pathlib import Path
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'data' / 'tradevault.db'}"
    encryption_key: str = ""  # Fernet key used for broker API keys/secrets
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5500", "http://127.0.0.1:5500"]

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 43200  # 30 days

    # Broker adapters
    broker_timeout_seconds: float = 30.0
    broker_fetch_limit: int = 500
    alpaca_live_url: str = "https://api.alpaca.markets"
    alpaca_paper_url: str = "https://paper-api.alpaca.markets"
    binance_url: str = "https://api.binance.com"

    # 0 disables the scheduled sync of active broker connections
    auto_sync_minutes: int = 0

    # Imports
    max_upload_bytes: int = 10 * 1024 * 1024

    model_config = {"env_prefix": "TV_", "env_file": ".env"}


settings = Settings()
