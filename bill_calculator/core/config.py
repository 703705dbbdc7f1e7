"""Application configuration settings."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_database_url() -> str:
    """Get the default database URL, using a mounted data volume if available."""
    if os.path.isdir("/data"):
        return "sqlite:////data/bill_calculator.db"
    return "sqlite:///./bill_calculator.db"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "Electricity Bill Calculator"
    VERSION: str = "0.1.0"
    DEBUG: bool = True
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database - defaults to the data volume path if /data exists
    DATABASE_URL: str = _get_default_database_url()

    # Defaults used when a setting has never been saved
    DEFAULT_RATE_PER_KWH: float = 28  # pence per kWh
    DEFAULT_STANDING_CHARGE: float = 140  # pence per day
    DEFAULT_PROPERTY_NAME: str = "My Property"
    DEFAULT_PROPERTY_ADDRESS: str = ""
    DEFAULT_ROUNDED_VALUES: bool = True
    DEFAULT_ROUND_TO: int = 2


settings = Settings()
