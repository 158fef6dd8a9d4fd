"""Runtime settings, read from ``PASTEGIS_*`` environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PASTEGIS_", env_file=".env", extra="ignore")

    # Spatial reference given to pasted data that carries none (WGS 84)
    default_wkid: int = 4326
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "INFO"


settings = Settings()
