from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    dws_api_key: str = ""
    dws_base_url: str = "https://api.nutrient.io"
    dws_timeout_seconds: float = 60.0
